import asyncio
import os

from src.config import settings
from src.common.errors import ValidationError
from src.core.riders.models import RiderCreateDTO
from src.core.riders.service import RiderService
from src.infra.storage import create_store


async def main():
    store = await create_store(settings)

    service = RiderService(store, hash_iterations=settings.auth.PASSWORD_HASH_ITERATIONS)
    dto = RiderCreateDTO(
        name="Dev Rider",
        phone="09170000000",
        username=os.getenv("DEV_RIDER_USERNAME", "devrider"),
        password=os.getenv("DEV_RIDER_PASSWORD", "devrider"),
    )

    try:
        rider = await service.register(dto)
        print(f"Rider {rider.id} ({rider.username}) created")
    except ValidationError as e:
        print(f"Rider not created: {e.message}")
    finally:
        await store.close()


if __name__ == "__main__":
    asyncio.run(main())
