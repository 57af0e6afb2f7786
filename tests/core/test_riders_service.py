# tests/core/test_riders_service.py
"""
Тесты для справочника курьеров.
"""

from __future__ import annotations

import math

import pytest

from src.common.errors import AuthError, NotFoundError, ValidationError
from src.core.riders.models import RiderCreateDTO


class TestRegister:
    """Тесты регистрации курьера."""

    @pytest.mark.asyncio
    async def test_register_with_zero_credit(self, rider_service) -> None:
        rider = await rider_service.register(
            RiderCreateDTO(name="Pedro", phone="0917", username="pedro", password="pw")
        )

        assert rider.id == 1
        assert rider.credit == 0.0
        assert rider.password_hash.startswith("pbkdf2_sha256$")
        assert "pw" not in rider.password_hash

    @pytest.mark.asyncio
    @pytest.mark.parametrize("missing", ["name", "phone", "username", "password"])
    async def test_missing_fields(self, rider_service, missing: str) -> None:
        data = {"name": "Pedro", "phone": "0917", "username": "pedro", "password": "pw"}
        data[missing] = None

        with pytest.raises(ValidationError):
            await rider_service.register(RiderCreateDTO(**data))

        assert await rider_service.list_riders() == []

    @pytest.mark.asyncio
    async def test_username_taken(self, rider_service, make_rider) -> None:
        await make_rider("pedro")

        with pytest.raises(ValidationError, match="Username already taken"):
            await make_rider("pedro")

    @pytest.mark.asyncio
    async def test_public_projection_hides_hash(self, make_rider) -> None:
        rider = await make_rider()

        public = rider.to_public().model_dump()

        assert "password_hash" not in public
        assert public["username"] == "rider1"


class TestQueries:
    """Тесты выборок курьеров."""

    @pytest.mark.asyncio
    async def test_list_in_id_order(self, rider_service, make_rider) -> None:
        await make_rider("a")
        await make_rider("b")

        riders = await rider_service.list_riders()

        assert [r.username for r in riders] == ["a", "b"]

    @pytest.mark.asyncio
    async def test_get_unknown(self, rider_service) -> None:
        with pytest.raises(NotFoundError):
            await rider_service.get_rider(3)


class TestAdjustCredit:
    """Тесты начисления кредита."""

    @pytest.mark.asyncio
    async def test_credit_accumulates(self, rider_service, make_rider) -> None:
        rider = await make_rider()

        assert await rider_service.adjust_credit(rider.id, 10) == 10.0
        assert await rider_service.adjust_credit(rider.id, 5) == 15.0
        assert (await rider_service.get_rider(rider.id)).credit == 15.0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("delta", [-5, 0, math.inf, math.nan, None, "10", True])
    async def test_invalid_delta(self, rider_service, make_rider, delta) -> None:
        rider = await make_rider()
        await rider_service.adjust_credit(rider.id, 10)

        with pytest.raises(ValidationError):
            await rider_service.adjust_credit(rider.id, delta)

        assert (await rider_service.get_rider(rider.id)).credit == 10.0

    @pytest.mark.asyncio
    async def test_unknown_rider(self, rider_service) -> None:
        with pytest.raises(NotFoundError):
            await rider_service.adjust_credit(8, 5)


class TestAuthenticate:
    """Тесты входа курьера."""

    @pytest.mark.asyncio
    async def test_valid_credentials(self, rider_service, make_rider) -> None:
        rider = await make_rider("pedro", "s3cret")

        found = await rider_service.authenticate("pedro", "s3cret")

        assert found.id == rider.id

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "username,password",
        [("pedro", "wrong"), ("nobody", "s3cret"), ("", "s3cret"), ("pedro", None)],
    )
    async def test_invalid_credentials(self, rider_service, make_rider, username, password) -> None:
        await make_rider("pedro", "s3cret")

        with pytest.raises(AuthError):
            await rider_service.authenticate(username, password)
