# src/services/delivery_api/routes.py
"""
HTTP endpoints API доставки.

Ошибки ядра (DeliveryError) не перехватываются здесь: их превращают
в ErrorResponse обработчики исключений приложения.
"""

from __future__ import annotations

from typing import Annotated, Optional

from fastapi import APIRouter, File, Form, UploadFile
from fastapi.responses import FileResponse

from src.common.constants import ProofKind
from src.common.errors import NotFoundError
from src.core.auth.models import LoginRequest
from src.core.clients.models import ClientCreateDTO
from src.core.orders.models import (
    ManualOrderCreateDTO,
    Order,
    OrderCreateDTO,
    RiderOrderView,
)
from src.core.riders.models import RiderCreateDTO, RiderPublic
from src.shared.models.common import ErrorResponse
from src.services.delivery_api.dependencies import (
    AdminPrincipal,
    ClientPrincipal,
    Container,
    CurrentPrincipal,
    RiderPrincipal,
)
from src.services.delivery_api.schemas import (
    AssignRequest,
    ClientLoginResponse,
    ClientRegisterResponse,
    CreditRequest,
    CreditResponse,
    OrderResponse,
    ProofResponse,
    RiderLoginResponse,
    TokenResponse,
)


ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
}


async def _read_upload(file: Optional[UploadFile], max_bytes: int) -> tuple[Optional[str], bytes]:
    if file is None:
        return None, b""
    # Лишний байт позволяет хранилищу отклонить слишком большой файл
    return file.filename, await file.read(max_bytes + 1)


# === ADMIN ===

admin_router = APIRouter(prefix="/admin", tags=["Admin"], responses=ERROR_RESPONSES)


@admin_router.post("/login", response_model=TokenResponse, summary="Вход администратора")
async def admin_login(request: LoginRequest, container: Container) -> TokenResponse:
    token = await container.auth.login_admin(request.username, request.password)
    return TokenResponse(token=token)


@admin_router.post("/orders", response_model=Order, summary="Создать заказ вручную")
async def create_manual_order(
    request: ManualOrderCreateDTO,
    container: Container,
    _: AdminPrincipal,
) -> Order:
    """
    Создать заказ для заказчика без аккаунта.

    Если передан `rider_id`, заказ сразу назначается курьеру (Accepted).
    """
    return await container.orders.create_manual(request)


@admin_router.get("/orders", response_model=list[Order], summary="Все заказы")
async def list_all_orders(container: Container, _: AdminPrincipal) -> list[Order]:
    return await container.orders.list_all()


@admin_router.put("/orders/{order_id}/assign", response_model=OrderResponse, summary="Назначить курьера")
async def assign_order(
    order_id: int,
    request: AssignRequest,
    container: Container,
    _: AdminPrincipal,
) -> OrderResponse:
    """Назначить курьера или снять назначение (`rider_id: null`)."""
    order = await container.orders.admin_assign(order_id, request.rider_id)
    message = "Rider assigned" if request.rider_id is not None else "Rider unassigned"
    return OrderResponse(message=message, order=order)


@admin_router.post("/riders", response_model=RiderPublic, summary="Зарегистрировать курьера")
async def register_rider(
    request: RiderCreateDTO,
    container: Container,
    _: AdminPrincipal,
) -> RiderPublic:
    rider = await container.riders.register(request)
    return rider.to_public()


@admin_router.get("/riders", response_model=list[RiderPublic], summary="Все курьеры")
async def list_riders(container: Container, _: AdminPrincipal) -> list[RiderPublic]:
    return [rider.to_public() for rider in await container.riders.list_riders()]


@admin_router.post("/riders/{rider_id}/credit", response_model=CreditResponse, summary="Начислить кредит")
async def adjust_credit(
    rider_id: int,
    request: CreditRequest,
    container: Container,
    _: AdminPrincipal,
) -> CreditResponse:
    balance = await container.riders.adjust_credit(rider_id, request.amount)
    return CreditResponse(rider_id=rider_id, credit=balance)


# === RIDERS ===

rider_router = APIRouter(prefix="/riders", tags=["Riders"], responses=ERROR_RESPONSES)


@rider_router.post("/login", response_model=RiderLoginResponse, summary="Вход курьера")
async def rider_login(request: LoginRequest, container: Container) -> RiderLoginResponse:
    token, rider = await container.auth.login_rider(request.username, request.password)
    return RiderLoginResponse(token=token, rider=rider.to_public())


@rider_router.get("/orders", response_model=list[RiderOrderView], summary="Очередь курьера")
async def list_rider_orders(container: Container, principal: RiderPrincipal) -> list[RiderOrderView]:
    """Свои заказы курьера и все свободные заказы (Pending)."""
    return await container.orders.list_for_rider(principal.id)


@rider_router.post("/orders/{order_id}/claim", response_model=OrderResponse, summary="Принять заказ")
async def claim_order(order_id: int, container: Container, principal: RiderPrincipal) -> OrderResponse:
    order = await container.assignment.claim(principal.id, order_id)
    return OrderResponse(message="Order accepted", order=order)


@rider_router.post("/orders/{order_id}/complete", response_model=OrderResponse, summary="Завершить заказ")
async def complete_order(order_id: int, container: Container, principal: RiderPrincipal) -> OrderResponse:
    """Завершить доставку. Требуется загруженное фото доставки (dropoff)."""
    order = await container.assignment.complete(principal.id, order_id)
    return OrderResponse(message="Order completed", order=order)


# === CLIENTS ===

client_router = APIRouter(prefix="/clients", tags=["Clients"], responses=ERROR_RESPONSES)


@client_router.post("/register", response_model=ClientRegisterResponse, summary="Регистрация клиента")
async def register_client(
    container: Container,
    fullname: Annotated[Optional[str], Form()] = None,
    address: Annotated[Optional[str], Form()] = None,
    phone: Annotated[Optional[str], Form()] = None,
    username: Annotated[Optional[str], Form()] = None,
    password: Annotated[Optional[str], Form()] = None,
    valid_id: Annotated[Optional[UploadFile], File(alias="validId")] = None,
    selfie: Annotated[Optional[UploadFile], File()] = None,
) -> ClientRegisterResponse:
    """
    Саморегистрация клиента (multipart).

    Файлы `validId` и `selfie` обязательны. Если регистрация отклонена,
    уже сохранённые файлы удаляются.
    """
    saved: list[str] = []
    try:
        refs: dict[str, Optional[str]] = {}
        for field, upload in (("validId", valid_id), ("selfie", selfie)):
            filename, content = await _read_upload(upload, container.artifacts.max_bytes)
            refs[field] = None
            if content:
                refs[field] = await container.artifacts.save(field, filename, content)
                saved.append(refs[field])

        client = await container.clients.register(
            ClientCreateDTO(
                fullname=fullname,
                address=address,
                phone=phone,
                username=username,
                password=password,
                valid_id=refs["validId"],
                selfie=refs["selfie"],
            )
        )
    except Exception:
        for ref in saved:
            await container.artifacts.delete(ref)
        raise

    return ClientRegisterResponse(client=client.to_public())


@client_router.post("/login", response_model=ClientLoginResponse, summary="Вход клиента")
async def client_login(request: LoginRequest, container: Container) -> ClientLoginResponse:
    token, client = await container.auth.login_client(request.username, request.password)
    return ClientLoginResponse(token=token, client=client.to_public())


@client_router.post("/orders", response_model=OrderResponse, summary="Создать заказ")
async def create_client_order(
    request: OrderCreateDTO,
    container: Container,
    principal: ClientPrincipal,
) -> OrderResponse:
    order = await container.orders.create_from_client(principal.id, request)
    return OrderResponse(message="Order placed", order=order)


@client_router.get("/orders", response_model=list[Order], summary="Мои заказы")
async def list_client_orders(container: Container, principal: ClientPrincipal) -> list[Order]:
    return await container.orders.list_for_client(principal.id)


# === ORDERS / FILES ===

orders_router = APIRouter(tags=["Orders"], responses=ERROR_RESPONSES)


@orders_router.post("/orders/{order_id}/proof/{kind}", response_model=ProofResponse, summary="Загрузить фото")
async def upload_proof(
    order_id: int,
    kind: ProofKind,
    container: Container,
    principal: CurrentPrincipal,
    file: Annotated[Optional[UploadFile], File()] = None,
) -> ProofResponse:
    """
    Загрузить фото забора (`pickup`) или доставки (`dropoff`).

    Администратор может загрузить фото к любому заказу, курьер только
    к назначенному ему.
    """
    # Заказ должен существовать до сохранения файла
    await container.orders.get_order(order_id)

    filename, content = await _read_upload(file, container.artifacts.max_bytes)
    if not content:
        await container.orders.upload_proof(principal, order_id, kind, None)

    ref = await container.artifacts.save(kind.value, filename, content)
    try:
        order = await container.orders.upload_proof(principal, order_id, kind, ref)
    except Exception:
        await container.artifacts.delete(ref)
        raise

    return ProofResponse(order_id=order_id, kind=kind, ref=ref, order=order)


@orders_router.get("/uploads/{ref}", response_class=FileResponse, summary="Получить файл")
async def get_upload(ref: str, container: Container, _: CurrentPrincipal) -> FileResponse:
    path = container.artifacts.path_for(ref)
    if not path.is_file():
        raise NotFoundError("File not found", details={"ref": ref})
    return FileResponse(path)
