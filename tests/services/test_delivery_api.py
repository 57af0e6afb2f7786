# tests/services/test_delivery_api.py
"""
Тесты HTTP API доставки (FastAPI TestClient поверх хранилища в памяти).
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterator
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from src.config.loader import Settings
from src.infra.storage import MemoryAggregateStore
from src.services.delivery_api.app import create_app
from src.services.delivery_api.dependencies import build_container


JPEG = b"\xff\xd8\xff\xe0fake-jpeg"


@pytest.fixture
def api(test_settings: Settings) -> Iterator[TestClient]:
    container = build_container(test_settings, MemoryAggregateStore())
    with TestClient(create_app(test_settings, container=container)) as client:
        yield client


def _auth(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def _admin_token(api: TestClient) -> str:
    response = api.post("/admin/login", json={"username": "admin", "password": "admin-pass"})
    assert response.status_code == 200
    return response.json()["token"]


def _register_client(api: TestClient, username: str = "ana") -> dict[str, Any]:
    response = api.post(
        "/clients/register",
        data={
            "fullname": "Ana Santos",
            "address": "Balibago",
            "phone": "0918",
            "username": username,
            "password": "pw",
        },
        files={
            "validId": ("id.jpg", JPEG, "image/jpeg"),
            "selfie": ("me.png", JPEG, "image/png"),
        },
    )
    assert response.status_code == 200, response.text
    return response.json()["client"]


def _client_token(api: TestClient, username: str = "ana") -> str:
    return api.post("/clients/login", json={"username": username, "password": "pw"}).json()["token"]


def _create_rider(api: TestClient, admin: str, username: str = "pedro") -> dict[str, Any]:
    response = api.post(
        "/admin/riders",
        json={"name": "Pedro", "phone": "0917", "username": username, "password": "pw"},
        headers=_auth(admin),
    )
    assert response.status_code == 200, response.text
    return response.json()


def _rider_token(api: TestClient, username: str = "pedro") -> str:
    return api.post("/riders/login", json={"username": username, "password": "pw"}).json()["token"]


def _place_order(api: TestClient, client_token: str) -> dict[str, Any]:
    response = api.post(
        "/clients/orders",
        json={"pickup": "SM Clark", "dropoff": "Marquee Mall", "fee": 80, "type": "food"},
        headers=_auth(client_token),
    )
    assert response.status_code == 200, response.text
    return response.json()["order"]


class TestHealth:
    """Тесты служебных endpoints."""

    def test_health(self, api: TestClient) -> None:
        body = api.get("/health").json()

        assert body["status"] == "healthy"
        assert body["service"] == "delivery_api"
        assert body["dependencies"] == {"storage": "memory"}

    def test_api_root(self, api: TestClient) -> None:
        response = api.get("/api")

        assert response.status_code == 200
        assert response.text == "Kabalen Backend API is running"


class TestAuth:
    """Тесты входа и проверки токенов."""

    def test_admin_wrong_password(self, api: TestClient) -> None:
        response = api.post("/admin/login", json={"username": "admin", "password": "nope"})

        assert response.status_code == 401
        assert response.json()["error_code"] == "auth_error"

    def test_missing_token(self, api: TestClient) -> None:
        response = api.get("/admin/orders")

        assert response.status_code == 401

    def test_garbage_token(self, api: TestClient) -> None:
        response = api.get("/admin/orders", headers=_auth("abc.def"))

        assert response.status_code == 401

    def test_non_ascii_token(self, api: TestClient) -> None:
        response = api.get("/riders/orders", headers={"Authorization": b"Bearer abc.\xe9\xe9"})

        assert response.status_code == 401
        assert response.json()["error_code"] == "auth_error"

    def test_role_mismatch(self, api: TestClient) -> None:
        _register_client(api)

        response = api.get("/admin/orders", headers=_auth(_client_token(api)))

        assert response.status_code == 403
        assert response.json()["error_code"] == "permission_denied"

    def test_rider_login_hides_hash(self, api: TestClient) -> None:
        _create_rider(api, _admin_token(api))

        body = api.post("/riders/login", json={"username": "pedro", "password": "pw"}).json()

        assert body["token"]
        assert "password_hash" not in body["rider"]


class TestClientRegistration:
    """Тесты регистрации клиента."""

    def test_register(self, api: TestClient, test_settings: Settings) -> None:
        client = _register_client(api)

        assert client["id"] == 1
        assert "password_hash" not in client
        assert client["valid_id"].startswith("validId_")
        assert client["selfie"].endswith(".png")

    def test_missing_file(self, api: TestClient, test_settings: Settings) -> None:
        response = api.post(
            "/clients/register",
            data={"fullname": "A", "address": "B", "phone": "1", "username": "a", "password": "pw"},
            files={"validId": ("id.jpg", JPEG, "image/jpeg")},
        )

        assert response.status_code == 400
        assert response.json()["message"] == "All fields including files are required"

    def test_duplicate_username_cleans_files(self, api: TestClient, test_settings: Settings) -> None:
        _register_client(api)
        uploads = Path(test_settings.storage.UPLOAD_DIR)
        before = sorted(p.name for p in uploads.iterdir())

        response = api.post(
            "/clients/register",
            data={"fullname": "B", "address": "C", "phone": "2", "username": "ana", "password": "pw"},
            files={"validId": ("id.jpg", JPEG, "image/jpeg"), "selfie": ("s.jpg", JPEG, "image/jpeg")},
        )

        assert response.status_code == 400
        assert sorted(p.name for p in uploads.iterdir()) == before


class TestOrderFlow:
    """Сквозной сценарий: заказ, захват, фото, завершение."""

    def test_full_delivery(self, api: TestClient) -> None:
        admin = _admin_token(api)
        _register_client(api)
        client = _client_token(api)
        rider = _create_rider(api, admin)
        rider_token = _rider_token(api)

        order = _place_order(api, client)
        assert order["status"] == "Pending"
        assert order["category"] == "food"

        queue = api.get("/riders/orders", headers=_auth(rider_token)).json()
        assert [o["id"] for o in queue] == [order["id"]]
        assert queue[0]["customer_name"] == "Ana Santos"

        claimed = api.post(f"/riders/orders/{order['id']}/claim", headers=_auth(rider_token))
        assert claimed.status_code == 200
        assert claimed.json()["message"] == "Order accepted"
        assert claimed.json()["order"]["rider_id"] == rider["id"]

        early = api.post(f"/riders/orders/{order['id']}/complete", headers=_auth(rider_token))
        assert early.status_code == 400

        proof = api.post(
            f"/orders/{order['id']}/proof/dropoff",
            files={"file": ("d.jpg", JPEG, "image/jpeg")},
            headers=_auth(rider_token),
        )
        assert proof.status_code == 200, proof.text
        ref = proof.json()["ref"]
        assert proof.json()["order"]["dropoff_proof"] == ref

        done = api.post(f"/riders/orders/{order['id']}/complete", headers=_auth(rider_token))
        assert done.status_code == 200
        assert done.json()["order"]["status"] == "Completed"

        mine = api.get("/clients/orders", headers=_auth(client)).json()
        assert mine[0]["status"] == "Completed"

        image = api.get(f"/uploads/{ref}", headers=_auth(admin))
        assert image.status_code == 200
        assert image.content == JPEG

    def test_second_rider_loses_claim(self, api: TestClient) -> None:
        admin = _admin_token(api)
        _register_client(api)
        order = _place_order(api, _client_token(api))
        _create_rider(api, admin, "r1")
        _create_rider(api, admin, "r2")

        first = api.post(f"/riders/orders/{order['id']}/claim", headers=_auth(_rider_token(api, "r1")))
        second = api.post(f"/riders/orders/{order['id']}/claim", headers=_auth(_rider_token(api, "r2")))

        assert first.status_code == 200
        assert second.status_code == 403
        assert second.json()["error_code"] == "conflict"

    def test_claim_unknown_order(self, api: TestClient) -> None:
        _create_rider(api, _admin_token(api))

        response = api.post("/riders/orders/99/claim", headers=_auth(_rider_token(api)))

        assert response.status_code == 404
        assert response.json()["error_code"] == "not_found"

    def test_client_cannot_upload_proof(self, api: TestClient) -> None:
        _register_client(api)
        client = _client_token(api)
        order = _place_order(api, client)

        response = api.post(
            f"/orders/{order['id']}/proof/pickup",
            files={"file": ("p.jpg", JPEG, "image/jpeg")},
            headers=_auth(client),
        )

        assert response.status_code == 403

    def test_proof_file_removed_on_unexpected_error(
        self, api: TestClient, test_settings: Settings, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        admin = _admin_token(api)
        _register_client(api)
        order = _place_order(api, _client_token(api))
        monkeypatch.setattr(
            api.app.state.container.orders, "upload_proof", AsyncMock(side_effect=RuntimeError("boom"))
        )

        with pytest.raises(RuntimeError):
            api.post(
                f"/orders/{order['id']}/proof/pickup",
                files={"file": ("p.jpg", JPEG, "image/jpeg")},
                headers=_auth(admin),
            )

        uploads = Path(test_settings.storage.UPLOAD_DIR)
        assert list(uploads.glob("pickup_*")) == []

    def test_oversized_proof_rejected(self, api: TestClient, test_settings: Settings) -> None:
        admin = _admin_token(api)
        _register_client(api)
        order = _place_order(api, _client_token(api))
        too_big = JPEG + b"\x00" * test_settings.storage.MAX_UPLOAD_BYTES

        response = api.post(
            f"/orders/{order['id']}/proof/pickup",
            files={"file": ("p.jpg", too_big, "image/jpeg")},
            headers=_auth(admin),
        )

        assert response.status_code == 400
        assert response.json()["message"] == "File 'pickup' is too large"
        assert list(Path(test_settings.storage.UPLOAD_DIR).glob("pickup_*")) == []
        assert api.get("/admin/orders", headers=_auth(admin)).json()[0]["pickup_proof"] is None

    def test_unknown_proof_kind(self, api: TestClient) -> None:
        admin = _admin_token(api)
        _register_client(api)
        order = _place_order(api, _client_token(api))

        response = api.post(
            f"/orders/{order['id']}/proof/signature",
            files={"file": ("p.jpg", JPEG, "image/jpeg")},
            headers=_auth(admin),
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "validation_error"

    def test_missing_addresses(self, api: TestClient) -> None:
        _register_client(api)

        response = api.post("/clients/orders", json={"pickup": "A"}, headers=_auth(_client_token(api)))

        assert response.status_code == 400
        assert response.json()["message"] == "Pickup and dropoff are required"


class TestAdmin:
    """Тесты административных команд."""

    def test_manual_order_with_rider(self, api: TestClient) -> None:
        admin = _admin_token(api)
        rider = _create_rider(api, admin)

        response = api.post(
            "/admin/orders",
            json={"customer_name": "Maria", "pickup": "A", "dropoff": "B", "rider_id": rider["id"]},
            headers=_auth(admin),
        )

        assert response.status_code == 200
        assert response.json()["status"] == "Accepted"

    def test_assign_and_unassign(self, api: TestClient) -> None:
        admin = _admin_token(api)
        _register_client(api)
        order = _place_order(api, _client_token(api))
        rider = _create_rider(api, admin)

        assigned = api.put(
            f"/admin/orders/{order['id']}/assign", json={"rider_id": rider["id"]}, headers=_auth(admin)
        )
        released = api.put(f"/admin/orders/{order['id']}/assign", json={"rider_id": None}, headers=_auth(admin))

        assert assigned.json()["message"] == "Rider assigned"
        assert released.json()["message"] == "Rider unassigned"
        assert released.json()["order"]["status"] == "Pending"

    def test_credit(self, api: TestClient) -> None:
        admin = _admin_token(api)
        rider = _create_rider(api, admin)

        api.post(f"/admin/riders/{rider['id']}/credit", json={"amount": 10}, headers=_auth(admin))
        response = api.post(f"/admin/riders/{rider['id']}/credit", json={"amount": 5}, headers=_auth(admin))
        rejected = api.post(f"/admin/riders/{rider['id']}/credit", json={"amount": -5}, headers=_auth(admin))

        assert response.json() == {"rider_id": rider["id"], "credit": 15.0}
        assert rejected.status_code == 400
        riders = api.get("/admin/riders", headers=_auth(admin)).json()
        assert riders[0]["credit"] == 15.0

    @pytest.mark.parametrize("amount", [True, "7", None, "abc"])
    def test_credit_requires_number(self, api: TestClient, amount: Any) -> None:
        admin = _admin_token(api)
        rider = _create_rider(api, admin)

        response = api.post(
            f"/admin/riders/{rider['id']}/credit", json={"amount": amount}, headers=_auth(admin)
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "validation_error"
        riders = api.get("/admin/riders", headers=_auth(admin)).json()
        assert riders[0]["credit"] == 0.0

    @pytest.mark.parametrize("field,value", [("fee", True), ("distance", "7")])
    def test_manual_order_requires_numbers(self, api: TestClient, field: str, value: Any) -> None:
        admin = _admin_token(api)

        response = api.post(
            "/admin/orders",
            json={"customer_name": "Maria", "pickup": "A", "dropoff": "B", field: value},
            headers=_auth(admin),
        )

        assert response.status_code == 400
        assert api.get("/admin/orders", headers=_auth(admin)).json() == []

    def test_list_all_orders(self, api: TestClient) -> None:
        admin = _admin_token(api)
        _register_client(api)
        client = _client_token(api)
        _place_order(api, client)
        _place_order(api, client)

        orders = api.get("/admin/orders", headers=_auth(admin)).json()

        assert [o["id"] for o in orders] == [1, 2]
