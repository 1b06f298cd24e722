"""HTTP-level tests: routers, auth dependency, envelope and error mapping.

Module-level services are swapped for ones backed by in-memory stores and
the DB session dependency is overridden, so no database is needed.
"""

from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock

import pytest
from httpx import AsyncClient

from src.main import app
from src.mp_cart.application.eviction import CartEvictionSweeper
from src.mp_cart.application.service import CartService
from src.mp_common.database import get_db_session
from src.mp_gateway.auth.jwt_handler import create_access_token
from src.mp_inventory.application.service import InventoryService
from src.mp_ledger.application.service import LedgerService
from src.mp_purchase.application.service import PurchaseApplicationService
from src.mp_purchase.engine.engine import PurchaseEngine
from tests.fakes import (
    InMemoryCartRepository,
    InMemoryInventoryRepository,
    InMemoryLedgerRepository,
    InMemoryTransactionRepository,
    SessionFactory,
    make_product,
)


def _auth(user_id: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}


async def _fake_db() -> AsyncGenerator[AsyncMock, None]:
    yield AsyncMock()


@pytest.fixture
def store(monkeypatch: pytest.MonkeyPatch) -> InMemoryInventoryRepository:
    inventory_repo = InMemoryInventoryRepository(
        make_product("p-1", seller_id="seller-1", price_cents=1000),
        make_product(
            "p-2", seller_id="seller-1", price_cents=2500, category="books", condition="excellent"
        ),
    )
    cart_repo = InMemoryCartRepository(inventory_repo)
    sessions = SessionFactory()
    sweeper = CartEvictionSweeper(session_factory=sessions, repo=cart_repo)
    inventory = InventoryService(repo=inventory_repo, sweeper=sweeper)
    ledger = LedgerService(repo=InMemoryLedgerRepository())
    engine = PurchaseEngine(
        inventory=inventory,
        transactions=InMemoryTransactionRepository(),
        ledger=ledger,
        sweeper=sweeper,
        session_factory=sessions,
    )

    monkeypatch.setattr("src.mp_inventory.api.router._service", inventory)
    monkeypatch.setattr("src.mp_cart.api.router._service", CartService(cart_repo, inventory))
    monkeypatch.setattr(
        "src.mp_purchase.api.router._service", PurchaseApplicationService(engine)
    )
    monkeypatch.setattr("src.mp_ledger.api.router._service", ledger)
    app.dependency_overrides[get_db_session] = _fake_db
    return inventory_repo


class TestPublicCatalog:
    async def test_health(self, client: AsyncClient) -> None:
        resp = await client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"

    async def test_categories(self, client: AsyncClient) -> None:
        resp = await client.get("/api/v1/categories")
        body = resp.json()
        assert resp.status_code == 200
        assert body["code"] == 0
        assert {"value": "books", "label": "Books & Media"} in body["data"]

    async def test_browse_by_category(self, client: AsyncClient, store: object) -> None:
        resp = await client.get("/api/v1/products", params={"category": "books"})
        body = resp.json()
        assert resp.status_code == 200
        assert [p["id"] for p in body["data"]["items"]] == ["p-2"]
        assert body["data"]["items"][0]["price_display"] == "$25.00"

    async def test_browse_by_condition(self, client: AsyncClient, store: object) -> None:
        resp = await client.get("/api/v1/products", params={"condition": "excellent"})
        assert [p["id"] for p in resp.json()["data"]["items"]] == ["p-2"]

    async def test_unknown_category_is_422(self, client: AsyncClient, store: object) -> None:
        resp = await client.get("/api/v1/products", params={"category": "spaceships"})
        assert resp.status_code == 422

    async def test_product_detail(self, client: AsyncClient, store: object) -> None:
        resp = await client.get("/api/v1/products/p-1")
        assert resp.status_code == 200
        assert resp.json()["data"]["is_available"] is True

    async def test_missing_product_envelope(self, client: AsyncClient, store: object) -> None:
        resp = await client.get("/api/v1/products/ghost")
        body = resp.json()
        assert resp.status_code == 404
        assert body["code"] == 2001
        assert body["data"] is None
        assert body["request_id"] == resp.headers["X-Request-ID"]


class TestSellerEndpoints:
    async def test_create_and_list_mine(self, client: AsyncClient, store: object) -> None:
        resp = await client.post(
            "/api/v1/products",
            json={"title": "Desk", "price": "45.50", "category": "home-garden"},
            headers=_auth("seller-9"),
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["price_cents"] == 4550

        mine = await client.get("/api/v1/products/mine", headers=_auth("seller-9"))
        assert [p["title"] for p in mine.json()["data"]] == ["Desk"]

    async def test_negative_price_rejected(self, client: AsyncClient, store: object) -> None:
        resp = await client.post(
            "/api/v1/products",
            json={"title": "Desk", "price": "-1", "category": "other"},
            headers=_auth("seller-9"),
        )
        assert resp.status_code == 422

    async def test_unlist_by_non_owner_is_forbidden(self, client: AsyncClient, store: object) -> None:
        resp = await client.post("/api/v1/products/p-1/unlist", headers=_auth("buyer-1"))
        assert resp.status_code == 403
        assert resp.json()["code"] == 2005

    async def test_owner_edits_listing(self, client: AsyncClient, store: object) -> None:
        resp = await client.put(
            "/api/v1/products/p-1",
            json={"price": "12.00", "condition": "fair"},
            headers=_auth("seller-1"),
        )
        data = resp.json()["data"]
        assert resp.status_code == 200
        assert data["price_cents"] == 1200
        assert data["condition"] == "fair"
        assert data["is_available"] is True

    async def test_edit_by_non_owner_is_forbidden(self, client: AsyncClient, store: object) -> None:
        resp = await client.put(
            "/api/v1/products/p-1", json={"title": "Mine"}, headers=_auth("buyer-1")
        )
        assert resp.status_code == 403
        assert resp.json()["code"] == 2005

    async def test_empty_edit_is_422(self, client: AsyncClient, store: object) -> None:
        resp = await client.put("/api/v1/products/p-1", json={}, headers=_auth("seller-1"))
        assert resp.status_code == 422


class TestAuth:
    async def test_cart_requires_token(self, client: AsyncClient, store: object) -> None:
        resp = await client.get("/api/v1/cart")
        assert resp.status_code == 401

    async def test_garbage_token(self, client: AsyncClient, store: object) -> None:
        resp = await client.get("/api/v1/cart", headers={"Authorization": "Bearer nope"})
        assert resp.status_code == 401


class TestCartEndpoints:
    async def test_add_list_and_remove(self, client: AsyncClient, store: object) -> None:
        headers = _auth("buyer-1")
        added = await client.post("/api/v1/cart/items", json={"product_id": "p-1"}, headers=headers)
        assert added.status_code == 200
        entry_id = added.json()["data"]["entry"]["id"]

        cart = (await client.get("/api/v1/cart", headers=headers)).json()["data"]
        assert cart["item_count"] == 1
        assert cart["subtotal_cents"] == 1000

        removed = await client.delete(f"/api/v1/cart/items/{entry_id}", headers=headers)
        assert removed.status_code == 200
        assert removed.json()["data"]["removed"] is True

    async def test_patch_zero_removes(self, client: AsyncClient, store: object) -> None:
        headers = _auth("buyer-1")
        added = await client.post("/api/v1/cart/items", json={"product_id": "p-1"}, headers=headers)
        entry_id = added.json()["data"]["entry"]["id"]

        resp = await client.patch(
            f"/api/v1/cart/items/{entry_id}", json={"quantity": 0}, headers=headers
        )
        assert resp.json()["data"] == {"entry": None, "removed": True}

    async def test_other_users_entry_is_404(self, client: AsyncClient, store: object) -> None:
        added = await client.post(
            "/api/v1/cart/items", json={"product_id": "p-1"}, headers=_auth("buyer-1")
        )
        entry_id = added.json()["data"]["entry"]["id"]

        resp = await client.delete(f"/api/v1/cart/items/{entry_id}", headers=_auth("buyer-2"))
        assert resp.status_code == 404
        assert resp.json()["code"] == 3002

    async def test_self_add_rejected(self, client: AsyncClient, store: object) -> None:
        resp = await client.post(
            "/api/v1/cart/items", json={"product_id": "p-1"}, headers=_auth("seller-1")
        )
        assert resp.status_code == 422
        assert resp.json()["code"] == 3004

    async def test_clear(self, client: AsyncClient, store: object) -> None:
        headers = _auth("buyer-1")
        await client.post("/api/v1/cart/items", json={"product_id": "p-1"}, headers=headers)
        await client.post("/api/v1/cart/items", json={"product_id": "p-2"}, headers=headers)

        first = await client.delete("/api/v1/cart", headers=headers)
        second = await client.delete("/api/v1/cart", headers=headers)
        assert first.json()["data"]["removed_count"] == 2
        assert second.json()["data"]["removed_count"] == 0


class TestPurchaseEndpoints:
    async def test_buy_then_sold_out(self, client: AsyncClient, store: object) -> None:
        bought = await client.post(
            "/api/v1/purchases", json={"product_id": "p-1"}, headers=_auth("buyer-1")
        )
        assert bought.status_code == 200
        tx = bought.json()["data"]
        assert tx["status"] == "completed"
        assert tx["price_display"] == "$10.00"

        again = await client.post(
            "/api/v1/purchases", json={"product_id": "p-1"}, headers=_auth("buyer-2")
        )
        assert again.status_code == 409
        assert again.json()["code"] == 2002

        detail = await client.get(f"/api/v1/purchases/{tx['id']}", headers=_auth("seller-1"))
        assert detail.json()["data"]["id"] == tx["id"]

        hidden = await client.get(f"/api/v1/purchases/{tx['id']}", headers=_auth("buyer-2"))
        assert hidden.status_code == 404

    async def test_self_purchase(self, client: AsyncClient, store: object) -> None:
        resp = await client.post(
            "/api/v1/purchases", json={"product_id": "p-1"}, headers=_auth("seller-1")
        )
        assert resp.status_code == 422
        assert resp.json()["code"] == 4001

    async def test_ledger_views(self, client: AsyncClient, store: object) -> None:
        await client.post("/api/v1/purchases", json={"product_id": "p-2"}, headers=_auth("buyer-1"))

        purchases = await client.get("/api/v1/ledger/purchases", headers=_auth("buyer-1"))
        sales = await client.get("/api/v1/ledger/sales", headers=_auth("seller-1"))

        assert [e["product_id"] for e in purchases.json()["data"]["items"]] == ["p-2"]
        assert [e["buyer_id"] for e in sales.json()["data"]["items"]] == ["buyer-1"]
