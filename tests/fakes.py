"""In-memory stand-ins for the PostgreSQL repositories.

Each async method yields to the event loop once before touching state, so
coroutines started together with asyncio.gather interleave the way
concurrent requests do against a real database. mark_unavailable keeps the
compare-and-set semantics of the UPDATE ... WHERE is_available AND version
statement.
"""

import asyncio
from dataclasses import replace
from datetime import datetime, timedelta
from unittest.mock import AsyncMock

from src.mp_cart.domain.models import CartEntry
from src.mp_common.datetime_utils import utc_now
from src.mp_common.errors import TransactionStateError
from src.mp_inventory.domain.models import Product, ProductEdit, ProductFilter
from src.mp_ledger.domain.models import LedgerEntry
from src.mp_purchase.domain.models import Transaction


def make_product(
    product_id: str = "p-1",
    seller_id: str = "seller-1",
    price_cents: int = 1000,
    is_available: bool = True,
    version: int = 0,
    category: str = "electronics",
    title: str = "Vintage camera",
    condition: str = "good",
) -> Product:
    now = utc_now()
    return Product(
        id=product_id,
        title=title,
        description="",
        price_cents=price_cents,
        category=category,
        condition=condition,
        seller_id=seller_id,
        is_available=is_available,
        version=version,
        created_at=now,
        updated_at=now,
    )


class FakeSession:
    """Async-context-manager session whose commit/rollback are observable mocks."""

    def __init__(self) -> None:
        self.commit = AsyncMock()
        self.rollback = AsyncMock()
        self.close = AsyncMock()

    async def __aenter__(self) -> "FakeSession":
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()


class SessionFactory:
    def __init__(self) -> None:
        self.sessions: list[FakeSession] = []

    def __call__(self) -> FakeSession:
        session = FakeSession()
        self.sessions.append(session)
        return session


class InMemoryInventoryRepository:
    def __init__(self, *products: Product) -> None:
        self.products: dict[str, Product] = {p.id: p for p in products}

    async def get_product(self, db: object, product_id: str) -> Product | None:
        await asyncio.sleep(0)
        return self.products.get(product_id)

    async def insert_product(self, db: object, product: Product) -> Product:
        await asyncio.sleep(0)
        stored = replace(product, created_at=utc_now(), updated_at=utc_now())
        self.products[stored.id] = stored
        return stored

    async def mark_unavailable(
        self, db: object, product_id: str, expected_version: int | None
    ) -> Product | None:
        await asyncio.sleep(0)
        current = self.products.get(product_id)
        if current is None or not current.is_available:
            return None
        if expected_version is not None and current.version != expected_version:
            return None
        updated = replace(current, is_available=False, version=current.version + 1)
        self.products[product_id] = updated
        return updated

    async def list_available(self, db: object, product_filter: ProductFilter) -> list[Product]:
        await asyncio.sleep(0)
        rows = [p for p in self.products.values() if p.is_available]
        if product_filter.category:
            rows = [p for p in rows if p.category == product_filter.category]
        if product_filter.condition:
            rows = [p for p in rows if p.condition == product_filter.condition]
        rows.sort(key=lambda p: (p.created_at, p.id), reverse=True)
        return rows[: product_filter.limit]

    async def list_by_seller(self, db: object, seller_id: str) -> list[Product]:
        await asyncio.sleep(0)
        return [p for p in self.products.values() if p.seller_id == seller_id]

    async def update_details(
        self, db: object, seller_id: str, product_id: str, edit: ProductEdit
    ) -> Product | None:
        await asyncio.sleep(0)
        current = self.products.get(product_id)
        if current is None or current.seller_id != seller_id or not current.is_available:
            return None
        changes = {k: v for k, v in vars(edit).items() if v is not None}
        updated = replace(current, **changes, version=current.version + 1, updated_at=utc_now())
        self.products[product_id] = updated
        return updated


class InMemoryCartRepository:
    def __init__(self, inventory: InMemoryInventoryRepository) -> None:
        self._inventory = inventory
        self.entries: dict[str, CartEntry] = {}
        self._tick = 0

    def _added_at(self) -> datetime:
        # Strictly increasing so newest-first ordering is deterministic
        self._tick += 1
        return utc_now() + timedelta(microseconds=self._tick)

    async def upsert_entry(
        self, db: object, entry_id: str, user_id: str, product_id: str, quantity: int
    ) -> CartEntry:
        await asyncio.sleep(0)
        for existing in self.entries.values():
            if existing.user_id == user_id and existing.product_id == product_id:
                merged = replace(existing, quantity=existing.quantity + quantity)
                self.entries[existing.id] = merged
                return merged
        entry = CartEntry(
            id=entry_id,
            user_id=user_id,
            product_id=product_id,
            quantity=quantity,
            added_at=self._added_at(),
        )
        self.entries[entry_id] = entry
        return entry

    async def get_entry(self, db: object, entry_id: str) -> CartEntry | None:
        await asyncio.sleep(0)
        return self.entries.get(entry_id)

    async def delete_entry(self, db: object, user_id: str, entry_id: str) -> bool:
        await asyncio.sleep(0)
        entry = self.entries.get(entry_id)
        if entry is None or entry.user_id != user_id:
            return False
        del self.entries[entry_id]
        return True

    async def set_quantity(
        self, db: object, user_id: str, entry_id: str, quantity: int
    ) -> CartEntry | None:
        await asyncio.sleep(0)
        entry = self.entries.get(entry_id)
        if entry is None or entry.user_id != user_id:
            return None
        updated = replace(entry, quantity=quantity)
        self.entries[entry_id] = updated
        return updated

    async def list_with_products(
        self, db: object, user_id: str
    ) -> list[tuple[CartEntry, Product | None]]:
        await asyncio.sleep(0)
        mine = sorted(
            (e for e in self.entries.values() if e.user_id == user_id),
            key=lambda e: e.added_at,
            reverse=True,
        )
        return [(e, self._inventory.products.get(e.product_id)) for e in mine]

    async def delete_entries(self, db: object, user_id: str, entry_ids: list[str]) -> int:
        await asyncio.sleep(0)
        doomed = [i for i in entry_ids if i in self.entries and self.entries[i].user_id == user_id]
        for entry_id in doomed:
            del self.entries[entry_id]
        return len(doomed)

    async def clear(self, db: object, user_id: str) -> int:
        await asyncio.sleep(0)
        doomed = [i for i, e in self.entries.items() if e.user_id == user_id]
        for entry_id in doomed:
            del self.entries[entry_id]
        return len(doomed)

    async def evict_product(self, db: object, product_id: str) -> int:
        await asyncio.sleep(0)
        doomed = [i for i, e in self.entries.items() if e.product_id == product_id]
        for entry_id in doomed:
            del self.entries[entry_id]
        return len(doomed)

    def products_in_cart(self, user_id: str) -> set[str]:
        return {e.product_id for e in self.entries.values() if e.user_id == user_id}


class InMemoryTransactionRepository:
    def __init__(self) -> None:
        self.rows: dict[str, Transaction] = {}

    async def insert_pending(self, db: object, transaction: Transaction) -> Transaction:
        await asyncio.sleep(0)
        self.rows[transaction.id] = transaction
        return transaction

    async def finalize(self, db: object, transaction: Transaction) -> Transaction:
        await asyncio.sleep(0)
        current = self.rows.get(transaction.id)
        if current is None or current.is_terminal:
            raise TransactionStateError(transaction.id, current.status if current else "missing")
        self.rows[transaction.id] = transaction
        return transaction

    async def get_by_id(self, db: object, transaction_id: str) -> Transaction | None:
        await asyncio.sleep(0)
        return self.rows.get(transaction_id)


class InMemoryLedgerRepository:
    """Append-only: no update or delete methods."""

    def __init__(self) -> None:
        self._entries: list[LedgerEntry] = []

    @property
    def entries(self) -> tuple[LedgerEntry, ...]:
        return tuple(self._entries)

    async def append(self, db: object, transaction: Transaction) -> LedgerEntry:
        await asyncio.sleep(0)
        if any(e.transaction_id == transaction.id for e in self._entries):
            raise ValueError(f"transaction {transaction.id} already recorded")
        entry = LedgerEntry(
            id=len(self._entries) + 1,
            transaction_id=transaction.id,
            buyer_id=transaction.buyer_id,
            seller_id=transaction.seller_id,
            product_id=transaction.product_id,
            price_cents=transaction.price_cents,
            status=transaction.status,
            failure_reason=transaction.failure_reason,
            created_at=transaction.created_at or utc_now(),
        )
        self._entries.append(entry)
        return entry

    async def list_by_buyer(
        self, db: object, buyer_id: str, cursor_ts: str | None, cursor_id: int | None, limit: int
    ) -> list[LedgerEntry]:
        await asyncio.sleep(0)
        rows = [e for e in self._entries if e.buyer_id == buyer_id]
        return sorted(rows, key=lambda e: (e.created_at, e.id), reverse=True)[:limit]

    async def list_sales_by_seller(
        self, db: object, seller_id: str, cursor_ts: str | None, cursor_id: int | None, limit: int
    ) -> list[LedgerEntry]:
        await asyncio.sleep(0)
        rows = [e for e in self._entries if e.seller_id == seller_id and e.status == "completed"]
        return sorted(rows, key=lambda e: (e.created_at, e.id), reverse=True)[:limit]
