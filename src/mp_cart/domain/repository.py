"""CartRepository Protocol — interface contract for persistence layer."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_cart.domain.models import CartEntry
from src.mp_inventory.domain.models import Product


class CartRepositoryProtocol(Protocol):
    async def upsert_entry(
        self, db: AsyncSession, entry_id: str, user_id: str, product_id: str, quantity: int
    ) -> CartEntry: ...

    async def get_entry(self, db: AsyncSession, entry_id: str) -> CartEntry | None: ...

    async def delete_entry(self, db: AsyncSession, user_id: str, entry_id: str) -> bool: ...

    async def set_quantity(
        self, db: AsyncSession, user_id: str, entry_id: str, quantity: int
    ) -> CartEntry | None: ...

    async def list_with_products(
        self, db: AsyncSession, user_id: str
    ) -> list[tuple[CartEntry, Product | None]]: ...

    async def delete_entries(self, db: AsyncSession, user_id: str, entry_ids: list[str]) -> int: ...

    async def clear(self, db: AsyncSession, user_id: str) -> int: ...

    async def evict_product(self, db: AsyncSession, product_id: str) -> int: ...
