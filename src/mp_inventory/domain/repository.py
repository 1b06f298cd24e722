"""Repository Protocol — dependency inversion for testability.

Unit tests inject a mock that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_inventory.domain.models import Product, ProductEdit, ProductFilter


class InventoryRepositoryProtocol(Protocol):
    async def get_product(self, db: AsyncSession, product_id: str) -> Product | None: ...

    async def insert_product(self, db: AsyncSession, product: Product) -> Product: ...

    async def mark_unavailable(
        self, db: AsyncSession, product_id: str, expected_version: int | None
    ) -> Product | None: ...

    async def list_available(
        self, db: AsyncSession, product_filter: ProductFilter
    ) -> list[Product]: ...

    async def list_by_seller(self, db: AsyncSession, seller_id: str) -> list[Product]: ...

    async def update_details(
        self, db: AsyncSession, seller_id: str, product_id: str, edit: ProductEdit
    ) -> Product | None: ...
