"""CartService — per-user purchase intents.

The cart never caches price or availability and never touches the
availability flag. add_item checks the live product; list_items re-resolves
every entry against the products table and drops anything sold, unlisted or
missing, so a stale entry can never be presented as purchasable.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_cart.application.schemas import CartResponse
from src.mp_cart.domain.models import CartEntry, ResolvedCartItem
from src.mp_cart.domain.repository import CartRepositoryProtocol
from src.mp_cart.infrastructure.persistence import CartRepository
from src.mp_common.errors import (
    CartEntryNotFoundError,
    CartEntryNotOwnedError,
    InvalidQuantityError,
    ProductUnavailableError,
    SelfPurchaseInCartError,
)
from src.mp_common.id_generator import generate_id
from src.mp_common.storage import storage_errors
from src.mp_inventory.application.service import InventoryService

logger = logging.getLogger(__name__)


class CartService:
    def __init__(
        self,
        repo: CartRepositoryProtocol | None = None,
        inventory: InventoryService | None = None,
    ) -> None:
        self._repo: CartRepositoryProtocol = repo or CartRepository()
        self._inventory = inventory or InventoryService()

    async def add_item(
        self, db: AsyncSession, user_id: str, product_id: str, quantity: int = 1
    ) -> CartEntry:
        if quantity < 1:
            raise InvalidQuantityError(quantity)
        try:
            product = await self._inventory.get_product(db, product_id)
            if product.is_sold_by(user_id):
                raise SelfPurchaseInCartError()
            if not product.is_available:
                raise ProductUnavailableError(product_id)
            with storage_errors("add_item"):
                entry = await self._repo.upsert_entry(
                    db, generate_id(), user_id, product_id, quantity
                )
                await db.commit()
        except Exception:
            await db.rollback()
            raise
        return entry

    async def remove_item(self, db: AsyncSession, user_id: str, entry_id: str) -> None:
        try:
            await self._require_owned_entry(db, user_id, entry_id)
            with storage_errors("remove_item"):
                deleted = await self._repo.delete_entry(db, user_id, entry_id)
                await db.commit()
        except Exception:
            await db.rollback()
            raise
        if not deleted:
            # Removed concurrently (eviction sweep or another request)
            raise CartEntryNotFoundError(entry_id)

    async def update_quantity(
        self, db: AsyncSession, user_id: str, entry_id: str, quantity: int
    ) -> CartEntry | None:
        """Set an entry's quantity; quantity <= 0 removes it and returns None."""
        if quantity <= 0:
            await self.remove_item(db, user_id, entry_id)
            return None
        try:
            await self._require_owned_entry(db, user_id, entry_id)
            with storage_errors("update_quantity"):
                entry = await self._repo.set_quantity(db, user_id, entry_id, quantity)
                await db.commit()
        except Exception:
            await db.rollback()
            raise
        if entry is None:
            raise CartEntryNotFoundError(entry_id)
        return entry

    async def list_items(self, db: AsyncSession, user_id: str) -> list[ResolvedCartItem]:
        with storage_errors("list_items"):
            rows = await self._repo.list_with_products(db, user_id)

        live: list[ResolvedCartItem] = []
        stale_ids: list[str] = []
        for entry, product in rows:
            if product is None or not product.is_available:
                stale_ids.append(entry.id)
                continue
            live.append(ResolvedCartItem(entry=entry, product=product))

        if stale_ids:
            await self._drop_stale(db, user_id, stale_ids)
        return live

    async def get_cart(self, db: AsyncSession, user_id: str) -> CartResponse:
        return CartResponse.from_items(await self.list_items(db, user_id))

    async def clear(self, db: AsyncSession, user_id: str) -> int:
        try:
            with storage_errors("clear_cart"):
                removed = await self._repo.clear(db, user_id)
                await db.commit()
        except Exception:
            await db.rollback()
            raise
        return removed

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _require_owned_entry(
        self, db: AsyncSession, user_id: str, entry_id: str
    ) -> CartEntry:
        with storage_errors("get_cart_entry"):
            entry = await self._repo.get_entry(db, entry_id)
        if entry is None:
            raise CartEntryNotFoundError(entry_id)
        if entry.user_id != user_id:
            raise CartEntryNotOwnedError(entry_id)
        return entry

    async def _drop_stale(self, db: AsyncSession, user_id: str, entry_ids: list[str]) -> None:
        """Lazy cleanup. Best effort: the listing is already filtered either way."""
        try:
            removed = await self._repo.delete_entries(db, user_id, entry_ids)
            await db.commit()
        except Exception:
            await db.rollback()
            logger.warning(
                "Lazy cleanup of %d stale cart entries failed for user %s",
                len(entry_ids),
                user_id,
                exc_info=True,
            )
            return
        logger.debug("Dropped %d stale cart entries for user %s", removed, user_id)
