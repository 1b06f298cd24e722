"""InventoryService — the single source of truth for "is this still sellable".

Two audiences:
  - Core callers (cart, purchase engine) use get_product / set_availability.
    These never commit: they run inside the caller's unit of work.
  - The catalog API (create, browse, mine, edit, unlist) owns its own transactions,
    committing on success and rolling back then re-raising on failure.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_cart.application.eviction import CartEvictionSweeper, get_cart_sweeper
from src.mp_common.cents import decimal_to_cents, validate_price_cents
from src.mp_common.cursor import cursor_decode, cursor_encode
from src.mp_common.errors import (
    AvailabilityConflictError,
    AvailabilityTransitionError,
    InvalidPriceError,
    ProductNotFoundError,
    ProductNotOwnedError,
    ProductUnavailableError,
)
from src.mp_common.id_generator import generate_id
from src.mp_common.storage import storage_errors
from src.mp_inventory.application.schemas import (
    CreateProductRequest,
    ProductListResponse,
    ProductResponse,
    UpdateProductRequest,
)
from src.mp_inventory.domain.models import Product, ProductEdit, ProductFilter
from src.mp_inventory.domain.repository import InventoryRepositoryProtocol
from src.mp_inventory.infrastructure.persistence import InventoryRepository

logger = logging.getLogger(__name__)


class InventoryService:
    def __init__(
        self,
        repo: InventoryRepositoryProtocol | None = None,
        sweeper: CartEvictionSweeper | None = None,
    ) -> None:
        self._repo: InventoryRepositoryProtocol = repo or InventoryRepository()
        self._sweeper = sweeper

    @property
    def sweeper(self) -> CartEvictionSweeper:
        return self._sweeper or get_cart_sweeper()

    # ------------------------------------------------------------------
    # Core contract
    # ------------------------------------------------------------------

    async def get_product(self, db: AsyncSession, product_id: str) -> Product:
        with storage_errors("get_product"):
            product = await self._repo.get_product(db, product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        return product

    async def set_availability(
        self,
        db: AsyncSession,
        product_id: str,
        available: bool,
        expected_version: int | None = None,
    ) -> Product:
        """Compare-and-set the availability flag.

        Only the true -> false transition exists. The write succeeds only if
        the row is still available (and at expected_version when given);
        otherwise the row is re-read to tell a missing product from a lost race.
        """
        if available:
            raise AvailabilityTransitionError(product_id)

        with storage_errors("set_availability"):
            updated = await self._repo.mark_unavailable(db, product_id, expected_version)
            if updated is not None:
                return updated
            current = await self._repo.get_product(db, product_id)
        if current is None:
            raise ProductNotFoundError(product_id)
        raise AvailabilityConflictError(product_id)

    # ------------------------------------------------------------------
    # Catalog boundary
    # ------------------------------------------------------------------

    async def create_product(
        self, db: AsyncSession, seller_id: str, req: CreateProductRequest
    ) -> ProductResponse:
        price_cents = decimal_to_cents(req.price)
        try:
            validate_price_cents(price_cents)
        except ValueError:
            raise InvalidPriceError(price_cents) from None

        draft = Product(
            id=generate_id(),
            title=req.title,
            description=req.description,
            price_cents=price_cents,
            category=req.category.value,
            condition=req.condition.value,
            seller_id=seller_id,
            is_available=True,
            version=0,
        )
        try:
            with storage_errors("create_product"):
                product = await self._repo.insert_product(db, draft)
                await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Product %s listed by seller %s", product.id, seller_id)
        return ProductResponse.from_domain(product)

    async def get_listing(self, db: AsyncSession, product_id: str) -> ProductResponse:
        return ProductResponse.from_domain(await self.get_product(db, product_id))

    async def list_available(
        self,
        db: AsyncSession,
        category: str | None,
        search: str | None,
        min_price_cents: int | None,
        max_price_cents: int | None,
        seller_id: str | None,
        cursor: str | None,
        limit: int,
        condition: str | None = None,
    ) -> ProductListResponse:
        cursor_ts, cursor_id = cursor_decode(cursor)
        # Fetch limit+1 to detect has_more without COUNT(*)
        product_filter = ProductFilter(
            category=category,
            condition=condition,
            search=search.strip() if search else None,
            min_price_cents=min_price_cents,
            max_price_cents=max_price_cents,
            seller_id=seller_id,
            cursor_ts=cursor_ts,
            cursor_id=cursor_id,
            limit=limit + 1,
        )
        with storage_errors("list_available"):
            products = await self._repo.list_available(db, product_filter)
        has_more = len(products) > limit
        page = products[:limit]

        last = page[-1] if page else None
        next_cursor = (
            cursor_encode(last.created_at, last.id)
            if has_more and last is not None and last.created_at is not None
            else None
        )
        return ProductListResponse(
            items=[ProductResponse.from_domain(p) for p in page],
            next_cursor=next_cursor,
            has_more=has_more,
        )

    async def list_by_seller(self, db: AsyncSession, seller_id: str) -> list[ProductResponse]:
        with storage_errors("list_by_seller"):
            products = await self._repo.list_by_seller(db, seller_id)
        return [ProductResponse.from_domain(p) for p in products]

    async def unlist_product(
        self, db: AsyncSession, seller_id: str, product_id: str
    ) -> ProductResponse:
        """Logical deletion by the owning seller; the listing can never be bought again."""
        try:
            product = await self.get_product(db, product_id)
            if not product.is_sold_by(seller_id):
                raise ProductNotOwnedError(product_id)
            updated = await self.set_availability(
                db, product_id, False, expected_version=product.version
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Product %s unlisted by seller %s", product_id, seller_id)
        self.sweeper.schedule(product_id)
        return ProductResponse.from_domain(updated)

    async def update_product(
        self, db: AsyncSession, seller_id: str, product_id: str, req: UpdateProductRequest
    ) -> ProductResponse:
        """Owner edit of a listed product; sold or unlisted products are frozen.

        Transactions already snapshot their price, so an edit never reaches
        the ledger. Availability is left alone.
        """
        price_cents = decimal_to_cents(req.price) if req.price is not None else None
        if price_cents is not None:
            try:
                validate_price_cents(price_cents)
            except ValueError:
                raise InvalidPriceError(price_cents) from None

        edit = ProductEdit(
            title=req.title,
            description=req.description,
            price_cents=price_cents,
            category=req.category.value if req.category else None,
            condition=req.condition.value if req.condition else None,
        )
        try:
            product = await self.get_product(db, product_id)
            if not product.is_sold_by(seller_id):
                raise ProductNotOwnedError(product_id)
            if not product.is_available:
                raise ProductUnavailableError(product_id)
            with storage_errors("update_product"):
                updated = await self._repo.update_details(db, seller_id, product_id, edit)
            if updated is None:
                # Sold between the read and the write
                raise ProductUnavailableError(product_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Product %s edited by seller %s", product_id, seller_id)
        return ProductResponse.from_domain(updated)
