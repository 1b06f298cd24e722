"""CartRepository — raw SQL persistence for cart_items.

add-to-cart is a single INSERT ... ON CONFLICT (user_id, product_id) DO UPDATE,
so two concurrent adds of the same product by the same user always land on
one row with the summed quantity; the unique constraint makes a duplicate row
impossible.

Every mutating statement that acts on behalf of a user also filters on
user_id, so a cross-user delete/update matches 0 rows even if the caller
skipped the ownership check.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_cart.domain.models import CartEntry
from src.mp_inventory.domain.models import Product

# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------

_ENTRY_COLUMNS = "id, user_id, product_id, quantity, added_at"

_UPSERT_ENTRY_SQL = text(f"""
    INSERT INTO cart_items (id, user_id, product_id, quantity)
    VALUES (:id, :user_id, :product_id, :quantity)
    ON CONFLICT (user_id, product_id) DO UPDATE
        SET quantity = cart_items.quantity + EXCLUDED.quantity
    RETURNING {_ENTRY_COLUMNS}
""")

_GET_ENTRY_SQL = text(f"""
    SELECT {_ENTRY_COLUMNS}
    FROM cart_items
    WHERE id = :id
""")

_DELETE_ENTRY_SQL = text("""
    DELETE FROM cart_items
    WHERE id = :id AND user_id = :user_id
    RETURNING id
""")

_SET_QUANTITY_SQL = text(f"""
    UPDATE cart_items
    SET quantity = :quantity
    WHERE id = :id AND user_id = :user_id
    RETURNING {_ENTRY_COLUMNS}
""")

_LIST_WITH_PRODUCTS_SQL = text("""
    SELECT ci.id AS entry_id, ci.user_id, ci.product_id, ci.quantity, ci.added_at,
           p.id AS p_id, p.title AS p_title, p.description AS p_description,
           p.price_cents AS p_price_cents, p.category AS p_category,
           p.condition AS p_condition,
           p.seller_id AS p_seller_id, p.is_available AS p_is_available,
           p.version AS p_version, p.created_at AS p_created_at,
           p.updated_at AS p_updated_at
    FROM cart_items ci
    LEFT JOIN products p ON p.id = ci.product_id
    WHERE ci.user_id = :user_id
    ORDER BY ci.added_at DESC, ci.id DESC
""")

_DELETE_ENTRIES_SQL = text("""
    DELETE FROM cart_items
    WHERE user_id = :user_id AND id = ANY(:ids)
""")

_CLEAR_SQL = text("""
    DELETE FROM cart_items
    WHERE user_id = :user_id
""")

_EVICT_PRODUCT_SQL = text("""
    DELETE FROM cart_items
    WHERE product_id = :product_id
""")

# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _row_to_entry(row: object) -> CartEntry:
    return CartEntry(
        id=row.id,  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        product_id=row.product_id,  # type: ignore[attr-defined]
        quantity=row.quantity,  # type: ignore[attr-defined]
        added_at=row.added_at,  # type: ignore[attr-defined]
    )


def _row_to_joined(row: object) -> tuple[CartEntry, Product | None]:
    entry = CartEntry(
        id=row.entry_id,  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        product_id=row.product_id,  # type: ignore[attr-defined]
        quantity=row.quantity,  # type: ignore[attr-defined]
        added_at=row.added_at,  # type: ignore[attr-defined]
    )
    if row.p_id is None:  # type: ignore[attr-defined]
        return entry, None
    product = Product(
        id=row.p_id,  # type: ignore[attr-defined]
        title=row.p_title,  # type: ignore[attr-defined]
        description=row.p_description or "",  # type: ignore[attr-defined]
        price_cents=row.p_price_cents,  # type: ignore[attr-defined]
        category=row.p_category,  # type: ignore[attr-defined]
        condition=row.p_condition,  # type: ignore[attr-defined]
        seller_id=row.p_seller_id,  # type: ignore[attr-defined]
        is_available=row.p_is_available,  # type: ignore[attr-defined]
        version=row.p_version,  # type: ignore[attr-defined]
        created_at=row.p_created_at,  # type: ignore[attr-defined]
        updated_at=row.p_updated_at,  # type: ignore[attr-defined]
    )
    return entry, product


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class CartRepository:
    """Concrete implementation of CartRepositoryProtocol using raw SQL."""

    async def upsert_entry(
        self, db: AsyncSession, entry_id: str, user_id: str, product_id: str, quantity: int
    ) -> CartEntry:
        result = await db.execute(
            _UPSERT_ENTRY_SQL,
            {"id": entry_id, "user_id": user_id, "product_id": product_id, "quantity": quantity},
        )
        return _row_to_entry(result.fetchone())

    async def get_entry(self, db: AsyncSession, entry_id: str) -> CartEntry | None:
        result = await db.execute(_GET_ENTRY_SQL, {"id": entry_id})
        row = result.fetchone()
        return _row_to_entry(row) if row else None

    async def delete_entry(self, db: AsyncSession, user_id: str, entry_id: str) -> bool:
        result = await db.execute(_DELETE_ENTRY_SQL, {"id": entry_id, "user_id": user_id})
        return result.fetchone() is not None

    async def set_quantity(
        self, db: AsyncSession, user_id: str, entry_id: str, quantity: int
    ) -> CartEntry | None:
        result = await db.execute(
            _SET_QUANTITY_SQL, {"id": entry_id, "user_id": user_id, "quantity": quantity}
        )
        row = result.fetchone()
        return _row_to_entry(row) if row else None

    async def list_with_products(
        self, db: AsyncSession, user_id: str
    ) -> list[tuple[CartEntry, Product | None]]:
        result = await db.execute(_LIST_WITH_PRODUCTS_SQL, {"user_id": user_id})
        return [_row_to_joined(row) for row in result.fetchall()]

    async def delete_entries(self, db: AsyncSession, user_id: str, entry_ids: list[str]) -> int:
        if not entry_ids:
            return 0
        result = await db.execute(_DELETE_ENTRIES_SQL, {"user_id": user_id, "ids": entry_ids})
        return int(result.rowcount or 0)  # type: ignore[attr-defined]

    async def clear(self, db: AsyncSession, user_id: str) -> int:
        result = await db.execute(_CLEAR_SQL, {"user_id": user_id})
        return int(result.rowcount or 0)  # type: ignore[attr-defined]

    async def evict_product(self, db: AsyncSession, product_id: str) -> int:
        result = await db.execute(_EVICT_PRODUCT_SQL, {"product_id": product_id})
        return int(result.rowcount or 0)  # type: ignore[attr-defined]
