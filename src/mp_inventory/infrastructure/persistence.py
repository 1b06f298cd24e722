"""InventoryRepository — raw SQL persistence for products.

The availability flag has exactly one writer: `mark_unavailable`, a single
conditional UPDATE ... RETURNING. The WHERE clause is the compare-and-set:
the row only changes if it is still available (and, when given, still at the
version the caller read). 0 rows returned means the caller lost.

update_details never touches is_available but does bump version, so a
purchase that read the listing before an edit loses its CAS instead of buying
at a price the seller has since changed.

asyncpg NULL parameter pattern: CAST(:param AS TYPE) IS NULL required for None values.
Transaction ownership: the caller commits.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.datetime_utils import parse_utc
from src.mp_inventory.domain.models import Product, ProductEdit, ProductFilter

# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------

_COLUMNS = """
    id, title, description, price_cents, category, condition, seller_id,
    is_available, version, created_at, updated_at
"""

_GET_PRODUCT_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM products
    WHERE id = :id
""")

_INSERT_PRODUCT_SQL = text(f"""
    INSERT INTO products (id, title, description, price_cents, category, condition,
                          seller_id, is_available, version)
    VALUES (:id, :title, :description, :price_cents, :category, :condition,
            :seller_id, TRUE, 0)
    RETURNING {_COLUMNS}
""")

_MARK_UNAVAILABLE_SQL = text(f"""
    UPDATE products
    SET is_available = FALSE,
        version = version + 1,
        updated_at = NOW()
    WHERE id = :id
      AND is_available = TRUE
      AND (CAST(:expected_version AS INTEGER) IS NULL
           OR version = CAST(:expected_version AS INTEGER))
    RETURNING {_COLUMNS}
""")

_LIST_AVAILABLE_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM products
    WHERE is_available = TRUE
      AND (CAST(:category AS TEXT) IS NULL OR category = CAST(:category AS TEXT))
      AND (CAST(:condition AS TEXT) IS NULL OR condition = CAST(:condition AS TEXT))
      AND (CAST(:pattern AS TEXT) IS NULL
           OR title ILIKE CAST(:pattern AS TEXT) ESCAPE '\\'
           OR description ILIKE CAST(:pattern AS TEXT) ESCAPE '\\')
      AND (CAST(:min_price AS BIGINT) IS NULL OR price_cents >= CAST(:min_price AS BIGINT))
      AND (CAST(:max_price AS BIGINT) IS NULL OR price_cents <= CAST(:max_price AS BIGINT))
      AND (CAST(:seller_id AS TEXT) IS NULL OR seller_id = CAST(:seller_id AS TEXT))
      AND (
          CAST(:cursor_ts AS TIMESTAMPTZ) IS NULL
          OR created_at < CAST(:cursor_ts AS TIMESTAMPTZ)
          OR (
              created_at = CAST(:cursor_ts AS TIMESTAMPTZ)
              AND id < CAST(:cursor_id AS TEXT)
          )
      )
    ORDER BY created_at DESC, id DESC
    LIMIT :limit
""")

_LIST_BY_SELLER_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM products
    WHERE seller_id = :seller_id
    ORDER BY created_at DESC, id DESC
""")

# Only the owner, only while still listed
_UPDATE_DETAILS_SQL = text(f"""
    UPDATE products
    SET title = COALESCE(CAST(:title AS TEXT), title),
        description = COALESCE(CAST(:description AS TEXT), description),
        price_cents = COALESCE(CAST(:price_cents AS BIGINT), price_cents),
        category = COALESCE(CAST(:category AS TEXT), category),
        condition = COALESCE(CAST(:condition AS TEXT), condition),
        version = version + 1
    WHERE id = :id
      AND seller_id = :seller_id
      AND is_available = TRUE
    RETURNING {_COLUMNS}
""")

# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_product(row: object) -> Product:
    return Product(
        id=row.id,  # type: ignore[attr-defined]
        title=row.title,  # type: ignore[attr-defined]
        description=row.description or "",  # type: ignore[attr-defined]
        price_cents=row.price_cents,  # type: ignore[attr-defined]
        category=row.category,  # type: ignore[attr-defined]
        condition=row.condition,  # type: ignore[attr-defined]
        seller_id=row.seller_id,  # type: ignore[attr-defined]
        is_available=row.is_available,  # type: ignore[attr-defined]
        version=row.version,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


def _like_pattern(search: str | None) -> str | None:
    """'50% off' -> '%50\\% off%' (LIKE wildcards in user input are literal)."""
    if not search:
        return None
    escaped = search.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class InventoryRepository:
    """Concrete implementation of InventoryRepositoryProtocol using raw SQL."""

    async def get_product(self, db: AsyncSession, product_id: str) -> Product | None:
        result = await db.execute(_GET_PRODUCT_SQL, {"id": product_id})
        row = result.fetchone()
        return _row_to_product(row) if row else None

    async def insert_product(self, db: AsyncSession, product: Product) -> Product:
        result = await db.execute(
            _INSERT_PRODUCT_SQL,
            {
                "id": product.id,
                "title": product.title,
                "description": product.description,
                "price_cents": product.price_cents,
                "category": product.category,
                "condition": product.condition,
                "seller_id": product.seller_id,
            },
        )
        return _row_to_product(result.fetchone())

    async def mark_unavailable(
        self, db: AsyncSession, product_id: str, expected_version: int | None
    ) -> Product | None:
        result = await db.execute(
            _MARK_UNAVAILABLE_SQL,
            {"id": product_id, "expected_version": expected_version},
        )
        row = result.fetchone()
        return _row_to_product(row) if row else None

    async def list_available(
        self, db: AsyncSession, product_filter: ProductFilter
    ) -> list[Product]:
        cursor_ts = parse_utc(product_filter.cursor_ts) if product_filter.cursor_ts else None
        result = await db.execute(
            _LIST_AVAILABLE_SQL,
            {
                "category": product_filter.category,
                "condition": product_filter.condition,
                "pattern": _like_pattern(product_filter.search),
                "min_price": product_filter.min_price_cents,
                "max_price": product_filter.max_price_cents,
                "seller_id": product_filter.seller_id,
                "cursor_ts": cursor_ts,
                "cursor_id": product_filter.cursor_id,
                "limit": product_filter.limit,
            },
        )
        return [_row_to_product(row) for row in result.fetchall()]

    async def list_by_seller(self, db: AsyncSession, seller_id: str) -> list[Product]:
        result = await db.execute(_LIST_BY_SELLER_SQL, {"seller_id": seller_id})
        return [_row_to_product(row) for row in result.fetchall()]

    async def update_details(
        self, db: AsyncSession, seller_id: str, product_id: str, edit: ProductEdit
    ) -> Product | None:
        result = await db.execute(
            _UPDATE_DETAILS_SQL,
            {
                "id": product_id,
                "seller_id": seller_id,
                "title": edit.title,
                "description": edit.description,
                "price_cents": edit.price_cents,
                "category": edit.category,
                "condition": edit.condition,
            },
        )
        row = result.fetchone()
        return _row_to_product(row) if row else None
