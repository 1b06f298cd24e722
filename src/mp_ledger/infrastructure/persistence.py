"""LedgerRepository — append-only purchase history.

Only INSERT and SELECT statements exist here. The table additionally carries a
trigger (migration 005) that rejects UPDATE and DELETE, and a UNIQUE
constraint on transaction_id so a transaction is recorded at most once.
Entries become visible to readers only when the writing transaction commits.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.datetime_utils import parse_utc
from src.mp_ledger.domain.models import LedgerEntry
from src.mp_purchase.domain.models import Transaction

_COLUMNS = """
    id, transaction_id, buyer_id, seller_id, product_id,
    price_cents, status, failure_reason, created_at
"""

_APPEND_SQL = text(f"""
    INSERT INTO ledger_entries
        (transaction_id, buyer_id, seller_id, product_id,
         price_cents, status, failure_reason, created_at)
    VALUES
        (:transaction_id, :buyer_id, :seller_id, :product_id,
         :price_cents, :status, :failure_reason, :created_at)
    RETURNING {_COLUMNS}
""")

_LIST_BY_BUYER_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM ledger_entries
    WHERE buyer_id = :user_id
      AND (
          CAST(:cursor_ts AS TIMESTAMPTZ) IS NULL
          OR created_at < CAST(:cursor_ts AS TIMESTAMPTZ)
          OR (
              created_at = CAST(:cursor_ts AS TIMESTAMPTZ)
              AND id < CAST(:cursor_id AS BIGINT)
          )
      )
    ORDER BY created_at DESC, id DESC
    LIMIT :limit
""")

_LIST_SALES_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM ledger_entries
    WHERE seller_id = :user_id
      AND status = 'completed'
      AND (
          CAST(:cursor_ts AS TIMESTAMPTZ) IS NULL
          OR created_at < CAST(:cursor_ts AS TIMESTAMPTZ)
          OR (
              created_at = CAST(:cursor_ts AS TIMESTAMPTZ)
              AND id < CAST(:cursor_id AS BIGINT)
          )
      )
    ORDER BY created_at DESC, id DESC
    LIMIT :limit
""")


def _row_to_entry(row: object) -> LedgerEntry:
    return LedgerEntry(
        id=row.id,  # type: ignore[attr-defined]
        transaction_id=row.transaction_id,  # type: ignore[attr-defined]
        buyer_id=row.buyer_id,  # type: ignore[attr-defined]
        seller_id=row.seller_id,  # type: ignore[attr-defined]
        product_id=row.product_id,  # type: ignore[attr-defined]
        price_cents=row.price_cents,  # type: ignore[attr-defined]
        status=row.status,  # type: ignore[attr-defined]
        failure_reason=row.failure_reason,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


class LedgerRepository:
    """Concrete implementation of LedgerRepositoryProtocol using raw SQL."""

    async def append(self, db: AsyncSession, transaction: Transaction) -> LedgerEntry:
        result = await db.execute(
            _APPEND_SQL,
            {
                "transaction_id": transaction.id,
                "buyer_id": transaction.buyer_id,
                "seller_id": transaction.seller_id,
                "product_id": transaction.product_id,
                "price_cents": transaction.price_cents,
                "status": transaction.status,
                "failure_reason": transaction.failure_reason,
                "created_at": transaction.created_at,
            },
        )
        return _row_to_entry(result.fetchone())

    async def list_by_buyer(
        self,
        db: AsyncSession,
        buyer_id: str,
        cursor_ts: str | None,
        cursor_id: int | None,
        limit: int,
    ) -> list[LedgerEntry]:
        return await self._list(db, _LIST_BY_BUYER_SQL, buyer_id, cursor_ts, cursor_id, limit)

    async def list_sales_by_seller(
        self,
        db: AsyncSession,
        seller_id: str,
        cursor_ts: str | None,
        cursor_id: int | None,
        limit: int,
    ) -> list[LedgerEntry]:
        return await self._list(db, _LIST_SALES_SQL, seller_id, cursor_ts, cursor_id, limit)

    async def _list(
        self,
        db: AsyncSession,
        statement: object,
        user_id: str,
        cursor_ts: str | None,
        cursor_id: int | None,
        limit: int,
    ) -> list[LedgerEntry]:
        result = await db.execute(
            statement,  # type: ignore[arg-type]
            {
                "user_id": user_id,
                "cursor_ts": parse_utc(cursor_ts) if cursor_ts else None,
                "cursor_id": cursor_id,
                "limit": limit,
            },
        )
        return [_row_to_entry(row) for row in result.fetchall()]
