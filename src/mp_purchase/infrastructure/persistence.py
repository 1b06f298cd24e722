"""TransactionRepository — raw SQL persistence for transactions.

Rows are inserted as 'pending' and finalized exactly once: the finalize
UPDATE only matches while status is still 'pending', and a trigger
(migration 004) rejects any other change to a row.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.errors import TransactionStateError
from src.mp_purchase.domain.models import Transaction

_COLUMNS = """
    id, product_id, buyer_id, seller_id, price_cents,
    status, failure_reason, created_at, finalized_at
"""

_INSERT_PENDING_SQL = text("""
    INSERT INTO transactions (id, product_id, buyer_id, seller_id, price_cents,
                              status, created_at)
    VALUES (:id, :product_id, :buyer_id, :seller_id, :price_cents,
            'pending', :created_at)
""")

_FINALIZE_SQL = text(f"""
    UPDATE transactions
    SET status = :status,
        failure_reason = :failure_reason,
        finalized_at = :finalized_at
    WHERE id = :id AND status = 'pending'
    RETURNING {_COLUMNS}
""")

_GET_BY_ID_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM transactions
    WHERE id = :id
""")


def _row_to_transaction(row: object) -> Transaction:
    return Transaction(
        id=row.id,  # type: ignore[attr-defined]
        product_id=row.product_id,  # type: ignore[attr-defined]
        buyer_id=row.buyer_id,  # type: ignore[attr-defined]
        seller_id=row.seller_id,  # type: ignore[attr-defined]
        price_cents=row.price_cents,  # type: ignore[attr-defined]
        status=row.status,  # type: ignore[attr-defined]
        failure_reason=row.failure_reason,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        finalized_at=row.finalized_at,  # type: ignore[attr-defined]
    )


class TransactionRepository:
    """Concrete implementation of TransactionRepositoryProtocol using raw SQL."""

    async def insert_pending(self, db: AsyncSession, transaction: Transaction) -> Transaction:
        await db.execute(
            _INSERT_PENDING_SQL,
            {
                "id": transaction.id,
                "product_id": transaction.product_id,
                "buyer_id": transaction.buyer_id,
                "seller_id": transaction.seller_id,
                "price_cents": transaction.price_cents,
                "created_at": transaction.created_at,
            },
        )
        return transaction

    async def finalize(self, db: AsyncSession, transaction: Transaction) -> Transaction:
        result = await db.execute(
            _FINALIZE_SQL,
            {
                "id": transaction.id,
                "status": transaction.status,
                "failure_reason": transaction.failure_reason,
                "finalized_at": transaction.finalized_at,
            },
        )
        row = result.fetchone()
        if row is None:
            raise TransactionStateError(transaction.id, transaction.status)
        return _row_to_transaction(row)

    async def get_by_id(self, db: AsyncSession, transaction_id: str) -> Transaction | None:
        result = await db.execute(_GET_BY_ID_SQL, {"id": transaction_id})
        row = result.fetchone()
        return _row_to_transaction(row) if row else None
