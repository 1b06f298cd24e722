"""LedgerService — append-only record of purchase outcomes.

record() never commits: it is called inside the purchase engine's unit of
work so the ledger row and the transaction's terminal status become visible
together. Reads are plain SELECTs; readers see committed rows only.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.cursor import cursor_decode, cursor_encode
from src.mp_common.errors import TransactionStateError
from src.mp_common.storage import storage_errors
from src.mp_ledger.application.schemas import LedgerEntryItem, LedgerResponse
from src.mp_ledger.domain.models import LedgerEntry
from src.mp_ledger.domain.repository import LedgerRepositoryProtocol
from src.mp_ledger.infrastructure.persistence import LedgerRepository
from src.mp_purchase.domain.models import Transaction


def _decode_ledger_cursor(cursor: str | None) -> tuple[str | None, int | None]:
    cursor_ts, raw_id = cursor_decode(cursor)
    if cursor_ts is None or raw_id is None:
        return None, None
    try:
        return cursor_ts, int(raw_id)
    except ValueError:
        return None, None


class LedgerService:
    def __init__(self, repo: LedgerRepositoryProtocol | None = None) -> None:
        self._repo: LedgerRepositoryProtocol = repo or LedgerRepository()

    async def record(self, db: AsyncSession, transaction: Transaction) -> LedgerEntry:
        if not transaction.is_terminal:
            raise TransactionStateError(transaction.id, transaction.status)
        with storage_errors("ledger_record"):
            return await self._repo.append(db, transaction)

    async def list_by_user(
        self, db: AsyncSession, buyer_id: str, cursor: str | None = None, limit: int = 20
    ) -> LedgerResponse:
        cursor_ts, cursor_id = _decode_ledger_cursor(cursor)
        # Fetch limit+1 to detect has_more without a COUNT(*) query
        with storage_errors("ledger_list_by_user"):
            entries = await self._repo.list_by_buyer(db, buyer_id, cursor_ts, cursor_id, limit + 1)
        return _page(entries, limit)

    async def list_sales_by_seller(
        self, db: AsyncSession, seller_id: str, cursor: str | None = None, limit: int = 20
    ) -> LedgerResponse:
        cursor_ts, cursor_id = _decode_ledger_cursor(cursor)
        with storage_errors("ledger_list_sales"):
            entries = await self._repo.list_sales_by_seller(
                db, seller_id, cursor_ts, cursor_id, limit + 1
            )
        return _page(entries, limit)


def _page(entries: list[LedgerEntry], limit: int) -> LedgerResponse:
    has_more = len(entries) > limit
    page = entries[:limit]
    last = page[-1] if page else None
    next_cursor = (
        cursor_encode(last.created_at, str(last.id))
        if has_more and last is not None and last.created_at is not None
        else None
    )
    return LedgerResponse(
        items=[LedgerEntryItem.from_domain(e) for e in page],
        next_cursor=next_cursor,
        has_more=has_more,
    )
