"""LedgerRepository Protocol — append and read only; there is no update or delete."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_ledger.domain.models import LedgerEntry
from src.mp_purchase.domain.models import Transaction


class LedgerRepositoryProtocol(Protocol):
    async def append(self, db: AsyncSession, transaction: Transaction) -> LedgerEntry: ...

    async def list_by_buyer(
        self,
        db: AsyncSession,
        buyer_id: str,
        cursor_ts: str | None,
        cursor_id: int | None,
        limit: int,
    ) -> list[LedgerEntry]: ...

    async def list_sales_by_seller(
        self,
        db: AsyncSession,
        seller_id: str,
        cursor_ts: str | None,
        cursor_id: int | None,
        limit: int,
    ) -> list[LedgerEntry]: ...
