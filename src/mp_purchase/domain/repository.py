"""TransactionRepository Protocol — interface contract for persistence layer."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_purchase.domain.models import Transaction


class TransactionRepositoryProtocol(Protocol):
    async def insert_pending(self, db: AsyncSession, transaction: Transaction) -> Transaction: ...

    async def finalize(self, db: AsyncSession, transaction: Transaction) -> Transaction: ...

    async def get_by_id(self, db: AsyncSession, transaction_id: str) -> Transaction | None: ...
