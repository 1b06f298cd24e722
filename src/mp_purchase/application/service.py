"""Thin boundary over PurchaseEngine: domain Transaction -> response schema."""

from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_purchase.application.schemas import TransactionResponse
from src.mp_purchase.engine.engine import PurchaseEngine, get_purchase_engine


class PurchaseApplicationService:
    def __init__(self, engine: PurchaseEngine | None = None) -> None:
        self._engine = engine

    @property
    def engine(self) -> PurchaseEngine:
        return self._engine or get_purchase_engine()

    async def purchase(
        self, db: AsyncSession, buyer_id: str, product_id: str
    ) -> TransactionResponse:
        tx = await self.engine.purchase(db, buyer_id, product_id)
        return TransactionResponse.from_domain(tx)

    async def get_transaction(
        self, db: AsyncSession, user_id: str, transaction_id: str
    ) -> TransactionResponse:
        tx = await self.engine.get_transaction(db, user_id, transaction_id)
        return TransactionResponse.from_domain(tx)
