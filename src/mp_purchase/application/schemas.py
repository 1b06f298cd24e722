"""Pydantic schemas for the purchase API."""

from pydantic import BaseModel, Field

from src.mp_common.cents import cents_to_display
from src.mp_purchase.domain.models import Transaction


class PurchaseRequest(BaseModel):
    product_id: str = Field(..., min_length=1)


class TransactionResponse(BaseModel):
    id: str
    product_id: str
    buyer_id: str
    seller_id: str
    price_cents: int
    price_display: str
    status: str
    failure_reason: str | None
    created_at: str | None
    finalized_at: str | None

    @classmethod
    def from_domain(cls, tx: Transaction) -> "TransactionResponse":
        return cls(
            id=tx.id,
            product_id=tx.product_id,
            buyer_id=tx.buyer_id,
            seller_id=tx.seller_id,
            price_cents=tx.price_cents,
            price_display=cents_to_display(tx.price_cents),
            status=tx.status,
            failure_reason=tx.failure_reason,
            created_at=tx.created_at.isoformat() if tx.created_at else None,
            finalized_at=tx.finalized_at.isoformat() if tx.finalized_at else None,
        )
