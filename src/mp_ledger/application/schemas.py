"""Pydantic schemas for purchase/sales history."""

from pydantic import BaseModel

from src.mp_common.cents import cents_to_display
from src.mp_ledger.domain.models import LedgerEntry


class LedgerEntryItem(BaseModel):
    id: int
    transaction_id: str
    product_id: str
    buyer_id: str
    seller_id: str
    price_cents: int
    price_display: str
    status: str
    failure_reason: str | None
    created_at: str  # ISO8601 string

    @classmethod
    def from_domain(cls, entry: LedgerEntry) -> "LedgerEntryItem":
        return cls(
            id=entry.id,
            transaction_id=entry.transaction_id,
            product_id=entry.product_id,
            buyer_id=entry.buyer_id,
            seller_id=entry.seller_id,
            price_cents=entry.price_cents,
            price_display=cents_to_display(entry.price_cents),
            status=entry.status,
            failure_reason=entry.failure_reason,
            created_at=entry.created_at.isoformat() if entry.created_at else "",
        )


class LedgerResponse(BaseModel):
    items: list[LedgerEntryItem]
    next_cursor: str | None
    has_more: bool
