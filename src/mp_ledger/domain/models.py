"""Ledger domain model — pure dataclass, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class LedgerEntry:
    id: int                          # BIGSERIAL
    transaction_id: str
    buyer_id: str
    seller_id: str
    product_id: str
    price_cents: int                 # snapshot taken by the transaction
    status: str                      # terminal TransactionStatus value
    failure_reason: str | None = None
    created_at: datetime | None = None
