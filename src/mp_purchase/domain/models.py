"""Purchase domain model — pure dataclass, no SQLAlchemy dependency.

A Transaction snapshots seller_id and price_cents at creation so later edits
to the product never rewrite history. Status moves PENDING -> COMPLETED or
PENDING -> FAILED exactly once; terminal transactions are never mutated.
"""

from dataclasses import dataclass, replace
from datetime import datetime

from src.mp_common.enums import FailureReason, TransactionStatus

_TERMINAL = frozenset({TransactionStatus.COMPLETED.value, TransactionStatus.FAILED.value})


@dataclass(frozen=True)
class Transaction:
    id: str
    product_id: str
    buyer_id: str
    seller_id: str
    price_cents: int
    status: str = TransactionStatus.PENDING.value
    failure_reason: str | None = None
    created_at: datetime | None = None
    finalized_at: datetime | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in _TERMINAL

    def completed(self, at: datetime) -> "Transaction":
        self._require_pending()
        return replace(self, status=TransactionStatus.COMPLETED.value, finalized_at=at)

    def failed(self, reason: FailureReason, at: datetime) -> "Transaction":
        self._require_pending()
        return replace(
            self, status=TransactionStatus.FAILED.value, failure_reason=reason.value, finalized_at=at
        )

    def _require_pending(self) -> None:
        if self.status != TransactionStatus.PENDING.value:
            raise ValueError(f"Transaction {self.id} is already {self.status}")
