"""Inventory domain models — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Product:
    id: str
    title: str
    description: str
    price_cents: int
    category: str            # ProductCategory value
    seller_id: str
    is_available: bool
    version: int             # bumped on every write (optimistic lock)
    condition: str = "good"  # ProductCondition value
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def is_sold_by(self, user_id: str) -> bool:
        return self.seller_id == user_id


@dataclass(frozen=True)
class ProductFilter:
    """Browse/search criteria. Availability is not a filter: only available rows are served."""
    category: str | None = None
    condition: str | None = None
    search: str | None = None
    min_price_cents: int | None = None
    max_price_cents: int | None = None
    seller_id: str | None = None
    cursor_ts: str | None = None
    cursor_id: str | None = None
    limit: int = 20


@dataclass(frozen=True)
class ProductEdit:
    """Owner edit of descriptive fields. None leaves a field unchanged."""
    title: str | None = None
    description: str | None = None
    price_cents: int | None = None
    category: str | None = None
    condition: str | None = None
