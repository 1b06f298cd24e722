"""Cart domain models — pure dataclasses, no SQLAlchemy dependency.

A CartEntry is a weak reference: it stores only the product id. Price and
availability are always read from the products table when the cart is listed.
"""

from dataclasses import dataclass
from datetime import datetime

from src.mp_inventory.domain.models import Product


@dataclass(frozen=True)
class CartEntry:
    id: str
    user_id: str
    product_id: str
    quantity: int
    added_at: datetime | None = None


@dataclass(frozen=True)
class ResolvedCartItem:
    entry: CartEntry
    product: Product
