"""Pydantic schemas for the cart API."""

from pydantic import BaseModel, Field

from src.mp_cart.domain.models import CartEntry, ResolvedCartItem
from src.mp_common.cents import cents_to_display
from src.mp_inventory.application.schemas import ProductResponse

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class AddCartItemRequest(BaseModel):
    product_id: str = Field(..., min_length=1)
    quantity: int = Field(1, ge=1, le=1000)


class UpdateCartItemRequest(BaseModel):
    # 0 removes the entry
    quantity: int = Field(..., ge=0, le=1000)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class CartEntryResponse(BaseModel):
    id: str
    product_id: str
    quantity: int
    added_at: str | None = None

    @classmethod
    def from_domain(cls, entry: CartEntry) -> "CartEntryResponse":
        return cls(
            id=entry.id,
            product_id=entry.product_id,
            quantity=entry.quantity,
            added_at=entry.added_at.isoformat() if entry.added_at else None,
        )


class CartItemResponse(BaseModel):
    entry: CartEntryResponse
    product: ProductResponse

    @classmethod
    def from_resolved(cls, item: ResolvedCartItem) -> "CartItemResponse":
        return cls(
            entry=CartEntryResponse.from_domain(item.entry),
            product=ProductResponse.from_domain(item.product),
        )


class CartResponse(BaseModel):
    items: list[CartItemResponse]
    item_count: int
    subtotal_cents: int
    subtotal_display: str

    @classmethod
    def from_items(cls, items: list[ResolvedCartItem]) -> "CartResponse":
        # Priced from the live product rows, never from the cart
        subtotal = sum(i.product.price_cents * i.entry.quantity for i in items)
        return cls(
            items=[CartItemResponse.from_resolved(i) for i in items],
            item_count=len(items),
            subtotal_cents=subtotal,
            subtotal_display=cents_to_display(subtotal),
        )


class CartMutationResponse(BaseModel):
    entry: CartEntryResponse | None
    removed: bool = False


class ClearCartResponse(BaseModel):
    removed_count: int
