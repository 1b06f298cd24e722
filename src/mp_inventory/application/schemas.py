"""Pydantic schemas for the product catalog / inventory API."""

from decimal import Decimal

from pydantic import BaseModel, Field, field_validator, model_validator

from src.mp_common.cents import cents_to_display
from src.mp_common.enums import CATEGORY_LABELS, ProductCategory, ProductCondition
from src.mp_inventory.domain.models import Product

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class CreateProductRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field("", max_length=2000)
    price: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    category: ProductCategory
    condition: ProductCondition = ProductCondition.GOOD

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("title must not be blank")
        return v


class UpdateProductRequest(BaseModel):
    """Partial edit by the owning seller. Availability is not editable here."""

    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=2000)
    price: Decimal | None = Field(None, ge=0, max_digits=12, decimal_places=2)
    category: ProductCategory | None = None
    condition: ProductCondition | None = None

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("title must not be blank")
        return v

    @model_validator(mode="after")
    def at_least_one_field(self) -> "UpdateProductRequest":
        if all(getattr(self, name) is None for name in type(self).model_fields):
            raise ValueError("no fields to update")
        return self


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class ProductResponse(BaseModel):
    id: str
    title: str
    description: str
    price_cents: int
    price_display: str
    category: str
    condition: str
    seller_id: str
    is_available: bool
    created_at: str | None = None
    updated_at: str | None = None

    @classmethod
    def from_domain(cls, product: Product) -> "ProductResponse":
        return cls(
            id=product.id,
            title=product.title,
            description=product.description,
            price_cents=product.price_cents,
            price_display=cents_to_display(product.price_cents),
            category=product.category,
            condition=product.condition,
            seller_id=product.seller_id,
            is_available=product.is_available,
            created_at=product.created_at.isoformat() if product.created_at else None,
            updated_at=product.updated_at.isoformat() if product.updated_at else None,
        )


class ProductListResponse(BaseModel):
    items: list[ProductResponse]
    next_cursor: str | None
    has_more: bool


class CategoryItem(BaseModel):
    value: str
    label: str


def category_items() -> list[CategoryItem]:
    return [CategoryItem(value=c.value, label=CATEGORY_LABELS[c]) for c in ProductCategory]