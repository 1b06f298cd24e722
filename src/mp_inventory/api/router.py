"""mp_inventory REST API — catalog browsing is public, listing management needs JWT."""

from decimal import Decimal
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.cents import decimal_to_cents
from src.mp_common.database import get_db_session
from src.mp_common.enums import ProductCategory, ProductCondition
from src.mp_common.response import ApiResponse, success_response
from src.mp_gateway.auth.dependencies import get_current_user_id
from src.mp_inventory.application.schemas import (
    CreateProductRequest,
    UpdateProductRequest,
    category_items,
)
from src.mp_inventory.application.service import InventoryService

router = APIRouter(prefix="/products", tags=["products"])
categories_router = APIRouter(prefix="/categories", tags=["products"])

_service = InventoryService()


@categories_router.get("")
async def list_categories(request: Request) -> ApiResponse:
    return success_response([c.model_dump() for c in category_items()], request)


@router.get("")
async def list_products(
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    category: ProductCategory | None = Query(None),
    condition: ProductCondition | None = Query(None),
    search: str | None = Query(None, max_length=200, description="Title/description substring"),
    min_price: Decimal | None = Query(None, ge=0, description="Minimum price in dollars"),
    max_price: Decimal | None = Query(None, ge=0, description="Maximum price in dollars"),
    seller_id: str | None = Query(None),
    cursor: str | None = Query(None, description="Pagination cursor (opaque Base64)"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
) -> ApiResponse:
    data = await _service.list_available(
        db,
        category=category.value if category else None,
        search=search,
        min_price_cents=decimal_to_cents(min_price) if min_price is not None else None,
        max_price_cents=decimal_to_cents(max_price) if max_price is not None else None,
        seller_id=seller_id,
        cursor=cursor,
        limit=limit,
        condition=condition.value if condition else None,
    )
    return success_response(data.model_dump(), request)


@router.post("")
async def create_product(
    body: CreateProductRequest,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.create_product(db, user_id, body)
    return success_response(data.model_dump(), request)


# Registered before /{product_id} so "mine" is not taken for an id
@router.get("/mine")
async def list_my_products(
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    items = await _service.list_by_seller(db, user_id)
    return success_response([p.model_dump() for p in items], request)


@router.get("/{product_id}")
async def get_product(
    product_id: str,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_listing(db, product_id)
    return success_response(data.model_dump(), request)


@router.put("/{product_id}")
async def update_product(
    product_id: str,
    body: UpdateProductRequest,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.update_product(db, user_id, product_id, body)
    return success_response(data.model_dump(), request)


@router.post("/{product_id}/unlist")
async def unlist_product(
    product_id: str,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.unlist_product(db, user_id, product_id)
    return success_response(data.model_dump(), request)
