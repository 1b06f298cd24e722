"""mp_cart REST API — 5 endpoints, all require JWT authentication."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_cart.application.schemas import (
    AddCartItemRequest,
    CartEntryResponse,
    CartMutationResponse,
    ClearCartResponse,
    UpdateCartItemRequest,
)
from src.mp_cart.application.service import CartService
from src.mp_common.database import get_db_session
from src.mp_common.response import ApiResponse, success_response
from src.mp_gateway.auth.dependencies import get_current_user_id

router = APIRouter(prefix="/cart", tags=["cart"])

_service = CartService()


@router.get("")
async def get_cart(
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_cart(db, user_id)
    return success_response(data.model_dump(), request)


@router.post("/items")
async def add_item(
    body: AddCartItemRequest,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    entry = await _service.add_item(db, user_id, body.product_id, body.quantity)
    data = CartMutationResponse(entry=CartEntryResponse.from_domain(entry))
    return success_response(data.model_dump(), request)


@router.patch("/items/{entry_id}")
async def update_item(
    entry_id: str,
    body: UpdateCartItemRequest,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    entry = await _service.update_quantity(db, user_id, entry_id, body.quantity)
    data = CartMutationResponse(
        entry=CartEntryResponse.from_domain(entry) if entry else None,
        removed=entry is None,
    )
    return success_response(data.model_dump(), request)


@router.delete("/items/{entry_id}")
async def remove_item(
    entry_id: str,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    await _service.remove_item(db, user_id, entry_id)
    return success_response(CartMutationResponse(entry=None, removed=True).model_dump(), request)


@router.delete("")
async def clear_cart(
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    removed = await _service.clear(db, user_id)
    return success_response(ClearCartResponse(removed_count=removed).model_dump(), request)
