"""mp_ledger REST API — read-only purchase and sales history, JWT required."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.database import get_db_session
from src.mp_common.response import ApiResponse, success_response
from src.mp_gateway.auth.dependencies import get_current_user_id
from src.mp_ledger.application.service import LedgerService

router = APIRouter(prefix="/ledger", tags=["ledger"])

_service = LedgerService()


@router.get("/purchases")
async def list_purchases(
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    cursor: str | None = Query(None, description="Pagination cursor (opaque Base64)"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
) -> ApiResponse:
    data = await _service.list_by_user(db, user_id, cursor, limit)
    return success_response(data.model_dump(), request)


@router.get("/sales")
async def list_sales(
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    cursor: str | None = Query(None, description="Pagination cursor (opaque Base64)"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
) -> ApiResponse:
    data = await _service.list_sales_by_seller(db, user_id, cursor, limit)
    return success_response(data.model_dump(), request)
