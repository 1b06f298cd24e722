"""mp_purchase REST API — buy now and transaction lookup, JWT required."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.database import get_db_session
from src.mp_common.response import ApiResponse, success_response
from src.mp_gateway.auth.dependencies import get_current_user_id
from src.mp_purchase.application.schemas import PurchaseRequest
from src.mp_purchase.application.service import PurchaseApplicationService

router = APIRouter(prefix="/purchases", tags=["purchases"])

_service = PurchaseApplicationService()


@router.post("")
async def purchase(
    body: PurchaseRequest,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.purchase(db, user_id, body.product_id)
    return success_response(data.model_dump(), request)


@router.get("/{transaction_id}")
async def get_transaction(
    transaction_id: str,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_transaction(db, user_id, transaction_id)
    return success_response(data.model_dump(), request)
