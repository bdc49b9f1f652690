"""
API роутер для авансов: запись аванса и пересчет начислений
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from apps.api.dependencies import get_action_guard, get_stores
from apps.api.schemas import AdvanceCreate, AdvanceOperationResponse, AdvanceResponse, AdvanceUpdate
from core.utils.action_guard import ActionGuard
from shared.services.advance_service import AdvanceOperationResult, AdvanceService
from shared.services.record_store import Stores

router = APIRouter(prefix="/advances", tags=["advances"])


def _operation_response(result: AdvanceOperationResult) -> AdvanceOperationResponse:
    return AdvanceOperationResponse(
        advance=AdvanceResponse.model_validate(result.advance) if result.advance is not None else None,
        reconciliation_pending=result.partial_failure,
        warning=result.warning,
        reconciliations=[r.to_dict() for r in result.reconciliations],
    )


@router.get("/", response_model=List[AdvanceResponse])
async def list_advances(
    employee_id: Optional[str] = Query(None, description="Фильтр по сотруднику"),
    stores: Stores = Depends(get_stores),
):
    return await AdvanceService(stores).list_advances(employee_id=employee_id)


@router.post("/", response_model=AdvanceOperationResponse, status_code=status.HTTP_201_CREATED)
async def create_advance(
    data: AdvanceCreate,
    stores: Stores = Depends(get_stores),
    guard: ActionGuard = Depends(get_action_guard),
):
    """Создание аванса; начисления сотрудника пересчитываются."""
    async with guard.hold(f"advances:create:{data.employee_id}"):
        result = await AdvanceService(stores).create_advance(data.model_dump(exclude_unset=True))
    return _operation_response(result)


@router.patch("/{advance_id}", response_model=AdvanceOperationResponse)
async def update_advance(
    advance_id: str,
    data: AdvanceUpdate,
    stores: Stores = Depends(get_stores),
    guard: ActionGuard = Depends(get_action_guard),
):
    async with guard.hold(f"advances:{advance_id}"):
        result = await AdvanceService(stores).update_advance(advance_id, data.model_dump(exclude_unset=True))
    return _operation_response(result)


@router.delete("/{advance_id}", response_model=AdvanceOperationResponse)
async def delete_advance(
    advance_id: str,
    stores: Stores = Depends(get_stores),
    guard: ActionGuard = Depends(get_action_guard),
):
    async with guard.hold(f"advances:{advance_id}"):
        result = await AdvanceService(stores).delete_advance(advance_id)
    return _operation_response(result)
