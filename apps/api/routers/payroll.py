"""
API роутер для начислений
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from apps.api.dependencies import get_action_guard, get_stores
from apps.api.schemas import (
    BulkStatusRequest,
    BulkStatusResponse,
    PayrollCreate,
    PayrollResponse,
    PayrollRowResponse,
    PayrollStatusRequest,
    PayrollUpdate,
)
from core.utils.action_guard import ActionGuard
from shared.services.payroll_service import PayrollFilter, PayrollService, ensure_month
from shared.services.record_store import Stores

router = APIRouter(prefix="/payroll", tags=["payroll"])


@router.get("/", response_model=List[PayrollRowResponse])
async def list_payroll(
    project: Optional[str] = Query(None, description="Проект: id или название"),
    month: Optional[str] = Query(None, description="YYYY-MM"),
    status_filter: Optional[str] = Query(None, alias="status", description="Paid / Unpaid"),
    nationality: Optional[str] = Query(None),
    search: Optional[str] = Query(None, description="Имя или табельный номер"),
    stores: Stores = Depends(get_stores),
):
    """Таблица начислений с фильтрами."""
    filters = PayrollFilter(
        project=project,
        month=ensure_month(month),
        status=status_filter,
        nationality=nationality,
        search=search,
    )
    rows = await PayrollService(stores).list_rows(filters)
    return [row.as_dict() for row in rows]


@router.post("/bulk-status", response_model=BulkStatusResponse)
async def bulk_status(
    data: BulkStatusRequest,
    stores: Stores = Depends(get_stores),
    guard: ActionGuard = Depends(get_action_guard),
):
    """Смена статуса всех начислений проекта."""
    async with guard.hold(f"payroll:bulk-status:{data.project_id}"):
        result = await PayrollService(stores).set_status_for_project(data.project_id, data.status)
    return BulkStatusResponse(succeeded=result.succeeded, failed=result.failed, errors=result.errors)


@router.get("/{payroll_id}", response_model=PayrollResponse)
async def get_payroll(payroll_id: str, stores: Stores = Depends(get_stores)):
    return await PayrollService(stores).get_payroll(payroll_id)


@router.post("/", response_model=PayrollResponse, status_code=status.HTTP_201_CREATED)
async def create_payroll(
    data: PayrollCreate,
    stores: Stores = Depends(get_stores),
    guard: ActionGuard = Depends(get_action_guard),
):
    """Создание начисления; net_pay учитывает авансы сотрудника."""
    async with guard.hold(f"payroll:create:{data.employee_id}:{data.month}"):
        return await PayrollService(stores).create_payroll(data.model_dump(exclude_unset=True))


@router.patch("/{payroll_id}", response_model=PayrollResponse)
async def update_payroll(
    payroll_id: str,
    data: PayrollUpdate,
    stores: Stores = Depends(get_stores),
    guard: ActionGuard = Depends(get_action_guard),
):
    async with guard.hold(f"payroll:{payroll_id}"):
        return await PayrollService(stores).update_payroll(payroll_id, data.model_dump(exclude_unset=True))


@router.patch("/{payroll_id}/status", response_model=PayrollResponse)
async def set_payroll_status(payroll_id: str, data: PayrollStatusRequest, stores: Stores = Depends(get_stores)):
    return await PayrollService(stores).set_status(payroll_id, data.status)


@router.delete("/{payroll_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_payroll(payroll_id: str, stores: Stores = Depends(get_stores)):
    await PayrollService(stores).delete_payroll(payroll_id)
