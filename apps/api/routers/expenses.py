"""
API роутер для расходов по проектам
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from apps.api.dependencies import get_stores
from apps.api.schemas import ExpenseCreate, ExpenseResponse, ExpenseUpdate
from shared.services.expense_service import ExpenseService
from shared.services.payroll_service import ensure_month
from shared.services.record_store import Stores

router = APIRouter(prefix="/expenses", tags=["expenses"])


@router.get("/", response_model=List[ExpenseResponse])
async def list_expenses(
    project_id: Optional[str] = Query(None),
    month: Optional[str] = Query(None, description="YYYY-MM"),
    stores: Stores = Depends(get_stores),
):
    return await ExpenseService(stores).list_expenses(project_id=project_id, month=ensure_month(month))


@router.post("/", response_model=ExpenseResponse, status_code=status.HTTP_201_CREATED)
async def create_expense(data: ExpenseCreate, stores: Stores = Depends(get_stores)):
    return await ExpenseService(stores).create_expense(data.model_dump(exclude_unset=True))


@router.patch("/{expense_id}", response_model=ExpenseResponse)
async def update_expense(expense_id: str, data: ExpenseUpdate, stores: Stores = Depends(get_stores)):
    return await ExpenseService(stores).update_expense(expense_id, data.model_dump(exclude_unset=True))


@router.delete("/{expense_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_expense(expense_id: str, stores: Stores = Depends(get_stores)):
    await ExpenseService(stores).delete_expense(expense_id)
