"""
API роутер для управления сотрудниками
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from apps.api.dependencies import get_stores
from apps.api.schemas import EmployeeCreate, EmployeeResponse, EmployeeUpdate, PayStatusRequest
from shared.services.employee_service import EmployeeService
from shared.services.record_store import Stores

router = APIRouter(prefix="/employees", tags=["employees"])


@router.get("/", response_model=List[EmployeeResponse])
async def list_employees(
    search: Optional[str] = Query(None, description="Поиск по имени или табельному номеру"),
    project_id: Optional[str] = Query(None, description="Фильтр по проекту"),
    stores: Stores = Depends(get_stores),
):
    """Список сотрудников."""
    return await EmployeeService(stores).list_employees(search=search, project_id=project_id)


@router.get("/{employee_id}", response_model=EmployeeResponse)
async def get_employee(employee_id: str, stores: Stores = Depends(get_stores)):
    return await EmployeeService(stores).get_employee(employee_id)


@router.post("/", response_model=EmployeeResponse, status_code=status.HTTP_201_CREATED)
async def create_employee(data: EmployeeCreate, stores: Stores = Depends(get_stores)):
    """Создание сотрудника."""
    return await EmployeeService(stores).create_employee(data.model_dump(exclude_unset=True))


@router.patch("/{employee_id}", response_model=EmployeeResponse)
async def update_employee(employee_id: str, data: EmployeeUpdate, stores: Stores = Depends(get_stores)):
    return await EmployeeService(stores).update_employee(employee_id, data.model_dump(exclude_unset=True))


@router.patch("/{employee_id}/pay-status", response_model=EmployeeResponse)
async def set_pay_status(employee_id: str, data: PayStatusRequest, stores: Stores = Depends(get_stores)):
    """Переключение статуса оплаты из таблицы."""
    return await EmployeeService(stores).set_pay_status(employee_id, data.pay_status)


@router.delete("/{employee_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_employee(employee_id: str, stores: Stores = Depends(get_stores)):
    """Удаление сотрудника без авансов и начислений."""
    await EmployeeService(stores).delete_employee(employee_id)
