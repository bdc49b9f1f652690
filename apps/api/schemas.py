"""
Схемы Pydantic для API Dalal
"""
import datetime as dt
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# ================== EMPLOYEES ==================

class EmployeeBase(BaseModel):
    """Базовая схема сотрудника."""
    name: Optional[str] = Field(None, max_length=255, description="Имя")
    employee_code: Optional[str] = Field(None, max_length=100, description="Табельный номер")
    iqama_number: Optional[str] = Field(None, max_length=100)
    phone_number: Optional[str] = Field(None, max_length=50)
    role: Optional[str] = Field(None, max_length=100, description="Специальность")
    nationality: Optional[str] = Field(None, max_length=100)
    date_of_join: Optional[dt.date] = None
    project_id: Optional[str] = Field(None, description="Проект или 'Unassigned'")
    pay_status: Optional[str] = None


class EmployeeCreate(EmployeeBase):
    name: str = Field(..., min_length=1, max_length=255)
    employee_code: str = Field(..., min_length=1, max_length=100)


class EmployeeUpdate(EmployeeBase):
    pass


class EmployeeResponse(ORMModel):
    id: str
    name: str
    employee_code: str
    iqama_number: Optional[str] = None
    phone_number: Optional[str] = None
    role: Optional[str] = None
    nationality: Optional[str] = None
    date_of_join: Optional[dt.date] = None
    project_id: Optional[str] = None
    pay_status: str
    created_at: Optional[dt.datetime] = None


class PayStatusRequest(BaseModel):
    pay_status: str


# ================== PROJECTS ==================

class ProjectCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    budget: Decimal = Field(Decimal("0"), ge=0)
    status: Optional[str] = None
    role_rates: Dict[str, Decimal] = Field(default_factory=dict)

    @field_validator("role_rates")
    @classmethod
    def validate_role_rates(cls, v):
        """Ставки по специальностям неотрицательные."""
        for role, rate in v.items():
            if rate < 0:
                raise ValueError(f"Ставка для {role} не может быть отрицательной")
        return v


class ProjectUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    budget: Optional[Decimal] = Field(None, ge=0)
    status: Optional[str] = None
    role_rates: Optional[Dict[str, Decimal]] = None


class ProjectResponse(ORMModel):
    id: str
    name: str
    budget: Decimal
    status: str
    role_rates: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[dt.datetime] = None


class RoleRateRequest(BaseModel):
    rate: Decimal = Field(..., gt=0)


# ================== ADVANCES ==================

class AdvanceCreate(BaseModel):
    employee_id: str = Field(..., min_length=1)
    amount: Decimal = Field(..., ge=0)
    note: Optional[str] = None
    date: Optional[dt.date] = None


class AdvanceUpdate(BaseModel):
    employee_id: Optional[str] = None
    amount: Optional[Decimal] = Field(None, ge=0)
    note: Optional[str] = None
    date: Optional[dt.date] = None


class AdvanceResponse(ORMModel):
    id: str
    employee_id: str
    amount: Decimal
    note: Optional[str] = None
    date: dt.date
    created_at: Optional[dt.datetime] = None


class ReconciliationStepResponse(BaseModel):
    name: str
    status: str
    payroll_id: Optional[str] = None
    error: Optional[str] = None
    attempts: int = 0


class ReconciliationResponse(BaseModel):
    employee_id: str
    trigger: str
    advance_total: Optional[float] = None
    partial_failure: bool
    warning: Optional[str] = None
    updated_payroll_ids: List[str] = Field(default_factory=list)
    failed_payroll_ids: List[str] = Field(default_factory=list)
    pending_marker_saved: Optional[bool] = None
    steps: List[ReconciliationStepResponse] = Field(default_factory=list)


class AdvanceOperationResponse(BaseModel):
    """Аванс сохранен; reconciliation_pending означает незавершенный пересчет."""
    advance: Optional[AdvanceResponse] = None
    reconciliation_pending: bool = False
    warning: Optional[str] = None
    reconciliations: List[ReconciliationResponse] = Field(default_factory=list)


# ================== PAYROLL ==================

class PayrollCreate(BaseModel):
    employee_id: str = Field(..., min_length=1)
    project_id: Optional[str] = None
    month: str = Field(..., description="YYYY-MM или дата")
    hours_worked: Decimal = Field(Decimal("0"), ge=0)
    rate: Optional[Decimal] = Field(None, ge=0, description="Иначе ставка проекта для специальности")
    status: Optional[str] = None


class PayrollUpdate(BaseModel):
    employee_id: Optional[str] = None
    project_id: Optional[str] = None
    month: Optional[str] = None
    hours_worked: Optional[Decimal] = Field(None, ge=0)
    rate: Optional[Decimal] = Field(None, ge=0)
    status: Optional[str] = None


class PayrollResponse(ORMModel):
    id: str
    employee_id: str
    project_id: Optional[str] = None
    month: dt.date
    hours_worked: Decimal
    rate: Decimal
    gross_pay: Decimal
    net_pay: Decimal
    status: str
    created_at: Optional[dt.datetime] = None


class PayrollRowResponse(ORMModel):
    id: str
    employee_id: str
    employee_name: str
    employee_code: str
    role: str
    nationality: str
    date_of_join: Optional[dt.date] = None
    project_id: Optional[str] = None
    project_name: str
    month: dt.date
    hours_worked: Decimal
    rate: Decimal
    gross_pay: Decimal
    net_pay: Decimal
    status: str


class PayrollStatusRequest(BaseModel):
    status: str


class BulkStatusRequest(BaseModel):
    project_id: str = Field(..., min_length=1)
    status: str


class BulkStatusResponse(BaseModel):
    succeeded: int
    failed: int
    errors: List[str] = Field(default_factory=list)


# ================== EXPENSES ==================

class ExpenseCreate(BaseModel):
    project_id: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1)
    amount: Decimal = Field(..., ge=0)
    date: Optional[dt.date] = None
    payment_method: Optional[str] = None
    paid_by: Optional[str] = None
    notes: Optional[str] = None


class ExpenseUpdate(BaseModel):
    project_id: Optional[str] = None
    category: Optional[str] = None
    amount: Optional[Decimal] = Field(None, ge=0)
    date: Optional[dt.date] = None
    payment_method: Optional[str] = None
    paid_by: Optional[str] = None
    notes: Optional[str] = None


class ExpenseResponse(ORMModel):
    id: str
    project_id: str
    category: str
    amount: Decimal
    date: dt.date
    payment_method: str
    paid_by: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[dt.datetime] = None


# ================== STATEMENTS / DASHBOARD ==================

class StatementRequest(BaseModel):
    project_id: str = Field(..., min_length=1)
    month: str = Field(..., description="YYYY-MM")


class AttachmentRequest(BaseModel):
    name: str = Field(..., min_length=1)
    url: str = Field(..., min_length=1)
    type: Optional[str] = None
    size: int = Field(0, ge=0)


class StatementResponse(ORMModel):
    id: str
    project_id: str
    month: dt.date
    total_payroll: Decimal
    total_expenses: Decimal
    total_advances: Decimal
    remaining_budget: Decimal
    attachments: List[Dict[str, Any]] = Field(default_factory=list)
    created_at: Optional[dt.datetime] = None


class MonthPointResponse(ORMModel):
    month: dt.date
    payroll: Decimal
    advances: Decimal


class DashboardResponse(ORMModel):
    employee_count: int
    active_projects: int
    project_count: int
    payroll_count: int
    current_month_payroll: Decimal
    outstanding_advances: Decimal
    current_month_expenses: Decimal
    series: List[MonthPointResponse]
    recent_activity: List[Dict[str, Any]]


# ================== IMPORTS ==================

class ImportResponse(BaseModel):
    entity_type: str
    total: int
    succeeded: int
    skipped: int
    failed: int
    parser_skipped: int
    rejected: int
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    created_ids: List[Optional[str]] = Field(default_factory=list)
    ocr_confidence: Optional[float] = None


class RetryResponse(BaseModel):
    total: int
    still_pending: int
    results: List[ReconciliationResponse] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    """Схема ошибки."""
    error: str
    message: str
    field: Optional[str] = None
