"""Табличные данные для выгрузок: строки как на экране и их столбцы."""

from typing import Any, Dict, List, Optional

from apps.analytics.export_service import ColumnSpec
from core.logging.logger import logger
from core.utils.formatting import format_currency, format_date, format_month, format_number
from shared.services.advance_ledger import AdvanceLedger
from shared.services.errors import ValidationError
from shared.services.payroll_service import PayrollFilter, PayrollService
from shared.services.record_store import Stores

EMPLOYEE_COLUMNS = [
    ColumnSpec("name", "Employee"),
    ColumnSpec("employee_code", "Employee ID"),
    ColumnSpec("role", "Role/Trade"),
    ColumnSpec("date_of_join", "Month Joined", format_month),
    ColumnSpec("nationality", "Nationality"),
    ColumnSpec("iqama_number", "Iqama"),
    ColumnSpec("phone_number", "Phone"),
    ColumnSpec("project_name", "Project"),
    ColumnSpec("pay_status", "Status"),
]

PROJECT_COLUMNS = [
    ColumnSpec("name", "Project"),
    ColumnSpec("budget", "Budget", format_currency),
    ColumnSpec("status", "Status"),
    ColumnSpec("role_rates_text", "Role Rates"),
]

PAYROLL_COLUMNS = [
    ColumnSpec("employee_name", "Employee Name"),
    ColumnSpec("employee_code", "Employee ID"),
    ColumnSpec("role", "Role/Trade"),
    ColumnSpec("rate", "Rate", format_currency),
    ColumnSpec("project_name", "Project"),
    ColumnSpec("date_of_join", "Month Joined", format_month),
    ColumnSpec("month", "Month", format_month),
    ColumnSpec("hours_worked", "Hours Worked", format_number),
    ColumnSpec("gross_pay", "Salary", format_currency),
    ColumnSpec("advance_total", "Advances", format_currency),
    ColumnSpec("net_pay", "Final Pay", format_currency),
    ColumnSpec("status", "Status"),
    ColumnSpec("nationality", "Nationality"),
]

ADVANCE_COLUMNS = [
    ColumnSpec("employee_name", "Employee"),
    ColumnSpec("employee_code", "Employee ID"),
    ColumnSpec("amount", "Amount", format_currency),
    ColumnSpec("note", "Note"),
    ColumnSpec("date", "Date", format_date),
]

EXPENSE_COLUMNS = [
    ColumnSpec("project_name", "Project"),
    ColumnSpec("category", "Category"),
    ColumnSpec("amount", "Amount", format_currency),
    ColumnSpec("date", "Date", format_date),
    ColumnSpec("payment_method", "Payment Method"),
    ColumnSpec("paid_by", "Paid By"),
    ColumnSpec("notes", "Notes"),
]

COLUMNS = {
    "employees": EMPLOYEE_COLUMNS,
    "projects": PROJECT_COLUMNS,
    "payroll": PAYROLL_COLUMNS,
    "advances": ADVANCE_COLUMNS,
    "expenses": EXPENSE_COLUMNS,
}

TITLES = {
    "employees": "Employees",
    "projects": "Projects",
    "payroll": "Payroll",
    "advances": "Advances",
    "expenses": "Expenses",
}


class AnalyticsService:
    """Строки таблиц с производными значениями (имена, суммы авансов)."""

    def __init__(self, stores: Stores):
        self.stores = stores

    @staticmethod
    def columns_for(entity: str) -> List[ColumnSpec]:
        if entity not in COLUMNS:
            raise ValidationError(f"Выгрузка '{entity}' не поддерживается", field="entity")
        return COLUMNS[entity]

    async def table_rows(self, entity: str, payroll_filter: Optional[PayrollFilter] = None) -> List[Dict[str, Any]]:
        self.columns_for(entity)
        loader = {
            "employees": self._employee_rows,
            "projects": self._project_rows,
            "payroll": lambda: self._payroll_rows(payroll_filter),
            "advances": self._advance_rows,
            "expenses": self._expense_rows,
        }[entity]
        rows = await loader()
        logger.debug("Export rows loaded", entity=entity, rows=len(rows))
        return rows

    async def _project_names(self) -> Dict[str, str]:
        return {p.id: p.name for p in await self.stores.projects.list()}

    async def _employee_rows(self) -> List[Dict[str, Any]]:
        projects = await self._project_names()
        return [
            {
                "name": e.name,
                "employee_code": e.employee_code,
                "role": e.role,
                "date_of_join": e.date_of_join,
                "nationality": e.nationality,
                "iqama_number": e.iqama_number,
                "phone_number": e.phone_number,
                "project_name": projects.get(e.project_id, "Unassigned"),
                "pay_status": e.pay_status,
            }
            for e in await self.stores.employees.list()
        ]

    async def _project_rows(self) -> List[Dict[str, Any]]:
        return [
            {
                "name": p.name,
                "budget": p.budget,
                "status": p.status,
                "role_rates_text": ", ".join(f"{role}: {rate}" for role, rate in (p.role_rates or {}).items()),
            }
            for p in await self.stores.projects.list()
        ]

    async def _payroll_rows(self, payroll_filter: Optional[PayrollFilter]) -> List[Dict[str, Any]]:
        rows = await PayrollService(self.stores).list_rows(payroll_filter)
        ledger = AdvanceLedger(self.stores.advances)
        await ledger.refresh()
        result = []
        for row in rows:
            data = row.as_dict()
            data["advance_total"] = ledger.total_for(row.employee_id)
            result.append(data)
        return result

    async def _advance_rows(self) -> List[Dict[str, Any]]:
        employees = {e.id: e for e in await self.stores.employees.list()}
        rows = []
        for advance in await self.stores.advances.list():
            employee = employees.get(advance.employee_id)
            rows.append({
                "employee_name": employee.name if employee else "",
                "employee_code": employee.employee_code if employee else "",
                "amount": advance.amount,
                "note": advance.note,
                "date": advance.date,
            })
        return rows

    async def _expense_rows(self) -> List[Dict[str, Any]]:
        projects = await self._project_names()
        return [
            {
                "project_name": projects.get(e.project_id, ""),
                "category": e.category,
                "amount": e.amount,
                "date": e.date,
                "payment_method": e.payment_method,
                "paid_by": e.paid_by,
                "notes": e.notes,
            }
            for e in await self.stores.expenses.list()
        ]
