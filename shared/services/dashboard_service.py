"""Сводка для главной страницы."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from domain.entities.project import ProjectStatus
from shared.services.payroll_calculator import to_amount
from shared.services.record_store import Stores
from shared.services.validators import month_bounds

SERIES_MONTHS = 6
RECENT_ACTIVITY_LIMIT = 8


@dataclass
class MonthPoint:
    month: date
    payroll: Decimal = Decimal("0")
    advances: Decimal = Decimal("0")


@dataclass
class DashboardSummary:
    employee_count: int
    active_projects: int
    project_count: int
    payroll_count: int
    current_month_payroll: Decimal
    outstanding_advances: Decimal
    current_month_expenses: Decimal
    series: List[MonthPoint] = field(default_factory=list)
    recent_activity: List[Dict[str, Any]] = field(default_factory=list)


def _shift_month(month: date, delta: int) -> date:
    index = month.year * 12 + (month.month - 1) + delta
    return date(index // 12, index % 12 + 1, 1)


class DashboardService:
    """Агрегаты по сотрудникам, проектам, начислениям и авансам."""

    def __init__(self, stores: Stores):
        self.stores = stores

    async def summary(self, today: Optional[date] = None) -> DashboardSummary:
        today = today or date.today()
        current_month = today.replace(day=1)

        employees = await self.stores.employees.list()
        projects = await self.stores.projects.list()
        payrolls = await self.stores.payrolls.list()
        advances = await self.stores.advances.list()
        expenses = await self.stores.expenses.list()

        series = []
        for offset in range(SERIES_MONTHS - 1, -1, -1):
            month = _shift_month(current_month, -offset)
            start, end = month_bounds(month)
            series.append(MonthPoint(
                month=month,
                payroll=sum((to_amount(p.net_pay) for p in payrolls if p.month == month), Decimal("0")),
                advances=sum((to_amount(a.amount) for a in advances if start <= a.date < end), Decimal("0")),
            ))

        start, end = month_bounds(current_month)
        activity = await self.stores.recent_activity(limit=RECENT_ACTIVITY_LIMIT)

        return DashboardSummary(
            employee_count=len(employees),
            active_projects=sum(1 for p in projects if p.status == ProjectStatus.ACTIVE),
            project_count=len(projects),
            payroll_count=len(payrolls),
            current_month_payroll=series[-1].payroll,
            outstanding_advances=sum((to_amount(a.amount) for a in advances), Decimal("0")),
            current_month_expenses=sum(
                (to_amount(e.amount) for e in expenses if start <= e.date < end), Decimal("0")
            ),
            series=series,
            recent_activity=[
                {
                    "table_name": log.table_name,
                    "action": log.action,
                    "row_id": log.row_id,
                    "created_at": log.created_at,
                }
                for log in activity
            ],
        )
