"""Сервис формирования месячных ведомостей по проектам."""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Mapping

from core.logging.logger import logger
from domain.entities.statement import Statement
from shared.services.errors import ValidationError
from shared.services.payroll_calculator import to_amount
from shared.services.record_store import Stores
from shared.services.validators import clean_text, first_of_month, is_blank, month_bounds, parse_decimal


class StatementService:
    """Считает итоги месяца по проекту и сохраняет ведомость."""

    def __init__(self, stores: Stores):
        self.stores = stores

    async def list_statements(self, project_id: str = None) -> List[Statement]:
        filters = {"project_id": project_id} if project_id else {}
        return await self.stores.statements.list(**filters)

    async def calculate_totals(self, project_id: str, month: Any) -> Dict[str, Decimal]:
        """
        Итоги месяца по проекту.

        total_payroll: net_pay начислений проекта за месяц.
        total_expenses: расходы проекта с датой в месяце.
        total_advances: авансы с датой в месяце у сотрудников с начислением
            по проекту в этом месяце.
        remaining_budget: бюджет - начисления - расходы.
        """
        project = await self.stores.projects.require(project_id)
        month = first_of_month(month)
        start, end = month_bounds(month)

        payrolls = [p for p in await self.stores.payrolls.list(project_id=project_id) if p.month == month]
        expenses = [e for e in await self.stores.expenses.list(project_id=project_id) if start <= e.date < end]

        employee_ids = {p.employee_id for p in payrolls}
        advances = [
            a for a in await self.stores.advances.list()
            if a.employee_id in employee_ids and start <= a.date < end
        ]

        total_payroll = sum((to_amount(p.net_pay) for p in payrolls), Decimal("0"))
        total_expenses = sum((to_amount(e.amount) for e in expenses), Decimal("0"))
        total_advances = sum((to_amount(a.amount) for a in advances), Decimal("0"))

        return {
            "total_payroll": total_payroll,
            "total_expenses": total_expenses,
            "total_advances": total_advances,
            "remaining_budget": to_amount(project.budget) - total_payroll - total_expenses,
        }

    async def generate(self, project_id: str, month: Any) -> Statement:
        """Создать или пересчитать ведомость проекта за месяц."""
        month = first_of_month(month)
        totals = await self.calculate_totals(project_id, month)

        existing = await self.stores.statements.list(project_id=project_id, month=month)
        if existing:
            statement = await self.stores.statements.update(existing[0].id, totals)
        else:
            statement = await self.stores.statements.create({
                "project_id": project_id,
                "month": month,
                "attachments": [],
                **totals,
            })

        logger.info(
            "Statement generated",
            project_id=project_id,
            month=month.isoformat(),
            total_payroll=float(totals["total_payroll"]),
            total_expenses=float(totals["total_expenses"]),
            remaining_budget=float(totals["remaining_budget"]),
        )
        return statement

    async def add_attachment(self, statement_id: str, attachment: Mapping[str, Any]) -> Statement:
        name = clean_text(attachment.get("name"))
        url = clean_text(attachment.get("url"))
        if not name or not url:
            raise ValidationError("Вложение требует name и url", field="attachments")
        size = 0 if is_blank(attachment.get("size")) else parse_decimal(attachment["size"], "attachments")

        statement = await self.stores.statements.require(statement_id)
        attachments = list(statement.attachments or [])
        attachments.append({
            "name": name,
            "url": url,
            "type": clean_text(attachment.get("type")) or "",
            "size": int(size),
        })
        return await self.stores.statements.update(statement_id, {"attachments": attachments})
