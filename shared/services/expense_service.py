"""Сервис расходов по проектам."""

from datetime import date
from typing import Any, Dict, List, Mapping, Optional

from core.logging.logger import logger
from domain.entities.expense import Expense, PaymentMethod
from shared.services.errors import ReferenceNotFoundError
from shared.services.record_store import Stores
from shared.services.validators import (
    clean_text,
    month_bounds,
    parse_choice,
    parse_date,
    parse_decimal,
    require_fields,
)


class ExpenseService:
    """Сервис для учета расходов."""

    def __init__(self, stores: Stores):
        self.stores = stores

    async def list_expenses(self, project_id: Optional[str] = None, month: Optional[date] = None) -> List[Expense]:
        filters = {"project_id": project_id} if project_id else {}
        expenses = await self.stores.expenses.list(**filters)
        if month:
            start, end = month_bounds(month)
            expenses = [e for e in expenses if start <= e.date < end]
        return expenses

    async def create_expense(self, data: Mapping[str, Any]) -> Expense:
        require_fields(data, "project_id", "category", "amount")
        fields = await self._clean(data)
        expense = await self.stores.expenses.create(fields)
        logger.info(
            "Расход создан",
            expense_id=expense.id,
            project_id=expense.project_id,
            amount=float(expense.amount),
        )
        return expense

    async def update_expense(self, expense_id: str, data: Mapping[str, Any]) -> Expense:
        await self.stores.expenses.require(expense_id)
        fields = await self._clean(data, partial=True)
        return await self.stores.expenses.update(expense_id, fields)

    async def delete_expense(self, expense_id: str) -> bool:
        await self.stores.expenses.delete(expense_id)
        logger.info("Расход удален", expense_id=expense_id)
        return True

    async def _clean(self, data: Mapping[str, Any], partial: bool = False) -> Dict[str, Any]:
        fields: Dict[str, Any] = {}
        if "project_id" in data or not partial:
            project_id = clean_text(data.get("project_id"))
            if not project_id or await self.stores.projects.get(project_id) is None:
                raise ReferenceNotFoundError("Проект", project_id, field="project_id")
            fields["project_id"] = project_id
        if "category" in data or not partial:
            require_fields(data, "category")
            fields["category"] = clean_text(data.get("category"))
        if "amount" in data or not partial:
            fields["amount"] = parse_decimal(data.get("amount"), "amount")
        if "date" in data or not partial:
            fields["date"] = parse_date(data.get("date"), "date", default=date.today())
        if "payment_method" in data or not partial:
            fields["payment_method"] = parse_choice(
                data.get("payment_method"), "payment_method", PaymentMethod.ALL, default=PaymentMethod.CASH
            )
        for name in ("paid_by", "notes"):
            if name in data or not partial:
                fields[name] = clean_text(data.get(name))
        return fields
