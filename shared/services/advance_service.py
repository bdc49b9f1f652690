"""Сервис авансов: запись аванса, затем пересчет начислений сотрудника."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Mapping, Optional

from core.logging.logger import logger
from domain.entities.advance import Advance
from shared.services.errors import ReferenceNotFoundError
from shared.services.reconciliation_service import (
    ReconciliationResult,
    ReconciliationService,
    ReconciliationTrigger,
)
from shared.services.record_store import Stores
from shared.services.validators import clean_text, parse_date, parse_decimal, require_fields


@dataclass
class AdvanceOperationResult:
    """Аванс сохранен; пересчет начислений мог завершиться частично."""

    advance: Optional[Advance]
    reconciliations: List[ReconciliationResult] = field(default_factory=list)

    @property
    def partial_failure(self) -> bool:
        return any(r.partial_failure for r in self.reconciliations)

    @property
    def warning(self) -> Optional[str]:
        for reconciliation in self.reconciliations:
            if reconciliation.partial_failure:
                return reconciliation.warning
        return None


class AdvanceService:
    """Сервис для учета авансов."""

    def __init__(self, stores: Stores, reconciliation: Optional[ReconciliationService] = None):
        self.stores = stores
        self.reconciliation = reconciliation or ReconciliationService(stores)

    async def list_advances(self, employee_id: Optional[str] = None) -> List[Advance]:
        filters = {"employee_id": employee_id} if employee_id else {}
        return await self.stores.advances.list(**filters)

    async def create_advance(self, data: Mapping[str, Any]) -> AdvanceOperationResult:
        """
        Создать аванс и пересчитать начисления сотрудника.

        Ошибки валидации и записи аванса пробрасываются; сбой пересчета
        возвращается в результате (partial_failure).
        """
        require_fields(data, "employee_id", "amount")
        fields = await self._clean(data)

        advance = await self.stores.advances.create(fields)
        logger.info(
            "Аванс создан",
            advance_id=advance.id,
            employee_id=advance.employee_id,
            amount=float(advance.amount),
        )

        reconciliation = await self.reconciliation.reconcile_employee(
            fields["employee_id"], trigger=ReconciliationTrigger.ADVANCE_CREATED
        )
        return await self._result(advance.id, [reconciliation])

    async def update_advance(self, advance_id: str, data: Mapping[str, Any]) -> AdvanceOperationResult:
        current = await self.stores.advances.require(advance_id)
        previous_employee_id = current.employee_id

        fields = await self._clean(data, partial=True)
        await self.stores.advances.update(advance_id, fields)
        logger.info("Аванс обновлен", advance_id=advance_id, fields=list(fields))

        employee_ids = [fields.get("employee_id", previous_employee_id)]
        if previous_employee_id not in employee_ids:
            employee_ids.append(previous_employee_id)

        reconciliations = [
            await self.reconciliation.reconcile_employee(employee_id, trigger=ReconciliationTrigger.ADVANCE_UPDATED)
            for employee_id in employee_ids
        ]
        return await self._result(advance_id, reconciliations)

    async def delete_advance(self, advance_id: str) -> AdvanceOperationResult:
        advance = await self.stores.advances.require(advance_id)
        employee_id = advance.employee_id

        await self.stores.advances.delete(advance_id)
        logger.info("Аванс удален", advance_id=advance_id, employee_id=employee_id)

        reconciliation = await self.reconciliation.reconcile_employee(
            employee_id, trigger=ReconciliationTrigger.ADVANCE_DELETED
        )
        return AdvanceOperationResult(advance=None, reconciliations=[reconciliation])

    async def _result(self, advance_id: str, reconciliations: List[ReconciliationResult]) -> AdvanceOperationResult:
        # После сбоя пересчета сессия откатывалась: перечитываем аванс
        advance = await self.stores.advances.get(advance_id)
        result = AdvanceOperationResult(advance=advance, reconciliations=reconciliations)
        if result.partial_failure:
            logger.warning("Аванс сохранен, пересчет начислений не завершен", advance_id=advance_id)
        return result

    async def _clean(self, data: Mapping[str, Any], partial: bool = False) -> Dict[str, Any]:
        fields: Dict[str, Any] = {}

        if "employee_id" in data or not partial:
            require_fields(data, "employee_id")
            employee_id = str(data["employee_id"]).strip()
            if await self.stores.employees.get(employee_id) is None:
                raise ReferenceNotFoundError("Сотрудник", employee_id, field="employee_id")
            fields["employee_id"] = employee_id

        if "amount" in data or not partial:
            fields["amount"] = parse_decimal(data.get("amount"), "amount")

        if "note" in data or not partial:
            fields["note"] = clean_text(data.get("note"))

        if "date" in data or not partial:
            fields["date"] = parse_date(data.get("date"), "date", default=date.today())

        return fields
