"""Сервис для работы с сотрудниками."""

from typing import Any, Dict, List, Mapping, Optional

from core.logging.logger import logger
from domain.entities.employee import Employee, PayStatus
from shared.services.errors import ReferenceInUseError, ReferenceNotFoundError
from shared.services.record_store import Stores
from shared.services.validators import clean_text, parse_choice, parse_date, require_fields

_TEXT_FIELDS = ("name", "employee_code", "iqama_number", "phone_number", "role", "nationality")


class EmployeeService:
    """Сервис для учета сотрудников."""

    def __init__(self, stores: Stores):
        self.stores = stores

    async def list_employees(
        self,
        search: Optional[str] = None,
        project_id: Optional[str] = None,
    ) -> List[Employee]:
        """Сотрудники с поиском по имени или табельному номеру."""
        filters = {"project_id": project_id} if project_id else {}
        employees = await self.stores.employees.list(**filters)
        if search:
            needle = search.strip().lower()
            employees = [
                e for e in employees
                if needle in (e.name or "").lower() or needle in (e.employee_code or "").lower()
            ]
        return employees

    async def get_employee(self, employee_id: str) -> Employee:
        return await self.stores.employees.require(employee_id)

    async def find_by_code(self, employee_code: str) -> Optional[Employee]:
        matches = await self.stores.employees.list(employee_code=str(employee_code).strip())
        return matches[0] if matches else None

    async def create_employee(self, data: Mapping[str, Any]) -> Employee:
        require_fields(data, "name", "employee_code")
        fields = await self._clean(data)
        fields.setdefault("pay_status", PayStatus.UNPAID)

        employee = await self.stores.employees.create(fields)
        logger.info("Сотрудник создан", employee_id=employee.id, employee_code=employee.employee_code)
        return employee

    async def update_employee(self, employee_id: str, data: Mapping[str, Any]) -> Employee:
        await self.stores.employees.require(employee_id)
        fields = await self._clean(data, partial=True)
        employee = await self.stores.employees.update(employee_id, fields)
        logger.info("Сотрудник обновлен", employee_id=employee_id, fields=list(fields))
        return employee

    async def set_pay_status(self, employee_id: str, status: str) -> Employee:
        pay_status = parse_choice(status, "pay_status", PayStatus.ALL)
        return await self.stores.employees.update(employee_id, {"pay_status": pay_status})

    async def delete_employee(self, employee_id: str) -> bool:
        await self.stores.employees.require(employee_id)
        references = await self.stores.reference_counts(
            advances={"employee_id": employee_id},
            payrolls={"employee_id": employee_id},
        )
        if references:
            raise ReferenceInUseError("Сотрудник", employee_id, references)

        await self.stores.employees.delete(employee_id)
        logger.info("Сотрудник удален", employee_id=employee_id)
        return True

    async def _clean(self, data: Mapping[str, Any], partial: bool = False) -> Dict[str, Any]:
        fields: Dict[str, Any] = {}
        for name in _TEXT_FIELDS:
            if name in data or not partial:
                fields[name] = clean_text(data.get(name))
        if partial:
            for required in ("name", "employee_code"):
                if required in fields and fields[required] is None:
                    require_fields(fields, required)

        if "date_of_join" in data or not partial:
            value = data.get("date_of_join")
            fields["date_of_join"] = parse_date(value, "date_of_join") if clean_text(value) else None

        if "pay_status" in data:
            fields["pay_status"] = parse_choice(data.get("pay_status"), "pay_status", PayStatus.ALL,
                                                default=PayStatus.UNPAID)

        if "project_id" in data or not partial:
            project_id = clean_text(data.get("project_id"))
            if project_id and project_id.lower() == "unassigned":
                project_id = None
            if project_id and await self.stores.projects.get(project_id) is None:
                raise ReferenceNotFoundError("Проект", project_id, field="project_id")
            fields["project_id"] = project_id

        return fields
