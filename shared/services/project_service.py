"""Сервис для работы с проектами и ставками по специальностям."""

from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional

from core.logging.logger import logger
from domain.entities.project import Project, ProjectStatus
from shared.services.errors import ReferenceInUseError, ValidationError
from shared.services.record_store import Stores
from shared.services.validators import clean_text, parse_choice, parse_decimal, require_fields


class ProjectService:
    """Сервис для учета проектов."""

    def __init__(self, stores: Stores):
        self.stores = stores

    async def list_projects(self, search: Optional[str] = None) -> List[Project]:
        """Проекты с поиском по названию или статусу."""
        projects = await self.stores.projects.list()
        if search:
            needle = search.strip().lower()
            projects = [
                p for p in projects
                if needle in (p.name or "").lower() or needle in (p.status or "").lower()
            ]
        return projects

    async def get_project(self, project_id: str) -> Project:
        return await self.stores.projects.require(project_id)

    async def find_by_name(self, name: str) -> Optional[Project]:
        needle = str(name).strip().lower()
        for project in await self.stores.projects.list():
            if (project.name or "").strip().lower() == needle:
                return project
        return None

    async def create_project(self, data: Mapping[str, Any]) -> Project:
        require_fields(data, "name")
        fields = self._clean(data)
        fields.setdefault("budget", Decimal("0"))
        fields.setdefault("status", ProjectStatus.ACTIVE)
        fields.setdefault("role_rates", {})

        project = await self.stores.projects.create(fields)
        logger.info("Проект создан", project_id=project.id, name=project.name)
        return project

    async def update_project(self, project_id: str, data: Mapping[str, Any]) -> Project:
        await self.stores.projects.require(project_id)
        fields = self._clean(data)
        if "name" in fields and not fields["name"]:
            raise ValidationError("Поле name обязательно", field="name")
        return await self.stores.projects.update(project_id, fields)

    async def set_role_rate(self, project_id: str, role: str, rate: Any) -> Project:
        role = clean_text(role)
        if not role:
            raise ValidationError("Поле role обязательно", field="role")
        amount = parse_decimal(rate, "rate")
        if amount <= 0:
            raise ValidationError("Ставка должна быть больше нуля", field="rate")

        project = await self.stores.projects.require(project_id)
        role_rates = dict(project.role_rates or {})
        role_rates[role] = float(amount)
        return await self.stores.projects.update(project_id, {"role_rates": role_rates})

    async def remove_role_rate(self, project_id: str, role: str) -> Project:
        project = await self.stores.projects.require(project_id)
        role_rates = dict(project.role_rates or {})
        role_rates.pop(role, None)
        return await self.stores.projects.update(project_id, {"role_rates": role_rates})

    async def delete_project(self, project_id: str) -> bool:
        await self.stores.projects.require(project_id)
        references = await self.stores.reference_counts(
            employees={"project_id": project_id},
            payrolls={"project_id": project_id},
            expenses={"project_id": project_id},
        )
        if references:
            raise ReferenceInUseError("Проект", project_id, references)

        await self.stores.projects.delete(project_id)
        logger.info("Проект удален", project_id=project_id)
        return True

    def _clean(self, data: Mapping[str, Any]) -> Dict[str, Any]:
        fields: Dict[str, Any] = {}
        if "name" in data:
            fields["name"] = clean_text(data.get("name"))
        if "budget" in data:
            fields["budget"] = parse_decimal(data.get("budget"), "budget")
        if "status" in data:
            fields["status"] = parse_choice(data.get("status"), "status", ProjectStatus.ALL,
                                            default=ProjectStatus.ACTIVE)
        if "role_rates" in data:
            role_rates = data.get("role_rates") or {}
            if not isinstance(role_rates, Mapping):
                raise ValidationError("role_rates должен быть словарем", field="role_rates")
            fields["role_rates"] = {
                str(role).strip(): float(parse_decimal(rate, f"role_rates.{role}"))
                for role, rate in role_rates.items()
                if str(role).strip()
            }
        return fields
