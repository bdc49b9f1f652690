"""Модель проекта."""

from decimal import Decimal
from typing import Optional

from sqlalchemy import Column, String, Numeric, DateTime, JSON
from sqlalchemy.sql import func
from domain.entities.base import Base, generate_id


class ProjectStatus:
    """Статусы проекта."""

    ACTIVE = "Active"
    ON_HOLD = "On Hold"
    COMPLETED = "Completed"

    ALL = (ACTIVE, ON_HOLD, COMPLETED)


class Project(Base):
    """Строительный проект с бюджетом и ставками по специальностям."""

    __tablename__ = "projects"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(255), nullable=False, index=True)
    budget = Column(Numeric(14, 2), default=0, nullable=False)
    status = Column(String(20), default=ProjectStatus.ACTIVE, nullable=False, index=True)

    # {"Mason": 25, "Electrician": 30}; ключи не обязаны совпадать с ролями сотрудников
    role_rates = Column(JSON, nullable=False, default=dict)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self) -> str:
        return f"<Project(id={self.id}, name='{self.name}', status='{self.status}')>"

    def rate_for_role(self, role: Optional[str]) -> Optional[Decimal]:
        """Ставка для специальности или None."""
        if not role or not self.role_rates:
            return None
        rate = self.role_rates.get(role)
        if rate is None:
            return None
        return Decimal(str(rate))
