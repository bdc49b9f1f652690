"""Модель месячной ведомости по проекту."""

from sqlalchemy import Column, String, Numeric, Date, DateTime, JSON
from sqlalchemy.sql import func
from domain.entities.base import Base, generate_id


class Statement(Base):
    """Месячная ведомость: начисления, расходы, авансы и остаток бюджета."""

    __tablename__ = "statements"

    id = Column(String(36), primary_key=True, default=generate_id)
    project_id = Column(String(36), nullable=False, index=True)
    month = Column(Date, nullable=False, index=True)

    total_payroll = Column(Numeric(14, 2), nullable=False, default=0)
    total_expenses = Column(Numeric(14, 2), nullable=False, default=0)
    total_advances = Column(Numeric(14, 2), nullable=False, default=0)
    remaining_budget = Column(Numeric(14, 2), nullable=False, default=0)

    # [{"name": ..., "url": ..., "type": ..., "size": ...}]
    attachments = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self) -> str:
        return f"<Statement(id={self.id}, project_id={self.project_id}, month={self.month})>"
