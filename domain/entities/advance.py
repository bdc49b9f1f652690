"""Модель аванса."""

from sqlalchemy import Column, String, Numeric, Date, DateTime, Text
from sqlalchemy.sql import func
from domain.entities.base import Base, generate_id


class Advance(Base):
    """Аванс, выданный сотруднику до расчета зарплаты."""

    __tablename__ = "advances"

    id = Column(String(36), primary_key=True, default=generate_id)
    employee_id = Column(String(36), nullable=False, index=True)

    amount = Column(Numeric(12, 2), nullable=False)
    note = Column(Text, nullable=True)
    date = Column(Date, nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self) -> str:
        return f"<Advance(id={self.id}, employee_id={self.employee_id}, amount={self.amount})>"
