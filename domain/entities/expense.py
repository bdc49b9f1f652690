"""Модель расхода по проекту."""

from sqlalchemy import Column, String, Numeric, Date, DateTime, Text
from sqlalchemy.sql import func
from domain.entities.base import Base, generate_id


class PaymentMethod:
    """Способы оплаты расхода."""

    CASH = "Cash"
    CARD = "Card"
    TRANSFER = "Transfer"

    ALL = (CASH, CARD, TRANSFER)


class Expense(Base):
    """Расход по проекту."""

    __tablename__ = "expenses"

    id = Column(String(36), primary_key=True, default=generate_id)
    project_id = Column(String(36), nullable=False, index=True)

    category = Column(String(100), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    date = Column(Date, nullable=False, index=True)
    payment_method = Column(String(20), default=PaymentMethod.CASH, nullable=False)
    paid_by = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self) -> str:
        return f"<Expense(id={self.id}, project_id={self.project_id}, amount={self.amount})>"
