"""Метка незавершенного пересчета начислений."""

from sqlalchemy import Column, String, Integer, DateTime, Text
from sqlalchemy.sql import func
from domain.entities.base import Base, generate_id


class PendingReconciliation(Base):
    """Сотрудник, чей net_pay мог устареть после сбоя пересчета."""

    __tablename__ = "pending_reconciliations"

    id = Column(String(36), primary_key=True, default=generate_id)
    employee_id = Column(String(36), nullable=False, unique=True, index=True)
    trigger = Column(String(50), nullable=False)  # 'advance_created', 'advance_deleted', ...
    reason = Column(Text, nullable=True)
    attempts = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self) -> str:
        return f"<PendingReconciliation(employee_id={self.employee_id}, attempts={self.attempts})>"
