"""Журнал изменений записей."""

from sqlalchemy import Column, String, DateTime, JSON
from sqlalchemy.sql import func
from domain.entities.base import Base, generate_id


class ActivityLog(Base):
    """Запись журнала: какая таблица, какое действие, какая строка."""

    __tablename__ = "activity_logs"

    id = Column(String(36), primary_key=True, default=generate_id)
    table_name = Column(String(100), nullable=False, index=True)
    action = Column(String(20), nullable=False)  # 'create', 'update', 'delete'
    row_id = Column(String(36), nullable=False, index=True)
    details = Column(JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<ActivityLog(table='{self.table_name}', action='{self.action}', row_id={self.row_id})>"
