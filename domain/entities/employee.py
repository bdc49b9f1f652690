"""Модель сотрудника."""

from sqlalchemy import Column, String, Date, DateTime
from sqlalchemy.sql import func
from domain.entities.base import Base, generate_id


class PayStatus:
    """Статусы оплаты."""

    PAID = "Paid"
    UNPAID = "Unpaid"

    ALL = (PAID, UNPAID)


class Employee(Base):
    """Сотрудник (рабочий на объекте)."""

    __tablename__ = "employees"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(255), nullable=False, index=True)
    employee_code = Column(String(100), nullable=False, index=True)  # Табельный номер из внешней системы
    iqama_number = Column(String(100), nullable=True)
    phone_number = Column(String(50), nullable=True)
    role = Column(String(100), nullable=True)  # Специальность, ключ для ставок проекта
    nationality = Column(String(100), nullable=True, index=True)
    date_of_join = Column(Date, nullable=True)

    # Назначение на проект (ссылка проверяется сервисом, не БД)
    project_id = Column(String(36), nullable=True, index=True)

    pay_status = Column(String(20), default=PayStatus.UNPAID, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self) -> str:
        return f"<Employee(id={self.id}, name='{self.name}', code='{self.employee_code}')>"
