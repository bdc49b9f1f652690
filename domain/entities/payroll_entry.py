"""Модель записи начисления."""

from sqlalchemy import Column, String, Numeric, Date, DateTime
from sqlalchemy.sql import func
from domain.entities.base import Base, generate_id


class PayrollStatus:
    """Статусы начисления."""

    PAID = "Paid"
    UNPAID = "Unpaid"

    ALL = (PAID, UNPAID)


class PayrollEntry(Base):
    """Запись начисления зарплаты за месяц."""

    __tablename__ = "payroll_entries"

    id = Column(String(36), primary_key=True, default=generate_id)
    employee_id = Column(String(36), nullable=False, index=True)
    project_id = Column(String(36), nullable=True, index=True)

    # Первое число месяца
    month = Column(Date, nullable=False, index=True)

    # Рабочее время и расчет
    hours_worked = Column(Numeric(10, 2), nullable=False, default=0)
    rate = Column(Numeric(10, 2), nullable=False, default=0)
    gross_pay = Column(Numeric(12, 2), nullable=False, default=0)  # hours_worked * rate
    net_pay = Column(Numeric(12, 2), nullable=False, default=0)  # gross_pay - авансы, может быть < 0

    status = Column(String(20), default=PayrollStatus.UNPAID, nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self) -> str:
        return f"<PayrollEntry(id={self.id}, employee_id={self.employee_id}, net_pay={self.net_pay})>"
