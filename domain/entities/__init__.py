"""
Модуль доменных сущностей Dalal
"""

from .base import Base
from .employee import Employee, PayStatus
from .project import Project, ProjectStatus
from .advance import Advance
from .payroll_entry import PayrollEntry, PayrollStatus
from .expense import Expense, PaymentMethod
from .statement import Statement
from .activity_log import ActivityLog
from .pending_reconciliation import PendingReconciliation

__all__ = [
    "Base",
    "Employee",
    "PayStatus",
    "Project",
    "ProjectStatus",
    "Advance",
    "PayrollEntry",
    "PayrollStatus",
    "Expense",
    "PaymentMethod",
    "Statement",
    "ActivityLog",
    "PendingReconciliation",
]
