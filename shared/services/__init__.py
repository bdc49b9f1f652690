"""Shared services package."""

from .errors import (
    DocumentExtractionError,
    DuplicateSubmissionError,
    RecordNotFoundError,
    StoreError,
    ValidationError,
)
from .record_store import RecordStore, Stores
from .reconciliation_service import ReconciliationService
from .advance_service import AdvanceService
from .payroll_service import PayrollService

__all__ = [
    'DocumentExtractionError',
    'DuplicateSubmissionError',
    'RecordNotFoundError',
    'StoreError',
    'ValidationError',
    'RecordStore',
    'Stores',
    'ReconciliationService',
    'AdvanceService',
    'PayrollService',
]
