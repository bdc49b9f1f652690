"""Исключения сервисного слоя."""

from typing import Any, Dict, Optional


class ValidationError(ValueError):
    """Поле отсутствует или некорректно; запись не выполнялась."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class ReferenceNotFoundError(ValidationError):
    """Ссылка на несуществующую запись (сотрудник, проект)."""

    def __init__(self, entity: str, record_id: Any, field: Optional[str] = None):
        super().__init__(f"{entity} {record_id} не найден", field=field)
        self.entity = entity
        self.record_id = record_id


class ReferenceInUseError(ValidationError):
    """Запись нельзя удалить, на нее ссылаются другие записи."""

    def __init__(self, entity: str, record_id: Any, references: Dict[str, int]):
        details = ", ".join(f"{name}: {count}" for name, count in references.items())
        super().__init__(f"{entity} {record_id} используется ({details})")
        self.entity = entity
        self.record_id = record_id
        self.references = references


class StoreError(Exception):
    """Хранилище отклонило операцию или не смогло ее выполнить."""

    def __init__(self, message: str, operation: Optional[str] = None, table: Optional[str] = None):
        super().__init__(message)
        self.operation = operation
        self.table = table


class RecordNotFoundError(StoreError):
    """Запись с таким идентификатором отсутствует."""

    def __init__(self, table: str, record_id: Any):
        super().__init__(f"Запись {record_id} в {table} не найдена", operation="get", table=table)
        self.record_id = record_id


class DuplicateSubmissionError(Exception):
    """То же действие уже выполняется."""

    def __init__(self, action_key: str):
        super().__init__(f"Действие {action_key} уже выполняется")
        self.action_key = action_key


class DocumentExtractionError(Exception):
    """Не удалось извлечь текст из документа."""
