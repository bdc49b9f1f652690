"""Типы импорта и интерфейс разбора текста документов."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


class ImportEntity:
    """Сущности, которые можно импортировать."""

    EMPLOYEES = "employees"
    PROJECTS = "projects"
    PAYROLL = "payroll"
    ADVANCES = "advances"
    EXPENSES = "expenses"

    ALL = (EMPLOYEES, PROJECTS, PAYROLL, ADVANCES, EXPENSES)
    # Разбор отсканированных документов
    SCANNED = (EMPLOYEES, PAYROLL, ADVANCES, EXPENSES)


@dataclass
class ParsedDocument:
    """Строки, извлеченные из текста, и число отброшенных строк текста."""

    rows: List[Dict[str, Any]] = field(default_factory=list)
    skipped: int = 0


@dataclass
class ImportResult:
    """Итог импорта: сколько строк записано, отклонено и почему."""

    entity_type: str
    total: int = 0
    succeeded: int = 0
    skipped: int = 0  # ошибки валидации и неизвестные ссылки
    failed: int = 0  # ошибки хранилища
    parser_skipped: int = 0  # строки текста, которые парсер не смог разобрать
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    created_ids: List[str] = field(default_factory=list)
    ocr_confidence: Optional[float] = None

    @property
    def rejected(self) -> int:
        return self.skipped + self.failed + self.parser_skipped

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entity_type": self.entity_type,
            "total": self.total,
            "succeeded": self.succeeded,
            "skipped": self.skipped,
            "failed": self.failed,
            "parser_skipped": self.parser_skipped,
            "rejected": self.rejected,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "created_ids": list(self.created_ids),
            "ocr_confidence": self.ocr_confidence,
        }


class DocumentParser(ABC):
    """Разбор распознанного текста в строки для импорта."""

    @abstractmethod
    def parse(self, text: str, entity_type: str) -> ParsedDocument:
        """Разобрать текст; строки, которые не подошли, учитываются в skipped."""
        ...
