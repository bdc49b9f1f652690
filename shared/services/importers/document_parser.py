"""Эвристический разбор текста документов в строки импорта."""

from __future__ import annotations

import re
from datetime import date
from typing import Any, Callable, Dict, List, Optional

from core.logging.logger import logger
from shared.services.errors import ValidationError
from shared.services.importers.base import DocumentParser, ImportEntity, ParsedDocument
from shared.services.importers.readers import normalize_header

_WHITESPACE = re.compile(r"\s+")


class WhitespaceDocumentParser(DocumentParser):
    """
    Позиционный разбор строк, разделенных пробелами (текст после OCR).

    employees: Имя Фамилия Код Специальность
    payroll:   Код Часы ...
    advances:  Код Сумма Комментарий...
    expenses:  Категория Сумма Примечание...

    Разбор приблизительный: строки с недостаточным числом полей
    отбрасываются и учитываются в skipped.
    """

    def __init__(self, today: Optional[Callable[[], date]] = None):
        self._today = today or date.today

    def parse(self, text: str, entity_type: str) -> ParsedDocument:
        handler = {
            ImportEntity.EMPLOYEES: self._employee,
            ImportEntity.PAYROLL: self._payroll,
            ImportEntity.ADVANCES: self._advance,
            ImportEntity.EXPENSES: self._expense,
        }.get(entity_type)
        if handler is None:
            raise ValidationError(f"Разбор документа не поддерживает '{entity_type}'", field="entity_type")

        document = ParsedDocument()
        today = self._today()
        for line in (text or "").splitlines():
            if not line.strip():
                continue
            parts = _WHITESPACE.split(line.strip())
            row = handler(parts, today) if len(parts) >= 2 else None
            if row is None:
                document.skipped += 1
            else:
                document.rows.append(row)

        logger.debug(
            "Document text parsed",
            entity_type=entity_type,
            rows=len(document.rows),
            skipped=document.skipped,
        )
        return document

    @staticmethod
    def _employee(parts: List[str], today: date) -> Optional[Dict[str, Any]]:
        if len(parts) < 4:
            return None
        return {
            "name": f"{parts[0]} {parts[1]}",
            "employee_code": parts[2],
            "role": parts[3],
            "date_of_join": today,
        }

    @staticmethod
    def _payroll(parts: List[str], today: date) -> Optional[Dict[str, Any]]:
        if len(parts) < 3:
            return None
        return {
            "employee_code": parts[0],
            "hours_worked": parts[1],
            "month": today.replace(day=1),
        }

    @staticmethod
    def _advance(parts: List[str], today: date) -> Optional[Dict[str, Any]]:
        if len(parts) < 3:
            return None
        return {
            "employee_code": parts[0],
            "amount": parts[1],
            "note": " ".join(parts[2:]),
            "date": today,
        }

    @staticmethod
    def _expense(parts: List[str], today: date) -> Optional[Dict[str, Any]]:
        if len(parts) < 3:
            return None
        return {
            "category": parts[0],
            "amount": parts[1],
            "notes": " ".join(parts[2:]),
            "date": today,
        }


class DelimitedDocumentParser(DocumentParser):
    """Строки с полями через разделитель (текстовый слой PDF)."""

    LAYOUTS: Dict[str, tuple] = {
        ImportEntity.EMPLOYEES: ("name", "role", "nationality", "iqama_number", "phone_number"),
        ImportEntity.PROJECTS: ("name", "budget", "status"),
        ImportEntity.PAYROLL: ("employee_code", "project", "month", "hours_worked", "rate", "status"),
        ImportEntity.ADVANCES: ("employee_code", "amount", "date", "note"),
        ImportEntity.EXPENSES: ("project", "category", "amount", "date", "payment_method", "paid_by", "notes"),
    }

    def __init__(self, delimiter: str = ","):
        self.delimiter = delimiter

    def parse(self, text: str, entity_type: str) -> ParsedDocument:
        layout = self.LAYOUTS.get(entity_type)
        if layout is None:
            raise ValidationError(f"Разбор документа не поддерживает '{entity_type}'", field="entity_type")

        document = ParsedDocument()
        lines = [line for line in (text or "").splitlines() if line.strip()]
        for index, line in enumerate(lines):
            values = [value.strip() for value in line.split(self.delimiter)]
            if index == 0 and self._is_header(values, layout):
                continue
            if not values[0]:
                document.skipped += 1
                continue
            document.rows.append({name: value for name, value in zip(layout, values) if value})
        return document

    @staticmethod
    def _is_header(values: List[str], layout: tuple) -> bool:
        names = [normalize_header(value) for value in values if value]
        return bool(names) and all(name in layout for name in names)
