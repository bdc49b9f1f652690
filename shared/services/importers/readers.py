"""Чтение загруженных файлов: таблицы через pandas, текст PDF через pypdf."""

from __future__ import annotations

import re
from io import BytesIO
from pathlib import PurePath
from typing import Any, Dict, List

import pandas as pd
from pypdf import PdfReader
from pypdf.errors import PyPdfError

from shared.services.errors import DocumentExtractionError, ValidationError

SPREADSHEET_SUFFIXES = (".xlsx", ".xls")
CSV_SUFFIXES = (".csv",)
PDF_SUFFIXES = (".pdf",)

# Заголовки столбцов выгрузок и шаблонов -> имена полей
HEADER_ALIASES: Dict[str, str] = {
    "employee": "employee_code",
    "employee_id": "employee_code",
    "employee_code": "employee_code",
    "code": "employee_code",
    "name": "name",
    "employee_name": "employee_name",
    "position": "role",
    "role": "role",
    "trade": "role",
    "nationality": "nationality",
    "iqama": "iqama_number",
    "iqama_number": "iqama_number",
    "phone": "phone_number",
    "phone_number": "phone_number",
    "date_of_join": "date_of_join",
    "joined": "date_of_join",
    "project": "project",
    "project_name": "project",
    "project_id": "project",
    "month": "month",
    "hours": "hours_worked",
    "hours_worked": "hours_worked",
    "rate": "rate",
    "status": "status",
    "amount": "amount",
    "date": "date",
    "note": "note",
    "description": "note",
    "category": "category",
    "payment_method": "payment_method",
    "method": "payment_method",
    "paid_by": "paid_by",
    "notes": "notes",
    "budget": "budget",
}

_NON_WORD = re.compile(r"[^a-z0-9]+")


def normalize_header(header: Any) -> str:
    """'Hours Worked' -> 'hours_worked'; неизвестные заголовки остаются в snake_case."""
    key = _NON_WORD.sub("_", str(header).strip().lower()).strip("_")
    return HEADER_ALIASES.get(key, key)


def file_suffix(filename: str) -> str:
    return PurePath(filename or "").suffix.lower()


def read_table(filename: str, data: bytes) -> List[Dict[str, Any]]:
    """Строки первого листа (или CSV) как словари с нормализованными ключами."""
    suffix = file_suffix(filename)
    if suffix not in SPREADSHEET_SUFFIXES + CSV_SUFFIXES:
        raise ValidationError(f"Неподдерживаемый тип файла: {suffix or filename}", field="file")
    try:
        if suffix in SPREADSHEET_SUFFIXES:
            frame = pd.read_excel(BytesIO(data), sheet_name=0, dtype=object)
        else:
            frame = pd.read_csv(BytesIO(data), dtype=str, skipinitialspace=True)
    except (ValueError, OSError) as e:
        raise DocumentExtractionError(f"Не удалось прочитать {filename}: {e}") from e

    frame = frame.dropna(how="all")
    frame.columns = [normalize_header(column) for column in frame.columns]
    frame = frame.astype(object).where(pd.notna(frame), None)
    return frame.to_dict(orient="records")


def extract_pdf_pages(data: bytes) -> List[str]:
    """Текстовый слой каждой страницы PDF (пустая строка, если слоя нет)."""
    try:
        reader = PdfReader(BytesIO(data))
        return [page.extract_text() or "" for page in reader.pages]
    except PyPdfError as e:
        raise DocumentExtractionError(f"Не удалось прочитать PDF: {e}") from e
