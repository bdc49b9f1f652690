"""Проверка и нормализация полей форм и строк импорта."""

from __future__ import annotations

import math
import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Mapping, Optional

from shared.services.errors import ValidationError

_MONTH_RE = re.compile(r"^(\d{4})-(\d{1,2})$")


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and not value.strip()


def require_fields(data: Mapping[str, Any], *fields: str) -> None:
    """Все перечисленные поля должны быть заполнены."""
    for field in fields:
        if is_blank(data.get(field)):
            raise ValidationError(f"Поле {field} обязательно", field=field)


def clean_text(value: Any) -> Optional[str]:
    if is_blank(value):
        return None
    return str(value).strip()


def parse_decimal(value: Any, field: str, *, allow_negative: bool = False) -> Decimal:
    """Денежная сумма или количество часов."""
    if is_blank(value):
        raise ValidationError(f"Поле {field} обязательно", field=field)
    if isinstance(value, bool):
        raise ValidationError(f"Поле {field} должно быть числом", field=field)
    try:
        if isinstance(value, str):
            value = value.strip().replace(",", "")
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"Поле {field} должно быть числом", field=field)
    if not amount.is_finite():
        raise ValidationError(f"Поле {field} должно быть конечным числом", field=field)
    if amount < 0 and not allow_negative:
        raise ValidationError(f"Поле {field} не может быть отрицательным", field=field)
    return amount


def parse_date(value: Any, field: str, *, default: Optional[date] = None) -> date:
    """Дата из date/datetime/ISO-строки."""
    if is_blank(value):
        if default is not None:
            return default
        raise ValidationError(f"Поле {field} обязательно", field=field)
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    # pandas.Timestamp и подобные
    if hasattr(value, "to_pydatetime"):
        return value.to_pydatetime().date()
    text = str(value).strip()
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        pass
    for fmt in ("%d/%m/%Y", "%d.%m.%Y", "%m/%d/%Y"):
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    raise ValidationError(f"Поле {field}: неверный формат даты '{text}'", field=field)


def first_of_month(value: Any, field: str = "month") -> date:
    """Месяц начисления: 'YYYY-MM', дата или datetime -> первое число месяца."""
    if isinstance(value, str):
        match = _MONTH_RE.match(value.strip())
        if match:
            year, month = int(match.group(1)), int(match.group(2))
            if not 1 <= month <= 12:
                raise ValidationError(f"Поле {field}: неверный месяц '{value}'", field=field)
            return date(year, month, 1)
    parsed = parse_date(value, field)
    return parsed.replace(day=1)


def parse_choice(value: Any, field: str, choices: Iterable[str], *, default: Optional[str] = None) -> str:
    """Значение из фиксированного набора (регистр не важен)."""
    if is_blank(value):
        if default is not None:
            return default
        raise ValidationError(f"Поле {field} обязательно", field=field)
    text = str(value).strip()
    for choice in choices:
        if choice.lower() == text.lower():
            return choice
    raise ValidationError(f"Поле {field}: недопустимое значение '{text}'", field=field)


def month_bounds(month: date) -> tuple[date, date]:
    """[первое число, первое число следующего месяца)."""
    start = month.replace(day=1)
    if start.month == 12:
        end = date(start.year + 1, 1, 1)
    else:
        end = date(start.year, start.month + 1, 1)
    return start, end
