"""Форматирование сумм и дат для выгрузок."""

from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Optional

from core.config.settings import settings


def format_currency(value: Any, currency: Optional[str] = None) -> str:
    """1234.5 -> 'SAR 1,234.50'."""
    if value is None or value == "":
        value = 0
    amount = Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return f"{currency or settings.currency} {amount:,.2f}"


def format_date(value: Any) -> str:
    """Дата в виде 'Jan 15, 2024'; пустое значение -> ''."""
    if value is None or value == "":
        return ""
    if isinstance(value, str):
        value = date.fromisoformat(value[:10])
    if isinstance(value, datetime):
        value = value.date()
    return value.strftime("%b %d, %Y")


def format_month(value: Any) -> str:
    """Месяц в виде 'January 2024'."""
    if value is None or value == "":
        return ""
    if isinstance(value, str):
        value = date.fromisoformat(value[:7] + "-01")
    return value.strftime("%B %Y")


def format_number(value: Any) -> str:
    if value is None or value == "":
        return ""
    return f"{Decimal(str(value)).normalize():f}"
