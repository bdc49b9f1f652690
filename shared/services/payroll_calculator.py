"""Расчет начислений: gross = часы * ставка, net = gross - авансы."""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional

CENT = Decimal("0.01")


def to_amount(value: Any) -> Decimal:
    """Число в Decimal; None, пустые, нечисловые и бесконечные значения -> 0."""
    if value is None or isinstance(value, bool):
        return Decimal("0")
    if isinstance(value, Decimal):
        return value if value.is_finite() else Decimal("0")
    try:
        if isinstance(value, str):
            value = value.strip().replace(",", "")
            if not value:
                return Decimal("0")
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return Decimal("0")
    return amount if amount.is_finite() else Decimal("0")


def gross_pay(hours_worked: Any, rate: Any) -> Decimal:
    """Начислено до удержаний. Границы проверяет вызывающий код."""
    return (to_amount(hours_worked) * to_amount(rate)).quantize(CENT, rounding=ROUND_HALF_UP)


def net_pay(gross: Any, advance_total: Any) -> Decimal:
    """К выплате. Отрицательный результат не обрезается: авансы могут превышать начисление."""
    return (to_amount(gross) - to_amount(advance_total)).quantize(CENT, rounding=ROUND_HALF_UP)


def resolve_rate(explicit_rate: Any, project=None, role: Optional[str] = None) -> Decimal:
    """Явная ставка, иначе ставка проекта для специальности, иначе 0."""
    if explicit_rate is not None and not (isinstance(explicit_rate, str) and not explicit_rate.strip()):
        rate = to_amount(explicit_rate)
        if rate > 0 or project is None:
            return rate
    if project is not None:
        project_rate = project.rate_for_role(role)
        if project_rate is not None:
            return to_amount(project_rate)
    return Decimal("0")
