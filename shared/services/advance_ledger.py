"""Сумма авансов по сотрудникам."""

from collections import defaultdict
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from core.logging.logger import logger
from domain.entities.advance import Advance
from shared.services.payroll_calculator import to_amount
from shared.services.record_store import RecordStore


class AdvanceLedger:
    """
    Проекция коллекции авансов в памяти.

    total_for() читает только загруженные записи. Перед пересчетом,
    результат которого сохраняется, вызывайте current_total(): он
    перечитывает авансы из хранилища.
    """

    def __init__(self, advance_store: Optional[RecordStore[Advance]] = None, advances: Iterable[Advance] = ()):
        self.advance_store = advance_store
        self._advances: List[Advance] = list(advances)

    @property
    def advances(self) -> List[Advance]:
        return list(self._advances)

    def load(self, advances: Iterable[Advance]) -> None:
        self._advances = list(advances)

    async def refresh(self) -> None:
        if self.advance_store is None:
            raise RuntimeError("AdvanceLedger без хранилища нельзя обновить")
        self._advances = await self.advance_store.list()
        logger.debug("Advance ledger refreshed", advances=len(self._advances))

    def total_for(self, employee_id) -> Decimal:
        """Сумма авансов сотрудника; 0 для неизвестного id."""
        if employee_id is None:
            return Decimal("0")
        return sum(
            (to_amount(advance.amount) for advance in self._advances if advance.employee_id == employee_id),
            Decimal("0"),
        )

    def totals_by_employee(self) -> Dict[str, Decimal]:
        totals: Dict[str, Decimal] = defaultdict(lambda: Decimal("0"))
        for advance in self._advances:
            totals[advance.employee_id] += to_amount(advance.amount)
        return dict(totals)

    async def current_total(self, employee_id) -> Decimal:
        await self.refresh()
        return self.total_for(employee_id)
