"""Пересчет net_pay начислений после изменения авансов или часов/ставки."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional

from core.config.settings import settings
from core.logging.logger import logger
from core.utils.keyed_lock import KeyedLock, employee_locks
from domain.entities.payroll_entry import PayrollEntry
from shared.services.advance_ledger import AdvanceLedger
from shared.services.errors import StoreError
from shared.services.payroll_calculator import gross_pay, net_pay, to_amount
from shared.services.record_store import Stores


class ReconciliationTrigger:
    """Причины пересчета."""

    ADVANCE_CREATED = "advance_created"
    ADVANCE_UPDATED = "advance_updated"
    ADVANCE_DELETED = "advance_deleted"
    PAYROLL_EDITED = "payroll_edited"
    RETRY = "retry"


class ReconciliationPolicy:
    """Какие начисления сотрудника пересчитывать."""

    ALL = "all"
    LATEST_MONTH = "latest_month"


class StepStatus:
    OK = "ok"
    FAILED = "failed"
    SKIPPED = "skipped"


PARTIAL_FAILURE_WARNING = (
    "Изменение сохранено, но пересчет начислений не выполнен. Повторите пересчет."
)


@dataclass
class ReconciliationStep:
    name: str
    status: str
    payroll_id: Optional[str] = None
    error: Optional[str] = None
    attempts: int = 0


@dataclass
class ReconciliationResult:
    """Итог саги: шаги, обновленные и неудавшиеся начисления."""

    employee_id: str
    trigger: str
    advance_total: Optional[Decimal] = None
    steps: List[ReconciliationStep] = field(default_factory=list)
    updated_payroll_ids: List[str] = field(default_factory=list)
    failed_payroll_ids: List[str] = field(default_factory=list)
    pending_marker_saved: Optional[bool] = None

    @property
    def partial_failure(self) -> bool:
        return any(step.status == StepStatus.FAILED for step in self.steps)

    @property
    def ok(self) -> bool:
        return not self.partial_failure

    @property
    def warning(self) -> Optional[str]:
        return PARTIAL_FAILURE_WARNING if self.partial_failure else None

    def add_step(self, name: str, status: str, **kwargs: Any) -> ReconciliationStep:
        step = ReconciliationStep(name=name, status=status, **kwargs)
        self.steps.append(step)
        return step

    def to_dict(self) -> Dict[str, Any]:
        return {
            "employee_id": self.employee_id,
            "trigger": self.trigger,
            "advance_total": float(self.advance_total) if self.advance_total is not None else None,
            "partial_failure": self.partial_failure,
            "warning": self.warning,
            "updated_payroll_ids": list(self.updated_payroll_ids),
            "failed_payroll_ids": list(self.failed_payroll_ids),
            "pending_marker_saved": self.pending_marker_saved,
            "steps": [step.__dict__.copy() for step in self.steps],
        }


class ReconciliationService:
    """
    Поддерживает net_pay = gross_pay - сумма авансов сотрудника.

    Порядок: запись аванса уже подтверждена хранилищем, затем авансы
    перечитываются, затем пишутся начисления. Каждая запись начисления
    повторяется до max_attempts раз; если шаг так и не удался, сотрудник
    помечается PendingReconciliation и retry_pending() доводит пересчет.
    """

    def __init__(
        self,
        stores: Stores,
        ledger: Optional[AdvanceLedger] = None,
        *,
        policy: Optional[str] = None,
        max_attempts: Optional[int] = None,
        retry_delay: Optional[float] = None,
        locks: Optional[KeyedLock] = None,
    ):
        self.stores = stores
        self.ledger = ledger or AdvanceLedger(stores.advances)
        self.policy = policy or settings.reconciliation_policy
        self.max_attempts = max(1, max_attempts or settings.reconciliation_max_attempts)
        self.retry_delay = settings.reconciliation_retry_delay if retry_delay is None else retry_delay
        self.locks = locks or employee_locks

    async def reconcile_employee(self, employee_id: str, *, trigger: str) -> ReconciliationResult:
        """Пересчитать и сохранить net_pay начислений сотрудника."""
        async with self.locks.hold(employee_id):
            return await self._reconcile(employee_id, trigger)

    async def _reconcile(self, employee_id: str, trigger: str) -> ReconciliationResult:
        result = ReconciliationResult(employee_id=employee_id, trigger=trigger)

        try:
            result.advance_total = await self.ledger.current_total(employee_id)
            result.add_step("refresh_ledger", StepStatus.OK)
        except StoreError as e:
            result.add_step("refresh_ledger", StepStatus.FAILED, error=str(e))
            await self._mark_pending(result, reason=str(e))
            return result

        try:
            payrolls = await self.stores.payrolls.list(employee_id=employee_id)
            result.add_step("load_payrolls", StepStatus.OK)
        except StoreError as e:
            result.add_step("load_payrolls", StepStatus.FAILED, error=str(e))
            await self._mark_pending(result, reason=str(e))
            return result

        # План строится до записей: откат сессии после сбоя сбрасывает загруженные объекты
        plan = [
            (payroll.id, net_pay(payroll.gross_pay, result.advance_total), payroll.net_pay)
            for payroll in self.select_targets(payrolls)
        ]
        for payroll_id, new_net, stored_net in plan:
            if stored_net is not None and to_amount(stored_net) == new_net:
                result.add_step("update_payroll", StepStatus.SKIPPED, payroll_id=payroll_id)
                continue

            step = result.add_step("update_payroll", StepStatus.OK, payroll_id=payroll_id)
            error = await self._write_with_retry(step, payroll_id, {"net_pay": new_net})
            if error is None:
                result.updated_payroll_ids.append(payroll_id)
            else:
                step.status = StepStatus.FAILED
                step.error = error
                result.failed_payroll_ids.append(payroll_id)

        if result.partial_failure:
            await self._mark_pending(result, reason="; ".join(
                step.error for step in result.steps if step.error
            ))
        else:
            await self._clear_pending(result)

        logger.info(
            "Payroll reconciled",
            employee_id=employee_id,
            trigger=trigger,
            advance_total=float(result.advance_total),
            updated=len(result.updated_payroll_ids),
            failed=len(result.failed_payroll_ids),
        )
        return result

    async def recompute_payroll(self, payroll: PayrollEntry, changes: Mapping[str, Any]) -> PayrollEntry:
        """
        Правка часов/ставки/сотрудника: gross, затем net по текущим авансам.

        Одна запись в хранилище; StoreError пробрасывается вызывающему коду.
        """
        hours = changes.get("hours_worked", payroll.hours_worked)
        rate = changes.get("rate", payroll.rate)
        employee_id = changes.get("employee_id", payroll.employee_id)

        gross = gross_pay(hours, rate)
        fields = dict(changes)
        fields["gross_pay"] = gross

        async with self.locks.hold(payroll.employee_id, employee_id):
            fields["net_pay"] = net_pay(gross, await self.ledger.current_total(employee_id))
            updated = await self.stores.payrolls.update(payroll.id, fields)
        logger.info(
            "Payroll recalculated",
            payroll_id=payroll.id,
            employee_id=employee_id,
            gross_pay=float(gross),
            net_pay=float(fields["net_pay"]),
        )
        return updated

    async def retry_pending(self) -> List[ReconciliationResult]:
        """Повторить пересчет для всех помеченных сотрудников."""
        markers = await self.stores.pending_reconciliations.list()
        results = []
        for marker in markers:
            results.append(await self.reconcile_employee(marker.employee_id, trigger=ReconciliationTrigger.RETRY))
        logger.info(
            "Pending reconciliations retried",
            total=len(results),
            still_failing=sum(1 for r in results if r.partial_failure),
        )
        return results

    def select_targets(self, payrolls: List[PayrollEntry]) -> List[PayrollEntry]:
        if self.policy == ReconciliationPolicy.LATEST_MONTH and payrolls:
            latest = max(p.month for p in payrolls)
            return [p for p in payrolls if p.month == latest]
        return list(payrolls)

    async def _write_with_retry(self, step: ReconciliationStep, payroll_id: str, fields: Dict[str, Any]) -> Optional[str]:
        last_error: Optional[str] = None
        for attempt in range(1, self.max_attempts + 1):
            step.attempts = attempt
            try:
                await self.stores.payrolls.update(payroll_id, fields)
                return None
            except StoreError as e:
                last_error = str(e)
                logger.warning(
                    "Payroll update failed, retrying",
                    payroll_id=payroll_id,
                    attempt=attempt,
                    max_attempts=self.max_attempts,
                    error=last_error,
                )
                if attempt < self.max_attempts and self.retry_delay:
                    await asyncio.sleep(self.retry_delay)
        return last_error

    async def _mark_pending(self, result: ReconciliationResult, reason: str) -> None:
        store = self.stores.pending_reconciliations
        try:
            existing = await store.list(employee_id=result.employee_id)
            if existing:
                marker = existing[0]
                await store.update(marker.id, {
                    "trigger": result.trigger,
                    "reason": reason,
                    "attempts": (marker.attempts or 0) + 1,
                })
            else:
                await store.create({
                    "employee_id": result.employee_id,
                    "trigger": result.trigger,
                    "reason": reason,
                    "attempts": 1,
                })
            result.add_step("mark_pending", StepStatus.OK)
            result.pending_marker_saved = True
        except StoreError as e:
            # Шаг не помечается FAILED: partial_failure уже выставлен
            result.add_step("mark_pending", StepStatus.SKIPPED, error=str(e))
            result.pending_marker_saved = False
            logger.error(
                "Pending reconciliation marker not saved",
                employee_id=result.employee_id,
                trigger=result.trigger,
                error=str(e),
            )

        logger.warning(
            "Payroll reconciliation incomplete",
            employee_id=result.employee_id,
            trigger=result.trigger,
            reason=reason,
        )

    async def _clear_pending(self, result: ReconciliationResult) -> None:
        store = self.stores.pending_reconciliations
        try:
            for marker in await store.list(employee_id=result.employee_id):
                await store.delete(marker.id)
                result.add_step("clear_pending", StepStatus.OK)
        except StoreError as e:
            result.add_step("clear_pending", StepStatus.SKIPPED, error=str(e))
            logger.warning("Pending reconciliation marker not cleared", employee_id=result.employee_id, error=str(e))
