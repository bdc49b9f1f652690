"""Тесты саги пересчета начислений на моках хранилища."""

import asyncio
from datetime import date
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from core.utils.keyed_lock import KeyedLock
from domain.entities.advance import Advance
from domain.entities.payroll_entry import PayrollEntry
from shared.services.errors import StoreError
from shared.services.reconciliation_service import (
    PARTIAL_FAILURE_WARNING,
    ReconciliationPolicy,
    ReconciliationService,
    ReconciliationTrigger,
    StepStatus,
)


def _payroll(payroll_id, month, gross, net):
    return PayrollEntry(
        id=payroll_id,
        employee_id="e1",
        month=month,
        hours_worked=Decimal("100"),
        rate=Decimal("30"),
        gross_pay=Decimal(gross),
        net_pay=Decimal(net),
    )


def _service(mock_stores, *, advances=(), payrolls=(), policy=ReconciliationPolicy.ALL, max_attempts=3):
    mock_stores.advances.list = AsyncMock(return_value=list(advances))
    mock_stores.payrolls.list = AsyncMock(return_value=list(payrolls))
    return ReconciliationService(mock_stores, policy=policy, max_attempts=max_attempts, retry_delay=0)


class TestReconcileEmployee:
    """reconcile_employee: ledger -> начисления -> маркер."""

    @pytest.mark.asyncio
    async def test_updates_net_pay_from_fresh_ledger(self, mock_stores):
        service = _service(
            mock_stores,
            advances=[Advance(employee_id="e1", amount=Decimal("500")), Advance(employee_id="e2", amount=Decimal("9"))],
            payrolls=[_payroll("p1", date(2024, 1, 1), "3000", "3000")],
        )

        result = await service.reconcile_employee("e1", trigger=ReconciliationTrigger.ADVANCE_CREATED)

        assert result.ok
        assert result.advance_total == Decimal("500")
        assert result.updated_payroll_ids == ["p1"]
        mock_stores.payrolls.update.assert_awaited_once_with("p1", {"net_pay": Decimal("2500.00")})
        mock_stores.pending_reconciliations.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_unchanged_payroll_is_skipped(self, mock_stores):
        service = _service(
            mock_stores,
            advances=[Advance(employee_id="e1", amount=Decimal("500"))],
            payrolls=[_payroll("p1", date(2024, 1, 1), "3000", "2500")],
        )

        result = await service.reconcile_employee("e1", trigger=ReconciliationTrigger.ADVANCE_UPDATED)

        assert result.ok
        assert result.updated_payroll_ids == []
        assert [s.status for s in result.steps if s.name == "update_payroll"] == [StepStatus.SKIPPED]
        mock_stores.payrolls.update.assert_not_called()

    @pytest.mark.asyncio
    async def test_policy_all_updates_every_month(self, mock_stores):
        service = _service(
            mock_stores,
            advances=[Advance(employee_id="e1", amount=Decimal("100"))],
            payrolls=[
                _payroll("p1", date(2024, 1, 1), "1000", "1000"),
                _payroll("p2", date(2024, 2, 1), "2000", "2000"),
            ],
        )

        result = await service.reconcile_employee("e1", trigger=ReconciliationTrigger.ADVANCE_CREATED)

        assert result.updated_payroll_ids == ["p1", "p2"]
        mock_stores.payrolls.update.assert_any_await("p1", {"net_pay": Decimal("900.00")})
        mock_stores.payrolls.update.assert_any_await("p2", {"net_pay": Decimal("1900.00")})

    @pytest.mark.asyncio
    async def test_policy_latest_month_updates_only_latest(self, mock_stores):
        service = _service(
            mock_stores,
            advances=[Advance(employee_id="e1", amount=Decimal("100"))],
            payrolls=[
                _payroll("p1", date(2024, 1, 1), "1000", "1000"),
                _payroll("p2", date(2024, 2, 1), "2000", "2000"),
            ],
            policy=ReconciliationPolicy.LATEST_MONTH,
        )

        result = await service.reconcile_employee("e1", trigger=ReconciliationTrigger.ADVANCE_CREATED)

        assert result.updated_payroll_ids == ["p2"]
        mock_stores.payrolls.update.assert_awaited_once_with("p2", {"net_pay": Decimal("1900.00")})

    @pytest.mark.asyncio
    async def test_no_payrolls_is_ok(self, mock_stores):
        service = _service(mock_stores, advances=[Advance(employee_id="e1", amount=Decimal("100"))])

        result = await service.reconcile_employee("e1", trigger=ReconciliationTrigger.ADVANCE_DELETED)

        assert result.ok
        assert result.warning is None
        mock_stores.payrolls.update.assert_not_called()

    @pytest.mark.asyncio
    async def test_existing_marker_is_cleared_on_success(self, mock_stores):
        service = _service(mock_stores, payrolls=[_payroll("p1", date(2024, 1, 1), "1000", "900")])
        mock_stores.pending_reconciliations.list = AsyncMock(return_value=[SimpleNamespace(id="m1", attempts=1)])

        result = await service.reconcile_employee("e1", trigger=ReconciliationTrigger.RETRY)

        assert result.ok
        mock_stores.pending_reconciliations.delete.assert_awaited_once_with("m1")


class TestReconciliationFailures:
    """Сбои записи: повторы, частичный отказ, маркер."""

    @pytest.mark.asyncio
    async def test_retries_exactly_max_attempts(self, mock_stores):
        service = _service(
            mock_stores,
            advances=[Advance(employee_id="e1", amount=Decimal("500"))],
            payrolls=[_payroll("p1", date(2024, 1, 1), "3000", "3000")],
            max_attempts=4,
        )
        mock_stores.payrolls.update = AsyncMock(side_effect=StoreError("timeout", operation="update"))

        result = await service.reconcile_employee("e1", trigger=ReconciliationTrigger.ADVANCE_CREATED)

        assert mock_stores.payrolls.update.await_count == 4
        step = next(s for s in result.steps if s.name == "update_payroll")
        assert step.status == StepStatus.FAILED
        assert step.attempts == 4
        assert result.partial_failure
        assert result.warning == PARTIAL_FAILURE_WARNING
        assert result.failed_payroll_ids == ["p1"]

    @pytest.mark.asyncio
    async def test_transient_failure_recovers(self, mock_stores):
        service = _service(
            mock_stores,
            advances=[Advance(employee_id="e1", amount=Decimal("500"))],
            payrolls=[_payroll("p1", date(2024, 1, 1), "3000", "3000")],
        )
        mock_stores.payrolls.update = AsyncMock(side_effect=[StoreError("timeout"), None])

        result = await service.reconcile_employee("e1", trigger=ReconciliationTrigger.ADVANCE_CREATED)

        assert result.ok
        assert result.updated_payroll_ids == ["p1"]
        assert mock_stores.payrolls.update.await_count == 2

    @pytest.mark.asyncio
    async def test_failure_writes_pending_marker(self, mock_stores):
        service = _service(
            mock_stores,
            advances=[Advance(employee_id="e1", amount=Decimal("500"))],
            payrolls=[_payroll("p1", date(2024, 1, 1), "3000", "3000")],
        )
        mock_stores.payrolls.update = AsyncMock(side_effect=StoreError("timeout"))

        result = await service.reconcile_employee("e1", trigger=ReconciliationTrigger.ADVANCE_CREATED)

        assert result.pending_marker_saved is True
        mock_stores.pending_reconciliations.create.assert_awaited_once()
        fields = mock_stores.pending_reconciliations.create.await_args.args[0]
        assert fields["employee_id"] == "e1"
        assert fields["trigger"] == ReconciliationTrigger.ADVANCE_CREATED
        assert fields["attempts"] == 1

    @pytest.mark.asyncio
    async def test_existing_marker_attempts_incremented(self, mock_stores):
        service = _service(mock_stores, payrolls=[_payroll("p1", date(2024, 1, 1), "3000", "3000")])
        mock_stores.advances.list = AsyncMock(return_value=[Advance(employee_id="e1", amount=Decimal("1"))])
        mock_stores.payrolls.update = AsyncMock(side_effect=StoreError("timeout"))
        mock_stores.pending_reconciliations.list = AsyncMock(return_value=[SimpleNamespace(id="m1", attempts=2)])

        await service.reconcile_employee("e1", trigger=ReconciliationTrigger.RETRY)

        mock_stores.pending_reconciliations.create.assert_not_called()
        marker_id, fields = mock_stores.pending_reconciliations.update.await_args.args
        assert marker_id == "m1"
        assert fields["attempts"] == 3

    @pytest.mark.asyncio
    async def test_marker_write_failure_still_reports_partial_failure(self, mock_stores):
        service = _service(
            mock_stores,
            advances=[Advance(employee_id="e1", amount=Decimal("500"))],
            payrolls=[_payroll("p1", date(2024, 1, 1), "3000", "3000")],
        )
        mock_stores.payrolls.update = AsyncMock(side_effect=StoreError("timeout"))
        mock_stores.pending_reconciliations.create = AsyncMock(side_effect=StoreError("down"))

        result = await service.reconcile_employee("e1", trigger=ReconciliationTrigger.ADVANCE_CREATED)

        assert result.partial_failure
        assert result.pending_marker_saved is False
        assert result.warning == PARTIAL_FAILURE_WARNING

    @pytest.mark.asyncio
    async def test_ledger_refresh_failure_stops_saga(self, mock_stores):
        service = _service(mock_stores, payrolls=[_payroll("p1", date(2024, 1, 1), "3000", "3000")])
        mock_stores.advances.list = AsyncMock(side_effect=StoreError("down"))

        result = await service.reconcile_employee("e1", trigger=ReconciliationTrigger.ADVANCE_CREATED)

        assert result.partial_failure
        assert result.steps[0].name == "refresh_ledger"
        assert result.steps[0].status == StepStatus.FAILED
        mock_stores.payrolls.update.assert_not_called()
        mock_stores.pending_reconciliations.create.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_to_dict(self, mock_stores):
        service = _service(mock_stores, payrolls=[_payroll("p1", date(2024, 1, 1), "3000", "2900")])
        mock_stores.payrolls.update = AsyncMock(side_effect=StoreError("timeout"))

        data = (await service.reconcile_employee("e1", trigger="advance_created")).to_dict()

        assert data["partial_failure"] is True
        assert data["failed_payroll_ids"] == ["p1"]
        assert data["advance_total"] == 0.0
        assert {step["name"] for step in data["steps"]} >= {"refresh_ledger", "load_payrolls", "update_payroll"}


class TestRecomputeAndRetry:

    @pytest.mark.asyncio
    async def test_recompute_payroll_uses_new_hours_and_current_advances(self, mock_stores):
        service = _service(mock_stores, advances=[Advance(employee_id="e1", amount=Decimal("500"))])
        payroll = _payroll("p1", date(2024, 1, 1), "3000", "2500")

        await service.recompute_payroll(payroll, {"hours_worked": Decimal("160"), "rate": Decimal("25")})

        payroll_id, fields = mock_stores.payrolls.update.await_args.args
        assert payroll_id == "p1"
        assert fields["gross_pay"] == Decimal("4000.00")
        assert fields["net_pay"] == Decimal("3500.00")
        assert fields["hours_worked"] == Decimal("160")

    @pytest.mark.asyncio
    async def test_recompute_payroll_propagates_store_error(self, mock_stores):
        service = _service(mock_stores)
        mock_stores.payrolls.update = AsyncMock(side_effect=StoreError("down"))

        with pytest.raises(StoreError):
            await service.recompute_payroll(_payroll("p1", date(2024, 1, 1), "0", "0"), {"hours_worked": 1})

    @pytest.mark.asyncio
    async def test_retry_pending_runs_each_marker(self, mock_stores):
        service = _service(mock_stores)
        mock_stores.pending_reconciliations.list = AsyncMock(side_effect=[
            [SimpleNamespace(id="m1", employee_id="e1"), SimpleNamespace(id="m2", employee_id="e2")],
            [],
            [],
        ])

        results = await service.retry_pending()

        assert [r.employee_id for r in results] == ["e1", "e2"]
        assert all(r.trigger == ReconciliationTrigger.RETRY for r in results)

    @pytest.mark.asyncio
    async def test_hours_edit_waits_for_running_reconciliation(self, mock_stores):
        loading = asyncio.Event()
        release = asyncio.Event()

        async def slow_list(**filters):
            loading.set()
            await release.wait()
            return [_payroll("p1", date(2024, 1, 1), "3000", "3000")]

        mock_stores.advances.list = AsyncMock(return_value=[Advance(employee_id="e1", amount=Decimal("500"))])
        mock_stores.payrolls.list = AsyncMock(side_effect=slow_list)
        service = ReconciliationService(mock_stores, policy="all", max_attempts=1, retry_delay=0, locks=KeyedLock())

        reconcile = asyncio.create_task(
            service.reconcile_employee("e1", trigger=ReconciliationTrigger.ADVANCE_CREATED)
        )
        await loading.wait()
        recompute = asyncio.create_task(service.recompute_payroll(
            _payroll("p1", date(2024, 1, 1), "3000", "3000"),
            {"hours_worked": Decimal("160"), "rate": Decimal("25")},
        ))
        for _ in range(3):
            await asyncio.sleep(0)
        mock_stores.payrolls.update.assert_not_called()

        release.set()
        await asyncio.gather(reconcile, recompute)

        first, second = [call.args for call in mock_stores.payrolls.update.await_args_list]
        assert first == ("p1", {"net_pay": Decimal("2500.00")})
        assert second[1]["gross_pay"] == Decimal("4000.00")
        assert second[1]["net_pay"] == Decimal("3500.00")
