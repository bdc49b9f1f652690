"""Тесты для сервиса табличных данных выгрузок."""

from datetime import date
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from apps.analytics.analytics_service import COLUMNS, AnalyticsService
from shared.services.errors import ValidationError


class TestAnalyticsService:
    """Тесты для AnalyticsService."""

    def test_columns_for_known_entities(self):
        for entity in ("employees", "projects", "payroll", "advances", "expenses"):
            assert AnalyticsService.columns_for(entity) is COLUMNS[entity]

    def test_columns_for_unknown_entity(self):
        with pytest.raises(ValidationError) as exc_info:
            AnalyticsService.columns_for("shifts")
        assert exc_info.value.field == "entity"

    @pytest.mark.asyncio
    async def test_employee_rows_resolve_project_name(self, mock_stores):
        mock_stores.projects.list = AsyncMock(return_value=[SimpleNamespace(id="p1", name="Tower A")])
        mock_stores.employees.list = AsyncMock(return_value=[
            SimpleNamespace(
                name="Ahmed", employee_code="E1", role="Mason", date_of_join=None,
                nationality="Pakistani", iqama_number=None, phone_number=None,
                project_id="p1", pay_status="Unpaid",
            ),
            SimpleNamespace(
                name="Bilal", employee_code="E2", role="Plumber", date_of_join=None,
                nationality="Indian", iqama_number=None, phone_number=None,
                project_id=None, pay_status="Paid",
            ),
        ])

        rows = await AnalyticsService(mock_stores).table_rows("employees")

        assert [r["project_name"] for r in rows] == ["Tower A", "Unassigned"]

    @pytest.mark.asyncio
    async def test_project_rows_render_role_rates(self, mock_stores):
        mock_stores.projects.list = AsyncMock(return_value=[
            SimpleNamespace(id="p1", name="Tower A", budget=Decimal("1000"), status="Active",
                            role_rates={"Mason": 25, "Electrician": 30}),
        ])

        rows = await AnalyticsService(mock_stores).table_rows("projects")

        assert rows[0]["role_rates_text"] == "Mason: 25, Electrician: 30"

    @pytest.mark.asyncio
    async def test_advance_rows_tolerate_missing_employee(self, mock_stores):
        mock_stores.employees.list = AsyncMock(return_value=[
            SimpleNamespace(id="e1", name="Ahmed", employee_code="E1"),
        ])
        mock_stores.advances.list = AsyncMock(return_value=[
            SimpleNamespace(employee_id="e1", amount=Decimal("500"), note="cash", date=date(2024, 1, 5)),
            SimpleNamespace(employee_id="gone", amount=Decimal("10"), note=None, date=date(2024, 1, 6)),
        ])

        rows = await AnalyticsService(mock_stores).table_rows("advances")

        assert rows[0]["employee_name"] == "Ahmed"
        assert rows[1]["employee_name"] == ""
        assert rows[1]["amount"] == Decimal("10")

    @pytest.mark.asyncio
    async def test_unknown_entity_reads_nothing(self, mock_stores):
        with pytest.raises(ValidationError):
            await AnalyticsService(mock_stores).table_rows("shifts")
        mock_stores.employees.list.assert_not_called()
