"""
API роутер выгрузок, ведомостей, сводки и повторного пересчета
"""
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from apps.analytics.analytics_service import TITLES, AnalyticsService
from apps.analytics.export_service import ExportService
from apps.api.dependencies import get_action_guard, get_stores
from apps.api.schemas import (
    AttachmentRequest,
    DashboardResponse,
    ReconciliationResponse,
    RetryResponse,
    StatementRequest,
    StatementResponse,
)
from core.utils.action_guard import ActionGuard
from shared.services.dashboard_service import DashboardService
from shared.services.errors import ValidationError
from shared.services.payroll_service import PayrollFilter, ensure_month
from shared.services.reconciliation_service import ReconciliationService
from shared.services.record_store import Stores
from shared.services.statement_service import StatementService

router = APIRouter(tags=["reports"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _attachment(content: bytes, media_type: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# ================== EXPORTS ==================

@router.get("/exports/{entity}.{fmt}")
async def export_table(
    entity: str,
    fmt: str,
    project: Optional[str] = Query(None),
    month: Optional[str] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status"),
    nationality: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    stores: Stores = Depends(get_stores),
):
    """Выгрузка таблицы в Excel или PDF; фильтры применяются к начислениям."""
    if fmt not in ("xlsx", "pdf"):
        raise ValidationError(f"Формат '{fmt}' не поддерживается", field="fmt")

    analytics = AnalyticsService(stores)
    columns = analytics.columns_for(entity)
    payroll_filter = PayrollFilter(
        project=project,
        month=ensure_month(month),
        status=status_filter,
        nationality=nationality,
        search=search,
    )
    rows = await analytics.table_rows(entity, payroll_filter)

    exporter = ExportService()
    filename = f"{entity}_{date.today().isoformat()}.{fmt}"
    if fmt == "xlsx":
        return _attachment(exporter.export_to_excel(rows, columns, TITLES[entity]), XLSX_MEDIA_TYPE, filename)
    return _attachment(exporter.export_to_pdf(rows, columns, TITLES[entity]), "application/pdf", filename)


# ================== STATEMENTS ==================

@router.get("/statements", response_model=List[StatementResponse])
async def list_statements(project_id: Optional[str] = Query(None), stores: Stores = Depends(get_stores)):
    return await StatementService(stores).list_statements(project_id)


@router.post("/statements", response_model=StatementResponse, status_code=status.HTTP_201_CREATED)
async def generate_statement(data: StatementRequest, stores: Stores = Depends(get_stores)):
    """Сформировать или пересчитать ведомость проекта за месяц."""
    return await StatementService(stores).generate(data.project_id, data.month)


@router.post("/statements/{statement_id}/attachments", response_model=StatementResponse)
async def add_attachment(statement_id: str, data: AttachmentRequest, stores: Stores = Depends(get_stores)):
    return await StatementService(stores).add_attachment(statement_id, data.model_dump())


@router.get("/statements/{statement_id}.pdf")
async def statement_pdf(statement_id: str, stores: Stores = Depends(get_stores)):
    statement = await stores.statements.require(statement_id)
    project = await stores.projects.require(statement.project_id)
    content = ExportService().generate_statement_pdf(statement, project)
    filename = f"statement_{statement.month.strftime('%Y-%m')}.pdf"
    return _attachment(content, "application/pdf", filename)


# ================== DASHBOARD ==================

@router.get("/dashboard", response_model=DashboardResponse)
async def dashboard(stores: Stores = Depends(get_stores)):
    return await DashboardService(stores).summary()


# ================== RECONCILIATION ==================

@router.get("/reconciliations/pending")
async def pending_reconciliations(stores: Stores = Depends(get_stores)):
    """Сотрудники, у которых пересчет начислений не завершен."""
    markers = await stores.pending_reconciliations.list()
    return [
        {
            "employee_id": marker.employee_id,
            "trigger": marker.trigger,
            "reason": marker.reason,
            "attempts": marker.attempts,
            "updated_at": marker.updated_at,
        }
        for marker in markers
    ]


@router.post("/reconciliations/retry", response_model=RetryResponse)
async def retry_reconciliations(
    stores: Stores = Depends(get_stores),
    guard: ActionGuard = Depends(get_action_guard),
):
    """Повторить пересчет для всех помеченных сотрудников."""
    async with guard.hold("reconciliations:retry"):
        results = await ReconciliationService(stores).retry_pending()
    return RetryResponse(
        total=len(results),
        still_pending=sum(1 for r in results if r.partial_failure),
        results=[ReconciliationResponse(**r.to_dict()) for r in results],
    )
