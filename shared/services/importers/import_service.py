"""Массовый импорт сотрудников, проектов, начислений, авансов и расходов."""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Mapping, Optional

from core.logging.logger import logger
from shared.services.advance_service import AdvanceService
from shared.services.employee_service import EmployeeService
from shared.services.errors import ReferenceNotFoundError, StoreError, ValidationError
from shared.services.expense_service import ExpenseService
from shared.services.importers.base import DocumentParser, ImportEntity, ImportResult
from shared.services.importers.document_parser import DelimitedDocumentParser, WhitespaceDocumentParser
from shared.services.importers.ocr import OCRService
from shared.services.importers.readers import PDF_SUFFIXES, extract_pdf_pages, file_suffix, read_table
from shared.services.payroll_service import PayrollService
from shared.services.project_service import ProjectService
from shared.services.reconciliation_service import ReconciliationService
from shared.services.record_store import Stores
from shared.services.validators import clean_text, is_blank


class ImportService:
    """
    Импорт строк по одной: ошибка строки не прерывает остальные.

    Ошибки валидации и неизвестные ссылки -> skipped, ошибки хранилища ->
    failed. Авансы проходят через AdvanceService, поэтому каждый
    импортированный аванс пересчитывает начисления сотрудника.
    """

    def __init__(
        self,
        stores: Stores,
        *,
        reconciliation: Optional[ReconciliationService] = None,
        ocr: Optional[OCRService] = None,
        scanned_parser: Optional[DocumentParser] = None,
        pdf_parser: Optional[DocumentParser] = None,
        today: Optional[date] = None,
    ):
        self.stores = stores
        reconciliation = reconciliation or ReconciliationService(stores)
        self.employees = EmployeeService(stores)
        self.projects = ProjectService(stores)
        self.advances = AdvanceService(stores, reconciliation)
        self.payrolls = PayrollService(stores, reconciliation)
        self.expenses = ExpenseService(stores)
        self.ocr = ocr or OCRService()
        self.scanned_parser = scanned_parser or WhitespaceDocumentParser()
        self.pdf_parser = pdf_parser or DelimitedDocumentParser()
        self.today = today

    async def import_file(
        self,
        entity_type: str,
        filename: str,
        data: bytes,
        *,
        default_project_id: Optional[str] = None,
    ) -> ImportResult:
        """Импорт из .xlsx/.xls/.csv (строка заголовков) или текстового слоя .pdf."""
        self._check_entity(entity_type, ImportEntity.ALL)

        if file_suffix(filename) in PDF_SUFFIXES:
            text = "\n".join(extract_pdf_pages(data))
            document = self.pdf_parser.parse(text, entity_type)
            rows, parser_skipped = document.rows, document.skipped
        else:
            rows, parser_skipped = read_table(filename, data), 0

        logger.info("Import started", entity_type=entity_type, filename=filename, rows=len(rows))
        return await self.import_rows(
            entity_type, rows, parser_skipped=parser_skipped, default_project_id=default_project_id
        )

    async def import_scanned(
        self,
        entity_type: str,
        data: bytes,
        content_type: str,
        *,
        default_project_id: Optional[str] = None,
    ) -> ImportResult:
        """OCR, затем позиционный разбор строк текста."""
        self._check_entity(entity_type, ImportEntity.SCANNED)

        ocr_result = await self.ocr.perform_ocr(data, content_type)
        document = self.scanned_parser.parse(ocr_result.text, entity_type)

        result = await self.import_rows(
            entity_type,
            document.rows,
            parser_skipped=document.skipped,
            default_project_id=default_project_id,
        )
        result.ocr_confidence = ocr_result.confidence
        return result

    async def import_rows(
        self,
        entity_type: str,
        rows: List[Mapping[str, Any]],
        *,
        parser_skipped: int = 0,
        default_project_id: Optional[str] = None,
    ) -> ImportResult:
        self._check_entity(entity_type, ImportEntity.ALL)
        result = ImportResult(entity_type=entity_type, total=len(rows), parser_skipped=parser_skipped)
        if parser_skipped:
            result.warnings.append(f"Не разобрано строк документа: {parser_skipped}")

        lookups = await self._load_lookups()
        handler = {
            ImportEntity.EMPLOYEES: self._import_employee,
            ImportEntity.PROJECTS: self._import_project,
            ImportEntity.PAYROLL: self._import_payroll,
            ImportEntity.ADVANCES: self._import_advance,
            ImportEntity.EXPENSES: self._import_expense,
        }[entity_type]

        for number, row in enumerate(rows, start=1):
            try:
                record_id, warning = await handler(dict(row), lookups, default_project_id)
            except ValidationError as e:
                result.skipped += 1
                result.errors.append(f"Строка {number}: {e}")
                continue
            except StoreError as e:
                result.failed += 1
                result.errors.append(f"Строка {number}: {e}")
                logger.error("Import row failed", entity_type=entity_type, row=number, error=str(e))
                continue

            result.succeeded += 1
            result.created_ids.append(record_id)
            if warning:
                result.warnings.append(f"Строка {number}: {warning}")

        logger.info(
            "Import finished",
            entity_type=entity_type,
            total=result.total,
            succeeded=result.succeeded,
            skipped=result.skipped,
            failed=result.failed,
            parser_skipped=result.parser_skipped,
        )
        return result

    # ================== ROW HANDLERS ==================

    async def _import_employee(self, row: Dict[str, Any], lookups: Dict[str, Any], default_project_id):
        code = clean_text(row.get("employee_code")) or clean_text(row.get("iqama_number"))
        if not code:
            raise ValidationError("Поле employee_code обязательно", field="employee_code")
        if code in lookups["employees"]:
            raise ValidationError(f"Сотрудник с кодом {code} уже существует", field="employee_code")

        data = {
            key: row.get(key)
            for key in ("name", "iqama_number", "phone_number", "role", "nationality", "date_of_join")
            if key in row
        }
        data["employee_code"] = code
        project_id = self._resolve_project(row.get("project"), lookups, default_project_id, required=False)
        if project_id is not None:
            data["project_id"] = project_id

        employee = await self.employees.create_employee(data)
        lookups["employees"][code] = employee.id
        lookups["employee_ids"].add(employee.id)
        return employee.id, None

    async def _import_project(self, row: Dict[str, Any], lookups: Dict[str, Any], default_project_id):
        data = {key: row.get(key) for key in ("name", "budget", "status") if key in row}
        project = await self.projects.create_project(data)
        lookups["projects"][project.name.strip().lower()] = project.id
        lookups["project_ids"].add(project.id)
        return project.id, None

    async def _import_payroll(self, row: Dict[str, Any], lookups: Dict[str, Any], default_project_id):
        employee_id = self._resolve_employee(row, lookups)
        project_id = self._resolve_project(row.get("project"), lookups, default_project_id, required=False)

        entry = await self.payrolls.create_payroll({
            "employee_id": employee_id,
            "project_id": project_id,
            "month": row.get("month") if not is_blank(row.get("month")) else self._today().replace(day=1),
            "hours_worked": row.get("hours_worked"),
            "rate": row.get("rate"),
            "status": row.get("status"),
        })
        return entry.id, None

    async def _import_advance(self, row: Dict[str, Any], lookups: Dict[str, Any], default_project_id):
        employee_id = self._resolve_employee(row, lookups)
        outcome = await self.advances.create_advance({
            "employee_id": employee_id,
            "amount": row.get("amount"),
            "note": row.get("note"),
            "date": row.get("date"),
        })
        advance_id = outcome.advance.id if outcome.advance is not None else None
        return advance_id, outcome.warning

    async def _import_expense(self, row: Dict[str, Any], lookups: Dict[str, Any], default_project_id):
        project_id = self._resolve_project(row.get("project"), lookups, default_project_id, required=True)
        data = {
            key: row.get(key)
            for key in ("category", "amount", "date", "payment_method", "paid_by", "notes")
            if key in row
        }
        data["project_id"] = project_id
        expense = await self.expenses.create_expense(data)
        return expense.id, None

    # ================== LOOKUPS ==================

    async def _load_lookups(self) -> Dict[str, Any]:
        # Только идентификаторы: после отката сессии ORM-объекты устаревают
        employees = await self.stores.employees.list()
        projects = await self.stores.projects.list()
        return {
            "employees": {e.employee_code: e.id for e in employees if e.employee_code},
            "employee_ids": {e.id for e in employees},
            "projects": {(p.name or "").strip().lower(): p.id for p in projects},
            "project_ids": {p.id for p in projects},
        }

    @staticmethod
    def _resolve_employee(row: Mapping[str, Any], lookups: Dict[str, Any]) -> str:
        code = clean_text(row.get("employee_code"))
        if not code:
            raise ValidationError("Поле employee_code обязательно", field="employee_code")
        if code in lookups["employees"]:
            return lookups["employees"][code]
        if code in lookups["employee_ids"]:
            return code
        raise ReferenceNotFoundError("Сотрудник", code, field="employee_code")

    @staticmethod
    def _resolve_project(
        value: Any,
        lookups: Dict[str, Any],
        default_project_id: Optional[str],
        *,
        required: bool,
    ) -> Optional[str]:
        """Проект по названию (без учета регистра) или id; пустое значение -> проект по умолчанию."""
        name = clean_text(value)
        if not name:
            if default_project_id:
                if default_project_id not in lookups["project_ids"]:
                    raise ReferenceNotFoundError("Проект", default_project_id, field="project")
                return default_project_id
            if required:
                raise ValidationError("Поле project обязательно", field="project")
            return None

        if name.lower() in lookups["projects"]:
            return lookups["projects"][name.lower()]
        if name in lookups["project_ids"]:
            return name
        raise ReferenceNotFoundError("Проект", name, field="project")

    def _today(self) -> date:
        return self.today or date.today()

    @staticmethod
    def _check_entity(entity_type: str, allowed) -> None:
        if entity_type not in allowed:
            raise ValidationError(f"Импорт '{entity_type}' не поддерживается", field="entity_type")
