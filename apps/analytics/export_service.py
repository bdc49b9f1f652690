"""Сервис экспорта таблиц и ведомостей в Excel и PDF."""

import io
import os
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Iterable, List, Mapping, Optional, Sequence
from xml.sax.saxutils import escape

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.platypus import PageBreak, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from core.config.settings import settings
from core.logging.logger import logger
from core.utils.formatting import format_currency, format_date, format_month

CHARCOAL = colors.Color(11 / 255, 11 / 255, 12 / 255)
LIGHT = colors.Color(248 / 255, 249 / 255, 251 / 255)

_FONT_PATH = "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf"
_BOLD_FONT_PATH = "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf"


@dataclass(frozen=True)
class ColumnSpec:
    """Столбец выгрузки: ключ строки, заголовок и форматирование значения."""

    accessor: str
    header: str
    formatter: Optional[Callable[[Any], Any]] = None

    def value(self, row: Any) -> Any:
        if isinstance(row, Mapping):
            raw = row.get(self.accessor)
        else:
            raw = getattr(row, self.accessor, None)
        return self.formatter(raw) if self.formatter else raw


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, date):
        return format_date(value)
    return str(value)


class ExportService:
    """Сервис для экспорта таблиц в PDF и Excel."""

    def __init__(self, company_name: Optional[str] = None):
        self.company_name = company_name or settings.company_name
        self.font, self.bold_font = self._setup_fonts()

    def _setup_fonts(self):
        """Шрифт с поддержкой кириллицы, если он установлен."""
        if not (os.path.exists(_FONT_PATH) and os.path.exists(_BOLD_FONT_PATH)):
            logger.debug("DejaVu fonts not found, using default fonts")
            return "Helvetica", "Helvetica-Bold"
        if "DejaVuSans" not in pdfmetrics.getRegisteredFontNames():
            pdfmetrics.registerFont(TTFont("DejaVuSans", _FONT_PATH))
            pdfmetrics.registerFont(TTFont("DejaVuSans-Bold", _BOLD_FONT_PATH))
        return "DejaVuSans", "DejaVuSans-Bold"

    # ================== TABLES ==================

    def table_values(self, rows: Iterable[Any], columns: Sequence[ColumnSpec]) -> List[List[Any]]:
        """Значения таблицы как на экране, с учетом форматирования столбцов."""
        return [[column.value(row) for column in columns] for row in rows]

    def export_to_excel(self, rows: Iterable[Any], columns: Sequence[ColumnSpec], sheet_title: str = "Data") -> bytes:
        """
        Таблица в .xlsx.

        Args:
            rows: Словари или объекты строк
            columns: Столбцы выгрузки
            sheet_title: Название листа

        Returns:
            Excel файл в виде байтов
        """
        workbook = Workbook()
        worksheet = workbook.active
        worksheet.title = sheet_title[:31]

        worksheet.append([column.header for column in columns])
        header_font = Font(bold=True)
        header_fill = PatternFill(start_color="E5E5E5", end_color="E5E5E5", fill_type="solid")
        for cell in worksheet[1]:
            cell.font = header_font
            cell.fill = header_fill
            cell.alignment = Alignment(horizontal="center")

        count = 0
        for values in self.table_values(rows, columns):
            worksheet.append([self._excel_value(value) for value in values])
            count += 1

        _auto_fit_columns(worksheet)

        output = io.BytesIO()
        workbook.save(output)
        logger.info("Excel export generated", sheet=sheet_title, rows=count)
        return output.getvalue()

    def export_to_pdf(self, rows: Iterable[Any], columns: Sequence[ColumnSpec], title: str) -> bytes:
        """Таблица в PDF с шапкой компании и датой формирования."""
        buffer = io.BytesIO()
        doc = SimpleDocTemplate(buffer, pagesize=landscape(A4), title=title)
        story = self._header(title)

        body = [[_cell_text(value) for value in values] for values in self.table_values(rows, columns)]
        data = [[column.header for column in columns]] + body

        table = Table(data, repeatRows=1)
        table.setStyle(TableStyle([
            ("BACKGROUND", (0, 0), (-1, 0), CHARCOAL),
            ("TEXTCOLOR", (0, 0), (-1, 0), LIGHT),
            ("FONTNAME", (0, 0), (-1, 0), self.bold_font),
            ("FONTNAME", (0, 1), (-1, -1), self.font),
            ("FONTSIZE", (0, 0), (-1, -1), 8),
            ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, LIGHT]),
            ("ALIGN", (0, 0), (-1, -1), "LEFT"),
            ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
            ("TOPPADDING", (0, 0), (-1, -1), 3),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 3),
        ]))
        story.append(table)

        doc.build(story)
        logger.info("PDF export generated", title=title, rows=len(body))
        return buffer.getvalue()

    # ================== STATEMENTS ==================

    def generate_statement_pdf(
        self,
        statement: Any,
        project: Any,
        attachments: Optional[Sequence[Mapping[str, Any]]] = None,
    ) -> bytes:
        """
        Месячная ведомость проекта: итоги и список вложений.

        Args:
            statement: Ведомость (total_payroll, total_expenses, total_advances,
                remaining_budget, month)
            project: Проект ведомости
            attachments: Вложения; по умолчанию statement.attachments

        Returns:
            PDF файл в виде байтов
        """
        if attachments is None:
            attachments = statement.attachments or []

        buffer = io.BytesIO()
        doc = SimpleDocTemplate(buffer, pagesize=A4, title="Monthly Statement")
        styles = getSampleStyleSheet()
        text_style = ParagraphStyle("StatementText", parent=styles["Normal"], fontName=self.font, fontSize=12,
                                    spaceAfter=6)

        story = self._header("Monthly Statement")
        story.append(Paragraph(f"Project: {escape(project.name or '')}", text_style))
        story.append(Paragraph(f"Month: {format_month(statement.month)}", text_style))
        story.append(Spacer(1, 18))

        summary = Table(
            [
                ["Total Payroll", format_currency(statement.total_payroll)],
                ["Total Expenses", format_currency(statement.total_expenses)],
                ["Total Advances", format_currency(statement.total_advances)],
                ["Remaining Budget", format_currency(statement.remaining_budget)],
            ],
            colWidths=[3 * inch, 2.5 * inch],
        )
        summary.setStyle(TableStyle([
            ("FONTNAME", (0, 0), (0, -1), self.bold_font),
            ("FONTNAME", (1, 0), (1, -1), self.font),
            ("FONTSIZE", (0, 0), (-1, -1), 12),
            ("ALIGN", (1, 0), (1, -1), "RIGHT"),
            ("TOPPADDING", (0, 0), (-1, -1), 5),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 5),
        ]))
        story.append(summary)

        if attachments:
            story.append(PageBreak())
            story.append(Paragraph("Attachments", self._title_style()))
            rows = [["#", "File Name", "Type", "Size", "URL"]]
            for index, attachment in enumerate(attachments, start=1):
                rows.append([
                    str(index),
                    attachment.get("name", ""),
                    attachment.get("type", ""),
                    f"{(attachment.get('size') or 0) / 1024:.2f} KB",
                    attachment.get("url", ""),
                ])
            table = Table(rows, repeatRows=1)
            table.setStyle(TableStyle([
                ("BACKGROUND", (0, 0), (-1, 0), CHARCOAL),
                ("TEXTCOLOR", (0, 0), (-1, 0), LIGHT),
                ("FONTNAME", (0, 0), (-1, 0), self.bold_font),
                ("FONTNAME", (0, 1), (-1, -1), self.font),
                ("FONTSIZE", (0, 0), (-1, -1), 10),
                ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
            ]))
            story.append(table)

        doc.build(story)
        logger.info(
            "Statement PDF generated",
            project_id=getattr(project, "id", None),
            month=str(statement.month),
            attachments=len(attachments),
        )
        return buffer.getvalue()

    def _title_style(self) -> ParagraphStyle:
        styles = getSampleStyleSheet()
        return ParagraphStyle("ExportTitle", parent=styles["Heading2"], fontName=self.bold_font, fontSize=14,
                              textColor=CHARCOAL, spaceAfter=6)

    def _header(self, title: str) -> List[Any]:
        styles = getSampleStyleSheet()
        company_style = ParagraphStyle("Company", parent=styles["Heading1"], fontName=self.bold_font, fontSize=20,
                                       textColor=CHARCOAL, spaceAfter=6)
        muted_style = ParagraphStyle("Muted", parent=styles["Normal"], fontName=self.font, fontSize=10,
                                     textColor=colors.grey, spaceAfter=12)
        return [
            Paragraph(escape(self.company_name), company_style),
            Paragraph(escape(title), self._title_style()),
            Paragraph(f"Generated on {format_date(date.today())}", muted_style),
        ]

    @staticmethod
    def _excel_value(value: Any) -> Any:
        # Decimal -> float
        if value is None:
            return None
        if isinstance(value, (int, float, str, date)):
            return value
        try:
            return float(value)
        except (TypeError, ValueError):
            return str(value)


def _auto_fit_columns(worksheet) -> None:
    for column in worksheet.columns:
        max_length = 0
        column_letter = column[0].column_letter
        for cell in column:
            if cell.value is not None:
                max_length = max(max_length, len(str(cell.value)))
        worksheet.column_dimensions[column_letter].width = min(max_length + 2, 60)
