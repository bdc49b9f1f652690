"""Импорт таблиц, PDF и отсканированных документов."""

from shared.services.importers.base import DocumentParser, ImportEntity, ImportResult, ParsedDocument
from shared.services.importers.document_parser import DelimitedDocumentParser, WhitespaceDocumentParser
from shared.services.importers.import_service import ImportService
from shared.services.importers.ocr import OCRResult, OCRService

__all__ = [
    "DocumentParser",
    "ImportEntity",
    "ImportResult",
    "ParsedDocument",
    "DelimitedDocumentParser",
    "WhitespaceDocumentParser",
    "ImportService",
    "OCRResult",
    "OCRService",
]
