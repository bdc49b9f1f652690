"""Тесты OCR сервиса (Tesseract и pdf2image замоканы)."""

from io import BytesIO
from unittest.mock import patch

import pytest
import pytesseract
from PIL import Image

from shared.services.errors import DocumentExtractionError, ValidationError
from shared.services.importers.ocr import OCRService


def _png() -> bytes:
    buffer = BytesIO()
    Image.new("RGB", (20, 20), "white").save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def service():
    return OCRService(language="eng", direct_text_confidence=95, render_dpi=100)


class TestOCRService:

    @pytest.mark.asyncio
    async def test_image_confidence_ignores_empty_blocks(self, service):
        with patch("shared.services.importers.ocr.pytesseract.image_to_string", return_value="E001 500 food"), \
             patch("shared.services.importers.ocr.pytesseract.image_to_data",
                   return_value={"conf": ["-1", "80", 90, "-1"]}):
            result = await service.perform_ocr(_png(), "image/png")

        assert result.text == "E001 500 food"
        assert result.confidence == pytest.approx(85.0)
        assert result.pages == 1

    @pytest.mark.asyncio
    async def test_pdf_text_layer_skips_tesseract(self, service):
        with patch("shared.services.importers.ocr.extract_pdf_pages", return_value=["E001 500 food", "E002 300 rent"]), \
             patch("shared.services.importers.ocr.convert_from_bytes") as render, \
             patch("shared.services.importers.ocr.pytesseract.image_to_string") as to_string:
            result = await service.perform_ocr(b"%PDF", "application/pdf")

        assert result.text == "E001 500 food\nE002 300 rent"
        assert result.confidence == pytest.approx(95.0)
        assert result.pages == 2
        render.assert_not_called()
        to_string.assert_not_called()

    @pytest.mark.asyncio
    async def test_pdf_scanned_page_is_rendered(self, service):
        image = Image.new("RGB", (10, 10), "white")
        with patch("shared.services.importers.ocr.extract_pdf_pages", return_value=["E001 500 food", "  "]), \
             patch("shared.services.importers.ocr.convert_from_bytes", return_value=[image]) as render, \
             patch("shared.services.importers.ocr.pytesseract.image_to_string", return_value="E002 300 rent"), \
             patch("shared.services.importers.ocr.pytesseract.image_to_data", return_value={"conf": [55]}):
            result = await service.perform_ocr(b"%PDF", "application/pdf")

        render.assert_called_once_with(b"%PDF", dpi=100, first_page=2, last_page=2)
        assert result.text.endswith("E002 300 rent")
        assert result.confidence == pytest.approx(75.0)

    @pytest.mark.asyncio
    async def test_tesseract_error_is_extraction_error(self, service):
        with patch("shared.services.importers.ocr.pytesseract.image_to_string",
                   side_effect=pytesseract.TesseractNotFoundError()):
            with pytest.raises(DocumentExtractionError):
                await service.perform_ocr(_png(), "image/jpeg")

    @pytest.mark.asyncio
    async def test_unreadable_image(self, service):
        with pytest.raises(DocumentExtractionError):
            await service.perform_ocr(b"not an image", "image/png")

    @pytest.mark.asyncio
    async def test_unsupported_content_type(self, service):
        with pytest.raises(ValidationError):
            await service.perform_ocr(b"text", "text/plain")
