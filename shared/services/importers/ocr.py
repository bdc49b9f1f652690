"""Распознавание текста отсканированных документов (Tesseract)."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from io import BytesIO
from typing import List, Optional

import pytesseract
from pdf2image import convert_from_bytes
from pdf2image.exceptions import PDFInfoNotInstalledError, PDFPageCountError, PDFSyntaxError
from PIL import Image, UnidentifiedImageError

from core.config.settings import settings
from core.logging.logger import logger
from shared.services.errors import DocumentExtractionError, ValidationError
from shared.services.importers.readers import extract_pdf_pages

PDF_CONTENT_TYPE = "application/pdf"


@dataclass
class OCRResult:
    text: str
    confidence: float  # 0..100
    pages: int = 0


class OCRService:
    """
    Текст и уверенность распознавания для PDF и изображений.

    Страницы PDF с текстовым слоем берутся напрямую с фиксированной
    уверенностью; страницы без слоя рендерятся и распознаются Tesseract.
    Итоговая уверенность - среднее по страницам.
    """

    def __init__(
        self,
        language: Optional[str] = None,
        direct_text_confidence: Optional[float] = None,
        render_dpi: Optional[int] = None,
    ):
        self.language = language or settings.ocr_language
        self.direct_text_confidence = (
            settings.ocr_direct_text_confidence if direct_text_confidence is None else direct_text_confidence
        )
        self.render_dpi = render_dpi or settings.ocr_render_dpi

    async def perform_ocr(self, data: bytes, content_type: str) -> OCRResult:
        content_type = (content_type or "").lower()
        if content_type == PDF_CONTENT_TYPE:
            result = await asyncio.to_thread(self._from_pdf, data)
        elif content_type.startswith("image/"):
            result = await asyncio.to_thread(self._from_image_bytes, data)
        else:
            raise ValidationError(f"Тип файла {content_type or 'unknown'} не поддерживается для OCR", field="file")

        logger.info(
            "OCR completed",
            content_type=content_type,
            pages=result.pages,
            confidence=round(result.confidence, 2),
            chars=len(result.text),
        )
        return result

    def _from_pdf(self, data: bytes) -> OCRResult:
        texts: List[str] = []
        confidences: List[float] = []

        for number, page_text in enumerate(extract_pdf_pages(data), start=1):
            if page_text.strip():
                texts.append(page_text)
                confidences.append(float(self.direct_text_confidence))
                continue
            image = self._render_page(data, number)
            text, confidence = self._recognize(image)
            texts.append(text)
            confidences.append(confidence)

        return OCRResult(
            text="\n".join(texts),
            confidence=sum(confidences) / len(confidences) if confidences else 0.0,
            pages=len(confidences),
        )

    def _from_image_bytes(self, data: bytes) -> OCRResult:
        try:
            image = Image.open(BytesIO(data))
            image.load()
        except (UnidentifiedImageError, OSError) as e:
            raise DocumentExtractionError(f"Не удалось открыть изображение: {e}") from e
        text, confidence = self._recognize(image)
        return OCRResult(text=text, confidence=confidence, pages=1)

    def _render_page(self, data: bytes, number: int) -> Image.Image:
        try:
            images = convert_from_bytes(data, dpi=self.render_dpi, first_page=number, last_page=number)
        except (PDFInfoNotInstalledError, PDFPageCountError, PDFSyntaxError) as e:
            raise DocumentExtractionError(f"Не удалось отрисовать страницу {number}: {e}") from e
        if not images:
            raise DocumentExtractionError(f"Страница {number} не отрисована")
        return images[0]

    def _recognize(self, image: Image.Image) -> tuple[str, float]:
        try:
            text = pytesseract.image_to_string(image, lang=self.language)
            data = pytesseract.image_to_data(image, lang=self.language, output_type=pytesseract.Output.DICT)
        except (pytesseract.TesseractError, pytesseract.TesseractNotFoundError) as e:
            raise DocumentExtractionError(f"Ошибка распознавания: {e}") from e

        # conf = -1 у блоков без текста
        scores = [float(conf) for conf in data.get("conf", []) if float(conf) >= 0]
        confidence = sum(scores) / len(scores) if scores else 0.0
        return text, confidence
