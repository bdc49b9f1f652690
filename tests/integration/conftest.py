"""
Фикстуры интеграционных тестов: HTTP клиент поверх тестовой БД
"""
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from apps.api.app import create_app
from apps.api.dependencies import get_action_guard, get_ocr_service, get_stores
from core.utils.action_guard import ActionGuard
from shared.services.importers.ocr import OCRResult


class FakeOCRService:
    """OCR без Tesseract: возвращает заданный текст."""

    def __init__(self, text: str = "", confidence: float = 80.0):
        self.text = text
        self.confidence = confidence
        self.calls = []

    async def perform_ocr(self, data: bytes, content_type: str) -> OCRResult:
        self.calls.append(content_type)
        return OCRResult(text=self.text, confidence=self.confidence, pages=1)


@pytest.fixture
def action_guard():
    return ActionGuard()


@pytest.fixture
def fake_ocr():
    return FakeOCRService()


@pytest.fixture
def app(stores, action_guard, fake_ocr):
    """Приложение с хранилищами тестовой сессии."""
    application = create_app()
    application.dependency_overrides[get_stores] = lambda: stores
    application.dependency_overrides[get_action_guard] = lambda: action_guard
    application.dependency_overrides[get_ocr_service] = lambda: fake_ocr
    return application


@pytest_asyncio.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client
