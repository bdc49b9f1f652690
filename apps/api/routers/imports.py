"""
API роутер импорта таблиц, PDF и отсканированных документов
"""
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from apps.api.dependencies import get_action_guard, get_ocr_service, get_stores
from apps.api.schemas import ImportResponse
from core.utils.action_guard import ActionGuard
from shared.services.importers.import_service import ImportService
from shared.services.importers.ocr import OCRService
from shared.services.record_store import Stores

router = APIRouter(prefix="/imports", tags=["imports"])


@router.post("/{entity}", response_model=ImportResponse)
async def import_file(
    entity: str,
    file: UploadFile = File(..., description=".xlsx, .xls, .csv или .pdf"),
    default_project_id: Optional[str] = Form(None),
    stores: Stores = Depends(get_stores),
    guard: ActionGuard = Depends(get_action_guard),
):
    """Импорт строк из файла; ошибки строк не прерывают импорт."""
    data = await file.read()
    async with guard.hold(f"imports:{entity}"):
        result = await ImportService(stores).import_file(
            entity, file.filename or "", data, default_project_id=default_project_id
        )
    return result.to_dict()


@router.post("/{entity}/scanned", response_model=ImportResponse)
async def import_scanned(
    entity: str,
    file: UploadFile = File(..., description="PDF или изображение"),
    default_project_id: Optional[str] = Form(None),
    stores: Stores = Depends(get_stores),
    guard: ActionGuard = Depends(get_action_guard),
    ocr: OCRService = Depends(get_ocr_service),
):
    """Распознавание документа и импорт разобранных строк."""
    data = await file.read()
    async with guard.hold(f"imports:{entity}"):
        result = await ImportService(stores, ocr=ocr).import_scanned(
            entity, data, file.content_type or "", default_project_id=default_project_id
        )
    return result.to_dict()
