"""
Главный API роутер Dalal
"""
from fastapi import APIRouter

from apps.api.routers.advances import router as advances_router
from apps.api.routers.employees import router as employees_router
from apps.api.routers.expenses import router as expenses_router
from apps.api.routers.imports import router as imports_router
from apps.api.routers.payroll import router as payroll_router
from apps.api.routers.projects import router as projects_router
from apps.api.routers.reports import router as reports_router

# Создаем главный роутер
api_router = APIRouter(prefix="/api/v1")

# Подключаем роутеры
api_router.include_router(employees_router)
api_router.include_router(projects_router)
api_router.include_router(advances_router)
api_router.include_router(payroll_router)
api_router.include_router(expenses_router)
api_router.include_router(imports_router)
api_router.include_router(reports_router)
