"""
API роутер для управления проектами
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from apps.api.dependencies import get_stores
from apps.api.schemas import ProjectCreate, ProjectResponse, ProjectUpdate, RoleRateRequest
from shared.services.project_service import ProjectService
from shared.services.record_store import Stores

router = APIRouter(prefix="/projects", tags=["projects"])


@router.get("/", response_model=List[ProjectResponse])
async def list_projects(
    search: Optional[str] = Query(None, description="Поиск по названию или статусу"),
    stores: Stores = Depends(get_stores),
):
    return await ProjectService(stores).list_projects(search=search)


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(project_id: str, stores: Stores = Depends(get_stores)):
    return await ProjectService(stores).get_project(project_id)


@router.post("/", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
async def create_project(data: ProjectCreate, stores: Stores = Depends(get_stores)):
    """Создание проекта."""
    return await ProjectService(stores).create_project(data.model_dump(exclude_unset=True))


@router.patch("/{project_id}", response_model=ProjectResponse)
async def update_project(project_id: str, data: ProjectUpdate, stores: Stores = Depends(get_stores)):
    return await ProjectService(stores).update_project(project_id, data.model_dump(exclude_unset=True))


@router.put("/{project_id}/role-rates/{role}", response_model=ProjectResponse)
async def set_role_rate(project_id: str, role: str, data: RoleRateRequest, stores: Stores = Depends(get_stores)):
    """Ставка проекта для специальности."""
    return await ProjectService(stores).set_role_rate(project_id, role, data.rate)


@router.delete("/{project_id}/role-rates/{role}", response_model=ProjectResponse)
async def remove_role_rate(project_id: str, role: str, stores: Stores = Depends(get_stores)):
    return await ProjectService(stores).remove_role_rate(project_id, role)


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(project_id: str, stores: Stores = Depends(get_stores)):
    """Удаление проекта без сотрудников, начислений и расходов."""
    await ProjectService(stores).delete_project(project_id)
