from typing import Optional
from fastapi import APIRouter, Depends, Query, status

from koko_api.controllers.dependencies import get_current_user_id, get_project_service
from koko_api.models import ProjectStatus
from koko_api.schema import (
    ApiResponse,
    CreateProjectRequest,
    DeleteResponse,
    DuplicateProjectRequest,
    DuplicateProjectResponse,
    ProjectDetail,
    ProjectSchema,
    UpdateProjectRequest,
)
from koko_api.services.project_service import ProjectService


router = APIRouter(prefix="/projects", tags=["Projects"])


@router.post("", response_model=ApiResponse[ProjectSchema], status_code=status.HTTP_201_CREATED)
async def create_project(
    payload: CreateProjectRequest,
    user_id: str = Depends(get_current_user_id),
    project_service: ProjectService = Depends(get_project_service),
):
    project = await project_service.create(user_id, payload)
    return ApiResponse(success=True, message="Project created successfully", data=project)


@router.get("", response_model=ApiResponse[list[ProjectSchema]])
async def list_projects(
    project_status: ProjectStatus = Query(default=ProjectStatus.ACTIVE, alias="status"),
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    user_id: str = Depends(get_current_user_id),
    project_service: ProjectService = Depends(get_project_service),
):
    projects = project_service.get_all(user_id, project_status, limit, offset)
    return ApiResponse(success=True, message="Projects retrieved successfully", data=projects)


@router.get("/{project_id}", response_model=ApiResponse[ProjectDetail])
async def get_project(
    project_id: str,
    user_id: str = Depends(get_current_user_id),
    project_service: ProjectService = Depends(get_project_service),
):
    project = project_service.get_by_id(user_id, project_id)
    return ApiResponse(success=True, message="Project retrieved successfully", data=project)


@router.patch("/{project_id}", response_model=ApiResponse[ProjectSchema])
async def update_project(
    project_id: str,
    payload: UpdateProjectRequest,
    user_id: str = Depends(get_current_user_id),
    project_service: ProjectService = Depends(get_project_service),
):
    project = await project_service.update(user_id, project_id, payload)
    return ApiResponse(success=True, message="Project updated successfully", data=project)


@router.delete("/{project_id}", response_model=ApiResponse[DeleteResponse])
async def delete_project(
    project_id: str,
    user_id: str = Depends(get_current_user_id),
    project_service: ProjectService = Depends(get_project_service),
):
    await project_service.delete(user_id, project_id)
    return ApiResponse(success=True, message=f"Project {project_id} deleted successfully", data=DeleteResponse(success=True))


@router.post("/{project_id}/archive", response_model=ApiResponse[ProjectSchema])
async def archive_project(
    project_id: str,
    user_id: str = Depends(get_current_user_id),
    project_service: ProjectService = Depends(get_project_service),
):
    project = project_service.archive(user_id, project_id)
    return ApiResponse(success=True, message="Project archived successfully", data=project)


@router.post("/{project_id}/restore", response_model=ApiResponse[ProjectSchema])
async def restore_project(
    project_id: str,
    user_id: str = Depends(get_current_user_id),
    project_service: ProjectService = Depends(get_project_service),
):
    project = project_service.restore(user_id, project_id)
    return ApiResponse(success=True, message="Project restored successfully", data=project)


@router.post(
    "/{project_id}/duplicate",
    response_model=ApiResponse[DuplicateProjectResponse],
    status_code=status.HTTP_201_CREATED,
)
async def duplicate_project(
    project_id: str,
    payload: Optional[DuplicateProjectRequest] = None,
    user_id: str = Depends(get_current_user_id),
    project_service: ProjectService = Depends(get_project_service),
):
    result = project_service.duplicate(user_id, project_id, payload or DuplicateProjectRequest())
    return ApiResponse(success=True, message="Project duplicated successfully", data=result)
