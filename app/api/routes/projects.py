"""API routes for tenant projects and their configuration."""

from fastapi import APIRouter, Depends, status
from loguru import logger

from app.core.auth import get_registry
from app.models.schemas import (
    ApiResponse,
    AuthConfigUpdate,
    CurrentProjectSelect,
    ProjectCreate,
    ProjectUpdate,
    RLSPolicyCreate,
    StorageConfigUpdate,
)
from app.services.project_registry import ProjectRegistry

router = APIRouter(prefix="/projects", tags=["projects"])


@router.get("", response_model=ApiResponse)
async def list_projects(registry: ProjectRegistry = Depends(get_registry)):
    """List every project of the authenticated tenant."""
    return ApiResponse(success=True, data=registry.list_projects())


@router.post("", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
async def create_project(
    project_data: ProjectCreate,
    registry: ProjectRegistry = Depends(get_registry),
):
    """
    Create a project.

    The project starts with an anon key, a service role key, default auth
    settings and a public "default" storage bucket.
    """
    project = await registry.create_project(
        name=project_data.name,
        description=project_data.description,
        region=project_data.region,
    )
    logger.info(f"Project {project.id} created for tenant {registry.tenant_id}")
    return ApiResponse(success=True, message="Project created successfully", data=project)


@router.get("/current", response_model=ApiResponse)
async def get_current_project(registry: ProjectRegistry = Depends(get_registry)):
    """Get the project selected in this session, if any."""
    return ApiResponse(success=True, data=registry.current_project)


@router.put("/current", response_model=ApiResponse)
async def select_current_project(
    selection: CurrentProjectSelect,
    registry: ProjectRegistry = Depends(get_registry),
):
    """Select the session's current project. A null id clears the selection."""
    project = registry.select_current(selection.project_id)
    return ApiResponse(success=True, data=project)


@router.get("/{project_id}", response_model=ApiResponse)
async def get_project(project_id: str, registry: ProjectRegistry = Depends(get_registry)):
    return ApiResponse(success=True, data=registry.get_project(project_id))


@router.patch("/{project_id}", response_model=ApiResponse)
async def update_project(
    project_id: str,
    project_update: ProjectUpdate,
    registry: ProjectRegistry = Depends(get_registry),
):
    """
    Update a project's name, description, region or status.
    """
    update_data = project_update.model_dump(exclude_unset=True, exclude_none=True)
    project = await registry.update_project(project_id, update_data)
    return ApiResponse(success=True, message="Project updated successfully", data=project)


@router.delete("/{project_id}", response_model=ApiResponse)
async def delete_project(project_id: str, registry: ProjectRegistry = Depends(get_registry)):
    """
    Delete a project with all of its tables, rows and API keys.
    """
    await registry.delete_project(project_id)
    logger.info(f"Project {project_id} deleted for tenant {registry.tenant_id}")
    return ApiResponse(success=True, message="Project deleted successfully")


@router.patch("/{project_id}/auth-config", response_model=ApiResponse)
async def update_auth_config(
    project_id: str,
    auth_update: AuthConfigUpdate,
    registry: ProjectRegistry = Depends(get_registry),
):
    auth_config = await registry.update_auth_config(project_id, auth_update)
    return ApiResponse(success=True, message="Auth settings updated", data=auth_config)


@router.patch("/{project_id}/storage-config", response_model=ApiResponse)
async def update_storage_config(
    project_id: str,
    storage_update: StorageConfigUpdate,
    registry: ProjectRegistry = Depends(get_registry),
):
    storage_config = await registry.update_storage_config(project_id, storage_update)
    return ApiResponse(success=True, message="Storage settings updated", data=storage_config)


@router.post("/{project_id}/policies", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
async def create_project_policy(
    project_id: str,
    policy: RLSPolicyCreate,
    registry: ProjectRegistry = Depends(get_registry),
):
    """Attach a project-wide RLS policy. Policies are stored, not enforced."""
    stored = await registry.create_project_policy(project_id, policy)
    return ApiResponse(success=True, message="Policy created", data=stored)
