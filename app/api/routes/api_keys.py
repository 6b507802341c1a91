from fastapi import APIRouter, Depends, status

from app.core.auth import get_registry
from app.models.schemas import ApiKeyCreate, ApiResponse
from app.services.project_registry import ProjectRegistry

router = APIRouter(prefix="/projects/{project_id}/keys", tags=["api-keys"])


@router.get("", response_model=ApiResponse)
async def list_api_keys(project_id: str, registry: ProjectRegistry = Depends(get_registry)):
    """
    List the API keys of a project, revoked keys included.
    """
    project = registry.get_project(project_id)
    return ApiResponse(success=True, data=project.api_keys)


@router.post("", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
async def create_api_key(
    project_id: str,
    api_key_data: ApiKeyCreate,
    registry: ProjectRegistry = Depends(get_registry),
):
    """
    Issue a new API key for a project.

    ``anon`` keys are read only; ``service_role`` keys can read, write, delete
    and administer.
    """
    api_key = await registry.issue_api_key(project_id, api_key_data.name, api_key_data.type)
    return ApiResponse(success=True, message="API key created successfully", data=api_key)


@router.delete("/{key_id}", response_model=ApiResponse)
async def revoke_api_key(
    project_id: str,
    key_id: str,
    registry: ProjectRegistry = Depends(get_registry),
):
    """
    Revoke an API key. The key stays listed as inactive.
    """
    api_key = await registry.revoke_api_key(project_id, key_id)
    return ApiResponse(success=True, message="API key revoked successfully", data=api_key)
