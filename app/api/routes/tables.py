"""API routes for tables, rows and table policies of a project."""

from typing import Any, Dict
from fastapi import APIRouter, Body, Depends, status

from app.core.auth import get_registry
from app.models.schemas import ApiResponse, RLSPolicyCreate, RLSToggle, TableCreate
from app.services.project_registry import ProjectRegistry

router = APIRouter(prefix="/projects/{project_id}/tables", tags=["tables"])


@router.post("", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
async def create_table(
    project_id: str,
    table_data: TableCreate,
    registry: ProjectRegistry = Depends(get_registry),
):
    """
    Create a table from a list of column definitions.
    """
    table = await registry.create_table(project_id, table_data.name, table_data.columns)
    return ApiResponse(success=True, message="Table created successfully", data=table)


@router.get("/{table_id}", response_model=ApiResponse)
async def get_table(
    project_id: str,
    table_id: str,
    registry: ProjectRegistry = Depends(get_registry),
):
    return ApiResponse(success=True, data=registry.get_table(project_id, table_id))


@router.delete("/{table_id}", response_model=ApiResponse)
async def delete_table(
    project_id: str,
    table_id: str,
    registry: ProjectRegistry = Depends(get_registry),
):
    """
    Delete a table and its rows. Deleting a missing table succeeds without changes.
    """
    removed = await registry.delete_table(project_id, table_id)
    message = "Table deleted successfully" if removed else "Table already deleted"
    return ApiResponse(success=True, message=message, data={"deleted": removed})


@router.put("/{table_id}/rls", response_model=ApiResponse)
async def toggle_rls(
    project_id: str,
    table_id: str,
    toggle: RLSToggle,
    registry: ProjectRegistry = Depends(get_registry),
):
    table = await registry.toggle_rls(project_id, table_id, toggle.enabled)
    return ApiResponse(success=True, data=table)


@router.post("/{table_id}/rows", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
async def add_row(
    project_id: str,
    table_id: str,
    payload: Dict[str, Any] = Body(...),
    registry: ProjectRegistry = Depends(get_registry),
):
    """
    Insert a row. Auto-increment primary keys are assigned by the store.
    """
    row = await registry.add_row(project_id, table_id, payload)
    return ApiResponse(success=True, message="Row added", data=row)


@router.put("/{table_id}/rows/{row_index}", response_model=ApiResponse)
async def update_row(
    project_id: str,
    table_id: str,
    row_index: int,
    payload: Dict[str, Any] = Body(...),
    registry: ProjectRegistry = Depends(get_registry),
):
    """
    Update the row at a position. Positions shift after a row is deleted.
    """
    row = await registry.update_row(project_id, table_id, row_index, payload)
    return ApiResponse(success=True, message="Row updated", data=row)


@router.delete("/{table_id}/rows/{row_index}", response_model=ApiResponse)
async def delete_row(
    project_id: str,
    table_id: str,
    row_index: int,
    registry: ProjectRegistry = Depends(get_registry),
):
    row = await registry.delete_row(project_id, table_id, row_index)
    return ApiResponse(success=True, message="Row deleted", data=row)


@router.post("/{table_id}/policies", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
async def create_table_policy(
    project_id: str,
    table_id: str,
    policy: RLSPolicyCreate,
    registry: ProjectRegistry = Depends(get_registry),
):
    stored = await registry.create_table_policy(project_id, table_id, policy)
    return ApiResponse(success=True, message="Policy created", data=stored)


@router.put("/{table_id}/policies/{policy_id}", response_model=ApiResponse)
async def toggle_table_policy(
    project_id: str,
    table_id: str,
    policy_id: str,
    toggle: RLSToggle,
    registry: ProjectRegistry = Depends(get_registry),
):
    policy = await registry.toggle_table_policy(project_id, table_id, policy_id, toggle.enabled)
    return ApiResponse(success=True, data=policy)
