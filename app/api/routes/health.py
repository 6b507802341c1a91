"""API routes for service health, tenant statistics and session teardown."""

from datetime import datetime, timezone
from fastapi import APIRouter, Depends, Request

from app.core.auth import get_current_tenant, get_registry
from app.models.schemas import ApiResponse
from app.services.project_registry import ProjectRegistry

router = APIRouter(tags=["health"])

SERVICE_VERSION = "0.1.0"


@router.get("/health")
async def health():
    """Report that the service is up."""
    return {
        "status": "ok",
        "version": SERVICE_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/stats", response_model=ApiResponse)
async def get_stats(registry: ProjectRegistry = Depends(get_registry)):
    """
    Aggregate table and row counts across the tenant's projects.

    Usage counters in the response are placeholders and always zero.
    """
    return ApiResponse(success=True, data=registry.stats)


@router.delete("/session", response_model=ApiResponse)
async def close_session(request: Request, tenant_id: str = Depends(get_current_tenant)):
    """End the tenant's session. The next request reloads its projects."""
    closed = await request.app.state.sessions.close(tenant_id)
    return ApiResponse(success=True, message="Session closed" if closed else "No open session")
