"""
Health API Routes
"""
from fastapi import APIRouter, Depends

from workflow_designer.api.dependencies import get_store
from workflow_designer.services.sandbox_store import SandboxStore

router = APIRouter()


@router.get("/health")
async def health_check(store: SandboxStore = Depends(get_store)) -> dict:
    """Sandbox liveness and store size"""
    return {
        "status": "healthy",
        "workflows": len(store.workflows),
        "roles": len(store.roles),
        "users": len(store.users),
    }
