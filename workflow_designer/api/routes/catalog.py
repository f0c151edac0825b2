from __future__ import annotations

from fastapi import APIRouter, Depends

from workflow_designer.api.dependencies import get_store
from workflow_designer.schemas.catalog import RoleOut, UserOut
from workflow_designer.services.sandbox_store import SandboxStore

router = APIRouter()


@router.get("/roles", response_model=list[RoleOut])
async def list_roles(store: SandboxStore = Depends(get_store)):
    return store.list_roles()


@router.get("/users", response_model=list[UserOut])
async def list_users(store: SandboxStore = Depends(get_store)):
    return store.list_users()
