from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from workflow_designer.api.dependencies import get_store
from workflow_designer.schemas.auth import LoginRequest, LoginResponse
from workflow_designer.services.sandbox_store import SandboxStore

router = APIRouter()


@router.post("/login", response_model=LoginResponse)
async def login(payload: LoginRequest, store: SandboxStore = Depends(get_store)) -> LoginResponse:
    user = store.authenticate(payload.username.strip(), payload.password)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
        )
    return LoginResponse(user_id=user.id, roles=user.roles)
