"""Shared API dependencies."""
from fastapi import Request

from workflow_designer.services.sandbox_store import SandboxStore


def get_store(request: Request) -> SandboxStore:
    return request.app.state.store


__all__ = ["get_store"]
