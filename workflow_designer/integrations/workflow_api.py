from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import TypeAdapter

from workflow_designer.config import settings
from workflow_designer.core.exceptions import GENERIC_NETWORK_ERROR, BackendError, NetworkError
from workflow_designer.schemas.auth import LoginRequest, LoginResponse
from workflow_designer.schemas.catalog import RoleOut, UserOut
from workflow_designer.schemas.workflow import StageIn, StageOut, WorkflowMeta, WorkflowOut

logger = logging.getLogger(__name__)

_ROLES = TypeAdapter(list[RoleOut])
_USERS = TypeAdapter(list[UserOut])
_WORKFLOWS = TypeAdapter(list[WorkflowOut])


def error_message(response: httpx.Response) -> str:
    """Best available message from a failed response's payload."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for key in ("message", "detail"):
            value = body.get(key)
            if isinstance(value, str) and value.strip():
                return value
    return f"Request failed with status code {response.status_code}"


class WorkflowAPIClient:
    """Request/response client for the workflow backend.

    Stage payloads always carry the full action list; actions have no endpoint
    of their own.
    """

    def __init__(
        self,
        base_url: str | None = None,
        api_prefix: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.base_url).rstrip("/")
        self.api_prefix = api_prefix if api_prefix is not None else settings.api_prefix
        options: dict[str, Any] = {
            "base_url": self.base_url,
            "headers": {"Content-Type": "application/json"},
        }
        timeout = timeout if timeout is not None else settings.request_timeout
        if timeout is not None:
            options["timeout"] = timeout
        if transport is not None:
            options["transport"] = transport
        self.client = httpx.AsyncClient(**options)

    async def __aenter__(self) -> WorkflowAPIClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    async def _request(self, method: str, path: str, payload: Any = None) -> Any:
        kwargs: dict[str, Any] = {}
        if payload is not None:
            kwargs["json"] = payload.model_dump(by_alias=True, mode="json")
        try:
            response = await self.client.request(method, path, **kwargs)
        except httpx.RequestError as exc:
            logger.error("%s %s failed: %s", method, path, exc)
            raise NetworkError(str(exc) or GENERIC_NETWORK_ERROR) from exc

        if response.is_error:
            message = error_message(response)
            logger.error("%s %s returned %s: %s", method, path, response.status_code, response.text)
            raise BackendError(message, response.status_code)
        return response.json() if response.content else None

    def _api(self, path: str) -> str:
        return f"{self.api_prefix}{path}"

    async def login(self, username: str, password: str) -> LoginResponse:
        body = await self._request(
            "POST",
            settings.auth_login_path,
            LoginRequest(username=username, password=password),
        )
        return LoginResponse.model_validate(body)

    async def list_roles(self) -> list[RoleOut]:
        return _ROLES.validate_python(await self._request("GET", self._api("/roles")) or [])

    async def list_users(self) -> list[UserOut]:
        return _USERS.validate_python(await self._request("GET", self._api("/users")) or [])

    async def list_workflows(self) -> list[WorkflowOut]:
        return _WORKFLOWS.validate_python(await self._request("GET", self._api("/workflows")) or [])

    async def get_workflow(self, workflow_id: int) -> WorkflowOut:
        body = await self._request("GET", self._api(f"/workflows/{workflow_id}"))
        return WorkflowOut.model_validate(body)

    async def create_workflow(self, meta: WorkflowMeta) -> WorkflowOut:
        body = await self._request("POST", self._api("/workflows"), meta)
        created = WorkflowOut.model_validate(body)
        if created.workflow_id is None:
            raise BackendError("Failed to retrieve new workflow ID", 200)
        logger.info("Created workflow %s (%s)", created.workflow_id, created.name)
        return created

    async def update_workflow(self, workflow_id: int, meta: WorkflowMeta) -> WorkflowOut:
        body = await self._request("PUT", self._api(f"/workflows/{workflow_id}"), meta)
        return WorkflowOut.model_validate(body)

    async def delete_workflow(self, workflow_id: int) -> None:
        await self._request("DELETE", self._api(f"/workflows/{workflow_id}"))

    async def create_stage(self, workflow_id: int, stage: StageIn) -> StageOut:
        body = await self._request("POST", self._api(f"/workflows/{workflow_id}/stages"), stage)
        return StageOut.model_validate(body)

    async def get_stage(self, workflow_id: int, stage_id: int) -> StageOut:
        body = await self._request("GET", self._api(f"/workflows/{workflow_id}/stages/{stage_id}"))
        return StageOut.model_validate(body)

    async def update_stage(self, workflow_id: int, stage_id: int, stage: StageIn) -> StageOut:
        body = await self._request(
            "PUT",
            self._api(f"/workflows/{workflow_id}/stages/{stage_id}"),
            stage,
        )
        return StageOut.model_validate(body)

    async def delete_stage(self, workflow_id: int, stage_id: int) -> None:
        await self._request("DELETE", self._api(f"/workflows/{workflow_id}/stages/{stage_id}"))
