from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from workflow_designer.core.exceptions import AppError, IntegrationError
from workflow_designer.core.security import CapabilityGate
from workflow_designer.integrations.workflow_api import WorkflowAPIClient
from workflow_designer.models.workflow import ResultType, WorkflowDraft
from workflow_designer.schemas.workflow import (
    StageIn,
    StageOut,
    WorkflowMeta,
    WorkflowOut,
    draft_from_wire,
    workflow_out,
)
from workflow_designer.services.catalog import Catalog
from workflow_designer.services.wizard import WorkflowWizard

logger = logging.getLogger(__name__)


def _remap_targets(stage: StageOut, id_map: dict[int, int]) -> tuple[StageIn, bool]:
    """Copy a stage body pointing specific actions at the copied stages.

    Returns the payload and whether some targets could not be mapped yet.
    """
    deferred = False
    actions = []
    for action in stage.actions:
        target = None
        if action.result_type == ResultType.SPECIFIC.value:
            target = id_map.get(action.next_stage_id) if action.next_stage_id is not None else None
            deferred = deferred or target is None
        actions.append(
            {
                "name": action.name,
                "description": action.description,
                "result_type": action.result_type,
                "next_stage_id": target,
                "required_count": action.required_count,
            }
        )
    body = stage.model_dump(include=set(StageIn.model_fields) - {"actions"})
    return StageIn(**body, actions=actions), deferred


class Dashboard:
    """Workflow list with delete, copy and edit entry points."""

    def __init__(self, client: WorkflowAPIClient, gate: CapabilityGate, catalog: Catalog | None = None):
        self.client = client
        self.gate = gate
        self.catalog = catalog or Catalog()
        self.workflows: list[WorkflowOut] = []
        self.error: str | None = None
        self.loading = False

    @property
    def warnings(self) -> list[str]:
        return self.catalog.warnings

    async def _run(self, label: str, operation: Callable[[], Awaitable[Any]]) -> bool:
        if self.loading:
            logger.debug("Dropped '%s' while another request is in flight", label)
            return False
        self.loading = True
        try:
            await operation()
        except AppError as exc:
            self.error = f"{label}: {exc}" if isinstance(exc, IntegrationError) else str(exc)
            logger.error("%s: %s", label, exc)
            return False
        finally:
            self.loading = False
        self.error = None
        return True

    async def refresh(self) -> bool:
        await self.catalog.load_roles(self.client)
        await self.catalog.load_users(self.client)

        async def fetch() -> None:
            self.workflows = await self.client.list_workflows()
            logger.info("Fetched %d workflows", len(self.workflows))

        return await self._run("Failed to fetch workflows", fetch)

    def find(self, workflow_id: int) -> WorkflowOut | None:
        return next((wf for wf in self.workflows if wf.workflow_id == workflow_id), None)

    async def delete_workflow(self, workflow_id: int) -> bool:
        async def remove() -> None:
            self.gate.require("delete workflows")
            await self.client.delete_workflow(workflow_id)
            self.workflows = [wf for wf in self.workflows if wf.workflow_id != workflow_id]
            logger.info("Workflow %s deleted", workflow_id)

        return await self._run("Failed to delete workflow", remove)

    async def copy_workflow(self, workflow_id: int) -> WorkflowOut | None:
        """Duplicate a workflow and its stages under "<name> (Copy)".

        Specific targets are remapped to the copied stages. Stages whose
        targets are created later in the sequence get a follow-up update once
        every copy exists.
        """
        copied: list[WorkflowOut] = []

        async def duplicate() -> None:
            self.gate.require("copy workflows")
            source = self.find(workflow_id) or await self.client.get_workflow(workflow_id)
            created = await self.client.create_workflow(
                WorkflowMeta(
                    name=f"{source.name} (Copy)",
                    description=source.description,
                    status=source.status,
                )
            )
            new_id = created.workflow_id

            id_map: dict[int, int] = {}
            new_stages: list[StageOut] = []
            pending: list[int] = []
            for stage in source.stages:
                payload, deferred = _remap_targets(stage, id_map)
                saved = await self.client.create_stage(new_id, payload)
                if stage.stage_id is not None and saved.stage_id is not None:
                    id_map[stage.stage_id] = saved.stage_id
                if deferred:
                    pending.append(len(new_stages))
                new_stages.append(saved)

            for position in pending:
                payload, _ = _remap_targets(source.stages[position], id_map)
                new_stages[position] = await self.client.update_stage(
                    new_id, new_stages[position].stage_id, payload
                )

            duplicated = created.model_copy(update={"stages": new_stages})
            self.workflows.append(duplicated)
            copied.append(duplicated)
            logger.info("Workflow %s copied to %s", workflow_id, new_id)

        if not await self._run("Failed to copy workflow", duplicate):
            return None
        return copied[0]

    def edit_workflow(self, workflow_id: int) -> WorkflowWizard | None:
        """Open the wizard on an existing workflow; call ``load()`` on it next."""
        try:
            self.gate.require("edit workflows")
        except AppError as exc:
            self.error = str(exc)
            return None
        source = self.find(workflow_id)
        draft = draft_from_wire(source) if source else WorkflowDraft(workflow_id=workflow_id)
        return WorkflowWizard(self.client, self.gate, self.catalog, existing=draft)

    def upsert(self, draft: WorkflowDraft) -> None:
        """Reflect a wizard's submitted workflow in the list."""
        saved = workflow_out(draft)
        for index, existing in enumerate(self.workflows):
            if existing.workflow_id == draft.workflow_id:
                self.workflows[index] = saved
                return
        self.workflows.append(saved)

    def role_name(self, role_id: int | None) -> str:
        return self.catalog.role_name(role_id)

    def user_name(self, user_id: int | None) -> str:
        return self.catalog.user_name(user_id)
