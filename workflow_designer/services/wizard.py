"""Three-step workflow wizard: details, stages, review.

Stages are persisted one request at a time as they are committed; the final
submit only writes workflow metadata. A failure at submit time leaves the
stages already stored on the backend untouched (no rollback).
"""
from __future__ import annotations

import copy
import logging
from collections.abc import Awaitable, Callable
from enum import IntEnum
from typing import Any

from workflow_designer.core.exceptions import (
    AppError,
    IntegrationError,
    InvalidIndex,
    ValidationError,
)
from workflow_designer.core.security import CapabilityGate
from workflow_designer.integrations.workflow_api import WorkflowAPIClient
from workflow_designer.models.workflow import ActorType, WorkflowDraft, WorkflowStatus, enum_value
from workflow_designer.schemas.workflow import (
    draft_from_wire,
    stage_from_wire,
    stage_payload,
    workflow_meta,
)
from workflow_designer.services.catalog import Catalog
from workflow_designer.services.stage_editor import EditorMode, StageEditor
from workflow_designer.services.transitions import describe_transition, resolve_next
from workflow_designer.services.validation import (
    ensure_valid,
    validate_stage_list,
    validate_workflow_meta,
)

logger = logging.getLogger(__name__)


class WizardStep(IntEnum):
    DETAILS = 1
    STAGES = 2
    REVIEW = 3


class WorkflowWizard:
    def __init__(
        self,
        client: WorkflowAPIClient,
        gate: CapabilityGate,
        catalog: Catalog | None = None,
        existing: WorkflowDraft | None = None,
    ) -> None:
        self.client = client
        self.gate = gate
        self.catalog = catalog or Catalog()
        self.draft = copy.deepcopy(existing) if existing else WorkflowDraft()
        self.editor = StageEditor(self.draft, gate)
        self.step = WizardStep.DETAILS
        self.error: str | None = None
        self.loading = False

    @property
    def workflow_id(self) -> int | None:
        return self.draft.workflow_id

    @property
    def warnings(self) -> list[str]:
        return self.catalog.warnings

    def _fail(self, exc: AppError, label: str) -> None:
        if isinstance(exc, IntegrationError):
            self.error = f"{label}: {exc}"
        else:
            self.error = str(exc)
        logger.error("%s: %s", label, exc)

    async def _run(self, label: str, operation: Callable[[], Awaitable[Any]]) -> bool:
        if self.loading:
            logger.debug("Dropped '%s' while another request is in flight", label)
            return False
        self.loading = True
        try:
            await operation()
        except AppError as exc:
            self._fail(exc, label)
            return False
        finally:
            self.loading = False
        self.error = None
        return True

    def _guard(self, label: str, operation: Callable[[], Any]) -> bool:
        # The buffer belongs to the request in flight until it completes.
        if self.loading:
            logger.debug("Dropped '%s' while another request is in flight", label)
            return False
        try:
            operation()
        except AppError as exc:
            self._fail(exc, label)
            return False
        self.error = None
        return True

    async def load(self) -> bool:
        """Fetch the role catalog and, in edit mode, the full persisted workflow."""
        if not self.gate.allowed:
            self.error = "Access Denied: Only Workflow Designers can create or manage workflows."
            return False

        await self.catalog.load_roles(self.client)
        self.editor.role_ids = self.catalog.role_ids
        if self.workflow_id is None:
            return True

        async def hydrate() -> None:
            fetched = draft_from_wire(await self.client.get_workflow(self.workflow_id))
            self.draft.name = fetched.name
            self.draft.description = fetched.description
            self.draft.status = fetched.status
            self.draft.stages = fetched.stages
            self.draft.workflow_id = fetched.workflow_id
            logger.info("Loaded workflow %s with %d stages", self.workflow_id, len(self.draft.stages))

        return await self._run("Failed to load workflow data", hydrate)

    def set_details(
        self,
        name: str | None = None,
        description: str | None = None,
        status: WorkflowStatus | str | None = None,
    ) -> bool:
        def apply() -> None:
            self.gate.require("create workflows")
            if name is not None:
                self.draft.name = name
            if description is not None:
                self.draft.description = description
            if status is not None:
                try:
                    self.draft.status = WorkflowStatus(enum_value(status))
                except ValueError:
                    raise ValidationError(
                        "InvalidStatus", 'Workflow status must be either "active" or "inactive"'
                    ) from None

        return self._guard("Failed to update workflow details", apply)

    def validate_step(self) -> bool:
        def check() -> None:
            if self.step == WizardStep.DETAILS:
                self.gate.require("create workflows")
                ensure_valid(validate_workflow_meta(self.draft))
            elif self.step == WizardStep.STAGES:
                self.gate.require("manage stages")
                ensure_valid(validate_stage_list(self.draft.stages))

        return self._guard("Validation failed", check)

    def next_step(self) -> bool:
        if not self.gate.allowed:
            self.error = "Access Denied: Only Workflow Designers can proceed."
            return False
        if not self.validate_step():
            return False
        if self.step < WizardStep.REVIEW:
            self.step = WizardStep(self.step + 1)
            logger.debug("Moved to wizard step %s", self.step.name)
        return True

    def previous_step(self) -> None:
        if self.step > WizardStep.DETAILS:
            self.step = WizardStep(self.step - 1)

    # Buffer editing, with errors routed to the error slot.

    def begin_new_stage(self) -> bool:
        if self.loading:
            logger.debug("Dropped new stage request while another request is in flight")
            return False
        self.editor.begin_new_stage()
        return True

    def update_stage_fields(self, **changes: Any) -> bool:
        return self._guard("Failed to update stage", lambda: self.editor.update_stage_fields(**changes))

    def set_document_count(self, count: int) -> bool:
        return self.update_stage_fields(document_count=count)

    def set_documents_required(self, required: bool) -> bool:
        return self.update_stage_fields(documents_required=required)

    def add_action(self) -> bool:
        return self._guard("Failed to add action", self.editor.add_action)

    def update_action(self, index: int, field_name: str, value: Any) -> bool:
        return self._guard(
            "Failed to update action",
            lambda: self.editor.update_action(index, field_name, value),
        )

    def remove_action(self, index: int) -> bool:
        return self._guard("Failed to delete action", lambda: self.editor.remove_action(index))

    # Persistence.

    async def create_workflow_if_needed(self) -> int:
        self.gate.require("create workflows")
        if self.workflow_id is not None:
            return self.workflow_id
        created = await self.client.create_workflow(workflow_meta(self.draft))
        self.draft.workflow_id = created.workflow_id
        return created.workflow_id

    async def commit_stage(self) -> bool:
        """Validate the buffer, persist it, then commit the backend's copy locally.

        On failure the buffer is kept so the same stage can simply be retried.
        """
        editing = self.editor.mode == EditorMode.COMPOSING_EDIT
        label = "Failed to update stage" if editing else "Failed to add stage"

        async def persist() -> None:
            sent = self.editor.state
            pending = self.editor.pending_stage()
            workflow_id = await self.create_workflow_if_needed()
            payload = stage_payload(pending)
            if editing:
                if pending.stage_id is None:
                    raise InvalidIndex("Invalid stage or validation failed.")
                saved = await self.client.update_stage(workflow_id, pending.stage_id, payload)
            else:
                saved = await self.client.create_stage(workflow_id, payload)
            self.editor.commit_stage(stage_from_wire(saved), state=sent)

        return await self._run(label, persist)

    async def edit_stage(self, index: int) -> bool:
        """Re-fetch a persisted stage and load it into the buffer."""

        async def fetch() -> None:
            self.gate.require("edit stages")
            if not 0 <= index < len(self.draft.stages) or not self.draft.stages[index].persisted:
                raise InvalidIndex("Invalid stage selected for editing.")
            if self.workflow_id is None:
                raise InvalidIndex("Workflow ID not found.")
            stage_id = self.draft.stages[index].stage_id
            fetched = stage_from_wire(await self.client.get_stage(self.workflow_id, stage_id))
            self.draft.stages[index] = fetched
            self.editor.begin_edit_stage(index)
            self.step = WizardStep.STAGES

        return await self._run("Failed to load stage for editing", fetch)

    async def delete_stage(self, index: int) -> bool:
        async def remove() -> None:
            self.gate.require("delete stages")
            if not 0 <= index < len(self.draft.stages) or not self.draft.stages[index].persisted:
                raise InvalidIndex("Invalid stage selected for deletion.")
            if self.workflow_id is None:
                raise InvalidIndex("Workflow ID not found.")
            await self.client.delete_stage(self.workflow_id, self.draft.stages[index].stage_id)
            removed = self.editor.remove_stage(index)
            logger.info("Deleted stage %s (%s)", removed.stage_id, removed.name)

        return await self._run("Failed to delete stage", remove)

    async def submit(self) -> WorkflowDraft | None:
        async def save() -> None:
            self.gate.require("save workflows")
            ensure_valid(validate_workflow_meta(self.draft))
            ensure_valid(validate_stage_list(self.draft.stages))
            meta = workflow_meta(self.draft)
            if self.workflow_id is not None:
                await self.client.update_workflow(self.workflow_id, meta)
            else:
                created = await self.client.create_workflow(meta)
                self.draft.workflow_id = created.workflow_id
            logger.info("Workflow %s saved with %d stages", self.workflow_id, len(self.draft.stages))

        if not await self._run("Failed to save workflow", save):
            return None
        return self.draft

    # Display helpers.

    def role_name(self, role_id: int | None) -> str:
        return self.catalog.role_name(role_id)

    def stage_name(self, stage_id: int | None) -> str:
        if not stage_id:
            return "N/A"
        stage = self.draft.find_stage(stage_id)
        return stage.name if stage else "Unknown Stage"

    def review_summary(self) -> list[dict[str, Any]]:
        stages = self.draft.stages
        summary = []
        for index, stage in enumerate(stages):
            if enum_value(stage.actor_type) == ActorType.ROLE.value:
                actor = f"Role: {self.catalog.role_name(stage.role_id)}"
            else:
                actor = f"User: {self.catalog.user_name(stage.user_id)}"
            summary.append(
                {
                    "seq_no": stage.seq_no,
                    "name": stage.name,
                    "description": stage.description,
                    "actor": actor,
                    "actor_count": stage.actor_count,
                    "quorum": enum_value(stage.quorum),
                    "conflict_check": stage.conflict_check,
                    "documents": stage.document_count if stage.documents_required else 0,
                    "actions": [
                        {
                            "name": action.name,
                            "result_type": enum_value(action.result_type),
                            "target": describe_transition(resolve_next(action, index, stages)),
                            "required_count": action.required_count,
                        }
                        for action in stage.actions
                    ],
                }
            )
        return summary
