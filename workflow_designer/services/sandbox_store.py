"""In-memory backend state for the sandbox API.

Ids are assigned sequentially per entity type. Deleting a stage never touches
actions in other stages that point at it.
"""
from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field

from workflow_designer.core.security import hash_password, verify_password
from workflow_designer.schemas.catalog import RoleOut, UserOut
from workflow_designer.schemas.workflow import ActionOut, StageIn, StageOut, WorkflowMeta, WorkflowOut

logger = logging.getLogger(__name__)

SEED_SALT = "5a3f0c9e1b7d42e8a6c4b2d0f8e6a4c2"
SEED_ITERATIONS = 10000


@dataclass
class SandboxUser:
    id: int
    username: str
    password_hash: str
    roles: list[str] = field(default_factory=list)


def _seed_user(user_id: int, username: str, password: str, roles: list[str]) -> SandboxUser:
    return SandboxUser(
        id=user_id,
        username=username,
        password_hash=hash_password(password, SEED_SALT, iterations=SEED_ITERATIONS),
        roles=roles,
    )


class SandboxStore:
    def __init__(self) -> None:
        self.roles: dict[int, str] = {
            1: "workflow-designer",
            2: "reviewer",
            3: "approver",
            4: "finance",
        }
        self.users: dict[int, SandboxUser] = {
            user.id: user
            for user in (
                _seed_user(1, "designer", "designer", ["workflow-designer", "reviewer"]),
                _seed_user(2, "reviewer", "reviewer", ["reviewer"]),
                _seed_user(3, "approver", "approver", ["approver", "finance"]),
            )
        }
        self.workflows: dict[int, WorkflowOut] = {}
        self._workflow_ids = itertools.count(1)
        self._stage_ids = itertools.count(1)
        self._action_ids = itertools.count(1)

    def authenticate(self, username: str, password: str) -> SandboxUser | None:
        user = next((u for u in self.users.values() if u.username == username), None)
        if user is None or not verify_password(password, user.password_hash):
            return None
        return user

    def list_roles(self) -> list[RoleOut]:
        return [RoleOut(id=role_id, name=name) for role_id, name in self.roles.items()]

    def list_users(self) -> list[UserOut]:
        return [UserOut(id=user.id, name=user.username) for user in self.users.values()]

    def list_workflows(self) -> list[WorkflowOut]:
        return list(self.workflows.values())

    def get_workflow(self, workflow_id: int) -> WorkflowOut | None:
        return self.workflows.get(workflow_id)

    def create_workflow(self, meta: WorkflowMeta) -> WorkflowOut:
        workflow = WorkflowOut(**meta.model_dump(), workflow_id=next(self._workflow_ids))
        self.workflows[workflow.workflow_id] = workflow
        logger.info("Sandbox created workflow %s", workflow.workflow_id)
        return workflow

    def update_workflow(self, workflow_id: int, meta: WorkflowMeta) -> WorkflowOut | None:
        workflow = self.workflows.get(workflow_id)
        if workflow is None:
            return None
        updated = workflow.model_copy(update=meta.model_dump())
        self.workflows[workflow_id] = updated
        return updated

    def delete_workflow(self, workflow_id: int) -> bool:
        return self.workflows.pop(workflow_id, None) is not None

    def _build_stage(self, workflow_id: int, stage_id: int, payload: StageIn) -> StageOut:
        actions = [
            ActionOut(**action.model_dump(), action_id=next(self._action_ids), stage_id=stage_id)
            for action in payload.actions
        ]
        return StageOut(
            **payload.model_dump(exclude={"actions"}),
            stage_id=stage_id,
            workflow_id=workflow_id,
            actions=actions,
        )

    def get_stage(self, workflow_id: int, stage_id: int) -> StageOut | None:
        workflow = self.workflows.get(workflow_id)
        if workflow is None:
            return None
        return next((s for s in workflow.stages if s.stage_id == stage_id), None)

    def create_stage(self, workflow_id: int, payload: StageIn) -> StageOut | None:
        workflow = self.workflows.get(workflow_id)
        if workflow is None:
            return None
        stage = self._build_stage(workflow_id, next(self._stage_ids), payload)
        workflow.stages.append(stage)
        return stage

    def update_stage(self, workflow_id: int, stage_id: int, payload: StageIn) -> StageOut | None:
        workflow = self.workflows.get(workflow_id)
        if workflow is None:
            return None
        for index, existing in enumerate(workflow.stages):
            if existing.stage_id == stage_id:
                # Actions are rewritten as a whole with the stage.
                workflow.stages[index] = self._build_stage(workflow_id, stage_id, payload)
                return workflow.stages[index]
        return None

    def delete_stage(self, workflow_id: int, stage_id: int) -> bool:
        workflow = self.workflows.get(workflow_id)
        if workflow is None:
            return False
        remaining = [s for s in workflow.stages if s.stage_id != stage_id]
        if len(remaining) == len(workflow.stages):
            return False
        workflow.stages[:] = [
            stage.model_copy(update={"seq_no": position})
            for position, stage in enumerate(remaining, start=1)
        ]
        return True
