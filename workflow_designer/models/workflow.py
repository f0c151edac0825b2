"""In-memory workflow definition: a draft, its ordered stages and their actions."""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum


class WorkflowStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class ActorType(str, Enum):
    ROLE = "role"
    USER = "user"


class Quorum(str, Enum):
    ANY = "any"
    ALL = "all"


class ResultType(str, Enum):
    NEXT = "next"
    PREV = "prev"
    COMPLETE = "complete"
    SPECIFIC = "specific"


def enum_value(value) -> str:
    """Plain string for an enum member or a raw value coming from user input."""
    return value.value if isinstance(value, Enum) else str(value)


def new_temp_id() -> str:
    return f"action-{uuid.uuid4().hex}"


@dataclass
class Action:
    name: str = ""
    description: str | None = None
    result_type: ResultType | str = ResultType.NEXT
    specific_target: int | None = None
    required_count: int = 1
    action_id: int | None = None
    stage_id: int | None = None
    # Regenerated on every load so list rendering stays stable; never part of equality.
    temp_id: str = field(default_factory=new_temp_id, compare=False)

    def clone(self) -> Action:
        return Action(
            name=self.name,
            description=self.description,
            result_type=self.result_type,
            specific_target=self.specific_target,
            required_count=self.required_count,
            action_id=self.action_id,
            stage_id=self.stage_id,
        )


@dataclass
class Stage:
    name: str
    description: str
    seq_no: int = 0
    actor_type: ActorType | str = ActorType.ROLE
    role_id: int | None = None
    user_id: int | None = None
    actor_count: int = 1
    quorum: Quorum | str = Quorum.ANY
    conflict_check: bool = False
    documents_required: bool = False
    document_count: int = 0
    actions: list[Action] = field(default_factory=list)
    stage_id: int | None = None
    workflow_id: int | None = None

    @property
    def persisted(self) -> bool:
        return self.stage_id is not None


@dataclass
class WorkflowDraft:
    name: str = ""
    description: str = ""
    status: WorkflowStatus | str = WorkflowStatus.ACTIVE
    stages: list[Stage] = field(default_factory=list)
    workflow_id: int | None = None

    def find_stage(self, stage_id: int | None) -> Stage | None:
        if stage_id is None:
            return None
        return next((stage for stage in self.stages if stage.stage_id == stage_id), None)
