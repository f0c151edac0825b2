"""Stage authoring buffer as an explicit state machine.

States are ``Idle``, ``Composing(new)`` and ``Composing(edit, index)``. The
module-level functions are pure: they take an ``EditorState`` (and the
committed stage list where needed) and return new values without touching
their inputs. ``StageEditor`` binds them to a draft and a capability gate.
"""
from __future__ import annotations

import dataclasses
import logging
from collections.abc import Collection, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from workflow_designer.core.exceptions import InvalidIndex
from workflow_designer.core.security import CapabilityGate
from workflow_designer.models.workflow import (
    Action,
    ActorType,
    Quorum,
    ResultType,
    Stage,
    WorkflowDraft,
    enum_value,
)
from workflow_designer.services.validation import ensure_valid, validate_stage_buffer

logger = logging.getLogger(__name__)

ACTION_FIELDS = frozenset({"name", "description", "result_type", "specific_target", "required_count"})
BUFFER_FIELDS = frozenset(
    {
        "name",
        "description",
        "actor_type",
        "role_id",
        "user_id",
        "actor_count",
        "quorum",
        "conflict_check",
        "documents_required",
        "document_count",
    }
)
# Numeric fields and their fallback when the input does not parse.
INT_FIELDS = {
    "role_id": None,
    "user_id": None,
    "actor_count": 1,
    "document_count": 0,
    "specific_target": None,
    "required_count": 1,
}


class EditorMode(str, Enum):
    IDLE = "idle"
    COMPOSING_NEW = "composing_new"
    COMPOSING_EDIT = "composing_edit"


@dataclass
class StageBuffer:
    name: str = ""
    description: str = ""
    actor_type: ActorType | str = ActorType.ROLE
    role_id: int | None = None
    user_id: int | None = None
    actor_count: int = 1
    quorum: Quorum | str = Quorum.ANY
    conflict_check: bool = False
    documents_required: bool = False
    document_count: int = 0
    actions: list[Action] = field(default_factory=list)
    # Identity carried through an edit so the committed stage keeps it.
    stage_id: int | None = None
    workflow_id: int | None = None
    seq_no: int = 0

    @classmethod
    def from_stage(cls, stage: Stage) -> StageBuffer:
        return cls(
            name=stage.name,
            description=stage.description,
            actor_type=stage.actor_type,
            role_id=stage.role_id,
            user_id=stage.user_id,
            actor_count=stage.actor_count,
            quorum=stage.quorum,
            conflict_check=stage.conflict_check,
            documents_required=stage.documents_required,
            document_count=stage.document_count,
            actions=[action.clone() for action in stage.actions],
            stage_id=stage.stage_id,
            workflow_id=stage.workflow_id,
            seq_no=stage.seq_no,
        )

    def to_stage(self, seq_no: int | None = None) -> Stage:
        return Stage(
            name=self.name,
            description=self.description,
            seq_no=self.seq_no if seq_no is None else seq_no,
            actor_type=self.actor_type,
            role_id=self.role_id,
            user_id=self.user_id,
            actor_count=self.actor_count,
            quorum=self.quorum,
            conflict_check=self.conflict_check,
            documents_required=self.documents_required,
            document_count=self.document_count,
            actions=[dataclasses.replace(action) for action in self.actions],
            stage_id=self.stage_id,
            workflow_id=self.workflow_id,
        )


@dataclass(frozen=True)
class EditorState:
    mode: EditorMode = EditorMode.IDLE
    buffer: StageBuffer | None = None
    index: int | None = None

    @property
    def composing(self) -> bool:
        return self.mode != EditorMode.IDLE


IDLE = EditorState()


def begin_new(state: EditorState) -> EditorState:
    return EditorState(EditorMode.COMPOSING_NEW, StageBuffer())


def begin_edit(state: EditorState, stages: Sequence[Stage], index: int) -> EditorState:
    if not 0 <= index < len(stages) or not stages[index].persisted:
        raise InvalidIndex("Invalid stage selected for editing.")
    return EditorState(EditorMode.COMPOSING_EDIT, StageBuffer.from_stage(stages[index]), index)


def _composing(state: EditorState) -> EditorState:
    # Editing fields from Idle starts a blank stage, like typing into an empty form.
    return state if state.composing else begin_new(state)


def _with_buffer(state: EditorState, **changes: Any) -> EditorState:
    state = _composing(state)
    return dataclasses.replace(state, buffer=dataclasses.replace(state.buffer, **changes))


def _as_int(value: Any, default: int | None) -> int | None:
    """Form values arrive as strings; anything unparseable falls back to ``default``."""
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _coerce_numbers(changes: dict[str, Any]) -> dict[str, Any]:
    coerced = dict(changes)
    for name, default in INT_FIELDS.items():
        if name in coerced:
            coerced[name] = _as_int(coerced[name], default)
    return coerced


def update_buffer(state: EditorState, **changes: Any) -> EditorState:
    unknown = set(changes) - BUFFER_FIELDS
    if unknown:
        raise ValueError(f"Unknown stage fields: {', '.join(sorted(unknown))}")
    return _with_buffer(state, **_coerce_numbers(changes))


def add_action(state: EditorState) -> EditorState:
    state = _composing(state)
    return _with_buffer(state, actions=[*state.buffer.actions, Action()])


def _coerce_result_type(value: Any) -> ResultType | Any:
    try:
        return ResultType(enum_value(value))
    except ValueError:
        # Kept raw so validation can report InvalidResultType.
        return value


def update_action(state: EditorState, index: int, field_name: str, value: Any) -> EditorState:
    if field_name not in ACTION_FIELDS:
        raise ValueError(f"Unknown action field: {field_name}")
    state = _composing(state)
    actions = list(state.buffer.actions)
    if not 0 <= index < len(actions):
        raise InvalidIndex("Invalid action selected.")
    changes = _coerce_numbers({field_name: value})
    if field_name == "result_type":
        changes["result_type"] = _coerce_result_type(value)
        if enum_value(value) != ResultType.SPECIFIC.value:
            changes["specific_target"] = None
    actions[index] = dataclasses.replace(actions[index], **changes)
    return _with_buffer(state, actions=actions)


def remove_action(state: EditorState, index: int) -> EditorState:
    state = _composing(state)
    actions = list(state.buffer.actions)
    if not 0 <= index < len(actions):
        raise InvalidIndex("Invalid action selected.")
    del actions[index]
    return _with_buffer(state, actions=actions)


def _renumbered(stages: list[Stage]) -> list[Stage]:
    return [
        stage if stage.seq_no == position else dataclasses.replace(stage, seq_no=position)
        for position, stage in enumerate(stages, start=1)
    ]


def commit(
    state: EditorState,
    stages: Sequence[Stage],
    role_ids: Collection[int] | None = None,
    persisted: Stage | None = None,
) -> tuple[list[Stage], EditorState]:
    """Validate the buffer and place it in the stage list.

    ``persisted`` is the backend's copy of the stage when the commit already
    round-tripped; it replaces the buffer contents as the committed value.
    Raises ValidationError and leaves everything untouched on failure.
    """
    state = _composing(state)
    ensure_valid(validate_stage_buffer(state.buffer, stages, role_ids))

    updated = list(stages)
    if state.mode == EditorMode.COMPOSING_EDIT:
        if state.index is None or not 0 <= state.index < len(updated):
            raise InvalidIndex("Invalid stage or validation failed.")
        updated[state.index] = persisted or state.buffer.to_stage()
    else:
        updated.append(persisted or state.buffer.to_stage(seq_no=len(updated) + 1))
    return _renumbered(updated), IDLE


def remove_stage(
    state: EditorState,
    stages: Sequence[Stage],
    index: int,
) -> tuple[list[Stage], EditorState]:
    """Drop ``stages[index]``; specific targets that pointed at it are left dangling."""
    if not 0 <= index < len(stages):
        raise InvalidIndex("Invalid stage selected for deletion.")
    updated = [stage for position, stage in enumerate(stages) if position != index]

    if state.mode == EditorMode.COMPOSING_EDIT and state.index is not None:
        if state.index == index:
            state = IDLE
        elif state.index > index:
            state = dataclasses.replace(state, index=state.index - 1)
    return _renumbered(updated), state


class StageEditor:
    """Stateful front for the transition functions, bound to one draft."""

    def __init__(
        self,
        draft: WorkflowDraft,
        gate: CapabilityGate,
        role_ids: Collection[int] | None = None,
    ) -> None:
        self.draft = draft
        self.gate = gate
        self.role_ids = role_ids
        self.state = IDLE

    @property
    def mode(self) -> EditorMode:
        return self.state.mode

    @property
    def buffer(self) -> StageBuffer | None:
        return self.state.buffer

    @property
    def editing_index(self) -> int | None:
        return self.state.index

    def begin_new_stage(self) -> None:
        if not self.gate.allowed:
            logger.debug("Ignoring new stage request without designer capability")
            return
        self.state = begin_new(self.state)

    def begin_edit_stage(self, index: int) -> None:
        self.gate.require("edit stages")
        self.state = begin_edit(self.state, self.draft.stages, index)

    def update_stage_fields(self, **changes: Any) -> None:
        self.gate.require("add or edit stages")
        self.state = update_buffer(self.state, **changes)

    def add_action(self) -> None:
        self.gate.require("add actions")
        self.state = add_action(self.state)

    def update_action(self, index: int, field_name: str, value: Any) -> None:
        self.gate.require("edit actions")
        self.state = update_action(self.state, index, field_name, value)

    def remove_action(self, index: int) -> None:
        self.gate.require("delete actions")
        self.state = remove_action(self.state, index)

    def validate(self) -> None:
        """Raise ValidationError when the buffer could not be committed as is."""
        self.gate.require("add or edit stages")
        state = _composing(self.state)
        ensure_valid(validate_stage_buffer(state.buffer, self.draft.stages, self.role_ids))

    def pending_stage(self) -> Stage:
        """The stage a commit would produce, for sending to the backend first."""
        self.validate()
        state = _composing(self.state)
        if state.mode == EditorMode.COMPOSING_EDIT:
            return state.buffer.to_stage()
        return state.buffer.to_stage(seq_no=len(self.draft.stages) + 1)

    def commit_stage(self, persisted: Stage | None = None, state: EditorState | None = None) -> Stage:
        """Commit the buffer, or ``state`` when given.

        ``state`` is the editor state captured when ``persisted`` was sent to
        the backend, so the commit matches what the backend stored.
        """
        self.gate.require("add or edit stages")
        state = state or self.state
        index = state.index if state.mode == EditorMode.COMPOSING_EDIT else None
        stages, self.state = commit(state, self.draft.stages, self.role_ids, persisted)
        self.draft.stages = stages
        committed = stages[index] if index is not None else stages[-1]
        logger.info("Committed stage %s (%s)", committed.seq_no, committed.name)
        return committed

    def remove_stage(self, index: int) -> Stage:
        self.gate.require("delete stages")
        removed = self.draft.stages[index] if 0 <= index < len(self.draft.stages) else None
        self.draft.stages, self.state = remove_stage(self.state, self.draft.stages, index)
        return removed
