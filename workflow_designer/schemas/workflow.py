"""Wire payloads exchanged with the workflow backend and their domain mapping."""
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from workflow_designer.models.workflow import (
    Action,
    ActorType,
    Quorum,
    ResultType,
    Stage,
    WorkflowDraft,
    WorkflowStatus,
    enum_value,
)


class WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class WorkflowMeta(WireModel):
    name: str = Field(alias="wfdName")
    description: str = Field(alias="wfdDesc")
    status: Literal["active", "inactive"] = Field(default="active", alias="wfdStatus")


class ActionIn(WireModel):
    name: str = Field(alias="actionName")
    description: str | None = Field(default=None, alias="actionDesc")
    result_type: Literal["next", "prev", "complete", "specific"] = Field(alias="nextStageType")
    next_stage_id: int | None = Field(default=None, alias="nextStageId")
    required_count: int = Field(default=1, ge=1, alias="requiredCount")


class ActionOut(ActionIn):
    action_id: int | None = Field(default=None, alias="idwfdStagesActions")
    stage_id: int | None = Field(default=None, alias="stageId")


class StageIn(WireModel):
    seq_no: int = Field(alias="seqNo")
    name: str = Field(alias="stageName")
    description: str = Field(alias="stageDesc")
    no_of_uploads: int = Field(default=0, ge=0, alias="noOfUploads")
    actor_type: Literal["role", "user"] = Field(alias="actorType")
    role_id: int | None = Field(default=None, alias="roleId")
    user_id: int | None = Field(default=None, alias="userId")
    actor_count: int = Field(default=1, ge=1, alias="actorCount")
    any_all_flag: Literal["any", "all"] = Field(default="any", alias="anyAllFlag")
    conflict_check: int = Field(default=0, alias="conflictCheck")
    document_required: int = Field(default=0, alias="documentRequired")
    actions: list[ActionIn] = Field(default_factory=list)


class StageOut(StageIn):
    stage_id: int | None = Field(default=None, alias="idwfdStages")
    workflow_id: int | None = Field(default=None, alias="wfId")
    actions: list[ActionOut] = Field(default_factory=list)


class WorkflowOut(WorkflowMeta):
    workflow_id: int | None = Field(default=None, alias="workflowMasterId")
    stages: list[StageOut] = Field(default_factory=list)


def workflow_meta(draft: WorkflowDraft) -> WorkflowMeta:
    return WorkflowMeta(
        name=draft.name,
        description=draft.description,
        status=enum_value(draft.status),
    )


def action_payload(action: Action) -> ActionIn:
    result_type = enum_value(action.result_type)
    return ActionIn(
        name=action.name,
        description=action.description or None,
        result_type=result_type,
        next_stage_id=action.specific_target if result_type == ResultType.SPECIFIC.value else None,
        required_count=action.required_count or 1,
    )


def stage_payload(stage: Stage) -> StageIn:
    """Full stage body; actions are always written together with their stage."""
    actor_type = enum_value(stage.actor_type)
    return StageIn(
        seq_no=stage.seq_no,
        name=stage.name,
        description=stage.description,
        no_of_uploads=stage.document_count,
        actor_type=actor_type,
        role_id=stage.role_id if actor_type == ActorType.ROLE.value else None,
        user_id=stage.user_id if actor_type == ActorType.USER.value else None,
        actor_count=stage.actor_count,
        any_all_flag=enum_value(stage.quorum),
        conflict_check=1 if stage.conflict_check else 0,
        document_required=1 if stage.documents_required else 0,
        actions=[action_payload(action) for action in stage.actions],
    )


def action_from_wire(payload: ActionOut) -> Action:
    return Action(
        name=payload.name,
        description=payload.description,
        result_type=ResultType(payload.result_type),
        specific_target=payload.next_stage_id,
        required_count=payload.required_count,
        action_id=payload.action_id,
        stage_id=payload.stage_id,
    )


def stage_from_wire(payload: StageOut) -> Stage:
    return Stage(
        name=payload.name,
        description=payload.description,
        seq_no=payload.seq_no,
        actor_type=ActorType(payload.actor_type),
        role_id=payload.role_id,
        user_id=payload.user_id,
        actor_count=payload.actor_count,
        quorum=Quorum(payload.any_all_flag),
        conflict_check=bool(payload.conflict_check),
        documents_required=bool(payload.document_required),
        document_count=payload.no_of_uploads,
        actions=[action_from_wire(action) for action in payload.actions],
        stage_id=payload.stage_id,
        workflow_id=payload.workflow_id,
    )


def draft_from_wire(payload: WorkflowOut) -> WorkflowDraft:
    return WorkflowDraft(
        name=payload.name,
        description=payload.description,
        status=WorkflowStatus(payload.status),
        stages=[stage_from_wire(stage) for stage in payload.stages],
        workflow_id=payload.workflow_id,
    )


def stage_out(stage: Stage) -> StageOut:
    payload = stage_payload(stage)
    actions = [
        ActionOut(
            **action_payload(action).model_dump(),
            action_id=action.action_id,
            stage_id=action.stage_id,
        )
        for action in stage.actions
    ]
    return StageOut(
        **payload.model_dump(exclude={"actions"}),
        stage_id=stage.stage_id,
        workflow_id=stage.workflow_id,
        actions=actions,
    )


def workflow_out(draft: WorkflowDraft) -> WorkflowOut:
    return WorkflowOut(
        **workflow_meta(draft).model_dump(),
        workflow_id=draft.workflow_id,
        stages=[stage_out(stage) for stage in draft.stages],
    )
