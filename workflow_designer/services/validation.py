"""Workflow graph validation.

Every rule is an independent predicate. Each validator walks its rules in a
fixed order and returns the first failure (or None when everything passes), so
the user always sees one actionable message at a time. Nothing here touches
the network or mutates its input.
"""
from __future__ import annotations

from collections.abc import Collection, Iterable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from workflow_designer.core.exceptions import ValidationError
from workflow_designer.models.workflow import (
    Action,
    ActorType,
    Quorum,
    ResultType,
    Stage,
    WorkflowDraft,
    enum_value,
)

if TYPE_CHECKING:
    from workflow_designer.services.stage_editor import StageBuffer

ACTOR_TYPES = frozenset(member.value for member in ActorType)
QUORUMS = frozenset(member.value for member in Quorum)
RESULT_TYPES = frozenset(member.value for member in ResultType)


@dataclass(frozen=True)
class ValidationIssue:
    code: str
    message: str


def ensure_valid(issue: ValidationIssue | None) -> None:
    if issue is not None:
        raise ValidationError.from_issue(issue)


def _blank(value: str | None) -> bool:
    return not (value or "").strip()


def validate_workflow_meta(draft: WorkflowDraft) -> ValidationIssue | None:
    if _blank(draft.name):
        return ValidationIssue("MissingField", "Workflow name is required")
    if _blank(draft.description):
        return ValidationIssue("MissingField", "Workflow description is required")
    return None


def _validate_action(
    action: Action,
    actor_count: int,
    committed_ids: Collection[int],
) -> ValidationIssue | None:
    if _blank(action.name):
        return ValidationIssue("MissingActionName", "Action name is required for all actions")
    result_type = enum_value(action.result_type)
    if result_type not in RESULT_TYPES:
        return ValidationIssue(
            "InvalidResultType",
            'Action result type must be "next", "prev", "complete", or "specific"',
        )
    if result_type == ResultType.SPECIFIC.value:
        if action.specific_target is None:
            return ValidationIssue(
                "MissingSpecificTarget",
                "A specific stage must be selected for this action.",
            )
        if action.specific_target not in committed_ids:
            return ValidationIssue("DanglingTarget", "The selected specific stage does not exist.")
    if not 1 <= action.required_count <= actor_count:
        return ValidationIssue(
            "RequiredCountOutOfRange",
            f"Required count must be between 1 and {actor_count}",
        )
    return None


def validate_stage_buffer(
    buffer: StageBuffer | Stage,
    committed_stages: Iterable[Stage],
    role_ids: Collection[int] | None = None,
) -> ValidationIssue | None:
    """Check a stage about to be committed against the stages already committed.

    ``role_ids`` is the role catalog; when it is None or empty (catalog failed
    to load) the role reference is only checked for presence.
    """
    if _blank(buffer.name):
        return ValidationIssue("MissingField", "Stage name is required")
    if _blank(buffer.description):
        return ValidationIssue("MissingField", "Stage description is required")
    actor_type = enum_value(buffer.actor_type)
    if actor_type == ActorType.ROLE.value:
        if not buffer.role_id:
            return ValidationIssue("MissingActor", "A role must be selected")
        if role_ids and buffer.role_id not in role_ids:
            return ValidationIssue("UnknownRole", "The selected role does not exist.")
    if buffer.actor_count < 1:
        return ValidationIssue("InvalidCount", "Actor count must be at least 1")
    if actor_type not in ACTOR_TYPES:
        return ValidationIssue("InvalidActorType", 'Actor type must be either "role" or "user"')
    if enum_value(buffer.quorum) not in QUORUMS:
        return ValidationIssue("InvalidQuorum", 'Any/All flag must be either "any" or "all"')
    if buffer.document_count < 0 or (buffer.documents_required and buffer.document_count < 1):
        return ValidationIssue(
            "InvalidDocumentCount",
            "At least one document upload is required when documents are required",
        )
    if not buffer.actions:
        return ValidationIssue("NoActions", "At least one action is required for this stage.")

    committed_ids = {stage.stage_id for stage in committed_stages if stage.stage_id is not None}
    for action in buffer.actions:
        issue = _validate_action(action, buffer.actor_count, committed_ids)
        if issue:
            return issue
    return None


def validate_stage_list(stages: Sequence[Stage]) -> ValidationIssue | None:
    if not stages:
        return ValidationIssue("NoStages", "At least one stage is required")

    stage_ids = {stage.stage_id for stage in stages if stage.stage_id is not None}
    for position, stage in enumerate(stages, start=1):
        label = f"Stage {position} ({stage.name})"
        if not stage.actions:
            return ValidationIssue("StageMissingActions", f"{label} must have at least one action.")
        for action in stage.actions:
            if enum_value(action.result_type) != ResultType.SPECIFIC.value:
                continue
            if action.specific_target is None:
                return ValidationIssue(
                    "StageMissingSpecificTarget",
                    f'A specific stage must be selected for action "{action.name}" in {label}.',
                )
            if action.specific_target not in stage_ids:
                return ValidationIssue(
                    "DanglingTarget",
                    f'Action "{action.name}" in {label} points to a stage that no longer exists.',
                )

    has_completion = any(
        enum_value(action.result_type) == ResultType.COMPLETE.value
        for stage in stages
        for action in stage.actions
    )
    if not has_completion:
        return ValidationIssue(
            "MissingCompletionPath",
            "At least one 'Complete' action is required to complete the workflow.",
        )
    return None
