"""Workflow definition models."""

from .workflow import (
    Action,
    ActorType,
    Quorum,
    ResultType,
    Stage,
    WorkflowDraft,
    WorkflowStatus,
    enum_value,
    new_temp_id,
)

__all__ = [
    "Action",
    "ActorType",
    "Quorum",
    "ResultType",
    "Stage",
    "WorkflowDraft",
    "WorkflowStatus",
    "enum_value",
    "new_temp_id",
]
