from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from workflow_designer.models.workflow import Action, ResultType, Stage, enum_value


class TransitionKind(str, Enum):
    STAGE = "stage"
    TERMINAL = "terminal"
    INVALID = "invalid"
    BROKEN = "broken"


@dataclass(frozen=True)
class Transition:
    kind: TransitionKind
    stage: Stage | None = None
    reason: str = ""

    @property
    def executable(self) -> bool:
        return self.kind in (TransitionKind.STAGE, TransitionKind.TERMINAL)


def resolve_next(action: Action, current_index: int, stages: Sequence[Stage]) -> Transition:
    """Resolve an action's declared result type to the stage it leads to.

    A missing ``specific`` target is reported as BROKEN for this action only;
    the rest of the draft stays usable.
    """
    result_type = enum_value(action.result_type)
    if result_type == ResultType.COMPLETE.value:
        return Transition(TransitionKind.TERMINAL)
    if result_type == ResultType.NEXT.value:
        if 0 <= current_index + 1 < len(stages):
            return Transition(TransitionKind.STAGE, stages[current_index + 1])
        return Transition(TransitionKind.INVALID, reason="No stage follows the current stage")
    if result_type == ResultType.PREV.value:
        if 0 <= current_index - 1 < len(stages):
            return Transition(TransitionKind.STAGE, stages[current_index - 1])
        return Transition(TransitionKind.INVALID, reason="No stage precedes the current stage")
    if result_type == ResultType.SPECIFIC.value:
        target = next(
            (
                stage
                for stage in stages
                if action.specific_target is not None and stage.stage_id == action.specific_target
            ),
            None,
        )
        if target is None:
            return Transition(TransitionKind.BROKEN, reason="Target stage does not exist")
        return Transition(TransitionKind.STAGE, target)
    return Transition(TransitionKind.INVALID, reason=f"Unknown result type: {result_type}")


def describe_transition(transition: Transition) -> str:
    if transition.kind == TransitionKind.TERMINAL:
        return "Complete workflow"
    if transition.kind == TransitionKind.STAGE and transition.stage is not None:
        return f"Stage {transition.stage.seq_no}: {transition.stage.name}"
    if transition.kind == TransitionKind.BROKEN:
        return "Unknown Stage"
    return "N/A"
