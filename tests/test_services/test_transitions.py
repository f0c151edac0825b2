import pytest

from workflow_designer.models.workflow import Action, ResultType, Stage
from workflow_designer.services.transitions import TransitionKind, describe_transition, resolve_next


@pytest.fixture
def stages():
    return [
        Stage(name='Draft', description='Prepare', seq_no=1, stage_id=10),
        Stage(name='Review', description='Check', seq_no=2, stage_id=20),
        Stage(name='Sign-off', description='Approve', seq_no=3, stage_id=30),
    ]


def test_next_resolves_to_following_stage(stages):
    transition = resolve_next(Action(name='Send', result_type=ResultType.NEXT), 0, stages)
    assert transition.kind == TransitionKind.STAGE
    assert transition.stage.name == 'Review'


def test_next_past_the_end_is_invalid(stages):
    transition = resolve_next(Action(name='Send', result_type=ResultType.NEXT), 2, stages)
    assert transition.kind == TransitionKind.INVALID
    assert not transition.executable


def test_prev_resolves_to_preceding_stage(stages):
    transition = resolve_next(Action(name='Rework', result_type=ResultType.PREV), 1, stages)
    assert transition.stage.name == 'Draft'
    assert resolve_next(Action(name='Rework', result_type=ResultType.PREV), 0, stages).kind == TransitionKind.INVALID


def test_complete_is_terminal(stages):
    transition = resolve_next(Action(name='Approve', result_type=ResultType.COMPLETE), 1, stages)
    assert transition.kind == TransitionKind.TERMINAL
    assert transition.stage is None
    assert transition.executable


def test_specific_finds_stage_by_id(stages):
    action = Action(name='Escalate', result_type=ResultType.SPECIFIC, specific_target=30)
    assert resolve_next(action, 0, stages).stage.name == 'Sign-off'


def test_missing_specific_target_is_broken(stages):
    action = Action(name='Escalate', result_type=ResultType.SPECIFIC, specific_target=99)
    transition = resolve_next(action, 0, stages)
    assert transition.kind == TransitionKind.BROKEN
    assert not transition.executable


def test_resolution_is_idempotent(stages):
    action = Action(name='Escalate', result_type=ResultType.SPECIFIC, specific_target=20)
    assert resolve_next(action, 0, stages) == resolve_next(action, 0, stages)


def test_describe_transition(stages):
    assert describe_transition(resolve_next(Action(name='a', result_type='complete'), 0, stages)) == 'Complete workflow'
    assert describe_transition(resolve_next(Action(name='a', result_type='next'), 0, stages)) == 'Stage 2: Review'
    broken = resolve_next(Action(name='a', result_type='specific', specific_target=1), 0, stages)
    assert describe_transition(broken) == 'Unknown Stage'
    assert describe_transition(resolve_next(Action(name='a', result_type='prev'), 0, stages)) == 'N/A'
