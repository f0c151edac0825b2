import pytest

from workflow_designer.core.exceptions import ValidationError
from workflow_designer.models.workflow import Action, ActorType, ResultType, Stage, WorkflowDraft
from workflow_designer.services.stage_editor import StageBuffer
from workflow_designer.services.validation import (
    ensure_valid,
    validate_stage_buffer,
    validate_stage_list,
    validate_workflow_meta,
)


def _stage(stage_id, *actions, name='Review', actor_count=1):
    return Stage(
        name=name,
        description=f'{name} step',
        stage_id=stage_id,
        role_id=1,
        actor_count=actor_count,
        actions=list(actions),
    )


def _buffer(**overrides):
    values = {
        'name': 'Review',
        'description': 'Review the request',
        'role_id': 1,
        'actions': [Action(name='Approve', result_type=ResultType.COMPLETE)],
    }
    values.update(overrides)
    return StageBuffer(**values)


def _code(issue):
    return issue.code if issue else None


def test_workflow_meta_requires_name_and_description():
    assert _code(validate_workflow_meta(WorkflowDraft(name='  ', description='x'))) == 'MissingField'
    issue = validate_workflow_meta(WorkflowDraft(name='Purchase', description='\t'))
    assert issue.message == 'Workflow description is required'
    assert validate_workflow_meta(WorkflowDraft(name='Purchase', description='Orders')) is None


def test_minimum_legal_stage_passes():
    assert validate_stage_buffer(_buffer(actor_count=1), []) is None


def test_role_actor_requires_role():
    issue = validate_stage_buffer(_buffer(role_id=None), [])
    assert issue.code == 'MissingActor'
    assert issue.message == 'A role must be selected'


def test_user_actor_does_not_need_role():
    assert validate_stage_buffer(_buffer(actor_type=ActorType.USER, role_id=None, user_id=3), []) is None


def test_role_checked_against_catalog_when_available():
    assert _code(validate_stage_buffer(_buffer(role_id=9), [], role_ids={1, 2})) == 'UnknownRole'
    # An empty catalog (fetch failed) only checks that a role was picked.
    assert validate_stage_buffer(_buffer(role_id=9), [], role_ids=set()) is None


@pytest.mark.parametrize(
    ('overrides', 'code'),
    [
        ({'name': ''}, 'MissingField'),
        ({'description': '   '}, 'MissingField'),
        ({'actor_count': 0}, 'InvalidCount'),
        ({'actor_type': 'group'}, 'InvalidActorType'),
        ({'quorum': 'most'}, 'InvalidQuorum'),
        ({'documents_required': True, 'document_count': 0}, 'InvalidDocumentCount'),
        ({'document_count': -1}, 'InvalidDocumentCount'),
        ({'actions': []}, 'NoActions'),
        ({'actions': [Action(name=' ', result_type=ResultType.NEXT)]}, 'MissingActionName'),
        ({'actions': [Action(name='Go', result_type='jump')]}, 'InvalidResultType'),
        ({'actions': [Action(name='Go', result_type=ResultType.SPECIFIC)]}, 'MissingSpecificTarget'),
        (
            {'actions': [Action(name='Go', result_type=ResultType.SPECIFIC, specific_target=99)]},
            'DanglingTarget',
        ),
    ],
)
def test_stage_buffer_rules(overrides, code):
    assert _code(validate_stage_buffer(_buffer(**overrides), [_stage(7, Action(name='Done'))])) == code


def test_documents_required_with_uploads_passes():
    assert validate_stage_buffer(_buffer(documents_required=True, document_count=2), []) is None


def test_specific_target_must_be_committed():
    action = Action(name='Escalate', result_type=ResultType.SPECIFIC, specific_target=7)
    assert validate_stage_buffer(_buffer(actions=[action]), [_stage(7, Action(name='Done'))]) is None
    assert _code(validate_stage_buffer(_buffer(actions=[action]), [])) == 'DanglingTarget'


@pytest.mark.parametrize('required_count', [0, 3])
def test_required_count_out_of_range(required_count):
    action = Action(name='Approve', result_type=ResultType.COMPLETE, required_count=required_count)
    issue = validate_stage_buffer(_buffer(actor_count=2, actions=[action]), [])
    assert issue.code == 'RequiredCountOutOfRange'
    assert issue.message == 'Required count must be between 1 and 2'


def test_required_count_may_equal_actor_count():
    action = Action(name='Approve', result_type=ResultType.COMPLETE, required_count=2)
    assert validate_stage_buffer(_buffer(actor_count=2, actions=[action]), []) is None


def test_first_failing_rule_wins():
    issue = validate_stage_buffer(_buffer(name='', role_id=None, actions=[]), [])
    assert issue.message == 'Stage name is required'


def test_stage_list_requires_stages():
    assert _code(validate_stage_list([])) == 'NoStages'


def test_stage_list_requires_actions_on_every_stage():
    issue = validate_stage_list([_stage(1, Action(name='Done', result_type=ResultType.COMPLETE)), _stage(2, name='Audit')])
    assert issue.code == 'StageMissingActions'
    assert issue.message == 'Stage 2 (Audit) must have at least one action.'


def test_stage_list_rechecks_specific_targets():
    missing = _stage(1, Action(name='Jump', result_type=ResultType.SPECIFIC))
    assert _code(validate_stage_list([missing])) == 'StageMissingSpecificTarget'

    dangling = _stage(1, Action(name='Jump', result_type=ResultType.SPECIFIC, specific_target=5))
    assert _code(validate_stage_list([dangling])) == 'DanglingTarget'


def test_dangling_next_passes_but_completion_is_required():
    only_next = [_stage(1, Action(name='Forward', result_type=ResultType.NEXT))]
    issue = validate_stage_list(only_next)
    assert issue.code == 'MissingCompletionPath'


def test_completion_may_live_on_any_stage():
    stages = [
        _stage(1, Action(name='Finish early', result_type=ResultType.COMPLETE)),
        _stage(2, Action(name='Back', result_type=ResultType.PREV)),
    ]
    assert validate_stage_list(stages) is None


def test_two_stage_specific_scenario_passes():
    stages = [
        _stage(1, Action(name='Escalate', result_type=ResultType.SPECIFIC, specific_target=2)),
        _stage(2, Action(name='Approve', result_type=ResultType.COMPLETE), name='Sign-off'),
    ]
    assert validate_stage_list(stages) is None


def test_ensure_valid_raises_with_code():
    with pytest.raises(ValidationError) as exc_info:
        ensure_valid(validate_stage_list([]))
    assert exc_info.value.code == 'NoStages'
    assert str(exc_info.value) == 'At least one stage is required'
    ensure_valid(None)
