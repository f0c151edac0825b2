import json

import httpx
import pytest

from workflow_designer.core.exceptions import BackendError, NetworkError
from workflow_designer.integrations.workflow_api import WorkflowAPIClient, error_message
from workflow_designer.models.workflow import Action, ResultType, Stage
from workflow_designer.schemas.workflow import WorkflowMeta, stage_payload


def _client(handler):
    return WorkflowAPIClient(base_url='http://backend.test', transport=httpx.MockTransport(handler))


def test_error_message_prefers_message_then_detail():
    assert error_message(httpx.Response(400, json={'message': 'Name taken', 'detail': 'x'})) == 'Name taken'
    assert error_message(httpx.Response(404, json={'detail': 'Workflow not found'})) == 'Workflow not found'
    assert error_message(httpx.Response(502, text='<html>bad gateway</html>')) == 'Request failed with status code 502'


@pytest.mark.asyncio
async def test_backend_error_carries_status_and_message():
    def handler(request):
        return httpx.Response(409, json={'message': 'Workflow name already exists'})

    async with _client(handler) as client:
        with pytest.raises(BackendError) as exc_info:
            await client.create_workflow(WorkflowMeta(name='Purchase', description='Orders'))

    assert exc_info.value.status_code == 409
    assert str(exc_info.value) == 'Workflow name already exists'


@pytest.mark.asyncio
async def test_transport_failure_becomes_network_error():
    def handler(request):
        raise httpx.ConnectError('connection refused', request=request)

    async with _client(handler) as client:
        with pytest.raises(NetworkError, match='connection refused'):
            await client.list_roles()


@pytest.mark.asyncio
async def test_create_workflow_requires_id():
    def handler(request):
        return httpx.Response(201, json={'wfdName': 'Purchase', 'wfdDesc': 'Orders', 'wfdStatus': 'active'})

    async with _client(handler) as client:
        with pytest.raises(BackendError, match='Failed to retrieve new workflow ID'):
            await client.create_workflow(WorkflowMeta(name='Purchase', description='Orders'))


@pytest.mark.asyncio
async def test_create_workflow_sends_wire_names():
    seen = {}

    def handler(request):
        seen['path'] = request.url.path
        seen['body'] = json.loads(request.content)
        return httpx.Response(201, json={**seen['body'], 'workflowMasterId': 12})

    async with _client(handler) as client:
        created = await client.create_workflow(WorkflowMeta(name='Purchase', description='Orders', status='inactive'))

    assert seen['path'] == '/api/workflows'
    assert seen['body'] == {'wfdName': 'Purchase', 'wfdDesc': 'Orders', 'wfdStatus': 'inactive'}
    assert created.workflow_id == 12


@pytest.mark.asyncio
async def test_stage_payload_uses_backend_field_names():
    seen = {}

    def handler(request):
        seen['method'] = request.method
        seen['path'] = request.url.path
        seen['body'] = json.loads(request.content)
        body = dict(seen['body'], idwfdStages=7, wfId=3)
        body['actions'] = [dict(a, idwfdStagesActions=70 + i, stageId=7) for i, a in enumerate(body['actions'])]
        return httpx.Response(200, json=body)

    stage = Stage(
        name='Review',
        description='Review the order',
        seq_no=2,
        role_id=4,
        user_id=9,
        actor_count=2,
        quorum='all',
        conflict_check=True,
        documents_required=True,
        document_count=1,
        actions=[
            Action(name='Forward', result_type=ResultType.NEXT, specific_target=5),
            Action(name='Escalate', result_type=ResultType.SPECIFIC, specific_target=5, required_count=2),
        ],
    )

    async with _client(handler) as client:
        saved = await client.update_stage(3, 7, stage_payload(stage))

    body = seen['body']
    assert seen['method'] == 'PUT'
    assert seen['path'] == '/api/workflows/3/stages/7'
    assert body['stageName'] == 'Review'
    assert body['seqNo'] == 2
    assert body['roleId'] == 4
    assert body['userId'] is None
    assert body['anyAllFlag'] == 'all'
    assert body['conflictCheck'] == 1
    assert body['documentRequired'] == 1
    assert body['noOfUploads'] == 1
    assert body['actions'][0]['nextStageType'] == 'next'
    assert body['actions'][0]['nextStageId'] is None
    assert body['actions'][1]['nextStageId'] == 5
    assert body['actions'][1]['requiredCount'] == 2

    assert saved.stage_id == 7
    assert [a.action_id for a in saved.actions] == [70, 71]


@pytest.mark.asyncio
async def test_login_and_catalog_parsing():
    def handler(request):
        if request.url.path == '/auth/login':
            assert json.loads(request.content) == {'username': 'designer', 'password': 'secret'}
            return httpx.Response(200, json={'userId': 1, 'roles': ['workflow-designer']})
        if request.url.path == '/api/roles':
            return httpx.Response(200, json=[{'idrbRoleMaster': 1, 'rbRoleName': 'workflow-designer'}])
        return httpx.Response(200, json=[{'idrbUserMaster': 5, 'username': 'alice'}])

    async with _client(handler) as client:
        login = await client.login('designer', 'secret')
        roles = await client.list_roles()
        users = await client.list_users()

    assert login.user_id == 1
    assert login.roles == ['workflow-designer']
    assert roles[0].name == 'workflow-designer'
    assert users[0].id == 5
    assert users[0].name == 'alice'


@pytest.mark.asyncio
async def test_delete_tolerates_empty_body():
    def handler(request):
        assert request.method == 'DELETE'
        return httpx.Response(204)

    async with _client(handler) as client:
        assert await client.delete_stage(3, 7) is None
