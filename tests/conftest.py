import os
import sys
from pathlib import Path

import httpx
import pytest
import pytest_asyncio

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault('APP_ENV', 'test')
os.environ.setdefault('DESIGNER_API_BASE_URL', 'http://sandbox.test')
os.environ.setdefault('DESIGNER_CAPABILITY', 'workflow-designer')

from workflow_designer.core.exceptions import BackendError  # noqa: E402
from workflow_designer.core.security import CapabilityGate  # noqa: E402
from workflow_designer.integrations.workflow_api import WorkflowAPIClient  # noqa: E402
from workflow_designer.main import create_app  # noqa: E402
from workflow_designer.schemas.auth import LoginResponse  # noqa: E402
from workflow_designer.services.sandbox_store import SandboxStore  # noqa: E402


class StoreClient:
    """WorkflowAPIClient stand-in backed by the sandbox store.

    ``fail`` maps method names to the exception the next calls should raise.
    """

    def __init__(self, store=None):
        self.store = store or SandboxStore()
        self.fail = {}
        self.calls = []

    def _call(self, name, *args):
        self.calls.append((name, *args))
        if name in self.fail:
            raise self.fail[name]

    def called(self, name):
        return [call for call in self.calls if call[0] == name]

    async def login(self, username, password):
        self._call('login', username)
        user = self.store.authenticate(username, password)
        if user is None:
            raise BackendError('Invalid credentials', 401)
        return LoginResponse(user_id=user.id, roles=user.roles)

    async def list_roles(self):
        self._call('list_roles')
        return self.store.list_roles()

    async def list_users(self):
        self._call('list_users')
        return self.store.list_users()

    async def list_workflows(self):
        self._call('list_workflows')
        return self.store.list_workflows()

    async def get_workflow(self, workflow_id):
        self._call('get_workflow', workflow_id)
        workflow = self.store.get_workflow(workflow_id)
        if workflow is None:
            raise BackendError('Workflow not found', 404)
        return workflow

    async def create_workflow(self, meta):
        self._call('create_workflow', meta.name)
        return self.store.create_workflow(meta)

    async def update_workflow(self, workflow_id, meta):
        self._call('update_workflow', workflow_id)
        return self.store.update_workflow(workflow_id, meta)

    async def delete_workflow(self, workflow_id):
        self._call('delete_workflow', workflow_id)
        self.store.delete_workflow(workflow_id)

    async def create_stage(self, workflow_id, stage):
        self._call('create_stage', workflow_id)
        return self.store.create_stage(workflow_id, stage)

    async def get_stage(self, workflow_id, stage_id):
        self._call('get_stage', workflow_id, stage_id)
        stage = self.store.get_stage(workflow_id, stage_id)
        if stage is None:
            raise BackendError('Stage not found', 404)
        return stage

    async def update_stage(self, workflow_id, stage_id, stage):
        self._call('update_stage', workflow_id, stage_id)
        return self.store.update_stage(workflow_id, stage_id, stage)

    async def delete_stage(self, workflow_id, stage_id):
        self._call('delete_stage', workflow_id, stage_id)
        self.store.delete_stage(workflow_id, stage_id)


@pytest.fixture
def store():
    return SandboxStore()


@pytest.fixture
def store_client(store):
    return StoreClient(store)


@pytest.fixture
def designer_gate():
    return CapabilityGate(['workflow-designer', 'reviewer'])


@pytest.fixture
def viewer_gate():
    return CapabilityGate(['reviewer'])


@pytest.fixture
def sandbox_app(store):
    return create_app(store)


@pytest_asyncio.fixture
async def sandbox_http(sandbox_app):
    transport = httpx.ASGITransport(app=sandbox_app)
    async with httpx.AsyncClient(transport=transport, base_url='http://sandbox.test') as client:
        yield client


@pytest_asyncio.fixture
async def api_client(sandbox_app):
    client = WorkflowAPIClient(
        base_url='http://sandbox.test',
        transport=httpx.ASGITransport(app=sandbox_app),
    )
    yield client
    await client.aclose()
