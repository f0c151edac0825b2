from __future__ import annotations

import logging
from dataclasses import dataclass

from workflow_designer.config import settings
from workflow_designer.core.exceptions import AccessDenied
from workflow_designer.core.security import CapabilityGate
from workflow_designer.integrations.workflow_api import WorkflowAPIClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Session:
    user_id: int
    roles: tuple[str, ...]

    def gate(self) -> CapabilityGate:
        return CapabilityGate(self.roles)

    @property
    def can_design(self) -> bool:
        return settings.designer_capability in self.roles

    @property
    def needs_role_selection(self) -> bool:
        """Designers pick the role they act under; everyone else goes to the dashboard."""
        return self.can_design and len(self.roles) > 1

    def select_role(self, role: str) -> Session:
        if role not in self.roles:
            raise AccessDenied(f"Role '{role}' is not assigned to this account.")
        return Session(self.user_id, (role,))


async def login(client: WorkflowAPIClient, username: str, password: str) -> Session:
    response = await client.login(username.strip(), password)
    if not response.roles:
        raise AccessDenied("No roles are assigned to this account.")
    logger.info("User %s logged in with roles %s", response.user_id, response.roles)
    return Session(response.user_id, tuple(response.roles))
