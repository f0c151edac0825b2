"""Role and user catalogs used by actor pickers and display names."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field

from workflow_designer.core.exceptions import IntegrationError
from workflow_designer.integrations.workflow_api import WorkflowAPIClient

logger = logging.getLogger(__name__)

ROLES_WARNING = "Failed to fetch roles. Role names may not display correctly."
USERS_WARNING = "Failed to fetch users. Usernames may not display correctly."


@dataclass
class Catalog:
    roles: dict[int, str] = field(default_factory=dict)
    users: dict[int, str] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)

    async def load_roles(self, client: WorkflowAPIClient) -> None:
        try:
            self.roles = {role.id: role.name for role in await client.list_roles()}
        except IntegrationError as exc:
            # Non-essential: names fall back to "Unknown Role".
            logger.warning("Error fetching roles: %s", exc)
            self.roles = {}
            self._warn(ROLES_WARNING)
        else:
            self._clear(ROLES_WARNING)

    async def load_users(self, client: WorkflowAPIClient) -> None:
        try:
            self.users = {user.id: user.name for user in await client.list_users()}
        except IntegrationError as exc:
            logger.warning("Error fetching users: %s", exc)
            self.users = {}
            self._warn(USERS_WARNING)
        else:
            self._clear(USERS_WARNING)

    def _warn(self, message: str) -> None:
        if message not in self.warnings:
            self.warnings.append(message)

    def _clear(self, message: str) -> None:
        if message in self.warnings:
            self.warnings.remove(message)

    @property
    def role_ids(self) -> set[int]:
        return set(self.roles)

    def role_name(self, role_id: int | None) -> str:
        if not role_id:
            return "N/A"
        return self.roles.get(role_id, "Unknown Role")

    def user_name(self, user_id: int | None) -> str:
        if not user_id:
            return "N/A"
        return self.users.get(user_id, "Unknown User")
