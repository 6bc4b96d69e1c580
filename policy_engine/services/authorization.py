"""Single authorization collaborator for policy mutations and locked edits."""

from __future__ import annotations

import enum
from typing import Iterable

from policy_engine.errors import AuthorizationError

ROLE_ADMIN = "admin"


class Resource(str, enum.Enum):
    POLICY = "policy"
    ASSIGNMENT = "policy_assignment"
    TIME_ENTRY = "time_entry"


class Action(str, enum.Enum):
    READ = "read"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    EDIT_LOCKED = "edit_locked"


_ADMIN_ACTIONS = {Action.CREATE, Action.UPDATE, Action.DELETE}


class Authorizer:
    """
    Decide ``(actor_role, resource, action)`` triples.

    - Reading policies and assignments is open to every role.
    - Creating, updating and deactivating them requires an admin role.
    - Editing a time entry in a locked period requires an elevated role.
    """

    def __init__(
        self,
        admin_roles: Iterable[str] = (ROLE_ADMIN,),
        elevated_roles: Iterable[str] = (ROLE_ADMIN,),
    ):
        self.admin_roles = {r.lower() for r in admin_roles}
        self.elevated_roles = {r.lower() for r in elevated_roles}

    @classmethod
    def from_config(cls, cfg) -> "Authorizer":
        return cls(admin_roles=cfg.admin_roles, elevated_roles=cfg.elevated_roles)

    def is_allowed(self, role: str | None, resource: str, action: str) -> bool:
        role = (role or "").lower()
        resource = Resource(resource)
        action = Action(action)

        if resource is Resource.TIME_ENTRY:
            if action is Action.EDIT_LOCKED:
                return role in self.elevated_roles
            return bool(role)

        if action is Action.READ:
            return bool(role)
        if action in _ADMIN_ACTIONS:
            return role in self.admin_roles
        return False

    def authorize(self, role: str | None, resource: str, action: str) -> None:
        """
        Raises:
            AuthorizationError: If the role may not perform the action
        """
        if not self.is_allowed(role, resource, action):
            if Action(action) is Action.EDIT_LOCKED:
                message = "Elevated role required to edit locked periods"
            elif Action(action) in _ADMIN_ACTIONS:
                message = "Admin access required"
            else:
                message = "Access denied"
            raise AuthorizationError(
                message,
                resource=Resource(resource).value,
                action=Action(action).value,
                role=role,
            )
