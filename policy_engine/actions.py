"""
Administrative actions: authorize once, run a mutation, return a result.

Every action returns an :class:`ActionResult`. Engine errors
(validation, authorization, not found, conflict) become failed results
carrying the error code and message; anything else propagates.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from sqlalchemy.orm import Session

from policy_engine.errors import PolicyEngineError
from policy_engine.services import assignments as assignment_service
from policy_engine.services import policies as policy_service
from policy_engine.services.authorization import Action, Authorizer, Resource

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Actor:
    """Who performs an action, and in which organization."""

    organization_id: int
    role: str
    employee_id: Optional[int] = None


@dataclass
class ActionResult:
    success: bool
    data: Any = None
    error: Optional[str] = None
    code: Optional[str] = None
    field: Optional[str] = None

    @classmethod
    def ok(cls, data: Any = None) -> "ActionResult":
        return cls(success=True, data=data)

    @classmethod
    def failure(cls, exc: PolicyEngineError) -> "ActionResult":
        return cls(
            success=False,
            error=exc.message,
            code=exc.code,
            field=getattr(exc, "field", None),
        )


def run_action(session: Session, func: Callable[..., Any], *args, **kwargs) -> ActionResult:
    """Run ``func`` and map engine errors onto a failed result."""
    try:
        return ActionResult.ok(func(*args, **kwargs))
    except PolicyEngineError as exc:
        session.rollback()
        logger.info("Action %s failed: %s (%s)", getattr(func, "__name__", func), exc.message, exc.code)
        return ActionResult.failure(exc)


class PolicyActions:
    """Policy and assignment administration bound to one session."""

    def __init__(self, session: Session, authorizer: Optional[Authorizer] = None):
        self.session = session
        self.authorizer = authorizer or Authorizer()

    def _run(self, actor: Actor, resource: Resource, action: Action, func: Callable[[], Any]) -> ActionResult:
        def guarded():
            self.authorizer.authorize(actor.role, resource, action)
            return func()

        guarded.__name__ = f"{resource.value}.{action.value}"
        return run_action(self.session, guarded)

    # Policies

    def list_policies(self, actor: Actor, family: str) -> ActionResult:
        return self._run(
            actor,
            Resource.POLICY,
            Action.READ,
            lambda: policy_service.list_policies(self.session, actor.organization_id, family),
        )

    def create_policy(self, actor: Actor, family: str, data: Dict[str, Any]) -> ActionResult:
        def create():
            policy = policy_service.create_policy(
                self.session, actor.organization_id, family, data, created_by=actor.employee_id
            )
            return {"id": policy.id}

        return self._run(actor, Resource.POLICY, Action.CREATE, create)

    def update_policy(self, actor: Actor, policy_id: int, data: Dict[str, Any]) -> ActionResult:
        def update():
            policy_service.update_policy(
                self.session,
                policy_id,
                data,
                updated_by=actor.employee_id,
                organization_id=actor.organization_id,
            )

        return self._run(actor, Resource.POLICY, Action.UPDATE, update)

    def deactivate_policy(self, actor: Actor, policy_id: int) -> ActionResult:
        return self._run(
            actor,
            Resource.POLICY,
            Action.DELETE,
            lambda: policy_service.deactivate_policy(self.session, policy_id, actor.organization_id),
        )

    # Assignments

    def list_assignments(self, actor: Actor, family: Optional[str] = None) -> ActionResult:
        return self._run(
            actor,
            Resource.ASSIGNMENT,
            Action.READ,
            lambda: assignment_service.list_assignments(self.session, actor.organization_id, family),
        )

    def create_assignment(
        self,
        actor: Actor,
        policy_id: int,
        scope_type: str,
        scope_id: Optional[int] = None,
        effective_from: Optional[datetime] = None,
        effective_until: Optional[datetime] = None,
    ) -> ActionResult:
        def create():
            assignment = assignment_service.create_assignment(
                self.session,
                actor.organization_id,
                policy_id,
                scope_type,
                scope_id=scope_id,
                effective_from=effective_from,
                effective_until=effective_until,
                created_by=actor.employee_id,
            )
            return {"id": assignment.id}

        return self._run(actor, Resource.ASSIGNMENT, Action.CREATE, create)

    def deactivate_assignment(self, actor: Actor, assignment_id: int) -> ActionResult:
        return self._run(
            actor,
            Resource.ASSIGNMENT,
            Action.DELETE,
            lambda: assignment_service.deactivate_assignment(
                self.session, assignment_id, actor.organization_id
            ),
        )
