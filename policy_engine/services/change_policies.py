"""Change-policy entry points used by time-entry mutation checks."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from policy_engine.domain.enums import PermissionClass, PolicyFamily
from policy_engine.domain.repositories import EmployeeRepository
from policy_engine.errors import NotFoundError

from .assignments import resolve_for_employee
from .authorization import Action, Authorizer, Resource
from .routing import Approver, managers_for_approval
from .windows import DateLike, EditDecision, check_timezone, clock_out_needs_approval, evaluate_edit

logger = logging.getLogger(__name__)


def _employee_timezone(session: Session, employee_id: int, default_timezone: str) -> str:
    employee = EmployeeRepository.get_by_id(session, employee_id)
    if employee is None:
        raise NotFoundError(f"Employee {employee_id} not found", entity_type="employee")
    organization = employee.organization
    name = organization.timezone if organization is not None else None
    if not name:
        return default_timezone
    try:
        return check_timezone(name)
    except ValueError:
        logger.warning(
            "Organization %s has unknown timezone %r; counting days in %s",
            organization.id,
            name,
            default_timezone,
        )
        return default_timezone


def get_edit_capability(
    session: Session,
    employee_id: int,
    target: DateLike,
    now: Optional[datetime] = None,
    default_timezone: str = "UTC",
) -> EditDecision:
    """
    Resolve the employee's change policy and classify an edit of ``target``.

    Calendar days are counted in the organization's timezone, falling back
    to ``default_timezone`` when it is unset or unknown.
    """
    tz = _employee_timezone(session, employee_id, default_timezone)
    resolved = resolve_for_employee(session, PolicyFamily.CHANGE_POLICY.value, employee_id, now=now)
    policy = resolved.policy if resolved is not None else None
    return evaluate_edit(policy, target, now, tz)


def can_edit(decision: EditDecision, actor_role: str, authorizer: Optional[Authorizer] = None) -> bool:
    """Locked periods stay editable for elevated roles only."""
    if decision.permission is not PermissionClass.LOCKED:
        return True
    authorizer = authorizer or Authorizer()
    return authorizer.is_allowed(actor_role, Resource.TIME_ENTRY, Action.EDIT_LOCKED)


def check_clock_out_needs_approval(session: Session, employee_id: int, now: Optional[datetime] = None) -> bool:
    resolved = resolve_for_employee(session, PolicyFamily.CHANGE_POLICY.value, employee_id, now=now)
    return clock_out_needs_approval(resolved.policy if resolved is not None else None)


def approvers_for_edit(session: Session, employee_id: int, now: Optional[datetime] = None) -> List[Approver]:
    """Managers to notify about an approval-required edit by this employee."""
    resolved = resolve_for_employee(session, PolicyFamily.CHANGE_POLICY.value, employee_id, now=now)
    return managers_for_approval(session, employee_id, resolved.policy if resolved is not None else None)
