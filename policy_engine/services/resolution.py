"""
Scope-hierarchy resolution of the single policy that applies to an employee.

Resolution works on assignment snapshots supplied by the caller and never
touches the database. A candidate must pass the soft-delete and
effective-date filter (``is_effective``) and target the employee, the
employee's team, or the whole organization (``is_applicable``). Candidates
are ordered by priority desc, then creation time desc, then id desc; the
first one wins. Priority is derived from the scope type, so employee
overrides beat team overrides, which beat the organization default.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Tuple

from policy_engine.domain.enums import ScopeType, scope_priority
from policy_engine.domain.models import Policy, PolicyAssignment, utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedPolicy:
    """The winning assignment together with its policy."""

    policy: Policy
    assignment: PolicyAssignment

    @property
    def scope_type(self) -> ScopeType:
        return ScopeType(self.assignment.scope_type)

    @property
    def policy_id(self) -> int:
        return self.policy.id


def to_utc_naive(moment: datetime) -> datetime:
    """Normalize to naive UTC (naive values are taken as UTC already)."""
    if moment.tzinfo is None:
        return moment
    return moment.astimezone(timezone.utc).replace(tzinfo=None)


def is_effective(assignment: PolicyAssignment, now: datetime) -> bool:
    """
    Check the soft-delete flag and the effective window.

    An assignment is effective when it is active, its policy is active,
    ``effective_from`` is unset or <= now and ``effective_until`` is unset
    or >= now.
    """
    if not assignment.is_active:
        return False
    policy = assignment.policy
    if policy is None or not policy.is_active:
        return False

    now = to_utc_naive(now)
    if assignment.effective_from is not None and to_utc_naive(assignment.effective_from) > now:
        return False
    if assignment.effective_until is not None and to_utc_naive(assignment.effective_until) < now:
        return False
    return True


def is_applicable(
    assignment: PolicyAssignment,
    employee_id: int,
    team_id: Optional[int] = None,
) -> bool:
    """Check whether an assignment's scope covers the employee."""
    scope = ScopeType(assignment.scope_type)
    if scope is ScopeType.EMPLOYEE:
        return assignment.scope_id == employee_id
    if scope is ScopeType.TEAM:
        return team_id is not None and assignment.scope_id == team_id
    return True


def assignment_order_key(assignment: PolicyAssignment) -> Tuple[int, datetime, int]:
    """Sort key; sort with ``reverse=True`` so the winner comes first."""
    return (
        scope_priority(assignment.scope_type),
        assignment.created_at or datetime.min,
        assignment.id or 0,
    )


def order_assignments(assignments: Iterable[PolicyAssignment]) -> List[PolicyAssignment]:
    """Order by priority desc, then creation time desc, then id desc."""
    return sorted(assignments, key=assignment_order_key, reverse=True)


def resolve(
    organization_id: int,
    employee_id: int,
    team_id: Optional[int] = None,
    *,
    assignments: Iterable[PolicyAssignment],
    now: Optional[datetime] = None,
    family: Optional[str] = None,
) -> Optional[ResolvedPolicy]:
    """
    Pick the single effective policy for an employee.

    Args:
        organization_id: Organization the employee belongs to
        employee_id: Employee to resolve for
        team_id: Employee's current team, if any
        assignments: Assignment snapshot for the organization (any state)
        now: Reference time (default: current UTC time)
        family: Restrict to one policy family

    Returns:
        ResolvedPolicy, or None when no assignment applies at any level
    """
    now = utcnow() if now is None else to_utc_naive(now)

    candidates = [
        assignment
        for assignment in assignments
        if assignment.organization_id == organization_id
        and (family is None or assignment.family == family)
        and is_effective(assignment, now)
        and is_applicable(assignment, employee_id, team_id)
    ]
    if not candidates:
        logger.debug("No policy applies to employee %s in organization %s", employee_id, organization_id)
        return None

    winner = order_assignments(candidates)[0]
    if len(candidates) > 1:
        same_level = [
            c for c in candidates if scope_priority(c.scope_type) == scope_priority(winner.scope_type)
        ]
        if len(same_level) > 1:
            logger.warning(
                "Duplicate active %s assignments for employee %s; using newest assignment %s",
                winner.scope_type,
                employee_id,
                winner.id,
            )

    logger.debug(
        "Resolved policy %s for employee %s via %s assignment %s",
        winner.policy_id,
        employee_id,
        winner.scope_type,
        winner.id,
    )
    return ResolvedPolicy(policy=winner.policy, assignment=winner)
