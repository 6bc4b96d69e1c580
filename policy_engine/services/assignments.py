"""Assignment CRUD and repository-backed resolution."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from policy_engine.domain.enums import ScopeType
from policy_engine.domain.models import PolicyAssignment, utcnow
from policy_engine.domain.repositories import (
    AssignmentRepository,
    EmployeeRepository,
    PolicyRepository,
    TeamRepository,
)
from policy_engine.errors import ConflictError, NotFoundError, ValidationError

from .policies import parse_family
from .resolution import ResolvedPolicy, resolve, to_utc_naive

logger = logging.getLogger(__name__)


def parse_scope_type(scope_type: str) -> ScopeType:
    try:
        return ScopeType(scope_type)
    except ValueError:
        raise ValidationError(f"Unknown scope type: {scope_type}", field="scope_type") from None


def _validate_scope_reference(
    session: Session,
    organization_id: int,
    scope: ScopeType,
    scope_id: Optional[int],
) -> None:
    if scope is ScopeType.ORGANIZATION:
        if scope_id is not None:
            raise ValidationError("Organization assignments take no scope id", field="scope_id")
        return

    if scope_id is None:
        raise ValidationError(f"{scope.value.capitalize()} ID is required for {scope.value} assignments", field="scope_id")

    if scope is ScopeType.TEAM:
        target = TeamRepository.get_by_id(session, scope_id)
    else:
        target = EmployeeRepository.get_by_id(session, scope_id)

    if target is None or target.organization_id != organization_id:
        raise NotFoundError(f"{scope.value.capitalize()} {scope_id} not found", entity_type=scope.value)
    if not target.is_active:
        raise ValidationError(f"{scope.value.capitalize()} {scope_id} is inactive", field="scope_id")


def create_assignment(
    session: Session,
    organization_id: int,
    policy_id: int,
    scope_type: str,
    scope_id: Optional[int] = None,
    effective_from: Optional[datetime] = None,
    effective_until: Optional[datetime] = None,
    created_by: Optional[int] = None,
) -> PolicyAssignment:
    """
    Bind a policy to the organization, a team or an employee.

    Priority is derived from ``scope_type``. The duplicate check and the
    insert commit in one transaction; a concurrent insert that wins the race
    trips the partial unique index and is reported as a conflict as well.

    Raises:
        ValidationError: Bad scope pairing, inactive target or policy, or an
            inverted effective window
        NotFoundError: Policy, team or employee missing or in another organization
        ConflictError: An active assignment already occupies the scope
    """
    scope = parse_scope_type(scope_type)
    _validate_scope_reference(session, organization_id, scope, scope_id)

    if effective_from is not None and effective_until is not None:
        if to_utc_naive(effective_from) > to_utc_naive(effective_until):
            raise ValidationError("effective_from must not be after effective_until", field="effective_until")

    policy = PolicyRepository.get_by_id(session, policy_id)
    if policy is None or policy.organization_id != organization_id:
        raise NotFoundError(f"Policy {policy_id} not found", entity_type="policy")
    if not policy.is_active:
        raise ValidationError(f"Policy {policy_id} is inactive", field="policy_id")

    existing = AssignmentRepository.find_active_for_scope(
        session, policy.family, organization_id, scope.value, scope_id
    )
    if existing is not None:
        raise ConflictError(
            f"An active {policy.family} assignment already exists for this {scope.value} "
            f"(assignment {existing.id})"
        )

    assignment = PolicyAssignment(
        family=policy.family,
        policy=policy,
        organization_id=organization_id,
        scope_type=scope.value,
        scope_id=scope_id,
        effective_from=to_utc_naive(effective_from) if effective_from is not None else None,
        effective_until=to_utc_naive(effective_until) if effective_until is not None else None,
        is_active=True,
        created_by=created_by,
    )
    try:
        AssignmentRepository.add(session, assignment)
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        raise ConflictError(f"An active {policy.family} assignment already exists for this {scope.value}") from exc

    logger.info(
        "Assigned policy %s to %s %s in organization %s (assignment %s)",
        policy.id,
        scope.value,
        scope_id if scope_id is not None else organization_id,
        organization_id,
        assignment.id,
    )
    return assignment


def deactivate_assignment(
    session: Session,
    assignment_id: int,
    organization_id: Optional[int] = None,
) -> None:
    """
    Soft delete; inactive assignments are never resolved again.

    Raises:
        NotFoundError: If the assignment does not exist (in the organization)
    """
    assignment = AssignmentRepository.get_by_id(session, assignment_id)
    if assignment is None or (organization_id is not None and assignment.organization_id != organization_id):
        raise NotFoundError(f"Assignment {assignment_id} not found", entity_type="assignment")
    if not assignment.is_active:
        return
    assignment.is_active = False
    session.commit()
    logger.info("Deactivated assignment %s", assignment.id)


def list_assignments(
    session: Session,
    organization_id: int,
    family: Optional[str] = None,
) -> List[PolicyAssignment]:
    """Active assignments ordered by priority desc, then creation time desc."""
    if family is not None:
        family = parse_family(family).value
    return AssignmentRepository.get_by_organization(session, organization_id, family=family)


def resolve_for_employee(
    session: Session,
    family: str,
    employee_id: int,
    now: Optional[datetime] = None,
    organization_id: Optional[int] = None,
) -> Optional[ResolvedPolicy]:
    """
    Load an employee and its organization's assignments, then resolve.

    Raises:
        NotFoundError: If the employee does not exist (in the organization)
    """
    family = parse_family(family).value
    employee = EmployeeRepository.get_by_id(session, employee_id)
    if employee is None or (organization_id is not None and employee.organization_id != organization_id):
        raise NotFoundError(f"Employee {employee_id} not found", entity_type="employee")

    assignments = AssignmentRepository.get_by_organization(session, employee.organization_id, family=family)
    return resolve(
        employee.organization_id,
        employee.id,
        employee.team_id,
        assignments=assignments,
        now=now if now is not None else utcnow(),
        family=family,
    )
