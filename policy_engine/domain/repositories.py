"""Repository classes for data access."""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy import case
from sqlalchemy.orm import Session, selectinload

from .enums import SCOPE_PRIORITY
from .models import (
    Employee,
    EmployeeManager,
    Organization,
    Policy,
    PolicyAssignment,
    Team,
)


class OrganizationRepository:
    """Repository for organization data access."""

    @staticmethod
    def get_all(session: Session) -> List[Organization]:
        """Get all organizations."""
        return session.query(Organization).order_by(Organization.id).all()

    @staticmethod
    def get_by_id(session: Session, organization_id: int) -> Optional[Organization]:
        """Get organization by ID."""
        return session.get(Organization, organization_id)

    @staticmethod
    def create(session: Session, organization: Organization) -> Organization:
        """Create a new organization."""
        session.add(organization)
        session.commit()
        session.refresh(organization)
        return organization


class TeamRepository:
    """Repository for team data access."""

    @staticmethod
    def get_by_id(session: Session, team_id: int) -> Optional[Team]:
        """Get team by ID."""
        return session.get(Team, team_id)

    @staticmethod
    def get_by_organization(session: Session, organization_id: int) -> List[Team]:
        """Get active teams of an organization, ordered by name."""
        return (
            session.query(Team)
            .filter(Team.organization_id == organization_id, Team.is_active.is_(True))
            .order_by(Team.name)
            .all()
        )

    @staticmethod
    def bulk_create(session: Session, teams: List[Team]) -> None:
        """Create multiple teams."""
        session.add_all(teams)
        session.commit()


class EmployeeRepository:
    """Repository for employee data access."""

    @staticmethod
    def get_by_id(session: Session, employee_id: int) -> Optional[Employee]:
        """Get employee by ID."""
        return session.get(Employee, employee_id)

    @staticmethod
    def get_by_organization(session: Session, organization_id: int) -> List[Employee]:
        """Get active employees of an organization, ordered by last/first name."""
        return (
            session.query(Employee)
            .filter(Employee.organization_id == organization_id, Employee.is_active.is_(True))
            .order_by(Employee.last_name, Employee.first_name)
            .all()
        )

    @staticmethod
    def bulk_create(session: Session, employees: List[Employee]) -> None:
        """Create multiple employees."""
        session.add_all(employees)
        session.commit()


class ManagerRepository:
    """Repository for employee-manager relations."""

    @staticmethod
    def get_for_employee(session: Session, employee_id: int) -> List[EmployeeManager]:
        """Get manager relations for an employee, primary first."""
        return (
            session.query(EmployeeManager)
            .options(selectinload(EmployeeManager.manager))
            .filter(EmployeeManager.employee_id == employee_id)
            .order_by(EmployeeManager.is_primary.desc(), EmployeeManager.id)
            .all()
        )

    @staticmethod
    def bulk_create(session: Session, relations: List[EmployeeManager]) -> None:
        """Create multiple manager relations."""
        session.add_all(relations)
        session.commit()


class PolicyRepository:
    """Repository for policy data access (all families)."""

    @staticmethod
    def get_by_id(session: Session, policy_id: int) -> Optional[Policy]:
        """Get policy by ID (any family)."""
        return session.get(Policy, policy_id)

    @staticmethod
    def get_by_organization(
        session: Session,
        organization_id: int,
        family: Optional[str] = None,
        include_inactive: bool = False,
    ) -> List[Policy]:
        """Get policies of an organization, newest first."""
        query = session.query(Policy).filter(Policy.organization_id == organization_id)
        if family is not None:
            query = query.filter(Policy.family == family)
        if not include_inactive:
            query = query.filter(Policy.is_active.is_(True))
        return query.order_by(Policy.created_at.desc(), Policy.id.desc()).all()

    @staticmethod
    def add(session: Session, policy: Policy) -> Policy:
        """Stage a policy and flush to obtain its id (caller commits)."""
        session.add(policy)
        session.flush()
        return policy


# Priority recomputed from scope_type for ordering
_SCOPE_RANK = case(
    {scope.value: priority for scope, priority in SCOPE_PRIORITY.items()},
    value=PolicyAssignment.scope_type,
    else_=-1,
)


class AssignmentRepository:
    """Repository for policy assignment data access."""

    @staticmethod
    def get_by_id(session: Session, assignment_id: int) -> Optional[PolicyAssignment]:
        """Get assignment by ID."""
        return session.get(PolicyAssignment, assignment_id)

    @staticmethod
    def get_by_organization(
        session: Session,
        organization_id: int,
        family: Optional[str] = None,
        include_inactive: bool = False,
    ) -> List[PolicyAssignment]:
        """Get assignments ordered by scope priority desc, then creation time desc."""
        query = (
            session.query(PolicyAssignment)
            .options(selectinload(PolicyAssignment.policy))
            .filter(PolicyAssignment.organization_id == organization_id)
        )
        if family is not None:
            query = query.filter(PolicyAssignment.family == family)
        if not include_inactive:
            query = query.filter(PolicyAssignment.is_active.is_(True))
        return query.order_by(
            _SCOPE_RANK.desc(),
            PolicyAssignment.created_at.desc(),
            PolicyAssignment.id.desc(),
        ).all()

    @staticmethod
    def find_active_for_scope(
        session: Session,
        family: str,
        organization_id: int,
        scope_type: str,
        scope_id: Optional[int],
    ) -> Optional[PolicyAssignment]:
        """Get the active assignment occupying a scope, if any."""
        query = session.query(PolicyAssignment).filter(
            PolicyAssignment.family == family,
            PolicyAssignment.organization_id == organization_id,
            PolicyAssignment.scope_type == scope_type,
            PolicyAssignment.is_active.is_(True),
        )
        if scope_id is None:
            query = query.filter(PolicyAssignment.scope_id.is_(None))
        else:
            query = query.filter(PolicyAssignment.scope_id == scope_id)
        return query.first()

    @staticmethod
    def add(session: Session, assignment: PolicyAssignment) -> PolicyAssignment:
        """Stage an assignment and flush to obtain its id (caller commits)."""
        session.add(assignment)
        session.flush()
        return assignment
