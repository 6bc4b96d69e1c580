"""SQLAlchemy models for policies, assignments and the organization directory."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import DeclarativeBase, relationship, validates

from .enums import EmployeeRole, PolicyFamily, ScopeType, scope_priority


def utcnow() -> datetime:
    """Naive UTC timestamp; all DateTime columns store naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class Organization(Base):
    """Tenant owning policies, teams and employees."""

    __tablename__ = "organizations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    timezone = Column(String(64), nullable=True)  # IANA name, e.g. Europe/Berlin

    teams = relationship("Team", back_populates="organization")
    employees = relationship("Employee", back_populates="organization")

    def __repr__(self) -> str:
        return f"<Organization(id={self.id}, name='{self.name}', tz={self.timezone})>"


class Team(Base):
    __tablename__ = "teams"

    id = Column(Integer, primary_key=True, autoincrement=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)

    organization = relationship("Organization", back_populates="teams")
    members = relationship("Employee", back_populates="team")

    def __repr__(self) -> str:
        return f"<Team(id={self.id}, org={self.organization_id}, name='{self.name}')>"


class Employee(Base):
    """Employee record consumed by resolution (only organization and team matter)."""

    __tablename__ = "employees"

    id = Column(Integer, primary_key=True, autoincrement=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    team_id = Column(Integer, ForeignKey("teams.id"), nullable=True)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    role = Column(String(20), nullable=False, default=EmployeeRole.EMPLOYEE.value)  # employee, manager, admin
    is_active = Column(Boolean, nullable=False, default=True)

    organization = relationship("Organization", back_populates="employees")
    team = relationship("Team", back_populates="members")
    manager_relations = relationship(
        "EmployeeManager",
        foreign_keys="EmployeeManager.employee_id",
        back_populates="employee",
    )

    @property
    def display_name(self) -> str:
        name = " ".join(part for part in (self.first_name, self.last_name) if part)
        return name or f"Employee {self.id}"

    def __repr__(self) -> str:
        return f"<Employee(id={self.id}, org={self.organization_id}, team={self.team_id}, role='{self.role}')>"


class EmployeeManager(Base):
    """Manager relation; an employee may have several, at most one primary."""

    __tablename__ = "employee_managers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    manager_id = Column(Integer, ForeignKey("employees.id"), nullable=False)
    is_primary = Column(Boolean, nullable=False, default=False)

    employee = relationship("Employee", foreign_keys=[employee_id], back_populates="manager_relations")
    manager = relationship("Employee", foreign_keys=[manager_id])

    def __repr__(self) -> str:
        return f"<EmployeeManager(emp={self.employee_id}, manager={self.manager_id}, primary={self.is_primary})>"


class Policy(Base):
    """
    Named configuration of one policy family.

    Families share a single table; the ``family`` column is the polymorphic
    discriminator. Family-specific values of families without dedicated
    columns live in ``settings``.
    """

    __tablename__ = "policies"

    id = Column(Integer, primary_key=True, autoincrement=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    family = Column(String(32), nullable=False)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    settings = Column(JSON, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)
    created_by = Column(Integer, nullable=True)
    updated_by = Column(Integer, nullable=True)

    assignments = relationship("PolicyAssignment", back_populates="policy")

    __mapper_args__ = {"polymorphic_on": family}

    def __repr__(self) -> str:
        return f"<{type(self).__name__}(id={self.id}, org={self.organization_id}, name='{self.name}', active={self.is_active})>"


class ChangePolicy(Policy):
    """Controls how far back employees may edit their time records."""

    self_service_days = Column(Integer, nullable=True)
    approval_days = Column(Integer, nullable=True)
    no_approval_required = Column(Boolean, nullable=True, default=False)
    notify_all_managers = Column(Boolean, nullable=True, default=False)

    __mapper_args__ = {"polymorphic_identity": PolicyFamily.CHANGE_POLICY.value}


class WorkCategorySet(Policy):
    __mapper_args__ = {"polymorphic_identity": PolicyFamily.WORK_CATEGORY_SET.value}


class VacationPolicy(Policy):
    __mapper_args__ = {"polymorphic_identity": PolicyFamily.VACATION_POLICY.value}


class WorkSchedule(Policy):
    __mapper_args__ = {"polymorphic_identity": PolicyFamily.WORK_SCHEDULE.value}


class HolidayPreset(Policy):
    __mapper_args__ = {"polymorphic_identity": PolicyFamily.HOLIDAY_PRESET.value}


class SurchargeModel(Policy):
    __mapper_args__ = {"polymorphic_identity": PolicyFamily.SURCHARGE_MODEL.value}


POLICY_CLASSES = {
    PolicyFamily.CHANGE_POLICY: ChangePolicy,
    PolicyFamily.WORK_CATEGORY_SET: WorkCategorySet,
    PolicyFamily.VACATION_POLICY: VacationPolicy,
    PolicyFamily.WORK_SCHEDULE: WorkSchedule,
    PolicyFamily.HOLIDAY_PRESET: HolidayPreset,
    PolicyFamily.SURCHARGE_MODEL: SurchargeModel,
}


def policy_class_for(family: str) -> type[Policy]:
    """Mapped class for a policy family name."""
    return POLICY_CLASSES[PolicyFamily(family)]


class PolicyAssignment(Base):
    """Binds one policy to the organization, a team or an employee."""

    __tablename__ = "policy_assignments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    family = Column(String(32), nullable=False)
    policy_id = Column(Integer, ForeignKey("policies.id"), nullable=False, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    scope_type = Column(String(20), nullable=False)  # organization, team, employee
    scope_id = Column(Integer, nullable=True)  # None for organization scope
    priority = Column(Integer, nullable=False, default=0)
    effective_from = Column(DateTime, nullable=True)
    effective_until = Column(DateTime, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    created_by = Column(Integer, nullable=True)

    policy = relationship("Policy", back_populates="assignments")

    @validates("scope_type")
    def _derive_priority(self, key, value):
        scope = ScopeType(value)
        self._incoming_scope = scope
        try:
            self.priority = scope_priority(scope)
        finally:
            del self._incoming_scope
        return scope.value

    @validates("priority")
    def _check_priority(self, key, value):
        """Priority only ever mirrors the scope type."""
        scope = getattr(self, "_incoming_scope", None) or self.scope_type
        if scope is None:
            # Set before scope_type; overwritten once scope_type arrives
            return value
        expected = scope_priority(scope)
        if value != expected:
            raise ValueError(f"priority of a {ScopeType(scope).value} assignment is always {expected}")
        return value

    def __repr__(self) -> str:
        return (
            f"<PolicyAssignment(id={self.id}, family={self.family}, policy={self.policy_id}, "
            f"scope={self.scope_type}:{self.scope_id}, active={self.is_active})>"
        )


# One active assignment per scope; coalesce folds the null organization scope id
Index(
    "uq_policy_assignments_active_scope",
    PolicyAssignment.family,
    PolicyAssignment.organization_id,
    PolicyAssignment.scope_type,
    func.coalesce(PolicyAssignment.scope_id, -1),
    unique=True,
    sqlite_where=PolicyAssignment.is_active.is_(True),
    postgresql_where=PolicyAssignment.is_active.is_(True),
)
