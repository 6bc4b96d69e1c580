"""Domain models and data access layer."""

from .enums import EmployeeRole, PermissionClass, PolicyFamily, ScopeType
from .models import (
    Base,
    ChangePolicy,
    Employee,
    EmployeeManager,
    Organization,
    Policy,
    PolicyAssignment,
    Team,
)
from .repositories import (
    AssignmentRepository,
    EmployeeRepository,
    ManagerRepository,
    OrganizationRepository,
    PolicyRepository,
    TeamRepository,
)

__all__ = [
    "Base",
    "Organization",
    "Team",
    "Employee",
    "EmployeeManager",
    "Policy",
    "ChangePolicy",
    "PolicyAssignment",
    "PolicyFamily",
    "ScopeType",
    "EmployeeRole",
    "PermissionClass",
    "OrganizationRepository",
    "TeamRepository",
    "EmployeeRepository",
    "ManagerRepository",
    "PolicyRepository",
    "AssignmentRepository",
]
