"""Enumerations shared by models and services."""

from __future__ import annotations

import enum


class PolicyFamily(str, enum.Enum):
    """Category of configurable behaviour sharing the scope-resolution shape."""

    CHANGE_POLICY = "change_policy"
    WORK_CATEGORY_SET = "work_category_set"
    VACATION_POLICY = "vacation_policy"
    WORK_SCHEDULE = "work_schedule"
    HOLIDAY_PRESET = "holiday_preset"
    SURCHARGE_MODEL = "surcharge_model"


class ScopeType(str, enum.Enum):
    """Level at which an assignment applies, in increasing specificity."""

    ORGANIZATION = "organization"
    TEAM = "team"
    EMPLOYEE = "employee"


# Derived priority; more specific scopes always win
SCOPE_PRIORITY = {
    ScopeType.ORGANIZATION: 0,
    ScopeType.TEAM: 1,
    ScopeType.EMPLOYEE: 2,
}


class EmployeeRole(str, enum.Enum):
    EMPLOYEE = "employee"
    MANAGER = "manager"
    ADMIN = "admin"


class PermissionClass(str, enum.Enum):
    """Edit-permission window a calendar date falls into."""

    SELF_SERVICE = "self_service"
    APPROVAL_REQUIRED = "approval_required"
    LOCKED = "locked"


def scope_priority(scope_type: str) -> int:
    """Priority for a scope type (employee 2 > team 1 > organization 0)."""
    return SCOPE_PRIORITY[ScopeType(scope_type)]
