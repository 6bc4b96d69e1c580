"""Tests for scope-hierarchy resolution (no database)."""

from datetime import datetime, timedelta, timezone

import pytest

from policy_engine.domain.enums import ScopeType
from policy_engine.domain.models import ChangePolicy, PolicyAssignment, VacationPolicy
from policy_engine.services.resolution import (
    assignment_order_key,
    is_effective,
    order_assignments,
    resolve,
)

NOW = datetime(2025, 6, 15, 12, 0)
ORG = 1
EMPLOYEE = 100
TEAM = 10


def _policy(policy_id, name=None, active=True, cls=ChangePolicy):
    return cls(
        id=policy_id,
        organization_id=ORG,
        name=name or f"Policy {policy_id}",
        is_active=active,
    )


def _assignment(assignment_id, policy, scope_type, scope_id=None, created_at=None, **kwargs):
    values = dict(
        id=assignment_id,
        family=kwargs.pop("family", "change_policy"),
        policy=policy,
        organization_id=kwargs.pop("organization_id", ORG),
        scope_type=scope_type,
        scope_id=scope_id,
        is_active=True,
        created_at=created_at or NOW - timedelta(days=30),
        effective_from=None,
        effective_until=None,
    )
    values.update(kwargs)
    return PolicyAssignment(**values)


def test_priority_derived_from_scope_type():
    """Priority follows scope specificity: employee > team > organization."""
    org = _assignment(1, _policy(1), "organization")
    team = _assignment(2, _policy(2), "team", TEAM)
    emp = _assignment(3, _policy(3), "employee", EMPLOYEE)
    assert (org.priority, team.priority, emp.priority) == (0, 1, 2)


def test_team_scope_beats_organization():
    org_policy, team_policy = _policy(1, "Org default"), _policy(2, "Support team")
    assignments = [
        _assignment(1, org_policy, "organization", created_at=NOW - timedelta(days=1)),
        _assignment(2, team_policy, "team", TEAM, created_at=NOW - timedelta(days=90)),
    ]

    resolved = resolve(ORG, EMPLOYEE, TEAM, assignments=assignments, now=NOW)
    assert resolved.policy is team_policy
    assert resolved.scope_type is ScopeType.TEAM


def test_employee_scope_beats_team_and_organization():
    emp_policy = _policy(3, "Personal")
    assignments = [
        _assignment(1, _policy(1), "organization"),
        _assignment(2, _policy(2), "team", TEAM),
        _assignment(3, emp_policy, "employee", EMPLOYEE, created_at=NOW - timedelta(days=365)),
    ]

    resolved = resolve(ORG, EMPLOYEE, TEAM, assignments=assignments, now=NOW)
    assert resolved.policy is emp_policy
    assert resolved.scope_type is ScopeType.EMPLOYEE


def test_team_assignment_ignored_for_employee_without_team():
    org_policy = _policy(1)
    assignments = [
        _assignment(1, org_policy, "organization"),
        _assignment(2, _policy(2), "team", TEAM),
    ]

    resolved = resolve(ORG, EMPLOYEE, None, assignments=assignments, now=NOW)
    assert resolved.policy is org_policy


def test_other_team_and_other_employee_do_not_apply():
    org_policy = _policy(1)
    assignments = [
        _assignment(1, org_policy, "organization"),
        _assignment(2, _policy(2), "team", 99),
        _assignment(3, _policy(3), "employee", 999),
    ]

    resolved = resolve(ORG, EMPLOYEE, TEAM, assignments=assignments, now=NOW)
    assert resolved.policy is org_policy


def test_no_assignment_returns_none():
    assert resolve(ORG, EMPLOYEE, TEAM, assignments=[], now=NOW) is None


def test_other_organization_ignored():
    assignments = [_assignment(1, _policy(1), "organization", organization_id=2)]
    assert resolve(ORG, EMPLOYEE, TEAM, assignments=assignments, now=NOW) is None


def test_inactive_assignment_falls_back_to_lower_scope():
    team_policy = _policy(2)
    assignments = [
        _assignment(1, _policy(1), "organization"),
        _assignment(2, team_policy, "team", TEAM),
        _assignment(3, _policy(3), "employee", EMPLOYEE, is_active=False),
    ]

    resolved = resolve(ORG, EMPLOYEE, TEAM, assignments=assignments, now=NOW)
    assert resolved.policy is team_policy


def test_inactive_only_assignment_resolves_to_none():
    assignments = [_assignment(1, _policy(1), "organization", is_active=False)]
    assert resolve(ORG, EMPLOYEE, TEAM, assignments=assignments, now=NOW) is None


def test_assignment_of_inactive_policy_is_skipped():
    org_policy = _policy(1)
    assignments = [
        _assignment(1, org_policy, "organization"),
        _assignment(2, _policy(2, active=False), "employee", EMPLOYEE),
    ]

    resolved = resolve(ORG, EMPLOYEE, TEAM, assignments=assignments, now=NOW)
    assert resolved.policy is org_policy


@pytest.mark.parametrize(
    "effective_from,effective_until,expected",
    [
        (None, None, True),
        (NOW - timedelta(days=1), None, True),
        (NOW, None, True),
        (NOW + timedelta(seconds=1), None, False),
        (None, NOW, True),
        (None, NOW - timedelta(seconds=1), False),
        (NOW - timedelta(days=10), NOW + timedelta(days=10), True),
    ],
)
def test_effective_window(effective_from, effective_until, expected):
    """Both window bounds are inclusive; unset bounds are open."""
    assignment = _assignment(
        1, _policy(1), "organization", effective_from=effective_from, effective_until=effective_until
    )
    assert is_effective(assignment, NOW) is expected


def test_future_employee_override_not_yet_effective():
    org_policy = _policy(1)
    assignments = [
        _assignment(1, org_policy, "organization"),
        _assignment(2, _policy(2), "employee", EMPLOYEE, effective_from=NOW + timedelta(days=3)),
    ]

    assert resolve(ORG, EMPLOYEE, TEAM, assignments=assignments, now=NOW).policy is org_policy
    later = NOW + timedelta(days=4)
    assert resolve(ORG, EMPLOYEE, TEAM, assignments=assignments, now=later).policy.id == 2


def test_duplicate_same_scope_newest_wins():
    """A stale duplicate never errors; the most recently created assignment wins."""
    newer = _policy(2, "Newer")
    assignments = [
        _assignment(1, _policy(1, "Older"), "team", TEAM, created_at=NOW - timedelta(days=5)),
        _assignment(2, newer, "team", TEAM, created_at=NOW - timedelta(days=1)),
    ]

    resolved = resolve(ORG, EMPLOYEE, TEAM, assignments=assignments, now=NOW)
    assert resolved.policy is newer


def test_equal_created_at_falls_back_to_highest_id():
    created = NOW - timedelta(days=2)
    assignments = [
        _assignment(7, _policy(1), "organization", created_at=created),
        _assignment(8, _policy(2), "organization", created_at=created),
    ]

    resolved = resolve(ORG, EMPLOYEE, TEAM, assignments=assignments, now=NOW)
    assert resolved.assignment.id == 8


def test_family_filter():
    change = _policy(1)
    vacation = _policy(2, cls=VacationPolicy)
    assignments = [
        _assignment(1, change, "organization"),
        _assignment(2, vacation, "employee", EMPLOYEE, family="vacation_policy"),
    ]

    assert resolve(ORG, EMPLOYEE, TEAM, assignments=assignments, now=NOW, family="change_policy").policy is change
    assert resolve(ORG, EMPLOYEE, TEAM, assignments=assignments, now=NOW, family="vacation_policy").policy is vacation


def test_timezone_aware_now_is_normalized():
    assignment = _assignment(1, _policy(1), "organization", effective_from=datetime(2025, 6, 15, 10, 0))
    # 11:30 in UTC+02:00 is 09:30 UTC, before the window opens
    aware = datetime(2025, 6, 15, 11, 30, tzinfo=timezone(timedelta(hours=2)))
    assert is_effective(assignment, aware) is False
    assert is_effective(assignment, aware + timedelta(hours=1)) is True


def test_order_assignments_priority_then_creation():
    org_new = _assignment(1, _policy(1), "organization", created_at=NOW)
    team_old = _assignment(2, _policy(2), "team", TEAM, created_at=NOW - timedelta(days=50))
    team_new = _assignment(3, _policy(3), "team", 11, created_at=NOW - timedelta(days=1))
    emp = _assignment(4, _policy(4), "employee", EMPLOYEE, created_at=NOW - timedelta(days=100))

    ordered = order_assignments([org_new, team_old, emp, team_new])
    assert [a.id for a in ordered] == [4, 3, 2, 1]
    assert assignment_order_key(emp) > assignment_order_key(org_new)
