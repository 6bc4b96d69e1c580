"""Tests for edit capability, clock-out approval and approval routing."""

from datetime import date, datetime, timedelta

import pytest

from policy_engine.domain.enums import PermissionClass
from policy_engine.domain.models import EmployeeManager, Organization
from policy_engine.services.assignments import create_assignment
from policy_engine.services.authorization import Authorizer
from policy_engine.services.change_policies import (
    approvers_for_edit,
    can_edit,
    check_clock_out_needs_approval,
    get_edit_capability,
)
from policy_engine.services.policies import create_policy, update_policy
from policy_engine.services.routing import select_approvers
from policy_engine.services.windows import EditReason

NOW = datetime(2025, 6, 15, 10, 0)


def _policy(session, name, **values):
    data = {"name": name, "self_service_days": 0, "approval_days": 7}
    data.update(values)
    return create_policy(session, 1, "change_policy", data)


def test_scenario_organization_default_then_trust_override(directory):
    org_default = _policy(directory, "Org default")
    create_assignment(directory, 1, org_default.id, "organization")
    entry_date = NOW.date() - timedelta(days=5)

    decision = get_edit_capability(directory, 101, entry_date, now=NOW)
    assert decision.permission is PermissionClass.APPROVAL_REQUIRED
    assert decision.days_back == 5

    trusted = _policy(directory, "Trusted", no_approval_required=True)
    create_assignment(directory, 1, trusted.id, "employee", 101)

    decision = get_edit_capability(directory, 101, entry_date, now=NOW)
    assert decision.permission is PermissionClass.SELF_SERVICE
    assert decision.reason is EditReason.TRUST_MODE


def test_no_policy_means_unrestricted(directory):
    decision = get_edit_capability(directory, 100, date(2020, 1, 1), now=NOW)
    assert decision.permission is PermissionClass.SELF_SERVICE
    assert decision.reason is EditReason.NO_POLICY


def test_policy_updates_apply_on_next_resolution(directory):
    policy = _policy(directory, "Org default", self_service_days=1, approval_days=1)
    create_assignment(directory, 1, policy.id, "organization")
    entry_date = NOW.date() - timedelta(days=5)

    assert get_edit_capability(directory, 100, entry_date, now=NOW).permission is PermissionClass.LOCKED
    update_policy(directory, policy.id, {"approval_days": 10})
    assert get_edit_capability(directory, 100, entry_date, now=NOW).permission is PermissionClass.APPROVAL_REQUIRED


def test_days_counted_in_organization_timezone(directory):
    policy = _policy(directory, "Same day only", approval_days=0)
    create_assignment(directory, 1, policy.id, "organization")
    # 23:30 UTC is already the next day in Berlin (org 1)
    now = datetime(2025, 3, 10, 23, 30)

    decision = get_edit_capability(directory, 100, date(2025, 3, 10), now=now)
    assert decision.days_back == 1
    assert decision.permission is PermissionClass.LOCKED


def test_default_timezone_used_when_organization_has_none(directory):
    policy = create_policy(directory, 2, "change_policy", {"name": "Globex", "self_service_days": 0, "approval_days": 0})
    create_assignment(directory, 2, policy.id, "organization")
    now = datetime(2025, 3, 10, 23, 30)

    assert get_edit_capability(directory, 200, date(2025, 3, 10), now=now).days_back == 0
    decision = get_edit_capability(directory, 200, date(2025, 3, 10), now=now, default_timezone="Asia/Tokyo")
    assert decision.days_back == 1


def test_unknown_organization_timezone_falls_back_to_default(directory):
    policy = _policy(directory, "Same day only", approval_days=0)
    create_assignment(directory, 1, policy.id, "organization")
    directory.get(Organization, 1).timezone = "Mars/Olympus"
    directory.commit()
    now = datetime(2025, 3, 10, 23, 30)

    decision = get_edit_capability(directory, 100, date(2025, 3, 10), now=now)
    assert decision.days_back == 0
    assert decision.permission is PermissionClass.SELF_SERVICE


def test_can_edit_locked_requires_elevated_role(directory):
    policy = _policy(directory, "Strict", approval_days=0)
    create_assignment(directory, 1, policy.id, "organization")
    decision = get_edit_capability(directory, 100, NOW.date() - timedelta(days=3), now=NOW)
    assert decision.permission is PermissionClass.LOCKED

    assert can_edit(decision, "employee") is False
    assert can_edit(decision, "manager") is False
    assert can_edit(decision, "admin") is True
    assert can_edit(decision, "manager", Authorizer(elevated_roles=["admin", "manager"])) is True


def test_can_edit_open_windows_for_everyone(directory):
    decision = get_edit_capability(directory, 100, NOW.date(), now=NOW)
    assert can_edit(decision, "employee") is True


def test_clock_out_needs_approval(directory):
    assert check_clock_out_needs_approval(directory, 100, now=NOW) is False

    policy = _policy(directory, "Zero day")
    create_assignment(directory, 1, policy.id, "organization")
    assert check_clock_out_needs_approval(directory, 100, now=NOW) is True

    relaxed = _policy(directory, "Relaxed", self_service_days=2)
    create_assignment(directory, 1, relaxed.id, "team", 10)
    assert check_clock_out_needs_approval(directory, 100, now=NOW) is False


def test_primary_manager_only_by_default(directory):
    policy = _policy(directory, "Org default")
    create_assignment(directory, 1, policy.id, "organization")

    approvers = approvers_for_edit(directory, 100, now=NOW)
    assert [a.manager_id for a in approvers] == [102]
    assert approvers[0].is_primary is True
    assert approvers[0].name == "Clara Cole"


def test_notify_all_managers(directory):
    policy = _policy(directory, "Everyone", notify_all_managers=True)
    create_assignment(directory, 1, policy.id, "organization")

    approvers = approvers_for_edit(directory, 100, now=NOW)
    assert sorted(a.manager_id for a in approvers) == [102, 103]


def test_fallback_to_first_manager_without_primary(directory):
    approvers = approvers_for_edit(directory, 101, now=NOW)
    assert [a.manager_id for a in approvers] == [103]


def test_employee_without_managers(directory):
    assert approvers_for_edit(directory, 103, now=NOW) == []


@pytest.mark.parametrize("notify_all,expected", [(True, [1, 2, 3]), (False, [2])])
def test_select_approvers(notify_all, expected):
    relations = [
        EmployeeManager(id=1, employee_id=5, manager_id=1, is_primary=False),
        EmployeeManager(id=2, employee_id=5, manager_id=2, is_primary=True),
        EmployeeManager(id=3, employee_id=5, manager_id=3, is_primary=False),
    ]
    assert [r.manager_id for r in select_approvers(relations, notify_all)] == expected


def test_select_approvers_empty():
    assert select_approvers([], True) == []
    assert select_approvers([], False) == []
