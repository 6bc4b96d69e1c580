"""Services for policy resolution and administration."""

from .assignments import (
    create_assignment,
    deactivate_assignment,
    list_assignments,
    resolve_for_employee,
)
from .authorization import Action, Authorizer, Resource
from .change_policies import approvers_for_edit, can_edit, get_edit_capability
from .policies import create_policy, deactivate_policy, list_policies, update_policy
from .resolution import ResolvedPolicy, resolve
from .routing import managers_for_approval, select_approvers
from .windows import EditDecision, classify, evaluate_edit

__all__ = [
    "create_policy",
    "update_policy",
    "deactivate_policy",
    "list_policies",
    "create_assignment",
    "deactivate_assignment",
    "list_assignments",
    "resolve_for_employee",
    "resolve",
    "ResolvedPolicy",
    "classify",
    "evaluate_edit",
    "EditDecision",
    "get_edit_capability",
    "can_edit",
    "approvers_for_edit",
    "managers_for_approval",
    "select_approvers",
    "Authorizer",
    "Resource",
    "Action",
]
