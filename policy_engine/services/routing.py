"""Approval routing: which managers receive an approval request."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

from sqlalchemy.orm import Session

from policy_engine.domain.models import ChangePolicy, EmployeeManager
from policy_engine.domain.repositories import ManagerRepository


@dataclass(frozen=True)
class Approver:
    manager_id: int
    name: str
    is_primary: bool


def select_approvers(
    relations: Sequence[EmployeeManager],
    notify_all_managers: bool,
) -> List[EmployeeManager]:
    """
    Pick manager relations to notify.

    All relations when ``notify_all_managers`` is set; otherwise the primary
    relation, falling back to the first relation when none is primary.
    """
    if not relations:
        return []
    if notify_all_managers:
        return list(relations)
    for relation in relations:
        if relation.is_primary:
            return [relation]
    return [relations[0]]


def managers_for_approval(
    session: Session,
    employee_id: int,
    policy: Optional[ChangePolicy],
) -> List[Approver]:
    """Approvers for an employee's approval request under ``policy``."""
    notify_all = bool(policy is not None and policy.notify_all_managers)
    relations = ManagerRepository.get_for_employee(session, employee_id)
    return [
        Approver(
            manager_id=relation.manager_id,
            name=relation.manager.display_name if relation.manager else "Manager",
            is_primary=bool(relation.is_primary),
        )
        for relation in select_approvers(relations, notify_all)
    ]
