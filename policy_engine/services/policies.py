"""Policy CRUD: validation, creation, partial update and soft delete."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from policy_engine.domain.enums import PolicyFamily
from policy_engine.domain.models import Policy, policy_class_for
from policy_engine.domain.repositories import OrganizationRepository, PolicyRepository
from policy_engine.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

COMMON_FIELDS = ("name", "description")
CHANGE_POLICY_DAY_FIELDS = ("self_service_days", "approval_days")
CHANGE_POLICY_FLAG_FIELDS = ("no_approval_required", "notify_all_managers")


def parse_family(family: str) -> PolicyFamily:
    try:
        return PolicyFamily(family)
    except ValueError:
        raise ValidationError(f"Unknown policy family: {family}", field="family") from None


def _allowed_fields(family: PolicyFamily, partial: bool) -> set:
    allowed = set(COMMON_FIELDS)
    if family is PolicyFamily.CHANGE_POLICY:
        allowed.update(CHANGE_POLICY_DAY_FIELDS)
        allowed.update(CHANGE_POLICY_FLAG_FIELDS)
    else:
        allowed.add("settings")
    if partial:
        allowed.add("is_active")
    return allowed


def validate_policy_input(family: str, data: Dict[str, Any], partial: bool = False) -> Dict[str, Any]:
    """
    Validate and normalize policy input.

    Args:
        family: Policy family the input is for
        data: Field values; on update only the fields present are checked
        partial: True for updates (no field is required)

    Returns:
        Cleaned copy of ``data`` (name trimmed)

    Raises:
        ValidationError: On unknown fields, empty name, negative or
            non-integer day counts, or non-boolean flags
    """
    family = parse_family(family)
    unknown = set(data) - _allowed_fields(family, partial)
    if unknown:
        raise ValidationError(f"Unknown fields: {', '.join(sorted(unknown))}", field=sorted(unknown)[0])

    cleaned = dict(data)

    if "name" in data or not partial:
        name = data.get("name")
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("Policy name is required", field="name")
        cleaned["name"] = name.strip()

    if family is PolicyFamily.CHANGE_POLICY:
        for field in CHANGE_POLICY_DAY_FIELDS:
            if field not in data and partial:
                continue
            value = data.get(field)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValidationError(f"{field} must be a whole number of days", field=field)
            if value < 0:
                raise ValidationError(f"{field} cannot be negative", field=field)
        for field in CHANGE_POLICY_FLAG_FIELDS:
            if field in data and not isinstance(data[field], bool):
                raise ValidationError(f"{field} must be true or false", field=field)
    elif "settings" in data and data["settings"] is not None and not isinstance(data["settings"], dict):
        raise ValidationError("settings must be a mapping", field="settings")

    if "is_active" in data and not isinstance(data["is_active"], bool):
        raise ValidationError("is_active must be true or false", field="is_active")

    return cleaned


def get_policy(session: Session, policy_id: int, organization_id: Optional[int] = None) -> Policy:
    """
    Raises:
        NotFoundError: If the policy is missing or owned by another organization
    """
    policy = PolicyRepository.get_by_id(session, policy_id)
    if policy is None or (organization_id is not None and policy.organization_id != organization_id):
        raise NotFoundError(f"Policy {policy_id} not found", entity_type="policy")
    return policy


def list_policies(session: Session, organization_id: int, family: Optional[str] = None) -> List[Policy]:
    """Active policies of an organization, newest first."""
    if family is not None:
        family = parse_family(family).value
    return PolicyRepository.get_by_organization(session, organization_id, family=family)


def create_policy(
    session: Session,
    organization_id: int,
    family: str,
    data: Dict[str, Any],
    created_by: Optional[int] = None,
) -> Policy:
    """
    Create a policy of ``family`` for an organization.

    Returns:
        The persisted policy

    Raises:
        ValidationError: On invalid input (nothing is written)
        NotFoundError: If the organization does not exist
    """
    cleaned = validate_policy_input(family, data)
    if OrganizationRepository.get_by_id(session, organization_id) is None:
        raise NotFoundError(f"Organization {organization_id} not found", entity_type="organization")

    policy_cls = policy_class_for(family)
    policy = policy_cls(
        organization_id=organization_id,
        is_active=True,
        created_by=created_by,
        **cleaned,
    )
    if parse_family(family) is PolicyFamily.CHANGE_POLICY:
        policy.no_approval_required = bool(cleaned.get("no_approval_required", False))
        policy.notify_all_managers = bool(cleaned.get("notify_all_managers", False))

    PolicyRepository.add(session, policy)
    session.commit()
    logger.info("Created %s policy %s '%s' for organization %s", family, policy.id, policy.name, organization_id)
    return policy


def update_policy(
    session: Session,
    policy_id: int,
    data: Dict[str, Any],
    updated_by: Optional[int] = None,
    organization_id: Optional[int] = None,
) -> Policy:
    """
    Apply a partial update; only the fields present are validated and written.

    Raises:
        NotFoundError: If the policy does not exist (in the organization)
        ValidationError: On invalid input (nothing is written)
    """
    policy = get_policy(session, policy_id, organization_id)
    cleaned = validate_policy_input(policy.family, data, partial=True)

    for field, value in cleaned.items():
        setattr(policy, field, value)
    policy.updated_by = updated_by
    session.commit()
    logger.info("Updated policy %s fields: %s", policy.id, sorted(cleaned))
    return policy


def deactivate_policy(session: Session, policy_id: int, organization_id: Optional[int] = None) -> None:
    """Soft delete; the row and its assignments stay for history."""
    policy = get_policy(session, policy_id, organization_id)
    if not policy.is_active:
        return
    policy.is_active = False
    session.commit()
    logger.info("Deactivated policy %s", policy.id)
