"""Edit-permission windows for change policies."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import date, datetime, timezone, tzinfo
from typing import Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from policy_engine.domain.enums import PermissionClass
from policy_engine.domain.models import ChangePolicy

DateLike = Union[date, datetime]


class EditReason(str, enum.Enum):
    NO_POLICY = "no_policy"
    TRUST_MODE = "trust_mode"
    WITHIN_SELF_SERVICE = "within_self_service"
    WITHIN_APPROVAL_WINDOW = "within_approval_window"
    BEYOND_APPROVAL_WINDOW = "beyond_approval_window"


@dataclass(frozen=True)
class EditDecision:
    permission: PermissionClass
    reason: EditReason
    days_back: int = 0

    @property
    def requires_approval(self) -> bool:
        return self.permission is PermissionClass.APPROVAL_REQUIRED


def get_timezone(tz: Union[str, tzinfo, None]) -> tzinfo:
    """Resolve an IANA name or tzinfo; None means UTC."""
    if tz is None:
        return timezone.utc
    if isinstance(tz, str):
        return ZoneInfo(tz)
    return tz


def check_timezone(name: str) -> str:
    """
    Validate an IANA timezone name.

    Raises:
        ValueError: If no zone with that name exists
    """
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError, TypeError):
        raise ValueError(f"Unknown timezone: {name!r}") from None
    return name


def local_date(moment: DateLike, tz: Union[str, tzinfo, None] = None) -> date:
    """
    Calendar date of a moment in the given zone.

    Plain dates are already calendar dates and are returned unchanged.
    Naive datetimes are taken as UTC.
    """
    if not isinstance(moment, datetime):
        return moment
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(get_timezone(tz)).date()


def days_back(target: DateLike, now: Optional[datetime] = None, tz: Union[str, tzinfo, None] = None) -> int:
    """
    Whole calendar days from the target's date to today's date.

    Both moments are reduced to dates in ``tz`` first. Future dates (clock
    skew) clamp to zero.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    delta = (local_date(now, tz) - local_date(target, tz)).days
    return max(delta, 0)


def evaluate_edit(
    policy: Optional[ChangePolicy],
    target: DateLike,
    now: Optional[datetime] = None,
    tz: Union[str, tzinfo, None] = None,
) -> EditDecision:
    """
    Classify an edit of a record dated ``target`` under a change policy.

    Args:
        policy: Resolved change policy, or None when none is assigned
        target: Date (or timestamp) of the record being edited
        now: Reference time (default: current time)
        tz: Timezone used to turn both moments into calendar dates

    Returns:
        EditDecision with permission class, reason and age in days
    """
    if policy is None:
        return EditDecision(PermissionClass.SELF_SERVICE, EditReason.NO_POLICY)

    if policy.no_approval_required:
        return EditDecision(PermissionClass.SELF_SERVICE, EditReason.TRUST_MODE)

    age = days_back(target, now, tz)
    self_service_days = int(policy.self_service_days or 0)
    approval_days = int(policy.approval_days or 0)

    # Inclusive boundaries; zero-day windows are meaningful
    if age <= self_service_days:
        return EditDecision(PermissionClass.SELF_SERVICE, EditReason.WITHIN_SELF_SERVICE, age)
    if age <= self_service_days + approval_days:
        return EditDecision(PermissionClass.APPROVAL_REQUIRED, EditReason.WITHIN_APPROVAL_WINDOW, age)
    return EditDecision(PermissionClass.LOCKED, EditReason.BEYOND_APPROVAL_WINDOW, age)


def classify(
    policy: Optional[ChangePolicy],
    target_date: DateLike,
    now: Optional[datetime] = None,
    tz: Union[str, tzinfo, None] = None,
) -> PermissionClass:
    """Permission class for editing a record dated ``target_date``."""
    return evaluate_edit(policy, target_date, now, tz).permission


def clock_out_needs_approval(policy: Optional[ChangePolicy]) -> bool:
    """
    Whether a clock-out itself triggers an approval request.

    Only policies without a same-day self-service allowance
    (``self_service_days == 0``) do; trust mode never does.
    """
    if policy is None or policy.no_approval_required:
        return False
    return int(policy.self_service_days or 0) == 0
