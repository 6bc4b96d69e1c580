"""CSV export of the assignment listing."""

from __future__ import annotations

import logging
from pathlib import Path

import pandas as pd
from sqlalchemy.orm import Session

from policy_engine.services.assignments import list_assignments

logger = logging.getLogger(__name__)

ASSIGNMENT_COLUMNS = [
    "assignment_id",
    "family",
    "policy_id",
    "policy_name",
    "scope_type",
    "scope_id",
    "priority",
    "effective_from",
    "effective_until",
    "created_at",
]


def assignments_frame(session: Session, organization_id: int, family: str | None = None) -> pd.DataFrame:
    """Active assignments as a DataFrame, in resolution order."""
    rows = [
        {
            "assignment_id": a.id,
            "family": a.family,
            "policy_id": a.policy_id,
            "policy_name": a.policy.name if a.policy is not None else None,
            "scope_type": a.scope_type,
            "scope_id": a.scope_id,
            "priority": a.priority,
            "effective_from": a.effective_from,
            "effective_until": a.effective_until,
            "created_at": a.created_at,
        }
        for a in list_assignments(session, organization_id, family)
    ]
    df = pd.DataFrame(rows, columns=ASSIGNMENT_COLUMNS)
    df["scope_id"] = df["scope_id"].astype("Int64")
    return df


def export_assignments_csv(
    session: Session,
    csv_path: str | Path,
    organization_id: int,
    family: str | None = None,
) -> int:
    """
    Export active assignments to CSV.

    Returns:
        Number of assignments exported
    """
    df = assignments_frame(session, organization_id, family)
    df.to_csv(csv_path, index=False)
    logger.info("Exported %d assignments to %s", len(df), csv_path)
    return len(df)
