"""CSV import utilities to load the organization directory into the database."""

from __future__ import annotations

import logging
from pathlib import Path

import pandas as pd
from sqlalchemy.orm import Session

from policy_engine.domain.enums import EmployeeRole
from policy_engine.domain.models import Employee, EmployeeManager, Organization, Team
from policy_engine.services.windows import check_timezone

logger = logging.getLogger(__name__)

_TRUE_VALUES = {"TRUE", "T", "1", "YES", "Y"}


def _read(csv_path: str | Path) -> pd.DataFrame:
    df = pd.read_csv(csv_path)
    # Normalize column names
    df.columns = df.columns.str.lower().str.strip()
    return df


def _optional_int(value):
    return int(value) if pd.notna(value) else None


def _optional_str(value):
    return str(value).strip() if pd.notna(value) else None


def _optional_timezone(value):
    name = _optional_str(value)
    return check_timezone(name) if name else None


def _flag(value, default: bool) -> bool:
    if value is None or not pd.notna(value):
        return default
    return str(value).strip().upper() in _TRUE_VALUES


def import_organizations_csv(session: Session, csv_path: str | Path) -> int:
    """
    Import organizations (columns: id, name, timezone).

    Returns:
        Number of organizations imported

    Raises:
        ValueError: If a timezone is not a known IANA name
    """
    df = _read(csv_path)
    organizations = [
        Organization(
            id=int(row["id"]),
            name=str(row["name"]),
            timezone=_optional_timezone(row.get("timezone")),
        )
        for _, row in df.iterrows()
    ]
    session.add_all(organizations)
    session.commit()

    logger.info("Imported %d organizations from %s", len(organizations), csv_path)
    return len(organizations)


def import_teams_csv(session: Session, csv_path: str | Path, organization_id: int | None = None) -> int:
    """
    Import teams (columns: id, organization_id, name, is_active).

    Args:
        session: Database session
        csv_path: Path to teams CSV
        organization_id: Optional organization to filter

    Returns:
        Number of teams imported
    """
    df = _read(csv_path)
    if organization_id is not None:
        df = df[df["organization_id"] == organization_id].copy()

    teams = [
        Team(
            id=int(row["id"]),
            organization_id=int(row["organization_id"]),
            name=str(row["name"]),
            is_active=_flag(row.get("is_active"), True),
        )
        for _, row in df.iterrows()
    ]
    session.add_all(teams)
    session.commit()

    logger.info("Imported %d teams from %s", len(teams), csv_path)
    return len(teams)


def import_employees_csv(session: Session, csv_path: str | Path, organization_id: int | None = None) -> int:
    """
    Import employees (columns: id, organization_id, team_id, first_name,
    last_name, role, is_active).

    Returns:
        Number of employees imported
    """
    df = _read(csv_path)
    if organization_id is not None:
        df = df[df["organization_id"] == organization_id].copy()

    # Normalize role to lowercase; missing roles become plain employees
    if "role" in df.columns:
        df["role"] = df["role"].fillna(EmployeeRole.EMPLOYEE.value).astype(str).str.strip().str.lower()
        unknown = set(df["role"]) - {r.value for r in EmployeeRole}
        if unknown:
            raise ValueError(f"Unknown employee roles in {csv_path}: {sorted(unknown)}")

    employees = []
    for _, row in df.iterrows():
        employees.append(
            Employee(
                id=int(row["id"]),
                organization_id=int(row["organization_id"]),
                team_id=_optional_int(row.get("team_id")),
                first_name=_optional_str(row.get("first_name")),
                last_name=_optional_str(row.get("last_name")),
                role=str(row.get("role", EmployeeRole.EMPLOYEE.value)),
                is_active=_flag(row.get("is_active"), True),
            )
        )

    session.add_all(employees)
    session.commit()

    logger.info("Imported %d employees from %s", len(employees), csv_path)
    return len(employees)


def import_managers_csv(session: Session, csv_path: str | Path) -> int:
    """
    Import manager relations (columns: employee_id, manager_id, is_primary).

    Only the last row flagged primary per employee stays primary.

    Returns:
        Number of relations imported
    """
    df = _read(csv_path)
    df = df.drop_duplicates(subset=["employee_id", "manager_id"], keep="last")
    if "is_primary" in df.columns:
        df["is_primary"] = df["is_primary"].map(lambda v: _flag(v, False)).astype(bool)
    else:
        df["is_primary"] = False

    # Keep one primary per employee
    primary_rows = df[df["is_primary"]]
    keep = set(primary_rows.drop_duplicates(subset=["employee_id"], keep="last").index)
    df.loc[df["is_primary"] & ~df.index.isin(keep), "is_primary"] = False

    relations = [
        EmployeeManager(
            employee_id=int(row["employee_id"]),
            manager_id=int(row["manager_id"]),
            is_primary=bool(row["is_primary"]),
        )
        for _, row in df.iterrows()
    ]
    session.add_all(relations)
    session.commit()

    logger.info("Imported %d manager relations from %s", len(relations), csv_path)
    return len(relations)
