"""Command-line interface for the policy engine."""

from __future__ import annotations

import argparse
import logging
from datetime import date, datetime

from policy_engine.actions import ActionResult, Actor, PolicyActions
from policy_engine.config import load_config
from policy_engine.domain.db import init_database, session_scope
from policy_engine.domain.enums import PolicyFamily, ScopeType
from policy_engine.errors import NotFoundError
from policy_engine.io.export_csv import assignments_frame, export_assignments_csv
from policy_engine.io.import_csv import (
    import_employees_csv,
    import_managers_csv,
    import_organizations_csv,
    import_teams_csv,
)
from policy_engine.services.assignments import resolve_for_employee
from policy_engine.services.authorization import Authorizer
from policy_engine.services.change_policies import get_edit_capability


def _parse_datetime(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def _report(result: ActionResult, what: str) -> None:
    if result.success:
        suffix = f": {result.data}" if result.data is not None else ""
        print(f"[OK] {what}{suffix}")
    else:
        print(f"[ERROR] {what} failed ({result.code}): {result.error}")
        raise SystemExit(1)


def _actions(args: argparse.Namespace, session) -> tuple[PolicyActions, Actor]:
    actor = Actor(organization_id=args.org, role=args.role)
    return PolicyActions(session, Authorizer.from_config(args.cfg)), actor


def _cmd_init_db(args: argparse.Namespace) -> None:
    """Initialize the database."""
    init_database(args.db)
    print(f"[OK] Database initialized: {args.db}")


def _cmd_import_csv(args: argparse.Namespace) -> None:
    """Import organization directory CSVs into the database."""
    importers = [
        (args.organizations, import_organizations_csv, "organizations"),
        (args.teams, import_teams_csv, "teams"),
        (args.employees, import_employees_csv, "employees"),
        (args.managers, import_managers_csv, "manager relations"),
    ]
    with session_scope(args.db) as session:
        for path, importer, label in importers:
            if not path:
                continue
            try:
                count = importer(session, path)
            except (OSError, ValueError) as e:
                print(f"[ERROR] Import of {label} failed: {e}")
                raise SystemExit(1) from e
            print(f"[OK] Imported {count} {label}")


def _cmd_create_policy(args: argparse.Namespace) -> None:
    data = {"name": args.name}
    if args.description:
        data["description"] = args.description
    if args.family == PolicyFamily.CHANGE_POLICY.value:
        data.update(
            self_service_days=args.self_service_days,
            approval_days=args.approval_days,
            no_approval_required=args.no_approval_required,
            notify_all_managers=args.notify_all_managers,
        )
    with session_scope(args.db) as session:
        actions, actor = _actions(args, session)
        _report(actions.create_policy(actor, args.family, data), "Create policy")


def _cmd_assign(args: argparse.Namespace) -> None:
    with session_scope(args.db) as session:
        actions, actor = _actions(args, session)
        result = actions.create_assignment(
            actor,
            args.policy,
            args.scope,
            scope_id=args.scope_id,
            effective_from=_parse_datetime(args.effective_from),
            effective_until=_parse_datetime(args.effective_until),
        )
        _report(result, "Create assignment")


def _cmd_unassign(args: argparse.Namespace) -> None:
    with session_scope(args.db) as session:
        actions, actor = _actions(args, session)
        _report(actions.deactivate_assignment(actor, args.assignment), "Deactivate assignment")


def _cmd_list_assignments(args: argparse.Namespace) -> None:
    with session_scope(args.db) as session:
        if args.out:
            count = export_assignments_csv(session, args.out, args.org, family=args.family)
            print(f"[OK] Exported {count} assignments to {args.out}")
            return
        df = assignments_frame(session, args.org, family=args.family)
        print(df.to_string(index=False) if not df.empty else "No assignments.")


def _cmd_resolve(args: argparse.Namespace) -> None:
    with session_scope(args.db) as session:
        try:
            resolved = resolve_for_employee(session, args.family, args.employee, now=_parse_datetime(args.at))
        except NotFoundError as e:
            print(f"[ERROR] {e.message}")
            raise SystemExit(1) from e
        if resolved is None:
            print(f"[OK] No {args.family} applies to employee {args.employee}")
            return
        print(
            f"[OK] Employee {args.employee}: policy {resolved.policy_id} '{resolved.policy.name}' "
            f"via {resolved.scope_type.value} assignment {resolved.assignment.id}"
        )


def _cmd_classify(args: argparse.Namespace) -> None:
    with session_scope(args.db) as session:
        try:
            decision = get_edit_capability(
                session,
                args.employee,
                date.fromisoformat(args.date),
                now=_parse_datetime(args.at),
                default_timezone=args.cfg.default_timezone,
            )
        except NotFoundError as e:
            print(f"[ERROR] {e.message}")
            raise SystemExit(1) from e
        print(
            f"[OK] {args.date}: {decision.permission.value} "
            f"({decision.reason.value}, {decision.days_back} days back)"
        )


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="policy-engine",
        description="Hierarchical policy assignment and resolution",
    )

    # Global options
    parser.add_argument("--config", help="Path to config YAML/JSON")
    parser.add_argument("--db", help="Database URL (overrides config)")

    sub = parser.add_subparsers(dest="command", required=True)

    init = sub.add_parser("init-db", help="Initialize database")
    init.set_defaults(func=_cmd_init_db)

    imp = sub.add_parser("import-csv", help="Import organization directory CSVs")
    imp.add_argument("--organizations", help="Path to organizations CSV")
    imp.add_argument("--teams", help="Path to teams CSV")
    imp.add_argument("--employees", help="Path to employees CSV")
    imp.add_argument("--managers", help="Path to manager relations CSV")
    imp.set_defaults(func=_cmd_import_csv)

    families = [f.value for f in PolicyFamily]
    scopes = [s.value for s in ScopeType]

    cp = sub.add_parser("create-policy", help="Create a policy")
    cp.add_argument("--org", type=int, required=True)
    cp.add_argument("--role", default="admin", help="Actor role")
    cp.add_argument("--family", choices=families, default=PolicyFamily.CHANGE_POLICY.value)
    cp.add_argument("--name", required=True)
    cp.add_argument("--description")
    cp.add_argument("--self-service-days", type=int, default=0)
    cp.add_argument("--approval-days", type=int, default=0)
    cp.add_argument("--no-approval-required", action="store_true")
    cp.add_argument("--notify-all-managers", action="store_true")
    cp.set_defaults(func=_cmd_create_policy)

    asg = sub.add_parser("assign", help="Assign a policy to a scope")
    asg.add_argument("--org", type=int, required=True)
    asg.add_argument("--role", default="admin", help="Actor role")
    asg.add_argument("--policy", type=int, required=True)
    asg.add_argument("--scope", choices=scopes, required=True)
    asg.add_argument("--scope-id", type=int)
    asg.add_argument("--from", dest="effective_from", help="ISO timestamp")
    asg.add_argument("--until", dest="effective_until", help="ISO timestamp")
    asg.set_defaults(func=_cmd_assign)

    un = sub.add_parser("unassign", help="Deactivate an assignment")
    un.add_argument("--org", type=int, required=True)
    un.add_argument("--role", default="admin", help="Actor role")
    un.add_argument("--assignment", type=int, required=True)
    un.set_defaults(func=_cmd_unassign)

    ls = sub.add_parser("list-assignments", help="List active assignments")
    ls.add_argument("--org", type=int, required=True)
    ls.add_argument("--family", choices=families)
    ls.add_argument("--out", help="Optional: export to CSV")
    ls.set_defaults(func=_cmd_list_assignments)

    res = sub.add_parser("resolve", help="Resolve the effective policy for an employee")
    res.add_argument("--employee", type=int, required=True)
    res.add_argument("--family", choices=families, default=PolicyFamily.CHANGE_POLICY.value)
    res.add_argument("--at", help="Reference ISO timestamp (default: now)")
    res.set_defaults(func=_cmd_resolve)

    cls_ = sub.add_parser("classify", help="Classify an edit of a dated record")
    cls_.add_argument("--employee", type=int, required=True)
    cls_.add_argument("--date", required=True, help="Record date (YYYY-MM-DD)")
    cls_.add_argument("--at", help="Reference ISO timestamp (default: now)")
    cls_.set_defaults(func=_cmd_classify)

    args = parser.parse_args(argv)
    args.cfg = load_config(args.config)
    args.db = args.db or args.cfg.database_url
    logging.basicConfig(level=args.cfg.log_level, format="%(levelname)s %(name)s: %(message)s")
    args.func(args)


if __name__ == "__main__":
    main()
