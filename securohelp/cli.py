"""
SecuroHelp CLI
==============
Operational commands for the case service.

Usage:
    securohelp seed [--admin-email <email> --admin-first-name <n> --admin-last-name <n>]
    securohelp verify-ledger [--case <uuid>] [--output <file>]
    securohelp token --user <uuid>

All commands use the database configured through ``DATABASE_URL``.
"""

from __future__ import annotations

import argparse
import json
import sys
import uuid
from dataclasses import asdict

from sqlalchemy import select

from securohelp.core.database import SessionLocal
from securohelp.core.errors import SecuroHelpError
from securohelp.core.security import create_token
from securohelp.models.user import User, UserRole
from securohelp.services.ledger import verify_all, verify_case_ledger
from securohelp.services.status_catalog import seed_statuses


def cmd_seed(args, session_factory=SessionLocal) -> int:
    """Insert the status catalog and, optionally, a first admin user."""
    with session_factory() as db:
        added = seed_statuses(db)
        print(f"  Case statuses added: {added}")

        if args.admin_email:
            existing = db.scalars(select(User).where(User.email == args.admin_email)).first()
            if existing is None:
                admin = User(
                    id=uuid.uuid4(),
                    email=args.admin_email,
                    first_name=args.admin_first_name,
                    last_name=args.admin_last_name,
                    role=UserRole.ADMIN.value,
                    is_active=True,
                )
                db.add(admin)
                print(f"  Admin user created: {admin.email} ({admin.id})")
            else:
                print(f"  Admin user already exists: {existing.email} ({existing.id})")
        db.commit()
    return 0


def cmd_verify_ledger(args, session_factory=SessionLocal) -> int:
    """Check status-history chains; exit code 1 when any case is broken."""
    with session_factory() as db:
        if args.case:
            reports = [verify_case_ledger(db, uuid.UUID(args.case))]
        else:
            reports = verify_all(db)

    broken = [r for r in reports if not r.ok]
    print(f"\n  Cases checked: {len(reports)}")
    print(f"  Broken ledgers: {len(broken)}")
    for report in broken:
        print(f"  {report.case_number}:")
        for v in report.violations:
            print(f"    - [{v.kind}] entry={v.entry_id} {v.message}")

    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            json.dump(
                [{**asdict(r), "ok": r.ok} for r in reports],
                f,
                indent=2,
                default=str,
                ensure_ascii=False,
            )
        print(f"  Full report written to: {args.output}")
    print()
    return 1 if broken else 0


def cmd_token(args) -> int:
    """Print a signed auth token for a user (local development)."""
    print(create_token(uuid.UUID(args.user)))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="securohelp",
        description="SecuroHelp case service CLI",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    seed = subparsers.add_parser("seed", help="Seed the status catalog")
    seed.add_argument("--admin-email", help="Also create an admin user with this email")
    seed.add_argument("--admin-first-name", default="Admin")
    seed.add_argument("--admin-last-name", default="SecuroHelp")

    verify = subparsers.add_parser("verify-ledger", help="Verify status-history ledgers")
    verify.add_argument("--case", help="Case UUID (default: every case)")
    verify.add_argument("--output", "-o", help="Output file path for the JSON report")

    token = subparsers.add_parser("token", help="Issue a development auth token")
    token.add_argument("--user", required=True, help="User UUID")

    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        if args.command == "seed":
            return cmd_seed(args)
        if args.command == "verify-ledger":
            return cmd_verify_ledger(args)
        if args.command == "token":
            return cmd_token(args)
    except SecuroHelpError as exc:
        print(f"  Error: {exc.message}", file=sys.stderr)
        return 1

    parser.print_help()
    return 2


if __name__ == "__main__":
    sys.exit(main())
