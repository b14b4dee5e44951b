#!/usr/bin/env python3
"""
Semi-expendable property management CLI.

Usage:
    python manage.py init-db              Apply pending migrations
    python manage.py migration-status     Show applied and pending migrations
    python manage.py verify               Run schema integrity checks
    python manage.py transfer-stats       Transfer counts by status and type
    python manage.py issue-transfer ID    Draft -> Issued
    python manage.py complete-transfer ID Issued -> Completed
    python manage.py reject-transfer ID   Draft|Issued -> Rejected
    python manage.py can-delete TYPE ID   Explain what blocks a delete
    python manage.py delete TYPE ID       Delete (add --force to cascade)
"""

import argparse
import asyncio
import json
import sys
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

from semiprop.application.dto import (
    CascadeReportResponse,
    DeleteCheckResponse,
    TransferCompletionResponse,
    TransferResponse,
)
from semiprop.application.services import CustodyServices, build_custody_services
from semiprop.config import configure_logging, get_settings
from semiprop.core.exceptions import PropertyError
from semiprop.core.services import EntityType
from semiprop.infrastructure.storage.sqlite import create_pool
from semiprop.infrastructure.storage.sqlite.migrations import (
    get_migration_status,
    initialize_database,
    verify_schema_integrity,
)


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, default=str))


def _db_path(args: argparse.Namespace) -> Path:
    return Path(args.db) if args.db else get_settings().storage.db_path


def _run(coro: Awaitable[int]) -> None:
    code = asyncio.run(coro)
    if code:
        sys.exit(code)


async def _with_services(
    args: argparse.Namespace,
    action: Callable[[CustodyServices], Awaitable[Any]],
) -> int:
    """Open a pool, run one action, print its result or the domain error."""
    settings = get_settings()
    if args.db:
        settings.storage.data_dir = Path(args.db).parent
        settings.storage.db_name = Path(args.db).name

    pool = await create_pool(settings)
    try:
        services = build_custody_services(pool, settings)
        result = await action(services)
    except PropertyError as e:
        _print_json(e.to_dict())
        return 1
    finally:
        await pool.close()

    _print_json(result)
    return 0


def cmd_init_db(args: argparse.Namespace) -> None:
    """Apply pending migrations."""

    async def run() -> int:
        results = await initialize_database(_db_path(args), create_backup_before=not args.no_backup)
        if not results:
            print("Database is up to date.")
            return 0
        for r in results:
            state = "ok" if r.success else f"FAILED: {r.error}"
            print(f"  v{r.version} {r.name} ({r.execution_time_ms} ms) {state}")
        return 0 if all(r.success for r in results) else 1

    _run(run())


def cmd_migration_status(args: argparse.Namespace) -> None:
    """Show applied and pending migrations."""

    async def run() -> int:
        _print_json(await get_migration_status(_db_path(args)))
        return 0

    _run(run())


def cmd_verify(args: argparse.Namespace) -> None:
    """Run schema integrity checks."""

    async def run() -> int:
        checks = await verify_schema_integrity(_db_path(args))
        _print_json(checks)
        return 0 if all(c["status"] == "PASS" for c in checks) else 1

    _run(run())


def cmd_transfer_stats(args: argparse.Namespace) -> None:
    """Transfer counts by status and by type."""

    async def action(services: CustodyServices) -> dict:
        stats = await services.workflow.statistics()
        return stats.model_dump()

    _run(_with_services(args, action))


def cmd_issue_transfer(args: argparse.Namespace) -> None:
    """Move a Draft transfer to Issued."""

    async def action(services: CustodyServices) -> dict:
        transfer = await services.workflow.issue(
            args.transfer, actor=args.actor, approved_by=args.approved_by
        )
        return TransferResponse.from_entity(transfer).model_dump(mode="json")

    _run(_with_services(args, action))


def cmd_complete_transfer(args: argparse.Namespace) -> None:
    """Complete an Issued transfer."""

    async def action(services: CustodyServices) -> dict:
        result = await services.workflow.complete(args.transfer, actor=args.actor)
        return TransferCompletionResponse.from_result(result).model_dump(mode="json")

    _run(_with_services(args, action))


def cmd_reject_transfer(args: argparse.Namespace) -> None:
    """Reject a Draft or Issued transfer."""

    async def action(services: CustodyServices) -> dict:
        transfer = await services.workflow.reject(
            args.transfer, actor=args.actor, reason=args.reason
        )
        return TransferResponse.from_entity(transfer).model_dump(mode="json")

    _run(_with_services(args, action))


def cmd_can_delete(args: argparse.Namespace) -> None:
    """Explain whether an entity can be deleted."""

    async def action(services: CustodyServices) -> dict:
        check = await services.cleanup.check(args.entity_type, args.entity_id)
        return DeleteCheckResponse.from_check(check).model_dump(mode="json")

    _run(_with_services(args, action))


def cmd_delete(args: argparse.Namespace) -> None:
    """Delete an entity, cascading when forced."""

    async def action(services: CustodyServices) -> dict:
        report = await services.cleanup.delete(
            args.entity_type, args.entity_id, force=args.force, actor=args.actor
        )
        return CascadeReportResponse.from_report(report).model_dump(mode="json")

    _run(_with_services(args, action))


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Semi-expendable property management CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--db", default=None, help="Database file (default: from settings)")
    sub = parser.add_subparsers(dest="command", required=True)

    entity_types = [e.value for e in EntityType]

    # init-db
    p_init = sub.add_parser("init-db", help="Apply pending migrations")
    p_init.add_argument("--no-backup", action="store_true", help="Skip the pre-migration backup")
    p_init.set_defaults(func=cmd_init_db)

    # migration-status
    p_status = sub.add_parser("migration-status", help="Show migration status")
    p_status.set_defaults(func=cmd_migration_status)

    # verify
    p_verify = sub.add_parser("verify", help="Run schema integrity checks")
    p_verify.set_defaults(func=cmd_verify)

    # transfer-stats
    p_stats = sub.add_parser("transfer-stats", help="Transfer counts by status and type")
    p_stats.set_defaults(func=cmd_transfer_stats)

    # issue-transfer
    p_issue = sub.add_parser("issue-transfer", help="Issue a Draft transfer")
    p_issue.add_argument("transfer", help="Transfer id or number")
    p_issue.add_argument("--actor", default="", help="User performing the action")
    p_issue.add_argument("--approved-by", default=None, help="Approving officer (default: actor)")
    p_issue.set_defaults(func=cmd_issue_transfer)

    # complete-transfer
    p_complete = sub.add_parser("complete-transfer", help="Complete an Issued transfer")
    p_complete.add_argument("transfer", help="Transfer id or number")
    p_complete.add_argument("--actor", default="", help="User performing the action")
    p_complete.set_defaults(func=cmd_complete_transfer)

    # reject-transfer
    p_reject = sub.add_parser("reject-transfer", help="Reject a Draft or Issued transfer")
    p_reject.add_argument("transfer", help="Transfer id or number")
    p_reject.add_argument("--actor", default="", help="User performing the action")
    p_reject.add_argument("--reason", default=None, help="Reason recorded on the transfer")
    p_reject.set_defaults(func=cmd_reject_transfer)

    # can-delete
    p_check = sub.add_parser("can-delete", help="Explain what blocks a delete")
    p_check.add_argument("entity_type", choices=entity_types)
    p_check.add_argument("entity_id", help="Record id (items also accept a property number)")
    p_check.set_defaults(func=cmd_can_delete)

    # delete
    p_delete = sub.add_parser("delete", help="Delete an item, property card or transfer")
    p_delete.add_argument("entity_type", choices=entity_types)
    p_delete.add_argument("entity_id", help="Record id (items also accept a property number)")
    p_delete.add_argument("--force", action="store_true", help="Remove dependents first")
    p_delete.add_argument("--actor", default="", help="User performing the action")
    p_delete.set_defaults(func=cmd_delete)

    args = parser.parse_args()
    configure_logging()
    args.func(args)


if __name__ == "__main__":
    main()
