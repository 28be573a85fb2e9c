"""
Print Queue Maintenance

Cron entry point for print queue housekeeping. Removes printed entries past
the retention period and orphaned entries, or reports health.

Exit codes: 0 ok/healthy, 1 warning, 2 critical or failure.
"""
import argparse
import json
import os
import sys
from dataclasses import asdict

# Allow running as `python scripts/run_print_queue_maintenance.py` from backend/
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.db.session import SessionLocal  # noqa: E402
from app.exceptions import CoverOpsException  # noqa: E402
from app.logging_config import get_logger, setup_logging  # noqa: E402
from app.services.queue_maintenance import (  # noqa: E402
    CRITICAL,
    HEALTHY,
    queue_maintenance_service,
)

logger = get_logger("print_queue_maintenance")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="CoverOps print queue maintenance",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/run_print_queue_maintenance.py cleanup
  python scripts/run_print_queue_maintenance.py cleanup --dry-run --retention-days 14
  python scripts/run_print_queue_maintenance.py cleanup --emergency
  python scripts/run_print_queue_maintenance.py health --json
        """
    )
    sub = parser.add_subparsers(dest="command", required=True)

    cleanup = sub.add_parser("cleanup", help="Remove old printed and orphaned entries")
    cleanup.add_argument(
        "--retention-days",
        type=int,
        default=None,
        help="Printed entries older than this are removed (default: PRINT_QUEUE_RETENTION_DAYS)"
    )
    cleanup.add_argument(
        "--keep-orphans",
        action="store_true",
        help="Do not remove orphaned entries"
    )
    cleanup.add_argument(
        "--dry-run",
        action="store_true",
        help="Report what would be removed without deleting"
    )
    cleanup.add_argument(
        "--emergency",
        action="store_true",
        help="Use the short emergency retention period"
    )

    health = sub.add_parser("health", help="Report queue health and statistics")
    health.add_argument("--json", action="store_true", help="Output results as JSON")
    return parser


def run_cleanup(db, args) -> int:
    if args.emergency:
        result = queue_maintenance_service.emergency_cleanup(db, actor_id="cron")
    else:
        result = queue_maintenance_service.perform_cleanup(
            db,
            printed_retention_days=args.retention_days,
            remove_orphaned=not args.keep_orphans,
            dry_run=args.dry_run,
            actor_id="cron",
        )
    verb = "Would remove" if result.dry_run else "Removed"
    print(
        f"{verb} {result.removed_count} entries "
        f"({result.old_printed_items} printed > {result.retention_days}d, "
        f"{result.orphaned_items} orphaned) in {result.execution_time_ms}ms"
    )
    return 0


def run_health(db, args) -> int:
    report = queue_maintenance_service.health_check(db)
    optimization = []
    if report.statistics is not None:
        optimization = queue_maintenance_service.optimize_performance(db, report.statistics)

    if args.json:
        payload = asdict(report)
        payload["optimization"] = optimization
        print(json.dumps(payload, indent=2, default=str))
    else:
        print(f"Print queue status: {report.status.upper()}")
        for issue in report.issues:
            print(f"  ! {issue}")
        for recommendation in report.recommendations + optimization:
            print(f"  - {recommendation}")

    if report.status == HEALTHY:
        return 0
    return 2 if report.status == CRITICAL else 1


def main(argv=None) -> int:
    setup_logging()
    args = build_parser().parse_args(argv)

    db = SessionLocal()
    try:
        if args.command == "cleanup":
            return run_cleanup(db, args)
        return run_health(db, args)
    except CoverOpsException as e:
        logger.error(f"Print queue maintenance failed: {e.message}", extra={"retryable": e.retryable})
        print(f"Failed: {e.message}", file=sys.stderr)
        return 2
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
