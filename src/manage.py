"""LeadAlerts management CLI.

Runs the time-based passes from a shell or a cron entry, outside the web
server. Each command prints the resulting scan report as JSON.

Usage:
    python src/manage.py scan-reminders                  # Reminder pass as of now
    python src/manage.py scan-reminders --as-of 2025-03-14T07:45:00+00:00
    python src/manage.py send-digest                     # Tenants at their digest hour
    python src/manage.py send-digest --force             # Every tenant, now
"""

import argparse
import json
import sys
from datetime import datetime


def _parse_as_of(value):
    if value is None:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid ISO 8601 instant: {value}") from None


def scan_reminders(as_of=None):
    """Run one reminder pass and return its report."""
    from leadalerts.domain import leadalerts
    from leadalerts.notification.reminders import run_reminder_scan

    leadalerts.init()
    with leadalerts.domain_context():
        return run_reminder_scan(now=as_of)


def send_digest(as_of=None, force=False):
    """Run one daily digest pass and return its report."""
    from leadalerts.domain import leadalerts
    from leadalerts.notification.digest import run_daily_digest

    leadalerts.init()
    with leadalerts.domain_context():
        return run_daily_digest(now=as_of, only_due=not force)


def main(argv=None):
    parser = argparse.ArgumentParser(description="LeadAlerts management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    scan_parser = subparsers.add_parser("scan-reminders", help="Send due task and consultation reminders")
    scan_parser.add_argument("--as-of", type=_parse_as_of, help="Evaluate as of this instant (default: now)")

    digest_parser = subparsers.add_parser("send-digest", help="Send the daily digest")
    digest_parser.add_argument("--as-of", type=_parse_as_of, help="Evaluate as of this instant (default: now)")
    digest_parser.add_argument(
        "--force",
        action="store_true",
        help="Send to every tenant regardless of their local digest hour",
    )

    args = parser.parse_args(argv)

    if args.command == "scan-reminders":
        report = scan_reminders(args.as_of)
    elif args.command == "send-digest":
        report = send_digest(args.as_of, args.force)
    else:
        parser.print_help()
        sys.exit(1)

    print(json.dumps(report.to_dict(), indent=2))


if __name__ == "__main__":
    main()
