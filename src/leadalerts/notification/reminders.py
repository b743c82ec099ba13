"""Reminder scan — time-based task and consultation reminders.

Meant to run every few minutes from an external scheduler. For every
tenant the scan works in the tenant's local time and looks at each open
lead twice:

- task reminder: the next task is today and starts in 10-15 minutes;
- consultation reminder: the lead is in status ``scheduled`` and the
  consultation is today, 55-65 minutes from now.

Each kind fires at most once per lead per local date. The scan claims the
marker in the ledger before sending, then records it on the lead whether or
not anyone was left to receive it. Malformed scheduling values skip that
kind for this tick; a failing lead or tenant never stops the scan.
"""

from dataclasses import asdict, dataclass
from datetime import UTC, datetime, timedelta

import structlog
from protean.exceptions import ExpectedVersionError
from protean.fields import DateTime
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from leadalerts.config import get_settings
from leadalerts.delivery import get_gateway
from leadalerts.domain import leadalerts
from leadalerts.lead.lead import Lead, marker_key
from leadalerts.lead.status import LeadStatus
from leadalerts.notification.category import NotificationCategory
from leadalerts.notification.dispatch import Dispatcher, DispatchResult
from leadalerts.notification.helpers import lead_context, notify
from leadalerts.notification.markers import get_marker_ledger
from leadalerts.notification.recipients import tenant_members
from leadalerts.tenant.tenant import Tenant

logger = structlog.get_logger(__name__)

TASK_KIND = "15"
CONSULT_KIND = "60"

# Inclusive windows, minutes until the scheduled time
TASK_WINDOW = (10, 15)
CONSULT_WINDOW = (55, 65)

MARKER_WRITE_ATTEMPTS = 3


@dataclass
class ScanReport:
    """Counters for one pass of a scan.

    ``reminders_fired`` counts reminder instances; ``batches`` counts every
    rendered message fanned out, reminders and digests alike.
    """

    tenants_scanned: int = 0
    failed_tenants: int = 0
    leads_evaluated: int = 0
    reminders_fired: int = 0
    batches: int = 0
    sent: int = 0
    failed: int = 0
    suppressed: int = 0

    def absorb(self, result: DispatchResult) -> None:
        self.sent += result.sent
        self.failed += result.failed
        self.suppressed += result.suppressed

    def to_dict(self) -> dict:
        return asdict(self)


def parse_clock(value: str) -> int:
    """Minutes since midnight for ``HH:MM`` (seconds allowed). Raises ValueError."""
    parts = value.strip().split(":")
    if len(parts) not in (2, 3):
        raise ValueError(f"Not a clock time: {value!r}")
    hour, minute = int(parts[0]), int(parts[1])
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise ValueError(f"Clock time out of range: {value!r}")
    return hour * 60 + minute


def parse_local_datetime(value: str) -> datetime:
    """Parse a tenant-local ``YYYY-MM-DDTHH:MM`` value. Raises ValueError."""
    parsed = datetime.fromisoformat(value.strip())
    return parsed.replace(tzinfo=None)


def _in_window(minutes: int, window: tuple[int, int]) -> bool:
    low, high = window
    return low <= minutes <= high


def due_reminders(tenant, lead, local_now):
    """Which reminder kinds are due for ``lead`` at ``local_now``.

    Returns a list of ``(kind, category, extra_context)``. A malformed field
    is logged and skips its own kind only.
    """
    today = local_now.date().isoformat()
    now_minutes = local_now.hour * 60 + local_now.minute
    due = []
    errors = []

    if lead.next_date == today and lead.next_time:
        try:
            diff = parse_clock(lead.next_time) - now_minutes
            if _in_window(diff, TASK_WINDOW):
                due.append((TASK_KIND, NotificationCategory.TASK_REMINDER_15, {"minutes_until": diff}))
        except ValueError as exc:
            errors.append(("next_time", lead.next_time, exc))

    if lead.status == LeadStatus.SCHEDULED.value and lead.consult_at:
        try:
            consult = parse_local_datetime(lead.consult_at)
            if consult.date().isoformat() == today:
                diff = consult.hour * 60 + consult.minute - now_minutes
                if _in_window(diff, CONSULT_WINDOW):
                    due.append(
                        (
                            CONSULT_KIND,
                            NotificationCategory.CONSULT_REMINDER_60,
                            {"minutes_until": diff, "consult_time": consult.strftime("%H:%M")},
                        )
                    )
        except ValueError as exc:
            errors.append(("consult_at", lead.consult_at, exc))

    for field, value, exc in errors:
        logger.warning(
            "Skipping reminder for malformed schedule",
            tenant_id=str(tenant.id),
            lead_id=str(lead.id),
            field=field,
            value=value,
            error=str(exc),
        )

    return due


def record_marker(lead_id, key: str, now: datetime) -> None:
    """Persist one reminder marker on the current stored copy of the lead.

    The lead is re-read for every attempt so that only the marker changes;
    edits committed since the scan loaded the lead are kept. A concurrent
    save of the same lead surfaces as a version conflict and is retried.
    """
    repo = current_domain.repository_for(Lead)
    for attempt in range(1, MARKER_WRITE_ATTEMPTS + 1):
        lead = repo.get(lead_id)
        if lead.has_reminder_marker(key):
            return
        lead.mark_reminder_sent(key, marked_at=now)
        try:
            repo.add(lead)
            return
        except ExpectedVersionError:
            logger.info("Lead changed while recording reminder, retrying", lead_id=str(lead_id), attempt=attempt)

    logger.error("Could not record reminder marker", lead_id=str(lead_id), marker=key)


class ReminderScanner:
    """Runs the reminder scan over all tenants."""

    def __init__(self, gateway=None, ledger=None, settings=None) -> None:
        self.settings = settings or get_settings()
        self.ledger = ledger or get_marker_ledger()
        self.dispatcher = Dispatcher(gateway=gateway or get_gateway(), settings=self.settings)

    def run(self, now: datetime | None = None) -> ScanReport:
        now = now or datetime.now(UTC)
        report = ScanReport()

        for tenant in current_domain.repository_for(Tenant).all_tenants():
            report.tenants_scanned += 1
            try:
                self.scan_tenant(tenant, now, report)
            except Exception as exc:
                report.failed_tenants += 1
                logger.error("Reminder scan failed for tenant", tenant_id=str(tenant.id), error=str(exc))

        logger.info("Reminder scan finished", **report.to_dict())
        return report

    def scan_tenant(self, tenant, now: datetime, report: ScanReport) -> None:
        local_now = tenant.local_time(now)
        leads = current_domain.repository_for(Lead).open_for_tenant(tenant.id)
        report.leads_evaluated += len(leads)
        if not leads:
            return

        members = tenant_members(tenant.id)
        for lead in leads:
            try:
                self.scan_lead(tenant, lead, now, local_now, members, report)
            except Exception as exc:
                logger.error(
                    "Reminder scan failed for lead",
                    tenant_id=str(tenant.id),
                    lead_id=str(lead.id),
                    error=str(exc),
                )

    def scan_lead(self, tenant, lead, now, local_now, members, report: ScanReport) -> None:
        today = local_now.date().isoformat()

        for kind, category, extra in due_reminders(tenant, lead, local_now):
            key = marker_key(kind, today)
            if lead.has_reminder_marker(key):
                continue
            if not self.ledger.claim(str(lead.id), key):
                logger.debug("Reminder already claimed", lead_id=str(lead.id), marker=key)
                continue

            context = lead_context(tenant, lead, self.settings, **extra)
            result = notify(
                tenant,
                lead,
                category,
                context,
                moment=now,
                members=members,
                dispatcher=self.dispatcher,
            )
            report.reminders_fired += 1
            report.batches += 1
            report.absorb(result)

            record_marker(lead.id, key, now)
            logger.info(
                "Reminder fired",
                tenant_id=str(tenant.id),
                lead_id=str(lead.id),
                marker=key,
                sent=result.sent,
            )


def run_reminder_scan(now: datetime | None = None, gateway=None, ledger=None, settings=None) -> ScanReport:
    """Run one reminder pass. ``now`` defaults to the current time; naive values are UTC."""
    now = now or datetime.now(UTC)
    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC)

    scanner = ReminderScanner(gateway=gateway, ledger=ledger, settings=settings)
    report = scanner.run(now)

    # No tenant-local date can be earlier than yesterday in UTC
    scanner.ledger.forget_before((now.astimezone(UTC).date() - timedelta(days=1)).isoformat())
    return report


@leadalerts.command(part_of="Lead")
class ScanReminders:
    """Request one reminder pass, optionally as of a given instant."""

    as_of: DateTime()


@leadalerts.command_handler(part_of=Lead)
class ScanRemindersHandler:
    @handle(ScanReminders)
    def scan_reminders(self, command: ScanReminders):
        return run_reminder_scan(now=command.as_of)
