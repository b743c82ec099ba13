"""Daily digest — a morning summary of each tenant's pipeline.

Run hourly from an external scheduler. A tenant gets its digest in the
scan whose tenant-local hour equals the configured digest hour, once per
local date. Every member with a bound channel receives it, quiet hours
notwithstanding; only the member's own opt-out suppresses it.
"""

from datetime import UTC, date, datetime

import structlog
from protean.fields import Boolean, DateTime
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from leadalerts.config import get_settings
from leadalerts.delivery import get_gateway
from leadalerts.domain import leadalerts
from leadalerts.lead.lead import Lead
from leadalerts.lead.status import LeadStatus, is_terminal
from leadalerts.notification.category import NotificationCategory
from leadalerts.notification.dispatch import Dispatcher
from leadalerts.notification.helpers import notify
from leadalerts.notification.markers import get_marker_ledger
from leadalerts.notification.reminders import ScanReport, parse_local_datetime
from leadalerts.tenant.tenant import Tenant

logger = structlog.get_logger(__name__)


def digest_marker_key(on_date: str) -> str:
    return f"digest_{on_date}"


def _parse_date(value):
    try:
        return date.fromisoformat(value.strip()) if value else None
    except ValueError:
        return None


def _consult_date(value):
    try:
        return parse_local_datetime(value).date() if value else None
    except ValueError:
        return None


def summarize(tenant, leads, local_now: datetime) -> dict:
    """Pipeline counters for one tenant as of ``local_now``.

    Malformed dates are ignored for the counter they would feed.
    """
    today = local_now.date()
    summary = {
        "total": len(leads),
        "new": 0,
        "due_today": 0,
        "overdue": 0,
        "consults_today": 0,
        "deposit_count": 0,
        "deposit_sum": 0.0,
        "paid_count": 0,
        "paid_sum": 0.0,
    }

    for lead in leads:
        status = lead.status
        if status == LeadStatus.NEW.value:
            summary["new"] += 1

        if not is_terminal(status):
            next_date = _parse_date(lead.next_date)
            if next_date == today:
                summary["due_today"] += 1
            elif next_date is not None and next_date < today:
                summary["overdue"] += 1

        if status == LeadStatus.SCHEDULED.value and _consult_date(lead.consult_at) == today:
            summary["consults_today"] += 1

        if status == LeadStatus.DEPOSIT.value:
            summary["deposit_count"] += 1
            summary["deposit_sum"] += float(lead.deposit_amount or 0)

        if status == LeadStatus.PAID.value and lead.paid_at is not None:
            paid_local = tenant.local_time(lead.paid_at)
            if (paid_local.year, paid_local.month) == (today.year, today.month):
                summary["paid_count"] += 1
                summary["paid_sum"] += float(lead.total_amount or 0)

    return summary


class DigestBuilder:
    """Builds and sends the daily digest for every due tenant."""

    def __init__(self, gateway=None, ledger=None, settings=None) -> None:
        self.settings = settings or get_settings()
        self.ledger = ledger or get_marker_ledger()
        self.dispatcher = Dispatcher(gateway=gateway or get_gateway(), settings=self.settings)

    def is_due(self, tenant, now: datetime) -> bool:
        return tenant.local_time(now).hour == self.settings.digest_hour

    def run(self, now: datetime | None = None, only_due: bool = True) -> ScanReport:
        now = now or datetime.now(UTC)
        report = ScanReport()

        for tenant in current_domain.repository_for(Tenant).all_tenants():
            if only_due and not self.is_due(tenant, now):
                continue
            report.tenants_scanned += 1
            try:
                self.send_for_tenant(tenant, now, report)
            except Exception as exc:
                report.failed_tenants += 1
                logger.error("Daily digest failed for tenant", tenant_id=str(tenant.id), error=str(exc))

        logger.info("Daily digest finished", **report.to_dict())
        return report

    def send_for_tenant(self, tenant, now: datetime, report: ScanReport) -> None:
        local_now = tenant.local_time(now)
        key = digest_marker_key(local_now.date().isoformat())
        if self.ledger.is_claimed(str(tenant.id), key):
            logger.info("Daily digest already sent", tenant_id=str(tenant.id), marker=key)
            return

        leads = current_domain.repository_for(Lead).for_tenant(tenant.id)
        report.leads_evaluated += len(leads)
        context = summarize(tenant, leads, local_now)

        # A failed read above leaves the date unclaimed
        if not self.ledger.claim(str(tenant.id), key):
            logger.info("Daily digest already sent", tenant_id=str(tenant.id), marker=key)
            return

        context.update(
            tenant_name=tenant.name,
            date=local_now.date().isoformat(),
            crm_url=self.settings.crm_url,
            truncate_at=self.settings.truncate_at,
        )

        result = notify(tenant, None, NotificationCategory.DAILY_DIGEST, context, moment=now, dispatcher=self.dispatcher)
        report.batches += 1
        report.absorb(result)


def run_daily_digest(
    now: datetime | None = None, only_due: bool = True, gateway=None, ledger=None, settings=None
) -> ScanReport:
    """Send the daily digest to tenants whose local digest hour is ``now``."""
    now = now or datetime.now(UTC)
    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC)
    return DigestBuilder(gateway=gateway, ledger=ledger, settings=settings).run(now, only_due=only_due)


@leadalerts.command(part_of="Tenant")
class SendDailyDigest:
    """Request a digest pass. ``force`` sends to every tenant regardless of hour."""

    as_of: DateTime()
    force: Boolean(default=False)


@leadalerts.command_handler(part_of=Tenant)
class SendDailyDigestHandler:
    @handle(SendDailyDigest)
    def send_daily_digest(self, command: SendDailyDigest):
        return run_daily_digest(now=command.as_of, only_due=not command.force)
