"""Shared helpers for the notification engines.

Provides the common pattern: resolve recipients → gate per member →
render template → dispatch the batch.
"""

import structlog

from leadalerts.config import get_settings
from leadalerts.notification.category import parse_category
from leadalerts.notification.dispatch import Dispatcher, DispatchResult
from leadalerts.notification.policy import allow
from leadalerts.notification.recipients import resolve_recipients
from leadalerts.templates import render_message

logger = structlog.get_logger(__name__)

_LEAD_FIELDS = (
    "name",
    "phone",
    "telegram",
    "email",
    "source",
    "problem",
    "notes",
    "next_date",
    "next_time",
    "consult_at",
)


def lead_context(tenant, lead, settings=None, **extra) -> dict:
    """Template context for a lead message: lead fields, status label, CRM link."""
    settings = settings or get_settings()
    context = {field: getattr(lead, field) for field in _LEAD_FIELDS}
    context["status"] = lead.status
    context["status_label"] = tenant.label_for(lead.status)
    context["crm_url"] = settings.crm_url
    context["truncate_at"] = settings.truncate_at
    context.update(extra)
    return context


def notify(
    tenant, lead, category, context: dict, moment=None, members=None, dispatcher=None, assignee=None
) -> DispatchResult:
    """Deliver one notification about ``lead`` to everyone entitled to it.

    ``moment`` is the instant the notification is about (event time or scan
    time); quiet hours are evaluated at that instant in tenant-local time.
    ``assignee`` pins assignment-scoped delivery to the user an event named.

    Returns:
        DispatchResult with sent / failed / suppressed counts.
    """
    category = parse_category(category)
    recipients = resolve_recipients(tenant.id, lead, category, members=members, assignee=assignee)
    if not recipients:
        logger.info(
            "No eligible recipients",
            tenant_id=str(tenant.id),
            lead_id=str(lead.id) if lead is not None else None,
            category=category.value,
        )
        return DispatchResult()

    local_now = tenant.local_time(moment)
    allowed = [member for member in recipients if allow(member, category, local_now)]
    suppressed = len(recipients) - len(allowed)
    if suppressed:
        logger.info(
            "Notifications suppressed by member preferences",
            tenant_id=str(tenant.id),
            category=category.value,
            suppressed=suppressed,
        )
    if not allowed:
        return DispatchResult(suppressed=suppressed)

    text = render_message(category, context)
    dispatcher = dispatcher or Dispatcher()
    result = dispatcher.dispatch(allowed, text, category=category)
    result.suppressed += suppressed
    return result
