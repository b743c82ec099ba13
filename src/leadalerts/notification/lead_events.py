"""Lead event notifier — tells the team about new leads, status changes and assignments.

Listens for LeadCreated (new lead to owners and managers, plus an
assignment message when the lead arrives already assigned) and LeadUpdated
(status transition and/or "you were assigned"). Quiet hours are evaluated
at the event's own timestamp. Recipients follow the assignee the event
carried, not whatever the lead holds when the handler runs.

Notification failures are logged here and never propagate back into the
write that raised the event.
"""

import json

import structlog
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from leadalerts.domain import leadalerts
from leadalerts.lead.events import LeadCreated, LeadUpdated
from leadalerts.lead.lead import Lead
from leadalerts.notification.category import NotificationCategory
from leadalerts.notification.helpers import lead_context, notify
from leadalerts.notification.recipients import tenant_members
from leadalerts.tenant.tenant import Tenant

logger = structlog.get_logger(__name__)


def _load(event):
    tenant = current_domain.repository_for(Tenant).get(event.tenant_id)
    lead = current_domain.repository_for(Lead).get(event.lead_id)
    return tenant, lead


@leadalerts.event_handler(part_of=Lead)
class LeadEventsNotifier:
    """Reacts to Lead events to notify tenant members."""

    @handle(LeadCreated)
    def on_lead_created(self, event: LeadCreated) -> None:
        try:
            tenant, lead = _load(event)
            members = tenant_members(tenant.id)

            notify(
                tenant,
                lead,
                NotificationCategory.NEW_LEAD,
                lead_context(tenant, lead),
                moment=event.created_at,
                members=members,
            )

            if event.assigned_to:
                notify(
                    tenant,
                    lead,
                    NotificationCategory.ASSIGNMENT,
                    lead_context(tenant, lead),
                    moment=event.created_at,
                    members=members,
                    assignee=event.assigned_to,
                )
        except Exception as exc:
            logger.error(
                "New lead notification failed",
                tenant_id=str(event.tenant_id),
                lead_id=str(event.lead_id),
                error=str(exc),
            )

    @handle(LeadUpdated)
    def on_lead_updated(self, event: LeadUpdated) -> None:
        status_changed = event.status != event.previous_status
        assignee_changed = bool(event.assigned_to) and event.assigned_to != event.previous_assigned_to
        if not (status_changed or assignee_changed):
            return

        try:
            tenant, lead = _load(event)
            members = tenant_members(tenant.id)

            if status_changed:
                context = lead_context(
                    tenant,
                    lead,
                    status=event.status,
                    status_label=tenant.label_for(event.status),
                    previous_status_label=tenant.label_for(event.previous_status),
                )
                notify(
                    tenant,
                    lead,
                    NotificationCategory.STATUS_CHANGE,
                    context,
                    moment=event.updated_at,
                    members=members,
                    assignee=event.assigned_to or "",
                )

            if assignee_changed:
                notify(
                    tenant,
                    lead,
                    NotificationCategory.ASSIGNMENT,
                    lead_context(tenant, lead),
                    moment=event.updated_at,
                    members=members,
                    assignee=event.assigned_to,
                )
        except Exception as exc:
            logger.error(
                "Lead update notification failed",
                tenant_id=str(event.tenant_id),
                lead_id=str(event.lead_id),
                changed_fields=json.loads(event.changed_fields or "[]"),
                error=str(exc),
            )
