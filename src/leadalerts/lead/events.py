"""Domain events for the Lead aggregate."""

from protean.fields import DateTime, Identifier, String, Text

from leadalerts.domain import leadalerts


@leadalerts.event(part_of="Lead")
class LeadCreated:
    """A lead entered the pipeline (CRM form, sync, or inbound webhook)."""

    __version__ = 1

    lead_id: Identifier(required=True)
    tenant_id: Identifier(required=True)
    status: String(required=True)
    assigned_to: String()
    source: String()
    created_at: DateTime(required=True)


@leadalerts.event(part_of="Lead")
class LeadUpdated:
    """One or more lead fields changed.

    Carries the previous and new status and assignee so that consumers can
    diff the two snapshots without reloading history.
    """

    __version__ = 1

    lead_id: Identifier(required=True)
    tenant_id: Identifier(required=True)
    previous_status: String()
    status: String(required=True)
    previous_assigned_to: String()
    assigned_to: String()
    changed_fields: Text(required=True)  # JSON list of field names
    updated_at: DateTime(required=True)


@leadalerts.event(part_of="Lead")
class ReminderMarked:
    """A time-based reminder instance was claimed and will not fire again."""

    __version__ = 1

    lead_id: Identifier(required=True)
    tenant_id: Identifier(required=True)
    marker_key: String(required=True)
    marked_at: DateTime(required=True)
