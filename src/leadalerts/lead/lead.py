"""Lead aggregate — a sales prospect moving through the pipeline.

A lead belongs to exactly one tenant. It carries contact details, a pipeline
status, an optional assignee (a member's ``user_id``), the next task's due
date and time, an optional consultation time, money fields used by the daily
digest, and reminder markers.

Scheduling fields are stored as tenant-local strings exactly as the CRM
writes them (``next_date`` ``YYYY-MM-DD``, ``next_time`` ``HH:MM``,
``consult_at`` ``YYYY-MM-DDTHH:MM``). They are parsed leniently by the
reminder scan, which must survive malformed values.

Reminder markers are keyed ``reminder_<kind>_<date>``. A marker is written
at most once; writing it a second time is rejected.
"""

import json
from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, Identifier, String, Text

from leadalerts.domain import leadalerts
from leadalerts.lead.events import LeadCreated, LeadUpdated, ReminderMarked
from leadalerts.lead.status import LeadStatus, is_terminal

# Sentinel for distinguishing "not provided" from None in partial updates
_UNSET = object()

# Fields that apply_changes() accepts, in the order they are compared
_MUTABLE_FIELDS = (
    "name",
    "phone",
    "telegram",
    "email",
    "source",
    "problem",
    "notes",
    "status",
    "assigned_to",
    "next_date",
    "next_time",
    "consult_at",
    "deposit_amount",
    "total_amount",
)


def marker_key(kind, on_date):
    """Marker key for a reminder kind ("15", "60", ...) on a tenant-local date."""
    return f"reminder_{kind}_{on_date}"


def _validate_status(status):
    if status not in {s.value for s in LeadStatus}:
        raise ValidationError({"status": [f"Unknown status: {status}"]})


def _clean(value):
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


@leadalerts.aggregate
class Lead:
    """A sales prospect owned by one tenant."""

    tenant_id: Identifier(required=True)

    # Contact: at least one of phone / telegram / email at creation
    name: String(max_length=200)
    phone: String(max_length=50)
    telegram: String(max_length=100)
    email: String(max_length=254)

    source: String(max_length=200)
    problem: Text()
    notes: Text()

    status: String(choices=LeadStatus, default=LeadStatus.NEW.value)
    assigned_to: String(max_length=128)  # Member.user_id

    # Next task and consultation, tenant-local
    next_date: String(max_length=10)
    next_time: String(max_length=8)
    consult_at: String(max_length=20)

    # Money, used by the daily digest
    deposit_amount: Float(default=0.0)
    total_amount: Float(default=0.0)
    paid_at: DateTime()

    # JSON object: marker key -> ISO timestamp of the claim
    reminder_markers: Text()

    created_at: DateTime()
    updated_at: DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        tenant_id,
        name=None,
        phone=None,
        telegram=None,
        email=None,
        source=None,
        problem=None,
        notes=None,
        status=LeadStatus.NEW.value,
        assigned_to=None,
        next_date=None,
        next_time=None,
        consult_at=None,
        created_at=None,
    ):
        """Create a lead. Requires at least one contact field."""
        phone, telegram, email = _clean(phone), _clean(telegram), _clean(email)
        if not (phone or telegram or email):
            raise ValidationError({"contact": ["At least one of phone, telegram or email is required"]})
        _validate_status(status)

        now = created_at or datetime.now(UTC)

        lead = cls(
            tenant_id=tenant_id,
            name=_clean(name),
            phone=phone,
            telegram=telegram,
            email=email,
            source=_clean(source),
            problem=_clean(problem),
            notes=_clean(notes),
            status=status,
            assigned_to=_clean(assigned_to),
            next_date=_clean(next_date),
            next_time=_clean(next_time),
            consult_at=_clean(consult_at),
            reminder_markers=json.dumps({}),
            paid_at=now if status == LeadStatus.PAID.value else None,
            created_at=now,
            updated_at=now,
        )

        lead.raise_(
            LeadCreated(
                lead_id=str(lead.id),
                tenant_id=str(tenant_id),
                status=status,
                assigned_to=lead.assigned_to,
                source=lead.source,
                created_at=now,
            )
        )

        return lead

    # -------------------------------------------------------------------
    # Partial update
    # -------------------------------------------------------------------
    def apply_changes(self, updated_at=None, **changes):
        """Apply a partial update and raise a single LeadUpdated event.

        Fields not passed keep their value; passing None clears a field.
        Returns the list of fields that actually changed (empty when the
        update was a no-op, in which case no event is raised).
        """
        unknown = sorted(set(changes) - set(_MUTABLE_FIELDS))
        if unknown:
            raise ValidationError({"fields": [f"Cannot update: {', '.join(unknown)}"]})

        if "status" in changes:
            _validate_status(changes["status"])

        previous_status = self.status
        previous_assigned_to = self.assigned_to

        changed = []
        for field in _MUTABLE_FIELDS:
            value = changes.get(field, _UNSET)
            if value is _UNSET:
                continue
            value = _clean(value)
            if field in ("deposit_amount", "total_amount"):
                value = float(value or 0.0)
            if getattr(self, field) != value:
                setattr(self, field, value)
                changed.append(field)

        if not changed:
            return []

        now = updated_at or datetime.now(UTC)
        if "status" in changed and self.status == LeadStatus.PAID.value and self.paid_at is None:
            self.paid_at = now
        self.updated_at = now

        self.raise_(
            LeadUpdated(
                lead_id=str(self.id),
                tenant_id=str(self.tenant_id),
                previous_status=previous_status,
                status=self.status,
                previous_assigned_to=previous_assigned_to,
                assigned_to=self.assigned_to,
                changed_fields=json.dumps(changed),
                updated_at=now,
            )
        )

        return changed

    # -------------------------------------------------------------------
    # Reminder markers
    # -------------------------------------------------------------------
    def _markers(self):
        return json.loads(self.reminder_markers) if self.reminder_markers else {}

    def has_reminder_marker(self, key):
        return key in self._markers()

    def mark_reminder_sent(self, key, marked_at=None):
        """Record that a reminder instance was emitted. Written at most once."""
        markers = self._markers()
        if key in markers:
            raise ValidationError({"reminder_markers": [f"Reminder already marked: {key}"]})

        now = marked_at or datetime.now(UTC)
        markers[key] = now.isoformat()
        self.reminder_markers = json.dumps(markers)

        self.raise_(
            ReminderMarked(
                lead_id=str(self.id),
                tenant_id=str(self.tenant_id),
                marker_key=key,
                marked_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def is_open(self):
        return not is_terminal(self.status)

    @property
    def primary_contact(self):
        return self.phone or self.telegram or self.email
