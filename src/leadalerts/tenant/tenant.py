"""Tenant aggregate — an isolated sales organization.

A tenant owns its members and leads, defines the local time zone that all
reminder and quiet-hours arithmetic uses, carries optional custom display
names for lead statuses, and holds the API credential used by inbound lead
ingestion. Tenants are created by provisioning and never merged.
"""

import json
import secrets
from datetime import UTC, datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from protean.exceptions import ValidationError
from protean.fields import DateTime, String, Text

from leadalerts.domain import leadalerts
from leadalerts.lead.status import DEFAULT_STATUS_LABELS
from leadalerts.tenant.events import ApiKeyRotated, StatusLabelsUpdated, TenantProvisioned

DEFAULT_TIMEZONE = "Europe/Kyiv"


def _validate_timezone(name):
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValidationError({"timezone": [f"Unknown time zone: {name}"]}) from None


def _generate_api_key():
    return secrets.token_urlsafe(24)


@leadalerts.aggregate
class Tenant:
    """An organization whose data is never visible to any other tenant."""

    name: String(required=True, max_length=200)
    timezone: String(max_length=64, default=DEFAULT_TIMEZONE)

    # JSON object: status value -> display label
    status_labels: Text()

    # Inbound ingestion credential; empty means ingestion is unauthenticated
    api_key: String(max_length=128)

    created_at: DateTime()
    updated_at: DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def provision(cls, name, timezone=DEFAULT_TIMEZONE, api_key=None, status_labels=None):
        """Provision a tenant. Generates an API key when none is supplied."""
        _validate_timezone(timezone)
        now = datetime.now(UTC)

        tenant = cls(
            name=name,
            timezone=timezone,
            status_labels=json.dumps(status_labels or {}),
            api_key=api_key or _generate_api_key(),
            created_at=now,
            updated_at=now,
        )

        tenant.raise_(
            TenantProvisioned(
                tenant_id=str(tenant.id),
                name=name,
                timezone=timezone,
                provisioned_at=now,
            )
        )

        return tenant

    # -------------------------------------------------------------------
    # Status labels
    # -------------------------------------------------------------------
    def update_status_labels(self, labels):
        """Replace the custom label map. Keys must be known lead statuses."""
        unknown = sorted(set(labels) - set(DEFAULT_STATUS_LABELS))
        if unknown:
            raise ValidationError({"status_labels": [f"Unknown statuses: {', '.join(unknown)}"]})

        now = datetime.now(UTC)
        self.status_labels = json.dumps(dict(labels))
        self.updated_at = now

        self.raise_(
            StatusLabelsUpdated(
                tenant_id=str(self.id),
                status_labels=self.status_labels,
                updated_at=now,
            )
        )

    def label_for(self, status):
        """Display name for a status: custom label, default label, or the raw value."""
        if not status:
            return ""
        custom = json.loads(self.status_labels) if self.status_labels else {}
        return custom.get(status) or DEFAULT_STATUS_LABELS.get(status, status)

    # -------------------------------------------------------------------
    # Ingestion credential
    # -------------------------------------------------------------------
    def rotate_api_key(self):
        now = datetime.now(UTC)
        self.api_key = _generate_api_key()
        self.updated_at = now

        self.raise_(ApiKeyRotated(tenant_id=str(self.id), rotated_at=now))
        return self.api_key

    def accepts_api_key(self, presented):
        """Constant-time credential check. A tenant without a key accepts anything."""
        if not self.api_key:
            return True
        return secrets.compare_digest(self.api_key, presented or "")

    # -------------------------------------------------------------------
    # Local time
    # -------------------------------------------------------------------
    @property
    def zone(self):
        return ZoneInfo(self.timezone or DEFAULT_TIMEZONE)

    def local_time(self, moment=None):
        """Convert a moment to tenant-local time. Naive moments are taken as UTC."""
        moment = moment or datetime.now(UTC)
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=UTC)
        return moment.astimezone(self.zone)
