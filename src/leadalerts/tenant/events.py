"""Domain events for the Tenant aggregate."""

from protean.fields import DateTime, Identifier, String, Text

from leadalerts.domain import leadalerts


@leadalerts.event(part_of="Tenant")
class TenantProvisioned:
    """A new isolated organization was provisioned."""

    __version__ = 1

    tenant_id: Identifier(required=True)
    name: String(required=True)
    timezone: String(required=True)
    provisioned_at: DateTime(required=True)


@leadalerts.event(part_of="Tenant")
class StatusLabelsUpdated:
    """The tenant's custom stage display names were replaced."""

    __version__ = 1

    tenant_id: Identifier(required=True)
    status_labels: Text(required=True)
    updated_at: DateTime(required=True)


@leadalerts.event(part_of="Tenant")
class ApiKeyRotated:
    """The inbound ingestion credential was replaced."""

    __version__ = 1

    tenant_id: Identifier(required=True)
    rotated_at: DateTime(required=True)
