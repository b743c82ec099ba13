"""Tenant provisioning commands + handler."""

import json

from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from leadalerts.domain import leadalerts
from leadalerts.tenant.tenant import DEFAULT_TIMEZONE, Tenant


@leadalerts.command(part_of="Tenant")
class ProvisionTenant:
    """Create a new isolated organization."""

    name: String(required=True, max_length=200)
    timezone: String(max_length=64, default=DEFAULT_TIMEZONE)
    api_key: String(max_length=128)


@leadalerts.command(part_of="Tenant")
class UpdateStatusLabels:
    """Replace a tenant's custom status labels."""

    tenant_id: Identifier(required=True)
    status_labels: Text(required=True)  # JSON object


@leadalerts.command(part_of="Tenant")
class RotateApiKey:
    """Issue a new ingestion credential for a tenant."""

    tenant_id: Identifier(required=True)


@leadalerts.command_handler(part_of=Tenant)
class TenantProvisioningHandler:
    @handle(ProvisionTenant)
    def provision(self, command: ProvisionTenant):
        tenant = Tenant.provision(
            name=command.name,
            timezone=command.timezone or DEFAULT_TIMEZONE,
            api_key=command.api_key,
        )
        current_domain.repository_for(Tenant).add(tenant)
        return str(tenant.id)

    @handle(UpdateStatusLabels)
    def update_status_labels(self, command: UpdateStatusLabels):
        repo = current_domain.repository_for(Tenant)
        tenant = repo.get(command.tenant_id)
        tenant.update_status_labels(json.loads(command.status_labels))
        repo.add(tenant)

    @handle(RotateApiKey)
    def rotate_api_key(self, command: RotateApiKey):
        repo = current_domain.repository_for(Tenant)
        tenant = repo.get(command.tenant_id)
        api_key = tenant.rotate_api_key()
        repo.add(tenant)
        return api_key
