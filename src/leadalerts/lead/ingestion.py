"""Lead intake commands + handler.

``IngestLead`` is the inbound webhook path: external forms and sheet syncs
post contact details with the tenant's API credential, and the lead starts
in status ``new``. ``CreateLead`` is the in-app path used by the CRM itself,
which may already carry an assignee and a schedule.

In both cases the LeadCreated event is picked up by the lead notifier.
"""

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from leadalerts.domain import leadalerts
from leadalerts.exceptions import InvalidApiKeyError, StorageUnavailableError
from leadalerts.lead.lead import Lead
from leadalerts.lead.status import LeadStatus
from leadalerts.tenant.tenant import Tenant

logger = structlog.get_logger(__name__)


@leadalerts.command(part_of="Lead")
class IngestLead:
    """Accept a lead from an external source."""

    tenant_id: Identifier(required=True)
    api_key: String(max_length=128)
    name: String(max_length=200)
    phone: String(max_length=50)
    telegram: String(max_length=100)
    email: String(max_length=254)
    source: String(max_length=200)
    problem: Text()
    notes: Text()


@leadalerts.command(part_of="Lead")
class CreateLead:
    """Create a lead from inside the CRM."""

    tenant_id: Identifier(required=True)
    name: String(max_length=200)
    phone: String(max_length=50)
    telegram: String(max_length=100)
    email: String(max_length=254)
    source: String(max_length=200)
    problem: Text()
    notes: Text()
    status: String(choices=LeadStatus, default=LeadStatus.NEW.value)
    assigned_to: String(max_length=128)
    next_date: String(max_length=10)
    next_time: String(max_length=8)
    consult_at: String(max_length=20)


def _load_tenant(tenant_id):
    try:
        return current_domain.repository_for(Tenant).get(tenant_id)
    except ObjectNotFoundError:
        raise
    except Exception as exc:
        logger.error("Tenant lookup failed", tenant_id=str(tenant_id), error=str(exc))
        raise StorageUnavailableError(str(exc)) from exc


@leadalerts.command_handler(part_of=Lead)
class LeadIntakeHandler:
    @handle(IngestLead)
    def ingest(self, command: IngestLead):
        tenant = _load_tenant(command.tenant_id)
        if not tenant.accepts_api_key(command.api_key):
            logger.warning("Rejected inbound lead with invalid API key", tenant_id=str(tenant.id))
            raise InvalidApiKeyError(str(tenant.id))

        lead = Lead.create(
            tenant_id=str(tenant.id),
            name=command.name,
            phone=command.phone,
            telegram=command.telegram,
            email=command.email,
            source=command.source,
            problem=command.problem,
            notes=command.notes,
            status=LeadStatus.NEW.value,
        )
        current_domain.repository_for(Lead).add(lead)

        logger.info("Inbound lead accepted", tenant_id=str(tenant.id), lead_id=str(lead.id), source=lead.source)
        return str(lead.id)

    @handle(CreateLead)
    def create(self, command: CreateLead):
        tenant = _load_tenant(command.tenant_id)

        lead = Lead.create(
            tenant_id=str(tenant.id),
            name=command.name,
            phone=command.phone,
            telegram=command.telegram,
            email=command.email,
            source=command.source,
            problem=command.problem,
            notes=command.notes,
            status=command.status or LeadStatus.NEW.value,
            assigned_to=command.assigned_to,
            next_date=command.next_date,
            next_time=command.next_time,
            consult_at=command.consult_at,
        )
        current_domain.repository_for(Lead).add(lead)
        return str(lead.id)
