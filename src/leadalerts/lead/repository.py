"""Repository for the Lead aggregate."""

from leadalerts.domain import leadalerts
from leadalerts.lead.lead import Lead

PAGE_SIZE = 200


@leadalerts.repository(part_of=Lead)
class LeadRepository:
    """Tenant-scoped lead queries used by the scans.

    Only equality filters are pushed to the store; everything else (terminal
    status, date arithmetic) is evaluated in Python so that any provider can
    back these queries.
    """

    def _all(self, **filters) -> list[Lead]:
        leads = []
        offset = 0
        while True:
            page = self._dao.query.filter(**filters).offset(offset).limit(PAGE_SIZE).all().items
            leads.extend(page)
            if len(page) < PAGE_SIZE:
                break
            offset += PAGE_SIZE
        return leads

    def for_tenant(self, tenant_id) -> list[Lead]:
        return self._all(tenant_id=str(tenant_id))

    def open_for_tenant(self, tenant_id) -> list[Lead]:
        """Leads of a tenant that are not in a terminal status."""
        return [lead for lead in self.for_tenant(tenant_id) if lead.is_open]
