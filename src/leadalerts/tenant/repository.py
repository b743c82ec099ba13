"""Repository for the Tenant aggregate."""

from leadalerts.domain import leadalerts
from leadalerts.tenant.tenant import Tenant

PAGE_SIZE = 100


@leadalerts.repository(part_of=Tenant)
class TenantRepository:
    def all_tenants(self) -> list[Tenant]:
        """Every provisioned tenant, page by page."""
        tenants = []
        offset = 0
        while True:
            page = self._dao.query.offset(offset).limit(PAGE_SIZE).all().items
            tenants.extend(page)
            if len(page) < PAGE_SIZE:
                break
            offset += PAGE_SIZE
        return tenants
