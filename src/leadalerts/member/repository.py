"""Repository for the Member aggregate."""

from protean.exceptions import ObjectNotFoundError

from leadalerts.domain import leadalerts
from leadalerts.member.member import Member

PAGE_SIZE = 200


def _join_order(member):
    return member.joined_at.timestamp() if member.joined_at else float("inf")


@leadalerts.repository(part_of=Member)
class MemberRepository:
    """Tenant-scoped member lookups. Results keep listing order (join time)."""

    def for_tenant(self, tenant_id) -> list[Member]:
        members = []
        offset = 0
        while True:
            page = self._dao.query.filter(tenant_id=str(tenant_id)).offset(offset).limit(PAGE_SIZE).all().items
            members.extend(page)
            if len(page) < PAGE_SIZE:
                break
            offset += PAGE_SIZE
        return sorted(members, key=_join_order)

    def find_by_user(self, tenant_id, user_id) -> Member | None:
        """Member with ``user_id`` inside the tenant, or None."""
        if not user_id:
            return None
        items = self._dao.query.filter(tenant_id=str(tenant_id), user_id=str(user_id)).all().items
        return items[0] if items else None

    def get_by_user(self, tenant_id, user_id) -> Member:
        """Like find_by_user, but raises ObjectNotFoundError when absent."""
        member = self.find_by_user(tenant_id, user_id)
        if member is None:
            raise ObjectNotFoundError(f"Member `{user_id}` not found in tenant `{tenant_id}`")
        return member
