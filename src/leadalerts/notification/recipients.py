"""Recipient resolution — which members of a tenant a notification targets.

Only members with a bound channel are ever returned. For assignment-scoped
categories an assigned lead narrows the audience to the assignee alone; if
that person is missing or unreachable nobody is notified, and the owners
and managers are not used as a fallback.
"""

from protean.utils.globals import current_domain

from leadalerts.member.member import Member
from leadalerts.notification.category import RecipientScope, parse_category, scope_for


def tenant_members(tenant_id) -> list[Member]:
    return current_domain.repository_for(Member).for_tenant(tenant_id)


def resolve_recipients(tenant_id, lead, category, members=None, assignee=None) -> list[Member]:
    """Members of ``tenant_id`` who should receive ``category`` for ``lead``.

    ``members`` may be passed in when the caller already loaded the tenant's
    roster (the scans do, once per tenant). ``assignee`` overrides
    ``lead.assigned_to`` with the value an event carried. The result keeps
    roster order.
    """
    category = parse_category(category)
    if members is None:
        members = tenant_members(tenant_id)

    reachable = [m for m in members if str(m.tenant_id) == str(tenant_id) and m.is_reachable]
    scope = scope_for(category)

    if scope == RecipientScope.TENANT:
        return reachable

    if assignee is None and lead is not None:
        assignee = lead.assigned_to

    if scope == RecipientScope.ASSIGNMENT and assignee:
        return [m for m in reachable if m.user_id == assignee][:1]

    return [m for m in reachable if m.is_supervisor]
