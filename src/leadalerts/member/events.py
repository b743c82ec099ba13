"""Domain events for the Member aggregate."""

from protean.fields import DateTime, Identifier, Integer, String

from leadalerts.domain import leadalerts


@leadalerts.event(part_of="Member")
class MemberAdded:
    """A user joined a tenant."""

    __version__ = 1

    member_id: Identifier(required=True)
    tenant_id: Identifier(required=True)
    user_id: String(required=True)
    role: String(required=True)
    added_at: DateTime(required=True)


@leadalerts.event(part_of="Member")
class MemberRoleChanged:
    __version__ = 1

    member_id: Identifier(required=True)
    tenant_id: Identifier(required=True)
    previous_role: String(required=True)
    role: String(required=True)
    changed_at: DateTime(required=True)


@leadalerts.event(part_of="Member")
class ChannelBound:
    """The member linked a messaging chat and can now receive notifications."""

    __version__ = 1

    member_id: Identifier(required=True)
    tenant_id: Identifier(required=True)
    channel_id: String(required=True)
    bound_at: DateTime(required=True)


@leadalerts.event(part_of="Member")
class ChannelUnbound:
    """The member unlinked their messaging chat."""

    __version__ = 1

    member_id: Identifier(required=True)
    tenant_id: Identifier(required=True)
    unbound_at: DateTime(required=True)


@leadalerts.event(part_of="Member")
class QuietHoursSet:
    __version__ = 1

    member_id: Identifier(required=True)
    tenant_id: Identifier(required=True)
    start: Integer(required=True)
    end: Integer(required=True)
    updated_at: DateTime(required=True)


@leadalerts.event(part_of="Member")
class QuietHoursCleared:
    __version__ = 1

    member_id: Identifier(required=True)
    tenant_id: Identifier(required=True)
    cleared_at: DateTime(required=True)


@leadalerts.event(part_of="Member")
class CategoryDisabled:
    """The member opted out of a notification category."""

    __version__ = 1

    member_id: Identifier(required=True)
    tenant_id: Identifier(required=True)
    category: String(required=True)
    disabled_at: DateTime(required=True)


@leadalerts.event(part_of="Member")
class CategoryEnabled:
    """The member opted back in to a notification category."""

    __version__ = 1

    member_id: Identifier(required=True)
    tenant_id: Identifier(required=True)
    category: String(required=True)
    enabled_at: DateTime(required=True)
