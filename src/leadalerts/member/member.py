"""Member aggregate — a user of a tenant who may receive notifications.

A member belongs to exactly one tenant. Notifications reach a member only
through a bound messaging channel; a member without one is never a target.
Each notification category can be switched off individually (all are on
by default), and an optional quiet-hours window mutes non-exempt
categories during the night in tenant-local time.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer, String, Text

from leadalerts.domain import leadalerts
from leadalerts.member.events import (
    CategoryDisabled,
    CategoryEnabled,
    ChannelBound,
    ChannelUnbound,
    MemberAdded,
    MemberRoleChanged,
    QuietHoursCleared,
    QuietHoursSet,
)
from leadalerts.notification.category import parse_category


class MemberRole(Enum):
    OWNER = "owner"
    MANAGER = "manager"
    OTHER = "other"


# Roles that receive role-scoped notifications (new leads, unassigned work).
SUPERVISOR_ROLES = frozenset({MemberRole.OWNER.value, MemberRole.MANAGER.value})


def _validate_hour(label, value):
    if not isinstance(value, int) or isinstance(value, bool) or not 0 <= value <= 23:
        raise ValidationError({f"quiet_hours_{label}": [f"Invalid hour: {value}. Use 0-23"]})


def _category_value(category):
    try:
        return parse_category(category).value
    except ValueError as exc:
        raise ValidationError({"category": [str(exc)]}) from None


@leadalerts.aggregate
class Member:
    """A tenant user, optionally linked to a messaging chat."""

    tenant_id: Identifier(required=True)
    user_id: String(required=True, max_length=128)
    display_name: String(max_length=200)
    role: String(choices=MemberRole, default=MemberRole.OTHER.value)

    # Messaging channel binding
    channel_id: String(max_length=64)
    channel_name: String(max_length=200)
    channel_bound_at: DateTime()

    # Per-category opt-out: JSON list of NotificationCategory values
    disabled_categories: Text()

    # Quiet hours, whole hours in tenant-local time; start > end wraps midnight
    quiet_hours_start: Integer(min_value=0, max_value=23)
    quiet_hours_end: Integer(min_value=0, max_value=23)

    joined_at: DateTime()
    updated_at: DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def join(cls, tenant_id, user_id, display_name=None, role=MemberRole.OTHER.value, joined_at=None):
        now = joined_at or datetime.now(UTC)

        member = cls(
            tenant_id=tenant_id,
            user_id=user_id,
            display_name=display_name,
            role=role,
            disabled_categories=json.dumps([]),
            joined_at=now,
            updated_at=now,
        )

        member.raise_(
            MemberAdded(
                member_id=str(member.id),
                tenant_id=str(tenant_id),
                user_id=user_id,
                role=role,
                added_at=now,
            )
        )

        return member

    def change_role(self, role):
        if role not in {r.value for r in MemberRole}:
            raise ValidationError({"role": [f"Unknown role: {role}"]})
        if role == self.role:
            return

        now = datetime.now(UTC)
        previous = self.role
        self.role = role
        self.updated_at = now

        self.raise_(
            MemberRoleChanged(
                member_id=str(self.id),
                tenant_id=str(self.tenant_id),
                previous_role=previous,
                role=role,
                changed_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Channel binding
    # -------------------------------------------------------------------
    def bind_channel(self, channel_id, channel_name=None):
        """Link a messaging chat. Rebinding replaces the previous chat."""
        channel_id = str(channel_id).strip() if channel_id is not None else ""
        if not channel_id:
            raise ValidationError({"channel_id": ["Channel identifier is required"]})

        now = datetime.now(UTC)
        self.channel_id = channel_id
        self.channel_name = channel_name
        self.channel_bound_at = now
        self.updated_at = now

        self.raise_(
            ChannelBound(
                member_id=str(self.id),
                tenant_id=str(self.tenant_id),
                channel_id=channel_id,
                bound_at=now,
            )
        )

    def unbind_channel(self):
        if not self.channel_id:
            raise ValidationError({"channel_id": ["No channel is bound"]})

        now = datetime.now(UTC)
        self.channel_id = None
        self.channel_name = None
        self.channel_bound_at = None
        self.updated_at = now

        self.raise_(
            ChannelUnbound(
                member_id=str(self.id),
                tenant_id=str(self.tenant_id),
                unbound_at=now,
            )
        )

    @property
    def is_reachable(self):
        return bool(self.channel_id)

    @property
    def is_supervisor(self):
        return self.role in SUPERVISOR_ROLES

    # -------------------------------------------------------------------
    # Quiet hours
    # -------------------------------------------------------------------
    def set_quiet_hours(self, start, end):
        """Set the do-not-disturb window. ``start > end`` wraps past midnight."""
        _validate_hour("start", start)
        _validate_hour("end", end)
        if start == end:
            raise ValidationError({"quiet_hours": ["Start and end hours must differ"]})

        now = datetime.now(UTC)
        self.quiet_hours_start = start
        self.quiet_hours_end = end
        self.updated_at = now

        self.raise_(
            QuietHoursSet(
                member_id=str(self.id),
                tenant_id=str(self.tenant_id),
                start=start,
                end=end,
                updated_at=now,
            )
        )

    def clear_quiet_hours(self):
        now = datetime.now(UTC)
        self.quiet_hours_start = None
        self.quiet_hours_end = None
        self.updated_at = now

        self.raise_(
            QuietHoursCleared(
                member_id=str(self.id),
                tenant_id=str(self.tenant_id),
                cleared_at=now,
            )
        )

    @property
    def has_quiet_hours(self):
        return self.quiet_hours_start is not None and self.quiet_hours_end is not None

    # -------------------------------------------------------------------
    # Per-category toggles
    # -------------------------------------------------------------------
    def _disabled(self):
        return json.loads(self.disabled_categories) if self.disabled_categories else []

    def disable_category(self, category):
        value = _category_value(category)
        disabled = self._disabled()
        if value in disabled:
            raise ValidationError({"disabled_categories": [f"Already disabled: {value}"]})

        disabled.append(value)
        now = datetime.now(UTC)
        self.disabled_categories = json.dumps(disabled)
        self.updated_at = now

        self.raise_(
            CategoryDisabled(
                member_id=str(self.id),
                tenant_id=str(self.tenant_id),
                category=value,
                disabled_at=now,
            )
        )

    def enable_category(self, category):
        value = _category_value(category)
        disabled = self._disabled()
        if value not in disabled:
            raise ValidationError({"disabled_categories": [f"Not disabled: {value}"]})

        disabled.remove(value)
        now = datetime.now(UTC)
        self.disabled_categories = json.dumps(disabled)
        self.updated_at = now

        self.raise_(
            CategoryEnabled(
                member_id=str(self.id),
                tenant_id=str(self.tenant_id),
                category=value,
                enabled_at=now,
            )
        )

    def is_subscribed_to(self, category):
        """Toggles default to enabled when absent."""
        return parse_category(category).value not in self._disabled()
