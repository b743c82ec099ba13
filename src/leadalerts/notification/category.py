"""Notification categories and their recipient scopes.

Every category has a per-member opt-out toggle. The scope decides how the
recipient resolver picks members:

- assignment-scoped: the lead's assignee when there is one, otherwise the
  tenant's owners and managers. Never both.
- role-scoped: owners and managers.
- tenant-wide: every member with a bound channel.
"""

from enum import Enum


class NotificationCategory(Enum):
    NEW_LEAD = "new_lead"
    STATUS_CHANGE = "status_change"
    ASSIGNMENT = "assignment"
    TASK_REMINDER_15 = "task_reminder_15"
    CONSULT_REMINDER_60 = "consult_reminder_60"
    DAILY_DIGEST = "daily_digest"


class RecipientScope(Enum):
    ASSIGNMENT = "assignment"
    ROLE = "role"
    TENANT = "tenant"


CATEGORY_SCOPES = {
    NotificationCategory.NEW_LEAD: RecipientScope.ROLE,
    NotificationCategory.STATUS_CHANGE: RecipientScope.ASSIGNMENT,
    NotificationCategory.ASSIGNMENT: RecipientScope.ASSIGNMENT,
    NotificationCategory.TASK_REMINDER_15: RecipientScope.ASSIGNMENT,
    NotificationCategory.CONSULT_REMINDER_60: RecipientScope.ASSIGNMENT,
    NotificationCategory.DAILY_DIGEST: RecipientScope.TENANT,
}

# Categories delivered even inside a member's quiet hours.
QUIET_HOURS_EXEMPT = frozenset({NotificationCategory.DAILY_DIGEST})


def scope_for(category: NotificationCategory) -> RecipientScope:
    return CATEGORY_SCOPES[category]


def parse_category(value) -> NotificationCategory:
    """Accept a category enum or its string value."""
    if isinstance(value, NotificationCategory):
        return value
    try:
        return NotificationCategory(value)
    except ValueError:
        raise ValueError(f"Unknown notification category: {value}") from None
