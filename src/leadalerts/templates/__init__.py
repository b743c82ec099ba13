"""Template registry — maps NotificationCategory to template classes.

Each template renders one message from a flat context dict. Rendering is
pure: missing optional fields are left out, never raised on.
"""

from leadalerts.notification.category import NotificationCategory, parse_category
from leadalerts.templates.assignment import AssignmentTemplate
from leadalerts.templates.consult_reminder import ConsultReminderTemplate
from leadalerts.templates.daily_digest import DailyDigestTemplate
from leadalerts.templates.new_lead import NewLeadTemplate
from leadalerts.templates.status_change import StatusChangeTemplate
from leadalerts.templates.task_reminder import TaskReminderTemplate

TEMPLATE_REGISTRY: dict[NotificationCategory, type] = {
    NotificationCategory.NEW_LEAD: NewLeadTemplate,
    NotificationCategory.STATUS_CHANGE: StatusChangeTemplate,
    NotificationCategory.ASSIGNMENT: AssignmentTemplate,
    NotificationCategory.TASK_REMINDER_15: TaskReminderTemplate,
    NotificationCategory.CONSULT_REMINDER_60: ConsultReminderTemplate,
    NotificationCategory.DAILY_DIGEST: DailyDigestTemplate,
}


def get_template(category):
    """Look up a template class by category (enum or string value)."""
    category = parse_category(category)
    template_cls = TEMPLATE_REGISTRY.get(category)
    if template_cls is None:
        raise ValueError(f"No template registered for category: {category.value}")
    return template_cls


def render_message(category, payload: dict) -> str:
    return get_template(category).render(payload or {})
