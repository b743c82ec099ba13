"""Task reminder template — the lead's next task is about 15 minutes away."""

from leadalerts.notification.category import NotificationCategory
from leadalerts.templates.formatting import contact_lines, crm_link, field, join_lines, lead_title, limit_for, line


class TaskReminderTemplate:
    category = NotificationCategory.TASK_REMINDER_15

    @staticmethod
    def render(context: dict) -> str:
        minutes = context.get("minutes_until")
        heading = "⏰ <b>Task reminder</b>"
        if minutes is not None:
            heading = f"⏰ <b>Task in {int(minutes)} min</b>"

        return join_lines(
            heading,
            "",
            line("👤", lead_title(context)),
            line("🕒", field(context, "next_time")),
            *contact_lines(context),
            line("📝", field(context, "notes", limit_for(context))),
            "",
            crm_link(context),
        )
