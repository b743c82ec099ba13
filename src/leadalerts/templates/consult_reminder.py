"""Consultation reminder template — a scheduled consultation starts in about an hour."""

from leadalerts.notification.category import NotificationCategory
from leadalerts.templates.formatting import contact_lines, crm_link, field, join_lines, lead_title, limit_for, line


class ConsultReminderTemplate:
    category = NotificationCategory.CONSULT_REMINDER_60

    @staticmethod
    def render(context: dict) -> str:
        minutes = context.get("minutes_until")
        heading = "📅 <b>Consultation reminder</b>"
        if minutes is not None:
            heading = f"📅 <b>Consultation in {int(minutes)} min</b>"

        return join_lines(
            heading,
            "",
            line("👤", lead_title(context)),
            line("🕒", field(context, "consult_time")),
            *contact_lines(context),
            line("💬", field(context, "problem", limit_for(context))),
            "",
            crm_link(context),
        )
