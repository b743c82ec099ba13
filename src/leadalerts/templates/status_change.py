"""Status change template — a lead moved to another pipeline stage."""

from leadalerts.notification.category import NotificationCategory
from leadalerts.templates.formatting import crm_link, field, join_lines, lead_title, line


class StatusChangeTemplate:
    category = NotificationCategory.STATUS_CHANGE

    @staticmethod
    def render(context: dict) -> str:
        previous = field(context, "previous_status_label")
        current = field(context, "status_label")
        if previous and current:
            transition = f"{previous} → <b>{current}</b>"
        elif current:
            transition = f"<b>{current}</b>"
        else:
            transition = None

        return join_lines(
            "🔄 <b>Lead status changed</b>",
            "",
            line("👤", lead_title(context)),
            line("📌", transition),
            "",
            crm_link(context),
        )
