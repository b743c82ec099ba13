"""Assignment template — tells a member a lead is now theirs."""

from leadalerts.notification.category import NotificationCategory
from leadalerts.templates.formatting import contact_lines, crm_link, field, join_lines, lead_title, limit_for, line


class AssignmentTemplate:
    category = NotificationCategory.ASSIGNMENT

    @staticmethod
    def render(context: dict) -> str:
        limit = limit_for(context)
        return join_lines(
            "👋 <b>You were assigned a lead</b>",
            "",
            line("👤", lead_title(context)),
            line("📌 Status:", field(context, "status_label")),
            *contact_lines(context),
            line("💬", field(context, "problem", limit)),
            "",
            crm_link(context),
        )
