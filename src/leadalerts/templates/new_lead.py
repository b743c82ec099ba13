"""New lead template — sent to owners and managers when a lead arrives."""

from leadalerts.notification.category import NotificationCategory
from leadalerts.templates.formatting import contact_lines, crm_link, field, join_lines, limit_for, line


class NewLeadTemplate:
    category = NotificationCategory.NEW_LEAD

    @staticmethod
    def render(context: dict) -> str:
        limit = limit_for(context)
        return join_lines(
            "🆕 <b>New lead!</b>",
            "",
            line("👤", field(context, "name", limit)),
            line("📋 Source:", field(context, "source", limit)),
            *contact_lines(context),
            "",
            line("💬", field(context, "problem", limit)),
            line("📝", field(context, "notes", limit)),
            "",
            crm_link(context),
        )
