"""Daily digest template — one summary of a tenant's pipeline per morning."""

from leadalerts.notification.category import NotificationCategory
from leadalerts.templates.formatting import crm_link, field, join_lines, limit_for, money


class DailyDigestTemplate:
    category = NotificationCategory.DAILY_DIGEST

    @staticmethod
    def render(context: dict) -> str:
        title = "📊 <b>Daily summary</b>"
        tenant = field(context, "tenant_name", limit_for(context))
        on_date = field(context, "date")
        if tenant and on_date:
            title = f"📊 <b>Daily summary</b> — {tenant}, {on_date}"
        elif tenant or on_date:
            title = f"📊 <b>Daily summary</b> — {tenant or on_date}"

        def count(key):
            return int(context.get(key) or 0)

        return join_lines(
            title,
            "",
            f"• Total leads: {count('total')}",
            f"• 🆕 New: {count('new')}",
            f"• 📋 Due today: {count('due_today')}",
            f"• ⚠️ Overdue: {count('overdue')}",
            f"• 📅 Consultations today: {count('consults_today')}",
            "",
            f"💰 Deposits: {count('deposit_count')} ({money(context.get('deposit_sum'))})",
            f"✅ Paid this month: {count('paid_count')} ({money(context.get('paid_sum'))})",
            "",
            crm_link(context),
        )
