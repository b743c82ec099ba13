"""LeadAlerts bounded context — lead notifications and reminder scheduling.

Reacts to Lead lifecycle events (creation, status change, assignment) and
runs recurring scans for time-based obligations (task reminders,
consultation reminders, the daily digest). Decides who gets notified,
whether a notification is suppressed, and guarantees that a reminder
instance is dispatched at most once per date.
"""

import structlog
from protean.domain import Domain

from leadalerts.utils.logging import configure_logging

configure_logging()

leadalerts = Domain(name="leadalerts")

logger = structlog.get_logger(__name__)
