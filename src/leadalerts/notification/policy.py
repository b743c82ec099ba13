"""Notification policy gate.

A pure decision on whether one member may receive one category right now.
It suppresses categories the member switched off, and non-exempt
categories while the member's quiet hours are in effect.
"""

from datetime import datetime

from leadalerts.notification.category import QUIET_HOURS_EXEMPT, parse_category


def in_quiet_hours(start: int, end: int, hour: int) -> bool:
    """Whether ``hour`` falls inside the window ``[start, end)``.

    A window with ``start >= end`` wraps past midnight, e.g. 22 → 8 covers
    22:00-07:59.
    """
    if start < end:
        return start <= hour < end
    return hour >= start or hour < end


def allow(member, category, local_now: datetime) -> bool:
    """Decide delivery of ``category`` to ``member`` at tenant-local ``local_now``."""
    category = parse_category(category)

    if not member.is_subscribed_to(category):
        return False

    if category in QUIET_HOURS_EXEMPT or not member.has_quiet_hours:
        return True

    return not in_quiet_hours(member.quiet_hours_start, member.quiet_hours_end, local_now.hour)
