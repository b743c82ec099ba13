"""Lead pipeline statuses and their default display labels."""

from enum import Enum


class LeadStatus(Enum):
    NEW = "new"
    CONTACTED = "contacted"
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    REPORT_SENT = "report_sent"
    DEPOSIT = "deposit"
    PAID = "paid"
    FAILED = "failed"
    FROZEN = "frozen"
    REPEAT = "repeat"


# Leads in these statuses have no open work: no reminders, not due, not overdue.
TERMINAL_STATUSES = frozenset({LeadStatus.PAID.value, LeadStatus.FAILED.value, LeadStatus.FROZEN.value})

DEFAULT_STATUS_LABELS = {
    LeadStatus.NEW.value: "New",
    LeadStatus.CONTACTED.value: "Contacted",
    LeadStatus.SCHEDULED.value: "Consultation scheduled",
    LeadStatus.COMPLETED.value: "Consultation held",
    LeadStatus.REPORT_SENT.value: "Report sent",
    LeadStatus.DEPOSIT.value: "Deposit received",
    LeadStatus.PAID.value: "Paid",
    LeadStatus.FAILED.value: "Lost",
    LeadStatus.FROZEN.value: "Frozen",
    LeadStatus.REPEAT.value: "Repeat sale",
}


def is_terminal(status: str | None) -> bool:
    return status in TERMINAL_STATUSES
