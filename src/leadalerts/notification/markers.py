"""Reminder marker ledger — the compare-and-set primitive behind reminders.

A scan claims ``(scope, marker)`` before it sends anything. Exactly one of
any number of concurrent claims for the same pair wins; the losers skip the
reminder. The scope is a lead id for lead reminders and a tenant id for the
daily digest.

The in-memory ledger is authoritative within one process. Deployments that
run several scanner processes against a shared store provide a ledger whose
``claim`` is a conditional write in that store.
"""

import threading
from abc import ABC, abstractmethod
from datetime import UTC, datetime

import structlog

logger = structlog.get_logger(__name__)


def marker_date(marker_key: str) -> str | None:
    """The ``YYYY-MM-DD`` suffix of a marker key, if it has one."""
    _, _, suffix = marker_key.rpartition("_")
    return suffix if len(suffix) == 10 and suffix[4] == "-" and suffix[7] == "-" else None


class ReminderMarkerLedger(ABC):
    """Abstract ledger interface."""

    @abstractmethod
    def claim(self, scope_id: str, marker_key: str) -> bool:
        """Atomically record the marker. True only for the first claimant."""
        ...

    @abstractmethod
    def is_claimed(self, scope_id: str, marker_key: str) -> bool: ...

    @abstractmethod
    def forget_before(self, on_date: str) -> int:
        """Drop markers dated before ``on_date``. Returns how many were dropped."""
        ...


class MemoryMarkerLedger(ReminderMarkerLedger):
    """Lock-guarded in-memory ledger."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._claims: dict[tuple[str, str], datetime] = {}

    def claim(self, scope_id: str, marker_key: str) -> bool:
        key = (str(scope_id), marker_key)
        with self._lock:
            if key in self._claims:
                return False
            self._claims[key] = datetime.now(UTC)
            return True

    def is_claimed(self, scope_id: str, marker_key: str) -> bool:
        with self._lock:
            return (str(scope_id), marker_key) in self._claims

    def forget_before(self, on_date: str) -> int:
        with self._lock:
            stale = [key for key in self._claims if (marker_date(key[1]) or on_date) < on_date]
            for key in stale:
                del self._claims[key]
        if stale:
            logger.debug("Pruned reminder markers", count=len(stale), before=on_date)
        return len(stale)

    def __len__(self) -> int:
        with self._lock:
            return len(self._claims)


_current_ledger: ReminderMarkerLedger | None = None


def get_marker_ledger() -> ReminderMarkerLedger:
    """Return the process-wide ledger. Defaults to MemoryMarkerLedger."""
    global _current_ledger
    if _current_ledger is None:
        _current_ledger = MemoryMarkerLedger()
    return _current_ledger


def set_marker_ledger(ledger: ReminderMarkerLedger) -> None:
    global _current_ledger
    _current_ledger = ledger


def reset_marker_ledger() -> None:
    global _current_ledger
    _current_ledger = None
