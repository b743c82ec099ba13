"""Fan-out of one rendered message to a batch of members.

Sends run concurrently on a small thread pool. Each recipient is isolated:
an adapter that reports failure, raises, or does not answer in time is
logged and counted, and the rest of the batch carries on.
"""

import math
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import asdict, dataclass

import structlog

from leadalerts.config import Settings, get_settings
from leadalerts.delivery import get_gateway
from leadalerts.delivery.port import RENDER_RICHTEXT, DeliveryGateway, SendResult

logger = structlog.get_logger(__name__)


@dataclass
class DispatchResult:
    """Outcome counts for one batch (or an accumulation of batches)."""

    sent: int = 0
    failed: int = 0
    suppressed: int = 0

    def merge(self, other: "DispatchResult") -> "DispatchResult":
        self.sent += other.sent
        self.failed += other.failed
        self.suppressed += other.suppressed
        return self

    @property
    def attempted(self) -> int:
        return self.sent + self.failed

    def to_dict(self) -> dict:
        return asdict(self)


def _send_one(gateway: DeliveryGateway, channel_id: str, text: str, render_mode: str) -> SendResult:
    try:
        return gateway.send(channel_id, text, render_mode)
    except Exception as exc:
        return SendResult(ok=False, error=f"{type(exc).__name__}: {exc}")


class Dispatcher:
    """Sends one message to many members through a delivery gateway."""

    def __init__(self, gateway: DeliveryGateway | None = None, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        self.gateway = gateway or get_gateway()

    def dispatch(self, members, text: str, category=None, render_mode: str = RENDER_RICHTEXT) -> DispatchResult:
        result = DispatchResult()
        members = list(members)
        if not members:
            return result

        category_value = getattr(category, "value", category)
        workers = min(self.settings.dispatch_workers, len(members))
        waves = math.ceil(len(members) / workers)
        deadline = self.settings.send_timeout_seconds * waves

        executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="leadalerts-send")
        try:
            futures = {
                executor.submit(_send_one, self.gateway, member.channel_id, text, render_mode): member
                for member in members
            }
            done, not_done = wait(futures, timeout=deadline)

            for future in not_done:
                future.cancel()
                member = futures[future]
                result.failed += 1
                logger.warning(
                    "Notification send timed out",
                    category=category_value,
                    member_id=str(member.id),
                    timeout=self.settings.send_timeout_seconds,
                )

            for future in done:
                member = futures[future]
                outcome = future.result()
                if outcome.ok:
                    result.sent += 1
                else:
                    result.failed += 1
                    logger.warning(
                        "Notification send failed",
                        category=category_value,
                        member_id=str(member.id),
                        error=outcome.error,
                    )
        finally:
            # Do not block the batch on a hung adapter call
            executor.shutdown(wait=False, cancel_futures=True)

        logger.info(
            "Notification batch dispatched",
            category=category_value,
            recipients=len(members),
            sent=result.sent,
            failed=result.failed,
        )
        return result
