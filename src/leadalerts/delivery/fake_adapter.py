"""Fake delivery gateway — records sent messages for testing.

Can be configured to fail every send, or only sends to specific channel
ids, which is how tests exercise per-recipient failure isolation. An
optional delay simulates a slow network so the dispatcher's timeout can be
observed.
"""

import threading
import time
from uuid import uuid4

from leadalerts.delivery.port import RENDER_RICHTEXT, DeliveryGateway, SendResult


class FakeDeliveryGateway(DeliveryGateway):
    """Delivery gateway that keeps messages in memory for test assertions."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.sent: list[dict] = []
        self.attempts: list[dict] = []
        self.should_succeed: bool = True
        self.failure_reason: str = "Delivery failed"
        self.failing_channels: set[str] = set()
        self.raising_channels: set[str] = set()
        self.delay_seconds: float = 0.0

    def configure(
        self,
        should_succeed: bool = True,
        failure_reason: str = "Delivery failed",
        failing_channels=(),
        raising_channels=(),
        delay_seconds: float = 0.0,
    ) -> None:
        """Configure gateway behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.failing_channels = {str(c) for c in failing_channels}
        self.raising_channels = {str(c) for c in raising_channels}
        self.delay_seconds = delay_seconds

    def send(self, channel_id: str, text: str, render_mode: str = RENDER_RICHTEXT) -> SendResult:
        channel_id = str(channel_id)
        with self._lock:
            self.attempts.append({"channel_id": channel_id, "text": text, "render_mode": render_mode})

        if self.delay_seconds:
            time.sleep(self.delay_seconds)

        if channel_id in self.raising_channels:
            raise ConnectionError(f"Connection reset while sending to {channel_id}")

        if not self.should_succeed or channel_id in self.failing_channels:
            return SendResult(ok=False, error=self.failure_reason)

        message_id = f"msg-{uuid4().hex[:12]}"
        with self._lock:
            self.sent.append(
                {
                    "message_id": message_id,
                    "channel_id": channel_id,
                    "text": text,
                    "render_mode": render_mode,
                }
            )
        return SendResult(ok=True, message_id=message_id)

    def sent_to(self, channel_id: str) -> list[dict]:
        """Messages successfully sent to one chat, in send order."""
        with self._lock:
            return [m for m in self.sent if m["channel_id"] == str(channel_id)]

    def reset(self) -> None:
        """Clear recorded messages and restore default behavior."""
        with self._lock:
            self.sent.clear()
            self.attempts.clear()
        self.configure()
