"""Delivery gateway port (abstract interface).

Defines the contract for pushing one rendered message to one messaging
chat. Adapters never raise for delivery problems; they report them through
``SendResult`` so the dispatcher can count and log failures per recipient.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

RENDER_PLAIN = "plain"
RENDER_RICHTEXT = "richtext"


@dataclass(frozen=True)
class SendResult:
    """Result of a single send attempt."""

    ok: bool
    message_id: str | None = None
    error: str | None = None


class DeliveryGateway(ABC):
    """Abstract delivery gateway interface."""

    @abstractmethod
    def send(self, channel_id: str, text: str, render_mode: str = RENDER_RICHTEXT) -> SendResult:
        """Send ``text`` to the chat identified by ``channel_id``."""
        ...
