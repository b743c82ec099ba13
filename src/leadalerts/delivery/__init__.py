"""Delivery gateway factory.

Provides get_gateway() / set_gateway() to swap implementations:
- FakeDeliveryGateway for development and testing
- TelegramDeliveryGateway for production, selected by settings
"""

import structlog

from leadalerts.config import DeliveryBackend, Settings, get_settings
from leadalerts.delivery.fake_adapter import FakeDeliveryGateway
from leadalerts.delivery.port import DeliveryGateway, SendResult
from leadalerts.delivery.telegram_adapter import TelegramDeliveryGateway

logger = structlog.get_logger(__name__)

__all__ = [
    "DeliveryGateway",
    "FakeDeliveryGateway",
    "SendResult",
    "TelegramDeliveryGateway",
    "build_gateway",
    "get_gateway",
    "reset_gateway",
    "set_gateway",
]

_current_gateway: DeliveryGateway | None = None


def build_gateway(settings: Settings) -> DeliveryGateway:
    """Construct the gateway named by ``settings.delivery_backend``."""
    if settings.delivery_backend == DeliveryBackend.TELEGRAM:
        gateway = TelegramDeliveryGateway(
            bot_token=settings.telegram_bot_token or "",
            api_base=settings.telegram_api_base,
            timeout=settings.send_timeout_seconds,
        )
        logger.info("Telegram delivery configured", token=gateway.masked_token)
        return gateway
    return FakeDeliveryGateway()


def get_gateway() -> DeliveryGateway:
    """Return the current delivery gateway, built from settings on first use."""
    global _current_gateway
    if _current_gateway is None:
        _current_gateway = build_gateway(get_settings())
    return _current_gateway


def set_gateway(gateway: DeliveryGateway) -> None:
    """Override the active delivery gateway (useful for tests)."""
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    """Reset to the settings-derived gateway."""
    global _current_gateway
    _current_gateway = None
