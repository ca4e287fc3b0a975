"""Deliver composed notifications and report a per-recipient outcome.

Delivery is best effort. Every intent yields exactly one result:

    - ``skipped``: no usable phone number, or the transport is disabled
    - ``sent``: the transport accepted the message
    - ``failed``: the transport was called and reported an error

Nothing is retried and nothing is raised; the caller shows the results
(for example with a copy/share fallback for skipped recipients).
"""
import asyncio
import logging
from typing import Literal, Protocol
from uuid import UUID

from pydantic import BaseModel

from dogcal.core.config import settings
from dogcal.notifications.composer import NotificationIntent
from dogcal.notifications.whatsapp import SendResult, WhatsAppTransport, is_valid_phone_number

logger = logging.getLogger(__name__)


class Transport(Protocol):
    @property
    def enabled(self) -> bool: ...

    @property
    def disabled_reason(self) -> str: ...

    async def send(self, to_phone: str, message: str) -> SendResult: ...


class NotificationResult(BaseModel):
    """Outcome of one notification, returned to the caller, never stored."""
    user_id: UUID
    user_name: str
    phone_number: str | None
    relationship: str
    status: Literal["sent", "skipped", "failed"]
    reason: str | None = None
    provider_id: str | None = None
    message: str


def _result(intent: NotificationIntent, status: str, **extra) -> NotificationResult:
    return NotificationResult(
        user_id=intent.user_id,
        user_name=intent.user_name,
        phone_number=intent.phone_number,
        relationship=intent.relationship,
        status=status,
        message=intent.message,
        **extra,
    )


async def deliver(intent: NotificationIntent, transport: Transport) -> NotificationResult:
    """Deliver a single intent."""
    if not is_valid_phone_number(intent.phone_number):
        logger.warning(f"Skipping {intent.kind} for {intent.user_name}: no valid phone number")
        return _result(intent, "skipped", reason="No valid phone number")

    if not transport.enabled:
        return _result(intent, "skipped", reason=transport.disabled_reason)

    try:
        sent = await transport.send(intent.phone_number, intent.message)
    except Exception as e:
        # A broken transport must not undo a committed state change
        logger.error(f"Transport raised while sending {intent.kind} to {intent.user_name}: {e}")
        return _result(intent, "failed", reason=str(e))

    if sent.success:
        return _result(intent, "sent", provider_id=sent.provider_id)
    logger.warning(f"Failed to send {intent.kind} to {intent.user_name}: {sent.error}")
    return _result(intent, "failed", reason=sent.error or "Unknown error")


async def dispatch(
    intents: list[NotificationIntent],
    transport: Transport | None = None,
    throttle: bool = False,
    spacing: float | None = None,
) -> list[NotificationResult]:
    """
    Deliver intents and return results in intent order.

    Unthrottled intents go out concurrently. Throttled fan-out sends one at
    a time with ``spacing`` seconds between consecutive sends when there is
    more than one recipient.
    """
    if not intents:
        return []
    transport = transport or WhatsAppTransport()

    if not throttle:
        return list(await asyncio.gather(*(deliver(i, transport) for i in intents)))

    if spacing is None:
        spacing = settings.notification_spacing_seconds
    results = []
    for position, intent in enumerate(intents):
        if position > 0 and spacing > 0:
            await asyncio.sleep(spacing)
        results.append(await deliver(intent, transport))
    return results
