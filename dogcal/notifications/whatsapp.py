"""
WhatsApp transport via the Twilio Messages REST API.

The scheduling core never calls this directly; the dispatcher hands it
rendered messages after the state change has been committed.
"""

import logging
import re
from dataclasses import dataclass

import httpx

from dogcal.core.config import Settings, settings

logger = logging.getLogger(__name__)

TWILIO_API_BASE = "https://api.twilio.com/2010-04-01"


@dataclass
class SendResult:
    success: bool
    provider_id: str | None = None
    error: str | None = None


def is_valid_phone_number(phone: str | None) -> bool:
    """A usable number is non-blank and contains at least one digit."""
    if not phone:
        return False
    return bool(re.search(r"\d", phone.strip()))


def format_phone_number(phone: str) -> str:
    """
    Format a phone number for Twilio's WhatsApp channel.

    Handles UK and US numbers:
        07476 238512   -> whatsapp:+447476238512
        (415) 555-0100 -> whatsapp:+14155550100
        +44 7476 ...   -> whatsapp:+447476...
    """
    digits = re.sub(r"\D", "", phone.strip())

    # UK mobile: 07xxx becomes 447xxx
    if digits.startswith("0") and len(digits) == 11:
        digits = "44" + digits[1:]
    elif not digits.startswith(("44", "1")) and len(digits) == 10:
        # Bare 10-digit US number
        digits = "1" + digits

    return f"whatsapp:+{digits}"


class WhatsAppTransport:
    """Send plain-text WhatsApp messages through Twilio."""

    def __init__(self, config: Settings = settings, client: httpx.AsyncClient | None = None):
        self.config = config
        self._client = client

    @property
    def enabled(self) -> bool:
        return self.config.whatsapp_enabled

    @property
    def disabled_reason(self) -> str:
        return "WhatsApp notifications are disabled"

    async def send(self, to_phone: str, message: str) -> SendResult:
        """
        Send one message.

        Returns a SendResult instead of raising: transport problems are
        reported back to the caller, never propagated.
        """
        if not self.enabled:
            return SendResult(success=False, error=self.disabled_reason)

        account_sid = self.config.twilio_account_sid
        auth_token = self.config.twilio_auth_token
        if not account_sid or not auth_token:
            logger.error("Twilio credentials missing in configuration")
            return SendResult(success=False, error="Twilio client not configured")

        from_number = self.config.twilio_whatsapp_from
        if not from_number:
            return SendResult(success=False, error="TWILIO_WHATSAPP_FROM not configured")

        formatted_to = format_phone_number(to_phone)
        data = {"From": from_number, "To": formatted_to, "Body": message}
        url = f"{TWILIO_API_BASE}/Accounts/{account_sid}/Messages.json"

        try:
            logger.info(f"Sending WhatsApp message to {formatted_to}")
            if self._client is not None:
                response = await self._post(self._client, url, data)
            else:
                async with httpx.AsyncClient() as client:
                    response = await self._post(client, url, data)
        except httpx.HTTPError as e:
            logger.error(f"Twilio API error: {e}")
            return SendResult(success=False, error=str(e))

        if response.status_code in (200, 201):
            sid = response.json().get("sid")
            logger.info(f"WhatsApp message sent to {formatted_to} (SID: {sid})")
            return SendResult(success=True, provider_id=sid)

        try:
            payload = response.json()
        except ValueError:
            payload = {}
        error_message = payload.get("message", f"HTTP {response.status_code}")
        error_code = payload.get("code")
        if error_code:
            error_message = f"Twilio error {error_code}: {error_message}"
        logger.error(f"WhatsApp send to {formatted_to} failed: {error_message}")
        return SendResult(success=False, error=error_message)

    async def _post(self, client: httpx.AsyncClient, url: str, data: dict) -> httpx.Response:
        return await client.post(
            url,
            auth=(self.config.twilio_account_sid, self.config.twilio_auth_token),
            data=data,
            timeout=self.config.twilio_timeout_seconds,
        )
