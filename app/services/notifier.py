"""
WhatsApp outbound messages via the Twilio Messages API.
"""

import logging

import httpx

from app.core.config import settings
from app.core.errors import NotificationError

logger = logging.getLogger(__name__)

TWILIO_API_BASE = "https://api.twilio.com/2010-04-01"


class WhatsAppNotifier:
    """Sends a text to an opaque address such as "whatsapp:+919876543210"."""

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_address: str,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ) -> None:
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_address = from_address
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @classmethod
    def from_settings(cls) -> "WhatsAppNotifier":
        return cls(
            account_sid=settings.twilio_account_sid,
            auth_token=settings.twilio_auth_token,
            from_address=settings.twilio_whatsapp_from,
        )

    @property
    def enabled(self) -> bool:
        return bool(self.account_sid and self.auth_token and self.from_address)

    async def send(self, to_address: str, body: str) -> bool:
        """Send one message.

        Returns False without calling Twilio when credentials are not configured.
        Raises NotificationError on transport errors and non-2xx responses.
        """
        if not self.enabled:
            logger.debug("Twilio not configured, skipping message to %s", to_address)
            return False
        if not to_address:
            raise NotificationError("No recipient address")

        data = {"To": to_address, "From": self.from_address, "Body": body}
        try:
            response = await self._client.post(
                f"{TWILIO_API_BASE}/Accounts/{self.account_sid}/Messages.json",
                auth=(self.account_sid, self.auth_token),
                data=data,
            )
        except httpx.HTTPError as e:
            raise NotificationError(f"Twilio request failed: {e}") from e

        if response.status_code not in (200, 201):
            try:
                error_data = response.json()
            except ValueError:
                error_data = {}
            error_code = error_data.get("code")
            error_message = error_data.get("message", response.text)
            raise NotificationError(f"Twilio API error [{error_code}]: {error_message}")

        try:
            sid = response.json().get("sid")
        except ValueError as e:
            raise NotificationError(f"Twilio returned an unreadable response: {response.text[:200]}") from e
        logger.info("WhatsApp message sent to %s (SID: %s)", to_address, sid)
        return True

    async def aclose(self) -> None:
        await self._client.aclose()
