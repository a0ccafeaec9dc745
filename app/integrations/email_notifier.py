"""
Outbound email notifications via the Resend HTTP API.

Delivery is best-effort: every failure is logged and swallowed so a
lifecycle operation never fails because an email could not be sent.
Without RESEND_API_KEY the would-be email is only logged.
"""
from __future__ import annotations

import html
import logging
from typing import Any

import aiohttp

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"
REQUEST_TIMEOUT_SECONDS = 10


def format_price(price: float) -> str:
    """Render a price the way users typed it: 100 -> '100', 99.5 -> '99.5'."""
    value = float(price)
    return str(int(value)) if value.is_integer() else str(value)


def _esc(val: Any) -> str:
    """HTML-escape helper."""
    return html.escape(str(val)) if val else ""


class EmailNotifier:
    """Fire-and-forget email collaborator."""

    def __init__(
        self,
        api_key: str | None,
        email_from: str = "onboarding@resend.dev",
        session: aiohttp.ClientSession | None = None,
    ):
        self.api_key = api_key
        self.email_from = email_from
        self._session = session

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=REQUEST_TIMEOUT_SECONDS)
            )
        return self._session

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()

    async def send(self, to: str, subject: str, body: str) -> bool:
        """Send one email. Returns True if the provider accepted it."""
        if not self.enabled:
            logger.info(f"📧 Email notification (Resend not configured): to={to} subject={subject!r}")
            return False

        payload: dict[str, Any] = {
            "from": self.email_from,
            "to": [to],
            "subject": subject,
            "html": body,
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}

        try:
            session = await self._get_session()
            async with session.post(RESEND_API_URL, json=payload, headers=headers) as resp:
                if resp.status >= 400:
                    detail = await resp.text()
                    logger.error(f"❌ Resend rejected email to {to}: {resp.status} {detail[:200]}")
                    return False
            logger.info(f"📧 Email sent to {to}: {subject!r}")
            return True
        except Exception as e:
            logger.error(f"❌ Error sending email to {to}: {type(e).__name__}: {e}")
            return False

    async def notify_new_offer(
        self,
        client_email: str,
        client_name: str,
        agent_name: str,
        price: float,
        shipment_id: int,
    ) -> bool:
        subject = f"New Offer Received for Shipment #{shipment_id}"
        body = (
            "<h2>New Offer Received</h2>"
            f"<p>Hello {_esc(client_name)},</p>"
            f"<p>You have received a new offer of ${format_price(price)} from {_esc(agent_name)} "
            f"for your shipment #{shipment_id}.</p>"
            "<p>Please log in to your dashboard to view and accept the offer.</p>"
            "<p>Best regards,<br>LogiFlow Team</p>"
        )
        return await self.send(client_email, subject, body)

    async def notify_offer_accepted(
        self,
        agent_email: str,
        agent_name: str,
        price: float,
        shipment_id: int,
    ) -> bool:
        subject = f"Your Offer Has Been Accepted for Shipment #{shipment_id}"
        body = (
            "<h2>Offer Accepted</h2>"
            f"<p>Hello {_esc(agent_name)},</p>"
            f"<p>Great news! Your offer of ${format_price(price)} has been accepted "
            f"for shipment #{shipment_id}.</p>"
            "<p>Please log in to your dashboard to view the shipment details and proceed.</p>"
            "<p>Best regards,<br>LogiFlow Team</p>"
        )
        return await self.send(agent_email, subject, body)
