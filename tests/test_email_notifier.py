"""
Tests for the Resend email notifier.
"""
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from app.integrations.email_notifier import RESEND_API_URL, EmailNotifier, format_price


def _session(status=200, body="", error=None):
    response = MagicMock()
    response.status = status
    response.text = AsyncMock(return_value=body)

    session = MagicMock()
    session.closed = False
    ctx = MagicMock()
    ctx.__aenter__ = AsyncMock(return_value=response)
    ctx.__aexit__ = AsyncMock(return_value=False)
    if error is not None:
        session.post.side_effect = error
    else:
        session.post.return_value = ctx
    return session


class TestFormatPrice:
    @pytest.mark.parametrize(
        "price, expected", [(100, "100"), (100.0, "100"), (99.5, "99.5"), (0, "0")]
    )
    def test_format(self, price, expected):
        assert format_price(price) == expected


class TestEmailNotifier:
    @pytest.mark.asyncio
    async def test_disabled_without_key(self):
        session = _session()
        notifier = EmailNotifier(api_key=None, session=session)

        assert notifier.enabled is False
        assert await notifier.send("a@example.com", "Hi", "<p>Hi</p>") is False
        session.post.assert_not_called()

    @pytest.mark.asyncio
    async def test_send_posts_to_resend(self):
        session = _session()
        notifier = EmailNotifier(api_key="re_test", email_from="ops@logiflow.dev", session=session)

        assert await notifier.send("a@example.com", "Hi", "<p>Hi</p>") is True

        args, kwargs = session.post.call_args
        assert args[0] == RESEND_API_URL
        assert kwargs["json"] == {
            "from": "ops@logiflow.dev",
            "to": ["a@example.com"],
            "subject": "Hi",
            "html": "<p>Hi</p>",
        }
        assert kwargs["headers"]["Authorization"] == "Bearer re_test"

    @pytest.mark.asyncio
    async def test_provider_error_swallowed(self):
        notifier = EmailNotifier(api_key="re_test", session=_session(status=422, body="bad"))
        assert await notifier.send("a@example.com", "Hi", "<p>Hi</p>") is False

    @pytest.mark.asyncio
    async def test_network_error_swallowed(self):
        session = _session(error=aiohttp.ClientConnectionError("refused"))
        notifier = EmailNotifier(api_key="re_test", session=session)
        assert await notifier.send("a@example.com", "Hi", "<p>Hi</p>") is False

    @pytest.mark.asyncio
    async def test_new_offer_email(self):
        session = _session()
        notifier = EmailNotifier(api_key="re_test", session=session)

        await notifier.notify_new_offer(
            client_email="carla@example.com",
            client_name="Carla",
            agent_name="Alice",
            price=100.0,
            shipment_id=7,
        )

        payload = session.post.call_args.kwargs["json"]
        assert payload["subject"] == "New Offer Received for Shipment #7"
        assert "$100 from Alice" in payload["html"]
        assert "Hello Carla" in payload["html"]

    @pytest.mark.asyncio
    async def test_offer_accepted_email(self):
        session = _session()
        notifier = EmailNotifier(api_key="re_test", session=session)

        await notifier.notify_offer_accepted(
            agent_email="alice@example.com", agent_name="Alice", price=99.5, shipment_id=7
        )

        payload = session.post.call_args.kwargs["json"]
        assert payload["to"] == ["alice@example.com"]
        assert payload["subject"] == "Your Offer Has Been Accepted for Shipment #7"
        assert "$99.5 has been accepted" in payload["html"]

    @pytest.mark.asyncio
    async def test_user_supplied_names_are_escaped(self):
        session = _session()
        notifier = EmailNotifier(api_key="re_test", session=session)

        await notifier.notify_new_offer(
            client_email="carla@example.com",
            client_name="Carla & <b>Co</b>",
            agent_name='<a href="https://evil.example">Click</a>',
            price=100.0,
            shipment_id=7,
        )

        html = session.post.call_args.kwargs["json"]["html"]
        assert "<a href" not in html
        assert "&lt;a href=&quot;https://evil.example&quot;&gt;Click&lt;/a&gt;" in html
        assert "Hello Carla &amp; &lt;b&gt;Co&lt;/b&gt;" in html

    @pytest.mark.asyncio
    async def test_accepted_email_escapes_agent_name(self):
        session = _session()
        notifier = EmailNotifier(api_key="re_test", session=session)

        await notifier.notify_offer_accepted(
            agent_email="alice@example.com", agent_name="<script>x</script>", price=10, shipment_id=7
        )

        html = session.post.call_args.kwargs["json"]["html"]
        assert "<script>" not in html
        assert "Hello &lt;script&gt;x&lt;/script&gt;" in html
