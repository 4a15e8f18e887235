"""Tests for email composition and the delivery dispatcher."""
import asyncio
from datetime import date

import pytest

from conftest import FakeTransport
from futureme.email.dispatcher import DeliveryDispatcher, send_test_email
from futureme.email.templates import render_message_html, render_message_text
from futureme.email.transport import ResendTransport, sender_identity
from futureme.errors import DeliveryErrorKind, TransportError

DAY = date(2031, 4, 9)


class TestTemplates:
    def test_renderings_are_deterministic(self):
        args = ("Hi", "World", "Ada", DAY)
        assert render_message_html(*args) == render_message_html(*args)
        assert render_message_text(*args) == render_message_text(*args)

    def test_text_contains_content_and_date(self):
        text = render_message_text("Hi", "Line 1\nLine 2", "Ada", DAY)
        assert "From: Ada" in text
        assert "Delivered: April 09, 2031" in text
        assert "Subject: Hi" in text
        assert "Line 1\nLine 2" in text

    def test_html_escapes_and_keeps_line_breaks(self):
        html = render_message_html("<b>Hi</b>", "a < b\nnext", "Ada & co", DAY)
        assert "&lt;b&gt;Hi&lt;/b&gt;" in html
        assert "a &lt; b<br>next" in html
        assert "Ada &amp; co" in html
        assert "<b>Hi</b>" not in html


class TestDeliveryDispatcher:
    @pytest.mark.asyncio
    async def test_sends_once_with_both_renderings(self, dispatcher, transport):
        email_id = await dispatcher.send("ada@example.com", "Hi", "World", "Ada", delivered_on=DAY)

        assert email_id == "email_1"
        assert len(transport.sent) == 1
        sent = transport.sent[0]
        assert sent.to == "ada@example.com"
        assert sent.from_address == "hello@futureme.app"
        assert sent.from_name == "FutureMe"
        assert sent.subject == "📧 Hi"
        assert sent.text_body == render_message_text("Hi", "World", "Ada", DAY)
        assert sent.html_body == render_message_html("Hi", "World", "Ada", DAY)

    @pytest.mark.asyncio
    async def test_transport_exception_becomes_transport_error(self):
        dispatcher = DeliveryDispatcher(FakeTransport(fail_with=RuntimeError("550 rejected")), "hello@futureme.app")

        with pytest.raises(TransportError) as exc:
            await dispatcher.send("ada@example.com", "Hi", "World", "Ada")
        assert exc.value.kind == DeliveryErrorKind.TRANSPORT
        assert "550 rejected" in exc.value.detail

    @pytest.mark.asyncio
    async def test_hung_transport_times_out(self):
        transport = FakeTransport(gate=asyncio.Event())
        dispatcher = DeliveryDispatcher(transport, "hello@futureme.app", timeout=0.05)

        with pytest.raises(TransportError, match="did not answer"):
            await dispatcher.send("ada@example.com", "Hi", "World", "Ada")

    @pytest.mark.asyncio
    async def test_minimum_interval_between_sends(self):
        transport = FakeTransport()
        dispatcher = DeliveryDispatcher(transport, "hello@futureme.app", send_interval=0.05)

        await dispatcher.send("a@example.com", "1", "1", "Ada")
        await dispatcher.send("b@example.com", "2", "2", "Ada")
        await dispatcher.send("c@example.com", "3", "3", "Ada")

        gaps = [b.at - a.at for a, b in zip(transport.sent, transport.sent[1:])]
        assert all(gap >= 0.05 for gap in gaps)

    @pytest.mark.asyncio
    async def test_interval_applies_after_failed_send(self):
        transport = FakeTransport()
        transport.fail_for.add("bad@example.com")
        dispatcher = DeliveryDispatcher(transport, "hello@futureme.app", send_interval=0.05)

        with pytest.raises(TransportError):
            await dispatcher.send("bad@example.com", "1", "1", "Ada")
        await dispatcher.send("good@example.com", "2", "2", "Ada")

        assert transport.sent[1].at - transport.sent[0].at >= 0.05

    @pytest.mark.asyncio
    async def test_concurrent_sends_are_spaced(self):
        transport = FakeTransport()
        dispatcher = DeliveryDispatcher(transport, "hello@futureme.app", send_interval=0.05)

        await asyncio.gather(
            dispatcher.send("a@example.com", "1", "1", "Ada"),
            dispatcher.send("b@example.com", "2", "2", "Ada"),
        )

        assert len(transport.sent) == 2
        assert transport.sent[1].at - transport.sent[0].at >= 0.05

    @pytest.mark.asyncio
    async def test_send_test_email(self, dispatcher, transport):
        await send_test_email(dispatcher, "ops@example.com")
        assert transport.sent[0].subject == "📧 Test Message from FutureMe"
        assert "From: Test User" in transport.sent[0].text_body


class TestResendTransport:
    def test_sender_identity(self):
        assert sender_identity("hello@futureme.app", "FutureMe") == "FutureMe <hello@futureme.app>"
        assert sender_identity("hello@futureme.app", None) == "hello@futureme.app"

    @pytest.mark.asyncio
    async def test_missing_api_key_is_transport_error(self):
        with pytest.raises(TransportError):
            await ResendTransport(None).send("a@example.com", "hello@futureme.app", "FutureMe", "s", "t", "h")

    @pytest.mark.asyncio
    async def test_sends_through_resend(self, monkeypatch):
        captured = {}

        def fake_send(params):
            captured.update(params)
            return {"id": "re_123"}

        monkeypatch.setattr("resend.Emails.send", fake_send)

        email_id = await ResendTransport("re_key").send(
            "a@example.com", "hello@futureme.app", "FutureMe", "📧 Hi", "text", "<p>html</p>"
        )

        assert email_id == "re_123"
        assert captured["from"] == "FutureMe <hello@futureme.app>"
        assert captured["to"] == ["a@example.com"]
        assert captured["text"] == "text"
        assert captured["headers"]["X-Message-Source"] == "FutureMe-Scheduler"

    @pytest.mark.asyncio
    async def test_resend_failure_is_transport_error(self, monkeypatch):
        def fake_send(params):
            raise ValueError("invalid from address")

        monkeypatch.setattr("resend.Emails.send", fake_send)

        with pytest.raises(TransportError, match="invalid from address"):
            await ResendTransport("re_key").send("a@example.com", "x@y.z", None, "s", "t", "h")
