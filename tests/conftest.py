"""Shared test fixtures for the FutureMe delivery engine."""
import asyncio
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest

from futureme.database.memory import InMemoryMessageStore
from futureme.database.messages import Message, MessageStatus
from futureme.email.dispatcher import DeliveryDispatcher
from futureme.email.transport import Transport
from futureme.processor.scheduler import MessageProcessor
from futureme.utils.encryption import PayloadCodec

TEST_KEY = "test-encryption-key"


@dataclass
class SentEmail:
    to: str
    from_address: str
    from_name: Optional[str]
    subject: str
    text_body: str
    html_body: str
    at: float


class FakeTransport(Transport):
    """Records every send. Optionally fails, or blocks until ``gate`` is set."""

    def __init__(self, fail_with: Optional[Exception] = None, gate: Optional[asyncio.Event] = None):
        self.sent: list[SentEmail] = []
        self.fail_with = fail_with
        self.fail_for: set[str] = set()
        self.gate = gate

    async def send(self, to, from_address, from_name, subject, text_body, html_body):
        self.sent.append(SentEmail(to, from_address, from_name, subject, text_body, html_body, time.monotonic()))
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_with is not None or to in self.fail_for:
            raise self.fail_with or RuntimeError("mailbox unavailable")
        return f"email_{len(self.sent)}"


@pytest.fixture
def codec() -> PayloadCodec:
    return PayloadCodec(TEST_KEY)


@pytest.fixture
def store() -> InMemoryMessageStore:
    return InMemoryMessageStore(owners={"user_1": "Ada"})


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def dispatcher(transport) -> DeliveryDispatcher:
    return DeliveryDispatcher(
        transport=transport,
        from_address="hello@futureme.app",
        from_name="FutureMe",
        send_interval=0.0,
        timeout=2.0,
    )


@pytest.fixture
def processor(store, codec, dispatcher) -> MessageProcessor:
    return MessageProcessor(store=store, codec=codec, dispatcher=dispatcher)


@pytest.fixture
def add_message(store, codec):
    """Insert a message directly, bypassing creation-time validation."""

    async def _add(
        message_id: str,
        delivery_at: datetime,
        subject: str = "Hi",
        body: str = "World",
        recipient: str = "ada@example.com",
        owner_id: str = "user_1",
        status: MessageStatus = MessageStatus.SCHEDULED,
    ) -> Message:
        return await store.create_message(Message(
            id=message_id,
            owner_id=owner_id,
            recipient_email=recipient,
            encrypted_subject=codec.encrypt(subject),
            encrypted_body=codec.encrypt(body),
            delivery_at=delivery_at,
            status=status,
        ))

    return _add


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def seconds_ago(seconds: float) -> datetime:
    return utcnow() - timedelta(seconds=seconds)
