"""
Message scheduling.

Creation-side counterpart of the processor: validates what the user
wrote, encrypts it with the same codec the processor decrypts with, and
stores it as SCHEDULED.
"""

from datetime import datetime, timezone
from typing import Optional

from futureme.database.messages import Message, MessageStatus, MessageStore
from futureme.errors import MessageValidationError
from futureme.utils.encryption import PayloadCodec
from futureme.utils.logging import get_logger
from futureme.utils.validation import parse_delivery_at, validate_email, validate_message_data

logger = get_logger("scheduling")


async def schedule_message(
    store: MessageStore,
    codec: PayloadCodec,
    owner_id: str,
    recipient_email: str,
    subject: str,
    body: str,
    delivery_at: datetime | str,
    now: Optional[datetime] = None,
) -> Message:
    """
    Validate, encrypt and store a new message.

    Raises:
        MessageValidationError: listing every problem with the input
        StoreError: when the store rejects the insert
        ValueError: when the codec has no encryption key
    """
    now = now or datetime.now(timezone.utc)
    errors = validate_message_data(subject, body, delivery_at, now=now)
    if not validate_email(recipient_email):
        errors.append("Recipient email is invalid")
    if errors:
        raise MessageValidationError(errors)

    message = Message(
        id="",
        owner_id=owner_id,
        recipient_email=recipient_email,
        encrypted_subject=codec.encrypt(subject.strip()),
        encrypted_body=codec.encrypt(body.strip()),
        delivery_at=parse_delivery_at(delivery_at),
        status=MessageStatus.SCHEDULED,
        created_at=now,
    )
    created = await store.create_message(message)
    logger.info("Message scheduled", message_id=created.id, delivery_at=created.delivery_at.isoformat())
    return created
