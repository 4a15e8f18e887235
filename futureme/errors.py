"""
Delivery error taxonomy.

Each failure the processor can meet is one of three kinds. Decryption
and transport errors fail the single message they belong to; a store
error aborts the pass when it hits selection and is only logged when it
hits a status commit.
"""

from enum import Enum
from typing import Optional


class DeliveryErrorKind(str, Enum):
    DECRYPTION = "decryption"
    TRANSPORT = "transport"
    STORE = "store"


class DeliveryError(Exception):
    """Base class for failures raised inside a processing pass."""

    kind: DeliveryErrorKind

    def __init__(self, detail: str, message_id: Optional[str] = None):
        super().__init__(detail)
        self.detail = detail
        self.message_id = message_id

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "detail": self.detail,
            "message_id": self.message_id,
        }


class DecryptionError(DeliveryError):
    """Ciphertext could not be decoded, authenticated or read as UTF-8."""

    kind = DeliveryErrorKind.DECRYPTION


class TransportError(DeliveryError):
    """The email transport rejected the send or did not answer in time."""

    kind = DeliveryErrorKind.TRANSPORT


class StoreError(DeliveryError):
    """The message store could not be read or written."""

    kind = DeliveryErrorKind.STORE


class MessageValidationError(ValueError):
    """Raised when a message cannot be scheduled as submitted."""

    def __init__(self, errors: list[str]):
        super().__init__("; ".join(errors))
        self.errors = errors
