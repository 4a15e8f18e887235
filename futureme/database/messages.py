"""
Message Store

Scheduled messages and the narrow store interface the processor depends
on. The Supabase implementation reads and writes the ``messages`` table;
the in-memory implementation lives in ``memory.py``.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Dict, Any, List

from supabase import Client

from futureme.errors import StoreError
from futureme.utils.logging import store_logger as logger

from .client import get_supabase_admin_client


class MessageStatus(str, Enum):
    """Status values for scheduled messages"""
    SCHEDULED = "SCHEDULED"
    DELIVERED = "DELIVERED"
    FAILED = "FAILED"


# FAILED -> SCHEDULED is the manual reset; the processor never performs it.
ALLOWED_TRANSITIONS: Dict[MessageStatus, frozenset] = {
    MessageStatus.SCHEDULED: frozenset({MessageStatus.DELIVERED, MessageStatus.FAILED}),
    MessageStatus.FAILED: frozenset({MessageStatus.SCHEDULED}),
    MessageStatus.DELIVERED: frozenset(),
}


def can_transition(current: MessageStatus, new: MessageStatus) -> bool:
    return new in ALLOWED_TRANSITIONS[current]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass
class Message:
    """A message waiting for, or past, its delivery time. Content is always ciphertext."""

    id: str
    owner_id: str
    recipient_email: str
    encrypted_subject: str
    encrypted_body: str
    delivery_at: datetime
    status: MessageStatus = MessageStatus.SCHEDULED
    created_at: datetime = field(default_factory=_utcnow)
    delivered_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Message":
        return cls(
            id=str(row["id"]),
            owner_id=str(row["user_id"]),
            recipient_email=row["recipient_email"],
            encrypted_subject=row["encrypted_subject"],
            encrypted_body=row["encrypted_message"],
            delivery_at=_parse_timestamp(row["delivery_at"]),
            status=MessageStatus(row["status"]),
            created_at=_parse_timestamp(row.get("created_at")) or _utcnow(),
            delivered_at=_parse_timestamp(row.get("delivered_at")),
        )

    def to_summary(self) -> Dict[str, Any]:
        """Metadata only; never includes subject or body."""
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "recipient_email": self.recipient_email,
            "delivery_at": self.delivery_at.isoformat(),
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
            "delivered_at": self.delivered_at.isoformat() if self.delivered_at else None,
        }


class MessageStore(ABC):
    """
    Persistence operations used by the processor and its collaborators.

    The processor only needs ``find_due``, ``commit_status`` and
    ``get_owner_display_name``. The remaining methods serve message
    creation and the admin routes. Implementations raise StoreError
    when the backend is unavailable.
    """

    # ── Processor ─────────────────────────────────────────

    @abstractmethod
    async def find_due(self, now: datetime, limit: Optional[int] = None) -> List[Message]:
        """SCHEDULED messages with delivery_at <= now, oldest delivery_at first."""

    @abstractmethod
    async def commit_status(
        self,
        message_id: str,
        status: MessageStatus,
        delivered_at: Optional[datetime] = None,
    ) -> bool:
        """
        Write the outcome of a send attempt.

        Only applies while the message is still SCHEDULED. Returns False when
        no row matched (cancelled or already settled).
        """

    @abstractmethod
    async def get_owner_display_name(self, owner_id: str) -> Optional[str]:
        ...

    # ── Collaborators ─────────────────────────────────────

    @abstractmethod
    async def create_message(self, message: Message) -> Message:
        ...

    @abstractmethod
    async def get_message(self, message_id: str) -> Optional[Message]:
        ...

    @abstractmethod
    async def list_failed(self, limit: int = 100) -> List[Message]:
        ...

    @abstractmethod
    async def count_by_status(self) -> Dict[str, int]:
        ...

    @abstractmethod
    async def reset_to_scheduled(self, message_id: str) -> bool:
        """FAILED -> SCHEDULED. Returns False unless the message was FAILED."""


class SupabaseMessageStore(MessageStore):
    """
    MessageStore backed by the Supabase ``messages`` and ``users`` tables.

    Every Supabase exception is re-raised as StoreError so the processor can
    apply its per-pass and per-message rules without knowing the backend.
    """

    def __init__(self, client: Optional[Client] = None):
        self._client = client

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = get_supabase_admin_client()
        return self._client

    # =========================================================================
    # Processor Queries
    # =========================================================================

    async def find_due(self, now: datetime, limit: Optional[int] = None) -> List[Message]:
        try:
            query = (
                self.client.table("messages")
                .select("*")
                .eq("status", MessageStatus.SCHEDULED.value)
                .lte("delivery_at", now.isoformat())
                .order("delivery_at")
            )
            if limit:
                query = query.limit(limit)
            result = query.execute()
        except Exception as e:
            raise StoreError(f"Due message query failed: {e}") from e

        return [Message.from_row(row) for row in result.data]

    async def commit_status(
        self,
        message_id: str,
        status: MessageStatus,
        delivered_at: Optional[datetime] = None,
    ) -> bool:
        try:
            result = (
                self.client.table("messages")
                .update({
                    "status": status.value,
                    "delivered_at": delivered_at.isoformat() if delivered_at else None,
                })
                .eq("id", message_id)
                .eq("status", MessageStatus.SCHEDULED.value)
                .execute()
            )
        except Exception as e:
            raise StoreError(f"Status update failed: {e}", message_id=message_id) from e

        return bool(result.data)

    async def get_owner_display_name(self, owner_id: str) -> Optional[str]:
        try:
            result = (
                self.client.table("users")
                .select("name")
                .eq("id", owner_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            raise StoreError(f"Owner lookup failed: {e}") from e

        return result.data[0].get("name") if result.data else None

    # =========================================================================
    # Collaborator Operations
    # =========================================================================

    async def create_message(self, message: Message) -> Message:
        row = {
            "user_id": message.owner_id,
            "recipient_email": message.recipient_email,
            "encrypted_subject": message.encrypted_subject,
            "encrypted_message": message.encrypted_body,
            "delivery_at": message.delivery_at.isoformat(),
            "status": message.status.value,
        }
        if message.id:
            row["id"] = message.id

        try:
            result = self.client.table("messages").insert(row).execute()
        except Exception as e:
            raise StoreError(f"Message insert failed: {e}") from e

        created = Message.from_row(result.data[0])
        logger.info("Message stored", message_id=created.id, delivery_at=created.delivery_at.isoformat())
        return created

    async def get_message(self, message_id: str) -> Optional[Message]:
        try:
            result = self.client.table("messages").select("*").eq("id", message_id).execute()
        except Exception as e:
            raise StoreError(f"Message lookup failed: {e}", message_id=message_id) from e
        return Message.from_row(result.data[0]) if result.data else None

    async def list_failed(self, limit: int = 100) -> List[Message]:
        try:
            result = (
                self.client.table("messages")
                .select("*")
                .eq("status", MessageStatus.FAILED.value)
                .order("created_at", desc=True)
                .limit(limit)
                .execute()
            )
        except Exception as e:
            raise StoreError(f"Failed message query failed: {e}") from e
        return [Message.from_row(row) for row in result.data]

    async def count_by_status(self) -> Dict[str, int]:
        counts = {}
        try:
            for status in MessageStatus:
                result = (
                    self.client.table("messages")
                    .select("id", count="exact")
                    .eq("status", status.value)
                    .execute()
                )
                counts[status.value.lower()] = result.count or 0
        except Exception as e:
            raise StoreError(f"Status count failed: {e}") from e
        return counts

    async def reset_to_scheduled(self, message_id: str) -> bool:
        try:
            result = (
                self.client.table("messages")
                .update({"status": MessageStatus.SCHEDULED.value, "delivered_at": None})
                .eq("id", message_id)
                .eq("status", MessageStatus.FAILED.value)
                .execute()
            )
        except Exception as e:
            raise StoreError(f"Reset failed: {e}", message_id=message_id) from e
        return bool(result.data)
