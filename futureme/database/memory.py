"""
InMemoryMessageStore: dict-backed store for development and testing.

Same interface as SupabaseMessageStore. All data is lost on restart.
``fail_next`` lets tests simulate an unavailable backend for one call.
"""

import uuid
from dataclasses import replace
from datetime import datetime
from typing import Optional, Dict, List

from futureme.errors import StoreError
from futureme.utils.logging import store_logger as logger

from .messages import Message, MessageStatus, MessageStore


class InMemoryMessageStore(MessageStore):

    def __init__(self, owners: Optional[Dict[str, str]] = None):
        self._messages: Dict[str, Message] = {}
        self._owners: Dict[str, str] = dict(owners or {})
        self._failures: Dict[str, int] = {}
        logger.debug("In-memory message store initialized")

    def fail_next(self, operation: str, times: int = 1):
        """Make the next ``times`` calls of ``operation`` raise StoreError."""
        self._failures[operation] = self._failures.get(operation, 0) + times

    def _maybe_fail(self, operation: str, message_id: Optional[str] = None):
        remaining = self._failures.get(operation, 0)
        if remaining:
            self._failures[operation] = remaining - 1
            raise StoreError(f"{operation} unavailable", message_id=message_id)

    def add_owner(self, owner_id: str, name: str):
        self._owners[owner_id] = name

    # ── Processor ─────────────────────────────────────────

    async def find_due(self, now: datetime, limit: Optional[int] = None) -> List[Message]:
        self._maybe_fail("find_due")
        due = sorted(
            (
                m for m in self._messages.values()
                if m.status == MessageStatus.SCHEDULED and m.delivery_at <= now
            ),
            key=lambda m: m.delivery_at,
        )
        if limit:
            due = due[:limit]
        return [replace(m) for m in due]

    async def commit_status(
        self,
        message_id: str,
        status: MessageStatus,
        delivered_at: Optional[datetime] = None,
    ) -> bool:
        self._maybe_fail("commit_status", message_id)
        current = self._messages.get(message_id)
        if current is None or current.status != MessageStatus.SCHEDULED:
            return False
        self._messages[message_id] = replace(current, status=status, delivered_at=delivered_at)
        return True

    async def get_owner_display_name(self, owner_id: str) -> Optional[str]:
        self._maybe_fail("get_owner_display_name")
        return self._owners.get(owner_id)

    # ── Collaborators ─────────────────────────────────────

    async def create_message(self, message: Message) -> Message:
        self._maybe_fail("create_message")
        stored = replace(message, id=message.id or uuid.uuid4().hex)
        self._messages[stored.id] = stored
        return replace(stored)

    async def get_message(self, message_id: str) -> Optional[Message]:
        message = self._messages.get(message_id)
        return replace(message) if message else None

    async def list_failed(self, limit: int = 100) -> List[Message]:
        failed = [m for m in self._messages.values() if m.status == MessageStatus.FAILED]
        failed.sort(key=lambda m: m.created_at, reverse=True)
        return [replace(m) for m in failed[:limit]]

    async def count_by_status(self) -> Dict[str, int]:
        counts = {status.value.lower(): 0 for status in MessageStatus}
        for message in self._messages.values():
            counts[message.status.value.lower()] += 1
        return counts

    async def reset_to_scheduled(self, message_id: str) -> bool:
        self._maybe_fail("reset_to_scheduled", message_id)
        current = self._messages.get(message_id)
        if current is None or current.status != MessageStatus.FAILED:
            return False
        self._messages[message_id] = replace(
            current, status=MessageStatus.SCHEDULED, delivered_at=None
        )
        return True
