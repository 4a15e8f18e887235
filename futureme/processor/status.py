"""
Status Transition Manager

Commits the outcome of each send attempt. A failed commit is logged and
reported as False, never raised, so one bad write cannot stop the rest
of the batch.
"""

from datetime import datetime, timezone
from typing import Callable, Optional

from futureme.database.messages import (
    Message,
    MessageStatus,
    MessageStore,
    can_transition,
)
from futureme.errors import DeliveryError, StoreError
from futureme.utils.logging import processor_logger as logger


class StatusTransitionManager:

    def __init__(
        self,
        store: MessageStore,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.store = store
        self.clock = clock

    async def _commit(
        self,
        message: Message,
        status: MessageStatus,
        delivered_at: Optional[datetime] = None,
    ) -> bool:
        if not can_transition(message.status, status):
            logger.error(
                "Rejected status transition",
                message_id=message.id,
                current=message.status.value,
                requested=status.value,
            )
            return False

        try:
            applied = await self.store.commit_status(message.id, status, delivered_at)
        except StoreError as e:
            # The send (if any) already happened; the message stays as stored
            # and may be selected again next pass.
            logger.error(
                "Failed to update message status",
                message_id=message.id,
                status=status.value,
                error=str(e),
            )
            return False

        if not applied:
            logger.warning(
                "Status update matched no scheduled message",
                message_id=message.id,
                status=status.value,
            )
            return False

        message.status = status
        message.delivered_at = delivered_at
        return True

    async def mark_delivered(self, message: Message, now: Optional[datetime] = None) -> bool:
        return await self._commit(message, MessageStatus.DELIVERED, now or self.clock())

    async def mark_failed(self, message: Message, error: Optional[DeliveryError] = None) -> bool:
        if error is not None:
            logger.warning(
                "Marking message failed",
                message_id=message.id,
                kind=error.kind.value,
                error=error.detail,
            )
        return await self._commit(message, MessageStatus.FAILED)

    async def reset_failed(self, message_id: str) -> bool:
        """
        Manual FAILED -> SCHEDULED reset requested from outside the processor.

        Returns False when the message does not exist or is not FAILED.
        StoreError propagates to the caller.
        """
        applied = await self.store.reset_to_scheduled(message_id)
        if applied:
            logger.info("Message reset to scheduled", message_id=message_id)
        return applied
