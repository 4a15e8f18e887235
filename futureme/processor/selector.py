"""Due-message selection."""

from datetime import datetime
from typing import List, Optional

from futureme.database.messages import Message, MessageStore


class DueMessageSelector:
    """
    Picks the messages a pass should process.

    A message is due when it is SCHEDULED and its delivery time is at or
    before ``now``. Results come back oldest delivery time first. Store
    errors propagate so the caller can abort the pass.
    """

    def __init__(self, store: MessageStore, limit: Optional[int] = None):
        self.store = store
        self.limit = limit

    async def select(self, now: datetime) -> List[Message]:
        return await self.store.find_due(now, limit=self.limit)
