"""
FutureMe Database Layer

Message model, the store interface the processor depends on, and its
Supabase and in-memory implementations.
"""

from .client import get_supabase_admin_client, SupabaseClientError
from .messages import (
    ALLOWED_TRANSITIONS,
    Message,
    MessageStatus,
    MessageStore,
    SupabaseMessageStore,
    can_transition,
)
from .memory import InMemoryMessageStore

__all__ = [
    "get_supabase_admin_client",
    "SupabaseClientError",
    "ALLOWED_TRANSITIONS",
    "Message",
    "MessageStatus",
    "MessageStore",
    "SupabaseMessageStore",
    "InMemoryMessageStore",
    "can_transition",
]
