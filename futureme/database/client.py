"""
Supabase Client

The processor and the admin routes run server-side with no user session,
so only the service-role client is needed. It bypasses Row Level
Security; never hand it to code acting on behalf of a user.
"""

from functools import lru_cache

from supabase import create_client, Client

from futureme.config import config


class SupabaseClientError(Exception):
    """Raised when the Supabase client cannot be created from config."""


@lru_cache(maxsize=1)
def get_supabase_admin_client() -> Client:
    """Service-role client, created once per process."""
    missing = [
        name for name in ("SUPABASE_URL", "SUPABASE_SERVICE_KEY")
        if not getattr(config, name)
    ]
    if missing:
        raise SupabaseClientError(
            f"{', '.join(missing)} not configured. "
            "Set them in .env or the environment before starting the processor."
        )

    return create_client(config.SUPABASE_URL, config.SUPABASE_SERVICE_KEY)
