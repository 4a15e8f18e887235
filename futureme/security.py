"""
Security utilities for the FutureMe admin API.

Admin routes require the X-Admin-Key header to match ADMIN_SECRET_KEY.
When no key is configured the routes are closed, never open.
"""

import hmac
from typing import Optional

from fastapi import Depends, Header, HTTPException


async def verify_admin_key(
    x_admin_key: Optional[str] = Header(None, alias="X-Admin-Key")
) -> str:
    """Reject the request unless it carries the configured admin key."""
    from futureme.config import config

    if not config.ADMIN_SECRET_KEY:
        raise HTTPException(
            status_code=403,
            detail="Admin access denied (ADMIN_SECRET_KEY is not configured)"
        )

    if not x_admin_key or not hmac.compare_digest(
        x_admin_key.encode("utf-8"), config.ADMIN_SECRET_KEY.encode("utf-8")
    ):
        raise HTTPException(status_code=403, detail="Admin access denied")

    return x_admin_key


# Convenience dependency for routes that require admin auth
require_admin = Depends(verify_admin_key)
