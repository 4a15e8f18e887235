"""
Email module for FutureMe.

Composes delivered messages and sends them through Resend.
"""

from futureme.email.dispatcher import (
    DeliveryDispatcher,
    build_dispatcher,
    send_test_email,
)
from futureme.email.transport import ResendTransport, Transport

__all__ = [
    "DeliveryDispatcher",
    "build_dispatcher",
    "send_test_email",
    "ResendTransport",
    "Transport",
]
