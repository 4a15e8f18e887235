"""
Email transports.

A transport sends one fully composed email and returns the provider's
message id. ResendTransport is used in production; anything with the
same ``send`` coroutine can stand in for it.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Optional

import resend

from futureme.errors import TransportError
from futureme.utils.logging import email_logger as logger


def sender_identity(from_address: str, from_name: Optional[str]) -> str:
    """Format the From header, e.g. ``FutureMe <hello@futureme.app>``."""
    if from_name:
        return f"{from_name} <{from_address}>"
    return from_address


class Transport(ABC):

    @abstractmethod
    async def send(
        self,
        to: str,
        from_address: str,
        from_name: Optional[str],
        subject: str,
        text_body: str,
        html_body: str,
    ) -> Optional[str]:
        """Send one email. Raises TransportError when the provider rejects it."""


class ResendTransport(Transport):
    """Sends through the Resend API. The SDK is synchronous, so calls run in a worker thread."""

    def __init__(self, api_key: Optional[str]):
        self.api_key = api_key

    def _send_sync(self, params: dict) -> Optional[str]:
        resend.api_key = self.api_key
        response = resend.Emails.send(params)
        return response.get("id") if isinstance(response, dict) else getattr(response, "id", None)

    async def send(
        self,
        to: str,
        from_address: str,
        from_name: Optional[str],
        subject: str,
        text_body: str,
        html_body: str,
    ) -> Optional[str]:
        if not self.api_key:
            raise TransportError("RESEND_API_KEY is not configured")

        params = {
            "from": sender_identity(from_address, from_name),
            "to": [to],
            "subject": subject,
            "text": text_body,
            "html": html_body,
            "headers": {
                "X-Message-Source": "FutureMe-Scheduler",
                "X-Priority": "3",
            },
        }

        try:
            return await asyncio.to_thread(self._send_sync, params)
        except Exception as e:
            logger.error("Resend rejected email", to=to, error=str(e))
            raise TransportError(f"Resend send failed: {e}") from e
