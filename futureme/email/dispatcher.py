"""
Delivery Dispatcher

Composes the delivered-message email and hands it to the transport,
keeping consecutive sends at least ``send_interval`` seconds apart and
bounding each transport call with ``timeout``.
"""

import asyncio
import time
from datetime import date, datetime, timezone
from typing import Optional

from futureme.errors import TransportError
from futureme.utils.logging import email_logger as logger

from .templates import DEFAULT_BASE_URL, render_message_html, render_message_text
from .transport import Transport

SUBJECT_PREFIX = "📧 "


class DeliveryDispatcher:
    """
    Sends one message per call. Does not retry.

    Sends through one dispatcher are serialized, so a test email sent from
    the admin routes during a pass still waits its turn. The interval runs
    from the end of one transport call to the start of the next on a
    monotonic clock, whether the previous send succeeded or not.
    """

    def __init__(
        self,
        transport: Transport,
        from_address: str,
        from_name: Optional[str] = None,
        send_interval: float = 0.1,
        timeout: Optional[float] = 30.0,
        base_url: str = DEFAULT_BASE_URL,
    ):
        self.transport = transport
        self.from_address = from_address
        self.from_name = from_name
        self.send_interval = send_interval
        self.timeout = timeout
        self.base_url = base_url
        self._last_send_finished: Optional[float] = None
        self._send_lock = asyncio.Lock()

    async def _wait_for_slot(self):
        if self._last_send_finished is None or self.send_interval <= 0:
            return
        remaining = self.send_interval - (time.monotonic() - self._last_send_finished)
        # asyncio may wake marginally early, so re-check until the interval has passed
        while remaining > 0:
            await asyncio.sleep(remaining)
            remaining = self.send_interval - (time.monotonic() - self._last_send_finished)

    async def send(
        self,
        recipient: str,
        subject: str,
        body: str,
        sender_name: str,
        delivered_on: Optional[date] = None,
    ) -> Optional[str]:
        """
        Compose and send one message.

        Returns the transport's message id. Raises TransportError on any
        transport failure, including a timeout.
        """
        delivered_on = delivered_on or datetime.now(timezone.utc).date()
        html_body = render_message_html(subject, body, sender_name, delivered_on, self.base_url)
        text_body = render_message_text(subject, body, sender_name, delivered_on, self.base_url)

        async with self._send_lock:
            await self._wait_for_slot()
            logger.info("Sending email", to=recipient)
            return await self._send_now(recipient, subject, text_body, html_body)

    async def _send_now(self, recipient: str, subject: str, text_body: str, html_body: str) -> Optional[str]:
        try:
            return await asyncio.wait_for(
                self.transport.send(
                    to=recipient,
                    from_address=self.from_address,
                    from_name=self.from_name,
                    subject=f"{SUBJECT_PREFIX}{subject}",
                    text_body=text_body,
                    html_body=html_body,
                ),
                timeout=self.timeout,
            )
        except TransportError:
            raise
        except asyncio.TimeoutError as e:
            raise TransportError(f"Transport did not answer within {self.timeout}s") from e
        except Exception as e:
            raise TransportError(f"Transport error: {e}") from e
        finally:
            self._last_send_finished = time.monotonic()


def build_dispatcher(transport: Optional[Transport] = None) -> DeliveryDispatcher:
    """Dispatcher wired from the global config, using Resend unless a transport is given."""
    from futureme.config import config
    from .transport import ResendTransport

    return DeliveryDispatcher(
        transport=transport or ResendTransport(config.RESEND_API_KEY),
        from_address=config.FROM_EMAIL,
        from_name=config.FROM_NAME,
        send_interval=config.SEND_INTERVAL_SECONDS,
        timeout=config.DISPATCH_TIMEOUT_SECONDS,
        base_url=config.APP_BASE_URL,
    )


async def send_test_email(dispatcher: DeliveryDispatcher, recipient: str) -> Optional[str]:
    """Send a fixed message to check that delivery works end to end."""
    return await dispatcher.send(
        recipient=recipient,
        subject="Test Message from FutureMe",
        body=(
            "This is a test message to verify email delivery is working correctly.\n\n"
            "If you received this, everything is set up properly!"
        ),
        sender_name="Test User",
    )
