"""
Message Processor

Background worker that delivers scheduled messages when they fall due.

- Runs every PROCESSOR_INTERVAL_SECONDS, plus one warm-up pass shortly after start
- Selects SCHEDULED messages with delivery_at <= now, oldest first
- Decrypts each one right before sending it through the dispatcher
- Marks each message DELIVERED or FAILED

Only one pass runs at a time in a process. A tick or manual trigger that
arrives while a pass is running is skipped, not queued. Nothing here
coordinates separate processes: two instances pointed at the same store
can both deliver the same message.
"""

import asyncio
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, Iterator, Optional, Dict, Any, Set

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.schedulers.base import STATE_STOPPED
from apscheduler.triggers.date import DateTrigger
from apscheduler.triggers.interval import IntervalTrigger

from futureme.database.messages import Message, MessageStore
from futureme.email.dispatcher import DeliveryDispatcher
from futureme.errors import DeliveryError, StoreError
from futureme.utils.encryption import PayloadCodec
from futureme.utils.logging import processor_logger as logger

from .selector import DueMessageSelector
from .stats import ProcessorStats
from .status import StatusTransitionManager

DEFAULT_SENDER_NAME = "Future You"


class PassOutcome(str, Enum):
    COMPLETED = "completed"
    SKIPPED = "skipped"
    ABORTED = "aborted"


@dataclass
class PassResult:
    """Summary of one processing pass, returned by trigger_now()."""

    outcome: PassOutcome
    started_at: datetime
    completed_at: Optional[datetime] = None
    selected: int = 0
    delivered: int = 0
    failed: int = 0
    commit_errors: int = 0
    error: Optional[str] = None

    @property
    def duration_ms(self) -> Optional[int]:
        if self.completed_at is None:
            return None
        return int((self.completed_at - self.started_at).total_seconds() * 1000)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "outcome": self.outcome.value,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "selected": self.selected,
            "delivered": self.delivered,
            "failed": self.failed,
            "commit_errors": self.commit_errors,
            "error": self.error,
            "duration_ms": self.duration_ms,
        }


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MessageProcessor:

    def __init__(
        self,
        store: MessageStore,
        codec: PayloadCodec,
        dispatcher: DeliveryDispatcher,
        interval_seconds: int = 60,
        warmup_seconds: float = 5.0,
        batch_limit: Optional[int] = None,
        default_sender_name: str = DEFAULT_SENDER_NAME,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.store = store
        self.codec = codec
        self.dispatcher = dispatcher
        self.interval = interval_seconds
        self.warmup = warmup_seconds
        self.default_sender_name = default_sender_name
        self.clock = clock

        self.selector = DueMessageSelector(store, limit=batch_limit)
        self.transitions = StatusTransitionManager(store, clock=clock)
        self.stats = ProcessorStats()
        self.scheduler = AsyncIOScheduler(timezone=timezone.utc)
        self._started = False
        self._pass_lock = threading.Lock()
        self._pass_tasks: Set[asyncio.Task] = set()

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start(self):
        """Start the periodic timer and queue the warm-up pass. Needs a running event loop."""
        if self._started:
            return

        # shutdown() on a previous scheduler may still be queued on the loop
        if self.scheduler.state != STATE_STOPPED:
            self.scheduler = AsyncIOScheduler(timezone=timezone.utc)

        self.scheduler.add_job(
            self._scheduled_pass,
            trigger=IntervalTrigger(seconds=self.interval),
            id="message_processor",
            name="Deliver due scheduled messages",
            replace_existing=True,
            max_instances=1,
            coalesce=True
        )
        self.scheduler.add_job(
            self._scheduled_pass,
            trigger=DateTrigger(run_date=_utcnow() + timedelta(seconds=self.warmup)),
            id="message_processor_warmup",
            name="Warm-up delivery pass",
            replace_existing=True
        )
        self.scheduler.start()
        self._started = True
        logger.info(
            "Message processor started",
            interval_seconds=self.interval,
            warmup_seconds=self.warmup
        )

    def stop(self):
        """Cancel the timer. A pass already running finishes on its own."""
        if not self._started:
            return
        self._started = False
        self.scheduler.shutdown(wait=False)
        logger.info("Message processor stopped")

    @property
    def running(self) -> bool:
        return self._started

    # =========================================================================
    # Passes
    # =========================================================================

    @contextmanager
    def _exclusive_pass(self) -> Iterator[bool]:
        if not self._pass_lock.acquire(blocking=False):
            yield False
            return

        self.stats.set_processing(True)
        try:
            yield True
        finally:
            self.stats.set_processing(False)
            self._pass_lock.release()

    async def _scheduled_pass(self):
        # The executor cancels its futures on shutdown; the pass itself must run to completion.
        task = asyncio.ensure_future(self.process_due_messages())
        self._pass_tasks.add(task)
        task.add_done_callback(self._pass_tasks.discard)
        await asyncio.shield(task)

    async def trigger_now(self) -> PassResult:
        """Run a pass immediately, unless one is already running."""
        logger.info("Manually triggering message processing")
        return await self.process_due_messages()

    async def process_due_messages(self) -> PassResult:
        """Run one pass. Never raises; the outcome is reported in the result."""
        with self._exclusive_pass() as acquired:
            if not acquired:
                logger.info("Message processor already running, skipping")
                self.stats.record_skipped()
                return PassResult(outcome=PassOutcome.SKIPPED, started_at=self.clock())
            return await self._run_pass()

    async def _run_pass(self) -> PassResult:
        result = PassResult(outcome=PassOutcome.COMPLETED, started_at=self.clock())

        try:
            due = await self.selector.select(result.started_at)
        except Exception as e:
            result.outcome = PassOutcome.ABORTED
            result.error = str(e)
            result.completed_at = self.clock()
            if isinstance(e, StoreError):
                logger.error("Due message selection failed, pass aborted", error=str(e))
            else:
                logger.critical("Unexpected error selecting messages, pass aborted", error=repr(e))
            self.stats.record_aborted(result.to_dict())
            return result

        result.selected = len(due)
        if due:
            logger.info("Processing due messages", count=len(due))

        for message in due:
            await self._process_message(message, result)

        result.completed_at = self.clock()
        self.stats.record_completed(result.to_dict(), result.completed_at)

        if due:
            logger.info(
                "Processing complete",
                delivered=result.delivered,
                failed=result.failed,
                commit_errors=result.commit_errors,
                duration_ms=result.duration_ms
            )
        return result

    async def _process_message(self, message: Message, result: PassResult):
        error: Optional[DeliveryError] = None

        try:
            subject = self.codec.decrypt(message.encrypted_subject)
            body = self.codec.decrypt(message.encrypted_body)
            sender_name = await self._sender_name(message)
            await self.dispatcher.send(
                recipient=message.recipient_email,
                subject=subject,
                body=body,
                sender_name=sender_name,
            )
        except DeliveryError as e:
            e.message_id = message.id
            error = e
        except Exception as e:
            logger.critical("Unexpected error delivering message", message_id=message.id, error=repr(e))
            result.failed += 1
            if not await self.transitions.mark_failed(message):
                result.commit_errors += 1
            return

        if error is not None:
            result.failed += 1
            if not await self.transitions.mark_failed(message, error):
                result.commit_errors += 1
            return

        result.delivered += 1
        logger.info("Message delivered", message_id=message.id)
        if not await self.transitions.mark_delivered(message):
            result.commit_errors += 1

    async def _sender_name(self, message: Message) -> str:
        try:
            name = await self.store.get_owner_display_name(message.owner_id)
        except StoreError as e:
            logger.warning("Owner lookup failed, using default sender name", message_id=message.id, error=str(e))
            return self.default_sender_name
        return name or self.default_sender_name

    # =========================================================================
    # Observability
    # =========================================================================

    def get_stats(self) -> Dict[str, Any]:
        return self.stats.snapshot()


# Global instance
_message_processor: Optional[MessageProcessor] = None


def create_message_processor(
    store: Optional[MessageStore] = None,
    dispatcher: Optional[DeliveryDispatcher] = None,
) -> MessageProcessor:
    """Build a processor from the global config. Defaults to Supabase and Resend."""
    from futureme.config import config
    from futureme.database.messages import SupabaseMessageStore
    from futureme.email.dispatcher import build_dispatcher
    from futureme.utils.encryption import get_codec

    return MessageProcessor(
        store=store or SupabaseMessageStore(),
        codec=get_codec(),
        dispatcher=dispatcher or build_dispatcher(),
        interval_seconds=config.PROCESSOR_INTERVAL_SECONDS,
        warmup_seconds=config.PROCESSOR_WARMUP_SECONDS,
        batch_limit=config.PROCESSOR_BATCH_LIMIT,
    )


def start_message_processor(processor: Optional[MessageProcessor] = None) -> MessageProcessor:
    """Start the global processor. Call during FastAPI startup."""
    global _message_processor

    if _message_processor is None:
        _message_processor = processor or create_message_processor()
        _message_processor.start()
    return _message_processor


def stop_message_processor():
    """Stop the global processor. Call during FastAPI shutdown."""
    global _message_processor

    if _message_processor is not None:
        _message_processor.stop()
        _message_processor = None


def get_message_processor() -> Optional[MessageProcessor]:
    """Get the current processor instance."""
    return _message_processor
