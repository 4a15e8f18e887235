"""
Scheduled delivery engine.

The MessageProcessor selects due messages, decrypts them, sends them
through the dispatcher and records the outcome of each one.
"""

from futureme.processor.scheduler import (
    DEFAULT_SENDER_NAME,
    MessageProcessor,
    PassOutcome,
    PassResult,
    create_message_processor,
    get_message_processor,
    start_message_processor,
    stop_message_processor,
)
from futureme.processor.selector import DueMessageSelector
from futureme.processor.stats import ProcessorStats
from futureme.processor.status import StatusTransitionManager

__all__ = [
    "DEFAULT_SENDER_NAME",
    "MessageProcessor",
    "PassOutcome",
    "PassResult",
    "create_message_processor",
    "get_message_processor",
    "start_message_processor",
    "stop_message_processor",
    "DueMessageSelector",
    "ProcessorStats",
    "StatusTransitionManager",
]
