"""Utility modules for FutureMe."""

from futureme.utils.logging import (
    get_logger,
    get_log_buffer,
    configure_logging,
    LogLevel,
    LogEntry,
    AppLogger,
    processor_logger,
    email_logger,
    crypto_logger,
    store_logger,
    admin_logger,
)

__all__ = [
    "get_logger",
    "get_log_buffer",
    "configure_logging",
    "LogLevel",
    "LogEntry",
    "AppLogger",
    "processor_logger",
    "email_logger",
    "crypto_logger",
    "store_logger",
    "admin_logger",
]
