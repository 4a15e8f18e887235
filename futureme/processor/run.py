#!/usr/bin/env python3
"""
Standalone Message Processor for FutureMe.

Runs the delivery engine without the web server, for deployments that
keep the API and the processor in separate services. Run exactly one of
these per store.

Usage:
    python -m futureme.processor.run
"""

import asyncio
import signal
import sys

from futureme.config import config
from futureme.processor.scheduler import create_message_processor
from futureme.utils.logging import configure_logging, processor_logger as logger


async def main():
    """Run the message processor until SIGINT/SIGTERM."""
    configure_logging(config.LOG_LEVEL)

    print("=" * 50)
    print("FutureMe Message Processor")
    print("=" * 50)

    if not config.supabase_configured:
        print("❌ ERROR: SUPABASE_URL and SUPABASE_SERVICE_KEY are required")
        sys.exit(1)

    processor = create_message_processor()
    stopped = asyncio.Event()

    def shutdown_handler():
        print("\n👋 Shutting down message processor...")
        processor.stop()
        stopped.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, shutdown_handler)

    processor.start()
    print("✅ Message processor running. Press Ctrl+C to stop.")

    await stopped.wait()
    logger.info("Processor exited", stats=processor.get_stats())
    print("Message processor stopped.")


if __name__ == "__main__":
    asyncio.run(main())
