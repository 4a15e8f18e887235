"""
FastAPI application for the FutureMe API.

Hosts the admin routes and, unless ENABLE_MESSAGE_PROCESSOR is false,
runs the message processor in the same event loop.
"""

from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from futureme.config import config
from futureme.processor.scheduler import (
    get_message_processor,
    start_message_processor,
    stop_message_processor,
)
from futureme.routes.admin import router as admin_router
from futureme.utils.logging import configure_logging, get_logger

logger = get_logger("api")

# Create FastAPI app
app = FastAPI(
    title="FutureMe API",
    description="Send messages to your future self",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Admin-Key"],
)

app.include_router(admin_router)


@app.get("/health")
async def health_check():
    processor = get_message_processor()
    return {
        "status": "OK",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": config.ENVIRONMENT,
        "processor_running": bool(processor and processor.running),
    }


# ===== Startup Event =====

@app.on_event("startup")
async def startup_event():
    """Start the message processor alongside the API."""
    configure_logging(config.LOG_LEVEL)
    print("=" * 60)
    print("FutureMe API Starting...")
    print("=" * 60)
    print(f"   Encryption key: {'✓ Set' if config.encryption_configured else '✗ Missing'}")
    print(f"   Supabase: {'✓ Configured' if config.supabase_configured else '✗ Missing'}")
    print(f"   Resend: {'✓ Configured' if config.email_configured else '✗ Missing'}")

    if not config.ENABLE_MESSAGE_PROCESSOR:
        print("ℹ️  Message processor disabled (ENABLE_MESSAGE_PROCESSOR=false)")
        return

    try:
        start_message_processor()
        print(f"✓ Message processor started (every {config.PROCESSOR_INTERVAL_SECONDS}s)")
    except Exception as e:
        # Keep serving /health so the deployment can report the problem
        logger.critical("Message processor failed to start", error=repr(e))


# ===== Shutdown Event =====

@app.on_event("shutdown")
async def shutdown_event():
    stop_message_processor()
    print("Shutdown complete")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "futureme.api.main:app",
        host="0.0.0.0",
        port=config.API_PORT,
        reload=config.DEBUG
    )
