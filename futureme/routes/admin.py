"""
Admin API Routes

Operational endpoints around the message processor:
- Processor stats and message counts
- Manual processing pass
- Failed message listing and manual reset
- Test email
- Recent logs
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, EmailStr
from typing import Optional

from futureme.email.dispatcher import send_test_email
from futureme.errors import StoreError, TransportError
from futureme.processor.scheduler import MessageProcessor, PassOutcome, get_message_processor
from futureme.security import require_admin
from futureme.utils.logging import LogLevel, admin_logger as logger, get_log_buffer

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[require_admin])


class TestEmailRequest(BaseModel):
    email: EmailStr


def get_processor() -> MessageProcessor:
    """Dependency returning the running processor; overridden in tests."""
    processor = get_message_processor()
    if processor is None:
        raise HTTPException(status_code=503, detail="Message processor is not running")
    return processor


# ===== Processor =====

@router.get("/stats")
async def get_stats(processor: MessageProcessor = Depends(get_processor)):
    """Processor state plus message counts by status."""
    stats = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "processor": processor.get_stats(),
        "messages": None,
    }

    try:
        counts = await processor.store.count_by_status()
        counts["total"] = sum(counts.values())
        stats["messages"] = counts
    except StoreError as e:
        logger.error("Failed to count messages", error=str(e))
        stats["messages_error"] = str(e)

    return stats


@router.post("/process-messages")
async def process_messages(processor: MessageProcessor = Depends(get_processor)):
    """Run a processing pass now. 409 when a pass is already running."""
    result = await processor.trigger_now()

    if result.outcome == PassOutcome.SKIPPED:
        raise HTTPException(status_code=409, detail="A processing pass is already running")

    return {
        "message": "Message processing triggered successfully",
        "result": result.to_dict(),
    }


# ===== Failed Messages =====

@router.get("/failed-messages")
async def get_failed_messages(
    limit: int = Query(100, ge=1, le=500),
    processor: MessageProcessor = Depends(get_processor),
):
    try:
        failed = await processor.store.list_failed(limit=limit)
    except StoreError as e:
        logger.error("Failed to list failed messages", error=str(e))
        raise HTTPException(status_code=500, detail="Failed to get failed messages")

    return {"failed_messages": [m.to_summary() for m in failed]}


@router.post("/retry-message/{message_id}")
async def retry_message(message_id: str, processor: MessageProcessor = Depends(get_processor)):
    """Reset a FAILED message to SCHEDULED so the next pass picks it up."""
    try:
        reset = await processor.transitions.reset_failed(message_id)
    except StoreError as e:
        logger.error("Failed to reset message", message_id=message_id, error=str(e))
        raise HTTPException(status_code=500, detail="Failed to retry message")

    if not reset:
        raise HTTPException(status_code=404, detail="Failed message not found")

    return {"message": "Message reset to scheduled status", "message_id": message_id}


# ===== Email =====

@router.post("/test-email")
async def post_test_email(
    request: TestEmailRequest,
    processor: MessageProcessor = Depends(get_processor),
):
    try:
        email_id = await send_test_email(processor.dispatcher, request.email)
    except TransportError as e:
        logger.error("Test email failed", email=request.email, error=e.detail)
        raise HTTPException(status_code=502, detail="Failed to send test email")

    return {"message": f"Test email sent to {request.email}", "email_id": email_id}


# ===== Logs =====

@router.get("/logs")
async def get_logs(
    limit: int = Query(100, ge=1, le=500),
    level: Optional[str] = Query(None, description="Filter by level (debug, info, warning, error, critical)"),
    source: Optional[str] = Query(None, description="Filter by source"),
    message_id: Optional[str] = Query(None, description="Only entries about this message"),
):
    """Get recent log entries from the in-memory buffer."""
    log_buffer = get_log_buffer()

    level_filter = None
    if level:
        try:
            level_filter = LogLevel(level.lower())
        except ValueError:
            raise HTTPException(status_code=400, detail=f"Invalid log level: {level}")

    return {
        "logs": log_buffer.get_recent(limit=limit, level=level_filter, source=source, message_id=message_id),
        "stats": log_buffer.get_stats()
    }


@router.get("/logs/errors")
async def get_error_logs(limit: int = Query(50, ge=1, le=200)):
    return {"errors": get_log_buffer().get_errors(limit=limit)}


@router.post("/logs/clear")
async def clear_logs():
    get_log_buffer().clear()
    logger.info("Log buffer cleared by admin")
    return {"status": "cleared"}
