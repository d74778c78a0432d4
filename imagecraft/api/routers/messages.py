"""
Message API endpoints.

Routes:
- GET /messages/{message_id} - Polling read model
- GET /messages/{message_id}/events - Progress as Server-Sent Events (SSE)
- GET /messages?session_id=... - Messages of a chat session

Dependencies: imagecraft.application.services
System role: Generation progress HTTP API
"""

import json
import logging
from collections.abc import AsyncGenerator
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse

from imagecraft.api.deps import get_message_service, get_poller_config
from imagecraft.application.services import MessagePoller, MessageService, PollerConfig
from imagecraft.core.exceptions import MessageNotFoundError, PollingTimeoutError
from imagecraft.models.message import MessageSnapshot

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/messages", tags=["messages"])


def _sse(event: str, data: dict) -> str:
    return f"event: {event}\ndata: {json.dumps(data)}\n\n"


@router.get("", response_model=list[MessageSnapshot])
async def list_messages(
    session_id: UUID,
    message_service: MessageService = Depends(get_message_service),
) -> list[MessageSnapshot]:
    """
    Messages of a chat session, oldest first.

    Lets a reconnecting client rebuild every image message of the
    conversation, including ones still generating.
    """
    return await message_service.list_session_messages(session_id)


@router.get("/{message_id}", response_model=MessageSnapshot)
async def get_message(
    message_id: UUID,
    message_service: MessageService = Depends(get_message_service),
) -> MessageSnapshot:
    """
    Current state of a message.

    Clients poll this every few seconds until status is completed,
    partial or failed. Images already in image_urls are never removed.

    Raises:
        HTTPException(404): Message not found
    """
    try:
        return await message_service.get_snapshot(message_id)
    except MessageNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)


@router.get("/{message_id}/events")
async def message_events(
    message_id: UUID,
    message_service: MessageService = Depends(get_message_service),
    poller_config: PollerConfig = Depends(get_poller_config),
) -> StreamingResponse:
    """
    Stream message progress using Server-Sent Events (SSE).

    SSE Format:
        event: snapshot
        data: {"id": "...", "status": "generating", "image_urls": [...], ...}

        event: complete
        data: {"id": "...", "status": "partial", ...}

        event: error
        data: {"code": "...", "message": "..."}

    Raises:
        HTTPException(404): Message not found
    """
    logger.info(f"{__name__}:message_events - START message_id={message_id}")
    try:
        await message_service.get_snapshot(message_id)
    except MessageNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)

    poller = MessagePoller(message_service.get_snapshot, poller_config)

    async def event_generator() -> AsyncGenerator[str, None]:
        """Generate SSE events from the message poller."""
        try:
            async for snapshot in poller.watch(message_id):
                payload = snapshot.model_dump(mode="json")
                yield _sse("complete" if snapshot.is_terminal else "snapshot", payload)
            logger.info(f"{__name__}:message_events - Stream completed message_id={message_id}")

        except PollingTimeoutError as e:
            logger.warning(f"{__name__}:message_events - {e.message}")
            yield _sse("error", {"code": "POLLING_TIMEOUT", "message": e.message})

        except MessageNotFoundError as e:
            yield _sse("error", {"code": "MESSAGE_NOT_FOUND", "message": e.message})

        except Exception as e:
            logger.error(f"{__name__}:message_events - {type(e).__name__}: {e}")
            yield _sse("error", {"code": "PROCESSING_ERROR", "message": str(e)})

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",  # Disable nginx buffering
        },
    )
