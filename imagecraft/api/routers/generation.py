"""
Generation API endpoints.

Routes: POST /chat/generate

Dependencies: imagecraft.core.generation, imagecraft.models
System role: Fan-out launch HTTP API
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status

from imagecraft.api.deps import get_orchestrator, get_user_id
from imagecraft.core.exceptions import MessageAlreadyFinalizedError, ValidationError
from imagecraft.core.generation import GenerationOrchestrator
from imagecraft.models.generation import GenerationRequest, GenerationStartedResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["generation"])


@router.post(
    "/generate",
    response_model=GenerationStartedResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def generate(
    request: GenerationRequest,
    user_id: UUID | None = Depends(get_user_id),
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
) -> GenerationStartedResponse:
    """
    Start a multi-provider generation.

    Returns as soon as the message exists; poll GET /messages/{id} or
    subscribe to GET /messages/{id}/events for progress.

    Args:
        request: Prompt, providers and per-provider settings
        user_id: Caller from the X-User-Id header (falls back to the body)
        orchestrator: Injected GenerationOrchestrator

    Returns:
        GenerationStartedResponse: Id of the message being generated

    Raises:
        HTTPException(401): No user id supplied
        HTTPException(409): Supplied message id is already settled
        HTTPException(422): Invalid request
        HTTPException(500): Message could not be created
    """
    user_id = user_id or request.user_id
    if user_id is None:
        raise HTTPException(status_code=401, detail="X-User-Id header is required")

    try:
        message_id = await orchestrator.start_generation(
            request.model_copy(update={"user_id": user_id})
        )
        return GenerationStartedResponse(message_id=message_id)
    except MessageAlreadyFinalizedError as e:
        raise HTTPException(status_code=409, detail=e.message)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.message)
    except Exception as e:
        logger.exception(f"{__name__}:generate - Failed to start generation")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to start generation: {str(e)}",
        )
