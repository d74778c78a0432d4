"""
Image API endpoints.

Routes:
- GET /images/{image_id} - Redirect to a presigned download URL
- POST /images/cleanup - Purge expired images (cron, bearer-protected)

Dependencies: imagecraft.application.services
System role: Generated image HTTP API
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import RedirectResponse

from imagecraft.api.deps import (
    get_image_cleanup_service,
    get_image_service,
    get_user_id,
    verify_cron_secret,
)
from imagecraft.application.services import ImageCleanupService, ImageService
from imagecraft.core.exceptions import ImageAccessDeniedError, ImageNotFoundError
from imagecraft.models.image import ImageCleanupResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/images", tags=["images"])


@router.post(
    "/cleanup",
    response_model=ImageCleanupResponse,
    dependencies=[Depends(verify_cron_secret)],
)
async def cleanup_expired_images(
    cleanup_service: ImageCleanupService = Depends(get_image_cleanup_service),
) -> ImageCleanupResponse:
    """
    Soft-delete one batch of images past their auto-delete time.

    Raises:
        HTTPException(401): Missing or wrong bearer token
        HTTPException(500): Cleanup failed
    """
    try:
        return await cleanup_service.purge_expired()
    except Exception as e:
        logger.exception(f"{__name__}:cleanup_expired_images - Cleanup failed")
        raise HTTPException(status_code=500, detail=f"Cleanup failed: {str(e)}")


@router.get("/{image_id}")
async def get_image(
    image_id: UUID,
    user_id: UUID | None = Depends(get_user_id),
    image_service: ImageService = Depends(get_image_service),
) -> RedirectResponse:
    """
    Resolve the stable image reference stored in messages.

    Raises:
        HTTPException(404): Image absent, deleted or without stored file
        HTTPException(403): Private image of another user
    """
    try:
        url = await image_service.get_download_url(image_id, user_id)
    except ImageNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    except ImageAccessDeniedError as e:
        raise HTTPException(status_code=403, detail=e.message)
    return RedirectResponse(url=url, status_code=307)
