"""
Image upload routes.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Request, UploadFile
from starlette.concurrency import run_in_threadpool

from blog_platform.config import Settings
from blog_platform.errors import PayloadTooLargeError, ValidationError
from blog_platform.schemas import UploadOut
from blog_platform.security import (
    bind_rate_limits,
    limiter,
    rate_limiting_disabled,
    require_admin,
    upload_limit,
)
from blog_platform.services import images as images_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["uploads"])


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


async def read_image_upload(image: Optional[UploadFile], settings: Settings) -> bytes:
    """Validate an uploaded file before any decoding happens.

    Rejects a missing file, a non-image content type and anything larger
    than the configured maximum.
    """
    if image is None or not image.filename:
        raise ValidationError("No image file provided")

    if not (image.content_type or "").startswith("image/"):
        raise ValidationError("Only image files are allowed")

    data = await image.read(settings.max_upload_bytes + 1)
    if len(data) > settings.max_upload_bytes:
        raise PayloadTooLargeError(
            f"Image exceeds the {settings.max_upload_bytes} byte upload limit"
        )
    if not data:
        raise ValidationError("No image file provided")

    return data


@router.post(
    "/upload",
    response_model=UploadOut,
    dependencies=[Depends(require_admin), Depends(bind_rate_limits)],
)
@limiter.limit(upload_limit, exempt_when=rate_limiting_disabled)
async def upload_image(
    request: Request,
    image: Optional[UploadFile] = File(None),
    settings: Settings = Depends(get_settings),
):
    """Store a standalone processed image and return its URL."""
    data = await read_image_upload(image, settings)
    image_url = await run_in_threadpool(
        images_service.process_image, data, settings.upload_dir, image.filename
    )
    return UploadOut(image_url=image_url)
