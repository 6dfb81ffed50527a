"""
Slack Images API Routes

Provides endpoints for:
- Collecting the images referenced by a batch of Slack messages
- Retrieving a single image by Slack file id
- Health check
"""

import logging
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from .config import ImagePipelineConfig
from .errors import (
    AuthFailureDetectedError,
    CollaboratorNotConfiguredError,
    ContentFormatInvalidError,
    DownloadsNotSupportedError,
    FetchFailedError,
    FileNotFoundInSlackError,
    HostRejectedError,
    ImagePipelineError,
    SizeExceededError,
    UnsupportedFormatError,
)
from .fetcher import FetchMode
from .models import SlackMessage
from .packager import encode_image_content
from .service import ImageDeliveryService

logger = logging.getLogger(__name__)

# ============================================
# Request/Response Models
# ============================================


class CollectImagesRequest(BaseModel):
    """Request model for collecting images from messages."""
    messages: List[SlackMessage] = Field(..., description="Slack messages to scan for images")
    budget_bytes: Optional[int] = Field(None, ge=1, description="Inline byte budget (budget mode only)")
    mode: Literal["budget", "pooled"] = Field("budget", description="budget: sequential; pooled: concurrent")


class ImageContentResponse(BaseModel):
    """A single delivered image."""
    mime_type: str
    base64_data: str
    size: int


class CollectImagesResponse(BaseModel):
    """Response model for image collection."""
    success: bool
    total_references: int
    total_included: int
    total_bytes: int
    images: List[ImageContentResponse]
    warnings: List[str]
    skipped: List[str]


class SingleImageResponse(BaseModel):
    """Response model for single image retrieval."""
    file_id: str
    text: str
    original_size: int
    was_converted: bool
    image: ImageContentResponse


# ============================================
# Service
# ============================================

_service: Optional[ImageDeliveryService] = None


def get_image_service() -> ImageDeliveryService:
    """Process-wide service built from environment configuration."""
    global _service
    if _service is None:
        _service = ImageDeliveryService.from_config(ImagePipelineConfig.from_env())
    return _service


async def close_image_service():
    """Close the process-wide service and its Slack HTTP client."""
    global _service
    if _service is not None:
        await _service.close()
        _service = None


ERROR_STATUS = (
    (CollaboratorNotConfiguredError, 503),
    (DownloadsNotSupportedError, 403),
    (FileNotFoundInSlackError, 404),
    (UnsupportedFormatError, 400),
    (HostRejectedError, 400),
    (SizeExceededError, 413),
    (AuthFailureDetectedError, 502),
    (ContentFormatInvalidError, 502),
    (FetchFailedError, 502),
)


def _to_http_error(error: ImagePipelineError) -> HTTPException:
    for error_type, status_code in ERROR_STATUS:
        if isinstance(error, error_type):
            return HTTPException(status_code=status_code, detail=str(error))
    return HTTPException(status_code=500, detail=str(error))


# ============================================
# Router
# ============================================

router = APIRouter(
    prefix="/api/slack-images",
    tags=["Slack Images"],
    on_shutdown=[close_image_service],
)


# ============================================
# Endpoints
# ============================================

@router.post("/collect", response_model=CollectImagesResponse)
async def collect_images(
    request: CollectImagesRequest,
    service: ImageDeliveryService = Depends(get_image_service),
):
    """
    Collect the images referenced by Slack messages.

    This endpoint:
    1. Extracts file and link-preview images from the messages
    2. Downloads them (sequentially against a byte budget, or pooled)
    3. Converts PNG to JPEG to save space in budget mode
    4. Returns Base64 data plus a warning for every image left out

    Example:
        POST /api/slack-images/collect
        {
            "messages": [{"ts": "1700000000.000100", "files": [...]}],
            "budget_bytes": 768000
        }
    """
    mode = FetchMode.POOLED if request.mode == "pooled" else FetchMode.SEQUENTIAL
    try:
        result = await service.collect_images(request.messages, budget=request.budget_bytes, mode=mode)
    except ImagePipelineError as e:
        logger.error(f"[SlackImages] Collect failed: {e}")
        raise _to_http_error(e)

    return CollectImagesResponse(
        success=bool(result.contents) or not result.references,
        total_references=len(result.references),
        total_included=len(result.contents),
        total_bytes=result.total_bytes,
        images=[ImageContentResponse(**encode_image_content(item)) for item in result.contents],
        warnings=result.warnings,
        skipped=[ref.name or ref.url for ref in result.skipped],
    )


@router.get("/files/{file_id}", response_model=SingleImageResponse)
async def get_image(
    file_id: str,
    service: ImageDeliveryService = Depends(get_image_service),
):
    """
    Retrieve one image by Slack file id.

    Used for images that were left out of a collect call because of the
    inline budget.
    """
    try:
        result = await service.get_image(file_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ImagePipelineError as e:
        logger.error(f"[SlackImages] Failed to get image {file_id}: {e}")
        raise _to_http_error(e)

    return SingleImageResponse(
        file_id=result.file_id,
        text=result.summary,
        original_size=result.original_size,
        was_converted=result.was_converted,
        image=ImageContentResponse(**encode_image_content(result.content)),
    )


@router.get("/health")
async def health_check():
    """Health check endpoint."""
    return JSONResponse(content={
        "status": "healthy",
        "service": "slack-images",
    })
