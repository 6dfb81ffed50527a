"""
Slack Images Module

Delivers images referenced in Slack messages under size, security and
concurrency limits.

Features:
- Image extraction from shared files and link previews
- SSRF protection with a Slack host allowlist
- Magic-byte validation (detects HTML login pages)
- Pooled or sequential, budget-aware downloads with per-image timeouts
- PNG -> JPEG compression with a descending quality ladder
"""

from .assembler import BudgetedAssembler
from .compressor import compress_image_if_needed, compress_png_to_jpeg
from .config import ImagePipelineConfig
from .fetcher import FetchMode, FileDownloader, ImageFetcher
from .hosts import is_allowed_image_host
from .locator import (
    extract_images_from_attachments,
    extract_images_from_message,
    extract_images_from_messages,
)
from .models import ImageContent, ImageKey, ImageReference, SlackMessage
from .packager import images_to_content
from .routes_fastapi import router
from .service import ImageDeliveryResult, ImageDeliveryService, SingleImageResult
from .slack_client import SlackFilesClient

__all__ = [
    "router",
    "BudgetedAssembler",
    "compress_image_if_needed",
    "compress_png_to_jpeg",
    "ImagePipelineConfig",
    "FetchMode",
    "FileDownloader",
    "ImageFetcher",
    "is_allowed_image_host",
    "extract_images_from_attachments",
    "extract_images_from_message",
    "extract_images_from_messages",
    "ImageContent",
    "ImageKey",
    "ImageReference",
    "SlackMessage",
    "images_to_content",
    "ImageDeliveryResult",
    "ImageDeliveryService",
    "SingleImageResult",
    "SlackFilesClient",
]
