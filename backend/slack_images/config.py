"""
Image Pipeline Configuration

Dataclass configuration for the Slack image pipeline. Defaults come from
``constants``; ``from_env`` overlays environment variables.
"""

import os
from dataclasses import dataclass, field
from typing import FrozenSet, Optional, Tuple

from .constants import (
    ALLOWED_IMAGE_HOSTS,
    IMAGE_DOWNLOAD_TIMEOUT,
    JPEG_QUALITY_LADDER,
    MAX_CONCURRENT_DOWNLOADS,
    MAX_IMAGE_SIZE,
    MAX_IMAGES_PER_CALL,
    MAX_INLINE_IMAGE_BUDGET,
    SLACK_API_BASE_URL,
    SUPPORTED_IMAGE_MIME_TYPES,
)


@dataclass
class ImagePipelineConfig:
    """Configuration for image extraction, download and compression."""
    # Size settings
    max_image_size: int = MAX_IMAGE_SIZE            # Hard per-image ceiling in bytes
    inline_budget: int = MAX_INLINE_IMAGE_BUDGET    # Budget for all included images

    # Download settings
    max_images: int = MAX_IMAGES_PER_CALL           # References beyond this are dropped
    download_timeout: float = IMAGE_DOWNLOAD_TIMEOUT  # Seconds, per fetch
    max_concurrent_downloads: int = MAX_CONCURRENT_DOWNLOADS

    # Compression settings
    jpeg_qualities: Tuple[int, ...] = JPEG_QUALITY_LADDER

    # Tables (shared, never mutated)
    allowed_hosts: FrozenSet[str] = ALLOWED_IMAGE_HOSTS
    supported_mime_types: FrozenSet[str] = SUPPORTED_IMAGE_MIME_TYPES

    # Slack transport
    slack_token: Optional[str] = field(default=None, repr=False)
    slack_api_base_url: str = SLACK_API_BASE_URL

    def __post_init__(self):
        for name in ("max_image_size", "inline_budget", "max_images", "max_concurrent_downloads"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")
        if self.download_timeout <= 0:
            raise ValueError(f"download_timeout must be positive, got {self.download_timeout}")

        self.jpeg_qualities = tuple(self.jpeg_qualities)
        if not self.jpeg_qualities:
            raise ValueError("jpeg_qualities must contain at least one quality level")
        for quality in self.jpeg_qualities:
            if not 1 <= quality <= 100:
                raise ValueError(f"JPEG quality must be between 1 and 100, got {quality}")
        if any(a <= b for a, b in zip(self.jpeg_qualities, self.jpeg_qualities[1:])):
            raise ValueError(f"jpeg_qualities must be strictly descending, got {self.jpeg_qualities}")

        self.allowed_hosts = frozenset(self.allowed_hosts)
        self.supported_mime_types = frozenset(self.supported_mime_types)

    @classmethod
    def from_env(cls) -> "ImagePipelineConfig":
        """Build a config from ``SLACK_IMAGES_*`` environment variables."""
        qualities = os.getenv("SLACK_IMAGES_JPEG_QUALITIES")
        return cls(
            max_image_size=int(os.getenv("SLACK_IMAGES_MAX_IMAGE_SIZE", str(MAX_IMAGE_SIZE))),
            inline_budget=int(os.getenv("SLACK_IMAGES_INLINE_BUDGET", str(MAX_INLINE_IMAGE_BUDGET))),
            max_images=int(os.getenv("SLACK_IMAGES_MAX_IMAGES", str(MAX_IMAGES_PER_CALL))),
            download_timeout=float(os.getenv("SLACK_IMAGES_DOWNLOAD_TIMEOUT", str(IMAGE_DOWNLOAD_TIMEOUT))),
            max_concurrent_downloads=int(
                os.getenv("SLACK_IMAGES_MAX_CONCURRENT", str(MAX_CONCURRENT_DOWNLOADS))
            ),
            jpeg_qualities=(
                tuple(int(q) for q in qualities.split(",") if q.strip())
                if qualities else JPEG_QUALITY_LADDER
            ),
            slack_token=os.getenv("SLACK_TOKEN") or None,
            slack_api_base_url=os.getenv("SLACK_API_BASE_URL", SLACK_API_BASE_URL),
        )
