"""
Bounded Image Fetcher

Downloads Slack-hosted images with a per-image timeout and a hard size
ceiling, then checks that the bytes really are an image.

Two modes:
- pooled: every reference gets its own task, at most
  ``max_concurrent_downloads`` run at once, one collector owns the results
- sequential: one image at a time, driven by the budgeted assembler because
  each decision depends on the budget left by the previous images
"""

import asyncio
import logging
from enum import Enum
from io import BytesIO
from typing import BinaryIO, List, Optional, Protocol, Sequence

from .config import ImagePipelineConfig
from .errors import (
    CollaboratorNotConfiguredError,
    FetchFailedError,
    ImagePipelineError,
    SizeExceededError,
)
from .hosts import ensure_allowed_image_host
from .models import DownloadOutcome, ImageReference, PooledDownload
from .sniffer import validate_image_data

logger = logging.getLogger(__name__)


class FileDownloader(Protocol):
    """Authenticated transport that streams a file into ``sink``."""

    async def get_file(self, url: str, sink: BinaryIO) -> None:
        ...


class FetchMode(str, Enum):
    """Scheduling mode for a batch of downloads."""
    POOLED = "pooled"
    SEQUENTIAL = "sequential"


def check_declared_size(ref: ImageReference, max_image_size: int) -> None:
    """Reject references whose declared size is already over the ceiling."""
    if ref.size > max_image_size:
        raise SizeExceededError(f"image '{ref.name}' size {ref.size} bytes exceeds limit")


class ImageFetcher:
    """
    Downloads images for validated Slack URLs.

    Usage:
        fetcher = ImageFetcher(slack_client, config)
        data = await fetcher.download_image(url)
        pooled = await fetcher.download_with_concurrency_limit(refs)
    """

    def __init__(self, downloader: Optional[FileDownloader], config: Optional[ImagePipelineConfig] = None):
        if downloader is None:
            raise CollaboratorNotConfiguredError("No Slack file downloader configured")
        self.downloader = downloader
        self.config = config or ImagePipelineConfig()

    async def _get_file(self, url: str, sink: BinaryIO) -> None:
        # A TimeoutError from the downloader is a transport error, not the deadline
        try:
            await self.downloader.get_file(url, sink)
        except ImagePipelineError:
            raise
        except Exception as e:
            raise FetchFailedError(f"failed to download image: {e}") from e

    async def download_image(self, url: str) -> bytes:
        """
        Download a single image.

        Raises:
            HostRejectedError: URL is not Slack-hosted
            FetchFailedError: transport error or timeout
            SizeExceededError: more bytes than ``max_image_size``
            AuthFailureDetectedError: got the HTML login page
            ContentFormatInvalidError: bytes are not a known image format
        """
        ensure_allowed_image_host(url, self.config.allowed_hosts)

        buffer = BytesIO()
        try:
            await asyncio.wait_for(
                self._get_file(url, buffer),
                timeout=self.config.download_timeout,
            )
        except asyncio.TimeoutError as e:
            raise FetchFailedError(
                f"failed to download image: timed out after {self.config.download_timeout:g}s"
            ) from e

        data = buffer.getvalue()

        if len(data) > self.config.max_image_size:
            raise SizeExceededError(
                f"image size {len(data)} bytes exceeds maximum allowed size "
                f"of {self.config.max_image_size} bytes"
            )

        validate_image_data(data)
        return data

    async def _download_slot(self, ref: ImageReference, semaphore: asyncio.Semaphore) -> DownloadOutcome:
        async with semaphore:
            try:
                check_declared_size(ref, self.config.max_image_size)
                data = await self.download_image(ref.url)
            except ImagePipelineError as e:
                logger.debug(f"[ImageFetcher] Failed: {ref.url[:60]}... - {e}")
                return DownloadOutcome(key=ref.key, error=e)
            return DownloadOutcome(key=ref.key, data=data)

    async def download_with_concurrency_limit(self, images: Sequence[ImageReference]) -> PooledDownload:
        """
        Download many images, at most ``max_concurrent_downloads`` at a time.

        Returns the bytes keyed by ``ImageKey`` and one warning per failure.
        """
        images = list(images)[:self.config.max_images]
        result = PooledDownload()

        if not images:
            return result

        logger.info(
            f"[ImageFetcher] Starting pooled download of {len(images)} images "
            f"(concurrency {self.config.max_concurrent_downloads})"
        )

        semaphore = asyncio.Semaphore(self.config.max_concurrent_downloads)
        tasks: List[asyncio.Task] = [
            asyncio.ensure_future(self._download_slot(ref, semaphore))
            for ref in images
        ]

        try:
            for next_done in asyncio.as_completed(tasks):
                outcome = await next_done
                if outcome.success:
                    result.image_data[outcome.key] = outcome.data
                else:
                    result.warnings.append(f"Skipped image: {outcome.error}")
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()

        logger.info(
            f"[ImageFetcher] Pooled download complete: {len(result.image_data)}/{len(images)} success"
        )
        return result
