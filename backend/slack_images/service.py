"""
Slack Image Delivery Service

Entry point used by the outer surfaces (HTTP routes, tool handlers):
- collect_images: every image in a batch of messages, budgeted or pooled
- get_image: one image by Slack file id, for images left out of a batch
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Sequence

from .assembler import BudgetedAssembler
from .compressor import compress_image_if_needed
from .config import ImagePipelineConfig
from .errors import (
    CollaboratorNotConfiguredError,
    DownloadsNotSupportedError,
    FetchFailedError,
    FileNotFoundInSlackError,
    SizeExceededError,
    UnsupportedFormatError,
)
from .fetcher import FetchMode, FileDownloader, ImageFetcher
from .hosts import ensure_allowed_image_host
from .locator import MessageLike, extract_images_from_messages
from .models import ImageContent, ImageReference, SlackFile
from .packager import images_to_content
from .sniffer import is_image_mime_type, normalize_mime_type
from .slack_client import SlackFilesClient

logger = logging.getLogger(__name__)


class FileInfoProvider(Protocol):
    """Looks up Slack file metadata."""

    def can_download_files(self) -> bool:
        ...

    async def get_file_info(self, file_id: str) -> SlackFile:
        ...


@dataclass
class ImageDeliveryResult:
    """Images that survived, plus why the others were left out."""
    contents: List[ImageContent] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    skipped: List[ImageReference] = field(default_factory=list)
    references: List[ImageReference] = field(default_factory=list)
    total_bytes: int = 0


@dataclass
class SingleImageResult:
    """Result of retrieving one image by file id."""
    file_id: str
    file_name: str
    content: ImageContent
    original_size: int
    was_converted: bool

    @property
    def summary(self) -> str:
        return f"File: {self.file_name}\nSize: {self.content.size} bytes\nType: {self.content.mime_type}"


class ImageDeliveryService:
    """
    Extracts, downloads, compresses and packages Slack images.

    Usage:
        service = ImageDeliveryService.from_config(ImagePipelineConfig.from_env())
        try:
            result = await service.collect_images(messages)
        finally:
            await service.close()
    """

    def __init__(
        self,
        downloader: Optional[FileDownloader],
        config: Optional[ImagePipelineConfig] = None,
        file_info_provider: Optional[FileInfoProvider] = None,
    ):
        self.downloader = downloader
        self.config = config or ImagePipelineConfig()
        self.file_info_provider = file_info_provider
        self._owned_client: Optional[SlackFilesClient] = None

    @classmethod
    def from_config(cls, config: ImagePipelineConfig) -> "ImageDeliveryService":
        """Build a service backed by a ``SlackFilesClient`` when a token is set."""
        if not config.slack_token:
            logger.warning("[SlackImages] SLACK_TOKEN not set, image downloads are disabled")
            return cls(None, config)

        client = SlackFilesClient(
            config.slack_token,
            api_base_url=config.slack_api_base_url,
            timeout=config.download_timeout,
        )
        service = cls(client, config, file_info_provider=client)
        service._owned_client = client
        return service

    async def close(self):
        if self._owned_client is not None:
            await self._owned_client.close()
            self._owned_client = None

    def _fetcher(self) -> ImageFetcher:
        if self.downloader is None:
            raise CollaboratorNotConfiguredError("Slack file downloads are not configured")
        return ImageFetcher(self.downloader, self.config)

    async def collect_images(
        self,
        messages: Sequence[MessageLike],
        budget: Optional[int] = None,
        mode: FetchMode = FetchMode.SEQUENTIAL,
    ) -> ImageDeliveryResult:
        """
        Deliver the images referenced by ``messages``.

        Sequential mode commits images in message order against ``budget``
        (default: ``inline_budget``). Pooled mode downloads concurrently with
        no budget and no compression.
        """
        fetcher = self._fetcher()

        refs = extract_images_from_messages(
            messages, self.config.allowed_hosts, self.config.supported_mime_types,
        )
        if len(refs) > self.config.max_images:
            logger.info(f"[SlackImages] Truncating {len(refs)} image references to {self.config.max_images}")
            refs = refs[:self.config.max_images]

        result = ImageDeliveryResult(references=refs)
        if not refs:
            return result

        if mode == FetchMode.POOLED:
            pooled = await fetcher.download_with_concurrency_limit(refs)
            result.contents = images_to_content(refs, pooled.image_data)
            result.warnings = pooled.warnings
        else:
            budgeted = await BudgetedAssembler(fetcher, self.config).assemble(refs, budget)
            result.contents = images_to_content(refs, budgeted.image_data, budgeted.mime_overrides)
            result.warnings = budgeted.warnings
            result.skipped = budgeted.skipped

        result.total_bytes = sum(item.size for item in result.contents)
        return result

    async def get_image(self, file_id: str) -> SingleImageResult:
        """
        Fetch one image by Slack file id, compressed to fit the inline budget.

        Raises:
            ValueError: empty file id
            ImagePipelineError: any check or download failure
        """
        if not file_id:
            raise ValueError("file_id parameter is required")

        provider = self.file_info_provider
        if provider is None:
            raise CollaboratorNotConfiguredError("Slack file info lookups are not configured")
        fetcher = self._fetcher()

        if not provider.can_download_files():
            raise DownloadsNotSupportedError(
                "Image downloads not supported with browser tokens (xoxc/xoxd). "
                "Use OAuth tokens (xoxp/xoxb) instead."
            )

        try:
            file = await provider.get_file_info(file_id)
        except FileNotFoundInSlackError:
            raise
        except Exception as e:
            logger.error(f"[SlackImages] Failed to get file info for {file_id}: {e}")
            raise FileNotFoundInSlackError(f"Failed to get file info: {e}") from e

        name = file.name or file_id
        if not is_image_mime_type(file.mimetype, self.config.supported_mime_types):
            raise UnsupportedFormatError(
                f"File '{name}' is not an image (type: {file.mimetype}). "
                "Only image files (PNG, JPEG, GIF, WebP) can be retrieved."
            )

        download_url = file.download_url
        if not download_url:
            raise FetchFailedError(f"File '{name}' does not have a download URL available")

        ensure_allowed_image_host(download_url, self.config.allowed_hosts)

        if file.size > self.config.max_image_size:
            raise SizeExceededError(
                f"File '{name}' is too large ({file.size} bytes). "
                f"Maximum allowed size is {self.config.max_image_size} bytes."
            )

        data = await fetcher.download_image(download_url)

        mime_type = normalize_mime_type(file.mimetype)
        compressed = compress_image_if_needed(
            data, mime_type, self.config.inline_budget, self.config.jpeg_qualities,
        )
        if compressed.was_converted:
            logger.debug(
                f"[SlackImages] Image compressed: {file_id} "
                f"{compressed.original_size} -> {compressed.final_size} bytes "
                f"({mime_type} -> {compressed.mime_type})"
            )

        return SingleImageResult(
            file_id=file_id,
            file_name=name,
            content=ImageContent(mime_type=compressed.mime_type, data=compressed.data),
            original_size=compressed.original_size,
            was_converted=compressed.was_converted,
        )
