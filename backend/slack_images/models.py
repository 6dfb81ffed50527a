"""
Slack Image Data Models

Inbound Slack message shapes (pydantic) and the per-invocation pipeline
records (dataclasses).

包含：
- SlackFile / SlackAttachment / SlackMessage: Slack API payloads
- ImageKey: 图片查找键（file id 优先，否则 URL）
- ImageReference: 单个图片候选
- DownloadOutcome / CompressionResult: 下载与压缩结果
- PooledDownload / BudgetedDownload: 两种下载模式的汇总结果
- ImageContent: 最终输出给协议层的图片
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


# ==================== Slack Payload Models ====================

class SlackFile(BaseModel):
    """A file shared in a Slack message."""
    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    name: Optional[str] = None
    mimetype: Optional[str] = None
    size: int = 0
    url_private: Optional[str] = None
    url_private_download: Optional[str] = None

    @property
    def download_url(self) -> str:
        """Authenticated URL, falling back to the download variant."""
        return self.url_private or self.url_private_download or ""


class SlackAttachment(BaseModel):
    """A link preview / legacy attachment on a Slack message."""
    model_config = ConfigDict(extra="ignore")

    image_url: Optional[str] = None
    thumb_url: Optional[str] = None
    title: Optional[str] = None
    text: Optional[str] = None


class SlackMessage(BaseModel):
    """The subset of a Slack message the image pipeline reads."""
    model_config = ConfigDict(extra="ignore")

    ts: str = ""
    files: List[SlackFile] = Field(default_factory=list)
    attachments: List[SlackAttachment] = Field(default_factory=list)


# ==================== Pipeline Records ====================

@dataclass(frozen=True)
class ImageKey:
    """
    Lookup key correlating a reference with its bytes and MIME override.

    File ids and URLs live in separate namespaces, so a file id that happens
    to equal another reference's URL never collides with it.
    """
    kind: str   # "file" or "url"
    value: str

    @classmethod
    def for_reference(cls, ref: "ImageReference") -> "ImageKey":
        if ref.file_id:
            return cls("file", ref.file_id)
        return cls("url", ref.url)

    def __str__(self) -> str:
        return self.value


@dataclass
class ImageReference:
    """One image candidate extracted from a message."""
    name: str
    mime_type: str
    url: str                        # Never empty
    size: int = 0                   # Declared size, 0 when unknown
    file_id: Optional[str] = None   # Absent for attachment previews
    msg_ts: str = ""                # Display only

    @property
    def key(self) -> ImageKey:
        return ImageKey.for_reference(self)


@dataclass
class DownloadOutcome:
    """Raw bytes or the error for one download."""
    key: ImageKey
    data: Optional[bytes] = None
    error: Optional[Exception] = None

    @property
    def success(self) -> bool:
        return self.error is None


@dataclass
class CompressionResult:
    """Result of ``compress_image_if_needed``."""
    data: bytes
    mime_type: str
    was_converted: bool
    original_size: int
    final_size: int


class ImageDisposition(str, Enum):
    """Terminal state of a reference after budgeted assembly."""
    INCLUDED = "included"
    SKIPPED_TOO_LARGE = "skipped_too_large"
    SKIPPED_ERROR = "skipped_error"
    SKIPPED_BUDGET = "skipped_budget"


@dataclass
class PooledDownload:
    """Result of the concurrency-pool download mode."""
    image_data: Dict[ImageKey, bytes] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)


@dataclass
class BudgetedDownload:
    """Result of the sequential, budget-aware download mode."""
    image_data: Dict[ImageKey, bytes] = field(default_factory=dict)
    mime_overrides: Dict[ImageKey, str] = field(default_factory=dict)
    skipped: List[ImageReference] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    dispositions: List[tuple] = field(default_factory=list)   # (ImageReference, ImageDisposition)
    total_bytes: int = 0
    budget_exceeded: bool = False


@dataclass
class ImageContent:
    """An image ready for the protocol layer."""
    mime_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)
