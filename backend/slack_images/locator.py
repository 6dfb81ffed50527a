"""
Image Reference Locator

Pure extraction of image references from Slack messages. No network access.
"""

import logging
from typing import AbstractSet, Any, Iterable, List, Optional, Sequence, Union

from .constants import ALLOWED_IMAGE_HOSTS, SUPPORTED_IMAGE_MIME_TYPES
from .hosts import is_allowed_image_host
from .models import ImageReference, SlackAttachment, SlackMessage
from .sniffer import extract_filename_from_url, guess_mime_type_from_url, is_image_mime_type

logger = logging.getLogger(__name__)

MessageLike = Union[SlackMessage, dict]


def extract_images_from_message(
    message: SlackMessage,
    supported: AbstractSet[str] = SUPPORTED_IMAGE_MIME_TYPES,
) -> List[ImageReference]:
    """
    Extract image files shared in a message.

    Non-image files are skipped, as are files without any download URL.
    """
    images: List[ImageReference] = []

    for file in message.files:
        if not is_image_mime_type(file.mimetype, supported):
            continue

        download_url = file.download_url
        if not download_url:
            logger.debug(f"[ImageLocator] No download URL for file {file.id}, skipping")
            continue

        images.append(ImageReference(
            file_id=file.id or None,
            name=file.name or "",
            mime_type=file.mimetype or "",
            size=file.size or 0,
            url=download_url,
            msg_ts=message.ts,
        ))

    return images


def _attachment_image(url: str, msg_ts: str, supported: AbstractSet[str]) -> Optional[ImageReference]:
    mime_type = guess_mime_type_from_url(url)
    if not is_image_mime_type(mime_type, supported):
        return None
    return ImageReference(
        file_id=None,
        name=extract_filename_from_url(url),
        mime_type=mime_type,
        size=0,
        url=url,
        msg_ts=msg_ts,
    )


def extract_images_from_attachments(
    attachments: Iterable[SlackAttachment],
    msg_ts: str = "",
    allowed_hosts: AbstractSet[str] = ALLOWED_IMAGE_HOSTS,
    supported: AbstractSet[str] = SUPPORTED_IMAGE_MIME_TYPES,
) -> List[ImageReference]:
    """
    Extract image URLs from link-preview attachments.

    The full-size ``image_url`` wins when it is Slack-hosted; ``thumb_url`` is
    only used when there is no usable full-size URL. Non-Slack URLs are
    dropped here so they never reach the fetcher.
    """
    images: List[ImageReference] = []

    for attachment in attachments:
        image_url = attachment.image_url or ""
        thumb_url = attachment.thumb_url or ""
        full_size_ok = bool(image_url) and is_allowed_image_host(image_url, allowed_hosts)

        if full_size_ok:
            ref = _attachment_image(image_url, msg_ts, supported)
            if ref:
                images.append(ref)
            continue

        if thumb_url and is_allowed_image_host(thumb_url, allowed_hosts):
            ref = _attachment_image(thumb_url, msg_ts, supported)
            if ref:
                images.append(ref)
        elif image_url or thumb_url:
            logger.debug(f"[ImageLocator] Rejected non-Slack attachment image: {(image_url or thumb_url)[:60]}")

    return images


def extract_images_from_messages(
    messages: Sequence[MessageLike],
    allowed_hosts: AbstractSet[str] = ALLOWED_IMAGE_HOSTS,
    supported: AbstractSet[str] = SUPPORTED_IMAGE_MIME_TYPES,
) -> List[ImageReference]:
    """All image references of ``messages`` in order: files, then previews."""
    images: List[ImageReference] = []
    for raw in messages:
        message = _as_message(raw)
        images.extend(extract_images_from_message(message, supported))
        images.extend(extract_images_from_attachments(
            message.attachments, message.ts, allowed_hosts, supported,
        ))
    return images


def _as_message(raw: Any) -> SlackMessage:
    if isinstance(raw, SlackMessage):
        return raw
    return SlackMessage.model_validate(raw)
