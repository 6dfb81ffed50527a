"""
Image Content Packager

Turns included images into ordered (MIME type, bytes) items for the
protocol layer.
"""

import base64
from typing import Dict, List, Mapping, Optional, Sequence

from .models import ImageContent, ImageKey, ImageReference


def images_to_content(
    images: Sequence[ImageReference],
    image_data: Mapping[ImageKey, bytes],
    mime_overrides: Optional[Mapping[ImageKey, str]] = None,
) -> List[ImageContent]:
    """
    Build content items in reference order.

    References without downloaded bytes are left out; their warnings were
    recorded when they were skipped.
    """
    mime_overrides = mime_overrides or {}
    content: List[ImageContent] = []

    for img in images:
        key = img.key
        data = image_data.get(key)
        if data is None:
            continue

        content.append(ImageContent(
            mime_type=mime_overrides.get(key, img.mime_type),
            data=data,
        ))

    return content


def encode_image_content(item: ImageContent) -> Dict[str, object]:
    """Base64 form of a content item for JSON transports."""
    return {
        "mime_type": item.mime_type,
        "base64_data": base64.b64encode(item.data).decode("utf-8"),
        "size": item.size,
    }
