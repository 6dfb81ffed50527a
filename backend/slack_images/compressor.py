"""
Image Budget Compressor

Converts PNG images to JPEG with a descending quality ladder until the
result fits the remaining budget. JPEG, GIF and WebP are already compressed
and pass through untouched.
"""

import logging
from io import BytesIO
from typing import Sequence

from PIL import Image

from .constants import JPEG_QUALITY_LADDER, MIME_JPEG, MIME_PNG
from .errors import CompressionFailedError
from .models import CompressionResult
from .sniffer import normalize_mime_type

logger = logging.getLogger(__name__)


def compress_png_to_jpeg(png_data: bytes, quality: int) -> bytes:
    """
    Convert PNG image data to JPEG at ``quality`` (1-100).

    Transparent areas are flattened onto a white background.

    Raises:
        CompressionFailedError: the data is not a decodable PNG or the JPEG
            encoder failed
    """
    try:
        img = Image.open(BytesIO(png_data), formats=["PNG"])
        img.load()
    except (OSError, SyntaxError, ValueError, Image.DecompressionBombError) as e:
        raise CompressionFailedError(f"failed to decode PNG: {e}") from e

    try:
        if img.mode in ("RGBA", "LA", "P"):
            img = img.convert("RGBA")
            background = Image.new("RGB", img.size, (255, 255, 255))
            background.paste(img, mask=img.split()[3])
            img = background
        elif img.mode != "RGB":
            img = img.convert("RGB")

        output = BytesIO()
        img.save(output, format="JPEG", quality=quality)
    except (OSError, ValueError) as e:
        raise CompressionFailedError(f"failed to encode JPEG: {e}") from e

    return output.getvalue()


def compress_image_if_needed(
    data: bytes,
    mime_type: str,
    budget: int,
    qualities: Sequence[int] = JPEG_QUALITY_LADDER,
) -> CompressionResult:
    """
    Convert PNG images to JPEG for size savings.

    PNG is always converted, even when it already fits, trying each quality
    in ``qualities`` (descending) until the result fits ``budget``. The last
    level is accepted even when it is still over budget. If every attempt
    fails the original PNG is returned with ``was_converted=False``.
    """
    result = CompressionResult(
        data=data,
        mime_type=mime_type,
        was_converted=False,
        original_size=len(data),
        final_size=len(data),
    )

    if normalize_mime_type(mime_type) != MIME_PNG:
        return result

    last_quality = qualities[-1]
    for quality in qualities:
        try:
            compressed = compress_png_to_jpeg(data, quality)
        except CompressionFailedError as e:
            logger.debug(f"[ImageCompressor] Quality {quality} failed: {e}")
            continue

        if len(compressed) <= budget or quality == last_quality:
            logger.debug(
                f"[ImageCompressor] PNG -> JPEG q{quality}: "
                f"{len(data)} -> {len(compressed)} bytes (budget {budget})"
            )
            result.data = compressed
            result.mime_type = MIME_JPEG
            result.was_converted = True
            result.final_size = len(compressed)
            return result

    logger.warning(f"[ImageCompressor] Compression failed, keeping original PNG ({len(data)} bytes)")
    return result
