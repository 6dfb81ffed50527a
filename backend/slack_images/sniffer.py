"""
Content-Type Sniffer

MIME normalization, URL-based MIME guessing and magic-byte detection.

Slack answers unauthenticated (or browser-token) file requests with an HTML
login page and a 200 status, so downloaded bytes are never trusted until
their signature has been checked.
"""

from typing import AbstractSet, Optional
from urllib.parse import urlsplit

from .constants import MIME_GIF, MIME_JPEG, MIME_PNG, MIME_WEBP, SUPPORTED_IMAGE_MIME_TYPES
from .errors import AuthFailureDetectedError, ContentFormatInvalidError

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
JPEG_SIGNATURE = b"\xff\xd8\xff"

HTML_PREFIX_MARKERS = ("<!doctype", "<html", "<head", "<body")
HTML_SUFFIX_MARKERS = ("</html>", "</body>")

# Extension -> MIME type, checked against the lowercased URL path
EXTENSION_TO_MIME = (
    (".png", MIME_PNG),
    (".jpg", MIME_JPEG),
    (".jpeg", MIME_JPEG),
    (".gif", MIME_GIF),
    (".webp", MIME_WEBP),
)


# ============================================
# MIME types
# ============================================

def normalize_mime_type(mime_type: Optional[str]) -> str:
    """Strip parameters (``; charset=...``) and lowercase."""
    if not mime_type:
        return ""
    return mime_type.strip().split(";", 1)[0].strip().lower()


def is_image_mime_type(
    mime_type: Optional[str],
    supported: AbstractSet[str] = SUPPORTED_IMAGE_MIME_TYPES,
) -> bool:
    """Check if the MIME type is a supported image format."""
    return normalize_mime_type(mime_type) in supported


def guess_mime_type_from_url(url: str) -> str:
    """
    Guess the MIME type from the URL's file extension.

    Unknown or missing extensions default to PNG, which is what Slack uses
    for screenshots. Returns "" when the URL cannot be parsed.
    """
    try:
        path = urlsplit(url).path.lower()
    except ValueError:
        return ""

    for ext, mime in EXTENSION_TO_MIME:
        if path.endswith(ext):
            return mime
    return MIME_PNG


def extract_filename_from_url(url: str) -> str:
    """Last path segment of the URL, or "image"."""
    try:
        path = urlsplit(url).path
    except ValueError:
        return "image"

    filename = path.rsplit("/", 1)[-1] if "/" in path else ""
    return filename or "image"


# ============================================
# Magic bytes
# ============================================

def detect_image_format(data: bytes) -> Optional[str]:
    """Return the MIME type matching the data's signature, or None."""
    if len(data) < 8:
        return None

    if data[:4] == PNG_SIGNATURE[:4]:
        return MIME_PNG
    if data[:3] == JPEG_SIGNATURE:
        return MIME_JPEG
    if data[:3] == b"GIF":
        return MIME_GIF
    if len(data) >= 12 and data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return MIME_WEBP
    return None


def is_valid_image_data(data: bytes) -> bool:
    return detect_image_format(data) is not None


def is_html_content(data: bytes) -> bool:
    """Check whether the payload looks like an HTML page."""
    if len(data) < 15:
        return False

    prefix = data[:500].decode("latin-1").lower()
    if any(marker in prefix for marker in HTML_PREFIX_MARKERS):
        return True

    if len(data) > 20:
        suffix = data[-20:].decode("latin-1").lower()
        if any(marker in suffix for marker in HTML_SUFFIX_MARKERS):
            return True

    return False


def validate_image_data(data: bytes) -> str:
    """
    Ensure ``data`` is image bytes and return its detected MIME type.

    Raises:
        AuthFailureDetectedError: an HTML login page was returned
        ContentFormatInvalidError: anything else without an image signature
    """
    detected = detect_image_format(data)
    if detected:
        return detected

    if is_html_content(data):
        raise AuthFailureDetectedError(
            "authentication failed: received HTML login page instead of image "
            "(browser tokens may not support file downloads)"
        )
    raise ContentFormatInvalidError("downloaded data is not a valid image format")
