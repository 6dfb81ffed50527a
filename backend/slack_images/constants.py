"""
Slack Image Constants

Fixed tables and default limits shared by every stage of the image pipeline.
The tables are frozensets: they are built once at import and never mutated.
"""

# ============================================
# Limits
# ============================================

# 3.75MB - stays under 5MB after base64 encoding
MAX_IMAGE_SIZE = 3932160

# Maximum images per call, extra references are truncated
MAX_IMAGES_PER_CALL = 10

# Per-download timeout in seconds
IMAGE_DOWNLOAD_TIMEOUT = 30.0

# Worker pool size for the non-budgeted path
MAX_CONCURRENT_DOWNLOADS = 3

# 750KB raw (~1MB base64), inline response budget
MAX_INLINE_IMAGE_BUDGET = 750 * 1024

# ============================================
# Compression
# ============================================

DEFAULT_JPEG_QUALITY = 80
MIN_JPEG_QUALITY = 40
JPEG_QUALITY_STEP = 20

JPEG_QUALITY_LADDER = (
    DEFAULT_JPEG_QUALITY,
    DEFAULT_JPEG_QUALITY - JPEG_QUALITY_STEP,
    MIN_JPEG_QUALITY,
)

# ============================================
# Tables
# ============================================

# Only Slack-hosted URLs may be fetched (SSRF protection)
ALLOWED_IMAGE_HOSTS = frozenset({
    "files.slack.com",
    "slack-edge.com",
    "avatars.slack-edge.com",
})

SUPPORTED_IMAGE_MIME_TYPES = frozenset({
    "image/png",
    "image/jpeg",
    "image/gif",
    "image/webp",
})

MIME_PNG = "image/png"
MIME_JPEG = "image/jpeg"
MIME_GIF = "image/gif"
MIME_WEBP = "image/webp"

SLACK_API_BASE_URL = "https://slack.com/api"
