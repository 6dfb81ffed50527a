"""
Image Pipeline Errors

Every per-image failure is an ``ImagePipelineError``. Messages are safe to
show to end users; the pipeline turns them into warnings instead of failing
the whole request.
"""


class ImagePipelineError(Exception):
    """Base class for image pipeline failures."""


class HostRejectedError(ImagePipelineError):
    """URL host is not in the allowed Slack host set."""


class UnsupportedFormatError(ImagePipelineError):
    """Declared MIME type is not a supported image type."""


class SizeExceededError(ImagePipelineError):
    """Declared or downloaded size is over the per-image ceiling."""


class FetchFailedError(ImagePipelineError):
    """Network error or timeout while downloading."""


class AuthFailureDetectedError(ImagePipelineError):
    """An HTML login page came back instead of image bytes."""


class ContentFormatInvalidError(ImagePipelineError):
    """Bytes were received but carry no known image signature."""


class CompressionFailedError(ImagePipelineError):
    """PNG decode or JPEG encode failed. Never leaves the compressor."""


class CollaboratorNotConfiguredError(ImagePipelineError):
    """A required collaborator (downloader, file info provider) is missing."""


class DownloadsNotSupportedError(ImagePipelineError):
    """The configured Slack token cannot download files."""


class FileNotFoundInSlackError(ImagePipelineError):
    """File metadata lookup failed."""
