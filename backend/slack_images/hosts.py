"""
Image Host Allowlist

SSRF guard: only URLs whose hostname is an allowed Slack host, or a true
subdomain of one, may be fetched.
"""

from typing import AbstractSet
from urllib.parse import urlsplit

from .constants import ALLOWED_IMAGE_HOSTS
from .errors import HostRejectedError


def is_allowed_image_host(url: str, allowed_hosts: AbstractSet[str] = ALLOWED_IMAGE_HOSTS) -> bool:
    """
    Check that ``url`` points at an allowed Slack domain.

    Only the hostname is compared. ``evil.com/files.slack.com/x`` and
    ``files.slack.com.evil.com`` are rejected, as are IP literals and
    ``localhost`` since they match no entry.
    """
    if not url:
        return False

    try:
        host = urlsplit(url).hostname
    except ValueError:
        return False

    if not host:
        return False

    if host in allowed_hosts:
        return True

    return any(host.endswith("." + allowed) for allowed in allowed_hosts)


def ensure_allowed_image_host(url: str, allowed_hosts: AbstractSet[str] = ALLOWED_IMAGE_HOSTS) -> str:
    """Return ``url`` unchanged or raise ``HostRejectedError``."""
    if not is_allowed_image_host(url, allowed_hosts):
        raise HostRejectedError("File URL is not from an allowed Slack domain")
    return url
