"""
Slack Files Client

Authenticated httpx transport for Slack-hosted files. Implements the
``FileDownloader`` protocol used by the fetcher and the file metadata lookup
used by single-image retrieval.
"""

import logging
from typing import BinaryIO, Optional

import httpx

from .constants import IMAGE_DOWNLOAD_TIMEOUT, SLACK_API_BASE_URL
from .errors import FileNotFoundInSlackError
from .models import SlackFile

logger = logging.getLogger(__name__)

# Browser session tokens (xoxc/xoxd) cannot download files
FILE_DOWNLOAD_TOKEN_PREFIXES = ("xoxp-", "xoxb-")


class SlackFilesClient:
    """
    Downloads files and file metadata from Slack.

    Usage:
        client = SlackFilesClient(token)
        try:
            info = await client.get_file_info("F0123")
            await client.get_file(info.download_url, sink)
        finally:
            await client.close()
    """

    def __init__(
        self,
        token: str,
        api_base_url: str = SLACK_API_BASE_URL,
        timeout: float = IMAGE_DOWNLOAD_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.token = token
        self.api_base_url = api_base_url.rstrip("/")
        self.http_client = httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=True,
            headers={"Authorization": f"Bearer {token}"},
            transport=transport,
        )

    async def close(self):
        """Close HTTP client."""
        await self.http_client.aclose()

    def can_download_files(self) -> bool:
        """Only OAuth tokens (xoxp/xoxb) can download private files."""
        return self.token.startswith(FILE_DOWNLOAD_TOKEN_PREFIXES)

    async def get_file(self, url: str, sink: BinaryIO) -> None:
        """Stream the file at ``url`` into ``sink``."""
        async with self.http_client.stream("GET", url) as response:
            response.raise_for_status()
            async for chunk in response.aiter_bytes():
                sink.write(chunk)

    async def get_file_info(self, file_id: str) -> SlackFile:
        """Fetch file metadata via ``files.info``."""
        response = await self.http_client.get(
            f"{self.api_base_url}/files.info",
            params={"file": file_id},
        )
        response.raise_for_status()
        payload = response.json()

        if not payload.get("ok"):
            error = payload.get("error", "unknown_error")
            logger.error(f"[SlackFiles] files.info failed for {file_id}: {error}")
            raise FileNotFoundInSlackError(f"Failed to get file info: {error}")

        return SlackFile.model_validate(payload.get("file") or {})
