"""
Telegram File Proxy
===================

Streams Bot API file downloads through the relay so clients never see the
token-bearing download URL.

Path handling:
    getFile returns result.file_path relative to the Bot API file host
    (https://api.telegram.org/file/bot<token>/<file_path>). Before it is
    handed to the client it is rewritten to point at this relay's
    /api/file/<file_path> route. A request to that route rebuilds the real
    URL from Settings.file_base and streams the bytes back.

Each StreamedFile owns one upstream response. It is closed when the byte
iterator finishes, fails or is abandoned (client disconnect), and again
when the HTTP response that carries it completes; closing twice is a no-op.
"""

import logging
from typing import AsyncIterator, Optional

import httpx

from ..config import Settings

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


class FileProxyError(Exception):
    """Raised when an upstream file download cannot be started."""

    def __init__(self, file_path: str, message: str):
        super().__init__(message)
        self.file_path = file_path
        self.message = message


def relay_file_path(route_path: str, public_url: Optional[str] = None) -> str:
    """
    Client-visible location of a Bot API file under this relay.

    Args:
        route_path: Path of the file proxy route for result.file_path
        public_url: Optional absolute base URL of the relay

    Returns:
        "/api/file/documents/file_1.pdf", prefixed with public_url when given
    """
    if public_url:
        return f"{public_url.rstrip('/')}{route_path}"
    return route_path


class StreamedFile:
    """An open upstream download plus the content type it declared."""

    def __init__(self, file_path: str, response: httpx.Response):
        self.file_path = file_path
        self._response = response

    @property
    def content_type(self) -> str:
        return self._response.headers.get("content-type", DEFAULT_CONTENT_TYPE)

    @property
    def closed(self) -> bool:
        return self._response.is_closed

    async def iter_bytes(self) -> AsyncIterator[bytes]:
        """
        Yield the body chunk by chunk as it arrives.

        An upstream failure after the first chunk cannot be reported to the
        client any more; it is logged and the body ends early.
        """
        try:
            async for chunk in self._response.aiter_bytes():
                yield chunk
        except httpx.HTTPError as e:
            logger.error(
                f"Upstream file stream failed: {type(e).__name__}",
                extra={"file_path": self.file_path},
            )
        finally:
            await self.aclose()

    async def aclose(self) -> None:
        await self._response.aclose()


class FileProxy:
    """
    Opens streaming downloads from the Bot API file host.

    Args:
        settings: Application settings (token and API host)
        client: Shared HTTP client, owned by the application lifespan
    """

    def __init__(self, settings: Settings, client: httpx.AsyncClient):
        self._settings = settings
        self._client = client

    def remote_url(self, file_path: str) -> str:
        """Absolute download URL. Contains the access token."""
        return f"{self._settings.file_base}/{file_path.lstrip('/')}"

    async def open(self, file_path: str) -> StreamedFile:
        """
        Start a streaming GET for file_path.

        Only the status line and headers have been read when this returns.

        Raises:
            FileProxyError: On transport failure or a non-2xx upstream reply
        """
        try:
            request = self._client.build_request("GET", self.remote_url(file_path))
            response = await self._client.send(request, stream=True)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            message = self._settings.redact(str(e)) or type(e).__name__
            logger.error(
                f"Error fetching file from Telegram: {message}",
                extra={"file_path": file_path, "exception_type": type(e).__name__},
            )
            raise FileProxyError(file_path, message) from e

        if not response.is_success:
            await response.aclose()
            logger.error(
                f"Telegram file host returned HTTP {response.status_code}",
                extra={"file_path": file_path, "status_code": response.status_code},
            )
            raise FileProxyError(file_path, f"Upstream returned HTTP {response.status_code}")

        return StreamedFile(file_path, response)
