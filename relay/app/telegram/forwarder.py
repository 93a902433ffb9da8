"""
Telegram Forwarder
==================

Issues one call against the Bot API and folds every outcome into a
ForwardResult. Nothing is raised to the caller: route handlers receive
either ForwardSuccess (the remote reply, verbatim) or ForwardFailure (the
remote's own error payload, or a synthesized {"description": ...}).

The access token only exists inside Settings.api_base and is never part of
a returned value or a log line.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from ..config import Settings
from ..models import (
    ForwardFailure,
    ForwardRequest,
    ForwardResult,
    ForwardSuccess,
    MultipartPayload,
)

logger = logging.getLogger(__name__)


class TelegramForwarder:
    """
    Generic request forwarder for Bot API methods.

    Args:
        settings: Application settings (token and API host)
        client: Shared HTTP client, owned by the application lifespan
    """

    def __init__(self, settings: Settings, client: httpx.AsyncClient):
        self._settings = settings
        self._client = client

    async def forward(
        self,
        endpoint: str,
        payload: Any = None,
        headers: Optional[Dict[str, str]] = None,
        *,
        method: str = "POST",
        params: Optional[Dict[str, Any]] = None,
    ) -> ForwardResult:
        """
        Forward a call to {api_base}/{endpoint}.

        Args:
            endpoint: Bot API method name, e.g. "sendMessage"
            payload: JSON-serializable object or MultipartPayload
            headers: Extra request headers
            method: "POST" for every method except the getUpdates poll
            params: Query string parameters

        Returns:
            ForwardSuccess or ForwardFailure
        """
        request = ForwardRequest(
            endpoint=endpoint,
            method=method,
            payload=payload,
            params=params,
            headers=headers or {},
        )
        return await self.send(request)

    async def send(self, request: ForwardRequest) -> ForwardResult:
        url = f"{self._settings.api_base}/{request.endpoint}"
        kwargs: Dict[str, Any] = {"headers": request.headers, "params": request.params}

        if isinstance(request.payload, MultipartPayload):
            kwargs["data"] = request.payload.fields
            kwargs["files"] = request.payload.files
        elif request.payload is not None:
            kwargs["json"] = request.payload

        try:
            response = await self._client.request(request.method, url, **kwargs)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            return self._transport_failure(request.endpoint, e)

        try:
            body = response.json()
        except ValueError:
            body = None

        if response.is_success and body is not None:
            logger.debug(
                f"Telegram endpoint {request.endpoint} succeeded",
                extra={"endpoint": request.endpoint, "status_code": response.status_code},
            )
            return ForwardSuccess(body=body)

        if body is None:
            body = {
                "description": f"Telegram returned HTTP {response.status_code} "
                               f"with a non-JSON body"
            }

        logger.error(
            f"Error forwarding to Telegram endpoint: {request.endpoint} {body}",
            extra={"endpoint": request.endpoint, "status_code": response.status_code},
        )
        return ForwardFailure(error_body=body)

    def _transport_failure(self, endpoint: str, error: Exception) -> ForwardFailure:
        message = self._settings.redact(str(error)) or type(error).__name__
        logger.error(
            f"Error forwarding to Telegram endpoint: {endpoint} {message}",
            extra={"endpoint": endpoint, "exception_type": type(error).__name__},
        )
        return ForwardFailure(error_body={"description": message})
