"""
Proxy Routes - Telegram Bot API Relay
======================================

This module exposes the simplified REST surface the client application
talks to. Each route maps onto one Bot API method through the
TelegramForwarder, injecting the fixed destination chat where the method
needs one.

Response mapping:
-----------------
- ForwardSuccess -> 200, body is the Bot API reply
- ForwardFailure -> 500, body is the Bot API error (or {"description": ...})
- Missing upload  -> 400, {"ok": false, "description": "No file uploaded."}
- File streaming failure -> 500, plain text

Endpoints:
----------
- GET  /api/getUpdates
- POST /api/sendMessage
- POST /api/sendFile
- POST /api/getFile
- GET  /api/file/{file_path}
- POST /api/deleteMessage
- POST /api/setReaction
"""

import json
import logging
from typing import Any, Dict, Optional, Tuple, Union

import anyio
from fastapi import APIRouter, Body, Depends, File, Form, HTTPException, Query, Request, UploadFile, status
from fastapi.responses import JSONResponse, PlainTextResponse, StreamingResponse
from starlette.datastructures import UploadFile as StarletteUploadFile

from ..config import Settings
from ..models import (
    DeleteMessageRequest,
    ErrorResponse,
    ForwardResult,
    ForwardSuccess,
    MultipartPayload,
)
from ..telegram import FileProxy, FileProxyError, StreamedFile, TelegramForwarder, relay_file_path

logger = logging.getLogger(__name__)

proxy_router = APIRouter(prefix="/api")

ALLOWED_UPDATES = ["message", "message_reaction"]
NO_FILE_DESCRIPTION = "No file uploaded."
FILE_ERROR_TEXT = "Error fetching file."


# ============================================================================
# Dependencies
# ============================================================================

def _app_state(request: Request):
    app_state = getattr(request.app.state, "app_state", None)
    if app_state is None or app_state.forwarder is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Telegram client not initialized",
        )
    return app_state


def get_relay_settings(request: Request) -> Settings:
    """Dependency returning the settings the application was started with."""
    return _app_state(request).settings


def get_forwarder(request: Request) -> TelegramForwarder:
    """Dependency returning the shared TelegramForwarder."""
    return _app_state(request).forwarder


def get_file_proxy(request: Request) -> FileProxy:
    """Dependency returning the shared FileProxy."""
    return _app_state(request).file_proxy


# ============================================================================
# Helpers
# ============================================================================

def result_response(result: ForwardResult) -> JSONResponse:
    """Map a ForwardResult onto the relay's HTTP response."""
    if isinstance(result, ForwardSuccess):
        return JSONResponse(status_code=status.HTTP_200_OK, content=result.body)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=result.error_body,
    )


class ProxiedFileResponse(StreamingResponse):
    """
    StreamingResponse that owns an upstream download.

    The upstream response is closed when the ASGI call returns or raises,
    including client disconnects and cancellation.
    """

    def __init__(self, streamed: StreamedFile):
        super().__init__(streamed.iter_bytes(), media_type=streamed.content_type)
        self.streamed = streamed

    async def __call__(self, scope, receive, send) -> None:
        try:
            await super().__call__(scope, receive, send)
        finally:
            with anyio.CancelScope(shield=True):
                await self.streamed.aclose()


def select_media_kind(content_type: Optional[str]) -> Tuple[str, str]:
    """
    Pick the Bot API upload method and its file field from a MIME type.

    Returns:
        (endpoint, field name): sendPhoto/photo for image/*,
        sendVideo/video for video/*, sendDocument/document otherwise
    """
    content_type = (content_type or "").lower()
    if content_type.startswith("image/"):
        return "sendPhoto", "photo"
    if content_type.startswith("video/"):
        return "sendVideo", "video"
    return "sendDocument", "document"


# ============================================================================
# Proxy Endpoints
# ============================================================================

@proxy_router.get("/getUpdates")
async def get_updates(
    offset: Optional[int] = Query(None),
    timeout: Optional[int] = Query(None, ge=0),
    settings: Settings = Depends(get_relay_settings),
    forwarder: TelegramForwarder = Depends(get_forwarder),
):
    """
    Long-poll the Bot API for new messages and reactions.

    The timeout is passed through unchanged; the Bot API holds the request
    open for up to that many seconds.
    """
    params: Dict[str, Any] = {
        "timeout": settings.GET_UPDATES_TIMEOUT if timeout is None else timeout,
        "allowed_updates": json.dumps(ALLOWED_UPDATES),
    }
    if offset is not None:
        params["offset"] = offset

    result = await forwarder.forward("getUpdates", method="GET", params=params)
    return result_response(result)


@proxy_router.post("/sendMessage")
async def send_message(
    payload: Optional[Dict[str, Any]] = Body(None),
    settings: Settings = Depends(get_relay_settings),
    forwarder: TelegramForwarder = Depends(get_forwarder),
):
    """Send a text message, to the configured chat unless the body names one."""
    result = await forwarder.forward(
        "sendMessage", {"chat_id": settings.TELEGRAM_CHAT_ID, **(payload or {})}
    )
    return result_response(result)


@proxy_router.post("/sendFile")
async def send_file(
    file: Union[UploadFile, str, None] = File(None),
    caption: Optional[str] = Form(None),
    reply_parameters: Optional[str] = Form(None),
    settings: Settings = Depends(get_relay_settings),
    forwarder: TelegramForwarder = Depends(get_forwarder),
):
    """
    Upload a file to the configured chat.

    The media kind follows the upload's declared MIME type. reply_parameters
    is passed on as the JSON string the client sent.
    """
    # Browsers send an empty file input as a part with filename=""
    if not isinstance(file, StarletteUploadFile) or not file.filename:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=ErrorResponse(description=NO_FILE_DESCRIPTION).model_dump(),
        )

    endpoint, file_field = select_media_kind(file.content_type)
    content = await file.read()

    fields = {"chat_id": settings.TELEGRAM_CHAT_ID}
    if caption:
        fields["caption"] = caption
    if reply_parameters:
        fields["reply_parameters"] = reply_parameters

    upload = MultipartPayload(
        fields=fields,
        files={
            file_field: (
                file.filename or file_field,
                content,
                file.content_type or "application/octet-stream",
            )
        },
    )

    logger.info(
        f"Uploading file via {endpoint}",
        extra={"endpoint": endpoint, "size": len(content)},
    )

    result = await forwarder.forward(endpoint, upload)
    return result_response(result)


@proxy_router.post("/getFile")
async def get_file(
    request: Request,
    payload: Optional[Dict[str, Any]] = Body(None),
    settings: Settings = Depends(get_relay_settings),
    forwarder: TelegramForwarder = Depends(get_forwarder),
):
    """
    Resolve a file_id to file metadata.

    result.file_path is rewritten to this relay's /api/file route so the
    token-bearing download URL never reaches the client.
    """
    result = await forwarder.forward("getFile", payload or {})

    if isinstance(result, ForwardSuccess):
        file_info = result.body.get("result") if isinstance(result.body, dict) else None
        if isinstance(file_info, dict) and file_info.get("file_path"):
            route_path = request.app.url_path_for("proxy_file", file_path=file_info["file_path"])
            file_info["file_path"] = relay_file_path(str(route_path), settings.RELAY_PUBLIC_URL)

    return result_response(result)


@proxy_router.get("/file/{file_path:path}", name="proxy_file")
async def proxy_file(
    file_path: str,
    file_proxy: FileProxy = Depends(get_file_proxy),
):
    """Stream the bytes of a file resolved through /api/getFile."""
    try:
        streamed = await file_proxy.open(file_path)
    except FileProxyError:
        return PlainTextResponse(FILE_ERROR_TEXT, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    return ProxiedFileResponse(streamed)


@proxy_router.post("/deleteMessage")
async def delete_message(
    payload: Optional[DeleteMessageRequest] = None,
    settings: Settings = Depends(get_relay_settings),
    forwarder: TelegramForwarder = Depends(get_forwarder),
):
    """
    Post notificationText to the configured chat.

    No deletion happens: message_id is read and ignored, and the call is a
    plain sendMessage. Clients depend on this behaviour as it stands.
    """
    payload = payload or DeleteMessageRequest()
    if payload.message_id is not None:
        logger.debug(
            "deleteMessage ignores message_id",
            extra={"message_id": payload.message_id},
        )

    result = await forwarder.forward(
        "sendMessage",
        {"chat_id": settings.TELEGRAM_CHAT_ID, "text": payload.notificationText},
    )
    return result_response(result)


@proxy_router.post("/setReaction")
async def set_reaction(
    payload: Optional[Dict[str, Any]] = Body(None),
    settings: Settings = Depends(get_relay_settings),
    forwarder: TelegramForwarder = Depends(get_forwarder),
):
    """Set a reaction on a message, in the configured chat unless the body names one."""
    result = await forwarder.forward(
        "setMessageReaction", {"chat_id": settings.TELEGRAM_CHAT_ID, **(payload or {})}
    )
    return result_response(result)
