"""
Data Models Module

This module defines Pydantic models for the values that flow through the
relay. None of them are persisted; each is built for a single call.

Models are organized by functional area:
- Forwarding models (outbound request description and its tagged result)
- Request models (relay routes with a declared body shape)
- Response models (error and health payloads)
"""

from datetime import datetime, timezone
from typing import Any, Dict, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# Forwarding Models
# ============================================================================

class MultipartPayload(BaseModel):
    """
    Multipart body for a Bot API upload method.

    httpx builds the boundary and the matching Content-Type header from
    these parts when the request is sent.
    """
    fields: Dict[str, str] = Field(default_factory=dict, description="Plain form fields")
    files: Dict[str, Tuple[str, bytes, str]] = Field(
        default_factory=dict,
        description="Form field name -> (filename, content, content type)",
    )


class ForwardRequest(BaseModel):
    """One outbound call to the Bot API."""
    endpoint: str = Field(..., min_length=1, description="Bot API method name")
    method: Literal["GET", "POST"] = Field(default="POST", description="HTTP method")
    # Any, so a JSON object is never coerced into a MultipartPayload
    payload: Any = Field(default=None, description="JSON object or MultipartPayload")
    params: Optional[Dict[str, Any]] = Field(default=None, description="Query string parameters")
    headers: Dict[str, str] = Field(default_factory=dict, description="Extra request headers")


class ForwardSuccess(BaseModel):
    """The Bot API accepted the call; body is its JSON reply, untouched."""
    ok: Literal[True] = True
    body: Any = None


class ForwardFailure(BaseModel):
    """
    The call failed.

    error_body is the Bot API's own error payload when it sent one,
    otherwise {"description": <local error message>}.
    """
    ok: Literal[False] = False
    error_body: Any = None


ForwardResult = Union[ForwardSuccess, ForwardFailure]


# ============================================================================
# Request Models
# ============================================================================

class DeleteMessageRequest(BaseModel):
    """Body of /api/deleteMessage. message_id is accepted but unused."""
    model_config = ConfigDict(extra="allow")

    message_id: Any = Field(None, description="Message the client asked to delete, not validated")
    notificationText: Any = Field(None, description="Text sent to the chat instead, passed through as given")


# ============================================================================
# Response Models
# ============================================================================

class ErrorResponse(BaseModel):
    """Error body in the Bot API's own shape."""
    ok: Literal[False] = False
    description: str = Field(..., description="Human-readable error message")


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Service health status")
    service: str = Field(..., description="Service name")
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Check timestamp",
    )
    configured: bool = Field(..., description="Whether token and chat id are set")
