"""
Telegram Package
================

Outbound side of the relay: everything that talks to the Bot API.

Main Components:
----------------
- forwarder.py: TelegramForwarder, one call in, one ForwardResult out
- file_proxy.py: FileProxy, streaming relay for file downloads

Both components take the Settings object and the shared httpx.AsyncClient
in their constructor and keep no other state.
"""

from .file_proxy import FileProxy, FileProxyError, StreamedFile, relay_file_path
from .forwarder import TelegramForwarder

__all__ = [
    "FileProxy",
    "FileProxyError",
    "StreamedFile",
    "TelegramForwarder",
    "relay_file_path",
]
