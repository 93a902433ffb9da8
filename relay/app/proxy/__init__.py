"""
Proxy Package
=============

This package implements the relay endpoints that translate calls from the
client application into Telegram Bot API calls.

Main Components:
----------------
- routes.py: FastAPI router with the /api endpoints

Security Features:
------------------
- The bot token is only used on outbound requests
- File paths returned by getFile point at the relay, not at Telegram
- The destination chat is fixed by configuration

Usage:
------
    from relay.app.proxy import proxy_router
    app.include_router(proxy_router)
"""

from .routes import proxy_router

__all__ = ["proxy_router"]
