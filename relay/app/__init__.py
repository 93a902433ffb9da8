"""
Telegram Relay Application
==========================

Stateless HTTP relay between a client application and the Telegram Bot API.

Packages:
    - proxy: the /api routes exposed to the client application
    - telegram: the outbound forwarder and the streaming file proxy

Modules:
    - main: application factory and lifespan
    - config: environment-driven settings
    - models: pydantic models for forwarded calls and responses
"""
