"""Switchboard Gateway - request translation for chat completion APIs.

Accepts chat requests in the content-block/tool-declaration format and
forwards them, translated to function-calling format, to one backend.

Components:
- Proxy server: Receives requests and relays backend responses
- Transforms: Request format conversion and type sanitation
- Clients: HTTP client for the backend endpoint

Usage (via compose.py convenience functions):
    from switchboard.compose import create_translation_proxy
    import asyncio

    asyncio.run(create_translation_proxy(
        backend_url="http://localhost:8000/v1/chat/completions",
        port=8080,
    ))

Usage (direct):
    from switchboard.gateway.translation_proxy import GatewayConfig, TranslationProxyServer
    import asyncio

    async def main():
        config = GatewayConfig(port=8080)
        server = TranslationProxyServer(config=config)
        await server.serve()

    asyncio.run(main())
"""

from switchboard.gateway.errors import (
    ERROR_TYPE_MAP,
    BackendError,
    BackendUnreachable,
    GatewayError,
    InvalidRequestBody,
    MalformedContent,
    SanitationDecodeError,
)
from switchboard.gateway.tracing import RequestTracer
from switchboard.gateway.translation_proxy import GatewayConfig, TranslationProxyServer

__all__ = [
    "ERROR_TYPE_MAP",
    "BackendError",
    "BackendUnreachable",
    "GatewayConfig",
    "GatewayError",
    "InvalidRequestBody",
    "MalformedContent",
    "RequestTracer",
    "SanitationDecodeError",
    "TranslationProxyServer",
]
