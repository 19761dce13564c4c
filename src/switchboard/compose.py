"""Composition helpers for running the gateway.

These helpers resolve configuration and wire up the proxy server
without touching the individual layers.
"""

from __future__ import annotations

import asyncio

from switchboard.gateway.translation_proxy import GatewayConfig, TranslationProxyServer


async def create_translation_proxy(
    host: str | None = None,
    port: int | None = None,
    backend_url: str | None = None,
    debug_dir: str | None = None,
    reject_multi_block: bool | None = None,
    config_file: str | None = None,
) -> None:
    """Create and run a translation proxy server.

    The proxy accepts source-format chat requests, translates them to
    function-calling format and forwards them to the backend URL.

    Configuration priority:
    1. Function arguments (highest)
    2. Environment variables (PORT, SWITCHBOARD_BACKEND_URL, ...)
    3. Config file (if SWITCHBOARD_CONFIG is set)

    This is a convenience function that blocks until stopped.

    Example:
        >>> # export PORT=8080
        >>> # export SWITCHBOARD_BACKEND_URL=http://localhost:8000/v1/chat/completions
        >>> await create_translation_proxy()
    """
    config = await asyncio.to_thread(
        GatewayConfig.resolve,
        config_file,
        host=host,
        port=port,
        backend_url=backend_url,
        debug_dir=debug_dir,
        reject_multi_block=reject_multi_block,
    )

    server = TranslationProxyServer(config=config)
    await server.serve()
