"""Backend client for forwarding translated requests.

Uses aiohttp.ClientSession, one shared session per gateway. Each forward
is a single round-trip: the backend's status, content type and raw body
are handed back untouched, and transport failures are raised as gateway
errors without retrying.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any

import aiohttp

from switchboard.gateway.errors import BackendError, BackendUnreachable

logger = logging.getLogger(__name__)


@dataclass
class BackendClientConfig:
    """Configuration for the backend client."""

    url: str

    # Timeouts (seconds)
    connect_timeout: float = 10.0
    read_timeout: float = 300.0


@dataclass(frozen=True)
class BackendResponse:
    """Raw backend response, relayed to the caller as-is."""

    status: int
    content_type: str | None
    body: bytes


@dataclass
class BackendClient:
    """HTTP client for the fixed backend endpoint."""

    config: BackendClientConfig
    _session: aiohttp.ClientSession | None = None

    async def connect(self) -> None:
        """Initialize the HTTP session."""
        timeout = aiohttp.ClientTimeout(
            connect=self.config.connect_timeout,
            total=self.config.read_timeout,
        )
        self._session = aiohttp.ClientSession(
            headers={"Content-Type": "application/json"},
            timeout=timeout,
        )

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session:
            await self._session.close()
            self._session = None

    async def forward(
        self,
        payload: dict[str, Any],
        trace_id: str | None = None,
    ) -> BackendResponse:
        """Send a translated payload to the backend.

        Args:
            payload: Target-format request body
            trace_id: Optional trace ID for correlation

        Returns:
            BackendResponse with the untouched status, content type and body

        Raises:
            BackendUnreachable: If the backend cannot be connected to
            BackendError: On timeouts and other transport failures
        """
        trace_id = trace_id or f"req_{int(time.time() * 1000)}"

        if self._session is None:
            raise RuntimeError("Client not connected. Call connect() first.")

        start_time = time.time()
        try:
            async with self._session.post(self.config.url, json=payload) as response:
                body = await response.read()
                result = BackendResponse(
                    status=response.status,
                    content_type=response.headers.get("Content-Type"),
                    body=body,
                )
        except aiohttp.ClientConnectorError as e:
            logger.error("[%s] Backend unreachable at %s: %s", trace_id, self.config.url, e)
            raise BackendUnreachable(f"Failed to forward request: {e}") from e
        except asyncio.TimeoutError as e:
            logger.error(
                "[%s] Backend timed out after %.1fs", trace_id, time.time() - start_time
            )
            raise BackendError("Failed to forward request: backend timed out", status=504) from e
        except aiohttp.ClientError as e:
            logger.error("[%s] Backend request failed: %s: %s", trace_id, type(e).__name__, e)
            raise BackendError(f"Failed to forward request: {e}") from e

        logger.debug(
            "[%s] Backend responded %d (%d bytes, %.2fs)",
            trace_id,
            result.status,
            len(result.body),
            time.time() - start_time,
        )
        if result.status >= 400:
            logger.warning(
                "[%s] Backend returned %d: %s",
                trace_id,
                result.status,
                result.body[:500].decode("utf-8", errors="replace"),
            )
        return result
