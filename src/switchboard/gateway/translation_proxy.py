"""Translation proxy server.

Exposes a chat completions endpoint that accepts source-format requests
(content blocks with named tool declarations) and forwards them to a
single function-calling backend.

This server:
1. Accepts source format requests
2. Translates tools and messages to the target format
3. Sanitizes leftover tool markers
4. Forwards to the fixed backend URL
5. Relays the backend's status, content type and body unmodified
"""

from __future__ import annotations

import asyncio
import logging
import os
import time
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml
from aiohttp import web

from switchboard.gateway.clients.backend_client import BackendClient, BackendClientConfig
from switchboard.gateway.errors import GatewayError
from switchboard.gateway.tracing import RequestTracer
from switchboard.gateway.transforms.payload import translate_request
from switchboard.gateway.transforms.sanitize import TypeSanitizer
from switchboard.gateway.transforms.types import TranslationOptions
from switchboard.gateway.transforms.validation import parse_body

if TYPE_CHECKING:
    from switchboard.gateway.clients.backend_client import BackendResponse

logger = logging.getLogger(__name__)

DEFAULT_BACKEND_URL = "http://localhost:8000/v1/chat/completions"
DEFAULT_ROUTE_PATH = "/v1/chat/completions"
DEFAULT_PORT = 80

# Environment variable names for each configurable field
ENV_KEYS = {
    "host": "SWITCHBOARD_HOST",
    "port": "PORT",
    "route_path": "SWITCHBOARD_ROUTE_PATH",
    "backend_url": "SWITCHBOARD_BACKEND_URL",
    "connect_timeout": "SWITCHBOARD_CONNECT_TIMEOUT",
    "read_timeout": "SWITCHBOARD_READ_TIMEOUT",
    "reject_multi_block": "SWITCHBOARD_REJECT_MULTI_BLOCK",
    "debug_dir": "SWITCHBOARD_DEBUG_DIR",
}
CONFIG_FILE_ENV = "SWITCHBOARD_CONFIG"

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass
class GatewayConfig:
    """Configuration for the translation proxy server."""

    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    route_path: str = DEFAULT_ROUTE_PATH

    # Backend configuration
    backend_url: str = DEFAULT_BACKEND_URL

    # Client configuration
    connect_timeout: float = 10.0
    read_timeout: float = 300.0

    # Request limits
    max_body_size: int = 500 * 1024 * 1024  # 500MB

    # Translation: reject messages with more than one content block
    reject_multi_block: bool = False

    # Debug: save raw requests/responses to files
    debug_dir: str | None = None  # e.g., "/tmp/switchboard-debug"

    @classmethod
    def resolve(
        cls,
        config_file: str | None = None,
        env: dict[str, str] | None = None,
        **overrides: Any,
    ) -> GatewayConfig:
        """Build a config from arguments, environment and a YAML file.

        Priority: overrides > environment > config file > defaults.
        Overrides that are None are ignored.

        Args:
            config_file: Path to YAML config (or SWITCHBOARD_CONFIG env var).
            env: Environment mapping (defaults to os.environ).
            **overrides: Field values given explicitly.
        """
        unknown = set(overrides) - {f.name for f in fields(cls)}
        if unknown:
            raise TypeError(f"Unknown config fields: {', '.join(sorted(unknown))}")

        env = dict(os.environ) if env is None else env
        file_config = load_config_file(config_file or env.get(CONFIG_FILE_ENV))

        values: dict[str, Any] = {}
        for f in fields(cls):
            if overrides.get(f.name) is not None:
                values[f.name] = overrides[f.name]
                continue
            env_key = ENV_KEYS.get(f.name)
            if env_key and env.get(env_key):
                values[f.name] = env[env_key]
                continue
            if file_config.get(f.name) is not None:
                values[f.name] = file_config[f.name]

        return cls(**_coerce(values))

    @property
    def translation_options(self) -> TranslationOptions:
        return TranslationOptions(reject_multi_block=self.reject_multi_block)


def load_config_file(path: str | None) -> dict[str, Any]:
    """Load a YAML config file. Returns an empty dict when path is None.

    Raises:
        FileNotFoundError: If the path does not exist
        ValueError: If the file does not hold a mapping
    """
    if not path:
        return {}
    content = Path(path).read_text()
    data = yaml.safe_load(content) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping")
    return data


def _coerce(values: dict[str, Any]) -> dict[str, Any]:
    """Convert string values (from env vars) to the field types."""
    result = dict(values)
    for key in ("port", "max_body_size"):
        if key in result:
            result[key] = int(result[key])
    for key in ("connect_timeout", "read_timeout"):
        if key in result:
            result[key] = float(result[key])
    if "reject_multi_block" in result and isinstance(result["reject_multi_block"], str):
        result["reject_multi_block"] = result["reject_multi_block"].lower() in _TRUE_VALUES
    return result


@dataclass
class TranslationProxyServer:
    """Transport that accepts source-format chat requests and
    forwards them, translated, to a function-calling backend.

    Example:
        >>> config = GatewayConfig(
        ...     port=8080,
        ...     backend_url="http://localhost:8000/v1/chat/completions",
        ... )
        >>> server = TranslationProxyServer(config=config)
        >>> await server.serve()
    """

    config: GatewayConfig
    _app: web.Application | None = None
    _runner: web.AppRunner | None = None
    _client: BackendClient | None = None
    _sanitizer: TypeSanitizer = field(default_factory=TypeSanitizer)
    _shutdown_event: asyncio.Event = field(default_factory=asyncio.Event)
    _tracer: RequestTracer = field(init=False)

    def __post_init__(self) -> None:
        """Initialize tracer with debug directory from config."""
        self._tracer = RequestTracer(debug_dir=self.config.debug_dir)

    def _save_debug(self, trace_id: str, filename: str, data: Any) -> None:
        """Save debug data to JSON file if debug_dir is configured."""
        self._tracer.save_debug(trace_id, filename, data)

    async def connect(self) -> None:
        """Open the backend client."""
        self._client = BackendClient(
            config=BackendClientConfig(
                url=self.config.backend_url,
                connect_timeout=self.config.connect_timeout,
                read_timeout=self.config.read_timeout,
            )
        )
        await self._client.connect()

    def build_app(self) -> web.Application:
        """Create the aiohttp application with the gateway routes."""
        app = web.Application(client_max_size=self.config.max_body_size)
        app.router.add_get("/health", self._handle_health)
        app.router.add_route("*", self.config.route_path, self._handle_translate)
        self._app = app
        return app

    async def serve(self) -> None:
        """Start the proxy server and block until shutdown."""
        await self.connect()
        app = self.build_app()

        # Cancel the handler (and its backend call) when the caller disconnects
        self._runner = web.AppRunner(app, handler_cancellation=True)
        await self._runner.setup()

        site = web.TCPSite(self._runner, self.config.host, self.config.port)
        await site.start()
        logger.info(
            "Proxy listening on %s:%s%s -> %s",
            self.config.host,
            self.config.port,
            self.config.route_path,
            self.config.backend_url,
        )
        if self.config.debug_dir:
            logger.info("Debug files will be saved to: %s", self.config.debug_dir)

        await self._shutdown_event.wait()
        logger.info("Proxy shutdown requested")
        await self.stop()

    def shutdown(self) -> None:
        """Ask a running serve() to stop."""
        self._shutdown_event.set()

    async def stop(self) -> None:
        """Stop the proxy server."""
        if self._client:
            await self._client.close()
            self._client = None
        if self._runner:
            await self._runner.cleanup()
            self._runner = None

    async def _handle_translate(self, request: web.Request) -> web.Response:
        """Handle the chat completions route - main proxy endpoint."""
        if request.method != "POST":
            response = self._error_response(GatewayError("Only POST supported", status=405))
            response.headers["Allow"] = "POST"
            return response

        start_time = time.time()
        raw = await request.read()
        trace_id: str | None = None

        try:
            body = parse_body(raw)
            trace_id = self._tracer.generate_trace_id(body)
            self._tracer.log_request(trace_id, request.method, request.path, len(raw))
            self._save_debug(trace_id, "1_source_request.json", body)

            result = translate_request(
                body,
                options=self.config.translation_options,
                sanitizer=self._sanitizer,
                trace_id=trace_id,
            )
            self._save_debug(trace_id, "2_target_request.json", result.payload)

            logger.info(
                "[%s] Request: model=%s, messages=%d, tools=%d -> forwarding to %s",
                trace_id,
                body.get("model", "unknown"),
                len(result.payload["messages"]),
                len(result.payload.get("tools", [])),
                self.config.backend_url,
            )

            if not self._client:
                raise GatewayError("Backend client not initialized", status=503)
            backend_response = await self._client.forward(result.payload, trace_id)

        except GatewayError as e:
            trace_id = trace_id or self._tracer.generate_trace_id(None)
            self._tracer.log_response(
                trace_id, e.status, time.time() - start_time, error=e.message
            )
            return self._error_response(e, trace_id)
        except Exception as e:
            trace_id = trace_id or self._tracer.generate_trace_id(None)
            logger.exception("[%s] Unexpected error", trace_id)
            error = GatewayError(f"Internal error: {e}", status=500)
            self._tracer.log_response(
                trace_id, error.status, time.time() - start_time, error=error.message
            )
            return self._error_response(error, trace_id)

        self._save_debug(
            trace_id,
            "3_backend_response.json",
            {
                "status": backend_response.status,
                "content_type": backend_response.content_type,
                "body": backend_response.body.decode("utf-8", errors="replace"),
            },
        )
        self._tracer.log_response(
            trace_id,
            backend_response.status,
            time.time() - start_time,
            response_size=len(backend_response.body),
        )
        return self._relay(backend_response, trace_id)

    def _relay(self, backend_response: BackendResponse, trace_id: str) -> web.Response:
        """Build the caller response from the raw backend response."""
        headers = {"X-Trace-Id": trace_id}
        if backend_response.content_type:
            headers["Content-Type"] = backend_response.content_type
        return web.Response(
            body=backend_response.body,
            status=backend_response.status,
            headers=headers,
        )

    def _error_response(self, error: GatewayError, trace_id: str | None = None) -> web.Response:
        """Return a JSON error response."""
        headers = {"X-Trace-Id": trace_id} if trace_id else None
        return web.json_response(error.to_dict(), status=error.status, headers=headers)

    async def _handle_health(self, request: web.Request) -> web.Response:
        """Handle GET /health."""
        return web.json_response({"status": "ok", "backend": self.config.backend_url})
