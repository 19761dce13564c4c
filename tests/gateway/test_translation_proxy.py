"""End-to-end tests for TranslationProxyServer."""

import asyncio
import json

import aiohttp
import pytest
from aioresponses import aioresponses
from yarl import URL

from switchboard.gateway import translation_proxy
from switchboard.gateway.translation_proxy import GatewayConfig, TranslationProxyServer

BACKEND_URL = "http://backend.test/v1/chat/completions"


async def _start(config: GatewayConfig):
    """Start a proxy server on a free port and return (server, base_url)."""
    from aiohttp import web

    server = TranslationProxyServer(config=config)
    await server.connect()
    app = server.build_app()

    server._runner = web.AppRunner(app, handler_cancellation=True)
    await server._runner.setup()
    site = web.TCPSite(server._runner, "127.0.0.1", 0)
    await site.start()

    actual_port = site._server.sockets[0].getsockname()[1]
    return server, f"http://127.0.0.1:{actual_port}"


def _forwarded(m: aioresponses) -> list[dict]:
    """JSON bodies sent to the mocked backend."""
    calls = m.requests.get(("POST", URL(BACKEND_URL)), [])
    return [call.kwargs["json"] for call in calls]


class TestTranslationProxyServer:
    """End-to-end tests for the proxy server."""

    @pytest.fixture
    def proxy_config(self):
        """Create a test proxy config."""
        return GatewayConfig(
            host="127.0.0.1",
            port=0,  # Let OS pick a port
            backend_url=BACKEND_URL,
            read_timeout=5.0,
        )

    @pytest.fixture
    async def running_proxy(self, proxy_config):
        """Start a proxy server for testing."""
        server, base_url = await _start(proxy_config)

        yield server, base_url

        await server.stop()

    async def test_health_check(self, running_proxy):
        """Health endpoint should return ok status and the backend."""
        server, base_url = running_proxy

        async with aiohttp.ClientSession() as session:
            async with session.get(f"{base_url}/health") as resp:
                assert resp.status == 200
                data = await resp.json()
                assert data == {"status": "ok", "backend": BACKEND_URL}

    @pytest.mark.parametrize("method", ["GET", "PUT", "DELETE", "PATCH"])
    async def test_only_post_allowed(self, running_proxy, method):
        """Non-POST methods should get 405."""
        server, base_url = running_proxy

        async with (
            aiohttp.ClientSession() as session,
            session.request(method, f"{base_url}/v1/chat/completions") as resp,
        ):
            assert resp.status == 405
            assert resp.headers["Allow"] == "POST"
            data = await resp.json()
            assert data["error"]["message"] == "Only POST supported"

    async def test_invalid_json(self, running_proxy):
        """Unparseable bodies should be rejected as client errors."""
        server, base_url = running_proxy

        with aioresponses(passthrough=[base_url]) as m:
            async with (
                aiohttp.ClientSession() as session,
                session.post(
                    f"{base_url}/v1/chat/completions",
                    data="{not valid json",
                    headers={"Content-Type": "application/json"},
                ) as resp,
            ):
                assert resp.status == 400
                assert "X-Trace-Id" in resp.headers
                data = await resp.json()
                assert data["type"] == "error"
                assert data["error"]["type"] == "invalid_request_error"
                assert "JSON" in data["error"]["message"]

            assert _forwarded(m) == []

    async def test_wrong_shape(self, running_proxy):
        """Bodies that are not source payloads should be rejected."""
        server, base_url = running_proxy

        async with (
            aiohttp.ClientSession() as session,
            session.post(
                f"{base_url}/v1/chat/completions",
                json={"messages": [{"role": "user", "content": 42}]},
            ) as resp,
        ):
            assert resp.status == 400
            data = await resp.json()
            assert data["error"]["type"] == "invalid_request_error"

    async def test_empty_content_is_client_error(self, running_proxy):
        """An empty content list should be a 400, and nothing forwarded."""
        server, base_url = running_proxy

        with aioresponses(passthrough=[base_url]) as m:
            async with (
                aiohttp.ClientSession() as session,
                session.post(
                    f"{base_url}/v1/chat/completions",
                    json={"model": "x", "messages": [{"role": "user", "content": []}]},
                ) as resp,
            ):
                assert resp.status == 400
                data = await resp.json()
                assert "empty content" in data["error"]["message"]

            assert _forwarded(m) == []

            # The server keeps serving after a malformed request
            async with (
                aiohttp.ClientSession() as session,
                session.get(f"{base_url}/health") as resp,
            ):
                assert resp.status == 200

    async def test_translated_request_is_forwarded(self, running_proxy):
        """The backend should receive the translated payload."""
        server, base_url = running_proxy

        with aioresponses(passthrough=[base_url]) as m:
            m.post(BACKEND_URL, payload={"id": "chatcmpl-1"})

            async with (
                aiohttp.ClientSession() as session,
                session.post(
                    f"{base_url}/v1/chat/completions",
                    json={
                        "tools": [
                            {
                                "name": "search",
                                "description": "web search",
                                "input_schema": {"type": "object"},
                            }
                        ],
                        "tool_choice": {"type": "auto"},
                        "messages": [
                            {"role": "user", "content": [{"type": "text", "text": "hi"}]},
                            {
                                "role": "assistant",
                                "content": [
                                    {
                                        "type": "tool_use",
                                        "id": "t1",
                                        "name": "search",
                                        "input": {"q": "x"},
                                        "content": [{"type": "text", "text": "result body"}],
                                    }
                                ],
                            },
                        ],
                        "model": "x",
                        "max_tokens": 100,
                    },
                ) as resp,
            ):
                assert resp.status == 200

            forwarded = _forwarded(m)
            assert len(forwarded) == 1
            assert forwarded[0] == {
                "tools": [
                    {
                        "type": "function",
                        "function": {
                            "name": "search",
                            "description": "web search",
                            "parameters": {"type": "object"},
                        },
                    }
                ],
                "messages": [
                    {"role": "user", "content": [{"type": "text", "text": "hi"}]},
                    {
                        "role": "tool",
                        "content": [
                            {
                                "type": "text",
                                "text": "result body",
                                "id": "t1",
                                "input": {"q": "x"},
                                "name": "search",
                            }
                        ],
                    },
                ],
                "tool_choice": "auto",
                "model": "x",
                "max_tokens": 100,
            }

    async def test_backend_response_relayed_verbatim(self, running_proxy):
        """Status, content type and body should come back unmodified."""
        server, base_url = running_proxy
        raw_body = '{"id":"chatcmpl-1",  "choices":[]}'

        with aioresponses(passthrough=[base_url]) as m:
            m.post(BACKEND_URL, status=200, body=raw_body, content_type="application/json")

            async with (
                aiohttp.ClientSession() as session,
                session.post(
                    f"{base_url}/v1/chat/completions",
                    json={"messages": [{"role": "user", "content": "Hello"}]},
                ) as resp,
            ):
                assert resp.status == 200
                assert resp.headers["Content-Type"].startswith("application/json")
                assert "X-Trace-Id" in resp.headers
                assert await resp.text() == raw_body

    async def test_backend_error_status_relayed(self, running_proxy):
        """Backend error statuses are relayed, not reinterpreted."""
        server, base_url = running_proxy

        with aioresponses(passthrough=[base_url]) as m:
            m.post(BACKEND_URL, status=422, body="bad tools", content_type="text/plain")

            async with (
                aiohttp.ClientSession() as session,
                session.post(
                    f"{base_url}/v1/chat/completions",
                    json={"messages": [{"role": "user", "content": "Hello"}]},
                ) as resp,
            ):
                assert resp.status == 422
                assert resp.headers["Content-Type"].startswith("text/plain")
                assert await resp.text() == "bad tools"

    async def test_backend_timeout(self, running_proxy):
        """A backend timeout should surface as a gateway timeout."""
        server, base_url = running_proxy

        with aioresponses(passthrough=[base_url]) as m:
            m.post(BACKEND_URL, exception=asyncio.TimeoutError())

            async with (
                aiohttp.ClientSession() as session,
                session.post(
                    f"{base_url}/v1/chat/completions",
                    json={"messages": [{"role": "user", "content": "Hello"}]},
                ) as resp,
            ):
                assert resp.status == 504
                data = await resp.json()
                assert data["error"]["type"] == "api_error"
                assert "timed out" in data["error"]["message"]

    async def test_backend_transport_error(self, running_proxy):
        """Transport failures should surface as bad gateway, without retrying."""
        server, base_url = running_proxy

        with aioresponses(passthrough=[base_url]) as m:
            m.post(BACKEND_URL, exception=aiohttp.ServerDisconnectedError())

            async with (
                aiohttp.ClientSession() as session,
                session.post(
                    f"{base_url}/v1/chat/completions",
                    json={"messages": [{"role": "user", "content": "Hello"}]},
                ) as resp,
            ):
                assert resp.status == 502
                data = await resp.json()
                assert data["error"]["message"].startswith("Failed to forward request")

            assert len(_forwarded(m)) == 1

    async def test_concurrent_requests_are_independent(self, running_proxy):
        """A malformed request should not affect a concurrent good one."""
        server, base_url = running_proxy

        with aioresponses(passthrough=[base_url]) as m:
            m.post(BACKEND_URL, payload={"ok": True})

            async def post(body):
                async with (
                    aiohttp.ClientSession() as session,
                    session.post(f"{base_url}/v1/chat/completions", json=body) as resp,
                ):
                    return resp.status

            statuses = await asyncio.gather(
                post({"messages": [{"role": "user", "content": []}]}),
                post({"messages": [{"role": "user", "content": "Hello"}]}),
            )

            assert statuses == [400, 200]

    async def test_deeply_nested_body_is_client_error(self, running_proxy):
        """Over-deep pass-through fields get a structured 400, nothing forwarded."""
        server, base_url = running_proxy
        depth = 3000
        raw = (
            '{"messages": [{"role": "user", "content": "hi"}], "metadata": '
            + '{"a": ' * depth
            + "1"
            + "}" * depth
            + "}"
        )

        with aioresponses(passthrough=[base_url]) as m:
            async with (
                aiohttp.ClientSession() as session,
                session.post(
                    f"{base_url}/v1/chat/completions",
                    data=raw,
                    headers={"Content-Type": "application/json"},
                ) as resp,
            ):
                assert resp.status == 400
                assert "X-Trace-Id" in resp.headers
                data = await resp.json()
                assert data["type"] == "error"
                assert data["error"]["type"] == "invalid_request_error"

            assert _forwarded(m) == []

    async def test_unexpected_error_is_structured(self, running_proxy, monkeypatch):
        """Errors outside the gateway taxonomy still get a JSON 500."""
        server, base_url = running_proxy

        def broken_translate(*args, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(translation_proxy, "translate_request", broken_translate)

        async with (
            aiohttp.ClientSession() as session,
            session.post(
                f"{base_url}/v1/chat/completions",
                json={"messages": [{"role": "user", "content": "Hello"}]},
            ) as resp,
        ):
            assert resp.status == 500
            assert "X-Trace-Id" in resp.headers
            data = await resp.json()
            assert data["error"]["type"] == "api_error"
            assert data["error"]["message"] == "Internal error: boom"


class TestTranslationProxyOptions:
    """Tests for config-driven behavior."""

    async def test_strict_blocks_rejects_multi_block(self):
        server, base_url = await _start(
            GatewayConfig(port=0, backend_url=BACKEND_URL, reject_multi_block=True)
        )
        try:
            async with (
                aiohttp.ClientSession() as session,
                session.post(
                    f"{base_url}/v1/chat/completions",
                    json={
                        "messages": [
                            {
                                "role": "user",
                                "content": [
                                    {"type": "text", "text": "a"},
                                    {"type": "text", "text": "b"},
                                ],
                            }
                        ]
                    },
                ) as resp,
            ):
                assert resp.status == 400
                data = await resp.json()
                assert "multi-block" in data["error"]["message"]
        finally:
            await server.stop()

    async def test_custom_route_path(self):
        server, base_url = await _start(
            GatewayConfig(port=0, backend_url=BACKEND_URL, route_path="/proxy")
        )
        try:
            with aioresponses(passthrough=[base_url]) as m:
                m.post(BACKEND_URL, payload={})
                async with (
                    aiohttp.ClientSession() as session,
                    session.post(
                        f"{base_url}/proxy",
                        json={"messages": [{"role": "user", "content": "Hi"}]},
                    ) as resp,
                ):
                    assert resp.status == 200
        finally:
            await server.stop()

    async def test_backend_unreachable(self):
        """A refused connection should surface as bad gateway."""
        server, base_url = await _start(
            GatewayConfig(
                port=0,
                backend_url="http://127.0.0.1:1/v1/chat/completions",
                connect_timeout=2.0,
            )
        )
        try:
            async with (
                aiohttp.ClientSession() as session,
                session.post(
                    f"{base_url}/v1/chat/completions",
                    json={"messages": [{"role": "user", "content": "Hi"}]},
                ) as resp,
            ):
                assert resp.status == 502
                data = await resp.json()
                assert data["error"]["type"] == "api_error"
        finally:
            await server.stop()

    async def test_debug_files_saved(self, tmp_path):
        server, base_url = await _start(
            GatewayConfig(port=0, backend_url=BACKEND_URL, debug_dir=str(tmp_path))
        )
        try:
            with aioresponses(passthrough=[base_url]) as m:
                m.post(BACKEND_URL, payload={"id": "1"})
                async with (
                    aiohttp.ClientSession() as session,
                    session.post(
                        f"{base_url}/v1/chat/completions",
                        json={"messages": [{"role": "user", "content": "Hi"}], "model": "x"},
                    ) as resp,
                ):
                    trace_id = resp.headers["X-Trace-Id"]
        finally:
            await server.stop()

        trace_dirs = list((tmp_path / "logs").glob(f"*/{trace_id}"))
        assert len(trace_dirs) == 1
        saved = {p.name for p in trace_dirs[0].iterdir()}
        assert saved == {
            "1_source_request.json",
            "2_target_request.json",
            "3_backend_response.json",
        }
        target = json.loads((trace_dirs[0] / "2_target_request.json").read_text())
        assert target["model"] == "x"
