"""Tier 2 fixtures: local aiohttp matchmaker serving SSE, JSON-RPC and history."""

from __future__ import annotations

import asyncio
import contextlib
import json

import pytest
from aiohttp import web

from tests.factories import make_tx_event

BASE_URL = "http://127.0.0.1:9198"


class FakeMatchmaker:
    """Scripted server state shared with the tests.

    ``sessions`` holds one list of (event, id, payload) frames per SSE
    connection. A connection ends after its frames unless ``hold`` is set
    for it, in which case it idles until teardown.
    """

    def __init__(self) -> None:
        self.sessions: list[list[tuple[str, str, dict]]] = []
        self.hold: set[int] = set()
        self.stream_requests: list = []
        self.rpc_requests: list[dict] = []
        self.release = asyncio.Event()

    async def handle_stream(self, request: web.Request) -> web.StreamResponse:
        index = len(self.stream_requests)
        self.stream_requests.append(request.headers.copy())
        resp = web.StreamResponse(headers={"Content-Type": "text/event-stream"})
        await resp.prepare(request)
        await resp.write(b": connected\n\n")
        frames = self.sessions[index] if index < len(self.sessions) else []
        for event, event_id, payload in frames:
            frame = f"event: {event}\nid: {event_id}\ndata: {json.dumps(payload)}\n\n"
            await resp.write(frame.encode())
        if index in self.hold or index >= len(self.sessions):
            with contextlib.suppress(asyncio.TimeoutError):
                await asyncio.wait_for(self.release.wait(), timeout=5)
        return resp

    async def handle_rpc(self, request: web.Request) -> web.Response:
        body = await request.json()
        self.rpc_requests.append(body)
        if body["method"] == "mev_sendBundle":
            result = {"bundleHash": "0x" + "ee" * 32}
        else:
            return web.json_response({
                "jsonrpc": "2.0", "id": body["id"],
                "error": {"code": -32601, "message": "method not found"},
            })
        return web.json_response({"jsonrpc": "2.0", "id": body["id"], "result": result})

    async def handle_history_info(self, request: web.Request) -> web.Response:
        return web.json_response({
            "count": 1, "minBlock": 17000000, "maxBlock": 17000000,
            "minTimestamp": 1681000000, "maxTimestamp": 1681000000, "maxLimit": 500,
        })

    async def handle_history(self, request: web.Request) -> web.Response:
        return web.json_response([
            {"block": 17000000, "timestamp": 1681000000, "hint": make_tx_event(hash="0xhist")},
        ])


@pytest.fixture
async def matchmaker_server():
    """Local matchmaker on a fixed port. Yields the FakeMatchmaker state."""
    state = FakeMatchmaker()
    app = web.Application()
    app.router.add_get("/", state.handle_stream)
    app.router.add_post("/rpc", state.handle_rpc)
    app.router.add_get("/api/v1/history/info", state.handle_history_info)
    app.router.add_get("/api/v1/history", state.handle_history)

    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "127.0.0.1", 9198)
    await site.start()
    yield state
    state.release.set()
    await runner.cleanup()
