"""Shared fixtures for matchmaker_client tests."""

from __future__ import annotations

import asyncio
from typing import Callable

import pytest
from pytest_metadata.plugin import metadata_key

from matchmaker_client.client import Matchmaker
from matchmaker_client.models.config import ClientConfig, StreamConfig
from matchmaker_client.stream.subscription import SubscriptionManager

from tests.mocks import MockHistoryTransport, MockRpcTransport, MockStreamTransport

STREAM_URL = "https://mev-share.example.net"
API_URL = "https://relay.example.net"


# ── Report metadata ──────────────────────────────────────────────


def pytest_configure(config):
    """Add endpoint info to the HTML report Environment table."""
    meta = config.stash.setdefault(metadata_key, {})
    meta["Stream URL"] = STREAM_URL
    meta["API URL"] = API_URL


async def eventually(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    """Poll ``predicate`` until it holds, failing the test after ``timeout``."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(0.005)


def make_test_config(**overrides) -> ClientConfig:
    """Build a ClientConfig pointing at test endpoints."""
    defaults = dict(
        network="mainnet",
        chain_id=1,
        stream_url=STREAM_URL,
        api_url=API_URL,
        rpc_timeout=5.0,
        stream=StreamConfig(reconnect_delay=0.01, max_reconnect_delay=0.05),
    )
    defaults.update(overrides)
    return ClientConfig(**defaults)


@pytest.fixture
def test_config():
    return make_test_config()


@pytest.fixture
def mock_rpc():
    return MockRpcTransport()


@pytest.fixture
def mock_stream():
    return MockStreamTransport()


@pytest.fixture
def mock_history():
    return MockHistoryTransport()


@pytest.fixture
async def manager(mock_stream):
    """SubscriptionManager on the mock stream with fast reconnects."""
    m = SubscriptionManager(
        mock_stream, STREAM_URL, reconnect_delay=0.01, max_reconnect_delay=0.05,
    )
    yield m
    await m.close()


@pytest.fixture
async def client(mock_rpc, mock_stream, mock_history):
    """Matchmaker wired to mock transports."""
    c = Matchmaker(
        rpc=mock_rpc,
        stream=mock_stream,
        stream_url=STREAM_URL,
        history=mock_history,
        reconnect_delay=0.01,
        max_reconnect_delay=0.05,
    )
    yield c
    await c.close()
