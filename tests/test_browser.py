"""Tests for browser lifetime handling."""

import pytest

from mts.config.schema import BrowserConfig
from mts.core.browser import BrowserManager


@pytest.mark.asyncio
async def test_failed_connect_releases_playwright(monkeypatch):
    manager = BrowserManager(BrowserConfig(ws_url="ws://unreachable:3000/"))
    events = []

    async def connect():
        events.append("connect")
        raise ConnectionError("refused")

    async def disconnect():
        events.append("disconnect")

    monkeypatch.setattr(manager, "connect", connect)
    monkeypatch.setattr(manager, "disconnect", disconnect)

    with pytest.raises(ConnectionError):
        async with manager:
            events.append("body")

    assert events == ["connect", "disconnect"]


@pytest.mark.asyncio
async def test_context_exit_disconnects(monkeypatch):
    manager = BrowserManager(BrowserConfig())
    events = []

    async def connect():
        events.append("connect")

    async def disconnect():
        events.append("disconnect")

    monkeypatch.setattr(manager, "connect", connect)
    monkeypatch.setattr(manager, "disconnect", disconnect)

    async with manager as entered:
        assert entered is manager
        events.append("body")

    assert events == ["connect", "body", "disconnect"]
