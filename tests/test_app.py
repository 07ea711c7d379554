"""Tests for WhiteboardShareApp lifecycle."""

from __future__ import annotations

import asyncio

import pytest

from conftest import FakeCompanion, FakeHost, build_config
from whiteboard_share.adapters import XapiError
from whiteboard_share.app import ServiceState, WhiteboardShareApp
from whiteboard_share.config import ConfigurationError
from whiteboard_share.workflow import PANEL_CLICKED_EVENT

SAVE = "UserInterface/Extensions/Panel/Save"


async def _run_until(app: WhiteboardShareApp, state: ServiceState) -> asyncio.Task:
    task = asyncio.create_task(app.run())
    for _ in range(100):
        if app.state == state:
            break
        await asyncio.sleep(0.01)
    assert app.state == state
    return task


async def _shutdown(app: WhiteboardShareApp, task: asyncio.Task) -> None:
    app.request_shutdown()
    await asyncio.wait_for(task, timeout=1.0)


@pytest.mark.asyncio
async def test_app_registers_panel_and_becomes_active():
    host = FakeHost()
    companion = FakeCompanion()
    app = WhiteboardShareApp(build_config(), host=host, companion=companion)

    task = await _run_until(app, ServiceState.ACTIVE)

    assert host.started is True
    assert len(host.commands_for(SAVE)) == 1
    assert PANEL_CLICKED_EVENT in host.subscriptions
    assert host.config_writes == []
    snapshot = await app.health.snapshot()
    assert snapshot["status"] == "ok"

    await _shutdown(app, task)

    assert app.state == ServiceState.STOPPING
    assert host.stopped is True
    assert companion.closed is True


@pytest.mark.asyncio
async def test_app_enables_host_http_client_for_relay_transport():
    host = FakeHost()
    app = WhiteboardShareApp(
        build_config(transport="host"), host=host, companion=FakeCompanion()
    )

    task = await _run_until(app, ServiceState.ACTIVE)
    await _shutdown(app, task)

    assert host.config_writes == [
        ("HttpClient/Mode", "On"),
        ("HttpClient/AllowInsecureHTTPS", "True"),
    ]


@pytest.mark.asyncio
async def test_app_degrades_when_panel_cannot_be_saved():
    host = FakeHost()
    host.responses[SAVE] = XapiError("invalid panel")
    app = WhiteboardShareApp(build_config(), host=host, companion=FakeCompanion())

    task = await _run_until(app, ServiceState.DEGRADED)

    assert await app.health.is_healthy("panel") is False

    await _shutdown(app, task)


@pytest.mark.asyncio
async def test_app_tracks_host_disconnects():
    host = FakeHost()
    app = WhiteboardShareApp(build_config(), host=host, companion=FakeCompanion())

    task = await _run_until(app, ServiceState.ACTIVE)

    for handler in host.disconnect_handlers:
        handler("connection closed")
    for _ in range(100):
        if app.state == ServiceState.AWAITING_HOST:
            break
        await asyncio.sleep(0.01)

    assert app.state == ServiceState.AWAITING_HOST
    assert await app.health.is_healthy("host") is False

    await _shutdown(app, task)


@pytest.mark.asyncio
async def test_app_requires_host_address():
    config = build_config()
    config.host.address = ""
    app = WhiteboardShareApp(config, host=FakeHost(), companion=FakeCompanion())

    with pytest.raises(ConfigurationError):
        await app.run()
