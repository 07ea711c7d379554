from configparser import ConfigParser
from pathlib import Path
from typing import Any, Optional

import pytest

from whiteboard_share.config import (
    ButtonConfig,
    EmailConfig,
    HostConfig,
    LoggingConfig,
    PromptConfig,
    RemoteDeviceConfig,
    ResilienceConfig,
    ShareConfig,
)


class FakeHost:
    """In-memory stand-in for the host device's xAPI channel."""

    def __init__(self) -> None:
        self.commands: list[tuple[str, dict[str, Any], Optional[str]]] = []
        self.config_writes: list[tuple[str, Any]] = []
        self.subscriptions: dict[str, list[Any]] = {}
        self.responses: dict[str, Any] = {}
        self.connect_handlers: list[Any] = []
        self.disconnect_handlers: list[Any] = []
        self.started = False
        self.stopped = False

    async def command(self, path, params=None, *, body=None, timeout=None):
        self.commands.append((path, dict(params or {}), body))
        response = self.responses.get(path, {})
        if isinstance(response, Exception):
            raise response
        return response

    async def set_config(self, path, value):
        response = self.responses.get(f"config:{path}")
        if isinstance(response, Exception):
            raise response
        self.config_writes.append((path, value))

    async def subscribe(self, path, callback):
        self.subscriptions.setdefault(path, []).append(callback)

    def register_connect_handler(self, handler):
        self.connect_handlers.append(handler)

    def register_disconnect_handler(self, handler):
        self.disconnect_handlers.append(handler)

    async def start(self):
        self.started = True
        for handler in list(self.connect_handlers):
            await handler()

    async def stop(self):
        self.stopped = True

    async def emit(self, path: str, event: dict[str, Any]) -> None:
        for callback in list(self.subscriptions.get(path, [])):
            await callback(event)

    def commands_for(self, path: str) -> list[tuple[str, dict[str, Any], Optional[str]]]:
        return [entry for entry in self.commands if entry[0] == path]


class FakeCompanion:
    def __init__(
        self,
        board_url: str = "",
        *,
        fetch_error: Optional[Exception] = None,
        send_error: Optional[Exception] = None,
    ) -> None:
        self.board_url = board_url
        self.fetch_error = fetch_error
        self.send_error = send_error
        self.fetch_calls = 0
        self.sent: list[str] = []
        self.closed = False

    async def fetch_board_url(self) -> str:
        self.fetch_calls += 1
        if self.fetch_error is not None:
            raise self.fetch_error
        return self.board_url

    async def send_command(self, payload: str) -> int:
        if self.send_error is not None:
            raise self.send_error
        self.sent.append(payload)
        return 200

    async def aclose(self) -> None:
        self.closed = True


def build_config(
    *,
    transport: str = "direct",
    destination: str = "default@example.com",
) -> ShareConfig:
    return ShareConfig(
        host=HostConfig(address="10.0.0.5", username="integrator", password="pw"),
        companion=RemoteDeviceConfig(
            device_ip="10.0.0.6",
            username="admin",
            password="secret",
            transport=transport,
        ),
        email=EmailConfig(
            destination=destination,
            subject="New white board",
            body="Here you have your white board",
            attachment_filename="myfile-companion-mode",
        ),
        button=ButtonConfig(),
        prompt=PromptConfig(),
        logging=LoggingConfig(path=None),
        resilience=ResilienceConfig(),
        raw=ConfigParser(),
        path=Path("whiteboard-share.cfg"),
    )


@pytest.fixture
def fake_host() -> FakeHost:
    return FakeHost()


@pytest.fixture
def share_config() -> ShareConfig:
    return build_config()
