"""Protocol definitions for device adapters and event callbacks."""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Mapping, Optional, Protocol


EventCallback = Callable[[dict[str, Any]], Awaitable[None] | None]
ConnectHandler = Callable[[], Awaitable[None] | None]
DisconnectHandler = Callable[[str], None]


class HostAdapter(Protocol):
    """Minimal contract for the conferencing endpoint's xAPI channel."""

    async def command(
        self,
        path: str,
        params: Optional[Mapping[str, Any]] = None,
        *,
        body: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> dict[str, Any]:
        """Run an ``xCommand`` such as ``UserInterface/Message/Alert/Display``.

        Raises:
            XapiError: If the device rejects the command or the link is down.
        """
        ...

    async def set_config(self, path: str, value: Any) -> None:
        """Write a configuration value, e.g. ``HttpClient/Mode``."""
        ...

    async def subscribe(self, path: str, callback: EventCallback) -> None:
        """Route feedback events below ``path`` to ``callback``."""
        ...


class CompanionAdapter(Protocol):
    """Minimal contract for talking to the companion board."""

    async def fetch_board_url(self) -> str:
        """Return the URL of the shared whiteboard, or an empty string.

        Raises:
            CompanionError: If the status could not be fetched or parsed.
        """
        ...

    async def send_command(self, payload: str) -> int:
        """Post an XML command document and return the HTTP status code.

        Raises:
            CompanionError: If the request fails.
        """
        ...

    async def aclose(self) -> None:
        """Close any underlying resources."""
        ...
