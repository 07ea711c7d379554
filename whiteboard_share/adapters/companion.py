"""Companion board adapters for the XML HTTP control API."""

from __future__ import annotations

import abc
import asyncio
import logging
from typing import Optional

import aiohttp

from ..config import RemoteDeviceConfig
from ..core import CompanionAdapter, HostAdapter
from ..whiteboard import WhiteboardStatusError, extract_board_url
from .xapi import XapiError

LOGGER = logging.getLogger(__name__)


class CompanionError(RuntimeError):
    """Raised when the companion board cannot be queried or commanded."""


class _CompanionBase(abc.ABC):
    def __init__(self, config: RemoteDeviceConfig) -> None:
        self.config = config
        # Derived once; the password itself is not kept on the client.
        self._authorization = f"Basic {config.credentials}"

    @property
    def status_url(self) -> str:
        return self.config.base_url + _ensure_leading_slash(self.config.status_path)

    @property
    def command_url(self) -> str:
        return self.config.base_url + _ensure_leading_slash(self.config.command_path)

    @abc.abstractmethod
    async def fetch_status(self) -> str:
        """Return the raw status XML document."""

    async def fetch_board_url(self) -> str:
        document = await self.fetch_status()
        try:
            return extract_board_url(document)
        except WhiteboardStatusError as exc:
            raise CompanionError(str(exc)) from exc


class CompanionClient(_CompanionBase, CompanionAdapter):
    """Talks to the companion board directly over HTTP(S)."""

    def __init__(
        self,
        config: RemoteDeviceConfig,
        *,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        super().__init__(config)
        self._headers = {"Authorization": self._authorization}
        self._session: Optional[aiohttp.ClientSession] = session
        self._owns_session = session is None

    async def fetch_status(self) -> str:
        """Fetch the whiteboard presentation status document.

        Raises:
            CompanionError: On transport errors, timeouts, undecodable bodies or
                HTTP status >= 400.
        """

        session = await self._ensure_session()
        url = self.status_url
        timeout = self.config.timeout_seconds

        try:
            async with asyncio.timeout(timeout):
                async with session.get(
                    url, headers=self._headers, ssl=self._ssl
                ) as response:
                    text = await response.text()
                    if response.status >= 400:
                        raise CompanionError(
                            f"Status request failed with status {response.status}: {text.strip()[:200]}"
                        )
                    return text
        except asyncio.TimeoutError as exc:
            LOGGER.warning("Companion status request timed out after %.1fs", timeout)
            raise CompanionError(f"Status request timed out after {timeout:.1f}s") from exc
        except aiohttp.ClientError as exc:
            raise CompanionError(f"Status request failed: {exc}") from exc
        except (UnicodeDecodeError, LookupError) as exc:
            raise CompanionError(f"Status response could not be decoded: {exc}") from exc

    async def send_command(self, payload: str) -> int:
        """Post an XML command to the companion board.

        Raises:
            CompanionError: On transport errors, timeouts or HTTP status >= 400.
        """

        session = await self._ensure_session()
        url = self.command_url
        timeout = self.config.timeout_seconds
        headers = dict(self._headers)
        headers["Content-Type"] = "text/xml"

        try:
            async with asyncio.timeout(timeout):
                async with session.post(
                    url,
                    data=payload.encode("utf-8"),
                    headers=headers,
                    ssl=self._ssl,
                ) as response:
                    if response.status >= 400:
                        detail = await response.text(errors="replace")
                        raise CompanionError(
                            f"Command failed with status {response.status}: {detail.strip()[:200]}"
                        )
                    LOGGER.debug("putxml response status code: %s", response.status)
                    return response.status
        except asyncio.TimeoutError as exc:
            LOGGER.warning("Companion command timed out after %.1fs", timeout)
            raise CompanionError(f"Command timed out after {timeout:.1f}s") from exc
        except aiohttp.ClientError as exc:
            raise CompanionError(f"Command failed: {exc}") from exc

    async def aclose(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    @property
    def _ssl(self) -> bool:
        return not self.config.allow_insecure_https

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            timeout = aiohttp.ClientTimeout(total=None)
            self._session = aiohttp.ClientSession(timeout=timeout)
            self._owns_session = True
        return self._session


class HostRelayCompanionClient(_CompanionBase, CompanionAdapter):
    """Relays companion requests through the host device's ``HttpClient`` commands."""

    def __init__(self, config: RemoteDeviceConfig, host: HostAdapter) -> None:
        super().__init__(config)
        self._host = host

    def _base_params(self, url: str) -> dict[str, object]:
        return {
            "AllowInsecureHTTPS": "True" if self.config.allow_insecure_https else "False",
            "Header": [f"Authorization: {self._authorization}"],
            "Url": url,
        }

    async def fetch_status(self) -> str:
        params = self._base_params(self.status_url)
        params["ResultBody"] = "PlainText"
        timeout = self.config.timeout_seconds
        try:
            result = await self._host.command("HttpClient/Get", params, timeout=timeout)
        except XapiError as exc:
            raise CompanionError(f"Relayed status request failed: {exc}") from exc

        status = _status_code(result)
        if status is not None and status >= 400:
            raise CompanionError(f"Status request failed with status {status}")
        return str(result.get("Body") or "")

    async def send_command(self, payload: str) -> int:
        params = self._base_params(self.command_url)
        params["Header"] = [*params["Header"], "Content-Type: text/xml"]  # type: ignore[misc]
        timeout = self.config.timeout_seconds
        try:
            result = await self._host.command(
                "HttpClient/Post", params, body=payload, timeout=timeout
            )
        except XapiError as exc:
            raise CompanionError(f"Relayed command failed: {exc}") from exc

        status = _status_code(result)
        if status is not None and status >= 400:
            raise CompanionError(f"Command failed with status {status}")
        LOGGER.debug("putxml response status code: %s", status)
        return status if status is not None else 200

    async def aclose(self) -> None:
        return None


def create_companion_client(
    config: RemoteDeviceConfig, host: HostAdapter
) -> CompanionAdapter:
    """Build the companion client for the configured transport."""

    if config.transport == "host":
        return HostRelayCompanionClient(config, host)
    return CompanionClient(config)


def _status_code(result: dict) -> Optional[int]:
    value = result.get("StatusCode")
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def _ensure_leading_slash(path: str) -> str:
    return path if path.startswith("/") else "/" + path
