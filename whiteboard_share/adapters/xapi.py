"""xAPI adapter speaking JSON-RPC over the host device's WebSocket."""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import random
from typing import Any, Mapping, Optional

import aiohttp

from ..config import HostConfig
from ..core import ConnectHandler, DisconnectHandler, EventCallback, HostAdapter

LOGGER = logging.getLogger(__name__)


class XapiError(RuntimeError):
    """Raised when the host device rejects or fails to answer a request."""

    def __init__(self, message: str, *, code: Optional[int] = None) -> None:
        super().__init__(message)
        self.code = code


class XapiConnectionError(XapiError):
    """Raised when no WebSocket connection to the host device is available."""


class XapiClient(HostAdapter):
    """Non-blocking client for the host device's xAPI WebSocket."""

    def __init__(
        self,
        config: HostConfig,
        *,
        session: Optional[aiohttp.ClientSession] = None,
        reconnect_initial: float = 1.0,
        reconnect_max: float = 30.0,
    ) -> None:
        self.config = config
        self.reconnect_initial = reconnect_initial
        self.reconnect_max = reconnect_max

        self._auth: Optional[aiohttp.BasicAuth] = None
        if config.username:
            self._auth = aiohttp.BasicAuth(config.username, config.password or "")

        self._session: Optional[aiohttp.ClientSession] = session
        self._owns_session = session is None
        self._subscriptions: dict[tuple[str, ...], list[EventCallback]] = {}
        self._connect_handlers: list[ConnectHandler] = []
        self._disconnect_handlers: list[DisconnectHandler] = []
        self._pending: dict[int, asyncio.Future[Any]] = {}
        self._background: set[asyncio.Task[None]] = set()
        self._listener_task: Optional[asyncio.Task[None]] = None
        self._stop_event = asyncio.Event()
        self._connected = asyncio.Event()
        self._rpc_id = 0
        self._active_ws: Optional[aiohttp.ClientWebSocketResponse] = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    @property
    def connected(self) -> bool:
        ws = self._active_ws
        return ws is not None and not ws.closed

    async def start(self) -> None:
        """Open the WebSocket and keep it open until :meth:`stop`."""

        if self._listener_task is not None:
            return

        await self._ensure_session()
        self._stop_event.clear()
        self._listener_task = asyncio.create_task(self._listen_loop())
        await asyncio.sleep(0)

    async def wait_connected(self, timeout: Optional[float] = None) -> bool:
        try:
            async with asyncio.timeout(timeout):
                await self._connected.wait()
        except asyncio.TimeoutError:
            return False
        return True

    async def stop(self) -> None:
        """Stop listening and close the underlying resources."""

        self._stop_event.set()

        if self._listener_task is not None:
            self._listener_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._listener_task
            self._listener_task = None

        for task in list(self._background):
            task.cancel()
        for task in list(self._background):
            with contextlib.suppress(asyncio.CancelledError):
                await task

        self._fail_pending(XapiConnectionError("Host xAPI client stopped"))

        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    def register_connect_handler(self, handler: ConnectHandler) -> None:
        """Run ``handler`` after every (re)connect, once subscriptions are restored."""

        if handler not in self._connect_handlers:
            self._connect_handlers.append(handler)

    def register_disconnect_handler(self, handler: DisconnectHandler) -> None:
        """Call ``handler`` with a reason whenever an open connection drops."""

        if handler not in self._disconnect_handlers:
            self._disconnect_handlers.append(handler)

    async def subscribe(self, path: str, callback: EventCallback) -> None:
        key = _split_path(path)
        callbacks = self._subscriptions.setdefault(key, [])
        if callback in callbacks:
            raise ValueError(f"Callback already registered for {path}")

        first = not callbacks
        callbacks.append(callback)

        if first and self.connected:
            await self._send_feedback_subscription(key)

    async def command(
        self,
        path: str,
        params: Optional[Mapping[str, Any]] = None,
        *,
        body: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> dict[str, Any]:
        payload = dict(params or {})
        if body is not None:
            payload["body"] = body
        method = "xCommand/" + "/".join(_split_path(path))
        return await self._request(method, payload, timeout=timeout)

    async def set_config(self, path: str, value: Any) -> None:
        params = {"Path": ["Configuration", *_split_path(path)], "Value": value}
        await self._request("xSet", params)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            timeout = aiohttp.ClientTimeout(total=None)
            self._session = aiohttp.ClientSession(timeout=timeout)
            self._owns_session = True
        return self._session

    async def _request(
        self,
        method: str,
        params: Mapping[str, Any],
        *,
        timeout: Optional[float] = None,
    ) -> dict[str, Any]:
        ws = self._active_ws
        if ws is None or ws.closed:
            raise XapiConnectionError(f"Host xAPI is not connected ({method})")

        self._rpc_id += 1
        request_id = self._rpc_id
        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future

        payload = {
            "jsonrpc": "2.0",
            "id": request_id,
            "method": method,
            "params": dict(params),
        }

        limit = timeout if timeout is not None else self.config.request_timeout_seconds
        try:
            async with asyncio.timeout(limit):
                await ws.send_json(payload)
                result = await future
        except asyncio.TimeoutError as exc:
            raise XapiError(f"{method} timed out after {limit:.1f}s") from exc
        except (ConnectionError, aiohttp.ClientError) as exc:
            raise XapiConnectionError(f"{method} could not be sent: {exc}") from exc
        finally:
            self._pending.pop(request_id, None)

        if isinstance(result, dict):
            return result
        return {"result": result}

    async def _listen_loop(self) -> None:
        backoff = self.reconnect_initial

        while not self._stop_event.is_set():
            try:
                session = await self._ensure_session()
                async with session.ws_connect(
                    self.config.ws_url,
                    auth=self._auth,
                    ssl=self.config.verify_tls,
                    heartbeat=30.0,
                ) as ws:
                    LOGGER.info("Connected to host xAPI at %s", self.config.ws_url)
                    backoff = self.reconnect_initial

                    self._active_ws = ws
                    self._connected.set()
                    self._spawn(self._on_connected())
                    try:
                        async for message in ws:
                            if self._stop_event.is_set():
                                break
                            if message.type == aiohttp.WSMsgType.TEXT:
                                self._handle_message(message.data)
                            elif message.type == aiohttp.WSMsgType.ERROR:
                                raise ws.exception() or RuntimeError("Websocket error")
                    finally:
                        self._active_ws = None
                        self._connected.clear()
                        self._fail_pending(
                            XapiConnectionError("Host xAPI connection closed")
                        )
                        self._notify_disconnect("connection closed")
                if not self._stop_event.is_set():
                    LOGGER.warning("Host xAPI websocket closed by peer")
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                if self._stop_event.is_set():
                    break
                LOGGER.warning("Host xAPI websocket error: %s", exc)

            if self._stop_event.is_set():
                break
            # Full jitter between 0 and the current backoff, doubling up to reconnect_max.
            await asyncio.sleep(random.uniform(0, backoff))
            backoff = min(backoff * 2, self.reconnect_max)

    async def _on_connected(self) -> None:
        for key in list(self._subscriptions):
            if self._subscriptions[key]:
                await self._send_feedback_subscription(key)

        for handler in list(self._connect_handlers):
            try:
                result = handler()
                if asyncio.iscoroutine(result):
                    await result
            except Exception:
                LOGGER.exception("Host connect handler failed")

    async def _send_feedback_subscription(self, key: tuple[str, ...]) -> None:
        try:
            await self._request(
                "xFeedback/Subscribe",
                {"Query": list(key), "NotifyCurrentValue": False},
            )
        except XapiError as exc:
            LOGGER.error("Failed to subscribe to %s: %s", "/".join(key), exc)
        else:
            LOGGER.debug("Subscribed to %s", "/".join(key))

    def _handle_message(self, raw_data: str) -> None:
        try:
            payload = json.loads(raw_data)
        except json.JSONDecodeError:
            return  # Discard non-JSON messages

        if not isinstance(payload, dict):
            return

        request_id = payload.get("id")
        if request_id is not None and ("result" in payload or "error" in payload):
            self._resolve(request_id, payload)
            return

        method = payload.get("method")
        if isinstance(method, str) and method.startswith("xFeedback/"):
            params = payload.get("params")
            if isinstance(params, dict):
                self._dispatch(params)

    def _resolve(self, request_id: Any, payload: dict[str, Any]) -> None:
        future = self._pending.get(request_id)
        if future is None or future.done():
            return

        error = payload.get("error")
        if error is not None:
            if isinstance(error, dict):
                message = str(error.get("message") or error)
                code = error.get("code")
            else:
                message, code = str(error), None
            future.set_exception(XapiError(message, code=code))
        else:
            future.set_result(payload.get("result"))

    def _dispatch(self, document: dict[str, Any]) -> None:
        for key, callbacks in list(self._subscriptions.items()):
            event = _lookup(document, key)
            if event is None:
                continue
            for callback in list(callbacks):
                self._spawn(self._run_callback(callback, event))

    async def _run_callback(
        self, callback: EventCallback, event: dict[str, Any]
    ) -> None:
        try:
            result = callback(event)
            if asyncio.iscoroutine(result):
                await result
        except asyncio.CancelledError:
            raise
        except Exception:
            LOGGER.exception("Host event callback failed")

    def _spawn(self, coro: Any) -> None:
        task = asyncio.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    def _notify_disconnect(self, reason: str) -> None:
        for handler in list(self._disconnect_handlers):
            try:
                handler(reason)
            except Exception:
                LOGGER.exception("Host disconnect handler failed")

    def _fail_pending(self, exc: XapiError) -> None:
        for future in self._pending.values():
            if not future.done():
                future.set_exception(exc)
        self._pending.clear()


def _split_path(path: str) -> tuple[str, ...]:
    segments = tuple(part for part in path.strip().split("/") if part)
    if not segments:
        raise ValueError("xAPI path cannot be empty")
    return segments


def _lookup(document: Mapping[str, Any], key: tuple[str, ...]) -> Optional[dict[str, Any]]:
    node: Any = document
    for segment in key:
        if not isinstance(node, Mapping) or segment not in node:
            return None
        node = node[segment]
    return dict(node) if isinstance(node, Mapping) else None
