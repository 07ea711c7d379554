"""Main application entry-point for whiteboard-share."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Optional

from .adapters import XapiClient, XapiError, create_companion_client
from .config import ConfigurationError, ShareConfig, load_config
from .core import CompanionAdapter
from .health import HealthReporter, HealthServer
from .logging import configure_logging
from .notices import NoticePresenter
from .panel import PanelRegistrar
from .workflow import WhiteboardShareWorkflow

LOGGER = logging.getLogger(__name__)


class ServiceState(str, Enum):
    COLD_START = "cold_start"
    AWAITING_HOST = "awaiting_host"
    ACTIVE = "active"
    DEGRADED = "degraded"
    STOPPING = "stopping"


class WhiteboardShareApp:
    """Coordinates startup, host reconnects and shutdown.

    The host client and companion client can be injected for testing.
    """

    def __init__(
        self,
        config: Optional[ShareConfig] = None,
        *,
        host: Optional[XapiClient] = None,
        companion: Optional[CompanionAdapter] = None,
    ) -> None:
        self._config = config or load_config()
        self._host = host
        self._companion = companion
        self._health = HealthReporter()
        self._health_server: Optional[HealthServer] = None
        self._registrar: Optional[PanelRegistrar] = None
        self._workflow: Optional[WhiteboardShareWorkflow] = None
        self._shutdown_event: Optional[asyncio.Event] = None
        self._state = ServiceState.COLD_START
        self._state_detail: Optional[str] = None
        self._background: set[asyncio.Task[None]] = set()

    @property
    def state(self) -> ServiceState:
        return self._state

    @property
    def health(self) -> HealthReporter:
        return self._health

    @property
    def workflow(self) -> Optional[WhiteboardShareWorkflow]:
        return self._workflow

    async def run(self) -> None:
        """Run until :meth:`request_shutdown` is called or the task is cancelled."""

        self._shutdown_event = asyncio.Event()

        LOGGER.info("whiteboard-share starting with config: %s", self._config.path)
        await self._start_services()

        try:
            await self._shutdown_event.wait()
        except asyncio.CancelledError:
            LOGGER.info("whiteboard-share received shutdown signal")
            raise
        finally:
            await self._stop_services()

    def request_shutdown(self) -> None:
        if self._shutdown_event is not None:
            self._shutdown_event.set()

    @classmethod
    def start(cls, config: Optional[ShareConfig] = None) -> None:
        instance = cls(config=config)
        configure_logging(
            instance._config.logging.level,
            log_path=instance._config.logging.path,
            log_network=instance._config.logging.log_network,
        )
        try:
            asyncio.run(instance.run())
        except KeyboardInterrupt:
            LOGGER.info("whiteboard-share received shutdown signal")

    async def _transition_state(
        self, state: ServiceState, *, detail: Optional[str] = None
    ) -> None:
        if state == self._state and detail == self._state_detail:
            return

        previous = self._state
        self._state = state
        self._state_detail = detail

        LOGGER.info(
            "Service state transition %s -> %s (%s)",
            previous.value,
            state.value,
            detail or state.value,
        )
        await self._health.set_service_state(
            state.value, healthy=state == ServiceState.ACTIVE, detail=detail
        )

    async def _start_services(self) -> None:
        await self._transition_state(ServiceState.COLD_START, detail="initialising")

        host_config = self._config.host
        if not host_config.address:
            raise ConfigurationError("Host address is not configured")
        if not host_config.username:
            LOGGER.warning(
                "No host username configured; connecting without credentials"
            )

        if self._host is None:
            resilience = self._config.resilience
            self._host = XapiClient(
                host_config,
                reconnect_initial=resilience.reconnect_initial_seconds,
                reconnect_max=resilience.reconnect_max_seconds,
            )
        if self._companion is None:
            self._companion = create_companion_client(
                self._config.companion, self._host
            )

        notices = NoticePresenter(self._host)
        self._registrar = PanelRegistrar(self._host, self._config.button)
        self._workflow = WhiteboardShareWorkflow(
            self._host,
            self._companion,
            notices,
            email=self._config.email,
            button=self._config.button,
            prompt=self._config.prompt,
            health=self._health,
        )

        await self._health.update("host", False, "connecting")
        await self._health.update("panel", False, "awaiting host")

        self._host.register_connect_handler(self._on_host_connected)
        self._host.register_disconnect_handler(self._on_host_disconnected)
        await self._workflow.attach()

        await self._start_health_server()
        await self._transition_state(
            ServiceState.AWAITING_HOST, detail=f"connecting to {host_config.ws_url}"
        )
        await self._host.start()

    async def _on_host_connected(self) -> None:
        await self._health.update("host", True, None)

        if self._config.companion.transport == "host":
            await self._enable_host_http_client()

        registrar = self._registrar
        registered = registrar is not None and await registrar.register()
        if registered:
            await self._health.update("panel", True, None)
            await self._transition_state(ServiceState.ACTIVE, detail="panel registered")
        else:
            await self._health.update("panel", False, "panel registration failed")
            await self._transition_state(
                ServiceState.DEGRADED, detail="panel registration failed"
            )

    def _on_host_disconnected(self, reason: str) -> None:
        if self._state == ServiceState.STOPPING:
            return

        async def _runner() -> None:
            await self._health.update("host", False, reason)
            await self._transition_state(
                ServiceState.AWAITING_HOST, detail=f"host {reason}; reconnecting"
            )

        task = asyncio.get_running_loop().create_task(_runner())
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _enable_host_http_client(self) -> None:
        assert self._host is not None
        settings = [("HttpClient/Mode", "On")]
        if self._config.companion.allow_insecure_https:
            settings.append(("HttpClient/AllowInsecureHTTPS", "True"))

        healthy = True
        for path, value in settings:
            try:
                await self._host.set_config(path, value)
            except XapiError as exc:
                healthy = False
                LOGGER.error("Failed to set %s to %s: %s", path, value, exc)
        await self._health.update(
            "companion", healthy, None if healthy else "host HttpClient not enabled"
        )

    async def _start_health_server(self) -> None:
        resilience = self._config.resilience
        if not resilience.health_enabled or resilience.health_port <= 0:
            return

        server = HealthServer(
            self._health,
            resilience.health_host,
            resilience.health_port,
        )
        try:
            await server.start()
        except OSError as exc:
            LOGGER.error("Failed to start health endpoint: %s", exc)
            await self._health.update("health-endpoint", False, str(exc))
        else:
            self._health_server = server
            await self._health.update("health-endpoint", True, None)

    async def _stop_services(self) -> None:
        await self._transition_state(ServiceState.STOPPING, detail="shutdown requested")

        if self._health_server is not None:
            await self._health_server.stop()
            self._health_server = None

        if self._host is not None:
            await self._host.stop()

        if self._companion is not None:
            await self._companion.aclose()
