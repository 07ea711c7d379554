"""Button-driven workflow that emails the companion board's whiteboard."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

from .adapters.companion import CompanionError
from .adapters.xapi import XapiError
from .config import ButtonConfig, EmailConfig, PromptConfig
from .core import CompanionAdapter, HostAdapter, WorkflowContext
from .health import HealthReporter
from .notices import NoticePresenter
from .whiteboard import build_email_command

LOGGER = logging.getLogger(__name__)

PANEL_CLICKED_EVENT = "Event/UserInterface/Extensions/Panel/Clicked"
TEXT_INPUT_RESPONSE_EVENT = "Event/UserInterface/Message/TextInput/Response"
TEXT_INPUT_CLEAR_EVENT = "Event/UserInterface/Message/TextInput/Clear"

CHECKING_MESSAGE = "Checking for visible whiteboards on Companion Board"
NO_WHITEBOARD_MESSAGE = "You need to share a whiteboard before it can be sent"
UNREACHABLE_MESSAGE = "Unable to reach the Companion Board"


class WhiteboardShareWorkflow:
    """Click → status fetch → prompt → submit → send.

    Each click that finds a whiteboard creates a :class:`WorkflowContext`
    with its own FeedbackId. Only a text submission carrying that id can
    trigger a send, and the send uses the board URL captured by that click.
    """

    def __init__(
        self,
        host: HostAdapter,
        companion: CompanionAdapter,
        notices: NoticePresenter,
        *,
        email: EmailConfig,
        button: ButtonConfig,
        prompt: PromptConfig,
        health: Optional[HealthReporter] = None,
    ) -> None:
        self._host = host
        self._companion = companion
        self._notices = notices
        self._email = email
        self._button = button
        self._prompt = prompt
        self._health = health
        self._pending: Optional[WorkflowContext] = None
        self._fetch_lock = asyncio.Lock()

    @property
    def destination(self) -> str:
        """Default address offered in the next prompt."""

        return self._email.destination

    @property
    def pending(self) -> Optional[WorkflowContext]:
        return self._pending

    async def attach(self) -> None:
        """Subscribe to the host events that drive the workflow."""

        await self._host.subscribe(PANEL_CLICKED_EVENT, self.handle_panel_clicked)
        await self._host.subscribe(TEXT_INPUT_RESPONSE_EVENT, self.handle_text_input)
        await self._host.subscribe(TEXT_INPUT_CLEAR_EVENT, self.handle_text_input_cleared)

    async def handle_panel_clicked(self, event: dict[str, Any]) -> None:
        if event.get("PanelId") != self._button.panel_id:
            return

        if self._fetch_lock.locked():
            LOGGER.info(
                "Button %s clicked while a status check is running; ignoring",
                self._button.panel_id,
            )
            return

        async with self._fetch_lock:
            LOGGER.info("Button %s clicked", self._button.panel_id)
            if self._pending is not None:
                LOGGER.info("Discarding pending prompt %s", self._pending.feedback_id)
                self._pending = None

            LOGGER.info("Checking Companion Board whiteboard status")
            await self._notices.show(CHECKING_MESSAGE, duration=5)

            try:
                board_url = await self._companion.fetch_board_url()
            except CompanionError as exc:
                LOGGER.error("Error getting Board URL: %s", exc)
                await self._report_companion(False, str(exc))
                await self._notices.warning(UNREACHABLE_MESSAGE)
                return

            await self._report_companion(True)
            if not board_url:
                LOGGER.info("No whiteboard is currently shared on the Companion Board")
                await self._notices.warning(NO_WHITEBOARD_MESSAGE)
                return

            context = WorkflowContext.create(
                self._button.panel_id, board_url, self._email.destination
            )
            self._pending = context

        await self._prompt_for_destination(context)

    async def handle_text_input(self, event: dict[str, Any]) -> None:
        context = self._pending
        if context is None or event.get("FeedbackId") != context.feedback_id:
            return

        self._pending = None
        text = str(event.get("Text", ""))
        LOGGER.info(
            "Saving email address %s (answered after %.1fs)", text, context.age()
        )
        self._email.destination = text
        context.destination = text

        LOGGER.info(
            "Instructing Companion Board to send whiteboard: %s", context.board_url
        )
        await self._send_whiteboard(context)

    async def handle_text_input_cleared(self, event: dict[str, Any]) -> None:
        context = self._pending
        if context is None or event.get("FeedbackId") != context.feedback_id:
            return

        LOGGER.info("Prompt %s dismissed without an answer", context.feedback_id)
        self._pending = None

    async def _prompt_for_destination(self, context: WorkflowContext) -> None:
        LOGGER.info("Getting the email address")
        try:
            await self._host.command(
                "UserInterface/Message/TextInput/Display",
                {
                    "Duration": self._prompt.duration_seconds,
                    "FeedbackId": context.feedback_id,
                    "InputText": context.destination,
                    "InputType": "SingleLine",
                    "KeyboardState": "Open",
                    "SubmitText": self._prompt.submit_text,
                    "Text": self._prompt.text,
                    "Title": self._prompt.title,
                },
            )
        except XapiError as exc:
            LOGGER.error("Error getting email address: %s", exc)
            if self._pending is context:
                self._pending = None

    async def _send_whiteboard(self, context: WorkflowContext) -> bool:
        payload = build_email_command(
            self._email, context.board_url, context.destination
        )

        try:
            status = await self._companion.send_command(payload)
        except CompanionError as exc:
            LOGGER.error("Error sending whiteboard to %s: %s", context.destination, exc)
            await self._report_companion(False, str(exc))
            await self._notices.warning(
                f"Unable to send the whiteboard to {context.destination}"
            )
            return False

        await self._report_companion(True)
        LOGGER.info("putxml response status code: %s", status)
        await self._notices.show(f"Whiteboard has been sent to {context.destination}")
        return True

    async def _report_companion(
        self, healthy: bool, detail: Optional[str] = None
    ) -> None:
        if self._health is not None:
            await self._health.update("companion", healthy, detail)
