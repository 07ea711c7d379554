"""On-screen notices shown on the host device."""

from __future__ import annotations

import logging
from typing import Optional

from . import constants
from .adapters.xapi import XapiError
from .core import HostAdapter

LOGGER = logging.getLogger(__name__)

WARNING_TITLE = "Warning"


class NoticePresenter:
    """Displays short-lived messages on the host's touch panel.

    A ``warning`` title (any case) is shown as an alert for a fixed
    ten seconds; everything else is shown as a prompt.
    """

    def __init__(
        self,
        host: HostAdapter,
        *,
        default_title: str = constants.DEFAULT_NOTICE_TITLE,
        default_duration: int = constants.DEFAULT_NOTICE_DURATION_SECONDS,
    ) -> None:
        self._host = host
        self._default_title = default_title
        self._default_duration = default_duration

    async def show(
        self,
        message: Optional[str] = None,
        *,
        title: Optional[str] = None,
        duration: Optional[int] = None,
    ) -> bool:
        """Display ``message`` and return whether the host accepted it."""

        if message is None:
            LOGGER.error("message is required to display a notice")
            return False

        LOGGER.info(
            "Displaying notice: %s (title=%s, duration=%s)", message, title, duration
        )

        if title is not None and title.lower() == "warning":
            path = "UserInterface/Message/Alert/Display"
            params = {
                "Duration": constants.WARNING_NOTICE_DURATION_SECONDS,
                "Text": message,
                "Title": title,
            }
        else:
            path = "UserInterface/Message/Prompt/Display"
            params = {
                "Duration": self._default_duration if duration is None else duration,
                "Text": message,
                "Title": self._default_title if title is None else title,
            }

        try:
            await self._host.command(path, params)
        except XapiError as exc:
            LOGGER.warning("Failed to display notice %r: %s", message, exc)
            return False
        return True

    async def warning(self, message: str) -> bool:
        return await self.show(message, title=WARNING_TITLE)
