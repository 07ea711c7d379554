"""Registration of the share button on the host's control panel."""

from __future__ import annotations

import logging
from typing import Any, Optional

from .adapters.xapi import XapiError
from .config import ButtonConfig
from .core import HostAdapter
from .whiteboard import build_panel_document

LOGGER = logging.getLogger(__name__)


class PanelRegistrar:
    """Saves the share button, keeping its place among other custom panels."""

    def __init__(self, host: HostAdapter, button: ButtonConfig) -> None:
        self._host = host
        self._button = button

    @property
    def panel_id(self) -> str:
        return self._button.panel_id

    async def register(self) -> bool:
        """Save the panel on the host; returns ``False`` when the host refused it."""

        order = await self.current_order()
        document = build_panel_document(self._button, order)

        try:
            await self._host.command(
                "UserInterface/Extensions/Panel/Save",
                {"PanelId": self.panel_id},
                body=document,
            )
        except XapiError as exc:
            LOGGER.error("Error saving panel %s: %s", self.panel_id, exc)
            return False

        LOGGER.info("Registered panel %s (order=%s)", self.panel_id, order)
        return True

    async def current_order(self) -> Optional[int]:
        """Return the display order of an existing panel with our id, if any."""

        try:
            result = await self._host.command(
                "UserInterface/Extensions/List", {"ActivityType": "Custom"}
            )
        except XapiError as exc:
            LOGGER.warning("Unable to list existing panels: %s", exc)
            return None

        for panel in _iter_panels(result):
            if panel.get("PanelId") != self.panel_id:
                continue
            try:
                return int(panel.get("Order"))
            except (TypeError, ValueError):
                return None
        return None


def _iter_panels(result: dict[str, Any]) -> list[dict[str, Any]]:
    extensions = result.get("Extensions")
    if not isinstance(extensions, dict):
        return []
    panels = extensions.get("Panel")
    if isinstance(panels, dict):
        panels = [panels]
    if not isinstance(panels, list):
        return []
    return [panel for panel in panels if isinstance(panel, dict)]
