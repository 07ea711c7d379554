"""Constants used across the whiteboard-share package."""

from __future__ import annotations

from pathlib import Path

APP_NAME = "whiteboard-share"
DEFAULT_CONFIG_FILENAME = f"{APP_NAME}.cfg"
DEFAULT_CONFIG_PATH = Path.home() / ".whiteboard-share" / DEFAULT_CONFIG_FILENAME
DEFAULT_CREDENTIALS_PATH = Path.home() / ".whiteboard-share" / "credentials.json"

DEFAULT_LOG_PATH = Path.home() / ".whiteboard-share" / "logs" / f"{APP_NAME}.log"

DEFAULT_HOST_ADDRESS = "127.0.0.1"
DEFAULT_COMPANION_IP = "192.168.100.150"

DEFAULT_STATUS_PATH = "/getxml?location=/Status/Conference/Presentation/WhiteBoard"
DEFAULT_COMMAND_PATH = "/putxml"

DEFAULT_PANEL_ID = "share-wb"
DEFAULT_PANEL_NAME = "Send whiteboard"
DEFAULT_PANEL_ICON = "Tv"
DEFAULT_PANEL_LOCATION = "CallControls"

DEFAULT_PROMPT_DURATION_SECONDS = 300
DEFAULT_NOTICE_DURATION_SECONDS = 5
WARNING_NOTICE_DURATION_SECONDS = 10
DEFAULT_NOTICE_TITLE = "Sharing Whiteboard"

ENV_PREFIX = "WHITEBOARD_SHARE_"
