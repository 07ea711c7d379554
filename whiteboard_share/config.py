"""Configuration loader for whiteboard-share."""

from __future__ import annotations

import base64
from configparser import ConfigParser
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from . import constants
from .credentials import load_credentials

COMPANION_TRANSPORTS = ("direct", "host")


class ConfigurationError(RuntimeError):
    """Raised when the configuration cannot be used to start the service."""


@dataclass(slots=True)
class HostConfig:
    address: str = constants.DEFAULT_HOST_ADDRESS
    username: Optional[str] = None
    password: Optional[str] = None
    scheme: str = "wss"
    verify_tls: bool = False
    request_timeout_seconds: float = 10.0

    @property
    def ws_url(self) -> str:
        return f"{self.scheme}://{self.address}/ws"


@dataclass(slots=True)
class RemoteDeviceConfig:
    device_ip: str = constants.DEFAULT_COMPANION_IP
    username: Optional[str] = None
    password: Optional[str] = None
    scheme: str = "https"
    allow_insecure_https: bool = True
    transport: str = "direct"
    status_path: str = constants.DEFAULT_STATUS_PATH
    command_path: str = constants.DEFAULT_COMMAND_PATH
    timeout_seconds: float = 10.0

    @property
    def base_url(self) -> str:
        return f"{self.scheme}://{self.device_ip}"

    @property
    def credentials(self) -> str:
        """Basic-auth token derived from the username and password."""

        raw = f"{self.username or ''}:{self.password or ''}".encode("utf-8")
        return base64.b64encode(raw).decode("ascii")


@dataclass(slots=True)
class EmailConfig:
    destination: str = ""
    subject: str = "New white board"
    body: str = "Here you have your white board"
    attachment_filename: str = "whiteboard"


@dataclass(slots=True)
class ButtonConfig:
    name: str = constants.DEFAULT_PANEL_NAME
    icon: str = constants.DEFAULT_PANEL_ICON
    panel_id: str = constants.DEFAULT_PANEL_ID
    location: str = constants.DEFAULT_PANEL_LOCATION


@dataclass(slots=True)
class PromptConfig:
    title: str = "Sending Whiteboard"
    text: str = "Type the email address you want to share the whiteboard with"
    submit_text: str = "Send"
    duration_seconds: int = constants.DEFAULT_PROMPT_DURATION_SECONDS


@dataclass(slots=True)
class LoggingConfig:
    level: str = "INFO"
    path: Optional[Path] = constants.DEFAULT_LOG_PATH
    log_network: bool = False


@dataclass(slots=True)
class ResilienceConfig:
    reconnect_initial_seconds: float = 1.0
    reconnect_max_seconds: float = 30.0
    health_enabled: bool = False
    health_host: str = "127.0.0.1"
    health_port: int = 0


@dataclass(slots=True)
class ShareConfig:
    host: HostConfig
    companion: RemoteDeviceConfig
    email: EmailConfig
    button: ButtonConfig
    prompt: PromptConfig
    logging: LoggingConfig
    resilience: ResilienceConfig
    raw: ConfigParser
    path: Path


def load_config(
    path: Optional[Path] = None,
    *,
    credentials_path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> ShareConfig:
    """Load configuration from disk, applying defaults where necessary.

    Secrets from the environment or the credentials store override the
    matching values in the configuration file.
    """

    config_path = path or constants.DEFAULT_CONFIG_PATH
    email_defaults = EmailConfig()
    parser = ConfigParser(interpolation=None)
    parser.read_dict(
        {
            "host": {
                "address": constants.DEFAULT_HOST_ADDRESS,
                "scheme": "wss",
                "verify_tls": "false",
                "request_timeout_seconds": "10.0",
            },
            "companion": {
                "device_ip": constants.DEFAULT_COMPANION_IP,
                "scheme": "https",
                "allow_insecure_https": "true",
                "transport": "direct",
                "status_path": constants.DEFAULT_STATUS_PATH,
                "command_path": constants.DEFAULT_COMMAND_PATH,
                "timeout_seconds": "10.0",
            },
            "email": {
                "destination": "",
                "subject": email_defaults.subject,
                "body": email_defaults.body,
                "attachment_filename": email_defaults.attachment_filename,
            },
            "button": {
                "name": constants.DEFAULT_PANEL_NAME,
                "icon": constants.DEFAULT_PANEL_ICON,
                "panel_id": constants.DEFAULT_PANEL_ID,
                "location": constants.DEFAULT_PANEL_LOCATION,
            },
            "prompt": {
                "duration_seconds": str(constants.DEFAULT_PROMPT_DURATION_SECONDS),
            },
            "logging": {
                "level": "INFO",
                "path": str(constants.DEFAULT_LOG_PATH),
                "log_network": "false",
            },
            "resilience": {
                "reconnect_initial_seconds": "1.0",
                "reconnect_max_seconds": "30.0",
                "health_enabled": "false",
                "health_host": "127.0.0.1",
                "health_port": "0",
            },
        }
    )

    if config_path.exists():
        parser.read(config_path)

    secrets = load_credentials(credentials_path, environ=environ)
    host_secrets = secrets["host"]
    companion_secrets = secrets["companion"]

    host = HostConfig(
        address=host_secrets.address or parser.get("host", "address"),
        username=host_secrets.username
        or parser.get("host", "username", fallback=None),
        password=host_secrets.password
        or parser.get("host", "password", fallback=None),
        scheme=parser.get("host", "scheme"),
        verify_tls=parser.getboolean("host", "verify_tls", fallback=False),
        request_timeout_seconds=max(
            0.1, parser.getfloat("host", "request_timeout_seconds", fallback=10.0)
        ),
    )

    transport = parser.get("companion", "transport").strip().lower()
    if transport not in COMPANION_TRANSPORTS:
        raise ConfigurationError(
            f"Unsupported companion transport {transport!r}; "
            f"expected one of {', '.join(COMPANION_TRANSPORTS)}"
        )

    companion = RemoteDeviceConfig(
        device_ip=companion_secrets.address or parser.get("companion", "device_ip"),
        username=companion_secrets.username
        or parser.get("companion", "username", fallback=None),
        password=companion_secrets.password
        or parser.get("companion", "password", fallback=None),
        scheme=parser.get("companion", "scheme"),
        allow_insecure_https=parser.getboolean(
            "companion", "allow_insecure_https", fallback=True
        ),
        transport=transport,
        status_path=parser.get("companion", "status_path"),
        command_path=parser.get("companion", "command_path"),
        timeout_seconds=max(
            0.1, parser.getfloat("companion", "timeout_seconds", fallback=10.0)
        ),
    )

    email = EmailConfig(
        destination=parser.get("email", "destination"),
        subject=parser.get("email", "subject"),
        body=parser.get("email", "body"),
        attachment_filename=parser.get("email", "attachment_filename"),
    )

    button = ButtonConfig(
        name=parser.get("button", "name"),
        icon=parser.get("button", "icon"),
        panel_id=parser.get("button", "panel_id"),
        location=parser.get("button", "location"),
    )

    prompt_defaults = PromptConfig()
    prompt = PromptConfig(
        title=parser.get("prompt", "title", fallback=prompt_defaults.title),
        text=parser.get("prompt", "text", fallback=prompt_defaults.text),
        submit_text=parser.get(
            "prompt", "submit_text", fallback=prompt_defaults.submit_text
        ),
        duration_seconds=max(
            1,
            parser.getint(
                "prompt",
                "duration_seconds",
                fallback=prompt_defaults.duration_seconds,
            ),
        ),
    )

    logging_config = LoggingConfig(
        level=parser.get("logging", "level", fallback="INFO"),
        path=Path(
            parser.get("logging", "path", fallback=str(constants.DEFAULT_LOG_PATH))
        ).expanduser(),
        log_network=parser.getboolean("logging", "log_network", fallback=False),
    )

    resilience = ResilienceConfig(
        reconnect_initial_seconds=max(
            0.1,
            parser.getfloat("resilience", "reconnect_initial_seconds", fallback=1.0),
        ),
        reconnect_max_seconds=max(
            0.1,
            parser.getfloat("resilience", "reconnect_max_seconds", fallback=30.0),
        ),
        health_enabled=parser.getboolean(
            "resilience", "health_enabled", fallback=False
        ),
        health_host=parser.get("resilience", "health_host", fallback="127.0.0.1"),
        health_port=parser.getint("resilience", "health_port", fallback=0),
    )

    return ShareConfig(
        host=host,
        companion=companion,
        email=email,
        button=button,
        prompt=prompt,
        logging=logging_config,
        resilience=resilience,
        raw=parser,
        path=config_path,
    )
