"""Secret storage for host and companion device credentials."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from .constants import DEFAULT_CREDENTIALS_PATH, ENV_PREFIX

LOGGER = logging.getLogger(__name__)

DEVICE_ROLES = ("host", "companion")


class CredentialsError(RuntimeError):
    """Raised when the credentials store cannot be read or written."""


@dataclass(slots=True)
class DeviceCredentials:
    username: Optional[str] = None
    password: Optional[str] = None
    address: Optional[str] = None

    def as_dict(self) -> dict[str, str]:
        payload: dict[str, str] = {}
        if self.username:
            payload["username"] = self.username
        if self.password:
            payload["password"] = self.password
        if self.address:
            payload["address"] = self.address
        return payload


def load_credentials(
    path: Optional[Path] = None,
    *,
    environ: Optional[Mapping[str, str]] = None,
) -> dict[str, DeviceCredentials]:
    """Resolve credentials for each device role.

    Environment variables take precedence over the credentials file, e.g.
    ``WHITEBOARD_SHARE_COMPANION_PASSWORD`` or ``WHITEBOARD_SHARE_HOST_ADDRESS``.
    Values missing from both sources are left as ``None`` so the caller can
    fall back to the configuration file.
    """

    env = os.environ if environ is None else environ
    stored = _read_store(path or DEFAULT_CREDENTIALS_PATH)

    resolved: dict[str, DeviceCredentials] = {}
    for role in DEVICE_ROLES:
        entry = stored.get(role) or {}
        if not isinstance(entry, dict):
            raise CredentialsError(f"Credentials entry for {role!r} must be an object")

        prefix = f"{ENV_PREFIX}{role.upper()}_"
        address_key = "DEVICE_IP" if role == "companion" else "ADDRESS"
        resolved[role] = DeviceCredentials(
            username=env.get(prefix + "USERNAME") or entry.get("username"),
            password=env.get(prefix + "PASSWORD") or entry.get("password"),
            address=env.get(prefix + address_key) or entry.get("address"),
        )

    return resolved


def store_credentials(
    role: str,
    credentials: DeviceCredentials,
    path: Optional[Path] = None,
) -> Path:
    """Persist credentials for one device role, keeping the other entries."""

    if role not in DEVICE_ROLES:
        raise CredentialsError(f"Unknown device role: {role!r}")

    target_path = path or DEFAULT_CREDENTIALS_PATH
    target_path.parent.mkdir(parents=True, exist_ok=True)

    payload = _read_store(target_path)
    payload[role] = credentials.as_dict()

    with target_path.open("w", encoding="utf-8") as stream:
        json.dump(payload, stream, indent=2)

    if hasattr(os, "chmod"):
        os.chmod(target_path, 0o600)  # rw-------

    LOGGER.info("Stored %s credentials in %s", role, target_path)
    return target_path


def _read_store(path: Path) -> dict:
    if not path.exists():
        return {}

    try:
        with path.open("r", encoding="utf-8") as stream:
            payload = json.load(stream)
    except (OSError, json.JSONDecodeError) as exc:
        raise CredentialsError(f"Unable to read credentials from {path}: {exc}") from exc

    if not isinstance(payload, dict):
        raise CredentialsError(f"Credentials file {path} must contain a JSON object")
    return payload
