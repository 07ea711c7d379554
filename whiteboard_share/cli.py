"""Command-line interface for whiteboard-share."""

from __future__ import annotations

import argparse
import getpass
import logging
import sys
from pathlib import Path
from typing import Optional

from . import constants
from .app import WhiteboardShareApp
from .config import ConfigurationError, load_config
from .credentials import (
    DEVICE_ROLES,
    CredentialsError,
    DeviceCredentials,
    store_credentials,
)

LOGGER = logging.getLogger(__name__)

SECRET_OPTIONS = {"password"}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=constants.APP_NAME,
        description="Email the companion board's whiteboard from a control-panel button",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=constants.DEFAULT_CONFIG_PATH,
        help=f"Path to configuration file (default: {constants.DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument(
        "--credentials",
        type=Path,
        default=constants.DEFAULT_CREDENTIALS_PATH,
        help=f"Path to credentials file (default: {constants.DEFAULT_CREDENTIALS_PATH})",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("start", help="Start the whiteboard-share service")

    store_parser = subparsers.add_parser(
        "store-credentials", help="Save device credentials outside the config file"
    )
    store_parser.add_argument("role", choices=DEVICE_ROLES)
    store_parser.add_argument("--username", required=True)
    store_parser.add_argument(
        "--address", help="Host address or companion device IP to store alongside"
    )

    subparsers.add_parser(
        "show-config", help="Print the resolved configuration and exit"
    )

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "store-credentials":
        password = getpass.getpass(f"Password for {args.role} user {args.username}: ")
        try:
            store_credentials(
                args.role,
                DeviceCredentials(
                    username=args.username, password=password, address=args.address
                ),
                args.credentials,
            )
        except CredentialsError as exc:
            LOGGER.error("Storing credentials failed: %s", exc)
            return 1
        return 0

    try:
        config = load_config(args.config, credentials_path=args.credentials)
    except (ConfigurationError, CredentialsError) as exc:
        LOGGER.error("Invalid configuration: %s", exc)
        return 1

    if args.command == "start":
        try:
            WhiteboardShareApp.start(config)
        except ConfigurationError as exc:
            LOGGER.error("Invalid configuration: %s", exc)
            return 1
        return 0

    if args.command == "show-config":
        print(f"Configuration loaded from {config.path!s}\n")
        for section in config.raw.sections():
            print(f"[{section}]")
            for key, value in config.raw[section].items():
                if key in SECRET_OPTIONS and value:
                    value = "********"
                print(f"{key} = {value}")
            print()
        return 0

    LOGGER.error("Unknown command: %s", args.command)
    return 1


if __name__ == "__main__":
    sys.exit(main())
