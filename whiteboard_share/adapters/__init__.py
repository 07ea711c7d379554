"""Adapter modules for the host device and the companion board."""

from .companion import (
    CompanionClient,
    CompanionError,
    HostRelayCompanionClient,
    create_companion_client,
)
from .xapi import XapiClient, XapiConnectionError, XapiError

__all__ = [
    "CompanionClient",
    "CompanionError",
    "HostRelayCompanionClient",
    "XapiClient",
    "XapiConnectionError",
    "XapiError",
    "create_companion_client",
]
