"""Core primitives for whiteboard-share."""

from .models import WorkflowContext
from .protocols import (
    CompanionAdapter,
    ConnectHandler,
    DisconnectHandler,
    EventCallback,
    HostAdapter,
)

__all__ = [
    "CompanionAdapter",
    "ConnectHandler",
    "DisconnectHandler",
    "EventCallback",
    "HostAdapter",
    "WorkflowContext",
]
