"""Runtime models shared by the share workflow."""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field


@dataclass(slots=True)
class WorkflowContext:
    """State captured by one button press and carried through to the send."""

    feedback_id: str
    board_url: str
    destination: str
    created_at: float = field(default_factory=time.monotonic)

    @classmethod
    def create(cls, panel_id: str, board_url: str, destination: str) -> "WorkflowContext":
        feedback_id = f"{panel_id}-{uuid.uuid4().hex[:12]}"
        return cls(feedback_id=feedback_id, board_url=board_url, destination=destination)

    def age(self) -> float:
        return time.monotonic() - self.created_at
