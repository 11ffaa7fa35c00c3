from __future__ import annotations

import logging
from dataclasses import dataclass

from spacepad.core.types import Status

logger = logging.getLogger(__name__)


@dataclass
class StatusBoard:
    """
    Status flags for everything that can fail outside our control.

    Errors from sensors and the transport end up here instead of
    propagating out of the engine. Only the run loop thread writes it.
    """
    connection: Status = Status.UNKNOWN
    input: Status = Status.UNKNOWN
    motion: Status = Status.INACTIVE
    orientation: Status = Status.INACTIVE
    last_error: str | None = None

    def set(self, capability: str, value: Status, reason: str | None = None) -> None:
        old = getattr(self, capability)
        setattr(self, capability, value)
        if value == Status.ERROR and reason:
            self.last_error = reason
        if old != value:
            logger.info("%s status: %s -> %s%s", capability, old.value, value.value,
                        f" ({reason})" if reason else "")

    def motion_usable(self) -> bool:
        return self.motion == Status.GRANTED

    def orientation_usable(self) -> bool:
        return self.orientation == Status.GRANTED

    def as_dict(self) -> dict:
        return {
            "connection": self.connection.value,
            "input": self.input.value,
            "motion": self.motion.value,
            "orientation": self.orientation.value,
            "last_error": self.last_error,
        }
