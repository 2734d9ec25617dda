from __future__ import annotations

from enum import Enum


class PresenceState(str, Enum):
    """Whether a student is currently inside or outside the facility."""

    IN = "in"
    OUT = "out"

    def opposite(self) -> "PresenceState":
        return PresenceState.OUT if self is PresenceState.IN else PresenceState.IN


class ChangeKind(str, Enum):
    """What kind of change the sync broadcaster is announcing."""

    PRESENCE = "presence"
    ACTIVITY = "activity"
    EVICTION = "eviction"
