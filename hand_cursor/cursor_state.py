"""
Public read models published by a hand tracking session.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class CalibrationPhase(Enum):
    """Phase of the 4-corner canvas calibration."""
    IDLE = "idle"  # No calibration, full-frame passthrough
    COLLECTING = "collecting"  # Waiting for corner clicks
    DONE = "done"  # Confirmed quad active


@dataclass(frozen=True)
class CalibrationStatus:
    """Notification sent whenever the calibration state changes."""
    phase: CalibrationPhase
    points_collected: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"phase": self.phase.value, "pointsCollected": self.points_collected}


@dataclass(frozen=True)
class CursorState:
    """
    Per-frame cursor state consumed by rendering and painting code.

    Attributes:
        x: Canvas x in [0, 1].
        y: Canvas y in [0, 1].
        active: A hand is detected and inside the calibrated canvas.
        layer_index: Selected logical layer.
        gesture: Confirmed gesture label, or None.
        moving: The cursor is active and its recent motion is above the
            stillness threshold.
    """
    x: float = 0.5
    y: float = 0.5
    active: bool = False
    layer_index: int = 0
    gesture: Optional[str] = None
    moving: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Serialize with camelCase keys."""
        return {
            "x": self.x,
            "y": self.y,
            "active": self.active,
            "layerIndex": self.layer_index,
            "gesture": self.gesture,
            "moving": self.moving,
        }
