"""
Velocity-based cursor prediction.

Detection runs well below display rate, so the last filtered position is
extrapolated forward every frame using a smoothed velocity estimate. This
hides the detector latency and decouples the cursor's visual update rate
from the detection rate.
"""

from typing import Optional

from .config import PredictorSettings


def clamp01(value: float) -> float:
    """Clamp a value to [0, 1]."""
    return max(0.0, min(1.0, value))


class VelocityPredictor:
    """
    Extrapolates the filtered cursor position between detections.

    Usage:
        predictor = VelocityPredictor()

        # Each detection (after filtering):
        predictor.update(fx, fy, now_ms)

        # Each animation frame:
        x, y = predictor.predict(now_ms)

        # On hand lost:
        predictor.reset()
    """

    def __init__(self, settings: Optional[PredictorSettings] = None):
        """
        Initialize predictor.

        Args:
            settings: Prediction settings. Uses defaults if None.
        """
        self.settings = settings or PredictorSettings()

        self._vel_x = 0.0  # Normalized units per second
        self._vel_y = 0.0
        self._base_x = 0.5
        self._base_y = 0.5
        self._base_t = 0.0  # ms, 0 = no base yet
        self._active = False

    def update(self, x: float, y: float, t_ms: float) -> None:
        """
        Record a freshly filtered position.

        Args:
            x: Filtered x position.
            y: Filtered y position.
            t_ms: Detection timestamp in milliseconds.
        """
        if self._base_t > 0:
            dt = (t_ms - self._base_t) / 1000.0
            if dt > self.settings.min_update_interval_s:
                max_vel = self.settings.max_velocity
                raw_vx = (x - self._base_x) / dt
                raw_vy = (y - self._base_y) / dt
                clamped_vx = max(-max_vel, min(max_vel, raw_vx))
                clamped_vy = max(-max_vel, min(max_vel, raw_vy))

                alpha = self.settings.velocity_alpha
                self._vel_x = self._vel_x * (1.0 - alpha) + clamped_vx * alpha
                self._vel_y = self._vel_y * (1.0 - alpha) + clamped_vy * alpha

        self._base_x = x
        self._base_y = y
        self._base_t = t_ms
        self._active = True

    def predict(self, now_ms: float) -> tuple[float, float]:
        """
        Extrapolate the cursor position to the given time.

        Args:
            now_ms: Current time in milliseconds.

        Returns:
            (x, y) clamped to [0, 1]. Before the first update the base
            position is returned unchanged.
        """
        if not self._active:
            return (self._base_x, self._base_y)

        dt = min((now_ms - self._base_t) / 1000.0, self.settings.max_extrapolation_s)
        ahead = self.settings.lookahead_ms / 1000.0
        px = clamp01(self._base_x + self._vel_x * (dt + ahead))
        py = clamp01(self._base_y + self._vel_y * (dt + ahead))
        return (px, py)

    def reset(self) -> None:
        """Reset velocity state (call when tracking is lost)."""
        self._vel_x = 0.0
        self._vel_y = 0.0
        self._active = False
        self._base_t = 0.0

    @property
    def is_active(self) -> bool:
        """Check if the predictor has a base position."""
        return self._active

    @property
    def velocity(self) -> tuple[float, float]:
        """Get smoothed velocity in normalized units per second."""
        return (self._vel_x, self._vel_y)
