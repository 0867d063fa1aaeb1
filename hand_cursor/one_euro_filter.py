"""
One Euro filter for the cursor position.

Casiez et al., "1€ Filter: A Simple Speed-based Low-pass Filter for Noisy
Input in Interactive Systems" (CHI 2012). The session runs one instance per
canvas axis.
"""

import math
from typing import Optional

from .config import CURSOR_BETA, CURSOR_D_CUTOFF, CURSOR_MIN_CUTOFF, FILTER_MIN_DT


def _alpha(dt: float, cutoff: float) -> float:
    """Exponential smoothing weight for a first-order low-pass at cutoff Hz."""
    tau = 1.0 / (2.0 * math.pi * cutoff)
    return 1.0 / (1.0 + tau / dt)


class _LowPass:
    """Exponential smoother that remembers its last output."""

    def __init__(self):
        self.value: Optional[float] = None

    def apply(self, x: float, alpha: float) -> float:
        if self.value is None:
            self.value = x
        else:
            self.value = alpha * x + (1.0 - alpha) * self.value
        return self.value


class OneEuroFilter:
    """
    Speed-adaptive low-pass filter.

    A still hand gets the min_cutoff corner frequency (steady cursor); the
    cutoff rises by beta per unit/s of smoothed speed so fast strokes keep
    up with the finger.
    """

    def __init__(
        self,
        min_cutoff: float = CURSOR_MIN_CUTOFF,
        beta: float = CURSOR_BETA,
        d_cutoff: float = CURSOR_D_CUTOFF
    ):
        """
        Args:
            min_cutoff: Cutoff frequency in Hz at zero speed.
            beta: Cutoff increase per unit of speed.
            d_cutoff: Cutoff frequency in Hz for the speed estimate.
        """
        self.min_cutoff = min_cutoff
        self.beta = beta
        self.d_cutoff = d_cutoff

        self._position = _LowPass()
        self._speed = _LowPass()
        self._last_t: Optional[float] = None

    def filter(self, x: float, t: float) -> float:
        """
        Smooth one sample.

        Args:
            x: Raw value.
            t: Sample time in seconds.

        Returns:
            Smoothed value; the first sample after a reset passes through.
        """
        previous = self._position.value
        if previous is None or self._last_t is None:
            self._last_t = t
            self._speed.value = 0.0
            return self._position.apply(x, 1.0)

        dt = max(t - self._last_t, FILTER_MIN_DT)
        self._last_t = t

        speed = self._speed.apply((x - previous) / dt, _alpha(dt, self.d_cutoff))
        cutoff = self.min_cutoff + self.beta * abs(speed)
        return self._position.apply(x, _alpha(dt, cutoff))

    def reset(self) -> None:
        """Forget history; used when the hand is lost."""
        self._position.value = None
        self._speed.value = None
        self._last_t = None

    @property
    def has_state(self) -> bool:
        return self._position.value is not None
