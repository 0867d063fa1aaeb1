"""
Gesture hysteresis state machine.

Stabilizes the per-frame gesture label: fast to enter a gesture, slow to
leave it. Brief false negatives (a finger momentarily reading as curled)
do not drop an in-progress gesture.
"""

from enum import Enum, auto
from typing import Callable, Optional

from .config import GESTURE_CONFIRM_FRAMES, GESTURE_RELEASE_FRAMES
from .logger import get_logger

logger = get_logger("GestureStateMachine")


class GestureState(Enum):
    """State of the confirmed gesture."""
    IDLE = auto()       # No gesture confirmed, no candidate
    PENDING = auto()    # Candidate detected, awaiting confirmation
    ACTIVE = auto()     # Gesture confirmed and matching
    RELEASING = auto()  # Gesture confirmed but not matching, awaiting release


class GestureStateMachine:
    """
    Confirm/release hysteresis over per-frame gesture matches.

    With no confirmed gesture, a candidate must match for confirm_frames
    consecutive frames. Once confirmed, any matching frame resets the
    release counter; after release_frames mismatching frames the machine
    switches to the new candidate (if it reached confirm_frames itself) or
    to None (if the candidate is None).
    """

    def __init__(
        self,
        confirm_frames: int = GESTURE_CONFIRM_FRAMES,
        release_frames: int = GESTURE_RELEASE_FRAMES
    ):
        """
        Initialize state machine.

        Args:
            confirm_frames: Consecutive frames required to confirm a gesture.
            release_frames: Mismatching frames required to leave a gesture.
        """
        self.confirm_frames = confirm_frames
        self.release_frames = release_frames

        self._current: Optional[str] = None
        self._candidate: Optional[str] = None
        self._candidate_count = 0
        self._release_count = 0
        self._on_change: Optional[Callable[[Optional[str], Optional[str]], None]] = None

        logger.debug(
            f"GestureStateMachine initialized (confirm={confirm_frames}, release={release_frames})"
        )

    def set_on_change(
        self, callback: Optional[Callable[[Optional[str], Optional[str]], None]]
    ) -> None:
        """
        Set the gesture change callback.

        Args:
            callback: Called with (previous, current) on every change.
        """
        self._on_change = callback

    def update(self, matched: Optional[str]) -> Optional[str]:
        """
        Feed one frame's matched label.

        Args:
            matched: Label matched this frame, or None.

        Returns:
            The confirmed gesture after this frame.
        """
        if self._current is not None:
            if matched == self._current:
                self._release_count = 0
                self._candidate = matched
                self._candidate_count = self.confirm_frames
            else:
                self._release_count += 1
                if matched == self._candidate:
                    self._candidate_count += 1
                else:
                    self._candidate = matched
                    self._candidate_count = 1

                if self._release_count >= self.release_frames:
                    if self._candidate is not None and self._candidate_count >= self.confirm_frames:
                        self._set_gesture(self._candidate)
                        self._release_count = 0
                    elif self._candidate is None:
                        self._set_gesture(None)
                        self._release_count = 0
                        self._candidate_count = 0
        else:
            if matched == self._candidate:
                self._candidate_count += 1
            else:
                self._candidate = matched
                self._candidate_count = 1

            if matched is not None and self._candidate_count >= self.confirm_frames:
                self._set_gesture(matched)
                self._release_count = 0

        return self._current

    def force_none(self) -> None:
        """Drop the confirmed gesture immediately (tracking lost)."""
        self._set_gesture(None)
        self._candidate = None
        self._candidate_count = 0
        self._release_count = 0

    def reset(self) -> None:
        """Reset all state without notifying."""
        self._current = None
        self._candidate = None
        self._candidate_count = 0
        self._release_count = 0
        logger.debug("GestureStateMachine reset")

    @property
    def current_gesture(self) -> Optional[str]:
        return self._current

    @property
    def state(self) -> GestureState:
        if self._current is not None:
            return GestureState.RELEASING if self._release_count > 0 else GestureState.ACTIVE
        if self._candidate is not None and self._candidate_count > 0:
            return GestureState.PENDING
        return GestureState.IDLE

    def _set_gesture(self, name: Optional[str]) -> None:
        if name == self._current:
            return
        previous = self._current
        self._current = name
        logger.debug(f"Gesture {previous} -> {name}")
        if self._on_change:
            try:
                self._on_change(previous, name)
            except Exception as e:
                logger.error(f"Error in gesture callback: {e}")
