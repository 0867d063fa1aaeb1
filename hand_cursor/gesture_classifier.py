"""
Gesture classifier combining per-frame recognition with hysteresis.
"""

from typing import Optional, Sequence

from .config import GestureThresholds
from .gesture_recognizer import GestureRecognizer, GestureResult
from .gesture_state_machine import GestureStateMachine
from .gesture_templates import GestureTemplateSet
from .landmarks import Landmark


class GestureClassifier:
    """
    Two-stage recognizer wrapped in a confirm/release state machine.

    get_current_gesture() only ever returns the confirmed label, never the
    raw per-frame match.
    """

    def __init__(
        self,
        templates: Optional[GestureTemplateSet] = None,
        thresholds: Optional[GestureThresholds] = None
    ):
        self.thresholds = thresholds or GestureThresholds()
        self.recognizer = GestureRecognizer(templates, self.thresholds)
        self.state_machine = GestureStateMachine(
            confirm_frames=self.thresholds.confirm_frames,
            release_frames=self.thresholds.release_frames
        )
        self._last_result: Optional[GestureResult] = None

    def update(self, landmarks: Optional[Sequence[Landmark]]) -> Optional[str]:
        """
        Process one detection frame.

        Args:
            landmarks: 21 hand landmarks, or None when no hand is detected.

        Returns:
            The confirmed gesture after this frame.
        """
        if not landmarks:
            self._last_result = None
            self.state_machine.force_none()
            return None

        self._last_result = self.recognizer.recognize(landmarks)
        return self.state_machine.update(self._last_result.gesture)

    def get_current_gesture(self) -> Optional[str]:
        return self.state_machine.current_gesture

    @property
    def last_result(self) -> Optional[GestureResult]:
        """Raw recognition result of the most recent frame."""
        return self._last_result

    def reset(self) -> None:
        self._last_result = None
        self.state_machine.reset()
