"""
Hand tracking session.

Owns the cursor pipeline for one tracked hand and publishes the per-frame
cursor state. Two entry points mutate it, both from the host's single
thread:

    on_detection(landmarks, t)  - every detector result (landmarks or None)
    tick(t)                     - every animation frame

Per detection: index tip -> calibration mapping -> One Euro filters ->
velocity predictor update -> gesture classification. Per frame: the
predictor extrapolates between detections.
"""

import math
import time
from typing import Callable, Optional, Sequence

from .calibration import HomographyCalibrator
from .calibration_store import KeyValueStore
from .config import (
    MAX_LAYERS,
    MOVEMENT_EMA_ALPHA,
    MOVEMENT_STILL_THRESHOLD,
    NUM_LANDMARKS,
    TrackerSettings,
)
from .cursor_state import CalibrationStatus, CursorState
from .gesture_classifier import GestureClassifier
from .gesture_templates import GestureTemplateSet
from .landmarks import Landmark, LandmarkIndex
from .logger import get_logger
from .one_euro_filter import OneEuroFilter
from .velocity_predictor import VelocityPredictor

logger = get_logger("Session")


def now_ms() -> float:
    """Monotonic clock in milliseconds."""
    return time.perf_counter() * 1000.0


class HandTrackingSession:
    """
    Explicit context object for the hand cursor pipeline.

    Usage:
        session = HandTrackingSession(store=JsonFileStore())

        # Detector callback:
        session.on_detection(hand.landmarks if hand else None)

        # Host frame loop:
        state = session.tick()
    """

    def __init__(
        self,
        settings: Optional[TrackerSettings] = None,
        store: Optional[KeyValueStore] = None,
        templates: Optional[GestureTemplateSet] = None,
        clock: Callable[[], float] = now_ms
    ):
        """
        Initialize session and restore any persisted calibration.

        Args:
            settings: Tracker settings. Uses defaults if None.
            store: Calibration persistence. In-memory if None.
            templates: Gesture templates. Geometry-only classification if None.
            clock: Millisecond clock used when callers omit timestamps.
        """
        self.settings = settings or TrackerSettings()
        self._clock = clock

        cursor = self.settings.cursor
        self._filter_x = OneEuroFilter(cursor.min_cutoff, cursor.beta, cursor.d_cutoff)
        self._filter_y = OneEuroFilter(cursor.min_cutoff, cursor.beta, cursor.d_cutoff)
        self._predictor = VelocityPredictor(self.settings.predictor)
        self.calibrator = HomographyCalibrator(store, self.settings.calibration)
        self.classifier = GestureClassifier(templates, self.settings.gestures)

        self._x = 0.5
        self._y = 0.5
        self._active = False
        self._layer_index = 0
        self._last_landmarks: Optional[tuple[Landmark, ...]] = None

        # Movement EMA over raw (unfiltered) canvas displacement
        self._prev_raw: tuple[float, float] = (0.5, 0.5)
        self._movement_ema = 0.0

        self._detection_count = 0
        self._lost_count = 0

        self.calibrator.restore()
        logger.info(
            f"HandTrackingSession initialized (calibrated={self.calibrator.is_calibrated()}, "
            f"templates={self.classifier.recognizer.templates.sample_count})"
        )

    # ------------------------------------------------------------------
    # Detector and frame entry points
    # ------------------------------------------------------------------

    def on_detection(
        self,
        landmarks: Optional[Sequence[Landmark]],
        timestamp_ms: Optional[float] = None
    ) -> CursorState:
        """
        Process one detector result.

        Args:
            landmarks: 21 landmarks of the tracked hand, or None/empty when
                no hand was detected.
            timestamp_ms: Detection time in ms. Uses the session clock if None.

        Returns:
            Cursor state after this detection.
        """
        if not landmarks or len(landmarks) < NUM_LANDMARKS:
            self._on_tracking_lost()
            return self.get_cursor_state()

        t_ms = self._clock() if timestamp_ms is None else timestamp_ms
        self._last_landmarks = tuple(landmarks)
        self._detection_count += 1
        self._lost_count = 0

        tip = landmarks[LandmarkIndex.INDEX_TIP]
        mapped = self.calibrator.map_point(tip.x, tip.y)

        sx = self._filter_x.filter(mapped.x, t_ms / 1000.0)
        sy = self._filter_y.filter(mapped.y, t_ms / 1000.0)
        self._predictor.update(sx, sy, t_ms)

        self.classifier.update(landmarks)

        self._update_cursor(mapped.inside, sx, sy, mapped.x, mapped.y)
        return self.get_cursor_state()

    def tick(self, now: Optional[float] = None) -> CursorState:
        """
        Advance one animation frame.

        Args:
            now: Current time in ms. Uses the session clock if None.

        Returns:
            Cursor state for this frame.
        """
        if self._active and self._predictor.is_active:
            t_ms = self._clock() if now is None else now
            self._x, self._y = self._predictor.predict(t_ms)
        return self.get_cursor_state()

    def _on_tracking_lost(self) -> None:
        """Reset continuous-motion state so reacquisition doesn't jump."""
        self._filter_x.reset()
        self._filter_y.reset()
        self._predictor.reset()
        self.classifier.update(None)
        self._last_landmarks = None

        if self._lost_count == 0 and self._detection_count > 0:
            logger.debug("Hand lost - filters and predictor reset")
        self._lost_count += 1

        self._update_cursor(False, self._x, self._y)

    def _update_cursor(
        self,
        visible: bool,
        nx: float,
        ny: float,
        raw_x: Optional[float] = None,
        raw_y: Optional[float] = None
    ) -> None:
        self._active = visible
        alpha = MOVEMENT_EMA_ALPHA

        if visible:
            rx = nx if raw_x is None else raw_x
            ry = ny if raw_y is None else raw_y
            step = math.hypot(rx - self._prev_raw[0], ry - self._prev_raw[1])
            self._movement_ema = self._movement_ema * (1.0 - alpha) + step * alpha
            self._prev_raw = (rx, ry)
            self._x, self._y = nx, ny
        else:
            self._movement_ema *= (1.0 - alpha)

    # ------------------------------------------------------------------
    # Read model
    # ------------------------------------------------------------------

    def get_cursor_state(self) -> CursorState:
        return CursorState(
            x=self._x,
            y=self._y,
            active=self._active,
            layer_index=self._layer_index,
            gesture=self.classifier.get_current_gesture(),
            moving=self._active and self._movement_ema > MOVEMENT_STILL_THRESHOLD
        )

    def get_current_gesture(self) -> Optional[str]:
        return self.classifier.get_current_gesture()

    @property
    def last_landmarks(self) -> Optional[tuple[Landmark, ...]]:
        """Landmarks of the most recent detection (None after tracking loss)."""
        return self._last_landmarks

    @property
    def movement(self) -> float:
        """Current movement EMA in canvas units per detection."""
        return self._movement_ema

    # ------------------------------------------------------------------
    # Layer selection
    # ------------------------------------------------------------------

    def set_layer(self, index: int) -> int:
        """
        Select the logical layer the cursor paints on.

        Args:
            index: 0-based layer index, clamped to the valid range.

        Returns:
            The layer index actually selected.
        """
        self._layer_index = max(0, min(MAX_LAYERS - 1, int(index)))
        logger.debug(f"Cursor layer set to {self._layer_index}")
        return self._layer_index

    @property
    def layer_index(self) -> int:
        return self._layer_index

    # ------------------------------------------------------------------
    # Calibration passthroughs
    # ------------------------------------------------------------------

    def on_calibration_change(self, callback: Optional[Callable[[CalibrationStatus], None]]) -> None:
        self.calibrator.set_on_change(callback)

    def start_calibration(self) -> None:
        self.calibrator.start_calibration()

    def submit_calibration_point(self, x: float, y: float) -> bool:
        return self.calibrator.submit_point(x, y)

    def clear_calibration(self) -> None:
        self.calibrator.clear_calibration()

    def is_calibrated(self) -> bool:
        return self.calibrator.is_calibrated()
