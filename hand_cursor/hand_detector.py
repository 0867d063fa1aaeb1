"""
MediaPipe hand landmark detection for the demo host.

Newer MediaPipe wheels ship only the Tasks API; older ones still expose
mp.solutions.hands. HandDetector picks whichever is installed and always
returns HandLandmarks in camera space (not mirrored).
"""

from typing import Optional

import mediapipe as mp
import numpy as np

from .config import (
    MEDIAPIPE_MAX_NUM_HANDS,
    MEDIAPIPE_MIN_DETECTION_CONFIDENCE,
    MEDIAPIPE_MIN_TRACKING_CONFIDENCE,
    MEDIAPIPE_MODEL_COMPLEXITY,
)
from .landmarks import HandLandmarks, Landmark
from .logger import get_logger

logger = get_logger("HandDetector")

USING_TASKS_API = not (hasattr(mp, "solutions") and hasattr(mp.solutions, "hands"))


def _to_landmark(point) -> Landmark:
    visibility = getattr(point, "visibility", None)
    return Landmark(x=point.x, y=point.y, z=point.z, visibility=visibility or 1.0)


class _SolutionsBackend:
    """mp.solutions.hands, tracking between frames internally."""

    name = "Solutions API"

    def __init__(self, detector: "HandDetector"):
        self._hands = mp.solutions.hands.Hands(
            static_image_mode=False,
            model_complexity=detector.model_complexity,
            max_num_hands=detector.max_num_hands,
            min_detection_confidence=detector.min_detection_confidence,
            min_tracking_confidence=detector.min_tracking_confidence
        )

    def process(self, rgb: np.ndarray, timestamp_ms: float) -> Optional[HandLandmarks]:
        results = self._hands.process(rgb)
        if not results.multi_hand_landmarks:
            return None

        hand = HandLandmarks(
            landmarks=[_to_landmark(p) for p in results.multi_hand_landmarks[0].landmark]
        )
        if results.multi_handedness:
            label = results.multi_handedness[0].classification[0]
            hand.handedness = label.label
            hand.score = label.score
        return hand

    def close(self) -> None:
        self._hands.close()


class _TasksBackend:
    """mediapipe.tasks HandLandmarker in VIDEO mode."""

    name = "Tasks API"

    def __init__(self, detector: "HandDetector"):
        from mediapipe.tasks import python as mp_python
        from mediapipe.tasks.python import vision as mp_vision

        from .model_manager import ensure_hand_landmarker_model

        options = mp_vision.HandLandmarkerOptions(
            base_options=mp_python.BaseOptions(model_asset_path=ensure_hand_landmarker_model()),
            running_mode=mp_vision.RunningMode.VIDEO,
            num_hands=detector.max_num_hands,
            min_hand_detection_confidence=detector.min_detection_confidence,
            min_hand_presence_confidence=detector.min_detection_confidence,
            min_tracking_confidence=detector.min_tracking_confidence
        )
        self._landmarker = mp_vision.HandLandmarker.create_from_options(options)
        self._last_ts = -1

    def process(self, rgb: np.ndarray, timestamp_ms: float) -> Optional[HandLandmarks]:
        # VIDEO mode rejects timestamps that do not increase
        ts = max(int(timestamp_ms), self._last_ts + 1)
        self._last_ts = ts

        image = mp.Image(image_format=mp.ImageFormat.SRGB, data=np.ascontiguousarray(rgb))
        result = self._landmarker.detect_for_video(image, ts)
        if not result.hand_landmarks:
            return None

        hand = HandLandmarks(landmarks=[_to_landmark(p) for p in result.hand_landmarks[0]])
        if result.handedness:
            category = result.handedness[0][0]
            hand.handedness = category.category_name
            hand.score = category.score
        return hand

    def close(self) -> None:
        self._landmarker.close()


class HandDetector:
    """
    Single-hand landmark detector.

    The model is loaded lazily on the first detect() unless initialize()
    is called up front.

    Usage:
        with HandDetector() as detector:
            hand = detector.detect(frame.rgb, frame.timestamp_ms)
    """

    def __init__(
        self,
        model_complexity: int = MEDIAPIPE_MODEL_COMPLEXITY,
        max_num_hands: int = MEDIAPIPE_MAX_NUM_HANDS,
        min_detection_confidence: float = MEDIAPIPE_MIN_DETECTION_CONFIDENCE,
        min_tracking_confidence: float = MEDIAPIPE_MIN_TRACKING_CONFIDENCE
    ):
        self.model_complexity = model_complexity
        self.max_num_hands = max_num_hands
        self.min_detection_confidence = min_detection_confidence
        self.min_tracking_confidence = min_tracking_confidence

        self._backend = None

    @property
    def is_initialized(self) -> bool:
        return self._backend is not None

    def initialize(self) -> None:
        """Load the MediaPipe model."""
        if self._backend is not None:
            return
        backend_cls = _TasksBackend if USING_TASKS_API else _SolutionsBackend
        self._backend = backend_cls(self)
        logger.info(
            f"MediaPipe hands ready ({backend_cls.name}, complexity={self.model_complexity}, "
            f"detection>={self.min_detection_confidence:.2f})"
        )

    def close(self) -> None:
        if self._backend is not None:
            self._backend.close()
            self._backend = None
            logger.debug("MediaPipe hands closed")

    def detect(self, rgb_image: np.ndarray, timestamp_ms: float) -> Optional[HandLandmarks]:
        """
        Find the first hand in an RGB frame.

        Args:
            rgb_image: (H, W, 3) RGB frame, not mirrored.
            timestamp_ms: Capture time in milliseconds.

        Returns:
            The hand's 21 landmarks, or None when no hand is visible.
        """
        if self._backend is None:
            self.initialize()
        return self._backend.process(rgb_image, timestamp_ms)

    def __enter__(self) -> "HandDetector":
        self.initialize()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
