"""
Per-frame gesture recognition.

Stage 1 (primary): cosine-similarity template matching against the loaded
template set. Stage 2 (fallback): finger extension ratios, used when no
templates are loaded or no class clears the match threshold.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Sequence

from .config import (
    FINGER_MIN_MCP_DISTANCE,
    GESTURE_DRAW,
    GESTURE_ERASE,
    GESTURE_POINTING,
    GESTURE_SCORE_LOG_INTERVAL,
    NUM_LANDMARKS,
    GestureThresholds,
)
from .gesture_templates import GestureTemplateSet
from .landmarks import Landmark, LandmarkIndex, distance, normalize_landmarks
from .logger import get_logger

logger = get_logger("GestureRecognizer")


class MatchSource(Enum):
    """Which stage produced a match."""
    TEMPLATE = "template"
    GEOMETRY = "geometry"
    NONE = "none"


@dataclass
class GestureResult:
    """Result of recognizing a single frame."""
    gesture: Optional[str]
    source: MatchSource = MatchSource.NONE
    score: float = 0.0
    scores: dict[str, float] = field(default_factory=dict)


# (MCP, TIP) per non-thumb finger
FINGERS: dict[str, tuple[int, int]] = {
    "index": (LandmarkIndex.INDEX_MCP, LandmarkIndex.INDEX_TIP),
    "middle": (LandmarkIndex.MIDDLE_MCP, LandmarkIndex.MIDDLE_TIP),
    "ring": (LandmarkIndex.RING_MCP, LandmarkIndex.RING_TIP),
    "pinky": (LandmarkIndex.PINKY_MCP, LandmarkIndex.PINKY_TIP),
}


def finger_extension(landmarks: Sequence[Landmark], finger: str) -> float:
    """
    Ratio of tip-to-wrist over MCP-to-wrist distance for one finger.

    Around 1.0 the tip is as close to the wrist as the knuckle (curled);
    well above 1.0 the finger is extended.
    """
    mcp_idx, tip_idx = FINGERS[finger]
    wrist = landmarks[LandmarkIndex.WRIST]
    mcp_dist = distance(landmarks[mcp_idx], wrist)
    if mcp_dist <= FINGER_MIN_MCP_DISTANCE:
        return 0.0
    return distance(landmarks[tip_idx], wrist) / mcp_dist


class GestureRecognizer:
    """
    Maps a landmark frame to a gesture label or None.

    Stateless apart from log throttling; temporal stability is handled by
    GestureStateMachine.
    """

    def __init__(
        self,
        templates: Optional[GestureTemplateSet] = None,
        thresholds: Optional[GestureThresholds] = None
    ):
        """
        Initialize recognizer.

        Args:
            templates: Template set for stage 1. Geometry only if None or empty.
            thresholds: Recognition thresholds. Uses defaults if None.
        """
        self.templates = templates or GestureTemplateSet()
        self.thresholds = thresholds or GestureThresholds()
        self._frame_count = 0

        if self.templates.is_empty:
            logger.info("GestureRecognizer initialized (geometry only)")
        else:
            logger.info(
                f"GestureRecognizer initialized ({self.templates.sample_count} templates, "
                f"threshold={self.thresholds.match_threshold})"
            )

    @property
    def uses_templates(self) -> bool:
        return not self.templates.is_empty

    def recognize(self, landmarks: Sequence[Landmark]) -> GestureResult:
        """
        Recognize the gesture in a single frame.

        Args:
            landmarks: 21 hand landmarks.

        Returns:
            GestureResult with the matched label (or None).
        """
        if len(landmarks) < NUM_LANDMARKS:
            return GestureResult(gesture=None)

        self._frame_count += 1

        if self.uses_templates:
            result = self._match_templates(landmarks)
            if result is not None and result.gesture is not None:
                return result
            scores = result.scores if result else {}
        else:
            scores = {}

        gesture = self.classify_geometry(landmarks)
        source = MatchSource.GEOMETRY if gesture else MatchSource.NONE
        return GestureResult(gesture=gesture, source=source, scores=scores)

    def _match_templates(self, landmarks: Sequence[Landmark]) -> Optional[GestureResult]:
        """Stage 1. Returns None if the frame cannot be normalized."""
        vector = normalize_landmarks(landmarks)
        if vector is None:
            return None

        scores = self.templates.best_scores(vector)

        best_name: Optional[str] = None
        best_score = self.thresholds.match_threshold
        for name, score in scores.items():
            if score > best_score:
                best_name, best_score = name, score

        if self._frame_count % GESTURE_SCORE_LOG_INTERVAL == 0:
            summary = "  ".join(f"{n}:{s:.3f}" for n, s in scores.items())
            logger.debug(f"Template scores {summary} -> {best_name or 'none (fallback)'}")

        if best_name is None:
            return GestureResult(gesture=None, scores=scores)
        return GestureResult(
            gesture=best_name,
            source=MatchSource.TEMPLATE,
            score=best_score,
            scores=scores
        )

    def classify_geometry(self, landmarks: Sequence[Landmark]) -> Optional[str]:
        """
        Stage 2: classify from finger extension ratios.

        Returns:
            "erase" (open hand), "draw" (index + middle), "pointing"
            (index only), or None.
        """
        extended = self.thresholds.extended
        curled = self.thresholds.curled
        ratios = {name: finger_extension(landmarks, name) for name in FINGERS}

        ext = {name: ratio > extended for name, ratio in ratios.items()}
        crl = {name: ratio < curled for name, ratio in ratios.items()}

        if ext["index"] and ext["middle"] and ext["ring"] and ext["pinky"]:
            return GESTURE_ERASE
        if ext["index"] and ext["middle"] and crl["ring"] and crl["pinky"]:
            return GESTURE_DRAW
        if ext["index"] and crl["middle"] and crl["ring"] and crl["pinky"]:
            return GESTURE_POINTING
        return None
