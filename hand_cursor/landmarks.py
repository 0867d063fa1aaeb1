"""
Hand landmark data model and pose-invariant normalization.

Landmarks follow the MediaPipe Hands layout: 21 points per hand with
x, y in camera-normalized [0, 1] space and z as relative depth.
"""

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence

import numpy as np

from .config import FEATURE_LENGTH, NORMALIZE_MIN_SCALE, NUM_LANDMARKS


class LandmarkIndex:
    """MediaPipe hand landmark indices."""
    WRIST = 0
    THUMB_CMC = 1
    THUMB_MCP = 2
    THUMB_IP = 3
    THUMB_TIP = 4
    INDEX_MCP = 5
    INDEX_PIP = 6
    INDEX_DIP = 7
    INDEX_TIP = 8
    MIDDLE_MCP = 9
    MIDDLE_PIP = 10
    MIDDLE_DIP = 11
    MIDDLE_TIP = 12
    RING_MCP = 13
    RING_PIP = 14
    RING_DIP = 15
    RING_TIP = 16
    PINKY_MCP = 17
    PINKY_PIP = 18
    PINKY_DIP = 19
    PINKY_TIP = 20


# Skeleton edges, same as MediaPipe HAND_CONNECTIONS
HAND_CONNECTIONS: tuple[tuple[int, int], ...] = (
    (0, 1), (1, 2), (2, 3), (3, 4),  # Thumb
    (0, 5), (5, 6), (6, 7), (7, 8),  # Index
    (5, 9), (9, 10), (10, 11), (11, 12),  # Middle
    (9, 13), (13, 14), (14, 15), (15, 16),  # Ring
    (13, 17), (17, 18), (18, 19), (19, 20), (17, 0),  # Pinky + palm
)


@dataclass
class Landmark:
    """Single hand landmark with 3D coordinates and visibility."""
    x: float  # Normalized x [0, 1]
    y: float  # Normalized y [0, 1]
    z: float = 0.0  # Relative depth
    visibility: float = 1.0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Landmark":
        """
        Create Landmark from a {x, y, z?} mapping.

        Raises:
            KeyError: If x or y is missing.
            TypeError, ValueError: If a coordinate is not numeric.
        """
        z = data.get("z")
        return cls(
            x=float(data["x"]),
            y=float(data["y"]),
            z=float(z) if z is not None else 0.0
        )


@dataclass
class HandLandmarks:
    """
    Complete hand landmark data for one detection.

    Attributes:
        landmarks: List of 21 hand landmarks.
        handedness: 'Left' or 'Right'.
        score: Detection confidence score.
    """
    landmarks: list[Landmark]
    handedness: str = "Right"
    score: float = 1.0

    @property
    def wrist(self) -> Landmark:
        """Get wrist landmark."""
        return self.landmarks[LandmarkIndex.WRIST]

    @property
    def index_tip(self) -> Landmark:
        """Get index finger tip landmark."""
        return self.landmarks[LandmarkIndex.INDEX_TIP]


def distance(lm1: Landmark, lm2: Landmark) -> float:
    """Euclidean 3D distance between two landmarks."""
    return float(np.sqrt(
        (lm1.x - lm2.x) ** 2 +
        (lm1.y - lm2.y) ** 2 +
        (lm1.z - lm2.z) ** 2
    ))


def landmarks_to_array(landmarks: Sequence[Landmark]) -> np.ndarray:
    """Stack landmarks into an (N, 3) float array."""
    return np.array([[lm.x, lm.y, lm.z] for lm in landmarks], dtype=np.float64)


def normalize_landmarks(landmarks: Sequence[Landmark]) -> Optional[np.ndarray]:
    """
    Map a landmark frame to a position- and size-invariant feature vector.

    All points are translated so the wrist is the origin, then divided by
    the wrist to middle-finger MCP distance.

    Args:
        landmarks: 21 hand landmarks.

    Returns:
        Flat array of 63 floats (landmark-major, x/y/z), or None when the
        frame is too short or the hand scale is degenerate.
    """
    if len(landmarks) < NUM_LANDMARKS:
        return None

    points = landmarks_to_array(landmarks[:NUM_LANDMARKS])
    translated = points - points[0]
    scale = float(np.linalg.norm(translated[9]))
    if scale < NORMALIZE_MIN_SCALE:
        return None

    vector = (translated / scale).reshape(FEATURE_LENGTH)
    return vector
