"""
Configuration constants for the hand cursor pipeline.

This module contains all tunable parameters for cursor smoothing,
latency prediction, canvas calibration, gesture recognition and the
webcam demo host.
"""

from dataclasses import dataclass, field
from typing import Final


# Camera configuration
CAMERA_WIDTH: Final[int] = 640
CAMERA_HEIGHT: Final[int] = 480
CAMERA_FPS: Final[int] = 30
DEFAULT_CAMERA_INDEX: Final[int] = 0
CAMERA_PROBE_LIMIT: Final[int] = 10
CAMERA_MAX_READ_FAILURES: Final[int] = 30  # Consecutive failed reads before giving up

# MediaPipe configuration
MEDIAPIPE_MODEL_COMPLEXITY: Final[int] = 0  # Lite model for performance
MEDIAPIPE_MAX_NUM_HANDS: Final[int] = 1
MEDIAPIPE_MIN_DETECTION_CONFIDENCE: Final[float] = 0.70
MEDIAPIPE_MIN_TRACKING_CONFIDENCE: Final[float] = 0.60

# Landmark frame layout
NUM_LANDMARKS: Final[int] = 21
FEATURE_LENGTH: Final[int] = NUM_LANDMARKS * 3  # 63 floats, landmark-major
NORMALIZE_MIN_SCALE: Final[float] = 1e-6  # Wrist -> middle MCP below this is degenerate

# Cursor smoothing (One Euro Filter parameters)
# Tuned for ~15-20 fps detection and normalized [0, 1] coordinates
CURSOR_MIN_CUTOFF: Final[float] = 6.0  # Lower = smoother when still, more lag
CURSOR_BETA: Final[float] = 0.2  # Higher = less lag when moving fast
CURSOR_D_CUTOFF: Final[float] = 1.0  # Derivative cutoff (Hz)
FILTER_MIN_DT: Final[float] = 1e-6  # Seconds

# Velocity prediction
PREDICT_LOOKAHEAD_MS: Final[float] = 65.0  # Roughly the detector pipeline latency
PREDICT_VELOCITY_ALPHA: Final[float] = 0.5  # EMA weight of the newest velocity sample
PREDICT_MAX_VELOCITY: Final[float] = 8.0  # Normalized units per second
PREDICT_MAX_EXTRAPOLATION_S: Final[float] = 0.15  # Cap on time since last detection
PREDICT_MIN_UPDATE_INTERVAL_S: Final[float] = 0.005  # Ignore sub-5ms spurious updates

# Canvas calibration (4-point homography)
CALIBRATION_STORAGE_KEY: Final[str] = "handCursor_calibration_v1"
CALIBRATION_INSIDE_MARGIN: Final[float] = 0.04  # Tolerance around the calibrated quad
CALIBRATION_MIRROR_X: Final[bool] = True  # Front-facing camera mirrors X
HOMOGRAPHY_PIVOT_EPSILON: Final[float] = 1e-12
HOMOGRAPHY_COLLINEAR_EPSILON: Final[float] = 1e-9  # Twice the triangle area
CORNER_LABELS: Final[tuple[str, ...]] = ("Top-Left", "Top-Right", "Bottom-Right", "Bottom-Left")

# Gesture labels
GESTURE_POINTING: Final[str] = "pointing"
GESTURE_DRAW: Final[str] = "draw"
GESTURE_ERASE: Final[str] = "erase"

# Gesture recognition thresholds
TEMPLATE_MATCH_THRESHOLD: Final[float] = 0.88  # Cosine similarity needed for a template match
FINGER_EXTENDED_THRESHOLD: Final[float] = 1.18  # Tip/MCP wrist-distance ratio
FINGER_CURLED_THRESHOLD: Final[float] = 1.22  # Above extended, ratios in between count as both
FINGER_MIN_MCP_DISTANCE: Final[float] = 1e-4

# Gesture state machine
GESTURE_CONFIRM_FRAMES: Final[int] = 4  # Frames to enter a gesture
GESTURE_RELEASE_FRAMES: Final[int] = 18  # Frames of non-match before leaving
GESTURE_SCORE_LOG_INTERVAL: Final[int] = 20  # Frames between template score logs

# Cursor state
MAX_LAYERS: Final[int] = 16
MOVEMENT_EMA_ALPHA: Final[float] = 0.15
MOVEMENT_STILL_THRESHOLD: Final[float] = 0.0015

# Storage
STORAGE_FILENAME: Final[str] = "storage.json"
APP_DIR_NAME: Final[str] = "HandCursor"
APP_DIR_FALLBACK: Final[str] = ".hand_cursor"

# Logging
LOG_FILENAME: Final[str] = "hand_cursor.log"
LOG_MAX_BYTES: Final[int] = 10 * 1024 * 1024  # 10 MB
LOG_BACKUP_COUNT: Final[int] = 3

# Exit codes
EXIT_SUCCESS: Final[int] = 0
EXIT_SETTINGS_ERROR: Final[int] = 1
EXIT_CAMERA_ERROR: Final[int] = 2
EXIT_RUNTIME_ERROR: Final[int] = 3


@dataclass
class CursorSettings:
    """Container for cursor smoothing settings (One Euro Filter)."""

    min_cutoff: float = CURSOR_MIN_CUTOFF  # Lower = smoother when slow
    beta: float = CURSOR_BETA  # Higher = more responsive when fast
    d_cutoff: float = CURSOR_D_CUTOFF


@dataclass
class PredictorSettings:
    """Container for velocity prediction settings."""

    lookahead_ms: float = PREDICT_LOOKAHEAD_MS
    velocity_alpha: float = PREDICT_VELOCITY_ALPHA
    max_velocity: float = PREDICT_MAX_VELOCITY
    max_extrapolation_s: float = PREDICT_MAX_EXTRAPOLATION_S
    min_update_interval_s: float = PREDICT_MIN_UPDATE_INTERVAL_S


@dataclass
class CalibrationSettings:
    """Container for canvas calibration settings."""

    inside_margin: float = CALIBRATION_INSIDE_MARGIN
    mirror_x: bool = CALIBRATION_MIRROR_X
    storage_key: str = CALIBRATION_STORAGE_KEY


@dataclass
class GestureThresholds:
    """Container for gesture recognition thresholds and hysteresis."""

    match_threshold: float = TEMPLATE_MATCH_THRESHOLD
    extended: float = FINGER_EXTENDED_THRESHOLD
    curled: float = FINGER_CURLED_THRESHOLD
    confirm_frames: int = GESTURE_CONFIRM_FRAMES
    release_frames: int = GESTURE_RELEASE_FRAMES


@dataclass
class TrackerSettings:
    """All tunable settings of a hand tracking session."""

    cursor: CursorSettings = field(default_factory=CursorSettings)
    predictor: PredictorSettings = field(default_factory=PredictorSettings)
    calibration: CalibrationSettings = field(default_factory=CalibrationSettings)
    gestures: GestureThresholds = field(default_factory=GestureThresholds)
