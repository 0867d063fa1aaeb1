"""
HandCursor - Webcam hand tracking cursor for canvas painting.

Turns a stream of MediaPipe hand landmarks into a stable, low-latency
cursor on a calibrated canvas plus a debounced gesture label.
"""

__version__ = "1.0.0"

from .calibration import HomographyCalibrator
from .calibration_store import JsonFileStore, KeyValueStore, MemoryStore
from .config import TrackerSettings
from .cursor_state import CalibrationPhase, CalibrationStatus, CursorState
from .gesture_classifier import GestureClassifier
from .gesture_templates import GestureTemplateSet, load_templates
from .homography import HomographyError
from .landmarks import HandLandmarks, Landmark
from .session import HandTrackingSession
from .settings_loader import SettingsLoadError, load_settings

__all__ = [
    "HomographyCalibrator",
    "JsonFileStore",
    "KeyValueStore",
    "MemoryStore",
    "TrackerSettings",
    "CalibrationPhase",
    "CalibrationStatus",
    "CursorState",
    "GestureClassifier",
    "GestureTemplateSet",
    "load_templates",
    "HomographyError",
    "HandLandmarks",
    "Landmark",
    "HandTrackingSession",
    "SettingsLoadError",
    "load_settings",
]
