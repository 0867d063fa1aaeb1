"""
4-corner canvas calibration.

The operator clicks the canvas corners on the camera preview in the order
Top-Left, Top-Right, Bottom-Right, Bottom-Left. The confirmed quad is
turned into a homography onto the unit square and persisted so that the
calibration survives restarts.
"""

import json
from typing import Callable, Optional

import numpy as np

from .calibration_store import KeyValueStore, MemoryStore
from .config import CORNER_LABELS, CalibrationSettings
from .cursor_state import CalibrationPhase, CalibrationStatus
from .homography import (
    HomographyError,
    MappedPoint,
    Point2D,
    apply_homography,
    solve_homography,
)
from .logger import get_logger

logger = get_logger("Calibration")

QUAD_SIZE = 4


def serialize_quad(quad: tuple[Point2D, ...]) -> str:
    """Serialize a quad as a JSON list of {x, y} objects."""
    return json.dumps([{"x": p.x, "y": p.y} for p in quad])


def deserialize_quad(raw: str) -> Optional[tuple[Point2D, ...]]:
    """
    Parse a serialized quad.

    Returns:
        Tuple of exactly 4 points, or None if the data is malformed.
    """
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, TypeError) as e:
        logger.warning(f"Corrupt calibration data: {e}")
        return None

    if not isinstance(data, list) or len(data) != QUAD_SIZE:
        logger.warning("Stored calibration is not a 4-point list, ignoring")
        return None

    points = []
    for item in data:
        if not isinstance(item, dict):
            return None
        x, y = item.get("x"), item.get("y")
        if not isinstance(x, (int, float)) or not isinstance(y, (int, float)):
            logger.warning(f"Stored calibration point is not numeric: {item}")
            return None
        points.append(Point2D(float(x), float(y)))
    return tuple(points)


class HomographyCalibrator:
    """
    Collects calibration clicks and maps camera points onto the canvas.

    A quad is either absent (full-frame passthrough) or exactly 4 confirmed
    points with a matching homography. A failed solve never replaces the
    current calibration.
    """

    def __init__(
        self,
        store: Optional[KeyValueStore] = None,
        settings: Optional[CalibrationSettings] = None
    ):
        """
        Initialize calibrator.

        Args:
            store: Key-value store for persistence. In-memory if None.
            settings: Calibration settings. Uses defaults if None.
        """
        self.store: KeyValueStore = store if store is not None else MemoryStore()
        self.settings = settings or CalibrationSettings()

        self._points: list[Point2D] = []
        self._quad: Optional[tuple[Point2D, ...]] = None
        self._matrix: Optional[np.ndarray] = None
        self._collecting = False
        self._on_change: Optional[Callable[[CalibrationStatus], None]] = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def phase(self) -> CalibrationPhase:
        if self._collecting:
            return CalibrationPhase.COLLECTING
        if self._quad is not None:
            return CalibrationPhase.DONE
        return CalibrationPhase.IDLE

    @property
    def status(self) -> CalibrationStatus:
        if self._collecting:
            collected = len(self._points)
        else:
            collected = QUAD_SIZE if self._quad is not None else 0
        return CalibrationStatus(phase=self.phase, points_collected=collected)

    @property
    def quad(self) -> Optional[tuple[Point2D, ...]]:
        """Confirmed calibration quad (TL, TR, BR, BL) or None."""
        return self._quad

    @property
    def matrix(self) -> Optional[np.ndarray]:
        """Active 3x3 homography or None."""
        return None if self._matrix is None else self._matrix.copy()

    @property
    def pending_points(self) -> tuple[Point2D, ...]:
        """Points collected so far in the current calibration cycle."""
        return tuple(self._points)

    @property
    def next_corner_label(self) -> Optional[str]:
        """Label of the corner expected next, or None when not collecting."""
        if not self._collecting or len(self._points) >= QUAD_SIZE:
            return None
        return CORNER_LABELS[len(self._points)]

    def is_calibrated(self) -> bool:
        return self._quad is not None and self._matrix is not None

    def set_on_change(self, callback: Optional[Callable[[CalibrationStatus], None]]) -> None:
        """
        Register a callback notified whenever calibration state changes.

        Args:
            callback: Receives a CalibrationStatus, or None to unregister.
        """
        self._on_change = callback

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def start_calibration(self) -> None:
        """Begin 4-corner click collection."""
        self._points = []
        self._collecting = True
        logger.info("Calibration started - click Top-Left corner")
        self._notify()

    def submit_point(self, x: float, y: float) -> bool:
        """
        Add a corner point in camera-normalized space.

        The 4th point confirms the calibration automatically.

        Args:
            x: Camera-space x.
            y: Camera-space y.

        Returns:
            True if the point was accepted (calibrator was collecting).
        """
        if not self._collecting:
            logger.debug("Ignoring calibration point outside collecting mode")
            return False

        label = CORNER_LABELS[len(self._points)]
        self._points.append(Point2D(float(x), float(y)))
        logger.debug(f"Calibration point {label}: ({x:.3f}, {y:.3f})")
        self._notify()

        if len(self._points) == QUAD_SIZE:
            self._confirm()
        return True

    def clear_calibration(self) -> None:
        """Discard the calibration and revert to full-frame passthrough."""
        self._quad = None
        self._matrix = None
        self._collecting = False
        self._points = []
        try:
            self.store.remove(self.settings.storage_key)
        except Exception as e:
            logger.warning(f"Could not remove saved calibration: {e}")
        logger.info("Calibration cleared - using full frame")
        self._notify()

    def restore(self) -> bool:
        """
        Load a persisted quad and recompute its homography.

        Returns:
            True if a calibration was restored.
        """
        try:
            raw = self.store.get(self.settings.storage_key)
        except Exception as e:
            logger.warning(f"Could not load calibration: {e}")
            return False

        if not raw:
            return False

        quad = deserialize_quad(raw)
        if quad is None:
            return False

        try:
            matrix = solve_homography(quad)
        except HomographyError as e:
            logger.warning(f"Stored calibration is degenerate, ignoring: {e}")
            return False

        self._quad = quad
        self._matrix = matrix
        logger.info("Calibration restored from storage")
        self._notify()
        return True

    def map_point(self, vx: float, vy: float) -> MappedPoint:
        """
        Map a camera-space point onto the canvas.

        Args:
            vx: Camera-space x.
            vy: Camera-space y.

        Returns:
            MappedPoint (passthrough when not calibrated).
        """
        return apply_homography(
            self._matrix,
            vx,
            vy,
            margin=self.settings.inside_margin,
            mirror_x=self.settings.mirror_x
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _confirm(self) -> None:
        quad = tuple(self._points)
        self._collecting = False
        self._points = []

        try:
            matrix = solve_homography(quad)
        except HomographyError as e:
            logger.warning(f"Calibration invalid, keeping previous state: {e}")
            self._notify()
            return

        self._quad = quad
        self._matrix = matrix
        self._save()
        logger.info(
            "Calibration confirmed: "
            + ", ".join(f"({p.x:.3f}, {p.y:.3f})" for p in quad)
        )
        self._notify()

    def _save(self) -> None:
        if self._quad is None:
            return
        try:
            self.store.set(self.settings.storage_key, serialize_quad(self._quad))
        except Exception as e:
            logger.warning(f"Could not save calibration: {e}")

    def _notify(self) -> None:
        if not self._on_change:
            return
        try:
            self._on_change(self.status)
        except Exception as e:
            logger.error(f"Error in calibration callback: {e}")
