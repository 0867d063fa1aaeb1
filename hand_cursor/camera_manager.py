"""
Webcam source for the hand cursor demo host.

Wraps cv2.VideoCapture and hands out timestamped frames in both BGR (for
the preview) and RGB (for MediaPipe). A camera that keeps failing to
deliver frames is treated as unplugged.
"""

import sys
from dataclasses import dataclass
from typing import Optional

import cv2
import numpy as np

from .config import (
    CAMERA_FPS,
    CAMERA_HEIGHT,
    CAMERA_MAX_READ_FAILURES,
    CAMERA_PROBE_LIMIT,
    CAMERA_WIDTH,
    DEFAULT_CAMERA_INDEX,
)
from .logger import get_logger
from .session import now_ms

logger = get_logger("Camera")


class CameraError(Exception):
    """Raised when the webcam cannot be opened or stops delivering frames."""
    pass


@dataclass
class CapturedFrame:
    """One webcam frame with its capture time."""
    bgr: np.ndarray
    rgb: np.ndarray
    timestamp_ms: float
    index: int

    @property
    def size(self) -> tuple[int, int]:
        """(width, height) in pixels."""
        return self.bgr.shape[1], self.bgr.shape[0]


def _create_capture(index: int) -> cv2.VideoCapture:
    # DirectShow opens much faster than MSMF on Windows
    if sys.platform == "win32":
        capture = cv2.VideoCapture(index, cv2.CAP_DSHOW)
        if capture.isOpened():
            return capture
        capture.release()
        logger.debug(f"DirectShow could not open camera {index}, using default backend")
    return cv2.VideoCapture(index)


class CameraManager:
    """
    Timestamped webcam capture.

    Usage:
        with CameraManager(camera_index=0) as camera:
            frame = camera.capture()
            if frame is not None:
                detector.detect(frame.rgb, frame.timestamp_ms)
    """

    def __init__(
        self,
        camera_index: int = DEFAULT_CAMERA_INDEX,
        resolution: tuple[int, int] = (CAMERA_WIDTH, CAMERA_HEIGHT),
        fps: int = CAMERA_FPS,
        max_read_failures: int = CAMERA_MAX_READ_FAILURES
    ):
        self.camera_index = camera_index
        self.resolution = resolution
        self.fps = fps
        self.max_read_failures = max_read_failures

        self._capture: Optional[cv2.VideoCapture] = None
        self._frames_captured = 0
        self._failed_reads = 0

    @property
    def is_open(self) -> bool:
        return self._capture is not None

    @property
    def frames_captured(self) -> int:
        return self._frames_captured

    def open(self) -> None:
        """
        Start capturing from the configured device.

        Raises:
            CameraError: If the device cannot be opened.
        """
        if self._capture is not None:
            self.close()

        width, height = self.resolution
        logger.info(f"Opening camera {self.camera_index} at {width}x{height}")

        capture = _create_capture(self.camera_index)
        if not capture.isOpened():
            capture.release()
            raise CameraError(f"Camera {self.camera_index} could not be opened")

        capture.set(cv2.CAP_PROP_FRAME_WIDTH, width)
        capture.set(cv2.CAP_PROP_FRAME_HEIGHT, height)
        capture.set(cv2.CAP_PROP_FPS, self.fps)
        # Keep only the newest frame queued
        capture.set(cv2.CAP_PROP_BUFFERSIZE, 1)

        got = (
            int(capture.get(cv2.CAP_PROP_FRAME_WIDTH)),
            int(capture.get(cv2.CAP_PROP_FRAME_HEIGHT)),
        )
        if got != (width, height):
            logger.warning(f"Camera {self.camera_index} delivers {got[0]}x{got[1]} instead")
        logger.info(f"Camera ready ({capture.get(cv2.CAP_PROP_FPS):.0f} FPS reported)")

        self._capture = capture
        self._frames_captured = 0
        self._failed_reads = 0

    def close(self) -> None:
        if self._capture is None:
            return
        self._capture.release()
        self._capture = None
        logger.info(f"Camera {self.camera_index} released after {self._frames_captured} frames")

    def capture(self) -> Optional[CapturedFrame]:
        """
        Grab the next frame.

        Returns:
            The frame, or None when this read failed.

        Raises:
            CameraError: If the camera is closed, or after max_read_failures
                consecutive failed reads.
        """
        if self._capture is None:
            raise CameraError("Camera is not open")

        ok, bgr = self._capture.read()
        if not ok or bgr is None:
            self._failed_reads += 1
            if self._failed_reads >= self.max_read_failures:
                raise CameraError(
                    f"Camera {self.camera_index} returned no frames {self._failed_reads} times in a row"
                )
            logger.debug(f"Frame read failed ({self._failed_reads}/{self.max_read_failures})")
            return None

        self._failed_reads = 0
        self._frames_captured += 1
        return CapturedFrame(
            bgr=bgr,
            rgb=cv2.cvtColor(bgr, cv2.COLOR_BGR2RGB),
            timestamp_ms=now_ms(),
            index=self._frames_captured,
        )

    def __enter__(self) -> "CameraManager":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def list_available_cameras(limit: int = CAMERA_PROBE_LIMIT) -> list[int]:
    """Probe device indices [0, limit) and return the ones that open."""
    found = []
    for index in range(limit):
        probe = _create_capture(index)
        if probe.isOpened():
            found.append(index)
        probe.release()

    logger.debug(f"Cameras found: {found}")
    return found


def select_camera(preferred_index: int = -1) -> int:
    """
    Pick the camera to track with.

    Args:
        preferred_index: Device to use if present; -1 picks the first found.

    Returns:
        Camera index.

    Raises:
        CameraError: If no camera is present.
    """
    found = list_available_cameras()
    if not found:
        raise CameraError("No cameras found")

    if preferred_index in found:
        return preferred_index
    if preferred_index >= 0:
        logger.warning(f"Camera {preferred_index} not found, falling back to {found[0]}")

    logger.info(f"Using camera {found[0]}")
    return found[0]
