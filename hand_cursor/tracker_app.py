#!/usr/bin/env python3
"""
Hand Cursor demo host.

Drives a HandTrackingSession from a local webcam and shows the mirrored
debug preview.

Usage:
    hand-cursor [--settings <path>] [--templates <path>] [--camera <index>]
    python -m hand_cursor.tracker_app ...

Preview controls:
    click  - submit a calibration corner while calibrating
    c      - start 4-corner calibration
    x      - clear calibration
    0-9    - select layer
    q/ESC  - quit

Exit Codes:
    0 - Success
    1 - Settings error
    2 - Camera error
    3 - Runtime error
"""

import argparse
import signal
import sys
import time
from typing import Optional

import cv2

from .calibration_store import JsonFileStore
from .camera_manager import CameraError, CameraManager, select_camera
from .config import (
    DEFAULT_CAMERA_INDEX,
    EXIT_CAMERA_ERROR,
    EXIT_RUNTIME_ERROR,
    EXIT_SETTINGS_ERROR,
    EXIT_SUCCESS,
    STORAGE_FILENAME,
    TrackerSettings,
)
from .cursor_state import CalibrationPhase, CalibrationStatus
from .gesture_templates import GestureTemplateSet, load_templates
from .hand_detector import HandDetector
from .logger import get_logger, setup_logging
from .preview import WINDOW_NAME, render_preview
from .session import HandTrackingSession, now_ms
from .settings_loader import SettingsLoadError, load_settings

logger = get_logger("App")

KEY_ESC = 27


class FpsMeter:
    """Frames per second, refreshed once per window."""

    def __init__(self, window_s: float = 1.0):
        self.window_s = window_s
        self.fps = 0.0
        self._window_start: Optional[float] = None
        self._window_frames = 0

    def tick(self, t: float) -> float:
        """Count one frame at time t (seconds) and return the current estimate."""
        if self._window_start is None:
            self._window_start = t
            return self.fps

        self._window_frames += 1
        elapsed = t - self._window_start
        if elapsed >= self.window_s:
            self.fps = self._window_frames / elapsed
            self._window_start = t
            self._window_frames = 0
        return self.fps


class HandCursorApp:
    """
    Webcam loop around a HandTrackingSession.

    Per camera frame: detect, on_detection(), tick(), render. The camera and
    detector only live for the duration of run().
    """

    def __init__(
        self,
        session: HandTrackingSession,
        camera_index: int = DEFAULT_CAMERA_INDEX
    ):
        self.session = session
        self.camera_index = camera_index

        self._running = False
        self._frames = 0
        self._hand_frames = 0
        self._fps = FpsMeter()
        self._display_size: tuple[int, int] = (0, 0)

        self.session.on_calibration_change(self._on_calibration_change)

    @property
    def is_running(self) -> bool:
        return self._running

    def run(self) -> None:
        """
        Track until quit is pressed or stop() is called.

        Raises:
            CameraError: If the camera cannot be opened or drops out.
        """
        self._running = True
        started = time.perf_counter()

        with CameraManager(camera_index=self.camera_index) as camera, HandDetector() as detector:
            cv2.namedWindow(WINDOW_NAME)
            cv2.setMouseCallback(WINDOW_NAME, self._on_mouse)
            logger.info("Tracking; press q or ESC in the preview to quit")

            try:
                while self._running:
                    self._step(camera, detector)
                    if not self._handle_key(cv2.waitKey(1) & 0xFF):
                        break
            except KeyboardInterrupt:
                logger.info("Interrupted")
            finally:
                self._running = False
                cv2.destroyAllWindows()

        elapsed = time.perf_counter() - started
        if self._frames:
            logger.info(
                f"{self._frames} frames in {elapsed:.1f}s, "
                f"hand visible in {100.0 * self._hand_frames / self._frames:.0f}%"
            )

    def stop(self) -> None:
        """Ask the loop to exit after the current frame."""
        self._running = False

    def _step(self, camera: CameraManager, detector: HandDetector) -> None:
        frame = camera.capture()
        if frame is None:
            return

        hand = detector.detect(frame.rgb, frame.timestamp_ms)
        self._frames += 1
        if hand is not None:
            self._hand_frames += 1

        self.session.on_detection(hand.landmarks if hand else None, frame.timestamp_ms)
        state = self.session.tick(now_ms())

        fps = self._fps.tick(frame.timestamp_ms / 1000.0)
        display = render_preview(
            frame.bgr, state, self.session.calibrator, self.session.last_landmarks, fps
        )
        self._display_size = frame.size
        cv2.imshow(WINDOW_NAME, display)

    def _handle_key(self, key: int) -> bool:
        """Apply a preview key press. Returns False when the user quits."""
        if key in (ord('q'), KEY_ESC):
            return False
        if key == ord('c'):
            self.session.start_calibration()
        elif key == ord('x'):
            self.session.clear_calibration()
        elif ord('0') <= key <= ord('9'):
            logger.info(f"Layer {self.session.set_layer(key - ord('0'))}")
        return True

    def _on_mouse(self, event: int, x: int, y: int, flags: int, param) -> None:
        if event != cv2.EVENT_LBUTTONDOWN:
            return
        if self.session.calibrator.phase != CalibrationPhase.COLLECTING:
            return

        width, height = self._display_size
        if width <= 0 or height <= 0:
            return

        # Clicks land on the mirrored preview; corners are stored in camera space
        self.session.submit_calibration_point(1.0 - x / width, y / height)

    def _on_calibration_change(self, status: CalibrationStatus) -> None:
        logger.debug(f"Calibration: {status.to_dict()}")


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="hand-cursor",
        description="Webcam hand tracking cursor with canvas calibration and gestures",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  hand-cursor
  hand-cursor --templates gestures.json --camera 1
  hand-cursor --settings settings.json --calibrate --debug
"""
    )
    parser.add_argument("--settings", "-s", help="JSON settings file (default: built-in values)")
    parser.add_argument("--templates", "-t", help="Gesture template JSON (default: finger geometry only)")
    parser.add_argument(
        "--camera", "-c",
        type=int,
        default=-1,
        help="Camera index (default: first camera found)"
    )
    parser.add_argument("--layer", "-l", type=int, default=0, help="Initial layer (0-15)")
    parser.add_argument(
        "--storage",
        help=f"Calibration storage file (default: {STORAGE_FILENAME} in the app directory)"
    )
    parser.add_argument(
        "--calibrate",
        action="store_true",
        help="Start 4-corner calibration immediately"
    )
    parser.add_argument(
        "--clear-calibration",
        action="store_true",
        help="Forget the saved calibration before starting"
    )
    parser.add_argument("--no-log-file", action="store_true", help="Log to the console only")
    parser.add_argument("--debug", "-d", action="store_true", help="Verbose console logging")
    return parser.parse_args(argv)


def build_session(args: argparse.Namespace) -> HandTrackingSession:
    """
    Create the session described by the command line.

    Raises:
        SettingsLoadError: If --settings points at an unusable file.
    """
    settings = load_settings(args.settings) if args.settings else TrackerSettings()
    templates = load_templates(args.templates) if args.templates else GestureTemplateSet()

    session = HandTrackingSession(
        settings=settings,
        store=JsonFileStore(args.storage),
        templates=templates
    )
    session.set_layer(args.layer)
    if args.clear_calibration:
        session.clear_calibration()
    if args.calibrate:
        session.start_calibration()
    return session


def main(argv: Optional[list[str]] = None) -> int:
    """
    Console entry point.

    Returns:
        Process exit code.
    """
    args = parse_args(argv)
    setup_logging(debug=args.debug, log_to_file=not args.no_log_file)

    try:
        session = build_session(args)
    except SettingsLoadError as e:
        logger.error(f"Settings: {e}")
        return EXIT_SETTINGS_ERROR

    try:
        camera_index = args.camera if args.camera >= 0 else select_camera()
        app = HandCursorApp(session=session, camera_index=camera_index)

        def request_stop(signum, frame):
            logger.info(f"Signal {signum}, stopping")
            app.stop()

        signal.signal(signal.SIGINT, request_stop)
        # No SIGTERM on Windows
        if sys.platform != "win32":
            signal.signal(signal.SIGTERM, request_stop)

        app.run()
        return EXIT_SUCCESS

    except CameraError as e:
        logger.error(f"Camera: {e}")
        return EXIT_CAMERA_ERROR
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        return EXIT_RUNTIME_ERROR


if __name__ == "__main__":
    sys.exit(main())
