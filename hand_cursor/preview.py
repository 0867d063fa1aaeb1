"""
Debug preview rendering for the demo host.

Everything is drawn on the mirrored camera frame, so points stored in
camera space are flipped with mirror_x() before drawing.
"""

from typing import Optional, Sequence

import cv2
import numpy as np

from .calibration import HomographyCalibrator
from .config import CORNER_LABELS, MAX_LAYERS
from .cursor_state import CalibrationPhase, CursorState
from .homography import Point2D
from .landmarks import HAND_CONNECTIONS, Landmark, LandmarkIndex

WINDOW_NAME = "Hand Cursor"

# BGR colors
COLOR_QUAD = (0, 200, 255)
COLOR_PENDING = (0, 255, 255)
COLOR_SKELETON = (0, 0, 255)
COLOR_JOINT = (0, 255, 0)
COLOR_TEXT = (255, 255, 255)
COLOR_INACTIVE = (128, 128, 128)

# One color per layer, cycled past the palette length
LAYER_COLORS: tuple[tuple[int, int, int], ...] = (
    (255, 80, 80), (80, 255, 80), (80, 80, 255), (0, 220, 255),
    (255, 0, 255), (255, 255, 0), (0, 128, 255), (200, 120, 255),
)

INSET_SIZE = 120  # Canvas minimap edge in pixels
INSET_MARGIN = 10


def layer_color(layer_index: int) -> tuple[int, int, int]:
    index = max(0, min(MAX_LAYERS - 1, layer_index))
    return LAYER_COLORS[index % len(LAYER_COLORS)]


def mirror_x(x: float) -> float:
    """Flip a camera-space x for display on the mirrored preview."""
    return 1.0 - x


def to_pixel(x: float, y: float, width: int, height: int) -> tuple[int, int]:
    return int(round(x * width)), int(round(y * height))


def draw_quad(frame: np.ndarray, quad: Sequence[Point2D], color=COLOR_QUAD) -> None:
    """Draw the confirmed calibration quad with its corner labels."""
    h, w = frame.shape[:2]
    pts = np.array([to_pixel(mirror_x(p.x), p.y, w, h) for p in quad], dtype=np.int32)
    cv2.polylines(frame, [pts], isClosed=True, color=color, thickness=2)
    for (px, py), label in zip(pts, CORNER_LABELS):
        cv2.circle(frame, (int(px), int(py)), 5, color, -1)
        cv2.putText(
            frame, label, (int(px) + 6, int(py) - 6),
            cv2.FONT_HERSHEY_SIMPLEX, 0.45, color, 1
        )


def draw_collecting(frame: np.ndarray, pending: Sequence[Point2D], next_label: Optional[str]) -> None:
    """Dim the frame and show the corners clicked so far plus the next hint."""
    h, w = frame.shape[:2]
    overlay = frame.copy()
    cv2.rectangle(overlay, (0, 0), (w, h), (0, 0, 0), -1)
    cv2.addWeighted(overlay, 0.35, frame, 0.65, 0, dst=frame)

    for i, p in enumerate(pending):
        px, py = to_pixel(mirror_x(p.x), p.y, w, h)
        cv2.circle(frame, (px, py), 6, COLOR_PENDING, -1)
        cv2.putText(
            frame, str(i + 1), (px + 8, py + 4),
            cv2.FONT_HERSHEY_SIMPLEX, 0.5, COLOR_PENDING, 1
        )

    if next_label:
        hint = f"Click canvas corner {len(pending) + 1}/4: {next_label}"
        cv2.putText(
            frame, hint, (10, h - 20),
            cv2.FONT_HERSHEY_SIMPLEX, 0.7, COLOR_PENDING, 2
        )


def draw_hand(frame: np.ndarray, landmarks: Sequence[Landmark], tip_color: tuple[int, int, int]) -> None:
    """Draw the hand skeleton and highlight the index tip."""
    h, w = frame.shape[:2]
    points = [to_pixel(mirror_x(lm.x), lm.y, w, h) for lm in landmarks]

    for start, end in HAND_CONNECTIONS:
        cv2.line(frame, points[start], points[end], COLOR_SKELETON, 2)
    for pt in points:
        cv2.circle(frame, pt, 3, COLOR_JOINT, -1)

    cv2.circle(frame, points[LandmarkIndex.INDEX_TIP], 9, tip_color, -1)


def draw_canvas_inset(frame: np.ndarray, state: CursorState) -> None:
    """Draw a canvas minimap with the cursor position in the top-right corner."""
    w = frame.shape[1]
    x0 = w - INSET_SIZE - INSET_MARGIN
    y0 = INSET_MARGIN
    cv2.rectangle(frame, (x0, y0), (x0 + INSET_SIZE, y0 + INSET_SIZE), COLOR_TEXT, 1)

    cx = x0 + int(round(state.x * INSET_SIZE))
    cy = y0 + int(round(state.y * INSET_SIZE))
    color = layer_color(state.layer_index) if state.active else COLOR_INACTIVE
    cv2.circle(frame, (cx, cy), 6 if state.moving else 4, color, -1)


def draw_status(frame: np.ndarray, state: CursorState, phase: CalibrationPhase, fps: float) -> None:
    lines = [
        f"Gesture: {state.gesture or '-'}",
        f"Cursor: ({state.x:.3f}, {state.y:.3f}) {'active' if state.active else 'inactive'}"
        f"{' moving' if state.moving else ''}",
        f"Layer: {state.layer_index}  Calibration: {phase.value}",
        f"FPS: {fps:.1f}",
    ]
    for i, text in enumerate(lines):
        cv2.putText(
            frame, text, (10, 25 + i * 22),
            cv2.FONT_HERSHEY_SIMPLEX, 0.55, COLOR_TEXT, 1
        )


def render_preview(
    bgr_frame: np.ndarray,
    state: CursorState,
    calibrator: HomographyCalibrator,
    landmarks: Optional[Sequence[Landmark]],
    fps: float = 0.0
) -> np.ndarray:
    """
    Render the full debug preview.

    Args:
        bgr_frame: Camera frame, not mirrored.
        state: Current cursor state.
        calibrator: Calibration source for the quad and collection overlay.
        landmarks: Current hand landmarks, or None.
        fps: Measured loop rate.

    Returns:
        Mirrored BGR image ready for imshow.
    """
    display = cv2.flip(bgr_frame, 1)

    if calibrator.phase == CalibrationPhase.COLLECTING:
        draw_collecting(display, calibrator.pending_points, calibrator.next_corner_label)
    elif calibrator.quad is not None:
        draw_quad(display, calibrator.quad)

    if landmarks:
        draw_hand(display, landmarks, layer_color(state.layer_index))

    draw_canvas_inset(display, state)
    draw_status(display, state, calibrator.phase, fps)
    return display
