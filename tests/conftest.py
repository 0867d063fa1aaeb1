"""Shared fixtures: synthetic MediaPipe-style hands, logger cleanup."""

import logging
from typing import Optional

import pytest

from hand_cursor.landmarks import Landmark
from hand_cursor.logger import LOGGER_NAME

WRIST = (0.5, 0.9)
THUMB = [(0.44, 0.85), (0.40, 0.80), (0.37, 0.76), (0.35, 0.72)]
MCP_X = {"index": 0.45, "middle": 0.50, "ring": 0.55, "pinky": 0.60}
MCP_Y = 0.7

EXTENDED_Y = (0.6, 0.5, 0.4)  # PIP, DIP, TIP
CURLED_Y = (0.62, 0.68, 0.78)

GESTURE_FINGERS = {
    "pointing": {"index"},
    "draw": {"index", "middle"},
    "erase": {"index", "middle", "ring", "pinky"},
    "fist": set(),
}


def build_hand(
    gesture: str = "pointing",
    tip: Optional[tuple[float, float]] = None,
    offset: tuple[float, float] = (0.0, 0.0),
    scale: float = 1.0
) -> list[Landmark]:
    """
    Build a 21-point upright right hand.

    Args:
        gesture: "pointing", "draw", "erase" or "fist".
        tip: Overrides the index tip position (after offset/scale).
        offset: Added to every point.
        scale: Scales the hand around the wrist.
    """
    extended = GESTURE_FINGERS[gesture]
    points = [WRIST, *THUMB]
    for finger in ("index", "middle", "ring", "pinky"):
        x = MCP_X[finger]
        ys = EXTENDED_Y if finger in extended else CURLED_Y
        points.append((x, MCP_Y))
        points.extend((x, y) for y in ys)

    wx, wy = WRIST
    hand = [
        Landmark(
            x=wx + (px - wx) * scale + offset[0],
            y=wy + (py - wy) * scale + offset[1],
            z=0.0
        )
        for px, py in points
    ]
    if tip is not None:
        hand[8] = Landmark(x=tip[0], y=tip[1], z=0.0)
    return hand


def to_dicts(hand: list[Landmark]) -> list[dict]:
    return [{"x": lm.x, "y": lm.y, "z": lm.z} for lm in hand]


@pytest.fixture
def make_hand():
    return build_hand


@pytest.fixture
def hand_dicts():
    return to_dicts


@pytest.fixture
def restore_logger():
    """Drop handlers installed by setup_logging() during a test."""
    yield
    root = logging.getLogger(LOGGER_NAME)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
