"""
Planar homography for canvas calibration.

Implements the Direct Linear Transform (DLT) to compute the 3x3
perspective transform mapping a camera-space quad onto the unit square,
and applies it to camera-space points.
"""

from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from .config import (
    CALIBRATION_INSIDE_MARGIN,
    HOMOGRAPHY_COLLINEAR_EPSILON,
    HOMOGRAPHY_PIVOT_EPSILON,
)
from .logger import get_logger

logger = get_logger("Homography")


@dataclass(frozen=True)
class Point2D:
    """A 2D point in normalized coordinates."""
    x: float
    y: float


@dataclass(frozen=True)
class MappedPoint:
    """
    Result of mapping a camera-space point onto the canvas.

    Attributes:
        x: Canvas x in [0, 1] (mirrored when configured).
        y: Canvas y in [0, 1].
        inside: Whether the unclamped point lies within the calibrated
            quad plus margin.
    """
    x: float
    y: float
    inside: bool


class HomographyError(Exception):
    """Raised when a homography cannot be solved from the given points."""
    pass


# Where each calibration corner (TL, TR, BR, BL) lands in canvas space
UNIT_SQUARE_CORNERS: tuple[Point2D, ...] = (
    Point2D(0.0, 0.0),
    Point2D(1.0, 0.0),
    Point2D(1.0, 1.0),
    Point2D(0.0, 1.0),
)


def _has_collinear_triple(points: Sequence[Point2D], eps: float) -> bool:
    """Check whether any three of the points are (nearly) collinear."""
    n = len(points)
    for i in range(n):
        for j in range(i + 1, n):
            for k in range(j + 1, n):
                a, b, c = points[i], points[j], points[k]
                cross = (b.x - a.x) * (c.y - a.y) - (b.y - a.y) * (c.x - a.x)
                if abs(cross) < eps:
                    return True
    return False


def gaussian_elimination(A: np.ndarray, b: np.ndarray) -> np.ndarray:
    """
    Solve A @ x = b with Gaussian elimination and partial pivoting.

    Args:
        A: Square coefficient matrix (n x n).
        b: Right-hand side (n,).

    Returns:
        Solution vector (n,).

    Raises:
        HomographyError: If a pivot falls below HOMOGRAPHY_PIVOT_EPSILON.
    """
    n = b.shape[0]
    M = np.hstack([np.asarray(A, dtype=np.float64), np.asarray(b, dtype=np.float64).reshape(n, 1)])

    for col in range(n):
        max_row = col + int(np.argmax(np.abs(M[col:, col])))
        if max_row != col:
            M[[col, max_row]] = M[[max_row, col]]
        if abs(M[col, col]) < HOMOGRAPHY_PIVOT_EPSILON:
            raise HomographyError(f"Singular pivot in column {col}")

        for row in range(col + 1, n):
            factor = M[row, col] / M[col, col]
            M[row, col:] -= factor * M[col, col:]

    x = np.zeros(n, dtype=np.float64)
    for i in range(n - 1, -1, -1):
        x[i] = (M[i, n] - M[i, i + 1:n] @ x[i + 1:n]) / M[i, i]
    return x


def solve_homography(
    src: Sequence[Point2D],
    dst: Sequence[Point2D] = UNIT_SQUARE_CORNERS
) -> np.ndarray:
    """
    Compute the homography mapping 4 source points onto 4 destination points.

    Each correspondence contributes two rows to the 8x9 DLT matrix; the last
    matrix entry is fixed to 1 and the remaining 8x8 system is solved.

    Args:
        src: 4 camera-space points ordered TL, TR, BR, BL.
        dst: 4 destination points (unit square corners by default).

    Returns:
        3x3 homography matrix (row-major, H[2, 2] == 1).

    Raises:
        HomographyError: If the points are degenerate.
    """
    if len(src) != 4 or len(dst) != 4:
        raise HomographyError(f"Expected 4 point pairs, got {len(src)}/{len(dst)}")

    if _has_collinear_triple(src, HOMOGRAPHY_COLLINEAR_EPSILON):
        raise HomographyError("Three or more calibration points are collinear")

    A = np.zeros((8, 9), dtype=np.float64)
    for i, (s, d) in enumerate(zip(src, dst)):
        A[2 * i] = [-s.x, -s.y, -1.0, 0.0, 0.0, 0.0, d.x * s.x, d.x * s.y, d.x]
        A[2 * i + 1] = [0.0, 0.0, 0.0, -s.x, -s.y, -1.0, d.y * s.x, d.y * s.y, d.y]

    h = gaussian_elimination(A[:, :8], -A[:, 8])

    if not np.all(np.isfinite(h)):
        raise HomographyError("Homography contains NaN/Inf")

    return np.append(h, 1.0).reshape(3, 3)


def apply_homography(
    H: Optional[np.ndarray],
    vx: float,
    vy: float,
    margin: float = CALIBRATION_INSIDE_MARGIN,
    mirror_x: bool = True
) -> MappedPoint:
    """
    Map a camera-space point onto the canvas.

    Without a homography the point is passed through (with the same mirror
    convention) and is always inside.

    Args:
        H: 3x3 homography, or None for full-frame passthrough.
        vx: Camera-space x.
        vy: Camera-space y.
        margin: Tolerance around the unit square for the inside test.
        mirror_x: Flip X to undo front-facing camera mirroring.

    Returns:
        MappedPoint with clamped canvas coordinates.
    """
    if H is None:
        x = 1.0 - vx if mirror_x else vx
        return MappedPoint(
            x=float(max(0.0, min(1.0, x))),
            y=float(max(0.0, min(1.0, vy))),
            inside=True
        )

    w = H[2, 0] * vx + H[2, 1] * vy + H[2, 2]
    if abs(w) < HOMOGRAPHY_PIVOT_EPSILON:
        return MappedPoint(x=0.0, y=0.0, inside=False)

    nx = (H[0, 0] * vx + H[0, 1] * vy + H[0, 2]) / w
    ny = (H[1, 0] * vx + H[1, 1] * vy + H[1, 2]) / w

    inside = (-margin <= nx <= 1.0 + margin) and (-margin <= ny <= 1.0 + margin)

    x = 1.0 - nx if mirror_x else nx
    return MappedPoint(
        x=float(max(0.0, min(1.0, x))),
        y=float(max(0.0, min(1.0, ny))),
        inside=bool(inside)
    )
