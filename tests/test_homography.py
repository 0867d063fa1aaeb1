import numpy as np
import pytest

from hand_cursor.homography import (
    UNIT_SQUARE_CORNERS,
    HomographyError,
    Point2D,
    apply_homography,
    gaussian_elimination,
    solve_homography,
)

QUAD = (Point2D(0.1, 0.1), Point2D(0.9, 0.1), Point2D(0.9, 0.9), Point2D(0.1, 0.9))
PERSPECTIVE_QUAD = (Point2D(0.2, 0.15), Point2D(0.85, 0.2), Point2D(0.8, 0.9), Point2D(0.15, 0.8))


def test_gaussian_elimination_matches_numpy():
    rng = np.random.default_rng(7)
    A = rng.normal(size=(8, 8)) + np.eye(8) * 3
    b = rng.normal(size=8)
    assert gaussian_elimination(A, b) == pytest.approx(np.linalg.solve(A, b))


def test_gaussian_elimination_needs_pivoting():
    A = np.array([[0.0, 1.0], [1.0, 0.0]])
    b = np.array([2.0, 3.0])
    assert gaussian_elimination(A, b) == pytest.approx([3.0, 2.0])


def test_gaussian_elimination_singular():
    A = np.array([[1.0, 2.0], [2.0, 4.0]])
    with pytest.raises(HomographyError):
        gaussian_elimination(A, np.array([1.0, 2.0]))


def test_unit_square_gives_identity():
    H = solve_homography(UNIT_SQUARE_CORNERS)
    assert H == pytest.approx(np.eye(3), abs=1e-9)


@pytest.mark.parametrize("quad", [QUAD, PERSPECTIVE_QUAD])
def test_corners_map_to_unit_square(quad):
    H = solve_homography(quad)
    assert H[2, 2] == 1.0
    for src, dst in zip(quad, UNIT_SQUARE_CORNERS):
        p = apply_homography(H, src.x, src.y, mirror_x=False)
        assert (p.x, p.y) == pytest.approx((dst.x, dst.y), abs=1e-9)
        assert p.inside


def test_collinear_points_rejected():
    quad = (Point2D(0.1, 0.1), Point2D(0.5, 0.1), Point2D(0.9, 0.1), Point2D(0.5, 0.9))
    with pytest.raises(HomographyError):
        solve_homography(quad)


def test_duplicate_points_rejected():
    quad = (Point2D(0.1, 0.1), Point2D(0.1, 0.1), Point2D(0.9, 0.9), Point2D(0.1, 0.9))
    with pytest.raises(HomographyError):
        solve_homography(quad)


def test_wrong_point_count_rejected():
    with pytest.raises(HomographyError):
        solve_homography(QUAD[:3])


def test_mirrored_output():
    H = solve_homography(QUAD)
    p = apply_homography(H, 0.1, 0.1)
    assert (p.x, p.y) == pytest.approx((1.0, 0.0), abs=1e-9)
    assert p.inside


def test_margin_applies_to_unclamped_point():
    H = solve_homography(QUAD)

    inside = apply_homography(H, 0.924, 0.5)  # nx = 1.03
    assert inside.inside
    assert inside.x == 0.0

    outside = apply_homography(H, 0.94, 0.5)  # nx = 1.05
    assert not outside.inside
    assert 0.0 <= outside.x <= 1.0


def test_passthrough_without_homography():
    p = apply_homography(None, 0.25, 0.6)
    assert (p.x, p.y) == pytest.approx((0.75, 0.6))
    assert p.inside

    clamped = apply_homography(None, -0.2, 1.3)
    assert (clamped.x, clamped.y) == (1.0, 1.0)
    assert clamped.inside

    unmirrored = apply_homography(None, 0.25, 0.6, mirror_x=False)
    assert unmirrored.x == pytest.approx(0.25)


def test_point_at_infinity_is_outside():
    H = np.eye(3)
    H[2] = [0.0, 0.0, 0.0]
    p = apply_homography(H, 0.3, 0.3)
    assert (p.x, p.y, p.inside) == (0.0, 0.0, False)
