import json

import pytest

from hand_cursor.calibration_store import JsonFileStore, MemoryStore
from hand_cursor.config import CALIBRATION_STORAGE_KEY, MAX_LAYERS, TrackerSettings
from hand_cursor.cursor_state import CalibrationPhase, CursorState
from hand_cursor.session import HandTrackingSession

CORNERS = [(0.1, 0.1), (0.9, 0.1), (0.9, 0.9), (0.1, 0.9)]
FRAME_MS = 33.0


def calibrated_session():
    session = HandTrackingSession()
    session.start_calibration()
    for x, y in CORNERS:
        session.submit_calibration_point(x, y)
    assert session.is_calibrated()
    return session


def test_initial_state():
    state = HandTrackingSession().get_cursor_state()
    assert state == CursorState()
    assert state.to_dict() == {
        "x": 0.5, "y": 0.5, "active": False, "layerIndex": 0, "gesture": None, "moving": False,
    }


def test_uncalibrated_passthrough(make_hand):
    session = HandTrackingSession()
    state = session.on_detection(make_hand(tip=(0.3, 0.4)), 1000.0)

    assert state.active
    assert (state.x, state.y) == pytest.approx((0.7, 0.4))

    ticked = session.tick(1000.0)
    assert (ticked.x, ticked.y) == pytest.approx((0.7, 0.4))


def test_calibrated_corner_maps_to_canvas_corner(make_hand):
    session = calibrated_session()
    state = session.on_detection(make_hand(tip=(0.1, 0.1)), 1000.0)
    assert state.active
    assert (state.x, state.y) == pytest.approx((1.0, 0.0), abs=1e-9)


def test_inside_margin(make_hand):
    session = calibrated_session()
    assert session.on_detection(make_hand(tip=(0.924, 0.5)), 1000.0).active

    session = calibrated_session()
    state = session.on_detection(make_hand(tip=(0.94, 0.5)), 1000.0)
    assert not state.active
    assert 0.0 <= state.x <= 1.0


def test_tick_extrapolates_between_detections(make_hand):
    session = HandTrackingSession()
    session.on_detection(make_hand(tip=(0.5, 0.5)), 1000.0)
    moved = session.on_detection(make_hand(tip=(0.45, 0.5)), 1000.0 + FRAME_MS)

    ticked = session.tick(1000.0 + FRAME_MS + 16.0)
    # Tip moves left in camera space, so right on the mirrored canvas
    assert ticked.x > moved.x
    assert 0.0 <= ticked.x <= 1.0


def test_tick_without_hand_keeps_last_position(make_hand):
    session = HandTrackingSession()
    session.on_detection(make_hand(tip=(0.3, 0.4)), 1000.0)
    lost = session.on_detection(None, 1033.0)

    assert not lost.active
    assert (lost.x, lost.y) == pytest.approx((0.7, 0.4))
    assert session.tick(1500.0) == lost


def test_tracking_loss_resets_motion_state(make_hand):
    session = HandTrackingSession()
    for i in range(5):
        session.on_detection(make_hand(tip=(0.3 + 0.02 * i, 0.4)), 1000.0 + i * FRAME_MS)

    session.on_detection(None, 1200.0)
    assert session.last_landmarks is None

    # Reacquired far away: no filter lag, no velocity from the jump
    state = session.on_detection(make_hand(tip=(0.8, 0.8)), 1300.0)
    assert (state.x, state.y) == pytest.approx((0.2, 0.8))
    assert session.tick(1300.0 + 100.0) == state


def test_gesture_confirmed_and_dropped_on_loss(make_hand):
    session = HandTrackingSession()
    hand = make_hand("draw")

    for i in range(3):
        assert session.on_detection(hand, 1000.0 + i * FRAME_MS).gesture is None
    assert session.on_detection(hand, 1100.0).gesture == "draw"
    assert session.get_current_gesture() == "draw"

    state = session.on_detection(None, 1133.0)
    assert state.gesture is None
    assert not state.active


def test_gesture_survives_brief_false_negative(make_hand):
    session = HandTrackingSession()
    for i in range(4):
        session.on_detection(make_hand("pointing"), 1000.0 + i * FRAME_MS)
    assert session.on_detection(make_hand("fist"), 1200.0).gesture == "pointing"


def test_empty_landmark_list_is_tracking_loss(make_hand):
    session = HandTrackingSession()
    session.on_detection(make_hand(), 1000.0)
    assert not session.on_detection([], 1033.0).active


def test_layer_clamping():
    session = HandTrackingSession()
    assert session.set_layer(3) == 3
    assert session.get_cursor_state().layer_index == 3
    assert session.set_layer(99) == MAX_LAYERS - 1
    assert session.set_layer(-4) == 0
    assert session.layer_index == 0


def test_moving_flag(make_hand):
    session = HandTrackingSession()
    for i in range(10):
        state = session.on_detection(make_hand(tip=(0.2 + 0.05 * i, 0.5)), 1000.0 + i * FRAME_MS)
    assert state.moving

    for i in range(40):
        state = session.on_detection(make_hand(tip=(0.65, 0.5)), 2000.0 + i * FRAME_MS)
    assert not state.moving
    assert state.active


def test_not_moving_when_inactive(make_hand):
    session = HandTrackingSession()
    for i in range(5):
        session.on_detection(make_hand(tip=(0.2 + 0.1 * i, 0.5)), 1000.0 + i * FRAME_MS)
    assert not session.on_detection(None, 1200.0).moving


def test_restores_calibration_on_start():
    store = MemoryStore({
        CALIBRATION_STORAGE_KEY: json.dumps([{"x": x, "y": y} for x, y in CORNERS])
    })
    session = HandTrackingSession(store=store)
    assert session.is_calibrated()
    assert session.calibrator.phase == CalibrationPhase.DONE


def test_corrupt_storage_file_starts_uncalibrated(tmp_path, make_hand):
    path = tmp_path / "storage.json"
    path.write_bytes(b'{"handCursor_calibration_v1": "\xff\xfe"}')

    session = HandTrackingSession(store=JsonFileStore(path))
    assert not session.is_calibrated()
    state = session.on_detection(make_hand(tip=(0.3, 0.4)), 1000.0)
    assert (state.x, state.y) == pytest.approx((0.7, 0.4))


def test_calibration_notifications_and_clear():
    seen = []
    session = HandTrackingSession()
    session.on_calibration_change(seen.append)

    session.start_calibration()
    for x, y in CORNERS:
        session.submit_calibration_point(x, y)
    session.clear_calibration()

    assert seen[-2].phase == CalibrationPhase.DONE
    assert seen[-1].phase == CalibrationPhase.IDLE
    assert not session.is_calibrated()


def test_default_clock_is_used_without_timestamps(make_hand):
    now = [1000.0]
    session = HandTrackingSession(clock=lambda: now[0])

    session.on_detection(make_hand(tip=(0.5, 0.5)))
    now[0] += FRAME_MS
    session.on_detection(make_hand(tip=(0.4, 0.5)))
    now[0] += 10.0
    state = session.tick()

    assert state.active
    assert state.x > 0.5


def test_custom_settings(make_hand):
    settings = TrackerSettings()
    settings.calibration.mirror_x = False
    session = HandTrackingSession(settings=settings)
    state = session.on_detection(make_hand(tip=(0.3, 0.4)), 1000.0)
    assert state.x == pytest.approx(0.3)
