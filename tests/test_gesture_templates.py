import json

import numpy as np
import pytest

from hand_cursor.gesture_templates import (
    GestureTemplateSet,
    SampleShape,
    decode_sample,
    load_templates,
)
from hand_cursor.landmarks import normalize_landmarks


def test_decode_flat_and_wrapped(make_hand, hand_dicts):
    points = hand_dicts(make_hand("draw"))

    flat = decode_sample(points)
    wrapped = decode_sample({"type": "draw", "handedness": "Right", "landmarks": points})

    assert flat.shape == SampleShape.FLAT
    assert wrapped.shape == SampleShape.WRAPPED
    assert flat.landmarks == wrapped.landmarks
    assert len(flat.landmarks) == 21


def test_decode_missing_z_defaults_to_zero(make_hand):
    points = [{"x": lm.x, "y": lm.y} for lm in make_hand()]
    sample = decode_sample(points)
    assert all(lm.z == 0.0 for lm in sample.landmarks)


@pytest.mark.parametrize("raw", [
    None,
    "draw",
    [{"x": 0.1, "y": 0.2}] * 5,
    {"landmarks": "nope"},
    [{"x": "a", "y": 0.2}] * 21,
    [{"y": 0.2}] * 21,
])
def test_decode_malformed(raw):
    assert decode_sample(raw) is None


def test_from_dict_skips_bad_samples(make_hand, hand_dicts):
    good = hand_dicts(make_hand("draw"))
    degenerate = [{"x": 0.5, "y": 0.5, "z": 0.0}] * 21
    data = {
        "draw": [good, {"landmarks": good}, [{"x": 1}], degenerate],
        "broken": "not a list",
    }

    templates = GestureTemplateSet.from_dict(data)
    assert templates.class_names == ["draw"]
    assert templates.sample_count == 2
    assert not templates.is_empty


def test_empty_set():
    templates = GestureTemplateSet()
    assert templates.is_empty
    assert templates.best_scores(np.ones(63)) == {}


def test_best_scores(make_hand, hand_dicts):
    templates = GestureTemplateSet.from_dict({
        "draw": [hand_dicts(make_hand("draw"))],
        "erase": [hand_dicts(make_hand("erase"))],
    })
    query = normalize_landmarks(make_hand("draw", offset=(0.1, -0.05), scale=1.4))

    scores = templates.best_scores(query)
    assert scores["draw"] == pytest.approx(1.0)
    assert scores["erase"] < scores["draw"]


def test_zero_query_scores_zero(make_hand, hand_dicts):
    templates = GestureTemplateSet.from_dict({"draw": [hand_dicts(make_hand("draw"))]})
    assert templates.best_scores(np.zeros(63)) == {"draw": 0.0}


def test_load_templates(tmp_path, make_hand, hand_dicts):
    path = tmp_path / "gestures.json"
    path.write_text(json.dumps({"pointing": [hand_dicts(make_hand("pointing"))]}), encoding="utf-8")

    templates = load_templates(path)
    assert templates.class_names == ["pointing"]
    assert templates.sample_count == 1


def test_load_templates_missing_file(tmp_path):
    assert load_templates(tmp_path / "missing.json").is_empty


@pytest.mark.parametrize("content", ["{ broken", "[1, 2]"])
def test_load_templates_invalid_file(tmp_path, content):
    path = tmp_path / "gestures.json"
    path.write_text(content, encoding="utf-8")
    assert load_templates(path).is_empty


def test_load_templates_non_utf8_file(tmp_path):
    path = tmp_path / "gestures.json"
    path.write_bytes(b"\xff\xfe{}")
    assert load_templates(path).is_empty
