import pytest

from hand_cursor import model_manager
from hand_cursor.model_manager import (
    HAND_LANDMARKER_FILENAME,
    ModelDownloadError,
    ensure_hand_landmarker_model,
)


def test_cached_model_is_reused(tmp_path, monkeypatch):
    cached = tmp_path / HAND_LANDMARKER_FILENAME
    cached.write_bytes(b"model")

    def fail(url, target):
        raise AssertionError("should not fetch")

    monkeypatch.setattr(model_manager, "_fetch", fail)
    assert ensure_hand_landmarker_model(tmp_path) == str(cached)


def test_fetch_retries_then_fails(tmp_path, monkeypatch):
    attempts = []

    def fail(url, target):
        attempts.append(url)
        raise OSError("offline")

    monkeypatch.setattr(model_manager, "_fetch", fail)
    monkeypatch.setattr(model_manager.time, "sleep", lambda s: None)

    with pytest.raises(ModelDownloadError):
        ensure_hand_landmarker_model(tmp_path / "models")
    assert len(attempts) == model_manager.FETCH_ATTEMPTS


def test_empty_cached_file_is_refetched(tmp_path, monkeypatch):
    (tmp_path / HAND_LANDMARKER_FILENAME).write_bytes(b"")

    def fetch(url, target):
        target.write_bytes(b"fresh")

    monkeypatch.setattr(model_manager, "_fetch", fetch)
    path = ensure_hand_landmarker_model(tmp_path)
    assert (tmp_path / HAND_LANDMARKER_FILENAME).read_bytes() == b"fresh"
    assert path.endswith(HAND_LANDMARKER_FILENAME)
