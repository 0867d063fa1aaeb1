"""
Hand landmarker model cache.

The MediaPipe Tasks API needs a .task model file on disk. It is fetched
once into the per-user cache directory and reused afterwards.
"""

import os
import sys
import time
import urllib.request
from pathlib import Path
from typing import Optional

from .config import APP_DIR_NAME
from .logger import get_logger

logger = get_logger("ModelManager")

HAND_LANDMARKER_URL = (
    "https://storage.googleapis.com/mediapipe-models/"
    "hand_landmarker/hand_landmarker/float16/latest/hand_landmarker.task"
)
HAND_LANDMARKER_FILENAME = "hand_landmarker.task"

FETCH_TIMEOUT_S = 120
FETCH_ATTEMPTS = 3
FETCH_BACKOFF_S = 2.0
READ_BLOCK_BYTES = 64 * 1024


class ModelDownloadError(RuntimeError):
    """Raised when the model file cannot be fetched."""
    pass


def model_cache_dir() -> Path:
    """%LOCALAPPDATA%/HandCursor/mediapipe_models, or the XDG cache on other platforms."""
    if sys.platform == "win32":
        root = os.environ.get("LOCALAPPDATA") or Path.home()
    else:
        root = os.environ.get("XDG_CACHE_HOME") or Path.home() / ".cache"
    return Path(root) / APP_DIR_NAME / "mediapipe_models"


def ensure_hand_landmarker_model(cache_dir: Optional[Path] = None) -> str:
    """
    Return the path of the hand landmarker model, fetching it when missing.

    Raises:
        ModelDownloadError: If every fetch attempt failed.
    """
    directory = Path(cache_dir) if cache_dir else model_cache_dir()
    target = directory / HAND_LANDMARKER_FILENAME
    if target.is_file() and target.stat().st_size > 0:
        return str(target)

    directory.mkdir(parents=True, exist_ok=True)
    logger.info(f"Hand landmarker model not cached, fetching {HAND_LANDMARKER_URL}")

    last_error: Optional[Exception] = None
    for attempt in range(1, FETCH_ATTEMPTS + 1):
        try:
            _fetch(HAND_LANDMARKER_URL, target)
            return str(target)
        except OSError as e:
            last_error = e
            logger.warning(f"Model fetch {attempt}/{FETCH_ATTEMPTS} failed: {e}")
            if attempt < FETCH_ATTEMPTS:
                time.sleep(FETCH_BACKOFF_S * attempt)

    raise ModelDownloadError(
        f"Could not fetch the hand landmarker model after {FETCH_ATTEMPTS} attempts"
    ) from last_error


def _fetch(url: str, target: Path) -> None:
    partial = target.with_name(target.name + ".part")
    request = urllib.request.Request(url, headers={"User-Agent": f"{APP_DIR_NAME}/1.0"})

    try:
        with urllib.request.urlopen(request, timeout=FETCH_TIMEOUT_S) as response, \
                open(partial, "wb") as out:
            received = 0
            while True:
                block = response.read(READ_BLOCK_BYTES)
                if not block:
                    break
                out.write(block)
                received += len(block)
        # Move into place only once complete
        partial.replace(target)
    finally:
        if partial.exists():
            partial.unlink()

    logger.info(f"Model saved to {target} ({received / 1_048_576:.1f} MB)")
