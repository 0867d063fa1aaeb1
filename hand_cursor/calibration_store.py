"""
Key-value persistence for the canvas calibration.

The calibrator needs a single named slot in a synchronous key-value
store. MemoryStore keeps it in-process; JsonFileStore keeps it in a JSON
object file in the per-user application directory.
"""

import json
from pathlib import Path
from typing import Optional, Protocol

from .config import STORAGE_FILENAME
from .logger import get_app_directory, get_logger

logger = get_logger("CalibrationStore")


class KeyValueStore(Protocol):
    """Synchronous string key-value store."""

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def remove(self, key: str) -> None:
        ...


class MemoryStore:
    """In-process key-value store."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._data


def get_default_storage_path() -> Path:
    """Get the default storage file path in the application directory."""
    return get_app_directory() / STORAGE_FILENAME


class JsonFileStore:
    """
    Key-value store backed by a JSON object file.

    Reads treat a missing, unreadable or corrupt file as empty. Writes
    raise OSError on failure; callers decide whether that matters.
    """

    def __init__(self, path: Optional[str | Path] = None):
        """
        Initialize file store.

        Args:
            path: JSON file path. Defaults to the application directory.
        """
        self.path = Path(path) if path else get_default_storage_path()

    def _read_all(self) -> dict[str, str]:
        """Read the whole file, returning {} on any failure."""
        if not self.path.exists():
            return {}

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except ValueError as e:
            # JSONDecodeError or UnicodeDecodeError
            logger.warning(f"Unreadable storage file {self.path}: {e}")
            return {}
        except OSError as e:
            logger.warning(f"Cannot read storage file {self.path}: {e}")
            return {}

        if not isinstance(data, dict):
            logger.warning(f"Storage file {self.path} is not a JSON object, ignoring")
            return {}

        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _write_all(self, data: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        tmp_path.replace(self.path)

    def get(self, key: str) -> Optional[str]:
        return self._read_all().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        self._write_all(data)

    def remove(self, key: str) -> None:
        data = self._read_all()
        if key in data:
            del data[key]
            self._write_all(data)
