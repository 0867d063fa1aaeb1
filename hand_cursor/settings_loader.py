"""
Settings loader for the hand cursor.

Loads and validates JSON settings files. Properties use camelCase and are
grouped into "cursor", "predictor", "calibration" and "gestures" sections.
Every field is optional; invalid values fall back to their default with a
warning.
"""

import json
from dataclasses import fields
from pathlib import Path
from typing import Any

from .config import (
    CalibrationSettings,
    CursorSettings,
    GestureThresholds,
    PredictorSettings,
    TrackerSettings,
)
from .logger import get_logger

logger = get_logger("SettingsLoader")


class SettingsLoadError(Exception):
    """Raised when a settings file cannot be read or is structurally invalid."""
    pass


# camelCase key -> (attribute, minimum, maximum) per section
_CURSOR_FIELDS = {
    "minCutoff": ("min_cutoff", 1e-3, 100.0),
    "beta": ("beta", 0.0, 100.0),
    "dCutoff": ("d_cutoff", 1e-3, 100.0),
}

_PREDICTOR_FIELDS = {
    "lookaheadMs": ("lookahead_ms", 0.0, 500.0),
    "velocityAlpha": ("velocity_alpha", 0.0, 1.0),
    "maxVelocity": ("max_velocity", 0.0, 100.0),
    "maxExtrapolationS": ("max_extrapolation_s", 0.0, 2.0),
    "minUpdateIntervalS": ("min_update_interval_s", 0.0, 1.0),
}

_CALIBRATION_FIELDS = {
    "insideMargin": ("inside_margin", 0.0, 0.5),
}

_GESTURE_FIELDS = {
    "matchThreshold": ("match_threshold", 0.0, 1.0),
    "extendedThreshold": ("extended", 0.5, 3.0),
    "curledThreshold": ("curled", 0.5, 3.0),
    "confirmFrames": ("confirm_frames", 1, 120),
    "releaseFrames": ("release_frames", 1, 600),
}


def load_settings(settings_path: str | Path) -> TrackerSettings:
    """
    Load and validate settings from a JSON file.

    Args:
        settings_path: Path to the JSON settings file.

    Returns:
        Validated TrackerSettings instance.

    Raises:
        SettingsLoadError: If the file cannot be read or is not a JSON object.
    """
    path = Path(settings_path)
    logger.info(f"Loading settings from: {path}")

    if not path.exists():
        raise SettingsLoadError(f"Settings file not found: {path}")

    if not path.is_file():
        raise SettingsLoadError(f"Settings path is not a file: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise SettingsLoadError(f"Invalid JSON in settings: {e}")
    except UnicodeDecodeError as e:
        raise SettingsLoadError(f"Settings file is not UTF-8: {e}")
    except OSError as e:
        raise SettingsLoadError(f"Cannot read settings file: {e}")

    return parse_settings(data)


def parse_settings(data: Any) -> TrackerSettings:
    """
    Parse and validate settings from decoded JSON.

    Args:
        data: Dictionary with camelCase sections.

    Returns:
        TrackerSettings instance.

    Raises:
        SettingsLoadError: If data is not an object.
    """
    if not isinstance(data, dict):
        raise SettingsLoadError("Settings must be a JSON object")

    cursor = CursorSettings(**_parse_section(data, "cursor", _CURSOR_FIELDS, CursorSettings()))
    predictor = PredictorSettings(
        **_parse_section(data, "predictor", _PREDICTOR_FIELDS, PredictorSettings())
    )

    calibration_values = _parse_section(
        data, "calibration", _CALIBRATION_FIELDS, CalibrationSettings()
    )
    calibration_data = data.get("calibration")
    if isinstance(calibration_data, dict) and "mirrorX" in calibration_data:
        mirror_x = calibration_data["mirrorX"]
        if isinstance(mirror_x, bool):
            calibration_values["mirror_x"] = mirror_x
        else:
            logger.warning("Invalid calibration.mirrorX, using default")
    calibration = CalibrationSettings(**calibration_values)

    gestures = GestureThresholds(
        **_parse_section(data, "gestures", _GESTURE_FIELDS, GestureThresholds())
    )
    if gestures.curled < gestures.extended:
        logger.warning(
            f"curledThreshold {gestures.curled} below extendedThreshold {gestures.extended}, "
            f"ratios between them match neither"
        )

    settings = TrackerSettings(
        cursor=cursor,
        predictor=predictor,
        calibration=calibration,
        gestures=gestures
    )

    logger.debug(f"  Cursor: {settings.cursor}")
    logger.debug(f"  Predictor: {settings.predictor}")
    logger.debug(f"  Calibration: {settings.calibration}")
    logger.debug(f"  Gestures: {settings.gestures}")

    return settings


def _parse_section(
    data: dict[str, Any],
    section: str,
    field_table: dict[str, tuple[str, float, float]],
    defaults: Any
) -> dict[str, Any]:
    """Read one section, keeping defaults for missing or invalid fields."""
    values = {f.name: getattr(defaults, f.name) for f in fields(defaults)}

    section_data = data.get(section)
    if section_data is None:
        return values
    if not isinstance(section_data, dict):
        logger.warning(f"Settings section '{section}' is not an object, using defaults")
        return values

    for key, raw in section_data.items():
        if key not in field_table:
            if not (section == "calibration" and key == "mirrorX"):
                logger.warning(f"Unknown setting '{section}.{key}', ignoring")
            continue

        attr, minimum, maximum = field_table[key]
        integral = isinstance(values[attr], int) and not isinstance(values[attr], bool)

        if isinstance(raw, bool) or not isinstance(raw, (int, float)):
            logger.warning(f"Invalid {section}.{key}: {raw!r}, using default {values[attr]}")
            continue
        if integral and not float(raw).is_integer():
            logger.warning(f"Invalid {section}.{key}: {raw!r} is not an integer, using default")
            continue
        if not (minimum <= raw <= maximum):
            logger.warning(
                f"{section}.{key}={raw} outside [{minimum}, {maximum}], using default {values[attr]}"
            )
            continue

        values[attr] = int(raw) if integral else float(raw)

    return values
