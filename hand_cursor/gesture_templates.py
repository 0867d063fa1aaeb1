"""
Gesture template loading.

Templates come from a JSON object mapping class names to lists of
recorded hand poses. Two sample shapes are accepted:

    "draw":     [ [{x, y, z} x 21], ... ]
    "pointing": [ {"type": ..., "handedness": ..., "landmarks": [{x, y, z} x 21]}, ... ]

Each sample is decoded once into a TemplateSample, normalized, and kept
as a row of a per-class (n, 63) matrix.
"""

import json
from dataclasses import dataclass
from enum import Enum, auto
from pathlib import Path
from typing import Any, Optional

import numpy as np

from .config import FEATURE_LENGTH, NUM_LANDMARKS
from .landmarks import Landmark, normalize_landmarks
from .logger import get_logger

logger = get_logger("GestureTemplates")


class SampleShape(Enum):
    """Source shape of a template sample."""
    FLAT = auto()  # Bare list of points
    WRAPPED = auto()  # Object with a "landmarks" list


@dataclass(frozen=True)
class TemplateSample:
    """A decoded template sample in canonical form."""
    shape: SampleShape
    landmarks: tuple[Landmark, ...]


def decode_sample(raw: Any) -> Optional[TemplateSample]:
    """
    Decode one raw template sample.

    Args:
        raw: A list of point mappings, or a mapping with a "landmarks" list.

    Returns:
        TemplateSample, or None if the entry is malformed.
    """
    if isinstance(raw, list):
        shape = SampleShape.FLAT
        points = raw
    elif isinstance(raw, dict) and isinstance(raw.get("landmarks"), list):
        shape = SampleShape.WRAPPED
        points = raw["landmarks"]
    else:
        return None

    if len(points) < NUM_LANDMARKS:
        return None

    try:
        landmarks = tuple(Landmark.from_dict(p) for p in points[:NUM_LANDMARKS])
    except (KeyError, TypeError, ValueError, AttributeError):
        return None

    return TemplateSample(shape=shape, landmarks=landmarks)


class GestureTemplateSet:
    """
    Read-only set of normalized gesture templates grouped by class.

    Each class holds an (n, 63) matrix of unit-length rows so that cosine
    similarity against a query vector is a single matrix product.
    """

    def __init__(self, templates: Optional[dict[str, np.ndarray]] = None):
        self._templates: dict[str, np.ndarray] = {}
        for name, vectors in (templates or {}).items():
            matrix = np.asarray(vectors, dtype=np.float64).reshape(-1, FEATURE_LENGTH)
            norms = np.linalg.norm(matrix, axis=1)
            keep = norms > 1e-9
            self._templates[name] = matrix[keep] / norms[keep, None]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GestureTemplateSet":
        """
        Build a template set from decoded JSON.

        Malformed or degenerate samples are skipped individually.

        Args:
            data: Mapping of class name to list of raw samples.

        Returns:
            GestureTemplateSet (possibly empty).
        """
        templates: dict[str, np.ndarray] = {}

        for name, samples in data.items():
            if not isinstance(samples, list):
                logger.warning(f"Template class '{name}' is not a list, skipping")
                continue

            vectors = []
            skipped = 0
            for raw in samples:
                sample = decode_sample(raw)
                vector = normalize_landmarks(sample.landmarks) if sample else None
                if vector is None:
                    skipped += 1
                    continue
                vectors.append(vector)

            if skipped:
                logger.debug(f"Template class '{name}': skipped {skipped} malformed samples")
            logger.info(f"Template class '{name}': {len(vectors)} templates")
            templates[str(name)] = np.array(vectors, dtype=np.float64).reshape(-1, FEATURE_LENGTH)

        template_set = cls(templates)
        logger.info(
            f"Templates ready - {template_set.sample_count} samples across "
            f"{len(template_set.class_names)} classes"
        )
        return template_set

    @property
    def class_names(self) -> list[str]:
        return list(self._templates.keys())

    @property
    def sample_count(self) -> int:
        return sum(matrix.shape[0] for matrix in self._templates.values())

    @property
    def is_empty(self) -> bool:
        """True when no usable template exists in any class."""
        return self.sample_count == 0

    def best_scores(self, vector: np.ndarray) -> dict[str, float]:
        """
        Compute the best cosine similarity per class.

        Args:
            vector: Normalized 63-float query vector.

        Returns:
            Mapping of class name to max similarity (0.0 for empty classes
            or a zero-length query).
        """
        norm = float(np.linalg.norm(vector))
        scores: dict[str, float] = {}
        for name, matrix in self._templates.items():
            if norm < 1e-9 or matrix.shape[0] == 0:
                scores[name] = 0.0
                continue
            similarities = matrix @ (vector / norm)
            scores[name] = max(0.0, float(np.max(similarities)))
        return scores


def load_templates(path: str | Path) -> GestureTemplateSet:
    """
    Load gesture templates from a JSON file.

    A missing or unreadable file is not an error: the returned set is
    empty and classification falls back to finger geometry.

    Args:
        path: Path to the templates JSON file.

    Returns:
        GestureTemplateSet (possibly empty).
    """
    path = Path(path)

    if not path.is_file():
        logger.warning(f"Gesture templates not found at {path} - geometry fallback only")
        return GestureTemplateSet()

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except ValueError as e:
        # JSONDecodeError or UnicodeDecodeError
        logger.warning(f"Unreadable gesture templates: {e} - geometry fallback only")
        return GestureTemplateSet()
    except OSError as e:
        logger.warning(f"Cannot read gesture templates: {e} - geometry fallback only")
        return GestureTemplateSet()

    if not isinstance(data, dict):
        logger.warning("Gesture templates must be a JSON object - geometry fallback only")
        return GestureTemplateSet()

    logger.info(f"Loading gesture templates from: {path}")
    return GestureTemplateSet.from_dict(data)
