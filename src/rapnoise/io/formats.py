from __future__ import annotations

import hashlib
from pathlib import Path

import numpy as np

from rapnoise.utils.logging import get_logger

logger = get_logger(__name__)


def field_fingerprint(field: np.ndarray) -> str:
    """SHA-256 fingerprint over the field bytes (row-major)."""
    return hashlib.sha256(np.ascontiguousarray(field, dtype=np.float64).tobytes(order="C")).hexdigest()


def save_field(path: Path, field: np.ndarray) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    np.save(path, field, allow_pickle=False)
    logger.info("Saved field shape=%s path=%s", field.shape, path)
    return path
