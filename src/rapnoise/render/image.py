from __future__ import annotations

from pathlib import Path
from typing import Sequence, Tuple

import matplotlib.pyplot as plt
import numpy as np

from rapnoise.core.errors import DimensionMismatchError
from rapnoise.orchestrator.generator import NoiseGenerator
from rapnoise.utils.logging import get_logger

logger = get_logger(__name__)

WATER_LEVEL = 160
SNOW_LEVEL = 190


def terrain_colors(values: np.ndarray) -> np.ndarray:
    """
    Map noise in [0, 1] to RGB terrain: blue water, green land, white peaks.

    Returns a uint8 array with a trailing channel axis.
    """
    c = np.rint(np.asarray(values, dtype=np.float64) * 255).astype(np.int64)
    zero = np.zeros_like(c)
    red = np.where(c > SNOW_LEVEL, c, zero)
    green = np.where(c >= WATER_LEVEL, c, zero)
    blue = np.where(c < WATER_LEVEL, c, np.where(c > SNOW_LEVEL, c, zero))
    return np.stack([red, green, blue], axis=-1).clip(0, 255).astype(np.uint8)


def render_tiles(
    generator: NoiseGenerator,
    tiles: Tuple[int, int],
    tile_shape: Tuple[int, int],
    origin: Sequence[int] = (0, 0),
) -> np.ndarray:
    """
    Fill ``tiles`` adjacent unit cells and stitch them into one image.

    Buffers are indexed [x, y]; the mosaic is indexed [row, column] so
    tile (X, Y) lands at rows Y*h.. and columns X*w.. .
    """
    if generator.dimensions != 2:
        raise DimensionMismatchError(f"rendering needs a 2-D generator, got {generator.dimensions} dimensions")
    tiles_x, tiles_y = tiles
    w, h = tile_shape
    mosaic = np.empty((tiles_y * h, tiles_x * w), dtype=np.float64)
    for ty in range(tiles_y):
        for tx in range(tiles_x):
            location = (origin[0] + tx, origin[1] + ty)
            logger.debug("Rendering tile location=%s shape=%s", location, tile_shape)
            tile = generator.fill(np.empty((w, h), dtype=np.float64), location)
            mosaic[ty * h:(ty + 1) * h, tx * w:(tx + 1) * w] = tile.T
    logger.info("Rendered %dx%d tiles origin=%s tile_shape=%s", tiles_x, tiles_y, tuple(origin), tile_shape)
    return mosaic


def save_png(path: Path, values: np.ndarray, terrain: bool = True) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    if terrain:
        plt.imsave(path, terrain_colors(values))
    else:
        plt.imsave(path, values, cmap="gray", vmin=0.0, vmax=1.0)
    logger.info("Saved %s image path=%s", "terrain" if terrain else "grayscale", path)
    return path
