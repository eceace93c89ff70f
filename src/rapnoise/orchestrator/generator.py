from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple, Union

import numpy as np

from rapnoise.core import constants
from rapnoise.core.bits.base import get_bit_source
from rapnoise.core.bits import hashchain  # noqa: F401 (registers bit sources)
from rapnoise.core.blend.base import Blend, BlendFunc, resolve_blend
from rapnoise.core.blend import functions  # noqa: F401 (registers blends)
from rapnoise.core.cache.region import RegionCache
from rapnoise.core.errors import DimensionMismatchError, InvalidArgumentError, ValueOutOfRangeError
from rapnoise.core.interpolate import (
    RegionLevel,
    blend_octaves,
    fill_positions,
    octave_weights,
    point_positions,
    region_grid,
)
from rapnoise.core.lattice.cell import LatticeCell, Location, Seed, build_cell, cell_seed_bytes, level_shapes
from rapnoise.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class NoiseConfig:
    """Everything that determines a generator's output."""

    seed: Seed = constants.DEFAULT_SEED
    persistence: float = constants.DEFAULT_PERSISTENCE
    octaves: int = constants.DEFAULT_OCTAVES
    size: Tuple[int, ...] = constants.DEFAULT_SIZE
    smooth: bool = constants.DEFAULT_SMOOTH
    blend: Union[str, BlendFunc] = constants.DEFAULT_BLEND
    bit_source: str = constants.DEFAULT_BIT_SOURCE
    cache_depth: Optional[int] = None


class NoiseGenerator:
    """
    Random-access multi-octave value noise over an unbounded integer lattice.

    ``fill`` samples a whole unit cell into a buffer and ``evaluate``
    samples one point; both run through the same cache, cell builder and
    interpolation functions, so a point always equals the matching buffer
    entry. ``smooth`` is recorded in the configuration only; the blend
    function alone decides how values are interpolated.
    """

    def __init__(
        self,
        seed: Seed,
        persistence: float,
        octaves: int,
        size: Sequence[int],
        smooth: bool,
        blend: Union[str, Blend, BlendFunc],
        bit_source: str = constants.DEFAULT_BIT_SOURCE,
        cache_depth: Optional[int] = None,
    ):
        if seed is None:
            raise InvalidArgumentError("A seed is required.")
        cell_seed_bytes(seed, ())
        if persistence is None:
            raise InvalidArgumentError("persistence is required.")
        if not 0.0 <= persistence <= 1.0:
            raise ValueOutOfRangeError(f"persistence must be within [0, 1], got {persistence}")
        if octaves is None:
            raise InvalidArgumentError("octaves is required.")
        if octaves <= 0:
            raise ValueOutOfRangeError(f"octaves must be >= 1, got {octaves}")
        if size is None:
            raise InvalidArgumentError("size is required.")
        size = tuple(int(s) for s in size)
        if not size:
            raise ValueOutOfRangeError("size must have at least one dimension.")
        if any(s <= 0 for s in size):
            raise ValueOutOfRangeError(f"every size must be > 0, got {size}")
        if cache_depth is not None and cache_depth < 0:
            raise ValueOutOfRangeError(f"cache_depth must be >= 0, got {cache_depth}")

        self.seed = seed
        self.persistence = float(persistence)
        self.octaves = int(octaves)
        self.size = size
        self.smooth = bool(smooth)
        self.blend = resolve_blend(blend)
        self.bit_source_name = bit_source
        self._bit_source = get_bit_source(bit_source)
        # A throwaway source rejects unusable hash widths before any cell is built
        self._bit_source(b"")

        self.dimensions = len(size)
        self.level_shapes = level_shapes(size, self.octaves)
        self.weights, self.scale = octave_weights(self.persistence, self.octaves)

        if cache_depth is None:
            cache_depth = constants.CACHE_DEPTH_FACTOR << self.dimensions
        self.cache = RegionCache(self._build_cell, max_depth=cache_depth)

        logger.debug(
            "Noise generator dims=%d octaves=%d persistence=%s size=%s blend=%s bit_source=%s cache_depth=%d",
            self.dimensions,
            self.octaves,
            self.persistence,
            self.size,
            self.blend.name,
            bit_source,
            cache_depth,
        )

    @classmethod
    def from_config(cls, config: NoiseConfig) -> "NoiseGenerator":
        return cls(
            seed=config.seed,
            persistence=config.persistence,
            octaves=config.octaves,
            size=config.size,
            smooth=config.smooth,
            blend=config.blend,
            bit_source=config.bit_source,
            cache_depth=config.cache_depth,
        )

    @property
    def config(self) -> NoiseConfig:
        return NoiseConfig(
            seed=self.seed,
            persistence=self.persistence,
            octaves=self.octaves,
            size=self.size,
            smooth=self.smooth,
            blend=self.blend.name,
            bit_source=self.bit_source_name,
            cache_depth=self.cache.max_depth,
        )

    def _build_cell(self, location: Location) -> LatticeCell:
        return build_cell(self.seed, location, self.level_shapes, self._bit_source)

    def _check_length(self, values, what: str) -> Tuple:
        if values is None:
            raise InvalidArgumentError(f"{what} is required.")
        values = tuple(values)
        if len(values) != self.dimensions:
            raise DimensionMismatchError(
                f"{what} has {len(values)} components, generator has {self.dimensions} dimensions"
            )
        return values

    def _check_location(self, values) -> Location:
        location = []
        for c in self._check_length(values, "location"):
            try:
                whole = int(c)
            except (TypeError, ValueError, OverflowError) as exc:
                raise InvalidArgumentError(f"location components must be integers, got {c!r}") from exc
            if whole != c:
                raise InvalidArgumentError(f"location components must be integers, got {c!r}")
            location.append(whole)
        return tuple(location)

    def _check_offset(self, values, what: str) -> Tuple[float, ...]:
        offset = []
        for o in self._check_length(values, what):
            try:
                o = float(o)
            except (TypeError, ValueError) as exc:
                raise InvalidArgumentError(f"{what} components must be numbers, got {o!r}") from exc
            if not math.isfinite(o):
                raise ValueOutOfRangeError(f"{what} components must be finite, got {o}")
            offset.append(o)
        return tuple(offset)

    def region(self, location: Sequence[int]):
        """The 2**N cells anchored at ``location``, nested one list level per axis."""

        def _nest(prefix: Tuple[int, ...]):
            if len(prefix) == self.dimensions:
                return self.cache.get_or_build(tuple(c + o for c, o in zip(location, prefix)))
            return [_nest(prefix + (0,)), _nest(prefix + (1,))]

        return _nest(())

    def fill(self, buffer: np.ndarray, location: Sequence[int]) -> np.ndarray:
        """
        Fill ``buffer`` with noise spanning the unit cell at ``location``.

        Index ``i`` on an axis of length ``n`` samples offset ``i / n`` inside
        the cell. The buffer is written in place and returned.
        """
        if buffer is None:
            raise InvalidArgumentError("buffer is required.")
        if not isinstance(buffer, np.ndarray) or not np.issubdtype(buffer.dtype, np.floating):
            raise InvalidArgumentError("buffer must be a floating-point numpy array.")
        if buffer.ndim != self.dimensions:
            raise DimensionMismatchError(
                f"buffer has rank {buffer.ndim}, generator has {self.dimensions} dimensions"
            )
        location = self._check_location(location)

        region = self.region(location)
        grids = [region_grid(region, level) for level in range(self.octaves)]
        positions = [fill_positions(shape, buffer.shape) for shape in self.level_shapes]
        buffer[...] = blend_octaves(grids, positions, self.weights, self.scale, self.blend)
        return buffer

    def evaluate(self, coordinate: Sequence, offset: Optional[Sequence[float]] = None) -> float:
        """
        Sample one point.

        ``evaluate(coordinate)`` takes a continuous coordinate;
        ``evaluate(location, offset)`` takes an integer location plus an
        offset from it. Offsets may lie outside [0, 1) or be negative; the
        floor of each is folded into the location.
        """
        if offset is None:
            offset = self._check_offset(coordinate, "coordinate")
            base = (0,) * self.dimensions
        else:
            base = self._check_location(coordinate)
            offset = self._check_offset(offset, "offset")

        location, fraction = [], []
        for b, o in zip(base, offset):
            whole = math.floor(o)
            part = o - whole
            if part >= 1.0:
                # o was a tiny negative number; its fraction rounded up to 1.0
                whole += 1
                part = 0.0
            location.append(b + whole)
            fraction.append(part)

        # Corners are read straight from the cells; no joined grid for one point
        region = self.region(tuple(location))
        grids = [RegionLevel(region, level, shape) for level, shape in enumerate(self.level_shapes)]
        positions = [point_positions(shape, fraction) for shape in self.level_shapes]
        return float(blend_octaves(grids, positions, self.weights, self.scale, self.blend))
