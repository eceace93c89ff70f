from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Sequence, Tuple, Union

import numpy as np

from rapnoise.core.bits.base import BitSourceFactory
from rapnoise.core.constants import INT64_MAX, INT64_MIN
from rapnoise.core.errors import InvalidArgumentError, ValueOutOfRangeError

Location = Tuple[int, ...]
Seed = Union[int, bytes]


@dataclass(frozen=True)
class LatticeCell:
    """Octave grids for one lattice location; ``levels[k]`` is octave k."""

    location: Location
    levels: Tuple[np.ndarray, ...]

    def fingerprint(self) -> str:
        """SHA-256 over every level grid (row-major, in octave order)."""
        h = hashlib.sha256()
        for grid in self.levels:
            h.update(grid.tobytes(order="C"))
        return h.hexdigest()


def level_shapes(size: Sequence[int], octaves: int) -> Tuple[Tuple[int, ...], ...]:
    """Grid shape per octave: the base size doubled k times along every axis."""
    return tuple(tuple(s << k for s in size) for k in range(octaves))


def _int64_bytes(value: int, what: str) -> bytes:
    if not INT64_MIN <= value <= INT64_MAX:
        raise ValueOutOfRangeError(f"{what} {value} does not fit in a signed 64-bit integer")
    return int(value).to_bytes(8, byteorder="little", signed=True)


def cell_seed_bytes(seed: Seed, location: Sequence[int]) -> bytes:
    """Global seed followed by each location component, 8 bytes little-endian each."""
    if seed is None:
        raise InvalidArgumentError("A seed is required.")
    if isinstance(seed, (bytes, bytearray)):
        head = bytes(seed)
    elif isinstance(seed, (int, np.integer)):
        head = _int64_bytes(int(seed), "seed")
    else:
        raise InvalidArgumentError(f"seed must be an int or bytes, got {type(seed).__name__}")
    return head + b"".join(_int64_bytes(int(c), "location component") for c in location)


def build_cell(
    seed: Seed,
    location: Sequence[int],
    shapes: Sequence[Tuple[int, ...]],
    bit_source: BitSourceFactory,
) -> LatticeCell:
    """
    Build every octave grid for ``location``.

    A fresh bit source is seeded from (seed, location) and each grid is
    filled in row-major order, octave 0 first. The result depends only on
    the arguments, so a rebuild is byte-identical to the original.
    """
    source = bit_source(cell_seed_bytes(seed, location))
    levels = []
    for shape in shapes:
        grid = source.next_doubles(int(np.prod(shape))).reshape(shape)
        grid.setflags(write=False)
        levels.append(grid)
    return LatticeCell(location=tuple(int(c) for c in location), levels=tuple(levels))
