"""
Multi-octave interpolation over a 2**N neighbourhood of lattice cells.

A region is a nested list, ``region[o0][o1]...[oN-1]``, holding the cell at
``location + (o0, ..., oN-1)`` for every offset in {0, 1}**N. For each
octave the matching grids of all neighbours are joined into one array of
twice the level size per axis, so the "+1" corner of the last grid point in
a cell lands on the first grid point of the next cell.

Bulk fills index that joined grid with arrays that broadcast to the buffer
shape. Single points skip the join: ``RegionLevel`` reads each corner from
the owning cell, wrapping an index of ``L`` or more into the next cell.
"""
from __future__ import annotations

import itertools
from typing import Any, List, Sequence, Tuple

import numpy as np

from rapnoise.core.blend.base import Blend

Positions = Tuple[List[Any], List[Any]]


def octave_weights(persistence: float, octaves: int) -> Tuple[Tuple[float, ...], float]:
    """Return (persistence**k for each octave, their sum)."""
    weights = tuple(persistence ** k for k in range(octaves))
    scale = 0.0
    for w in weights:
        scale += w
    return weights, scale


def _map_nested(region, func):
    if isinstance(region, list):
        return [_map_nested(item, func) for item in region]
    return func(region)


def region_grid(region, level: int) -> np.ndarray:
    """Join octave ``level`` of every cell in the region into one grid."""
    return np.block(_map_nested(region, lambda cell: cell.levels[level]))


class RegionLevel:
    """
    Indexable view of octave ``level`` across a region, without copying.

    ``view[i0, ..., iN-1]`` equals ``region_grid(region, level)[i0, ..., iN-1]``
    for scalar indices in ``[0, 2 * L)``.
    """

    __slots__ = ("region", "level", "shape")

    def __init__(self, region, level: int, shape: Sequence[int]):
        self.region = region
        self.level = level
        self.shape = tuple(shape)

    def __getitem__(self, index: Tuple[int, ...]) -> float:
        cell = self.region
        inner = []
        for i, size in zip(index, self.shape):
            neighbour, i = divmod(i, size)
            cell = cell[neighbour]
            inner.append(i)
        return cell.levels[self.level][tuple(inner)]


def fill_positions(level_shape: Sequence[int], buffer_shape: Sequence[int]) -> Positions:
    """
    Anchor indices and blend fractions for every buffer index.

    Index ``i`` on an axis of length ``n`` maps to ``i * L / n`` in a level
    of length ``L``, computed exactly with integer division. Arrays are
    shaped to broadcast against each other over ``buffer_shape``.
    """
    ndim = len(buffer_shape)
    anchors, portions = [], []
    for axis, (n, size) in enumerate(zip(buffer_shape, level_shape)):
        shape = [1] * ndim
        shape[axis] = n
        idx = np.arange(n, dtype=np.int64).reshape(shape)
        anchor, remainder = np.divmod(idx * size, n)
        anchors.append(anchor)
        portions.append(remainder / n)
    return anchors, portions


def point_positions(level_shape: Sequence[int], offset: Sequence[float]) -> Positions:
    """Anchor indices and blend fractions for one in-cell offset in [0, 1)."""
    anchors, portions = [], []
    for o, size in zip(offset, level_shape):
        scaled = o * size
        anchor = int(scaled)
        anchors.append(anchor)
        portions.append(scaled - anchor)
    return anchors, portions


def corner_walk(grid: np.ndarray, anchors: Sequence[Any], portions: Sequence[Any], blend: Blend):
    """
    Blend the 2**N corners around ``anchors`` down to one value.

    Corners are listed with axis 0 as the most significant bit, so adjacent
    pairs differ only in the last remaining axis. Each pass collapses that
    axis, walking from the last axis to the first.
    """
    ndim = len(anchors)
    values = [
        grid[tuple(a + o for a, o in zip(anchors, offsets))]
        for offsets in itertools.product((0, 1), repeat=ndim)
    ]
    for axis in reversed(range(ndim)):
        t = portions[axis]
        values = [blend(values[i], values[i + 1], t) for i in range(0, len(values), 2)]
    return values[0]


def blend_octaves(
    grids: Sequence[np.ndarray],
    positions: Sequence[Positions],
    weights: Sequence[float],
    scale: float,
    blend: Blend,
):
    """Weighted sum of every octave's corner walk, normalized by ``scale``."""
    value = 0.0
    for grid, (anchors, portions), weight in zip(grids, positions, weights):
        value = value + corner_walk(grid, anchors, portions, blend) * weight
    return value / scale
