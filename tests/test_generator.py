import functools
import math
import threading

import numpy as np
import pytest

from rapnoise.core.bits.base import register_bit_source
from rapnoise.core.bits.hashchain import HashChainBitSource
from rapnoise.core.errors import (
    DimensionMismatchError,
    InvalidArgumentError,
    UnsupportedHashOutputError,
    ValueOutOfRangeError,
)
from rapnoise.core.interpolate import blend_octaves, point_positions, region_grid
from rapnoise.orchestrator.generator import NoiseConfig, NoiseGenerator


def _fill(gen, shape, location):
    return gen.fill(np.empty(shape, dtype=np.float64), location)


def test_fill_matches_evaluate_reference_scenario():
    gen = NoiseGenerator(0, 0.5, 3, (4, 4), False, "linear")
    expected = _fill(gen, (4, 4), (0, 0))

    actual = np.empty((4, 4))
    for x in range(4):
        for y in range(4):
            actual[x, y] = gen.evaluate((0, 0), (x / 4, y / 4))

    np.testing.assert_allclose(actual, expected, rtol=0, atol=1e-12)


def test_continuous_evaluate_matches_reference_scenario():
    gen = NoiseGenerator(0, 0.5, 3, (4, 4), False, "linear")
    expected = _fill(gen, (4, 4), (0, 0))
    for x in range(4):
        for y in range(4):
            assert gen.evaluate((x / 4, y / 4)) == pytest.approx(expected[x, y], abs=1e-12)


@pytest.mark.parametrize(
    "size,octaves,persistence,blend,shape,location",
    [
        ((4,), 4, 0.5, "cosine", (16,), (3,)),
        ((3, 5), 2, 0.8, "cosine", (6, 10), (-2, 7)),
        ((2, 2, 2), 3, 0.3, "linear", (4, 4, 4), (1, -1, 0)),
        ((4, 4), 1, 1.0, "linear", (5, 7), (0, 0)),
    ],
)
def test_fill_matches_evaluate(size, octaves, persistence, blend, shape, location):
    gen = NoiseGenerator(11, persistence, octaves, size, False, blend)
    field = _fill(gen, shape, location)
    for index in np.ndindex(*shape):
        offset = [i / n for i, n in zip(index, shape)]
        assert gen.evaluate(location, offset) == pytest.approx(field[index], abs=1e-12)


def test_output_is_normalized():
    gen = NoiseGenerator(3, 1.0, 5, (2, 2), False, "cosine")
    field = _fill(gen, (64, 64), (-4, 9))
    assert field.min() >= 0.0
    assert field.max() <= 1.0
    rng = np.random.default_rng(0)
    for point in rng.uniform(-50, 50, size=(50, 2)):
        assert 0.0 <= gen.evaluate(point) <= 1.0


def test_same_config_is_bit_identical():
    a = NoiseGenerator(42, 0.5, 4, (4, 4), False, "cosine")
    b = NoiseGenerator(42, 0.5, 4, (4, 4), False, "cosine")
    assert np.array_equal(_fill(a, (32, 32), (2, 3)), _fill(b, (32, 32), (2, 3)))


def test_result_independent_of_cache_history():
    warm = NoiseGenerator(1, 0.5, 3, (4, 4), False, "linear")
    for x in range(-3, 4):
        for y in range(-3, 4):
            _fill(warm, (8, 8), (x, y))
    cold = NoiseGenerator(1, 0.5, 3, (4, 4), False, "linear")
    assert np.array_equal(_fill(warm, (16, 16), (0, 1)), _fill(cold, (16, 16), (0, 1)))


def test_different_seeds_differ():
    a = _fill(NoiseGenerator(0, 0.5, 3, (4, 4), False, "linear"), (8, 8), (0, 0))
    b = _fill(NoiseGenerator(1, 0.5, 3, (4, 4), False, "linear"), (8, 8), (0, 0))
    c = _fill(NoiseGenerator(b"\x00" * 8, 0.5, 3, (4, 4), False, "linear"), (8, 8), (0, 0))
    assert not np.array_equal(a, b)
    # a zero int seed serializes to eight zero bytes
    assert np.array_equal(a, c)


def test_bit_source_changes_output():
    a = _fill(NoiseGenerator(0, 0.5, 2, (4,), False, "linear", bit_source="sha256"), (8,), (0,))
    b = _fill(NoiseGenerator(0, 0.5, 2, (4,), False, "linear", bit_source="blake2b"), (8,), (0,))
    assert not np.array_equal(a, b)


def test_negative_offsets_floor_into_location():
    gen = NoiseGenerator(5, 0.5, 3, (4, 4), False, "cosine")
    assert gen.evaluate((2.25, -0.5)) == gen.evaluate((2, -1), (0.25, 0.5))
    assert gen.evaluate((0, 0), (-0.75, 1.5)) == gen.evaluate((-1, 1), (0.25, 0.5))
    field = _fill(gen, (4, 4), (-1, -1))
    assert gen.evaluate((-0.75, -0.5)) == pytest.approx(field[1, 2], abs=1e-12)


def test_tiny_negative_offset_stays_in_range():
    gen = NoiseGenerator(5, 0.5, 2, (1,), False, "linear")
    value = gen.evaluate((0,), (-1e-20,))
    assert value == gen.evaluate((0,), (0.0,))


@pytest.mark.parametrize("blend", ["linear", "cosine"])
def test_seams_are_continuous(blend):
    gen = NoiseGenerator(0, 0.5, 4, (4, 4), False, blend)
    for t in np.linspace(0.0, 0.95, 7):
        right_edge = gen.evaluate((0, 0), (1.0 - 1e-9, t))
        next_cell = gen.evaluate((1, 0), (0.0, t))
        assert right_edge == pytest.approx(next_cell, abs=1e-6)
        bottom_edge = gen.evaluate((0, 0), (t, 1.0 - 1e-9))
        below = gen.evaluate((0, 1), (t, 0.0))
        assert bottom_edge == pytest.approx(below, abs=1e-6)
        assert gen.evaluate((0, 0), (1.0, t)) == next_cell


def test_adjacent_large_tiles_share_seam():
    gen = NoiseGenerator(0, 0.5, 6, (4, 4), False, "cosine")
    n = 1024
    left = _fill(gen, (n, n), (0, 0))
    right = _fill(gen, (n, n), (1, 0))
    for y in range(0, n, 97):
        assert left[n - 1, y] == pytest.approx(gen.evaluate((0, 0), ((n - 1) / n, y / n)), abs=1e-12)
        assert right[0, y] == pytest.approx(gen.evaluate((0, 0), (1.0, y / n)), abs=1e-12)
        assert right[0, y] == pytest.approx(gen.evaluate((1, 0), (0.0, y / n)), abs=1e-12)
    # one pixel apart across the seam is closer than a random pair
    assert np.abs(left[n - 1, :] - right[0, :]).mean() < np.abs(left[0, :] - right[0, ::-1]).mean()


def test_trim_zero_then_evaluate_reproduces():
    gen = NoiseGenerator(8, 0.5, 3, (4, 4), False, "cosine")
    before = gen.evaluate((3.3, -1.7))
    assert len(gen.cache) > 0
    assert gen.cache.trim(0) == 0
    assert len(gen.cache) == 0
    assert gen.evaluate((3.3, -1.7)) == before


def test_cache_bound_follows_dimensions():
    assert NoiseGenerator(0, 0.5, 1, (4,), False, "linear").cache.max_depth == 8
    assert NoiseGenerator(0, 0.5, 1, (4, 4), False, "linear").cache.max_depth == 16
    assert NoiseGenerator(0, 0.5, 1, (4, 4), False, "linear", cache_depth=2).cache.max_depth == 2


def test_small_cache_depth_still_correct():
    small = NoiseGenerator(2, 0.5, 3, (4, 4), False, "cosine", cache_depth=1)
    big = NoiseGenerator(2, 0.5, 3, (4, 4), False, "cosine")
    assert len(small.cache) <= 1
    for loc in [(0, 0), (5, -2), (0, 0)]:
        assert np.array_equal(_fill(small, (8, 8), loc), _fill(big, (8, 8), loc))
    assert len(small.cache) <= 1


def test_zero_persistence_keeps_only_first_octave():
    many = NoiseGenerator(4, 0.0, 4, (4, 4), False, "linear")
    one = NoiseGenerator(4, 0.0, 1, (4, 4), False, "linear")
    assert np.array_equal(_fill(many, (8, 8), (1, 1)), _fill(one, (8, 8), (1, 1)))


def test_weights_and_scale():
    gen = NoiseGenerator(0, 0.5, 3, (4, 2), True, "linear")
    assert gen.weights == (1.0, 0.5, 0.25)
    assert gen.scale == 1.75
    assert gen.dimensions == 2
    assert gen.level_shapes == ((4, 2), (8, 4), (16, 8))


def test_custom_blend_callable():
    def nearest(a, b, t):
        return np.where(np.asarray(t) < 0.5, a, b)

    gen = NoiseGenerator(0, 0.5, 2, (4, 4), False, nearest)
    field = _fill(gen, (8, 8), (0, 0))
    assert gen.blend.name == "nearest"
    assert field.min() >= 0.0 and field.max() <= 1.0
    assert gen.evaluate((0, 0), (0.5, 0.25)) == pytest.approx(field[4, 2], abs=1e-12)


def test_config_round_trip():
    config = NoiseConfig(seed=9, persistence=0.25, octaves=2, size=(3,), smooth=True, blend="cosine")
    gen = NoiseGenerator.from_config(config)
    assert gen.config == NoiseConfig(
        seed=9, persistence=0.25, octaves=2, size=(3,), smooth=True, blend="cosine", cache_depth=8
    )
    assert gen.smooth is True


def test_concurrent_sampling_matches_serial():
    points = [(x * 0.37, y * -0.61) for x in range(6) for y in range(6)]
    serial = NoiseGenerator(6, 0.5, 3, (4, 4), False, "cosine")
    expected = [serial.evaluate(p) for p in points]

    shared = NoiseGenerator(6, 0.5, 3, (4, 4), False, "cosine", cache_depth=3)
    results = {}
    errors = []

    def worker(offset):
        try:
            for i in range(len(points)):
                j = (i + offset) % len(points)
                results[(offset, j)] = shared.evaluate(points[j])
        except Exception as exc:  # noqa: BLE001
            errors.append(exc)

    threads = [threading.Thread(target=worker, args=(k,)) for k in range(6)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert not errors
    for (_, j), value in results.items():
        assert value == expected[j]


@pytest.mark.parametrize("persistence", [-0.1, 1.1, math.nan])
def test_persistence_out_of_range(persistence):
    with pytest.raises(ValueOutOfRangeError):
        NoiseGenerator(0, persistence, 3, (4, 4), False, "linear")


@pytest.mark.parametrize("octaves", [0, -2])
def test_octaves_out_of_range(octaves):
    with pytest.raises(ValueOutOfRangeError):
        NoiseGenerator(0, 0.5, octaves, (4, 4), False, "linear")


@pytest.mark.parametrize("size", [(), (4, 0), (-1,)])
def test_size_out_of_range(size):
    with pytest.raises(ValueOutOfRangeError):
        NoiseGenerator(0, 0.5, 3, size, False, "linear")


def test_cache_depth_out_of_range():
    with pytest.raises(ValueOutOfRangeError):
        NoiseGenerator(0, 0.5, 3, (4,), False, "linear", cache_depth=-1)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"seed": None},
        {"size": None},
        {"blend": None},
        {"persistence": None},
        {"octaves": None},
        {"bit_source": "missing"},
        {"blend": "missing"},
    ],
)
def test_missing_arguments(kwargs):
    args = dict(seed=0, persistence=0.5, octaves=3, size=(4, 4), smooth=False, blend="linear")
    args.update(kwargs)
    with pytest.raises(InvalidArgumentError):
        NoiseGenerator(**args)


def test_dimension_mismatch():
    gen = NoiseGenerator(0, 0.5, 2, (4, 4), False, "linear")
    with pytest.raises(DimensionMismatchError):
        gen.fill(np.empty((4, 4, 4)), (0, 0))
    with pytest.raises(DimensionMismatchError):
        gen.fill(np.empty((4, 4)), (0, 0, 0))
    with pytest.raises(DimensionMismatchError):
        gen.evaluate((0.5,))
    with pytest.raises(DimensionMismatchError):
        gen.evaluate((0, 0), (0.5,))
    with pytest.raises(InvalidArgumentError):
        gen.fill(None, (0, 0))


def test_unsupported_hash_rejected_at_construction():
    register_bit_source("sha1-test", functools.partial(HashChainBitSource, algorithm="sha1"))
    with pytest.raises(UnsupportedHashOutputError):
        NoiseGenerator(0, 0.5, 2, (4,), False, "linear", bit_source="sha1-test")


@pytest.mark.parametrize("seed", [1 << 63, -(1 << 63) - 1, 1 << 70])
def test_seed_out_of_int64_range_rejected_at_construction(seed):
    with pytest.raises(ValueOutOfRangeError):
        NoiseGenerator(seed, 0.5, 2, (4,), False, "linear")


@pytest.mark.parametrize("seed", ["abc", 1.5, [1, 2]])
def test_seed_of_wrong_type_rejected_at_construction(seed):
    with pytest.raises(InvalidArgumentError):
        NoiseGenerator(seed, 0.5, 2, (4,), False, "linear")


def test_int64_bounds_and_numpy_seeds_accepted():
    NoiseGenerator((1 << 63) - 1, 0.5, 1, (2,), False, "linear")
    NoiseGenerator(-(1 << 63), 0.5, 1, (2,), False, "linear")
    a = _fill(NoiseGenerator(np.int64(7), 0.5, 2, (4,), False, "linear"), (8,), (0,))
    b = _fill(NoiseGenerator(7, 0.5, 2, (4,), False, "linear"), (8,), (0,))
    assert np.array_equal(a, b)


@pytest.mark.parametrize("dtype", [np.int64, np.int32, np.bool_, np.complex128])
def test_fill_rejects_non_floating_buffers(dtype):
    gen = NoiseGenerator(0, 0.5, 2, (4, 4), False, "linear")
    with pytest.raises(InvalidArgumentError):
        gen.fill(np.zeros((4, 4), dtype=dtype), (0, 0))
    with pytest.raises(InvalidArgumentError):
        gen.fill([[0.0] * 4] * 4, (0, 0))


def test_fill_accepts_float32_buffers():
    gen = NoiseGenerator(0, 0.5, 2, (4, 4), False, "linear")
    single = gen.fill(np.zeros((8, 8), dtype=np.float32), (0, 0))
    double = _fill(gen, (8, 8), (0, 0))
    assert single.dtype == np.float32
    np.testing.assert_allclose(single, double, rtol=0, atol=1e-6)
    assert single.max() > 0.0


@pytest.mark.parametrize("location", [(0.5, 0.5), (0, 1.25), ("a", 0), (math.nan, 0)])
def test_fractional_locations_rejected(location):
    gen = NoiseGenerator(0, 0.5, 2, (4, 4), False, "linear")
    with pytest.raises(InvalidArgumentError):
        gen.evaluate(location, (0.0, 0.0))
    with pytest.raises(InvalidArgumentError):
        gen.fill(np.empty((4, 4)), location)


def test_integral_float_locations_accepted():
    gen = NoiseGenerator(0, 0.5, 2, (4, 4), False, "linear")
    assert gen.evaluate((1.0, -2.0), (0.25, 0.5)) == gen.evaluate((1, -2), (0.25, 0.5))
    assert np.array_equal(_fill(gen, (4, 4), (np.int64(3), 1.0)), _fill(gen, (4, 4), (3, 1)))


@pytest.mark.parametrize("bad", [math.nan, math.inf, -math.inf])
def test_non_finite_offsets_rejected(bad):
    gen = NoiseGenerator(0, 0.5, 2, (4, 4), False, "linear")
    with pytest.raises(ValueOutOfRangeError):
        gen.evaluate((0.5, bad))
    with pytest.raises(ValueOutOfRangeError):
        gen.evaluate((0, 0), (bad, 0.5))


def test_non_numeric_offsets_rejected():
    gen = NoiseGenerator(0, 0.5, 2, (4, 4), False, "linear")
    with pytest.raises(InvalidArgumentError):
        gen.evaluate((0, 0), ("x", 0.5))


@pytest.mark.parametrize("dims, octaves", [(1, 4), (2, 3), (3, 3)])
def test_evaluate_reads_corners_like_the_joined_grid(dims, octaves):
    gen = NoiseGenerator(5, 0.6, octaves, (3,) * dims, False, "cosine")
    rng = np.random.default_rng(11)
    for _ in range(10):
        location = tuple(int(v) for v in rng.integers(-4, 4, size=dims))
        fraction = tuple(float(v) for v in rng.random(dims))
        region = gen.region(location)
        grids = [region_grid(region, level) for level in range(gen.octaves)]
        positions = [point_positions(shape, fraction) for shape in gen.level_shapes]
        joined = blend_octaves(grids, positions, gen.weights, gen.scale, gen.blend)
        assert gen.evaluate(location, fraction) == pytest.approx(float(joined), abs=1e-15)


def test_evaluate_offset_just_below_one():
    gen = NoiseGenerator(0, 0.5, 3, (3, 3), False, "linear")
    below = math.nextafter(1.0, 0.0)
    value = gen.evaluate((0, 0), (below, below))
    assert value == pytest.approx(gen.evaluate((1, 1), (0.0, 0.0)), abs=1e-12)
