import numpy as np
import pytest

from mandelbrot_simd import get_kernel, iterate_batch


def test_origin_never_escapes():
    counts = iterate_batch(np.array([0.0]), np.array([0.0]), 250)
    assert counts.tolist() == [250]


def test_two_escapes_immediately():
    counts = iterate_batch(np.array([2.0]), np.array([0.0]), 250)
    assert counts[0] in (0, 1)


def test_known_escape_counts():
    # c = 1: z = 1, 2, 5 -> leaves the radius on the third trip.
    # c = -2: z stays at 2 forever, exactly on the bailout radius.
    # c = 4: leaves on the first trip.
    counts = iterate_batch(np.array([1.0, -2.0, 4.0, -1.0]), np.zeros(4), 100)
    assert counts.tolist() == [2, 100, 0, 100]


def test_lanes_are_independent_of_grouping():
    rng = np.random.default_rng(7)
    re = rng.uniform(-2.0, 0.6, 64)
    im = rng.uniform(-1.2, 1.2, 64)
    single = np.array([iterate_batch(re[i:i + 1], im[i:i + 1], 80)[0] for i in range(64)])
    one_group = iterate_batch(re, im, 80)
    stacked = iterate_batch(re.reshape(8, 8), im.reshape(8, 8), 80).reshape(-1)
    np.testing.assert_array_equal(single, one_group)
    np.testing.assert_array_equal(single, stacked)


def test_counts_are_bounded():
    re, im = np.meshgrid(np.linspace(-2.5, 1.5, 41), np.linspace(-1.5, 1.5, 31))
    counts = iterate_batch(re, im, 60)
    assert counts.dtype == np.int32
    assert counts.min() >= 0
    assert counts.max() <= 60


def test_raising_the_limit_keeps_escaped_counts():
    re, im = np.meshgrid(np.linspace(-2.0, 0.5, 37), np.linspace(-1.2, 1.2, 29))
    low = iterate_batch(re, im, 30)
    high = iterate_batch(re, im, 300)
    escaped = low < 30
    np.testing.assert_array_equal(low[escaped], high[escaped])
    assert np.all(high[~escaped] >= 30)


def test_far_away_points_do_not_warn():
    with np.errstate(over="raise", invalid="raise"):
        counts = iterate_batch(np.array([1e200, -3.0, 0.0]), np.array([1e200, 0.0, 0.0]), 50)
    assert counts.tolist() == [0, 0, 50]


def test_shape_mismatch():
    with pytest.raises(ValueError):
        iterate_batch(np.zeros(4), np.zeros(3), 10)


def test_get_kernel():
    assert get_kernel("numpy") is iterate_batch
    with pytest.raises(ValueError):
        get_kernel("opencl")


def test_conjugate_points_share_counts():
    rng = np.random.default_rng(11)
    re = rng.uniform(-2.0, 0.6, 200)
    im = rng.uniform(0.0, 1.2, 200)
    np.testing.assert_array_equal(iterate_batch(re, im, 120), iterate_batch(re, -im, 120))
