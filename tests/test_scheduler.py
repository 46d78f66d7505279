import itertools

import numpy as np
import pytest

import mandelbrot_simd.scheduler as scheduler
from mandelbrot_simd import (
    CancelToken,
    ImageDimensions,
    RenderCancelled,
    RenderConfig,
    Viewport,
    partition_rows,
    pixel_to_complex,
    render,
)


def make_config(width=48, height=40, max_iterations=64, worker_count=1, lane_width=8,
                viewport=Viewport(-2.0, 1.0, -1.2, 1.2)):
    return RenderConfig(
        viewport=viewport,
        dimensions=ImageDimensions(width, height),
        max_iterations=max_iterations,
        worker_count=worker_count,
        lane_width=lane_width,
    )


def test_partition_gives_extra_rows_to_first_workers():
    assert partition_rows(10, 4) == [(0, 3), (3, 6), (6, 8), (8, 10)]


def test_partition_skips_idle_workers():
    assert partition_rows(3, 8) == [(0, 1), (1, 2), (2, 3)]


@pytest.mark.parametrize("height,workers", [(1, 1), (7, 3), (100, 8), (64, 64), (5, 16)])
def test_partition_covers_every_row_once(height, workers):
    ranges = partition_rows(height, workers)
    rows = [y for start, stop in ranges for y in range(start, stop)]
    assert rows == list(range(height))
    sizes = [stop - start for start, stop in ranges]
    assert max(sizes) - min(sizes) <= 1
    assert len(ranges) <= workers


def test_result_independent_of_workers_and_lanes():
    reference = render(make_config())
    for workers, lanes in itertools.product((1, 2, 8), (1, 4, 8)):
        counts = render(make_config(worker_count=workers, lane_width=lanes))
        np.testing.assert_array_equal(counts, reference, err_msg=f"workers={workers} lanes={lanes}")


def test_buffer_layout_and_bounds():
    cfg = make_config(width=31, height=17, worker_count=3, lane_width=4)
    counts = render(cfg)
    assert counts.shape == (31 * 17,)
    assert counts.dtype == np.int32
    assert counts.min() >= 0
    assert counts.max() <= cfg.max_iterations


def test_symmetric_viewport_mirrors_rows():
    cfg = make_config(width=24, height=32, viewport=Viewport(-2.0, 1.0, -1.0, 1.0), worker_count=4)
    image = render(cfg).reshape(32, 24)
    np.testing.assert_array_equal(image, image[::-1])


def test_full_view_scenario():
    cfg = make_config(width=100, height=100, max_iterations=100, worker_count=4,
                      viewport=Viewport(-2.0, 1.0, -1.5, 1.5))
    image = render(cfg).reshape(100, 100)

    def nearest(re, im):
        x = int(round((re - cfg.viewport.re_min) / cfg.viewport.re_extent * cfg.width - 0.5))
        y = int(round((im - cfg.viewport.im_min) / cfg.viewport.im_extent * cfg.height - 0.5))
        return x, y

    x, y = nearest(-1.0, 0.0)
    assert pixel_to_complex(x, y, cfg)[0] == pytest.approx(-1.0, abs=0.03)
    assert image[y, x] == 100

    x, y = nearest(0.9, 0.0)
    assert image[y, x] < 10


def test_raising_the_limit_keeps_escaped_pixels():
    low = render(make_config(max_iterations=40, worker_count=2))
    high = render(make_config(max_iterations=400, worker_count=2))
    escaped = low < 40
    np.testing.assert_array_equal(low[escaped], high[escaped])


def test_progress_reports_every_range():
    calls = []
    render(make_config(height=40, worker_count=4), progress=lambda done, total: calls.append((done, total)))
    assert len(calls) == 4
    assert [done for done, _ in calls] == sorted(done for done, _ in calls)
    assert calls[-1] == (40, 40)


def test_single_range_reports_progress_once():
    calls = []
    render(make_config(worker_count=1), progress=lambda done, total: calls.append((done, total)))
    assert calls == [(40, 40)]


@pytest.mark.parametrize("workers", [1, 4])
def test_cancelled_render_raises(workers):
    token = CancelToken()
    token.cancel()
    with pytest.raises(RenderCancelled):
        render(make_config(worker_count=workers), cancel=token)


def test_uncancelled_token_is_harmless():
    token = CancelToken()
    counts = render(make_config(worker_count=2), cancel=token)
    assert not token.is_cancelled()
    np.testing.assert_array_equal(counts, render(make_config()))


def test_worker_errors_propagate(monkeypatch):
    def broken_kernel(re, im, max_iter):
        raise ArithmeticError("lane fault")

    monkeypatch.setattr(scheduler, "get_kernel", lambda name: broken_kernel)
    with pytest.raises(ArithmeticError, match="lane fault"):
        render(make_config(worker_count=3))
