# tests/layout/test_buffer.py
import numpy as np
import pytest

from aisle_router.app.hooks import NoopHooks
from aisle_router.domain.entities.grid import Grid
from aisle_router.domain.errors import MalformedQueryError
from aisle_router.domain.layout.buffer import WallBufferer, disk_offsets


def single(w, h, x, y) -> Grid:
    g = Grid.empty(w, h)
    g.cells[y, x] = True
    return g


def test_zero_radius_is_identity():
    g = Grid.from_rows([[0, 1, 0], [0, 0, 0], [1, 0, 0]])
    out = WallBufferer().apply(g, 0)
    assert np.array_equal(out.cells, g.cells)
    assert out is not g


class BufferHooks(NoopHooks):
    def __init__(self):
        self.calls = []

    def buffer_applied(self, **kw):
        self.calls.append(kw)


def test_zero_radius_still_reports():
    hooks = BufferHooks()
    g = Grid.from_rows([[0, 1, 0], [0, 0, 0], [1, 0, 0]])
    WallBufferer(hooks=hooks).apply(g, 0)
    assert hooks.calls == [{"radius": 0, "occupied_before": 2, "occupied_after": 2}]


def test_negative_radius_rejected():
    with pytest.raises(MalformedQueryError):
        WallBufferer().apply(Grid.empty(3, 3), -1)


def test_radius_one_is_a_plus_not_a_square():
    out = WallBufferer().apply(single(5, 5, 2, 2), 1)
    expected = np.zeros((5, 5), dtype=bool)
    expected[2, 1:4] = True
    expected[1:4, 2] = True
    assert np.array_equal(out.cells, expected)


def test_radius_two_disk_size_and_no_cascade():
    out = WallBufferer().apply(single(9, 9, 4, 4), 2)
    assert out.occupied_count() == len(disk_offsets(2)) == 13
    # a cascading dilation would have reached distance 3 or the diagonal (2, 2)
    assert not out.cells[4, 7]
    assert not out.cells[6, 6]


def test_buffer_clips_at_edges_and_leaves_input_untouched():
    g = single(3, 3, 0, 0)
    out = WallBufferer().apply(g, 1)
    assert out.occupied_count() == 3
    assert g.occupied_count() == 1


def test_buffer_keeps_source_mapping():
    g = Grid.empty(4, 4, origin=(10.0, 20.0), offset=2, scale=0.5)
    g.cells[1, 1] = True
    out = WallBufferer().apply(g, 1)
    assert (out.origin, out.offset, out.scale) == ((10.0, 20.0), 2, 0.5)
