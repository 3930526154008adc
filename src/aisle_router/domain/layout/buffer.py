# aisle_router/domain/layout/buffer.py
import numpy as np

from aisle_router.app.hooks import NoopHooks, PipelineHooks
from aisle_router.domain.entities.grid import Grid
from aisle_router.domain.errors import MalformedQueryError


def disk_offsets(radius: int) -> list[tuple[int, int]]:
    r2 = radius * radius
    return [
        (dx, dy)
        for dy in range(-radius, radius + 1)
        for dx in range(-radius, radius + 1)
        if dx * dx + dy * dy <= r2
    ]


def _shift_or(out: np.ndarray, src: np.ndarray, dx: int, dy: int) -> None:
    # out[y + dy, x + dx] |= src[y, x], clipped to the array
    h, w = src.shape
    ys, yd = (slice(0, h - dy), slice(dy, h)) if dy >= 0 else (slice(-dy, h), slice(0, h + dy))
    xs, xd = (slice(0, w - dx), slice(dx, w)) if dx >= 0 else (slice(-dx, w), slice(0, w + dx))
    out[yd, xd] |= src[ys, xs]


class WallBufferer:
    def __init__(self, hooks: PipelineHooks | None = None):
        self.hooks = hooks or NoopHooks()

    def apply(self, grid: Grid, radius: int) -> Grid:
        """
        Occupy every cell within Euclidean ``radius`` of an occupied cell.
        Distances are measured against the input grid only; the result is a new grid.
        """
        if radius < 0:
            raise MalformedQueryError(f"buffer radius must be >= 0, got {radius}")
        if not grid.is_valid:
            return grid.copy()

        src = grid.cells  # read-only snapshot
        out = src.copy()
        for dx, dy in disk_offsets(radius):
            if abs(dx) < grid.width and abs(dy) < grid.height:
                _shift_or(out, src, dx, dy)

        buffered = grid.with_cells(out)
        self.hooks.buffer_applied(
            radius=radius,
            occupied_before=grid.occupied_count(),
            occupied_after=buffered.occupied_count(),
        )
        return buffered
