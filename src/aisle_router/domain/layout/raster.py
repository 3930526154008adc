# aisle_router/domain/layout/raster.py
import math
from collections.abc import Iterator, Sequence

from aisle_router.app.hooks import NoopHooks, PipelineHooks
from aisle_router.domain.entities.geometry import BoundingBox, Cell, LineSegment
from aisle_router.domain.entities.grid import DeferredLayout, Grid
from aisle_router.domain.errors import EmptyLayoutError, MalformedQueryError

DEFAULT_MAX_CELLS = 10_000_000
DEFAULT_BATCH = 25


def line_cells(x0: int, y0: int, x1: int, y1: int) -> Iterator[Cell]:
    """Integer Bresenham walk from (x0, y0) to (x1, y1), both ends included."""
    dx, sx = abs(x1 - x0), 1 if x0 < x1 else -1
    dy, sy = -abs(y1 - y0), 1 if y0 < y1 else -1
    err = dx + dy
    while True:
        yield (x0, y0)
        if x0 == x1 and y0 == y1:
            return
        e2 = 2 * err
        if e2 >= dy:
            err += dy
            x0 += sx
        if e2 <= dx:
            err += dx
            y0 += sy


def plot_segment(grid: Grid, seg: LineSegment) -> None:
    (x0, y0), (x1, y1) = grid.to_cell(seg.start), grid.to_cell(seg.end)
    cells = grid.cells
    for x, y in line_cells(x0, y0, x1, y1):
        if grid.in_bounds(x, y):
            cells[y, x] = True


class GridRasterizer:
    def __init__(
        self,
        *,
        margin: int = 5,
        max_cells: int = DEFAULT_MAX_CELLS,
        batch_size: int = DEFAULT_BATCH,
        progress_every: int = 4,
        hooks: PipelineHooks | None = None,
    ):
        if margin < 0 or batch_size < 1 or max_cells < 1:
            raise MalformedQueryError(
                f"bad raster settings margin={margin} batch_size={batch_size} max_cells={max_cells}"
            )
        self.margin, self.max_cells = margin, max_cells
        self.batch_size, self.progress_every = batch_size, max(1, progress_every)
        self.hooks = hooks or NoopHooks()

    def draw(self, grid: Grid, segments: Sequence[LineSegment]) -> Iterator[tuple[int, int]]:
        """
        Plot segments onto ``grid`` in batches, yielding (done, total) after each
        batch so a caller can interleave other work between batches.
        """
        total = len(segments)
        for i in range(0, total, self.batch_size):
            for seg in segments[i : i + self.batch_size]:
                plot_segment(grid, seg)
            yield min(i + self.batch_size, total), total

    def rasterize(
        self, segments: Sequence[LineSegment], bounds: BoundingBox | None = None
    ) -> Grid | DeferredLayout:
        segments = list(segments)
        if not segments:
            raise EmptyLayoutError("no line segments to rasterize")
        bounds = bounds or BoundingBox.of(segments)
        w, h = bounds.width(self.margin), bounds.height(self.margin)

        if w * h > self.max_cells:
            self.hooks.raster_deferred(width=w, height=h, max_cells=self.max_cells)
            return DeferredLayout(segments, bounds, self.margin, w, h, max_cells=self.max_cells)

        grid = Grid.empty(w, h, origin=(bounds.min_x, bounds.min_y), offset=self.margin // 2)
        self.hooks.raster_start(width=w, height=h, segments=len(segments))
        for n, (done, total) in enumerate(self.draw(grid, segments), start=1):
            if n % self.progress_every == 0:
                self.hooks.raster_progress(done=done, total=total)
        self.hooks.raster_end(width=w, height=h, occupied=grid.occupied_count())
        return grid

    def downscale(self, layout: DeferredLayout, max_side: int = 1000) -> Grid:
        """Coarser grid for a deferred layout, longest side capped at ``max_side`` cells."""
        if max_side < 1:
            raise MalformedQueryError(f"max_side must be >= 1, got {max_side}")
        scale = 1.0
        b = layout.bounds
        w, h = layout.width, layout.height
        if w > max_side or h > max_side:
            scale = min(max_side / w, max_side / h)
            # the far edge lands on floor(span * scale), which must stay inside the grid
            w = max(math.floor(w * scale), math.floor((b.max_x - b.min_x) * scale) + 1)
            h = max(math.floor(h * scale), math.floor((b.max_y - b.min_y) * scale) + 1)

        grid = Grid.empty(w, h, origin=(b.min_x, b.min_y), offset=0, scale=scale)
        self.hooks.raster_start(width=w, height=h, segments=len(layout.segments), scale=scale)
        for _ in self.draw(grid, layout.segments):
            pass
        self.hooks.raster_end(width=w, height=h, occupied=grid.occupied_count(), scale=scale)
        return grid
