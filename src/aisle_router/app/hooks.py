# app/hooks.py
from typing import Protocol


class PipelineHooks(Protocol):
    """Progress and lifecycle callbacks; the algorithms never log to a sink directly."""

    # rasterization
    def raster_start(self, *, width, height, segments, **kw): ...
    def raster_progress(self, *, done, total): ...
    def raster_deferred(self, *, width, height, max_cells): ...
    def raster_end(self, *, width, height, occupied, **kw): ...

    # buffering
    def buffer_applied(self, *, radius, occupied_before, occupied_after): ...

    # distance matrix
    def matrix_start(self, *, n, workers): ...
    def matrix_end(self, *, n, unreachable, ms): ...

    # optimization
    def solve_start(self, *, solver, n): ...
    def sweep(self, *, iteration, length): ...
    def solve_end(self, *, solver, n, length, ms, **kw): ...

    # planning
    def stop_dropped(self, *, stop_id, reason): ...
    def route_planned(self, *, stops, total_distance, solver): ...

    def error(self, *, reason: str, **kw): ...


class NoopHooks:
    def raster_start(self, **_):
        pass

    def raster_progress(self, **_):
        pass

    def raster_deferred(self, **_):
        pass

    def raster_end(self, **_):
        pass

    def buffer_applied(self, **_):
        pass

    def matrix_start(self, **_):
        pass

    def matrix_end(self, **_):
        pass

    def solve_start(self, **_):
        pass

    def sweep(self, **_):
        pass

    def solve_end(self, **_):
        pass

    def stop_dropped(self, **_):
        pass

    def route_planned(self, **_):
        pass

    def error(self, **_):
        pass
