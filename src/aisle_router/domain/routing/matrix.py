# aisle_router/domain/routing/matrix.py
import time
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

import numpy as np

from aisle_router.app.hooks import NoopHooks, PipelineHooks
from aisle_router.app.protocols import Pathfinder
from aisle_router.domain.entities.geometry import Path, Waypoint, path_length
from aisle_router.domain.entities.grid import Grid
from aisle_router.domain.errors import MalformedQueryError

UNREACHABLE = np.inf


@dataclass
class RouteMatrix:
    distances: np.ndarray  # (n, n); inf where no path exists
    paths: list[list[Path | None]]  # parallel to distances, None where unreachable

    @property
    def n(self) -> int:
        return int(self.distances.shape[0])

    def unreachable_pairs(self) -> list[tuple[int, int]]:
        ii, jj = np.nonzero(np.isinf(self.distances))
        return [(int(i), int(j)) for i, j in zip(ii, jj)]

    def subset(self, keep: Sequence[int]) -> "RouteMatrix":
        """Restrict to the given indices (in that order) without recomputing any path."""
        idx = list(keep)
        return RouteMatrix(
            distances=self.distances[np.ix_(idx, idx)].copy(),
            paths=[[self.paths[i][j] for j in idx] for i in idx],
        )


class DistanceMatrixBuilder:
    """
    All-pairs path lengths between waypoints. Each ordered pair is searched on
    its own, so d[i][j] and d[j][i] may differ on ties; symmetry is not assumed.
    """

    def __init__(self, pathfinder: Pathfinder, *, workers: int = 1, hooks: PipelineHooks | None = None):
        if workers < 1:
            raise MalformedQueryError(f"workers must be >= 1, got {workers}")
        self.pathfinder, self.workers = pathfinder, workers
        self.hooks = hooks or NoopHooks()

    def _pair(self, grid: Grid, a: Waypoint, b: Waypoint) -> tuple[float, Path | None]:
        path = self.pathfinder.find_path(grid, a, b)
        if not path:
            return UNREACHABLE, None
        return path_length(path), path

    def build(self, grid: Grid, waypoints: Sequence[Waypoint]) -> RouteMatrix:
        n = len(waypoints)
        dist = np.zeros((n, n), dtype=float)
        paths: list[list[Path | None]] = [[None] * n for _ in range(n)]
        t0 = time.perf_counter()
        self.hooks.matrix_start(n=n, workers=self.workers)

        for i, wp in enumerate(waypoints):
            paths[i][i] = [wp.cell]

        pairs = [(i, j) for i in range(n) for j in range(n) if i != j]
        # the grid is read-only here, and every task owns exactly one (i, j) cell
        if self.workers > 1 and len(pairs) > 1:
            with ThreadPoolExecutor(max_workers=self.workers) as pool:
                results = pool.map(lambda ij: self._pair(grid, waypoints[ij[0]], waypoints[ij[1]]), pairs)
                for (i, j), (d, p) in zip(pairs, results):
                    dist[i, j], paths[i][j] = d, p
        else:
            for i, j in pairs:
                dist[i, j], paths[i][j] = self._pair(grid, waypoints[i], waypoints[j])

        m = RouteMatrix(dist, paths)
        self.hooks.matrix_end(
            n=n,
            unreachable=len(m.unreachable_pairs()),
            ms=(time.perf_counter() - t0) * 1000,
        )
        return m
