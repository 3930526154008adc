# aisle_router/app/planner.py
import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Literal

from aisle_router.app.hooks import NoopHooks, PipelineHooks
from aisle_router.domain.entities.geometry import Path, Point2D, Waypoint
from aisle_router.domain.entities.grid import Grid
from aisle_router.domain.errors import MalformedQueryError, UnreachableStopError
from aisle_router.domain.routing.matrix import DistanceMatrixBuilder, RouteMatrix
from aisle_router.domain.routing.simplify import PathSimplifier
from aisle_router.domain.routing.tsp import RouteOptimizer


@dataclass(frozen=True)
class Stop:
    id: str
    x: float  # source drawing units
    y: float
    name: str = ""
    categories: frozenset[str] = frozenset()
    is_start: bool = False
    is_end: bool = False

    @property
    def point(self) -> Point2D:
        return Point2D(self.x, self.y)


def select_stops(stops: Iterable[Stop], categories: Iterable[str]) -> list[Stop]:
    """Stops serving any of the shopping-list categories, plus the start/end stops."""
    wanted = set(categories)
    return [s for s in stops if s.is_start or s.is_end or (s.categories & wanted)]


@dataclass
class Leg:
    start: Stop
    end: Stop
    distance: float
    path: Path  # raw grid path
    simplified: Path


@dataclass
class PlannedRoute:
    stops: list[Stop]
    legs: list[Leg]
    total_distance: float  # grid units
    scale: float = 1.0  # grid cells per source unit
    solver: str = ""
    dropped: list[Stop] = field(default_factory=list)

    @property
    def source_distance(self) -> float:
        """Total distance in source drawing units."""
        return self.total_distance / self.scale

    def geometry(self, grid: Grid) -> list[Point2D]:
        """Simplified route polyline in source coordinates, joints not repeated."""
        pts: list[Point2D] = []
        for leg in self.legs:
            cells = leg.simplified if not pts else leg.simplified[1:]
            pts.extend(grid.to_source(c) for c in cells)
        return pts


class RoutePlanner:
    def __init__(
        self,
        *,
        matrix_builder: DistanceMatrixBuilder,
        optimizer: RouteOptimizer,
        simplifier: PathSimplifier | None = None,
        on_unreachable: Literal["drop", "error"] = "drop",
        simplify: bool = True,
        hooks: PipelineHooks | None = None,
    ):
        self.matrix_builder, self.optimizer = matrix_builder, optimizer
        self.simplifier = simplifier or PathSimplifier()
        self.on_unreachable, self.simplify = on_unreachable, simplify
        self.hooks = hooks or NoopHooks()

    # --------------- Helpers -----------------------------

    @staticmethod
    def arrange(stops: Sequence[Stop]) -> tuple[list[Stop], bool]:
        """Start stop first, end stop last; returns (stops, end_pinned)."""
        starts = [s for s in stops if s.is_start]
        ends = [s for s in stops if s.is_end]
        if len(starts) > 1 or len(ends) > 1:
            raise MalformedQueryError("at most one start and one end stop are allowed")
        if starts and ends and starts[0] is ends[0]:
            raise MalformedQueryError(f"stop {starts[0].id!r} cannot be both start and end")
        rest = [s for s in stops if not (s.is_start or s.is_end)]
        ordered = starts + rest
        if not ordered:
            return list(ends), False
        return ordered + ends, bool(ends)

    def _waypoints(self, grid: Grid, stops: Sequence[Stop]) -> list[Waypoint]:
        out = []
        for s in stops:
            x, y = grid.to_cell(s.point)
            if not grid.in_bounds(x, y):
                raise MalformedQueryError(
                    f"stop {s.id!r} at ({s.x}, {s.y}) maps to cell ({x}, {y}) outside "
                    f"{grid.width}x{grid.height} grid"
                )
            out.append(Waypoint(x, y, tag=s.id))
        return out

    def _reachable(self, m: RouteMatrix, stops: list[Stop], end_pinned: bool) -> list[int]:
        d = m.distances
        bad = [i for i in range(1, m.n) if math.isinf(d[0, i]) or math.isinf(d[i, 0])]
        if not bad:
            return list(range(m.n))
        bad_stops = [stops[i] for i in bad]
        if self.on_unreachable == "error" or (end_pinned and (m.n - 1) in bad):
            self.hooks.error(reason="unreachable", stops=[s.id for s in bad_stops])
            raise UnreachableStopError([s.id for s in bad_stops])
        for s in bad_stops:
            self.hooks.stop_dropped(stop_id=s.id, reason="unreachable")
        return [i for i in range(m.n) if i not in bad]

    # --------------------------------------------------------

    def plan(self, grid: Grid, stops: Sequence[Stop]) -> PlannedRoute:
        ordered, end_pinned = self.arrange(stops)
        if not ordered:
            return PlannedRoute([], [], 0.0, scale=grid.scale)

        waypoints = self._waypoints(grid, ordered)
        start = waypoints[0]
        if not grid.is_free(*start.cell):
            self.hooks.error(reason="start_blocked", stop=ordered[0].id, cell=start.cell)
            raise UnreachableStopError([ordered[0].id], f"start stop {ordered[0].id!r} is inside an obstacle")

        full = self.matrix_builder.build(grid, waypoints)
        keep = self._reachable(full, ordered, end_pinned)
        dropped = [ordered[i] for i in range(len(ordered)) if i not in keep]
        m = full.subset(keep)
        kept = [ordered[i] for i in keep]

        tour = self.optimizer.optimize(m.distances, end=m.n - 1 if end_pinned and m.n > 1 else None)

        legs = []
        for a, b in zip(tour.order, tour.order[1:]):
            path = m.paths[a][b] or []
            simplified = self.simplifier.simplify(path, grid) if self.simplify else list(path)
            legs.append(Leg(kept[a], kept[b], float(m.distances[a, b]), path, simplified))

        route = PlannedRoute(
            stops=[kept[i] for i in tour.order],
            legs=legs,
            total_distance=tour.length,
            scale=grid.scale,
            solver=tour.solver,
            dropped=dropped,
        )
        self.hooks.route_planned(
            stops=[s.id for s in route.stops], total_distance=route.total_distance, solver=tour.solver
        )
        return route
