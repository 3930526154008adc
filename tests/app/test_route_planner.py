# tests/app/test_route_planner.py
import pytest

from aisle_router.app.hooks import NoopHooks
from aisle_router.app.planner import RoutePlanner, Stop, select_stops
from aisle_router.domain.entities.geometry import Point2D, path_length
from aisle_router.domain.entities.grid import Grid
from aisle_router.domain.errors import MalformedQueryError, UnreachableStopError
from aisle_router.domain.routing.astar import AStarPathfinder
from aisle_router.domain.routing.matrix import DistanceMatrixBuilder
from aisle_router.domain.routing.tsp import RouteOptimizer


class RecordingHooks(NoopHooks):
    def __init__(self):
        self.dropped, self.errors, self.planned = [], [], []

    def stop_dropped(self, *, stop_id, reason):
        self.dropped.append((stop_id, reason))

    def error(self, *, reason, **kw):
        self.errors.append(reason)

    def route_planned(self, **kw):
        self.planned.append(kw)


def make_planner(hooks=None, **kw) -> RoutePlanner:
    return RoutePlanner(
        matrix_builder=DistanceMatrixBuilder(AStarPathfinder()),
        optimizer=RouteOptimizer(),
        hooks=hooks,
        **kw,
    )


def enclose(grid: Grid, x: int, y: int) -> Grid:
    g = grid.copy()
    g.cells[y - 1 : y + 2, x - 1 : x + 2] = True
    g.cells[y, x] = False
    return g


@pytest.fixture
def store() -> Grid:
    # a shelf wall at x=10 with one gap at y=5
    g = Grid.empty(20, 11)
    g.cells[:, 10] = True
    g.cells[5, 10] = False
    return g


@pytest.fixture
def stops() -> list[Stop]:
    return [
        Stop("milk", 15, 8, categories=frozenset({"dairy"})),
        Stop("exit", 18, 2, is_end=True),
        Stop("bread", 5, 9, categories=frozenset({"bakery"})),
        Stop("door", 2, 2, is_start=True),
    ]


# ---------- Stop selection & ordering


def test_select_stops_keeps_terminals(stops):
    picked = select_stops(stops, ["dairy"])
    assert [s.id for s in picked] == ["milk", "exit", "door"]
    assert [s.id for s in select_stops(stops, [])] == ["exit", "door"]


def test_arrange_puts_start_first_and_end_last(stops):
    ordered, pinned = RoutePlanner.arrange(stops)
    assert [s.id for s in ordered] == ["door", "milk", "bread", "exit"]
    assert pinned is True
    ordered, pinned = RoutePlanner.arrange(stops[:1])
    assert [s.id for s in ordered] == ["milk"] and pinned is False


@pytest.mark.parametrize(
    "bad",
    [
        [Stop("a", 1, 1, is_start=True), Stop("b", 2, 2, is_start=True)],
        [Stop("a", 1, 1, is_end=True), Stop("b", 2, 2, is_end=True)],
        [Stop("a", 1, 1, is_start=True, is_end=True)],
    ],
)
def test_arrange_rejects_ambiguous_terminals(bad):
    with pytest.raises(MalformedQueryError):
        RoutePlanner.arrange(bad)


# ---------- Planning


def test_plan_visits_everything_between_pinned_terminals(store, stops):
    hooks = RecordingHooks()
    route = make_planner(hooks).plan(store, stops)

    assert route.stops[0].id == "door" and route.stops[-1].id == "exit"
    assert sorted(s.id for s in route.stops) == ["bread", "door", "exit", "milk"]
    assert route.solver == "brute_force"
    assert len(route.legs) == 3
    assert route.total_distance == pytest.approx(sum(leg.distance for leg in route.legs))
    for leg in route.legs:
        assert leg.path[0] == store.to_cell(leg.start.point)
        assert leg.path[-1] == store.to_cell(leg.end.point)
        assert leg.distance == pytest.approx(path_length(leg.path))
        assert leg.simplified[0] == leg.path[0] and leg.simplified[-1] == leg.path[-1]
    # crossing the shelf forces the gap
    assert any((10, 5) in leg.path for leg in route.legs)
    assert route.dropped == []
    assert hooks.planned[0]["stops"] == [s.id for s in route.stops]


def test_single_stop_and_no_stops(store):
    route = make_planner().plan(store, [Stop("only", 3, 3)])
    assert [s.id for s in route.stops] == ["only"]
    assert route.legs == [] and route.total_distance == 0.0
    empty = make_planner().plan(store, [])
    assert empty.stops == [] and empty.total_distance == 0.0


def test_enclosed_stop_is_dropped(store, stops):
    hooks = RecordingHooks()
    route = make_planner(hooks).plan(enclose(store, 15, 8), stops)
    assert [s.id for s in route.dropped] == ["milk"]
    assert "milk" not in [s.id for s in route.stops]
    assert route.stops[-1].id == "exit"
    assert hooks.dropped == [("milk", "unreachable")]


def test_enclosed_stop_raises_under_error_policy(store, stops):
    hooks = RecordingHooks()
    with pytest.raises(UnreachableStopError) as exc:
        make_planner(hooks, on_unreachable="error").plan(enclose(store, 15, 8), stops)
    assert exc.value.stop_ids == ["milk"]
    assert hooks.errors == ["unreachable"]


def test_unreachable_end_always_raises(store, stops):
    with pytest.raises(UnreachableStopError) as exc:
        make_planner().plan(enclose(store, 18, 2), stops)
    assert "exit" in exc.value.stop_ids


def test_stop_outside_grid(store):
    with pytest.raises(MalformedQueryError):
        make_planner().plan(store, [Stop("door", 2, 2, is_start=True), Stop("far", 25, 3)])


def test_start_inside_wall(store):
    with pytest.raises(UnreachableStopError):
        make_planner().plan(store, [Stop("door", 10, 0, is_start=True), Stop("a", 3, 3)])


def test_geometry_is_in_source_units(stops, store):
    route = make_planner().plan(store, stops)
    pts = route.geometry(store)
    assert pts[0] == Point2D(2.0, 2.0)
    assert pts[-1] == Point2D(18.0, 2.0)
    assert route.source_distance == pytest.approx(route.total_distance)


def test_unsimplified_legs_keep_raw_paths(store, stops):
    route = make_planner(simplify=False).plan(store, stops)
    assert all(leg.simplified == leg.path for leg in route.legs)
