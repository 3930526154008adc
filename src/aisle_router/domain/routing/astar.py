# aisle_router/domain/routing/astar.py
import heapq
import logging
import math
from itertools import count
from numbers import Integral
from typing import Literal

from aisle_router.app.protocols import Pathfinder
from aisle_router.domain.entities.geometry import Cell, Path, Waypoint
from aisle_router.domain.entities.grid import Grid

log = logging.getLogger(__name__)

SQRT2 = math.sqrt(2.0)
MOVES = (
    (1, 0, 1.0),
    (-1, 0, 1.0),
    (0, 1, 1.0),
    (0, -1, 1.0),
    (1, 1, SQRT2),
    (1, -1, SQRT2),
    (-1, 1, SQRT2),
    (-1, -1, SQRT2),
)

CornerRule = Literal["unless_both_blocked", "only_when_clear"]


def octile(a: Cell, b: Cell) -> float:
    dx, dy = abs(a[0] - b[0]), abs(a[1] - b[1])
    return (dx + dy) + (SQRT2 - 2.0) * min(dx, dy)


def as_cell(p) -> Cell | None:
    if isinstance(p, Waypoint):
        return p.cell
    if not isinstance(p, (tuple, list)) or len(p) != 2:
        return None
    x, y = p
    if isinstance(x, bool) or isinstance(y, bool):
        return None
    if not isinstance(x, Integral) or not isinstance(y, Integral):
        return None
    return (int(x), int(y))


class AStarPathfinder(Pathfinder):
    """
    8-connected A* with unit orthogonal and sqrt(2) diagonal steps.

    Diagonal steps may not cut corners: with ``unless_both_blocked`` a diagonal is
    refused only when both orthogonal cells beside it are occupied, with
    ``only_when_clear`` it is refused when either one is.
    """

    def __init__(self, corner_rule: CornerRule = "unless_both_blocked"):
        if corner_rule not in ("unless_both_blocked", "only_when_clear"):
            raise ValueError(f"Unknown corner rule {corner_rule!r}")
        self.corner_rule = corner_rule

    def _valid(self, grid, start, goal) -> tuple[Cell, Cell] | None:
        if not isinstance(grid, Grid) or not grid.is_valid:
            log.warning("invalid grid for pathfinding")
            return None
        s, g = as_cell(start), as_cell(goal)
        if s is None or g is None:
            log.warning("invalid start or goal", extra={"extra": {"start": start, "goal": goal}})
            return None
        if not grid.in_bounds(*s) or not grid.in_bounds(*g):
            log.warning(
                "pathfinding coordinates out of bounds",
                extra={"extra": {"start": s, "goal": g, "grid": (grid.width, grid.height)}},
            )
            return None
        if not grid.is_free(*s) or not grid.is_free(*g):
            log.debug("start or goal inside an obstacle", extra={"extra": {"start": s, "goal": g}})
            return None
        return s, g

    def find_path(self, grid: Grid, start, goal) -> Path:
        checked = self._valid(grid, start, goal)
        if checked is None:
            return []
        s, g = checked
        if s == g:
            return [s]

        cells = grid.cells
        w, h = grid.width, grid.height
        strict = self.corner_rule == "only_when_clear"

        seq = count()
        heap = [(octile(s, g), next(seq), s)]
        g_score = {s: 0.0}
        came: dict[Cell, Cell] = {}
        closed: set[Cell] = set()

        while heap:
            _, _, cur = heapq.heappop(heap)
            if cur in closed:
                continue
            if cur == g:
                return _reconstruct(came, cur)
            closed.add(cur)
            x, y = cur
            gc = g_score[cur]
            for dx, dy, step in MOVES:
                nx, ny = x + dx, y + dy
                if not (0 <= nx < w and 0 <= ny < h) or cells[ny, nx]:
                    continue
                if dx and dy:
                    side_a, side_b = cells[y, nx], cells[ny, x]
                    if (side_a or side_b) if strict else (side_a and side_b):
                        continue
                nxt = (nx, ny)
                if nxt in closed:
                    continue
                ng = gc + step
                if ng < g_score.get(nxt, math.inf):
                    g_score[nxt] = ng
                    came[nxt] = cur
                    heapq.heappush(heap, (ng + octile(nxt, g), next(seq), nxt))
        return []


def _reconstruct(came: dict[Cell, Cell], cur: Cell) -> Path:
    path = [cur]
    while cur in came:
        cur = came[cur]
        path.append(cur)
    path.reverse()
    return path
