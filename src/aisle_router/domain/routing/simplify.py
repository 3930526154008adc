# aisle_router/domain/routing/simplify.py
from aisle_router.domain.entities.geometry import Cell, Path
from aisle_router.domain.entities.grid import Grid
from aisle_router.domain.layout.raster import line_cells


def has_line_of_sight(a: Cell, b: Cell, grid: Grid) -> bool:
    """True when every cell on the Bresenham line a->b is inside the grid and free."""
    return all(grid.is_free(x, y) for x, y in line_cells(a[0], a[1], b[0], b[1]))


class PathSimplifier:
    """
    Greedy line-of-sight smoothing: from the current anchor, jump to the furthest
    later point that is still directly visible, scanning forward until the first
    blocked point. Not a global optimum.
    """

    def simplify(self, path: Path, grid: Grid) -> Path:
        if len(path) < 3:
            return list(path)

        out = [path[0]]
        anchor = 0
        last = len(path) - 1
        while anchor < last:
            furthest = anchor + 1
            for i in range(anchor + 2, len(path)):
                if not has_line_of_sight(path[anchor], path[i], grid):
                    break
                furthest = i
            out.append(path[furthest])
            anchor = furthest
        return out
