from typing import Protocol, runtime_checkable

import numpy as np

from aisle_router.domain.entities.geometry import Path
from aisle_router.domain.entities.grid import Grid


# ------------- Routing --------------------
@runtime_checkable
class Pathfinder(Protocol):
    """
    Responsibilities:
      • Find a shortest obstacle-free path between two grid cells.
      • Return [] (never raise) for a missing, malformed or out-of-bounds query
        and when no path exists.
    """

    def find_path(self, grid: Grid, start, goal) -> Path: ...


@runtime_checkable
class TourSolver(Protocol):
    """
    Responsibilities:
      • Order the stops of an open path starting at index 0.
      • Optionally keep ``end`` as the last stop.
    The matrix is already validated when this is called.
    """

    name: str

    def solve(self, dist: np.ndarray, *, end: int | None = None) -> list[int]: ...
