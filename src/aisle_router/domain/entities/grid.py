from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass, field

import numpy as np

from aisle_router.domain.entities.geometry import BoundingBox, Cell, LineSegment, Point2D


@dataclass(eq=False)
class Grid:
    """
    Occupancy grid indexed ``cells[y, x]``; True marks an occupied cell.

    ``origin``/``offset``/``scale`` record how source coordinates were mapped
    into grid space so callers can place their own points on the same grid:
        cell = floor((v - origin) * scale) + offset
    """

    cells: np.ndarray
    origin: tuple[float, float] = (0.0, 0.0)
    offset: int = 0
    scale: float = 1.0

    def __post_init__(self):
        self.cells = np.asarray(self.cells, dtype=bool)

    @classmethod
    def empty(cls, width: int, height: int, **mapping) -> Grid:
        return cls(np.zeros((height, width), dtype=bool), **mapping)

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[int]]) -> Grid:
        """Build from nested rows of 0 (free) / 1 (occupied)."""
        return cls(np.array(rows, dtype=bool))

    @property
    def width(self) -> int:
        return int(self.cells.shape[1]) if self.cells.ndim == 2 else 0

    @property
    def height(self) -> int:
        return int(self.cells.shape[0]) if self.cells.ndim == 2 else 0

    @property
    def is_valid(self) -> bool:
        return self.cells.ndim == 2 and self.width > 0 and self.height > 0

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def is_free(self, x: int, y: int) -> bool:
        return self.in_bounds(x, y) and not self.cells[y, x]

    def occupied_count(self) -> int:
        return int(np.count_nonzero(self.cells))

    def with_cells(self, cells: np.ndarray) -> Grid:
        """Same source mapping, different occupancy."""
        return Grid(cells, origin=self.origin, offset=self.offset, scale=self.scale)

    def copy(self) -> Grid:
        return self.with_cells(self.cells.copy())

    def to_cell(self, p: Point2D) -> Cell:
        ox, oy = self.origin
        return (
            math.floor((p.x - ox) * self.scale) + self.offset,
            math.floor((p.y - oy) * self.scale) + self.offset,
        )

    def to_source(self, c: Cell) -> Point2D:
        ox, oy = self.origin
        return Point2D(
            (c[0] - self.offset) / self.scale + ox,
            (c[1] - self.offset) / self.scale + oy,
        )


@dataclass
class DeferredLayout:
    """Stand-in for a grid that would exceed the cell budget; keeps the raw geometry."""

    segments: list[LineSegment]
    bounds: BoundingBox
    margin: int
    width: int
    height: int
    max_cells: int = field(default=0)

    @property
    def cell_count(self) -> int:
        return self.width * self.height
