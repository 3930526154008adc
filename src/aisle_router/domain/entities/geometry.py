from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass

# Grid cell as (x, y); a Path is an ordered list of cells, [] means "no path"
Cell = tuple[int, int]
Path = list[Cell]


# Core geometry types used by the layout pipeline
@dataclass(frozen=True)
class Point2D:
    x: float  # source drawing units
    y: float


@dataclass(frozen=True)
class LineSegment:
    start: Point2D
    end: Point2D


@dataclass(frozen=True)
class BoundingBox:
    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @classmethod
    def of(cls, segments: Iterable[LineSegment]) -> BoundingBox | None:
        box = None
        for seg in segments:
            box = seg_box(seg) if box is None else box.union(seg_box(seg))
        return box

    def union(self, other: BoundingBox) -> BoundingBox:
        return BoundingBox(
            min(self.min_x, other.min_x),
            min(self.min_y, other.min_y),
            max(self.max_x, other.max_x),
            max(self.max_y, other.max_y),
        )

    def width(self, margin: int = 0) -> int:
        """Grid columns needed to hold the box plus ``margin`` cells."""
        return math.ceil(self.max_x - self.min_x) + 1 + margin

    def height(self, margin: int = 0) -> int:
        return math.ceil(self.max_y - self.min_y) + 1 + margin


def seg_box(seg: LineSegment) -> BoundingBox:
    a, b = seg.start, seg.end
    return BoundingBox(min(a.x, b.x), min(a.y, b.y), max(a.x, b.x), max(a.y, b.y))


@dataclass(frozen=True)
class Waypoint:
    x: int  # grid column
    y: int  # grid row
    tag: object | None = None  # opaque domain identity (e.g. a stop id)

    @property
    def cell(self) -> Cell:
        return (self.x, self.y)


def step_length(a: Cell, b: Cell) -> float:
    return math.hypot(b[0] - a[0], b[1] - a[1])


def path_length(path: Path) -> float:
    """Euclidean length along a path: 1 per orthogonal step, sqrt(2) per diagonal."""
    return sum(step_length(path[k], path[k + 1]) for k in range(len(path) - 1))
