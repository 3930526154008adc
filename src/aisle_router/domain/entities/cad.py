from __future__ import annotations

from dataclasses import dataclass

from aisle_router.domain.entities.geometry import LineSegment, Point2D


# Recognized entity shapes; every variant carries already-validated coordinates
@dataclass(frozen=True)
class LineEntity:
    start: Point2D
    end: Point2D

    def segments(self) -> list[LineSegment]:
        return [LineSegment(self.start, self.end)]


@dataclass(frozen=True)
class VertexLine:
    """LINE written as a vertex list (seen in some AutoCAD 2018 exports); first two vertices count."""

    vertices: tuple[Point2D, ...]

    def segments(self) -> list[LineSegment]:
        return [LineSegment(self.vertices[0], self.vertices[1])]


@dataclass(frozen=True)
class PolylineEntity:
    vertices: tuple[Point2D, ...]
    closed: bool = False

    def segments(self) -> list[LineSegment]:
        vs = self.vertices
        out = [LineSegment(vs[i], vs[i + 1]) for i in range(len(vs) - 1)]
        if self.closed and len(vs) > 2:
            out.append(LineSegment(vs[-1], vs[0]))
        return out


CadEntity = LineEntity | VertexLine | PolylineEntity
