# tests/layout/test_extract.py
from types import SimpleNamespace

import numpy as np
import pytest

from aisle_router.domain.entities.cad import LineEntity, PolylineEntity, VertexLine
from aisle_router.domain.entities.geometry import BoundingBox, LineSegment, Point2D
from aisle_router.domain.layout.extract import SegmentExtractor, as_point, classify


def P(x, y):
    return Point2D(float(x), float(y))


# ---------- classification


def test_line_with_start_end_mappings():
    shape = classify({"type": "LINE", "start": {"x": 1, "y": 2}, "end": {"x": 4, "y": 6}})
    assert shape == LineEntity(P(1, 2), P(4, 6))


def test_line_with_start_point_end_point_attributes():
    e = SimpleNamespace(type="LINE", startPoint=SimpleNamespace(x=0, y=0), endPoint=SimpleNamespace(x=3, y=0))
    assert classify(e) == LineEntity(P(0, 0), P(3, 0))


def test_line_with_vertices_uses_first_two():
    shape = classify({"type": "LINE", "vertices": [{"x": 0, "y": 0}, {"x": 5, "y": 5}, {"x": 9, "y": 9}]})
    assert isinstance(shape, VertexLine)
    assert shape.segments() == [LineSegment(P(0, 0), P(5, 5))]


def test_flat_coordinate_fields():
    assert classify({"type": "LINE", "x": 1, "y": 1, "x1": 2.5, "y1": 7}) == LineEntity(P(1, 1), P(2.5, 7))


def test_closed_polyline_adds_closing_segment():
    sq = [(0, 0), (4, 0), (4, 4), (0, 4)]
    closed = classify({"type": "LWPOLYLINE", "vertices": sq, "closed": True})
    opened = classify({"type": "LWPOLYLINE", "vertices": sq})
    assert isinstance(closed, PolylineEntity)
    assert len(closed.segments()) == 4
    assert closed.segments()[-1] == LineSegment(P(0, 4), P(0, 0))
    assert len(opened.segments()) == 3


def test_closed_two_vertex_polyline_is_not_doubled():
    shape = classify({"type": "POLYLINE", "vertices": [(0, 0), (3, 0)], "closed": True})
    assert len(shape.segments()) == 1


@pytest.mark.parametrize(
    "entity",
    [
        {"type": "CIRCLE", "center": {"x": 0, "y": 0}, "radius": 3},
        {"type": "LINE"},
        {"type": "LINE", "start": {"x": "a", "y": 0}, "end": {"x": 1, "y": 1}},
        {"type": "LINE", "start": {"x": float("nan"), "y": 0}, "end": {"x": 1, "y": 1}},
        {"type": "LINE", "start": {"x": True, "y": 0}, "end": {"x": 1, "y": 1}},
        {"type": "LWPOLYLINE", "vertices": [(0, 0)]},
        {"type": "LWPOLYLINE", "vertices": [(0, 0), (1, None)]},
        "not an entity",
        None,
    ],
)
def test_unrecognized_shapes_are_none(entity):
    assert classify(entity) is None


def test_as_point_accepts_sequences_and_objects():
    assert as_point((1, 2, 0)) == P(1, 2)
    assert as_point(SimpleNamespace(x=3, y=4)) == P(3, 4)
    assert as_point((1,)) is None
    assert as_point("12") is None


def test_numpy_points_and_vertex_arrays():
    assert as_point(np.array([1.5, 2.0])) == P(1.5, 2.0)
    assert as_point(np.array(3.0)) is None
    e = {"type": "LWPOLYLINE", "vertices": np.array([[0, 0], [4, 0], [4, 3]]), "closed": True}
    shape = classify(e)
    assert isinstance(shape, PolylineEntity)
    assert len(shape.segments()) == 3
    assert shape.vertices[2] == P(4, 3)


# ---------- extractor


def test_extractor_skips_bad_entities_and_accumulates_bounds():
    entities = [
        {"type": "LINE", "start": {"x": -2, "y": 1}, "end": {"x": 3, "y": 1}},
        {"type": "TEXT", "text": "Aisle 4"},
        {"type": "LWPOLYLINE", "vertices": [(0, 0), (10, 0), (10, 5)], "closed": True},
        {"type": "LINE", "start": {"x": 1}, "end": {"x": 2, "y": 2}},
    ]
    out = SegmentExtractor().extract(entities)
    assert len(out.segments) == 4
    assert out.skipped == 2
    assert out.bounds == BoundingBox(-2.0, 0.0, 10.0, 5.0)
    assert out.kinds["LineEntity"] == 1 and out.kinds["PolylineEntity"] == 1


def test_extractor_with_nothing_usable():
    out = SegmentExtractor().extract([{"type": "TEXT"}])
    assert out.segments == []
    assert out.bounds is None
    assert out.skipped == 1
