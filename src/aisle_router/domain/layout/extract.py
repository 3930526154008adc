# aisle_router/domain/layout/extract.py
import logging
import math
from collections import Counter
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from numbers import Real

import numpy as np

from aisle_router.domain.entities.cad import CadEntity, LineEntity, PolylineEntity, VertexLine
from aisle_router.domain.entities.geometry import BoundingBox, LineSegment, Point2D

log = logging.getLogger(__name__)

POLYLINE_TYPES = {"LWPOLYLINE", "POLYLINE"}
LINE_TYPES = {"LINE", None}


@dataclass
class Extraction:
    segments: list[LineSegment] = field(default_factory=list)
    bounds: BoundingBox | None = None
    skipped: int = 0
    kinds: Counter = field(default_factory=Counter)  # variant name -> accepted entities


# ---------------- field probing ----------------


def _get(e, name: str):
    if isinstance(e, Mapping):
        return e.get(name)
    return getattr(e, name, None)


def _num(v) -> float | None:
    # bool is an int subclass; a True coordinate is a data error, not 1.0
    if isinstance(v, bool) or not isinstance(v, Real):
        return None
    f = float(v)
    return f if math.isfinite(f) else None


def _is_seq(v) -> bool:
    if isinstance(v, np.ndarray):
        return v.ndim >= 1
    return isinstance(v, Sequence) and not isinstance(v, str)


def as_point(v) -> Point2D | None:
    """Accept {x, y} mappings, objects with .x/.y, or (x, y[, z]) sequences and arrays."""
    if v is None:
        return None
    if isinstance(v, Point2D):
        return v
    if _is_seq(v):
        if len(v) < 2:
            return None
        x, y = _num(v[0]), _num(v[1])
    else:
        x, y = _num(_get(v, "x")), _num(_get(v, "y"))
    if x is None or y is None:
        return None
    return Point2D(x, y)


def _vertices(e) -> tuple[Point2D, ...] | None:
    raw = _get(e, "vertices")
    if not _is_seq(raw) or len(raw) < 2:
        return None
    pts = tuple(as_point(v) for v in raw)
    if any(p is None for p in pts):
        return None
    return pts


# ---------------- classification ----------------


def classify(e) -> CadEntity | None:
    """Map a loosely-typed entity onto one recognized shape, or None when it has none."""
    kind = _get(e, "type")
    kind = kind.upper() if isinstance(kind, str) else None

    if kind in POLYLINE_TYPES:
        vs = _vertices(e)
        return PolylineEntity(vs, closed=bool(_get(e, "closed") or _get(e, "shape"))) if vs else None
    if kind not in LINE_TYPES:
        return None

    for a, b in (("start", "end"), ("startPoint", "endPoint")):
        p, q = as_point(_get(e, a)), as_point(_get(e, b))
        if p is not None and q is not None:
            return LineEntity(p, q)

    vs = _vertices(e)
    if vs:
        if kind == "LINE":
            return VertexLine(vs)
        # untyped vertex chain
        return PolylineEntity(vs, closed=bool(_get(e, "closed")))

    x, y, x1, y1 = (_num(_get(e, f)) for f in ("x", "y", "x1", "y1"))
    if None not in (x, y, x1, y1):
        return LineEntity(Point2D(x, y), Point2D(x1, y1))
    return None


class SegmentExtractor:
    def extract(self, entities: Iterable) -> Extraction:
        out = Extraction()
        for e in entities:
            shape = classify(e)
            if shape is None:
                out.skipped += 1
                continue
            segs = shape.segments()
            out.segments.extend(segs)
            out.kinds[type(shape).__name__] += 1
            box = BoundingBox.of(segs)
            out.bounds = box if out.bounds is None else out.bounds.union(box)
        if out.skipped:
            log.warning(
                "skipped entities without usable geometry",
                extra={"extra": {"skipped": out.skipped, "accepted": sum(out.kinds.values())}},
            )
        return out
