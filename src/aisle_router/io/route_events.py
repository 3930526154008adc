# aisle_router/io/route_events.py

from dataclasses import dataclass
from typing import Literal


# Base type for planning records handed to a Recorder
@dataclass
class RouteEvent:
    run_id: str
    name: str  # stable event name


@dataclass
class LayoutDeferredEvent(RouteEvent):
    width: int
    height: int
    max_cells: int


@dataclass
class StopDroppedEvent(RouteEvent):
    stop_id: str
    reason: Literal["unreachable"]


@dataclass
class RoutePlannedEvent(RouteEvent):
    stops: list[str]
    total_distance: float
    solver: str
