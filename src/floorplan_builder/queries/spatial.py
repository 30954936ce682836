"""Rectangle and wall geometry queries.

All functions take rectangles duck-typed by ``x``, ``y``, ``width`` and
``height`` (PlacedRoom, Bounds) and are pure. They back the scorer, the
optimizer's validity test, the wall synthesizer and the validators.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Optional, Protocol

from floorplan_builder.models.elements import Wall
from floorplan_builder.models.geometry import Bounds


class Rect(Protocol):
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class SharedEdge:
    """Boundary segment two rectangles have in common.

    axis is "vertical" (a wall of constant x) or "horizontal" (constant y);
    coordinate is the midline between the two facing edges; [start, end] is
    the overlap along the other axis.
    """

    axis: str
    coordinate: float
    start: float
    end: float

    @property
    def length(self) -> float:
        return self.end - self.start


def rects_overlap(a: Rect, b: Rect, margin: float = 0.0) -> bool:
    """True if the rectangles intersect once ``a`` is expanded by margin.

    Strict inequalities: rectangles exactly ``margin`` apart do not overlap.
    """
    return (
        a.x - margin < b.x + b.width
        and b.x < a.x + a.width + margin
        and a.y - margin < b.y + b.height
        and b.y < a.y + a.height + margin
    )


def overlap_area(a: Rect, b: Rect) -> float:
    """Area of the intersection of two rectangles (0 if disjoint)."""
    w = min(a.x + a.width, b.x + b.width) - max(a.x, b.x)
    h = min(a.y + a.height, b.y + b.height) - max(a.y, b.y)
    if w <= 0 or h <= 0:
        return 0.0
    return w * h


def _span_overlap(a0: float, a1: float, b0: float, b1: float) -> tuple[float, float]:
    return max(a0, b0), min(a1, b1)


def shared_edge(a: Rect, b: Rect, tolerance: float) -> Optional[SharedEdge]:
    """Facing edges of two rectangles within tolerance, with their overlap.

    Returns None when no pair of facing edges is within tolerance or the
    perpendicular overlap is negative. A zero-length overlap (corner
    contact) is returned as a SharedEdge of length 0.
    """
    a_right = a.x + a.width
    b_right = b.x + b.width
    a_top = a.y + a.height
    b_top = b.y + b.height

    lo, hi = _span_overlap(a.y, a_top, b.y, b_top)
    if hi >= lo:
        if abs(a_right - b.x) <= tolerance:
            return SharedEdge("vertical", (a_right + b.x) / 2, lo, hi)
        if abs(b_right - a.x) <= tolerance:
            return SharedEdge("vertical", (b_right + a.x) / 2, lo, hi)

    lo, hi = _span_overlap(a.x, a_right, b.x, b_right)
    if hi >= lo:
        if abs(a_top - b.y) <= tolerance:
            return SharedEdge("horizontal", (a_top + b.y) / 2, lo, hi)
        if abs(b_top - a.y) <= tolerance:
            return SharedEdge("horizontal", (b_top + a.y) / 2, lo, hi)
    return None


def are_adjacent(a: Rect, b: Rect, tolerance: float = 0.2) -> bool:
    """Rooms touch: facing edges within tolerance and overlapping perpendicular spans."""
    return shared_edge(a, b, tolerance) is not None


def shared_length(a: Rect, b: Rect, tolerance: float = 0.2) -> float:
    edge = shared_edge(a, b, tolerance)
    return edge.length if edge else 0.0


def center_distance(a: Rect, b: Rect) -> float:
    return math.hypot(
        (a.x + a.width / 2) - (b.x + b.width / 2),
        (a.y + a.height / 2) - (b.y + b.height / 2),
    )


def bounding_box(rects: Iterable[Rect]) -> Bounds:
    """Smallest axis-aligned box containing all rectangles."""
    rects = list(rects)
    if not rects:
        return Bounds(x=0, y=0, width=0, height=0)
    x0 = min(r.x for r in rects)
    y0 = min(r.y for r in rects)
    x1 = max(r.x + r.width for r in rects)
    y1 = max(r.y + r.height for r in rects)
    return Bounds(x=x0, y=y0, width=x1 - x0, height=y1 - y0)


def touches_boundary(rect: Rect, bounds: Bounds, tolerance: float) -> bool:
    """True if any edge of rect lies within tolerance of the bounds' outline."""
    return (
        abs(rect.x - bounds.x) <= tolerance
        or abs(rect.y - bounds.y) <= tolerance
        or abs(rect.x + rect.width - bounds.right) <= tolerance
        or abs(rect.y + rect.height - bounds.top) <= tolerance
    )


def wall_contact(rect: Rect, wall: Wall, tolerance: float) -> Optional[tuple[float, float]]:
    """Stretch of the wall that a rectangle's edge runs along.

    Returns (from, to) in meters measured from the wall's start, or None
    when no edge of the rectangle lies within tolerance of the wall line
    with a positive overlap. Only axis-aligned walls are considered.
    """
    if wall.is_horizontal:
        line = wall.start.y
        if min(abs(rect.y - line), abs(rect.y + rect.height - line)) > tolerance:
            return None
        lo, hi = _span_overlap(
            rect.x, rect.x + rect.width,
            min(wall.start.x, wall.end.x), max(wall.start.x, wall.end.x),
        )
    elif wall.is_vertical:
        line = wall.start.x
        if min(abs(rect.x - line), abs(rect.x + rect.width - line)) > tolerance:
            return None
        lo, hi = _span_overlap(
            rect.y, rect.y + rect.height,
            min(wall.start.y, wall.end.y), max(wall.start.y, wall.end.y),
        )
    else:
        return None
    if hi - lo <= 1e-9:
        return None
    if wall.is_horizontal:
        s0, s1 = wall.project(lo, line), wall.project(hi, line)
    else:
        s0, s1 = wall.project(line, lo), wall.project(line, hi)
    return min(s0, s1), max(s0, s1)


def point_near_rect(px: float, py: float, rect: Rect, tolerance: float) -> bool:
    """True if the point lies inside the rectangle expanded by tolerance."""
    return (
        rect.x - tolerance <= px <= rect.x + rect.width + tolerance
        and rect.y - tolerance <= py <= rect.y + rect.height + tolerance
    )
