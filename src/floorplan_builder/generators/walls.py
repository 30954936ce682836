"""Wall synthesis from a frozen room placement.

Produces, in order:
- the exterior envelope: four load-bearing walls around the bounding box
  of all rooms, offset outward by a small margin, counter-clockwise
  South, East, North, West
- shared walls: one interior wall per pair of rooms whose facing edges
  lie within tolerance and overlap by more than the minimum length,
  centred between the two edges and tagged with both room ids
- partition walls: the remaining stretches of each room edge not covered
  by a shared wall or the envelope, tagged with that room only

Collinear, endpoint-connected walls of the same type and room set are
then merged until no merge applies. Rooms are processed in id order and
coordinates rounded, so identical input always gives identical walls.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from floorplan_builder.config import WallSettings
from floorplan_builder.models.elements import Wall, WallType
from floorplan_builder.models.geometry import Point2D
from floorplan_builder.models.placement import PlacedRoom
from floorplan_builder.queries.spatial import bounding_box, shared_edge

_DIGITS = 4


@dataclass
class Segment:
    """Axis-aligned wall segment before it becomes a Wall.

    axis "horizontal" runs along x at y = coordinate; "vertical" runs
    along y at x = coordinate. [lo, hi] is the extent along the run.
    """

    axis: str
    coordinate: float
    lo: float
    hi: float
    wall_type: WallType
    rooms: tuple[str, ...] = ()

    @property
    def length(self) -> float:
        return self.hi - self.lo


def synthesize_walls(
    rooms: Sequence[PlacedRoom],
    settings: Optional[WallSettings] = None,
) -> list[Wall]:
    """Derive the complete wall network for a placement.

    Args:
        rooms: Frozen placement.
        settings: Thicknesses, tolerances and minimum lengths.

    Returns:
        Exterior walls (wall_ext_1..4) followed by interior walls
        (wall_int_1..N) in coordinate order. Empty if there are no rooms.
    """
    settings = settings or WallSettings()
    if not rooms:
        return []
    ordered = sorted(rooms, key=lambda r: r.id)

    envelope = envelope_segments(ordered, settings)
    shared = shared_segments(ordered, settings)
    partitions = partition_segments(ordered, shared + envelope, settings)
    interior = merge_collinear(shared + partitions, settings.shared_tolerance)

    walls: list[Wall] = []
    for i, seg in enumerate(envelope, start=1):
        walls.append(_to_wall(seg, f"wall_ext_{i}", settings, reverse=i in (3, 4)))
    interior.sort(key=lambda s: (s.axis, s.coordinate, s.lo, s.rooms))
    for i, seg in enumerate(interior, start=1):
        walls.append(_to_wall(seg, f"wall_int_{i}", settings))
    return walls


def envelope_segments(rooms: Sequence[PlacedRoom], settings: WallSettings) -> list[Segment]:
    """South, East, North, West envelope segments around all rooms."""
    box = bounding_box(rooms)
    m = settings.envelope_margin
    x0 = _r(box.x - m)
    y0 = _r(box.y - m)
    x1 = _r(box.right + m)
    y1 = _r(box.top + m)
    ext = WallType.EXTERIOR
    return [
        Segment("horizontal", y0, x0, x1, ext),
        Segment("vertical", x1, y0, y1, ext),
        Segment("horizontal", y1, x0, x1, ext),
        Segment("vertical", x0, y0, y1, ext),
    ]


def shared_segments(rooms: Sequence[PlacedRoom], settings: WallSettings) -> list[Segment]:
    """One interior segment per room pair with facing edges long enough to share."""
    segments: list[Segment] = []
    for i, a in enumerate(rooms):
        for b in rooms[i + 1:]:
            edge = shared_edge(a, b, settings.shared_tolerance)
            if edge is None or edge.length <= settings.min_length:
                continue
            segments.append(Segment(
                edge.axis,
                _r(edge.coordinate),
                _r(edge.start),
                _r(edge.end),
                WallType.INTERIOR,
                tuple(sorted((a.id, b.id))),
            ))
    return segments


def partition_segments(
    rooms: Sequence[PlacedRoom],
    covering: Sequence[Segment],
    settings: WallSettings,
) -> list[Segment]:
    """Segments for every stretch of a room edge no other wall covers."""
    tol = settings.shared_tolerance
    segments: list[Segment] = []
    for room in rooms:
        sides = (
            ("horizontal", room.y, room.x, room.right),
            ("vertical", room.right, room.y, room.top),
            ("horizontal", room.top, room.x, room.right),
            ("vertical", room.x, room.y, room.top),
        )
        for axis, coord, lo, hi in sides:
            covered = [
                (seg.lo, seg.hi)
                for seg in covering
                if seg.axis == axis
                and abs(seg.coordinate - coord) <= tol
                and (seg.wall_type == WallType.EXTERIOR or room.id in seg.rooms)
            ]
            for piece_lo, piece_hi in _subtract(lo, hi, covered):
                if piece_hi - piece_lo > settings.min_length:
                    segments.append(Segment(
                        axis, _r(coord), _r(piece_lo), _r(piece_hi),
                        WallType.INTERIOR, (room.id,),
                    ))
    return segments


def merge_collinear(segments: Sequence[Segment], tolerance: float) -> list[Segment]:
    """Merge collinear, touching or overlapping segments of the same type and rooms.

    Repeats until no pair can be merged. The merged segment spans both
    inputs and sits at their length-weighted mean coordinate.
    """
    merged = [Segment(s.axis, s.coordinate, s.lo, s.hi, s.wall_type, s.rooms) for s in segments]
    changed = True
    while changed:
        changed = False
        for i in range(len(merged)):
            a = merged[i]
            for j in range(i + 1, len(merged)):
                b = merged[j]
                if (
                    a.axis != b.axis
                    or a.wall_type != b.wall_type
                    or a.rooms != b.rooms
                    or abs(a.coordinate - b.coordinate) > tolerance
                    or b.lo > a.hi + tolerance
                    or a.lo > b.hi + tolerance
                ):
                    continue
                total = a.length + b.length
                coordinate = (
                    (a.coordinate * a.length + b.coordinate * b.length) / total
                    if total > 0 else a.coordinate
                )
                merged[i] = Segment(
                    a.axis, _r(coordinate), min(a.lo, b.lo), max(a.hi, b.hi),
                    a.wall_type, a.rooms,
                )
                del merged[j]
                changed = True
                break
            if changed:
                break
    return merged


def _subtract(lo: float, hi: float, covered: list[tuple[float, float]]) -> list[tuple[float, float]]:
    """Parts of [lo, hi] outside every covered interval."""
    pieces = []
    cursor = lo
    for c_lo, c_hi in sorted(covered):
        if c_hi <= cursor:
            continue
        if c_lo >= hi:
            break
        if c_lo > cursor:
            pieces.append((cursor, min(c_lo, hi)))
        cursor = max(cursor, c_hi)
    if cursor < hi:
        pieces.append((cursor, hi))
    return pieces


def _to_wall(seg: Segment, wall_id: str, settings: WallSettings, reverse: bool = False) -> Wall:
    lo, hi = (seg.hi, seg.lo) if reverse else (seg.lo, seg.hi)
    if seg.axis == "horizontal":
        start = Point2D(x=lo, y=seg.coordinate)
        end = Point2D(x=hi, y=seg.coordinate)
    else:
        start = Point2D(x=seg.coordinate, y=lo)
        end = Point2D(x=seg.coordinate, y=hi)
    exterior = seg.wall_type == WallType.EXTERIOR
    return Wall(
        id=wall_id,
        wall_type=seg.wall_type,
        thickness=settings.exterior_thickness if exterior else settings.interior_thickness,
        start=start,
        end=end,
        structural_load=exterior,
        adjacent_rooms=list(seg.rooms),
    )


def _r(value: float) -> float:
    return round(value, _DIGITS)
