"""Opening placement: entrance door, interior doors and windows.

Three passes, in order:

1. Entrance door on the exterior wall facing the declared entrance
   direction (longest exterior wall as fallback), lined up with the room
   the entrance strategy prefers (living room, hallway, mudroom, ...).
2. Interior doors: one in the middle of every shared wall that connects a
   circulation hub (hallway, foyer, living room) to another room or that
   realises an adjacency edge. The leaf opens into the more private room.
3. Windows on exterior walls for every room that requires daylight,
   sized from the room's floor area.

Openings that do not fit (wall shorter than the opening plus clearance on
both sides) are skipped and reported, never forced.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Sequence

from floorplan_builder.config import OpeningSettings
from floorplan_builder.generators.templates import Typology, classify_typology
from floorplan_builder.models.elements import (
    Opening,
    OpeningProperties,
    OpeningType,
    Wall,
)
from floorplan_builder.models.placement import PlacedRoom
from floorplan_builder.models.spec import (
    CIRCULATION_HUBS,
    ZONE_ORDER,
    AdjacencyEdge,
    AdjacencyType,
    EntranceDirection,
    FloorPlanSpecification,
    RoomType,
)
from floorplan_builder.queries.spatial import wall_contact

logger = logging.getLogger(__name__)


class EntranceType(str, Enum):
    DIRECT_TO_LIVING = "direct_to_living"
    HALLWAY = "hallway"
    FOYER = "foyer"
    MUDROOM = "mudroom"


@dataclass
class EntranceStrategy:
    location: EntranceDirection
    entrance_type: EntranceType
    preferred_room_types: list[RoomType]
    clearance_required: float


def determine_entrance_strategy(spec: FloorPlanSpecification) -> EntranceStrategy:
    """How the building is entered, from its typology and room mix.

    Small homes open straight into the living room, large ones into a
    foyer; mid-size homes with a utility room (or townhouses) get a
    mudroom entrance, the rest enter through the hallway if there is one.
    """
    types = {r.type for r in spec.rooms}
    typology = classify_typology(spec.total_area, len(spec.rooms))

    if typology == Typology.STUDIO or spec.total_area < 50:
        entrance_type = EntranceType.DIRECT_TO_LIVING
    elif typology == Typology.MANSION or spec.total_area > 300:
        entrance_type = EntranceType.FOYER
    elif RoomType.UTILITY in types or RoomType.MUDROOM in types or typology == Typology.TOWNHOUSE:
        entrance_type = EntranceType.MUDROOM
    elif RoomType.HALLWAY in types:
        entrance_type = EntranceType.HALLWAY
    else:
        entrance_type = EntranceType.DIRECT_TO_LIVING

    preferred: list[RoomType] = {
        EntranceType.DIRECT_TO_LIVING: [RoomType.LIVING],
        EntranceType.HALLWAY: [RoomType.HALLWAY],
        EntranceType.FOYER: [RoomType.FOYER, RoomType.HALLWAY],
        EntranceType.MUDROOM: [RoomType.MUDROOM, RoomType.UTILITY],
    }[entrance_type]
    for fallback in (RoomType.LIVING, RoomType.DINING, RoomType.HALLWAY):
        if fallback not in preferred:
            preferred.append(fallback)
    preferred = [t for t in preferred if t in types]

    if typology == Typology.MANSION:
        clearance = 2.5
    elif typology == Typology.VILLA:
        clearance = 2.0
    else:
        clearance = 1.5

    return EntranceStrategy(
        location=spec.metadata.entrance,
        entrance_type=entrance_type,
        preferred_room_types=preferred,
        clearance_required=clearance,
    )


@dataclass
class OpeningPlan:
    openings: list[Opening] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    strategy: Optional[EntranceStrategy] = None

    @property
    def entrance(self) -> Optional[Opening]:
        for opening in self.openings:
            if opening.properties.is_entry:
                return opening
        return None

    def on_wall(self, wall_id: str) -> list[Opening]:
        return [o for o in self.openings if o.wall_id == wall_id]


def place_openings(
    rooms: Sequence[PlacedRoom],
    walls: Sequence[Wall],
    spec: FloorPlanSpecification,
    settings: Optional[OpeningSettings] = None,
) -> OpeningPlan:
    """Place all doors and windows for a synthesized wall network.

    Args:
        rooms: Frozen placement the walls were built from.
        walls: Output of synthesize_walls().
        spec: Specification (entrance direction, adjacency edges, window needs).
        settings: Opening sizes and clearances.

    Returns:
        OpeningPlan with openings (door_entry, door_N, window_N) and
        notes for openings that could not be placed.
    """
    settings = settings or OpeningSettings()
    plan = OpeningPlan(strategy=determine_entrance_strategy(spec))
    ordered = sorted(rooms, key=lambda r: r.id)

    place_entrance(ordered, walls, plan, settings)
    place_interior_doors(ordered, walls, spec, plan, settings)
    place_windows(ordered, walls, plan, settings)

    for note in plan.skipped:
        logger.debug("opening skipped: %s", note)
    return plan


# ── Entrance ─────────────────────────────────────────────────────────


def entrance_wall(walls: Sequence[Wall], direction: EntranceDirection) -> Optional[Wall]:
    """Exterior wall on the given side of the envelope."""
    exterior = [w for w in walls if w.is_exterior]
    if direction in (EntranceDirection.SOUTH, EntranceDirection.NORTH):
        candidates = [(w.start.y, w) for w in exterior if w.is_horizontal]
    else:
        candidates = [(w.start.x, w) for w in exterior if w.is_vertical]
    if not candidates:
        return None
    if direction in (EntranceDirection.SOUTH, EntranceDirection.WEST):
        return min(candidates, key=lambda c: c[0])[1]
    return max(candidates, key=lambda c: c[0])[1]


def place_entrance(
    rooms: Sequence[PlacedRoom],
    walls: Sequence[Wall],
    plan: OpeningPlan,
    settings: OpeningSettings,
) -> Optional[Opening]:
    strategy = plan.strategy
    width = settings.entrance_width
    needed = width + 2 * settings.min_clearance

    wall = entrance_wall(walls, strategy.location)
    if wall is None or wall.length < needed:
        exterior = [w for w in walls if w.is_exterior]
        wall = max(exterior, key=lambda w: w.length, default=None)
    if wall is None or wall.length < needed:
        plan.skipped.append("No exterior wall long enough for the entrance door")
        return None

    target = _entrance_room(rooms, wall, strategy, settings)
    if target is not None:
        room, (s0, s1) = target
        center = (s0 + s1) / 2
        if s1 - s0 >= width:
            center = min(max(center, s0 + width / 2), s1 - width / 2)
    else:
        room = None
        center = wall.length / 2

    position = fit_position(wall.length, width, settings.min_clearance, center)
    door = Opening(
        id="door_entry",
        opening_type=OpeningType.DOOR,
        width=width,
        height=settings.door_height,
        wall_id=wall.id,
        position=position,
        properties=OpeningProperties(
            swing_direction=swing_toward(wall, room) if room else 90.0,
            opens_into=room.id if room else None,
            is_entry=True,
        ),
    )
    plan.openings.append(door)
    return door


def _entrance_room(
    rooms: Sequence[PlacedRoom],
    wall: Wall,
    strategy: EntranceStrategy,
    settings: OpeningSettings,
) -> Optional[tuple[PlacedRoom, tuple[float, float]]]:
    """Room the entrance should open into, with its stretch of the wall.

    Preferred room types first (in strategy order), then whichever room
    has the longest stretch along the wall.
    """
    contacts = []
    for room in rooms:
        contact = wall_contact(room, wall, settings.contact_tolerance)
        if contact is not None:
            contacts.append((room, contact))
    for room_type in strategy.preferred_room_types:
        matching = [c for c in contacts if c[0].spec.type == room_type]
        if matching:
            return max(matching, key=lambda c: c[1][1] - c[1][0])
    if contacts:
        return max(contacts, key=lambda c: c[1][1] - c[1][0])
    return None


# ── Interior doors ───────────────────────────────────────────────────


def place_interior_doors(
    rooms: Sequence[PlacedRoom],
    walls: Sequence[Wall],
    spec: FloorPlanSpecification,
    plan: OpeningPlan,
    settings: OpeningSettings,
) -> list[Opening]:
    by_id = {r.id: r for r in rooms}
    doors: list[Opening] = []
    for wall in walls:
        if not wall.is_shared:
            continue
        a = by_id.get(wall.adjacent_rooms[0])
        b = by_id.get(wall.adjacent_rooms[1])
        if a is None or b is None:
            continue
        edge = _edge_between(spec, a.id, b.id)
        hub = a.spec.type in CIRCULATION_HUBS or b.spec.type in CIRCULATION_HUBS
        if edge is not None and edge.type == AdjacencyType.AVOID:
            continue
        if not hub and edge is None:
            continue

        living = RoomType.LIVING in (a.spec.type, b.spec.type)
        width = settings.wide_door_width if living else settings.door_width
        if wall.length < width + 2 * settings.min_clearance:
            plan.skipped.append(
                f"Wall {wall.id} between {a.id} and {b.id} is too short for a "
                f"{width:g} m door ({wall.length:.2f} m)"
            )
            continue

        inner = more_private(a, b)
        door = Opening(
            id=f"door_{len(doors) + 1}",
            opening_type=OpeningType.DOOR,
            width=width,
            height=settings.door_height,
            wall_id=wall.id,
            position=0.5,
            properties=OpeningProperties(
                swing_direction=swing_toward(wall, inner),
                opens_into=inner.id,
            ),
        )
        doors.append(door)
        plan.openings.append(door)
    return doors


def _edge_between(spec: FloorPlanSpecification, a: str, b: str) -> Optional[AdjacencyEdge]:
    for edge in spec.adjacency_graph:
        if {edge.source, edge.target} == {a, b}:
            return edge
    return None


def more_private(a: PlacedRoom, b: PlacedRoom) -> PlacedRoom:
    """The room a door between a and b should open into.

    Ranks by zone (public < service < private), circulation hubs below
    other rooms of the same zone; ties go to the later id.
    """
    def rank(room: PlacedRoom) -> tuple[int, int, str]:
        hub = 0 if room.spec.type in CIRCULATION_HUBS else 1
        return ZONE_ORDER.index(room.zone), hub, room.id

    return max(a, b, key=rank)


def swing_toward(wall: Wall, room: PlacedRoom) -> float:
    """90 if the room lies on the wall's left-hand side (start → end), else 270."""
    dx = wall.end.x - wall.start.x
    dy = wall.end.y - wall.start.y
    mx = (wall.start.x + wall.end.x) / 2
    my = (wall.start.y + wall.end.y) / 2
    side = (room.cx - mx) * -dy + (room.cy - my) * dx
    return 90.0 if side > 0 else 270.0


# ── Windows ──────────────────────────────────────────────────────────


def place_windows(
    rooms: Sequence[PlacedRoom],
    walls: Sequence[Wall],
    plan: OpeningPlan,
    settings: OpeningSettings,
) -> list[Opening]:
    """Windows for every room that requires one, on its longest exterior facade.

    Total window width = floor area × area ratio / window height, capped
    by the facade. Facades longer than split_window_length get two
    windows at thirds, others one in the middle.
    """
    exterior = [w for w in walls if w.is_exterior]
    ratio = min(max(settings.window_area_ratio, settings.min_window_ratio), settings.max_window_ratio)
    windows: list[Opening] = []

    for room in rooms:
        if not room.spec.requires_window:
            continue
        contacts = []
        for wall in exterior:
            contact = wall_contact(room, wall, settings.contact_tolerance)
            if contact is not None:
                contacts.append((wall, contact))
        contacts.sort(key=lambda c: (-(c[1][1] - c[1][0]), c[0].id))

        target_width = room.area * ratio / settings.window_height
        placed = False
        for wall, (s0, s1) in contacts:
            facade = s1 - s0
            width = min(target_width, facade * settings.facade_fill)
            if width < settings.min_window_width or width > settings.max_window_fraction * wall.length:
                continue
            if facade > settings.split_window_length:
                widths = [width / 2, width / 2]
                centers = [s0 + facade / 3, s0 + 2 * facade / 3]
            else:
                widths = [width]
                centers = [s0 + facade / 2]

            positions = []
            for w, c in zip(widths, centers):
                pos = _free_position(wall, w, c, (s0, s1), plan, settings)
                if pos is None:
                    break
                positions.append(pos)
            if len(positions) != len(widths):
                continue

            for w, pos in zip(widths, positions):
                window = Opening(
                    id=f"window_{len(windows) + 1}",
                    opening_type=OpeningType.WINDOW,
                    width=w,
                    height=settings.window_height,
                    wall_id=wall.id,
                    position=pos,
                    properties=OpeningProperties(sill_height=settings.sill_height),
                )
                windows.append(window)
                plan.openings.append(window)
            placed = True
            break

        if not placed:
            plan.skipped.append(f"No exterior facade of {room.id} fits a window")
    return windows


def _free_position(
    wall: Wall,
    width: float,
    center: float,
    facade: tuple[float, float],
    plan: OpeningPlan,
    settings: OpeningSettings,
) -> Optional[float]:
    """Position for an opening near center that keeps clear of existing openings.

    Tries the centre, then the quarter points of the facade.
    """
    s0, s1 = facade
    span = s1 - s0
    for c in (center, s0 + span / 4, s0 + 3 * span / 4):
        c = min(max(c, s0 + width / 2), s1 - width / 2)
        pos = fit_position(wall.length, width, settings.min_clearance, c)
        if pos is None:
            continue
        clear = True
        for other in plan.on_wall(wall.id):
            gap = abs(other.position - pos) * wall.length
            if gap < (other.width + width) / 2 + settings.min_clearance:
                clear = False
                break
        if clear:
            return pos
    return None


def fit_position(
    wall_length: float,
    width: float,
    clearance: float,
    center: float,
) -> Optional[float]:
    """Fractional position of an opening centred near ``center`` (meters from start).

    The opening keeps ``clearance`` of solid wall on both sides. Returns
    None if the wall is too short.
    """
    lo = clearance + width / 2
    hi = wall_length - clearance - width / 2
    if lo > hi + 1e-9:
        return None
    c = min(max(center, lo), hi)
    return min(1.0, max(0.0, c / wall_length))
