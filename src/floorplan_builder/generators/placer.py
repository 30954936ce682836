"""Room placement: turn room specs into a complete, non-overlapping set of rectangles.

Two interchangeable strategies:

Zone-clustered
    Zones are placed in order (public, service, private). The first room
    of each zone is anchored at the zone centre; every other room is put
    beside an already placed room it has an adjacency edge with. Candidate
    positions are ranked by the total weight of the edges they satisfy,
    then by how much of the candidate lies inside the room's own zone.
    Fallbacks: zone centre, grid scan of the zone, grid scan of the whole
    search area.

Template-guided
    A layout template (see templates.py) fixes the zone regions and the
    circulation pattern. Each zone is packed with the PackingStrategy its
    circulation pattern maps to, rooms taken in priority order.

Either way a room that finds no free slot is force-placed with its
minimum-area footprint and the failure is recorded as a relaxation: the
placer always returns every room.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

import numpy as np

from floorplan_builder.config import PlacementSettings
from floorplan_builder.errors import PlacementRelaxation
from floorplan_builder.generators.templates import (
    CirculationPattern,
    LayoutTemplate,
    choose_template,
)
from floorplan_builder.generators.zones import (
    ZoneAllocation,
    allocate_zones,
    building_dimensions,
    group_by_zone,
)
from floorplan_builder.models.geometry import Bounds
from floorplan_builder.models.placement import PlacedRoom
from floorplan_builder.models.spec import (
    CIRCULATION_HUBS,
    AdjacencyType,
    FloorPlanSpecification,
    RoomSpec,
)

logger = logging.getLogger(__name__)

# Adjacency test used to rank candidates; matches the scorer's default
_CONTACT_TOLERANCE = 0.2


class PlacementStrategy(str, Enum):
    ZONE_CLUSTERED = "zone_clustered"
    TEMPLATE_GUIDED = "template_guided"


class PackingStrategy(str, Enum):
    """How rooms are packed inside one template zone."""

    LINEAR = "linear"
    DOUBLE_SIDED = "double_sided"
    RADIAL = "radial"
    GRID = "grid"

    @classmethod
    def for_circulation(cls, pattern: CirculationPattern) -> PackingStrategy:
        return _PACKING_BY_CIRCULATION[pattern]


_PACKING_BY_CIRCULATION = {
    CirculationPattern.SINGLE_CORRIDOR: PackingStrategy.LINEAR,
    CirculationPattern.DOUBLE_CORRIDOR: PackingStrategy.DOUBLE_SIDED,
    CirculationPattern.CENTRAL_HALL: PackingStrategy.RADIAL,
    CirculationPattern.RADIAL: PackingStrategy.RADIAL,
    CirculationPattern.OPEN_PLAN: PackingStrategy.GRID,
}


@dataclass
class PlacementResult:
    """Outcome of a placement run. Always holds every room of the specification."""

    rooms: list[PlacedRoom]
    strategy: PlacementStrategy
    width: float
    height: float
    search_bounds: Bounds
    zones: list[ZoneAllocation] = field(default_factory=list)
    template: Optional[LayoutTemplate] = None
    relaxations: list[PlacementRelaxation] = field(default_factory=list)

    @property
    def solved(self) -> bool:
        """True if every room found a regular slot."""
        return not self.relaxations

    def get(self, room_id: str) -> Optional[PlacedRoom]:
        for room in self.rooms:
            if room.id == room_id:
                return room
        return None


class RoomPlacer:
    """Places every room of a specification.

    Args:
        settings: Placement settings.
        rng: Random generator. When given, rooms that tie on every ordering
            key are shuffled before placement; without it the order is
            fully deterministic.
    """

    def __init__(
        self,
        settings: Optional[PlacementSettings] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        self.settings = settings or PlacementSettings()
        self.rng = rng

    def place(
        self,
        spec: FloorPlanSpecification,
        strategy: PlacementStrategy = PlacementStrategy.ZONE_CLUSTERED,
        variation: Optional[int] = None,
    ) -> PlacementResult:
        width, height = building_dimensions(spec, self.settings)
        slack = self.settings.search_slack
        result = PlacementResult(
            rooms=[],
            strategy=strategy,
            width=width,
            height=height,
            search_bounds=Bounds(x=0, y=0, width=width * slack, height=height * slack),
        )
        if strategy == PlacementStrategy.TEMPLATE_GUIDED:
            self._place_template_guided(spec, result, variation)
        else:
            self._place_zone_clustered(spec, result)

        # Rooms come back in specification order
        order = {room_id: i for i, room_id in enumerate(spec.room_ids)}
        result.rooms.sort(key=lambda r: order[r.id])
        logger.debug(
            "placed %d rooms (%s), %d relaxed",
            len(result.rooms), strategy.value, len(result.relaxations),
        )
        return result

    # ── Ordering and sizing ──────────────────────────────────────────

    def order_rooms(self, rooms: list[RoomSpec], spec: FloorPlanSpecification) -> list[RoomSpec]:
        """Priority desc, then adjacency degree desc, then target area desc."""
        rooms = list(rooms)
        if self.rng is not None and len(rooms) > 1:
            rooms = [rooms[i] for i in self.rng.permutation(len(rooms))]
        return sorted(
            rooms,
            key=lambda r: (-r.priority, -spec.adjacency_degree(r.id), -r.target_area),
        )

    def room_size(
        self,
        room: RoomSpec,
        zone: Bounds,
        fraction: float,
        scale: float = 1.0,
        stretch: float = 1.0,
    ) -> tuple[float, float]:
        """Width and height for a room inside a zone.

        Starts from the target area (scaled) and the aspect midpoint,
        stretches the width by ``stretch`` keeping the area, clamps each
        side to ``fraction`` of the zone and finally grows both sides
        together if the area fell below the room's minimum.
        """
        area = room.target_area * scale
        width = math.sqrt(area * room.aspect_ratio.midpoint) * stretch
        height = area / width
        if zone.width > 0 and zone.height > 0:
            width = min(width, zone.width * fraction)
            height = min(height, zone.height * fraction)
        if width * height < room.min_area:
            k = math.sqrt(room.min_area * 1.001 / (width * height))
            width *= k
            height *= k
        return width, height

    # ── Slot tests ───────────────────────────────────────────────────

    def fits(
        self,
        x: float,
        y: float,
        width: float,
        height: float,
        placed: list[PlacedRoom],
        area: Optional[Bounds] = None,
    ) -> bool:
        """True if the rectangle lies inside area and clears every placed room."""
        if area is not None and not area.contains_rect(x, y, width, height):
            return False
        m = self.settings.margin
        for r in placed:
            if (
                x - m < r.right
                and r.x < x + width + m
                and y - m < r.top
                and r.y < y + height + m
            ):
                return False
        return True

    def grid_search(
        self,
        width: float,
        height: float,
        area: Bounds,
        placed: list[PlacedRoom],
        within: Optional[Bounds] = None,
    ) -> Optional[tuple[float, float]]:
        """First free slot scanning area row by row (bottom-up, left to right)."""
        step = self.settings.grid_step
        if width > area.width + 1e-9 or height > area.height + 1e-9:
            return None
        nx = int((area.width - width) / step + 1e-9) + 1
        ny = int((area.height - height) / step + 1e-9) + 1
        bounds = within or area
        for j in range(ny):
            y = area.y + j * step
            for i in range(nx):
                x = area.x + i * step
                if self.fits(x, y, width, height, placed, bounds):
                    return x, y
        return None

    def _centered(self, width: float, height: float, zone: Bounds) -> tuple[float, float]:
        return zone.x + (zone.width - width) / 2, zone.y + (zone.height - height) / 2

    # ── Zone-clustered placement ─────────────────────────────────────

    def _place_zone_clustered(self, spec: FloorPlanSpecification, result: PlacementResult) -> None:
        s = self.settings
        result.zones = allocate_zones(spec, result.width, result.height)
        placed = result.rooms

        for alloc in result.zones:
            zone = alloc.bounds
            for index, room in enumerate(self.order_rooms(alloc.rooms, spec)):
                anchor = index == 0
                fraction = s.anchor_fraction if anchor else s.cluster_fraction
                width, height = self.room_size(room, zone, fraction)

                position = None
                if anchor:
                    position = self._try_center(width, height, zone, placed, result.search_bounds)
                if position is None:
                    position = self._best_adjacent(room, width, height, zone, placed, spec, result.search_bounds)
                if position is None:
                    position = self._try_center(width, height, zone, placed, result.search_bounds)
                if position is None:
                    position = self.grid_search(width, height, zone, placed, result.search_bounds)
                if position is None:
                    position = self.grid_search(width, height, result.search_bounds, placed)

                if position is None:
                    placed.append(self._force_place(room, placed, result))
                else:
                    placed.append(PlacedRoom.from_spec(room, position[0], position[1], width, height))

    def _try_center(
        self,
        width: float,
        height: float,
        zone: Bounds,
        placed: list[PlacedRoom],
        search: Bounds,
    ) -> Optional[tuple[float, float]]:
        x, y = self._centered(width, height, zone)
        x = max(search.x, x)
        y = max(search.y, y)
        if self.fits(x, y, width, height, placed, search):
            return x, y
        return None

    def adjacent_candidates(
        self,
        room: RoomSpec,
        width: float,
        height: float,
        zone: Bounds,
        placed: list[PlacedRoom],
        spec: FloorPlanSpecification,
        search: Bounds,
    ) -> list[tuple[float, float, float]]:
        """Free positions beside placed neighbours, best first.

        Each neighbour the room shares an edge with offers eight positions:
        its four sides, flush with either end of that side. A candidate
        earns the weight of every edge it satisfies (avoid edges subtract),
        times ten, plus up to five points for lying inside the room's zone.

        Returns:
            List of (score, x, y), sorted by score descending; ties keep
            generation order.
        """
        gap = self.settings.room_gap
        by_id = {r.id: r for r in placed}
        edges = [
            (by_id[e.other(room.id)], e)
            for e in spec.edges_for(room.id)
            if e.other(room.id) in by_id
        ]
        seen: set[tuple[float, float]] = set()
        scored: list[tuple[float, float, float]] = []
        for other, edge in edges:
            if edge.type == AdjacencyType.AVOID:
                continue
            o = other
            for x, y in (
                (o.right + gap, o.y), (o.right + gap, o.top - height),
                (o.x - gap - width, o.y), (o.x - gap - width, o.top - height),
                (o.x, o.top + gap), (o.right - width, o.top + gap),
                (o.x, o.y - gap - height), (o.right - width, o.y - gap - height),
            ):
                key = (round(x, 6), round(y, 6))
                if key in seen:
                    continue
                seen.add(key)
                if not self.fits(x, y, width, height, placed, search):
                    continue
                score = 0.0
                for neighbour, e in edges:
                    if _touches(x, y, width, height, neighbour):
                        score += -e.weight if e.type == AdjacencyType.AVOID else e.weight
                score *= 10
                score += 5 * _inside_share(x, y, width, height, zone)
                scored.append((score, x, y))
        scored.sort(key=lambda c: -c[0])
        return scored

    def _best_adjacent(
        self,
        room: RoomSpec,
        width: float,
        height: float,
        zone: Bounds,
        placed: list[PlacedRoom],
        spec: FloorPlanSpecification,
        search: Bounds,
    ) -> Optional[tuple[float, float]]:
        candidates = self.adjacent_candidates(room, width, height, zone, placed, spec, search)
        if not candidates:
            return None
        _, x, y = candidates[0]
        return x, y

    # ── Template-guided placement ────────────────────────────────────

    def _place_template_guided(
        self,
        spec: FloorPlanSpecification,
        result: PlacementResult,
        variation: Optional[int],
    ) -> None:
        s = self.settings
        template = choose_template(spec, variation, s.template_count)
        result.template = template
        placed = result.rooms
        counter = 0

        for zone_type, rooms in group_by_zone(spec).items():
            zone = template.zone_bounds(zone_type, result.width, result.height)
            needed = sum(r.target_area for r in rooms)
            scale = min(1.0, zone.area / needed) if needed > 0 else 1.0
            result.zones.append(ZoneAllocation(
                zone=zone_type,
                rooms=rooms,
                target_area=needed,
                fraction=needed / sum(r.target_area for r in spec.rooms),
                bounds=zone,
            ))

            sized: list[tuple[RoomSpec, float, float]] = []
            for index, room in enumerate(self.order_rooms(rooms, spec)):
                stretch = 1.0
                # variation 0 keeps the plain proportions, like no variation
                if variation is not None and variation >= 1:
                    stretch = 0.9 + ((variation * 17 + counter * 13) % 20) / 100
                counter += 1
                fraction = s.anchor_fraction if index == 0 else s.cluster_fraction
                width, height = self.room_size(room, zone, fraction, scale, stretch)
                sized.append((room, width, height))

            packing = PackingStrategy.for_circulation(template.circulation)
            packer = _Packer(self, zone, placed, result.search_bounds)
            for room, width, height in sized:
                position = self._beside_neighbour(room, width, height, zone, placed, spec, result.search_bounds)
                if position is None:
                    position = packer.next_slot(packing, room, width, height)
                if position is None:
                    position = self.grid_search(width, height, zone, placed, result.search_bounds)
                if position is None:
                    position = self.grid_search(width, height, result.search_bounds, placed)
                if position is None:
                    placed.append(self._force_place(room, placed, result))
                else:
                    placed.append(PlacedRoom.from_spec(room, position[0], position[1], width, height))

    def _beside_neighbour(
        self,
        room: RoomSpec,
        width: float,
        height: float,
        zone: Bounds,
        placed: list[PlacedRoom],
        spec: FloorPlanSpecification,
        search: Bounds,
    ) -> Optional[tuple[float, float]]:
        """Free slot touching the placed neighbours with the heaviest edges.

        Template zones leave gaps between them, so a room whose neighbours
        are already down is put against them before the zone packing runs.
        None when nothing is placed yet or no candidate earns a positive
        score.
        """
        candidates = self.adjacent_candidates(room, width, height, zone, placed, spec, search)
        if not candidates or candidates[0][0] <= 0:
            return None
        _, x, y = candidates[0]
        return x, y

    # ── Forced placement ─────────────────────────────────────────────

    def _force_place(
        self,
        room: RoomSpec,
        placed: list[PlacedRoom],
        result: PlacementResult,
    ) -> PlacedRoom:
        """Last resort: minimum-area footprint in the first free grid slot.

        When even that fails the room goes beside the current extents,
        so the no-overlap rule still holds.
        """
        area = room.min_area * 1.001
        width = math.sqrt(area * room.aspect_ratio.midpoint)
        height = area / width
        position = self.grid_search(width, height, result.search_bounds, placed)
        if position is None:
            right = max((r.right for r in placed), default=0.0)
            position = (right + self.settings.room_gap, result.search_bounds.y)
        x, y = position
        relaxation = PlacementRelaxation(
            room_id=room.id,
            reason=(
                f"Room {room.id} could not be placed in the {room.zone.value} zone; "
                f"forced to ({x:.2f}, {y:.2f}) at minimum area {room.min_area:g} m²"
            ),
        )
        result.relaxations.append(relaxation)
        logger.warning(relaxation.reason)
        return PlacedRoom.from_spec(room, x, y, width, height)


class _Packer:
    """Stateful packing of one template zone.

    Works in a zone-local frame: u runs along the zone's long side and v
    across it, so every strategy is written once for both orientations.
    """

    def __init__(self, placer: RoomPlacer, zone: Bounds, placed: list[PlacedRoom], search: Bounds):
        self.placer = placer
        self.zone = zone
        self.placed = placed
        self.search = search
        self.gap = placer.settings.room_gap
        self.horizontal = zone.width >= zone.height
        self.u0, self.v0, self.u1, self.v1 = self._frame(zone.x, zone.y, zone.width, zone.height)
        self.count = 0
        # linear
        self.cursor = self.u0
        self.line = self.v0
        self.thickness = 0.0
        # double-sided
        self.side_cursors = [self.u0, self.u0]
        self.far_side: Optional[float] = None
        # radial
        self.hub: Optional[tuple[float, float, float, float]] = None
        self.arms = [0.0, 0.0, 0.0, 0.0]

    def _frame(self, x: float, y: float, w: float, h: float) -> tuple[float, float, float, float]:
        if self.horizontal:
            return x, y, x + w, y + h
        return y, x, y + h, x + w

    def _plan(self, u: float, v: float) -> tuple[float, float]:
        return (u, v) if self.horizontal else (v, u)

    def _extent(self, width: float, height: float) -> tuple[float, float]:
        return (width, height) if self.horizontal else (height, width)

    def _accept(self, x: float, y: float, width: float, height: float) -> Optional[tuple[float, float]]:
        if self.placer.fits(x, y, width, height, self.placed, self.search):
            return x, y
        return None

    def next_slot(
        self,
        packing: PackingStrategy,
        room: RoomSpec,
        width: float,
        height: float,
    ) -> Optional[tuple[float, float]]:
        if packing == PackingStrategy.LINEAR:
            slot = self._linear(width, height)
        elif packing == PackingStrategy.DOUBLE_SIDED:
            slot = self._double_sided(width, height)
        elif packing == PackingStrategy.RADIAL:
            slot = self._radial(room, width, height)
        else:
            slot = self.placer.grid_search(width, height, self.zone, self.placed, self.search)
        self.count += 1
        return slot

    def _linear(self, width: float, height: float) -> Optional[tuple[float, float]]:
        lu, lv = self._extent(width, height)
        if self.cursor + lu > self.u1 and self.cursor > self.u0:
            self.line += self.thickness + self.gap
            self.cursor = self.u0
            self.thickness = 0.0
        x, y = self._plan(self.cursor, self.line)
        slot = self._accept(x, y, width, height)
        if slot is not None:
            self.cursor += lu + self.gap
            self.thickness = max(self.thickness, lv)
        return slot

    def _double_sided(self, width: float, height: float) -> Optional[tuple[float, float]]:
        lu, lv = self._extent(width, height)
        side = self.count % 2
        if side == 0:
            v = self.v0
        else:
            if self.far_side is None:
                near = max(
                    (self._extent(r.width, r.height)[1] for r in self.placed if self._in_zone(r)),
                    default=0.0,
                )
                self.far_side = self.v0 + near + self.placer.settings.corridor_width
            v = self.far_side
        x, y = self._plan(self.side_cursors[side], v)
        slot = self._accept(x, y, width, height)
        if slot is not None:
            self.side_cursors[side] += lu + self.gap
        return slot

    def _in_zone(self, room: PlacedRoom) -> bool:
        return _inside_share(room.x, room.y, room.width, room.height, self.zone) > 0.5

    def _radial(self, room: RoomSpec, width: float, height: float) -> Optional[tuple[float, float]]:
        """Central hub with rooms on its four sides.

        The first circulation room of the zone becomes the hub at the zone
        centre; without one, an empty square of hub_clearance stays free.
        """
        gap = self.gap
        if self.hub is None:
            cx = self.zone.x + self.zone.width / 2
            cy = self.zone.y + self.zone.height / 2
            if room.type in CIRCULATION_HUBS:
                x, y = cx - width / 2, cy - height / 2
                slot = self._accept(x, y, width, height)
                if slot is not None:
                    self.hub = (x, y, width, height)
                    return slot
            c = self.placer.settings.hub_clearance
            self.hub = (cx - c / 2, cy - c / 2, c, c)

        hx, hy, hw, hh = self.hub
        arm = (self.count - 1) % 4 if self.count else 0
        for turn in range(4):
            side = (arm + turn) % 4
            offset = self.arms[side]
            if side == 0:
                x, y = hx + hw + gap, hy + offset
            elif side == 1:
                x, y = hx + offset, hy + hh + gap
            elif side == 2:
                x, y = hx - gap - width, hy + offset
            else:
                x, y = hx + offset, hy - gap - height
            slot = self._accept(x, y, width, height)
            if slot is not None:
                self.arms[side] += (height if side in (0, 2) else width) + gap
                return slot
        return None


def _touches(x: float, y: float, width: float, height: float, other: PlacedRoom) -> bool:
    tol = _CONTACT_TOLERANCE
    if min(y + height, other.top) - max(y, other.y) >= 0:
        if abs(x + width - other.x) <= tol or abs(other.right - x) <= tol:
            return True
    if min(x + width, other.right) - max(x, other.x) >= 0:
        if abs(y + height - other.y) <= tol or abs(other.top - y) <= tol:
            return True
    return False


def _inside_share(x: float, y: float, width: float, height: float, zone: Bounds) -> float:
    """Fraction of the rectangle's area inside the zone."""
    w = min(x + width, zone.right) - max(x, zone.x)
    h = min(y + height, zone.top) - max(y, zone.y)
    if w <= 0 or h <= 0 or width * height <= 0:
        return 0.0
    return w * h / (width * height)
