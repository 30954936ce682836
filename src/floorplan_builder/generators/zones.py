"""Zone allocation: group rooms by zone and give each group a footprint region.

The footprint is split into two bands measured from the entrance edge:
a front band shared by the public zone (entrance side) and the service
zone beside it, and a back band holding the private zone. Band depths and
widths follow each zone's share of the total target room area, so zones
that are absent take no space.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Optional

from floorplan_builder.config import PlacementSettings
from floorplan_builder.models.geometry import Bounds
from floorplan_builder.models.spec import (
    ZONE_ORDER,
    EntranceDirection,
    FloorPlanSpecification,
    RoomSpec,
    ZoneType,
)

logger = logging.getLogger(__name__)


@dataclass
class ZoneAllocation:
    """A zone's rooms, target area and footprint region."""

    zone: ZoneType
    rooms: list[RoomSpec] = field(default_factory=list)
    target_area: float = 0.0
    fraction: float = 0.0
    bounds: Bounds = field(default_factory=lambda: Bounds(width=0, height=0))


def building_dimensions(
    spec: FloorPlanSpecification,
    settings: Optional[PlacementSettings] = None,
) -> tuple[float, float]:
    """Nominal building width and height (meters).

    The footprint covers the declared total area, grown if needed so the
    room targets plus the circulation share still fit. Width/height follow
    the configured footprint aspect.

    Args:
        spec: Floor-plan specification.
        settings: Placement settings (circulation factor, footprint aspect).

    Returns:
        (width, height) tuple.
    """
    settings = settings or PlacementSettings()
    room_area = sum(r.target_area for r in spec.rooms)
    area = max(spec.total_area, room_area / (1.0 - settings.circulation_factor))
    width = math.sqrt(area) * settings.footprint_aspect
    height = area / width
    return width, height


def group_by_zone(spec: FloorPlanSpecification) -> dict[ZoneType, list[RoomSpec]]:
    """Rooms per zone, zones in placement order, only zones that have rooms."""
    groups: dict[ZoneType, list[RoomSpec]] = {}
    for zone in ZONE_ORDER:
        members = [r for r in spec.rooms if r.zone == zone]
        if members:
            groups[zone] = members
    return groups


def allocate_zones(
    spec: FloorPlanSpecification,
    width: float,
    height: float,
) -> list[ZoneAllocation]:
    """Partition the footprint into zone regions.

    Args:
        spec: Floor-plan specification (rooms and entrance direction).
        width: Building width (x extent).
        height: Building height (y extent).

    Returns:
        Allocations in placement order (public, service, private).
    """
    groups = group_by_zone(spec)
    total = sum(r.target_area for r in spec.rooms)

    allocations: dict[ZoneType, ZoneAllocation] = {}
    for zone, rooms in groups.items():
        target = sum(r.target_area for r in rooms)
        allocations[zone] = ZoneAllocation(
            zone=zone,
            rooms=rooms,
            target_area=target,
            fraction=target / total if total > 0 else 0.0,
        )

    entrance = spec.metadata.entrance
    if entrance in (EntranceDirection.SOUTH, EntranceDirection.NORTH):
        depth, lateral = height, width
    else:
        depth, lateral = width, height

    f_pub = allocations[ZoneType.PUBLIC].fraction if ZoneType.PUBLIC in allocations else 0.0
    f_srv = allocations[ZoneType.SERVICE].fraction if ZoneType.SERVICE in allocations else 0.0
    front = f_pub + f_srv
    has_private = ZoneType.PRIVATE in allocations

    if front <= 0:
        front_depth = 0.0
    elif has_private:
        front_depth = depth * front
    else:
        front_depth = depth

    if ZoneType.PUBLIC in allocations:
        pub_lateral = lateral * f_pub / front
        allocations[ZoneType.PUBLIC].bounds = _to_plan(
            entrance, width, height, 0.0, 0.0, pub_lateral, front_depth
        )
    else:
        pub_lateral = 0.0
    if ZoneType.SERVICE in allocations:
        allocations[ZoneType.SERVICE].bounds = _to_plan(
            entrance, width, height, pub_lateral, 0.0, lateral - pub_lateral, front_depth
        )
    if has_private:
        allocations[ZoneType.PRIVATE].bounds = _to_plan(
            entrance, width, height, 0.0, front_depth, lateral, depth - front_depth
        )

    result = [allocations[z] for z in ZONE_ORDER if z in allocations]
    for alloc in result:
        logger.debug(
            "zone %s: %d rooms, %.0f%% of area, bounds (%.2f, %.2f, %.2f × %.2f)",
            alloc.zone.value, len(alloc.rooms), alloc.fraction * 100,
            alloc.bounds.x, alloc.bounds.y, alloc.bounds.width, alloc.bounds.height,
        )
    return result


def _to_plan(
    entrance: EntranceDirection,
    width: float,
    height: float,
    lateral0: float,
    depth0: float,
    lateral_size: float,
    depth_size: float,
) -> Bounds:
    """Map a rectangle from the entrance frame to plan coordinates.

    The entrance frame measures depth inward from the entrance edge and
    lateral position along it.
    """
    if entrance == EntranceDirection.SOUTH:
        return Bounds(x=lateral0, y=depth0, width=lateral_size, height=depth_size)
    if entrance == EntranceDirection.NORTH:
        return Bounds(x=lateral0, y=height - depth0 - depth_size, width=lateral_size, height=depth_size)
    if entrance == EntranceDirection.WEST:
        return Bounds(x=depth0, y=lateral0, width=depth_size, height=lateral_size)
    return Bounds(x=width - depth0 - depth_size, y=lateral0, width=depth_size, height=lateral_size)
