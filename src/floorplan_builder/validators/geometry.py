"""Post-hoc checks on a finished floor plan.

Six independent checks over FloorPlanGeometry:
- overlap: no two rooms intersect (error)
- closure: every room is bordered by at least three walls and the
  exterior walls form a closed perimeter around all rooms (warning)
- access: every room except hallways and balconies has a door (error)
- exposure: every room that needs daylight touches an exterior wall or
  has a window (warning)
- area: total room area within tolerance of the specified total (warning)
- code: minimum room areas and dimensions (warning)

Each offending element yields one issue. The orchestrator decides what
error count is fatal; nothing here raises.
"""

from __future__ import annotations

from typing import Optional

from floorplan_builder.config import ValidationSettings
from floorplan_builder.models.elements import Wall
from floorplan_builder.models.geometry import Point2D
from floorplan_builder.models.plan import FloorPlanGeometry, RoomGeometry
from floorplan_builder.models.spec import FloorPlanSpecification, RoomType
from floorplan_builder.queries.spatial import overlap_area, point_near_rect, wall_contact
from floorplan_builder.validators.issues import ValidationError, ValidationReport

_NO_DOOR_NEEDED = frozenset({RoomType.HALLWAY, RoomType.BALCONY})


def validate_geometry(
    geometry: FloorPlanGeometry,
    spec: FloorPlanSpecification,
    settings: Optional[ValidationSettings] = None,
) -> ValidationReport:
    """Run all geometric checks. Returns the combined report."""
    settings = settings or ValidationSettings()
    report = ValidationReport()
    report.issues.extend(validate_no_overlap(geometry))
    report.issues.extend(validate_room_closure(geometry, settings))
    report.issues.extend(validate_envelope_closure(geometry, settings))
    report.issues.extend(validate_door_access(geometry, spec, settings))
    report.issues.extend(validate_window_exposure(geometry, spec, settings))
    report.issues.extend(validate_total_area(geometry, spec, settings))
    report.issues.extend(validate_code_minimums(geometry, settings))
    return report


def validate_no_overlap(geometry: FloorPlanGeometry) -> list[ValidationError]:
    errors: list[ValidationError] = []
    rooms = geometry.rooms
    for i, a in enumerate(rooms):
        for b in rooms[i + 1:]:
            shared = overlap_area(a.bounds, b.bounds)
            if shared > 1e-6:
                errors.append(ValidationError(
                    severity="error",
                    element_type="Room",
                    element_id=f"{a.id}/{b.id}",
                    message=f"Rooms {a.id} and {b.id} overlap by {shared:.2f} m²",
                    check="overlap",
                ))
    return errors


def _walls_touching(room: RoomGeometry, walls: list[Wall], tolerance: float) -> list[Wall]:
    return [
        w for w in walls
        if room.id in w.adjacent_rooms or wall_contact(room.bounds, w, tolerance) is not None
    ]


def validate_room_closure(
    geometry: FloorPlanGeometry,
    settings: ValidationSettings,
) -> list[ValidationError]:
    """Every room needs at least three walls along its edges."""
    errors: list[ValidationError] = []
    for room in geometry.rooms:
        count = len(_walls_touching(room, geometry.walls, settings.contact_tolerance))
        if count < 3:
            errors.append(ValidationError(
                severity="warning",
                element_type="Room",
                element_id=room.id,
                message=f"Room {room.id} is bordered by only {count} walls",
                check="closure",
            ))
    return errors


def validate_envelope_closure(
    geometry: FloorPlanGeometry,
    settings: ValidationSettings,
) -> list[ValidationError]:
    """Exterior walls form a closed loop that encloses every room.

    Every exterior wall endpoint must meet another exterior wall endpoint
    within endpoint_tolerance.
    """
    errors: list[ValidationError] = []
    exterior = geometry.exterior_walls
    if len(exterior) < 3:
        errors.append(ValidationError(
            severity="warning",
            element_type="Envelope",
            element_id="exterior",
            message=f"Only {len(exterior)} exterior walls: not enough for a closed perimeter",
            check="closure",
        ))
        return errors

    tol = settings.endpoint_tolerance
    for wall in exterior:
        for end_name, point in (("start", wall.start), ("end", wall.end)):
            connected = any(
                other is not wall
                and (point.distance_to(other.start) <= tol or point.distance_to(other.end) <= tol)
                for other in exterior
            )
            if not connected:
                errors.append(ValidationError(
                    severity="warning",
                    element_type="Wall",
                    element_id=wall.id,
                    message=f"Exterior wall {wall.id} {end_name} is not connected to the envelope",
                    check="closure",
                ))

    xs = [p.x for w in exterior for p in (w.start, w.end)]
    ys = [p.y for w in exterior for p in (w.start, w.end)]
    for room in geometry.rooms:
        b = room.bounds
        if b.x < min(xs) or b.y < min(ys) or b.right > max(xs) or b.top > max(ys):
            errors.append(ValidationError(
                severity="warning",
                element_type="Room",
                element_id=room.id,
                message=f"Room {room.id} extends beyond the exterior walls",
                check="closure",
            ))
    return errors


def validate_door_access(
    geometry: FloorPlanGeometry,
    spec: FloorPlanSpecification,
    settings: ValidationSettings,
) -> list[ValidationError]:
    """Rooms other than hallways and balconies need a door on one of their walls."""
    errors: list[ValidationError] = []
    tol = settings.contact_tolerance
    doors = geometry.doors
    for room in geometry.rooms:
        if room.room_type in _NO_DOOR_NEEDED:
            continue
        room_spec = spec.get_room(room.id)
        if room_spec is not None and not room_spec.requires_door:
            continue
        walls = {w.id: w for w in _walls_touching(room, geometry.walls, tol)}
        reachable = False
        for door in doors:
            wall = walls.get(door.wall_id)
            if wall is None:
                continue
            point: Point2D = door.location(wall)
            if point_near_rect(point.x, point.y, room.bounds, tol):
                reachable = True
                break
        if not reachable:
            errors.append(ValidationError(
                severity="error",
                element_type="Room",
                element_id=room.id,
                message=f"Room {room.id} has no door",
                check="access",
            ))
    return errors


def validate_window_exposure(
    geometry: FloorPlanGeometry,
    spec: FloorPlanSpecification,
    settings: ValidationSettings,
) -> list[ValidationError]:
    """Rooms requiring daylight touch an exterior wall or have a window."""
    errors: list[ValidationError] = []
    tol = settings.contact_tolerance
    exterior = geometry.exterior_walls
    for room in geometry.rooms:
        room_spec = spec.get_room(room.id)
        if room_spec is None or not room_spec.requires_window:
            continue
        exposed = any(wall_contact(room.bounds, w, tol) is not None for w in exterior)
        if not exposed:
            for window in geometry.windows:
                wall = geometry.get_wall(window.wall_id)
                if wall is None:
                    continue
                point = window.location(wall)
                if point_near_rect(point.x, point.y, room.bounds, tol):
                    exposed = True
                    break
        if not exposed:
            errors.append(ValidationError(
                severity="warning",
                element_type="Room",
                element_id=room.id,
                message=f"Room {room.id} needs a window but has no exterior wall",
                check="exposure",
            ))
    return errors


def validate_total_area(
    geometry: FloorPlanGeometry,
    spec: FloorPlanSpecification,
    settings: ValidationSettings,
) -> list[ValidationError]:
    total = sum(room.area for room in geometry.rooms)
    deviation = abs(total - spec.total_area) / spec.total_area
    if deviation <= settings.area_tolerance:
        return []
    return [ValidationError(
        severity="warning",
        element_type="Plan",
        element_id="total_area",
        message=(
            f"Total room area {total:.1f} m² deviates {deviation:.0%} from "
            f"the specified {spec.total_area:g} m²"
        ),
        check="area",
    )]


def validate_code_minimums(
    geometry: FloorPlanGeometry,
    settings: ValidationSettings,
) -> list[ValidationError]:
    """Minimum habitable sizes: bedroom area and width, bathroom area, hallway width."""
    errors: list[ValidationError] = []

    def warn(room: RoomGeometry, message: str) -> None:
        errors.append(ValidationError(
            severity="warning",
            element_type="Room",
            element_id=room.id,
            message=message,
            check="code",
        ))

    for room in geometry.rooms:
        narrow = min(room.width, room.height)
        if room.room_type == RoomType.BEDROOM:
            if room.area < settings.min_bedroom_area:
                warn(room, f"Bedroom {room.id} is {room.area:.1f} m², below {settings.min_bedroom_area:g} m²")
            if narrow < settings.min_bedroom_dimension:
                warn(room, f"Bedroom {room.id} is {narrow:.2f} m wide, below {settings.min_bedroom_dimension:g} m")
        elif room.room_type == RoomType.BATHROOM:
            if room.area < settings.min_bathroom_area:
                warn(room, f"Bathroom {room.id} is {room.area:.1f} m², below {settings.min_bathroom_area:g} m²")
        elif room.room_type == RoomType.HALLWAY:
            if narrow < settings.min_hallway_width:
                warn(room, f"Hallway {room.id} is {narrow:.2f} m wide, below {settings.min_hallway_width:g} m")
    return errors
