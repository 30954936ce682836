"""Sanity checks on a specification before placement begins.

Field-level rules (positive areas, min < max, weight range) are enforced
by the pydantic models themselves. The checks here look across entities:
unique ids, edge and constraint references, contradictory dimension
bounds, plus a few plausibility warnings.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Union

from pydantic import ValidationError as PydanticValidationError

from floorplan_builder.errors import SpecificationError
from floorplan_builder.models.spec import (
    ConstraintType,
    FloorPlanSpecification,
    RoomType,
)
from floorplan_builder.validators.issues import ValidationError

MAX_ROOMS = 15

SpecSource = Union[FloorPlanSpecification, dict, str, Path]


def check_specification(spec: FloorPlanSpecification) -> list[ValidationError]:
    """Run all cross-entity checks on a specification.

    Returns:
        Issues found. Errors make the specification unusable; warnings
        flag layouts that are likely to need relaxation.
    """
    issues: list[ValidationError] = []
    issues.extend(check_unique_ids(spec))
    issues.extend(check_edge_references(spec))
    issues.extend(check_constraint_references(spec))
    issues.extend(check_dimension_constraints(spec))
    issues.extend(check_area_budget(spec))
    issues.extend(check_room_sizes(spec))
    issues.extend(check_isolated_rooms(spec))
    if len(spec.rooms) > MAX_ROOMS:
        issues.append(ValidationError(
            severity="warning",
            element_type="Specification",
            element_id="rooms",
            message=f"{len(spec.rooms)} rooms: layouts above {MAX_ROOMS} rooms are rarely solved cleanly",
            check="room_count",
        ))
    return issues


def check_unique_ids(spec: FloorPlanSpecification) -> list[ValidationError]:
    errors: list[ValidationError] = []
    seen: set[str] = set()
    for room in spec.rooms:
        if room.id in seen:
            errors.append(ValidationError(
                severity="error",
                element_type="Room",
                element_id=room.id,
                message=f"Duplicate room id '{room.id}'",
                check="unique_ids",
            ))
        seen.add(room.id)
    return errors


def check_edge_references(spec: FloorPlanSpecification) -> list[ValidationError]:
    """Every adjacency edge connects two distinct existing rooms."""
    errors: list[ValidationError] = []
    ids = set(spec.room_ids)
    for edge in spec.adjacency_graph:
        label = f"{edge.source}->{edge.target}"
        for ref in (edge.source, edge.target):
            if ref not in ids:
                errors.append(ValidationError(
                    severity="error",
                    element_type="AdjacencyEdge",
                    element_id=label,
                    message=f"Adjacency edge {label} references unknown room '{ref}'",
                    check="references",
                ))
        if edge.source == edge.target:
            errors.append(ValidationError(
                severity="error",
                element_type="AdjacencyEdge",
                element_id=label,
                message=f"Adjacency edge {label} connects a room to itself",
                check="references",
            ))
    return errors


def check_constraint_references(spec: FloorPlanSpecification) -> list[ValidationError]:
    errors: list[ValidationError] = []
    ids = set(spec.room_ids)
    for i, constraint in enumerate(spec.constraints):
        for ref in constraint.room_refs:
            if ref not in ids:
                errors.append(ValidationError(
                    severity="error",
                    element_type="Constraint",
                    element_id=f"constraint_{i}",
                    message=f"{constraint.type.value} constraint references unknown room '{ref}'",
                    check="references",
                ))
    return errors


def check_dimension_constraints(spec: FloorPlanSpecification) -> list[ValidationError]:
    """A room's minDimension must not exceed its maxDimension."""
    errors: list[ValidationError] = []
    lower: dict[str, float] = {}
    upper: dict[str, float] = {}
    for constraint in spec.constraints:
        if constraint.value is None:
            continue
        for ref in constraint.room_refs:
            if constraint.type == ConstraintType.MIN_DIMENSION:
                lower[ref] = max(lower.get(ref, 0.0), constraint.value)
            elif constraint.type == ConstraintType.MAX_DIMENSION:
                upper[ref] = min(upper.get(ref, float("inf")), constraint.value)
    for room_id in sorted(set(lower) & set(upper)):
        if lower[room_id] > upper[room_id]:
            errors.append(ValidationError(
                severity="error",
                element_type="Constraint",
                element_id=room_id,
                message=(
                    f"Room {room_id}: minDimension {lower[room_id]:g} m exceeds "
                    f"maxDimension {upper[room_id]:g} m"
                ),
                check="dimensions",
            ))
    return errors


def check_area_budget(spec: FloorPlanSpecification) -> list[ValidationError]:
    minimum = sum(r.min_area for r in spec.rooms)
    if minimum <= spec.total_area:
        return []
    return [ValidationError(
        severity="warning",
        element_type="Specification",
        element_id="total_area",
        message=(
            f"Room minimum areas sum to {minimum:g} m², more than the "
            f"total area of {spec.total_area:g} m²"
        ),
        check="area_budget",
    )]


def check_room_sizes(spec: FloorPlanSpecification) -> list[ValidationError]:
    warnings: list[ValidationError] = []
    for room in spec.rooms:
        if room.type == RoomType.BEDROOM and room.max_area < 7:
            warnings.append(ValidationError(
                severity="warning",
                element_type="Room",
                element_id=room.id,
                message=f"Bedroom {room.id} cannot reach 7 m² (max {room.max_area:g} m²)",
                check="room_size",
            ))
        elif room.type == RoomType.BATHROOM and room.max_area < 2:
            warnings.append(ValidationError(
                severity="warning",
                element_type="Room",
                element_id=room.id,
                message=f"Bathroom {room.id} cannot reach 2 m² (max {room.max_area:g} m²)",
                check="room_size",
            ))
    return warnings


def check_isolated_rooms(spec: FloorPlanSpecification) -> list[ValidationError]:
    """Rooms no adjacency edge mentions, when the graph is not empty."""
    if len(spec.rooms) < 2 or not spec.adjacency_graph:
        return []
    return [
        ValidationError(
            severity="warning",
            element_type="Room",
            element_id=room.id,
            message=f"Room {room.id} has no adjacency edges",
            check="isolated",
        )
        for room in spec.rooms
        if spec.adjacency_degree(room.id) == 0
    ]


def ensure_valid_specification(spec: FloorPlanSpecification) -> list[ValidationError]:
    """Raise SpecificationError if any check reports an error.

    Returns:
        The remaining warnings.
    """
    issues = check_specification(spec)
    errors = [i for i in issues if i.severity == "error"]
    if errors:
        raise SpecificationError(
            f"Invalid specification: {errors[0].message}"
            + (f" (and {len(errors) - 1} more)" if len(errors) > 1 else ""),
            errors,
        )
    return issues


def load_specification(source: SpecSource) -> FloorPlanSpecification:
    """Build and check a specification from a model, dict, JSON string or file path.

    Raises:
        SpecificationError: Malformed JSON, schema violations, or failed
            cross-entity checks.
    """
    if isinstance(source, FloorPlanSpecification):
        spec = source
    else:
        data: Any = source
        try:
            if isinstance(source, Path):
                data = json.loads(source.read_text())
            elif isinstance(source, str):
                data = json.loads(source)
        except (OSError, json.JSONDecodeError) as e:
            raise SpecificationError(f"Cannot read specification: {e}") from e
        try:
            spec = FloorPlanSpecification.model_validate(data)
        except PydanticValidationError as e:
            issues = [
                ValidationError(
                    severity="error",
                    element_type="Specification",
                    element_id=".".join(str(p) for p in err["loc"]) or "root",
                    message=err["msg"],
                    check="schema",
                )
                for err in e.errors()
            ]
            raise SpecificationError(
                f"Invalid specification: {e.error_count()} schema error(s)", issues
            ) from e
    ensure_valid_specification(spec)
    return spec
