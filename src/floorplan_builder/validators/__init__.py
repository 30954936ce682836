"""Validation for specifications and finished floor plans.

- specification: cross-entity checks run before placement (ids,
  references, contradictory dimension constraints, plausibility)
- geometry: post-hoc checks on the generated plan (overlap, closure,
  door access, window exposure, total area, code minima)
"""

from floorplan_builder.validators.issues import ValidationError, ValidationReport
from floorplan_builder.validators.specification import (
    check_specification,
    ensure_valid_specification,
    load_specification,
)
from floorplan_builder.validators.geometry import validate_geometry

__all__ = [
    "ValidationError",
    "ValidationReport",
    "check_specification",
    "ensure_valid_specification",
    "load_specification",
    "validate_geometry",
]
