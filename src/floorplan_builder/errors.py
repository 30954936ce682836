"""Engine error taxonomy.

Only SpecificationError and LayoutValidationError are ever raised, and
only by the entry points (specification loading and the pipeline
orchestrator). Placement problems are recorded as PlacementRelaxation
entries and travel with the result.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Sequence

if TYPE_CHECKING:
    from floorplan_builder.generators.pipeline import GenerationResult
    from floorplan_builder.models.plan import FloorPlanGeometry
    from floorplan_builder.validators.issues import ValidationError, ValidationReport


class FloorPlanError(Exception):
    """Base class for engine errors."""


class SpecificationError(FloorPlanError):
    """Malformed input. Always fatal, raised before placement begins."""

    def __init__(self, message: str, issues: Sequence[ValidationError] = ()):
        super().__init__(message)
        self.issues = list(issues)


class LayoutValidationError(FloorPlanError):
    """The finished geometry failed more validation checks than tolerated.

    The run is complete when this is raised: ``result`` holds the rejected
    plan so callers can still inspect or save it.
    """

    def __init__(
        self,
        message: str,
        report: ValidationReport,
        result: Optional[GenerationResult] = None,
    ):
        super().__init__(message)
        self.report = report
        self.result = result

    def __reduce__(self):
        return type(self), (str(self), self.report, self.result)

    @property
    def geometry(self) -> Optional[FloorPlanGeometry]:
        return self.result.geometry if self.result is not None else None


@dataclass(frozen=True)
class PlacementRelaxation:
    """A requirement the engine could not fully satisfy."""

    reason: str
    room_id: str = ""

    def __str__(self) -> str:
        return self.reason
