"""Floorplan Builder: automated 2D floor-plan layout from room specifications."""

from floorplan_builder.config import EngineConfig
from floorplan_builder.errors import (
    FloorPlanError,
    LayoutValidationError,
    PlacementRelaxation,
    SpecificationError,
)
from floorplan_builder.generators.pipeline import (
    FloorPlanGenerator,
    GenerationResult,
    generate_floor_plan,
    generate_variations,
)
from floorplan_builder.generators.placer import PlacementStrategy
from floorplan_builder.models.plan import FloorPlanGeometry
from floorplan_builder.models.spec import FloorPlanSpecification

__version__ = "0.1.0"

__all__ = [
    "EngineConfig",
    "FloorPlanError",
    "LayoutValidationError",
    "PlacementRelaxation",
    "SpecificationError",
    "FloorPlanGenerator",
    "GenerationResult",
    "generate_floor_plan",
    "generate_variations",
    "PlacementStrategy",
    "FloorPlanGeometry",
    "FloorPlanSpecification",
    "__version__",
]
