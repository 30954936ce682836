"""Floor-plan generation stages.

Pipeline, leaves first:
- zones: footprint sizing and zone regions
- templates: layout template catalog and selection
- placer: room rectangles (zone-clustered or template-guided)
- annealing: simulated annealing refinement
- walls: envelope, shared and partition walls
- openings: entrance, interior doors, windows
- pipeline: orchestration, audit, confidence, variations
"""

from floorplan_builder.generators.zones import allocate_zones, building_dimensions
from floorplan_builder.generators.templates import (
    LAYOUT_TEMPLATES,
    LayoutTemplate,
    choose_template,
    select_templates,
)
from floorplan_builder.generators.placer import PlacementStrategy, RoomPlacer
from floorplan_builder.generators.annealing import SimulatedAnnealingOptimizer
from floorplan_builder.generators.walls import synthesize_walls
from floorplan_builder.generators.openings import place_openings
from floorplan_builder.generators.pipeline import (
    FloorPlanGenerator,
    GenerationResult,
    generate_floor_plan,
    generate_variations,
)

__all__ = [
    "allocate_zones",
    "building_dimensions",
    "LAYOUT_TEMPLATES",
    "LayoutTemplate",
    "choose_template",
    "select_templates",
    "PlacementStrategy",
    "RoomPlacer",
    "SimulatedAnnealingOptimizer",
    "synthesize_walls",
    "place_openings",
    "FloorPlanGenerator",
    "GenerationResult",
    "generate_floor_plan",
    "generate_variations",
]
