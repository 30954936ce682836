"""Floor-plan data models."""

from floorplan_builder.models.geometry import Bounds, Point2D, Polygon2D
from floorplan_builder.models.spec import (
    AdjacencyEdge,
    AdjacencyType,
    AspectRange,
    Constraint,
    ConstraintPriority,
    ConstraintType,
    EntranceDirection,
    FloorPlanSpecification,
    Preferences,
    RoomSpec,
    RoomType,
    SpecMetadata,
    ZoneType,
)
from floorplan_builder.models.placement import PlacedRoom, copy_placement
from floorplan_builder.models.elements import (
    Opening,
    OpeningProperties,
    OpeningType,
    Wall,
    WallType,
)
from floorplan_builder.models.plan import (
    AdjacencyGraph,
    AdjacencyGraphEdge,
    AdjacencyGraphNode,
    BuildingDimensions,
    FloorPlanGeometry,
    GraphEdgeKind,
    PlanMetadata,
    RoomGeometry,
    RoomLabels,
)

__all__ = [
    "Bounds",
    "Point2D",
    "Polygon2D",
    "AdjacencyEdge",
    "AdjacencyType",
    "AspectRange",
    "Constraint",
    "ConstraintPriority",
    "ConstraintType",
    "EntranceDirection",
    "FloorPlanSpecification",
    "Preferences",
    "RoomSpec",
    "RoomType",
    "SpecMetadata",
    "ZoneType",
    "PlacedRoom",
    "copy_placement",
    "Opening",
    "OpeningProperties",
    "OpeningType",
    "Wall",
    "WallType",
    "AdjacencyGraph",
    "AdjacencyGraphEdge",
    "AdjacencyGraphNode",
    "BuildingDimensions",
    "FloorPlanGeometry",
    "GraphEdgeKind",
    "PlanMetadata",
    "RoomGeometry",
    "RoomLabels",
]
