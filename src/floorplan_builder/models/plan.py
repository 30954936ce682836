"""Floor-plan geometry: the engine's output.

FloorPlanGeometry is a self-contained description of a finished layout
(room polygons with labels, walls, openings, a derived adjacency graph and
run metadata). Renderers consume it as-is and perform no geometry of their
own. Persisted as JSON via save()/load().
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

from floorplan_builder.models.elements import Opening, Wall
from floorplan_builder.models.geometry import Bounds, Point2D, Polygon2D
from floorplan_builder.models.spec import RoomType, ZoneType


class RoomLabels(BaseModel):
    """Display strings for a room."""

    name: str
    area: str
    dimensions: str


class RoomGeometry(BaseModel):
    """A placed room as renderable geometry."""

    id: str
    room_type: RoomType
    zone: ZoneType
    polygon: Polygon2D
    centroid: Point2D
    area: float
    bounds: Bounds
    labels: RoomLabels

    @property
    def width(self) -> float:
        return self.bounds.width

    @property
    def height(self) -> float:
        return self.bounds.height


class GraphEdgeKind(str, Enum):
    DOOR = "door"
    OPEN = "open"
    HALLWAY = "hallway"


class AdjacencyGraphNode(BaseModel):
    id: str
    room_type: RoomType
    zone: ZoneType


class AdjacencyGraphEdge(BaseModel):
    """Connection between two rooms, derived from actual openings."""

    source: str
    target: str
    kind: GraphEdgeKind
    opening_id: Optional[str] = None


class AdjacencyGraph(BaseModel):
    nodes: list[AdjacencyGraphNode] = Field(default_factory=list)
    edges: list[AdjacencyGraphEdge] = Field(default_factory=list)

    def neighbors(self, room_id: str) -> list[str]:
        result = []
        for edge in self.edges:
            if edge.source == room_id:
                result.append(edge.target)
            elif edge.target == room_id:
                result.append(edge.source)
        return result


class BuildingDimensions(BaseModel):
    width: float
    height: float


class PlanMetadata(BaseModel):
    total_area: float
    building_dimensions: BuildingDimensions
    confidence: float = Field(ge=0, le=100)
    relaxed_constraints: list[str] = Field(default_factory=list)
    strategy: str = ""
    template_id: Optional[str] = None
    seed: Optional[int] = None
    iterations: int = 0
    score: float = 0.0


class FloorPlanGeometry(BaseModel):
    """Complete generated floor plan."""

    rooms: list[RoomGeometry] = Field(default_factory=list)
    walls: list[Wall] = Field(default_factory=list)
    openings: list[Opening] = Field(default_factory=list)
    adjacency_graph: AdjacencyGraph = Field(default_factory=AdjacencyGraph)
    metadata: PlanMetadata

    # ── Queries ──────────────────────────────────────────────────────

    def get_room(self, room_id: str) -> Optional[RoomGeometry]:
        for room in self.rooms:
            if room.id == room_id:
                return room
        return None

    def get_wall(self, wall_id: str) -> Optional[Wall]:
        for wall in self.walls:
            if wall.id == wall_id:
                return wall
        return None

    @property
    def exterior_walls(self) -> list[Wall]:
        return [w for w in self.walls if w.is_exterior]

    @property
    def doors(self) -> list[Opening]:
        return [o for o in self.openings if o.is_door]

    @property
    def windows(self) -> list[Opening]:
        return [o for o in self.openings if not o.is_door]

    def summary(self) -> str:
        """Human-readable one-block summary."""
        meta = self.metadata
        lines = [
            f"Floor plan: {len(self.rooms)} rooms, {len(self.walls)} walls, "
            f"{len(self.doors)} doors, {len(self.windows)} windows",
            f"  Building: {meta.building_dimensions.width:.2f} × "
            f"{meta.building_dimensions.height:.2f} m",
            f"  Confidence: {meta.confidence:.0f}",
        ]
        for room in self.rooms:
            lines.append(f"  {room.labels.name}: {room.labels.area} ({room.labels.dimensions})")
        for reason in meta.relaxed_constraints:
            lines.append(f"  relaxed: {reason}")
        return "\n".join(lines)

    # ── File I/O ─────────────────────────────────────────────────────

    def save(self, path: str | Path) -> None:
        """Save the geometry to a JSON file."""
        Path(path).write_text(self.model_dump_json(indent=2))

    @classmethod
    def load(cls, path: str | Path) -> FloorPlanGeometry:
        """Load geometry from a JSON file."""
        return cls.model_validate_json(Path(path).read_text())
