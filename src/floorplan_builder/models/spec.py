"""Floor-plan specification: the declarative input to the layout engine.

A specification lists the rooms to place (area and aspect bounds, zone,
window/door requirements, priority), the pairwise adjacency preferences
between them, auxiliary dimension constraints and a few metadata flags.

Specifications arrive as JSON with camelCase keys (``minArea``,
``aspectRatio``, ``adjacencyGraph``, ``from``/``to``); python field names
are accepted as well. Models are frozen: the engine never mutates its
input. Cross-entity checks (duplicate ids, dangling references) live in
``validators.specification``.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class _SpecModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class RoomType(str, Enum):
    """Functional room category."""

    BEDROOM = "bedroom"
    BATHROOM = "bathroom"
    KITCHEN = "kitchen"
    LIVING = "living"
    DINING = "dining"
    HALLWAY = "hallway"
    STUDY = "study"
    UTILITY = "utility"
    GARAGE = "garage"
    BALCONY = "balcony"
    FOYER = "foyer"
    MUDROOM = "mudroom"


class ZoneType(str, Enum):
    """Coarse functional grouping used to partition the footprint."""

    PUBLIC = "public"
    PRIVATE = "private"
    SERVICE = "service"


# Placement order of zones, also used as a privacy rank (higher = more private)
ZONE_ORDER: tuple[ZoneType, ...] = (ZoneType.PUBLIC, ZoneType.SERVICE, ZoneType.PRIVATE)

# Rooms that act as circulation hubs: doors radiate from them
CIRCULATION_HUBS = frozenset({RoomType.HALLWAY, RoomType.FOYER, RoomType.LIVING})


class AspectRange(_SpecModel):
    """Allowed width/height ratio range."""

    min: float = Field(gt=0)
    max: float = Field(gt=0)

    @model_validator(mode="after")
    def min_not_above_max(self) -> AspectRange:
        if self.min > self.max:
            raise ValueError(
                f"Aspect ratio min ({self.min}) must not exceed max ({self.max})"
            )
        return self

    @property
    def midpoint(self) -> float:
        return (self.min + self.max) / 2

    def contains(self, ratio: float, tol: float = 1e-9) -> bool:
        return self.min - tol <= ratio <= self.max + tol


class RoomSpec(_SpecModel):
    """One room to be placed."""

    id: str = Field(min_length=1)
    type: RoomType
    min_area: float = Field(gt=0, description="Minimum floor area in m²")
    max_area: float = Field(gt=0, description="Maximum floor area in m²")
    aspect_ratio: AspectRange = Field(default_factory=lambda: AspectRange(min=0.7, max=1.5))
    zone: ZoneType
    requires_window: bool = False
    requires_door: bool = True
    priority: int = Field(default=5, description="Placement order hint, higher first")

    @model_validator(mode="after")
    def min_below_max(self) -> RoomSpec:
        if self.min_area >= self.max_area:
            raise ValueError(
                f"Room {self.id}: maxArea ({self.max_area}) must be greater "
                f"than minArea ({self.min_area})"
            )
        return self

    @property
    def target_area(self) -> float:
        """Midpoint of the allowed area range."""
        return (self.min_area + self.max_area) / 2


class AdjacencyType(str, Enum):
    MUST = "must"
    SHOULD = "should"
    NEUTRAL = "neutral"
    AVOID = "avoid"


class AdjacencyEdge(_SpecModel):
    """Pairwise adjacency preference between two rooms."""

    source: str = Field(alias="from")
    target: str = Field(alias="to")
    weight: float = Field(ge=0, le=10)
    type: AdjacencyType = AdjacencyType.SHOULD
    justification: str = ""

    def involves(self, room_id: str) -> bool:
        return room_id in (self.source, self.target)

    def other(self, room_id: str) -> str:
        """The room at the other end of the edge."""
        return self.target if room_id == self.source else self.source


class ConstraintType(str, Enum):
    MIN_DIMENSION = "minDimension"
    MAX_DIMENSION = "maxDimension"
    ADJACENCY = "adjacency"
    SEPARATION = "separation"


class ConstraintPriority(str, Enum):
    REQUIRED = "required"
    STRONG = "strong"
    MEDIUM = "medium"
    WEAK = "weak"


class Constraint(_SpecModel):
    """Auxiliary constraint on one room (``room``) or a pair (``rooms``).

    Dimension constraints bound the shorter/longer side of a room; adjacency
    and separation constraints relate two rooms (separation value = minimum
    centre distance in meters).
    """

    type: ConstraintType
    room: Optional[str] = None
    rooms: list[str] = Field(default_factory=list)
    value: Optional[float] = Field(default=None, gt=0, description="Meters")
    priority: ConstraintPriority = ConstraintPriority.MEDIUM

    @model_validator(mode="after")
    def check_shape(self) -> Constraint:
        if not self.room and not self.rooms:
            raise ValueError(f"{self.type.value} constraint references no room")
        pair = self.type in (ConstraintType.ADJACENCY, ConstraintType.SEPARATION)
        if pair and len(self.room_refs) != 2:
            raise ValueError(f"{self.type.value} constraint must reference exactly two rooms")
        if self.type != ConstraintType.ADJACENCY and self.value is None:
            raise ValueError(f"{self.type.value} constraint requires a value")
        return self

    @property
    def room_refs(self) -> list[str]:
        """All room ids this constraint mentions."""
        refs = list(self.rooms)
        if self.room and self.room not in refs:
            refs.insert(0, self.room)
        return refs

    @property
    def is_hard(self) -> bool:
        return self.priority in (ConstraintPriority.REQUIRED, ConstraintPriority.STRONG)


class EntranceDirection(str, Enum):
    NORTH = "north"
    SOUTH = "south"
    EAST = "east"
    WEST = "west"


class Preferences(_SpecModel):
    open_plan: bool = False
    ensuites: bool = False
    garden_access: bool = False


class SpecMetadata(_SpecModel):
    floors: int = Field(default=1, ge=1)
    entrance: EntranceDirection = EntranceDirection.SOUTH
    preferences: Preferences = Field(default_factory=Preferences)


class FloorPlanSpecification(_SpecModel):
    """Complete input for one layout run."""

    total_area: float = Field(gt=0, description="Target total area in m²")
    tolerance: float = Field(default=10.0, ge=0, le=20, description="Area tolerance in %")
    rooms: list[RoomSpec] = Field(min_length=1)
    adjacency_graph: list[AdjacencyEdge] = Field(default_factory=list)
    constraints: list[Constraint] = Field(default_factory=list)
    style: str = "modern"
    metadata: SpecMetadata = Field(default_factory=SpecMetadata)

    @field_validator("rooms")
    @classmethod
    def at_least_one_room(cls, v: list[RoomSpec]) -> list[RoomSpec]:
        if not v:
            raise ValueError("Specification must contain at least one room")
        return v

    # ── Queries ──────────────────────────────────────────────────────

    @property
    def room_ids(self) -> list[str]:
        return [r.id for r in self.rooms]

    def get_room(self, room_id: str) -> Optional[RoomSpec]:
        """Find a room spec by id, or None."""
        for room in self.rooms:
            if room.id == room_id:
                return room
        return None

    def edges_for(self, room_id: str) -> list[AdjacencyEdge]:
        """Adjacency edges touching a room, heaviest first."""
        edges = [e for e in self.adjacency_graph if e.involves(room_id)]
        return sorted(edges, key=lambda e: -e.weight)

    def adjacency_degree(self, room_id: str) -> int:
        return sum(1 for e in self.adjacency_graph if e.involves(room_id))

    # ── File I/O ─────────────────────────────────────────────────────

    def save(self, path: str | Path) -> None:
        """Save the specification to a JSON file (camelCase keys)."""
        Path(path).write_text(self.model_dump_json(indent=2, by_alias=True))

    @classmethod
    def load(cls, path: str | Path) -> FloorPlanSpecification:
        """Load a specification from a JSON file."""
        return cls.model_validate_json(Path(path).read_text())
