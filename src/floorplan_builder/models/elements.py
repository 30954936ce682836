"""Plan elements: walls and the openings (doors, windows) they host.

Walls are derived from a frozen room placement and never mutated
afterwards. Openings reference their host wall by id and sit at a
fractional position along it.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, computed_field, field_validator, model_validator

from floorplan_builder.models.geometry import Point2D


class WallType(str, Enum):
    EXTERIOR = "exterior"
    INTERIOR = "interior"


class Wall(BaseModel):
    """A straight wall segment defined by start/end points and thickness.

    adjacent_rooms lists the ids of the 0–2 rooms this wall borders.
    Exterior envelope walls border no room directly: they sit a small
    margin outside the rooms they enclose.
    """

    id: str
    wall_type: WallType
    thickness: float = Field(gt=0, description="Wall thickness in meters")
    start: Point2D
    end: Point2D
    structural_load: bool = False
    adjacent_rooms: list[str] = Field(default_factory=list)

    @computed_field
    @property
    def length(self) -> float:
        """Wall length (centerline)."""
        return self.start.distance_to(self.end)

    @model_validator(mode="after")
    def start_and_end_differ(self) -> Wall:
        if self.start == self.end:
            raise ValueError("Wall start and end points must be different")
        return self

    @field_validator("adjacent_rooms")
    @classmethod
    def at_most_two_rooms(cls, v: list[str]) -> list[str]:
        if len(v) > 2:
            raise ValueError(f"A wall borders at most 2 rooms (got {len(v)})")
        return sorted(v)

    @property
    def is_exterior(self) -> bool:
        return self.wall_type == WallType.EXTERIOR

    @property
    def is_horizontal(self) -> bool:
        return abs(self.start.y - self.end.y) < 1e-6

    @property
    def is_vertical(self) -> bool:
        return abs(self.start.x - self.end.x) < 1e-6

    @property
    def is_shared(self) -> bool:
        return len(self.adjacent_rooms) == 2

    def point_at(self, t: float) -> Point2D:
        """Point at fraction t (0–1) along start → end."""
        return Point2D(
            x=self.start.x + (self.end.x - self.start.x) * t,
            y=self.start.y + (self.end.y - self.start.y) * t,
        )

    def project(self, x: float, y: float) -> float:
        """Signed distance (meters) from start of the projection of (x, y) onto the wall line."""
        dx = self.end.x - self.start.x
        dy = self.end.y - self.start.y
        return ((x - self.start.x) * dx + (y - self.start.y) * dy) / self.length


class OpeningType(str, Enum):
    DOOR = "door"
    WINDOW = "window"


class OpeningProperties(BaseModel):
    """Type-specific opening attributes.

    swing_direction is the door leaf's opening side in degrees relative
    to the wall direction: 90 swings toward the wall's left-hand normal,
    270 toward its right-hand normal.
    """

    swing_direction: Optional[float] = None
    opens_into: Optional[str] = None
    sill_height: Optional[float] = Field(default=None, ge=0)
    is_entry: bool = False


class Opening(BaseModel):
    """A door or window hosted by a wall.

    position is the fraction (0–1) along the host wall's start → end
    vector at which the opening is centred.
    """

    id: str
    opening_type: OpeningType
    width: float = Field(gt=0, description="Opening width in meters")
    height: float = Field(default=2.1, gt=0, description="Opening height in meters")
    wall_id: str
    position: float = Field(ge=0, le=1)
    properties: OpeningProperties = Field(default_factory=OpeningProperties)

    @property
    def is_door(self) -> bool:
        return self.opening_type == OpeningType.DOOR

    def location(self, wall: Wall) -> Point2D:
        """World coordinates of the opening centre on its host wall."""
        return wall.point_at(self.position)
