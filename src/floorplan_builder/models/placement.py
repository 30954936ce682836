"""Placed room rectangles: the working state of placement and optimization."""

from __future__ import annotations

from dataclasses import dataclass

from floorplan_builder.models.geometry import Point2D
from floorplan_builder.models.spec import RoomSpec, ZoneType


@dataclass
class PlacedRoom:
    """An axis-aligned room rectangle (meters), origin at the lower-left corner.

    Created by the room placer and mutated by the optimizer's
    perturbations, always on copies made with ``copy()``. The spec is a
    shared reference to immutable input and is never copied.
    """

    id: str
    x: float
    y: float
    width: float
    height: float
    spec: RoomSpec
    zone: ZoneType

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(
                f"Room {self.id}: width and height must be positive "
                f"(got {self.width} x {self.height})"
            )

    @classmethod
    def from_spec(cls, spec: RoomSpec, x: float, y: float, width: float, height: float) -> PlacedRoom:
        return cls(id=spec.id, x=x, y=y, width=width, height=height, spec=spec, zone=spec.zone)

    def copy(self) -> PlacedRoom:
        """Value copy; the spec reference is shared."""
        return PlacedRoom(
            id=self.id,
            x=self.x,
            y=self.y,
            width=self.width,
            height=self.height,
            spec=self.spec,
            zone=self.zone,
        )

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def aspect(self) -> float:
        """Width / height ratio."""
        return self.width / self.height

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def top(self) -> float:
        return self.y + self.height

    @property
    def cx(self) -> float:
        return self.x + self.width / 2

    @property
    def cy(self) -> float:
        return self.y + self.height / 2

    @property
    def center(self) -> Point2D:
        return Point2D(x=self.cx, y=self.cy)

    @property
    def min_dimension(self) -> float:
        return min(self.width, self.height)

    @property
    def max_dimension(self) -> float:
        return max(self.width, self.height)


def copy_placement(rooms: list[PlacedRoom]) -> list[PlacedRoom]:
    """Value-copy a whole placement."""
    return [room.copy() for room in rooms]
