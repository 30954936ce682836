"""Plan-coordinate primitives: points, rectangles and polygons (meters, y up)."""

from __future__ import annotations

import math

from pydantic import BaseModel, Field, field_validator


class Point2D(BaseModel):
    """2D point in the XY plane (meters)."""

    x: float
    y: float

    def distance_to(self, other: Point2D) -> float:
        """Euclidean distance to another point."""
        return math.sqrt((self.x - other.x) ** 2 + (self.y - other.y) ** 2)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Point2D):
            return NotImplemented
        return math.isclose(self.x, other.x, abs_tol=1e-6) and math.isclose(
            self.y, other.y, abs_tol=1e-6
        )

    def __hash__(self) -> int:
        return hash((round(self.x, 6), round(self.y, 6)))


class Bounds(BaseModel):
    """Axis-aligned rectangle: origin at the lower-left corner (meters)."""

    x: float = 0.0
    y: float = 0.0
    width: float = Field(ge=0)
    height: float = Field(ge=0)

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def top(self) -> float:
        return self.y + self.height

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def center(self) -> Point2D:
        return Point2D(x=self.x + self.width / 2, y=self.y + self.height / 2)

    def contains_rect(self, x: float, y: float, width: float, height: float, tol: float = 1e-6) -> bool:
        """True if the rectangle (x, y, width, height) lies inside these bounds."""
        return (
            x >= self.x - tol
            and y >= self.y - tol
            and x + width <= self.right + tol
            and y + height <= self.top + tol
        )

    def union(self, other: Bounds) -> Bounds:
        """Smallest bounds covering both rectangles."""
        x = min(self.x, other.x)
        y = min(self.y, other.y)
        return Bounds(
            x=x,
            y=y,
            width=max(self.right, other.right) - x,
            height=max(self.top, other.top) - y,
        )


class Polygon2D(BaseModel):
    """Closed polygon in plan coordinates; the last vertex connects back to the first."""

    vertices: list[Point2D]

    @field_validator("vertices")
    @classmethod
    def at_least_3_vertices(cls, v: list[Point2D]) -> list[Point2D]:
        if len(v) < 3:
            raise ValueError("Polygon must have at least 3 vertices")
        return v

    @classmethod
    def rectangle(cls, x: float, y: float, width: float, height: float) -> Polygon2D:
        """Counter-clockwise rectangle starting at the lower-left corner."""
        return cls(vertices=[
            Point2D(x=x, y=y),
            Point2D(x=x + width, y=y),
            Point2D(x=x + width, y=y + height),
            Point2D(x=x, y=y + height),
        ])

    @property
    def area(self) -> float:
        """Enclosed area (shoelace), independent of winding."""
        n = len(self.vertices)
        area = 0.0
        for i in range(n):
            j = (i + 1) % n
            area += self.vertices[i].x * self.vertices[j].y
            area -= self.vertices[j].x * self.vertices[i].y
        return abs(area) / 2.0

    @property
    def perimeter(self) -> float:
        """Total perimeter length."""
        n = len(self.vertices)
        return sum(
            self.vertices[i].distance_to(self.vertices[(i + 1) % n]) for i in range(n)
        )

    @property
    def centroid(self) -> Point2D:
        """Area-weighted centroid. Falls back to the vertex mean for degenerate polygons."""
        n = len(self.vertices)
        signed = 0.0
        cx = 0.0
        cy = 0.0
        for i in range(n):
            a = self.vertices[i]
            b = self.vertices[(i + 1) % n]
            cross = a.x * b.y - b.x * a.y
            signed += cross
            cx += (a.x + b.x) * cross
            cy += (a.y + b.y) * cross
        if abs(signed) < 1e-12:
            return Point2D(
                x=sum(v.x for v in self.vertices) / n,
                y=sum(v.y for v in self.vertices) / n,
            )
        signed /= 2.0
        return Point2D(x=cx / (6.0 * signed), y=cy / (6.0 * signed))

    @property
    def bounds(self) -> Bounds:
        """Axis-aligned bounding box."""
        xs = [v.x for v in self.vertices]
        ys = [v.y for v in self.vertices]
        return Bounds(x=min(xs), y=min(ys), width=max(xs) - min(xs), height=max(ys) - min(ys))
