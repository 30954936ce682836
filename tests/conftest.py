"""Shared specifications for the floor-plan tests."""

import pytest

from floorplan_builder.models.spec import FloorPlanSpecification


def room(id, type, min_area, max_area, zone, aspect=(0.7, 1.5), **kw) -> dict:
    return {
        "id": id,
        "type": type,
        "minArea": min_area,
        "maxArea": max_area,
        "aspectRatio": {"min": aspect[0], "max": aspect[1]},
        "zone": zone,
        **kw,
    }


def edge(a, b, weight, type="should") -> dict:
    return {"from": a, "to": b, "weight": weight, "type": type}


STUDIO = {
    "totalArea": 30,
    "rooms": [
        room("studio", "living", 22, 26, "public", aspect=(1.0, 1.5), requiresWindow=True),
    ],
}

TWO_BEDROOM = {
    "totalArea": 80,
    "rooms": [
        room("living", "living", 20, 25, "public", requiresWindow=True, priority=10),
        room("kitchen", "kitchen", 10, 14, "service", requiresWindow=True),
        room("bedroom1", "bedroom", 12, 16, "private", requiresWindow=True),
        room("bedroom2", "bedroom", 10, 14, "private", requiresWindow=True),
        room("bathroom", "bathroom", 4, 6, "private"),
        room("hallway", "hallway", 4, 6, "public", aspect=(0.3, 0.7)),
    ],
    "adjacencyGraph": [
        edge("kitchen", "living", 9),
        edge("bedroom1", "bathroom", 7),
        edge("hallway", "living", 8, "must"),
        edge("hallway", "bedroom1", 8, "must"),
        edge("hallway", "bedroom2", 8, "must"),
    ],
    "metadata": {"entrance": "south"},
}

EXTREME_ASPECT = {
    "totalArea": 40,
    "rooms": [
        room("living", "living", 20, 25, "public", requiresWindow=True),
        room("hallway", "hallway", 4, 6, "public", aspect=(0.3, 0.5)),
    ],
    "adjacencyGraph": [edge("hallway", "living", 8, "must")],
}


@pytest.fixture
def studio_spec() -> FloorPlanSpecification:
    return FloorPlanSpecification.model_validate(STUDIO)


@pytest.fixture
def two_bedroom_spec() -> FloorPlanSpecification:
    return FloorPlanSpecification.model_validate(TWO_BEDROOM)


@pytest.fixture
def extreme_spec() -> FloorPlanSpecification:
    return FloorPlanSpecification.model_validate(EXTREME_ASPECT)
