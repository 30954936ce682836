"""Two-bedroom apartment: specification in, floor plan out.

Six rooms, ~80 m²:
- living room (entered from the south), kitchen next to it
- two bedrooms and a bathroom on the private side
- a hallway that must touch the living room and both bedrooms

   N
   ↑
   |
   +--- E

Generates one plan with a fixed seed, then three template-guided
variations, and writes the geometry JSON next to this script.
"""

import logging
from pathlib import Path

from floorplan_builder import (
    FloorPlanSpecification,
    LayoutValidationError,
    generate_floor_plan,
    generate_variations,
)


def room(id, type, min_area, max_area, zone, aspect=(0.7, 1.5), **kw):
    return {
        "id": id,
        "type": type,
        "minArea": min_area,
        "maxArea": max_area,
        "aspectRatio": {"min": aspect[0], "max": aspect[1]},
        "zone": zone,
        **kw,
    }


spec = FloorPlanSpecification.model_validate({
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
        {"from": "kitchen", "to": "living", "weight": 9, "type": "should"},
        {"from": "bedroom1", "to": "bathroom", "weight": 7, "type": "should"},
        {"from": "hallway", "to": "living", "weight": 8, "type": "must"},
        {"from": "hallway", "to": "bedroom1", "weight": 8, "type": "must"},
        {"from": "hallway", "to": "bedroom2", "weight": 8, "type": "must"},
    ],
    "constraints": [
        {"type": "minDimension", "room": "bedroom1", "value": 3.0, "priority": "strong"},
    ],
    "metadata": {"entrance": "south"},
})


def main() -> None:
    output = Path(__file__).parent / "output"
    output.mkdir(exist_ok=True)

    # --- Single plan ---
    try:
        result = generate_floor_plan(spec, seed=42)
    except LayoutValidationError as e:
        print(f"⚠️  {e}")
        for issue in e.report.errors:
            print(f"  [{issue.check}] {issue.element_id}: {issue.message}")
        if e.geometry is not None:
            e.geometry.save(output / "two_bedroom_rejected.json")
    else:
        print(result.geometry.summary())
        print(f"   Score: {result.score.total:.1f}")
        for issue in result.validation.issues:
            print(f"  [{issue.severity}] {issue.element_id}: {issue.message}")
        result.geometry.save(output / "two_bedroom.json")
        print(f"📁 Saved to: {output / 'two_bedroom.json'}")

    # --- Variations (process pool) ---
    variations = generate_variations(spec, count=3, seed=100)
    for rank, variation in enumerate(variations, start=1):
        path = output / f"two_bedroom_variation_{rank}.json"
        variation.geometry.save(path)
        print(
            f"#{rank}: template {variation.geometry.metadata.template_id}, "
            f"confidence {variation.confidence:.0f} → {path.name}"
        )


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    main()
