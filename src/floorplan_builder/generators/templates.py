"""Layout template catalog and selection.

Each template is an archetypal arrangement: where the public, private and
service zones sit (as fractions of building width/height), which building
sizes it suits, where the entrance is and how circulation flows.

Selection scores every template on room-count fit (40), total-area fit
(40) and typology match (20). It is deterministic; an explicit variation
index walks through the top-N matches to produce diverse but reproducible
alternatives.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from floorplan_builder.models.geometry import Bounds
from floorplan_builder.models.spec import EntranceDirection, FloorPlanSpecification, ZoneType


class Typology(str, Enum):
    STUDIO = "studio"
    APARTMENT = "apartment"
    TOWNHOUSE = "townhouse"
    VILLA = "villa"
    MANSION = "mansion"


class CirculationPattern(str, Enum):
    SINGLE_CORRIDOR = "single_corridor"
    DOUBLE_CORRIDOR = "double_corridor"
    CENTRAL_HALL = "central_hall"
    RADIAL = "radial"
    OPEN_PLAN = "open_plan"


class ZoneBox(BaseModel):
    """Zone region as fractions (0–1) of building width/height."""

    model_config = ConfigDict(frozen=True)

    x: float = Field(ge=0, le=1)
    y: float = Field(ge=0, le=1)
    width: float = Field(gt=0, le=1)
    height: float = Field(gt=0, le=1)

    def scaled(self, width: float, height: float) -> Bounds:
        return Bounds(
            x=self.x * width,
            y=self.y * height,
            width=self.width * width,
            height=self.height * height,
        )


class Suitability(BaseModel):
    model_config = ConfigDict(frozen=True)

    min_rooms: int
    max_rooms: int
    min_area: float
    max_area: float
    typologies: tuple[Typology, ...]


class LayoutTemplate(BaseModel):
    """A catalog entry. Read-only reference data."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    pattern: str
    description: str
    suitable_for: Suitability
    zone_strategy: dict[ZoneType, ZoneBox]
    entrance: EntranceDirection
    circulation: CirculationPattern
    aspect_ratio: tuple[float, float]
    characteristics: tuple[str, ...] = ()

    def zone_bounds(self, zone: ZoneType, width: float, height: float) -> Bounds:
        return self.zone_strategy[zone].scaled(width, height)


def _template(
    id: str,
    name: str,
    pattern: str,
    description: str,
    rooms: tuple[int, int],
    area: tuple[float, float],
    typologies: tuple[str, ...],
    public: tuple[float, float, float, float],
    private: tuple[float, float, float, float],
    service: tuple[float, float, float, float],
    entrance: str,
    circulation: str,
    aspect: tuple[float, float],
    characteristics: tuple[str, ...],
) -> LayoutTemplate:
    def box(b: tuple[float, float, float, float]) -> ZoneBox:
        return ZoneBox(x=b[0], y=b[1], width=b[2], height=b[3])

    return LayoutTemplate(
        id=id,
        name=name,
        pattern=pattern,
        description=description,
        suitable_for=Suitability(
            min_rooms=rooms[0],
            max_rooms=rooms[1],
            min_area=area[0],
            max_area=area[1],
            typologies=tuple(Typology(t) for t in typologies),
        ),
        zone_strategy={
            ZoneType.PUBLIC: box(public),
            ZoneType.PRIVATE: box(private),
            ZoneType.SERVICE: box(service),
        },
        entrance=EntranceDirection(entrance),
        circulation=CirculationPattern(circulation),
        aspect_ratio=aspect,
        characteristics=characteristics,
    )


LAYOUT_TEMPLATES: tuple[LayoutTemplate, ...] = (
    # ── Linear ───────────────────────────────────────────────────────
    _template(
        "linear_single_corridor", "Single Corridor Linear", "linear",
        "Rooms arranged along a single corridor with clear separation",
        rooms=(3, 6), area=(50, 120), typologies=("apartment", "townhouse"),
        public=(0, 0, 1.0, 0.35), private=(0, 0.65, 1.0, 0.35), service=(0.7, 0.35, 0.3, 0.3),
        entrance="south", circulation="single_corridor", aspect=(0.4, 0.7),
        characteristics=("efficient", "compact", "clear_zones"),
    ),
    _template(
        "linear_elongated", "Elongated Linear", "elongated",
        "Long narrow layout optimized for narrow lots",
        rooms=(4, 8), area=(60, 150), typologies=("townhouse",),
        public=(0, 0, 0.4, 1.0), private=(0.6, 0, 0.4, 1.0), service=(0.4, 0, 0.2, 0.5),
        entrance="west", circulation="single_corridor", aspect=(0.3, 0.5),
        characteristics=("narrow_lot", "vertical_circulation", "zone_separation"),
    ),
    # ── Clustered ────────────────────────────────────────────────────
    _template(
        "clustered_functional", "Functional Cluster", "clustered",
        "Rooms grouped by function with central circulation",
        rooms=(5, 10), area=(80, 200), typologies=("apartment", "villa"),
        public=(0.2, 0, 0.6, 0.5), private=(0, 0.5, 0.7, 0.5), service=(0.7, 0, 0.3, 0.5),
        entrance="south", circulation="central_hall", aspect=(0.8, 1.2),
        characteristics=("functional_grouping", "central_access", "flexible"),
    ),
    _template(
        "clustered_compact", "Compact Cluster", "compact",
        "Tightly organized rooms for maximum space efficiency",
        rooms=(3, 6), area=(40, 80), typologies=("studio", "apartment"),
        public=(0, 0, 0.6, 0.5), private=(0.6, 0, 0.4, 0.6), service=(0, 0.5, 0.4, 0.5),
        entrance="south", circulation="open_plan", aspect=(0.9, 1.1),
        characteristics=("space_efficient", "minimal_circulation", "compact"),
    ),
    # ── L-shaped ─────────────────────────────────────────────────────
    _template(
        "l_shaped_corner", "L-Shaped Corner", "l_shaped",
        "Two wings meeting at a corner around an outdoor space",
        rooms=(5, 10), area=(100, 250), typologies=("villa", "townhouse"),
        public=(0, 0, 0.6, 0.5), private=(0, 0.5, 0.5, 0.5), service=(0.6, 0, 0.4, 0.4),
        entrance="south", circulation="central_hall", aspect=(0.7, 1.3),
        characteristics=("two_wings", "outdoor_space", "privacy_zones"),
    ),
    _template(
        "l_shaped_privacy", "L-Shaped Privacy", "l_shaped",
        "Private wing separated from the living wing",
        rooms=(6, 12), area=(120, 300), typologies=("villa", "mansion"),
        public=(0, 0, 0.7, 0.4), private=(0.7, 0, 0.3, 1.0), service=(0, 0.4, 0.3, 0.3),
        entrance="west", circulation="double_corridor", aspect=(0.6, 1.0),
        characteristics=("strong_separation", "two_wings", "natural_light"),
    ),
    # ── Courtyard ────────────────────────────────────────────────────
    _template(
        "u_shaped_courtyard", "U-Shaped Courtyard", "u_shaped",
        "Three wings around an open courtyard",
        rooms=(7, 15), area=(150, 400), typologies=("villa", "mansion"),
        public=(0, 0, 1.0, 0.3), private=(0, 0.3, 0.3, 0.7), service=(0.7, 0.3, 0.3, 0.7),
        entrance="south", circulation="radial", aspect=(0.8, 1.2),
        characteristics=("courtyard", "outdoor_access", "luxury"),
    ),
    _template(
        "courtyard_central", "Central Courtyard", "courtyard",
        "Rooms surrounding a central light court",
        rooms=(6, 12), area=(120, 300), typologies=("villa", "mansion"),
        public=(0, 0, 0.5, 0.4), private=(0.5, 0, 0.5, 0.5), service=(0, 0.6, 0.4, 0.4),
        entrance="south", circulation="radial", aspect=(0.9, 1.1),
        characteristics=("central_court", "natural_light", "ventilation"),
    ),
    _template(
        "split_level_duplex", "Split-Level Duplex", "split_level",
        "Day and night zones split front to back",
        rooms=(5, 9), area=(90, 180), typologies=("townhouse", "villa"),
        public=(0, 0, 1.0, 0.5), private=(0, 0.5, 1.0, 0.5), service=(0.7, 0, 0.3, 0.3),
        entrance="south", circulation="single_corridor", aspect=(0.7, 1.0),
        characteristics=("vertical_zoning", "stairs", "clear_separation"),
    ),
    # ── Gallery / radial ─────────────────────────────────────────────
    _template(
        "gallery_double_sided", "Double-Sided Gallery", "gallery",
        "Rooms on both sides of a central gallery",
        rooms=(6, 12), area=(100, 250), typologies=("apartment", "villa"),
        public=(0, 0, 0.5, 0.4), private=(0.5, 0, 0.5, 0.6), service=(0, 0.7, 0.3, 0.3),
        entrance="south", circulation="double_corridor", aspect=(0.5, 0.8),
        characteristics=("efficient_corridor", "symmetry", "cross_ventilation"),
    ),
    _template(
        "radial_hub", "Radial Hub", "radial",
        "Rooms radiating from a central hub",
        rooms=(5, 10), area=(100, 250), typologies=("villa", "mansion"),
        public=(0.3, 0.3, 0.4, 0.4), private=(0, 0, 0.3, 1.0), service=(0.7, 0, 0.3, 0.5),
        entrance="south", circulation="radial", aspect=(0.9, 1.1),
        characteristics=("central_hub", "radial_access", "open_plan"),
    ),
    # ── Compact / open ───────────────────────────────────────────────
    _template(
        "open_plan_loft", "Open Plan Loft", "compact",
        "Open living space with minimal partitions",
        rooms=(2, 5), area=(50, 120), typologies=("studio", "apartment"),
        public=(0, 0, 0.7, 0.6), private=(0.7, 0, 0.3, 0.5), service=(0, 0.6, 0.4, 0.4),
        entrance="south", circulation="open_plan", aspect=(0.7, 1.3),
        characteristics=("open_concept", "minimal_walls", "flexible"),
    ),
    _template(
        "compact_studio", "Compact Studio", "compact",
        "Ultra-compact single-space living",
        rooms=(2, 4), area=(30, 60), typologies=("studio",),
        public=(0, 0, 0.6, 0.6), private=(0.6, 0, 0.4, 0.5), service=(0, 0.6, 0.5, 0.4),
        entrance="south", circulation="open_plan", aspect=(0.9, 1.1),
        characteristics=("ultra_compact", "space_saving", "efficient"),
    ),
    _template(
        "symmetrical_balanced", "Symmetrical Balanced", "clustered",
        "Formal arrangement mirrored about the entrance axis",
        rooms=(6, 10), area=(100, 200), typologies=("villa", "townhouse"),
        public=(0.2, 0, 0.6, 0.4), private=(0, 0.5, 0.5, 0.5), service=(0.5, 0.5, 0.5, 0.5),
        entrance="south", circulation="central_hall", aspect=(0.9, 1.1),
        characteristics=("symmetrical", "balanced", "traditional"),
    ),
    _template(
        "modern_asymmetric", "Modern Asymmetric", "clustered",
        "Dynamic offset zones with open flow",
        rooms=(5, 9), area=(90, 220), typologies=("villa", "townhouse"),
        public=(0, 0, 0.7, 0.5), private=(0.5, 0.5, 0.5, 0.5), service=(0, 0.5, 0.4, 0.5),
        entrance="west", circulation="open_plan", aspect=(0.7, 1.3),
        characteristics=("modern", "asymmetric", "dynamic"),
    ),
    _template(
        "traditional_central_hall", "Traditional Central Hall", "gallery",
        "Grand entrance hall distributing to all rooms",
        rooms=(7, 14), area=(150, 400), typologies=("villa", "mansion"),
        public=(0.2, 0, 0.6, 0.4), private=(0, 0.5, 1.0, 0.5), service=(0, 0, 0.2, 0.4),
        entrance="south", circulation="central_hall", aspect=(0.6, 0.9),
        characteristics=("traditional", "grand_entrance", "formal"),
    ),
    _template(
        "efficiency_apartment", "Efficiency Apartment", "linear",
        "Urban apartment with minimal circulation",
        rooms=(3, 5), area=(45, 85), typologies=("apartment",),
        public=(0, 0, 0.5, 0.5), private=(0.5, 0, 0.5, 0.6), service=(0, 0.5, 0.4, 0.5),
        entrance="south", circulation="single_corridor", aspect=(0.7, 1.0),
        characteristics=("urban", "efficient", "compact"),
    ),
    _template(
        "family_home", "Family Home", "clustered",
        "Practical family layout around a central hall",
        rooms=(6, 11), area=(120, 280), typologies=("villa", "townhouse"),
        public=(0, 0, 0.6, 0.5), private=(0, 0.5, 0.7, 0.5), service=(0.6, 0, 0.4, 0.4),
        entrance="south", circulation="central_hall", aspect=(0.8, 1.2),
        characteristics=("family_friendly", "practical", "flexible"),
    ),
    _template(
        "luxury_estate", "Luxury Estate", "courtyard",
        "Large estate with multiple distinct zones",
        rooms=(10, 20), area=(300, 800), typologies=("mansion",),
        public=(0.2, 0, 0.6, 0.4), private=(0, 0.5, 0.6, 0.5), service=(0.6, 0.5, 0.4, 0.5),
        entrance="south", circulation="radial", aspect=(0.8, 1.2),
        characteristics=("luxury", "spacious", "multiple_zones"),
    ),
)

_BY_ID = {t.id: t for t in LAYOUT_TEMPLATES}


def get_template(template_id: str) -> Optional[LayoutTemplate]:
    return _BY_ID.get(template_id)


def classify_typology(total_area: float, room_count: int) -> Typology:
    """Building typology from total area and room count."""
    if total_area < 35:
        return Typology.STUDIO
    if total_area < 100 and room_count <= 5:
        return Typology.APARTMENT
    if total_area < 200 and room_count <= 8:
        return Typology.TOWNHOUSE
    if total_area < 400:
        return Typology.VILLA
    return Typology.MANSION


def score_template(
    template: LayoutTemplate,
    room_count: int,
    total_area: float,
    typology: Typology,
) -> float:
    """Suitability score 0–100 of a template for a building."""
    fit = template.suitable_for
    score = 0.0

    if fit.min_rooms <= room_count <= fit.max_rooms:
        mid = (fit.min_rooms + fit.max_rooms) / 2
        score += 40 * (1 - abs(room_count - mid) / mid)

    if fit.min_area <= total_area <= fit.max_area:
        mid = (fit.min_area + fit.max_area) / 2
        score += 40 * (1 - abs(total_area - mid) / mid)

    if typology in fit.typologies:
        score += 20

    return score


def select_templates(
    room_count: int,
    total_area: float,
    typology: Optional[Typology] = None,
    top_n: int = 5,
) -> list[tuple[LayoutTemplate, float]]:
    """Top-N templates with their scores, best first.

    Ties keep catalog order, so the ranking is fully deterministic.
    """
    if typology is None:
        typology = classify_typology(total_area, room_count)
    scored = [
        (template, score_template(template, room_count, total_area, typology))
        for template in LAYOUT_TEMPLATES
    ]
    scored.sort(key=lambda pair: -pair[1])
    return scored[:top_n]


def choose_template(
    spec: FloorPlanSpecification,
    variation: Optional[int] = None,
    top_n: int = 5,
) -> LayoutTemplate:
    """Template for a specification; the variation index cycles through the top-N."""
    ranked = select_templates(len(spec.rooms), spec.total_area, top_n=top_n)
    index = (variation or 0) % len(ranked)
    return ranked[index][0]
