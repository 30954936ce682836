"""Engine configuration.

Every tunable constant of the layout pipeline lives here as a pydantic
model with its default value, grouped by pipeline stage. EngineConfig
aggregates the groups and round-trips through JSON, so a run can be
reproduced from a saved config plus a seed.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, model_validator


class PlacementSettings(BaseModel):
    """Room placer and footprint sizing."""

    margin: float = Field(default=0.1, ge=0, description="No-overlap margin between rooms (m)")
    room_gap: float = Field(default=0.12, gt=0, description="Gap left between rooms placed side by side (m)")
    grid_step: float = Field(default=0.5, gt=0, description="Grid scan step for fallback and forced placement (m)")
    anchor_fraction: float = Field(default=0.9, gt=0, le=1, description="Max share of its zone an anchor room may span")
    cluster_fraction: float = Field(default=0.6, gt=0, le=1, description="Max share of its zone any other room may span")
    circulation_factor: float = Field(default=0.15, ge=0, lt=1, description="Footprint share reserved for circulation")
    footprint_aspect: float = Field(default=1.2, gt=0, description="Building width / height target")
    search_slack: float = Field(default=1.25, ge=1, description="Search area relative to the nominal footprint")
    corridor_width: float = Field(default=1.5, gt=0, description="Gap between double-sided rows (m)")
    hub_clearance: float = Field(default=3.0, gt=0, description="Central clearance of radial packing (m)")
    template_count: int = Field(default=5, ge=1, description="Top-N templates considered for variations")


class AnnealingSettings(BaseModel):
    """Simulated annealing schedule and move sizes."""

    initial_temperature: float = Field(default=100.0, gt=0)
    cooling_rate: float = Field(default=0.95, gt=0, lt=1)
    min_temperature: float = Field(default=0.1, gt=0)
    max_iterations: int = Field(default=500, ge=1)
    perturbations_per_iteration: int = Field(default=8, ge=1)
    max_no_improvement: int = Field(default=50, ge=1)
    shift_distance: float = Field(default=0.5, gt=0, description="Max shift per axis (m)")
    resize_range: float = Field(default=0.1, gt=0, lt=1, description="Resize factor drawn from [1-r, 1+r]")
    margin: float = Field(default=0.1, ge=0, description="No-overlap margin (m)")


class ScoringWeights(BaseModel):
    """Relative weight of each sub-score in the 0–100 total."""

    area: float = Field(default=0.35, ge=0)
    adjacency: float = Field(default=0.30, ge=0)
    compactness: float = Field(default=0.15, ge=0)
    alignment: float = Field(default=0.10, ge=0)
    natural_light: float = Field(default=0.10, ge=0)

    @model_validator(mode="after")
    def positive_sum(self) -> ScoringWeights:
        if self.total <= 0:
            raise ValueError("Scoring weights must not all be zero")
        return self

    @property
    def total(self) -> float:
        return self.area + self.adjacency + self.compactness + self.alignment + self.natural_light


class ScoringSettings(BaseModel):
    weights: ScoringWeights = Field(default_factory=ScoringWeights)
    adjacency_tolerance: float = Field(default=0.2, ge=0, description="Max gap for two rooms to count as adjacent (m)")
    adjacency_bonus: float = Field(default=0.2, ge=0, description="Shared-wall bonus factor")
    unmet_penalty: float = Field(default=0.3, ge=0, description="Distance penalty factor for unmet heavy edges")
    heavy_edge_weight: float = Field(default=8.0, ge=0, description="Edges at or above this weight are penalised when unmet")
    penalty_distance: float = Field(default=10.0, gt=0, description="Distance at which the unmet-edge penalty saturates (m)")
    area_bound_penalty: float = Field(default=1.0, ge=0, description="Penalty per unit of relative out-of-bounds area")
    aspect_penalty: float = Field(default=0.3, ge=0, description="Compactness penalty per unit of footprint aspect beyond 1")
    alignment_grid: float = Field(default=0.15, gt=0, description="Edge snapping grid (m)")
    light_tolerance: float = Field(default=0.2, ge=0, description="Max distance to the building boundary for daylight (m)")


class WallSettings(BaseModel):
    exterior_thickness: float = Field(default=0.15, gt=0)
    interior_thickness: float = Field(default=0.10, gt=0)
    min_length: float = Field(default=0.3, gt=0, description="Shorter shared/partition segments are dropped (m)")
    shared_tolerance: float = Field(default=0.15, ge=0, description="Max gap between edges of a shared wall (m)")
    envelope_margin: float = Field(default=0.1, ge=0, description="Envelope offset outside the rooms (m)")


class OpeningSettings(BaseModel):
    door_width: float = Field(default=0.9, gt=0)
    wide_door_width: float = Field(default=1.0, gt=0, description="Doors into living rooms (m)")
    entrance_width: float = Field(default=1.2, gt=0)
    door_height: float = Field(default=2.1, gt=0)
    min_clearance: float = Field(default=0.3, ge=0, description="Clear wall on each side of an opening (m)")
    window_area_ratio: float = Field(default=0.15, gt=0, description="Window area / room floor area")
    min_window_ratio: float = Field(default=0.10, gt=0)
    max_window_ratio: float = Field(default=0.20, gt=0)
    window_height: float = Field(default=1.5, gt=0)
    sill_height: float = Field(default=0.9, ge=0)
    min_window_width: float = Field(default=0.6, gt=0)
    max_window_fraction: float = Field(default=0.7, gt=0, le=1, description="Max window width / wall length")
    facade_fill: float = Field(default=0.6, gt=0, le=1, description="Max window width / room facade length")
    split_window_length: float = Field(default=5.0, gt=0, description="Facades longer than this get two windows (m)")
    contact_tolerance: float = Field(default=0.3, ge=0, description="Max room-to-wall distance for contact (m)")


class ValidationSettings(BaseModel):
    error_threshold: int = Field(default=2, ge=0, description="More errors than this fail the run")
    area_tolerance: float = Field(default=0.15, ge=0, description="Allowed relative deviation of total room area")
    min_bedroom_area: float = 7.0
    min_bedroom_dimension: float = 2.5
    min_bathroom_area: float = 2.0
    min_hallway_width: float = 0.9
    contact_tolerance: float = Field(default=0.3, ge=0, description="Max wall/door-to-room distance for contact (m)")
    endpoint_tolerance: float = Field(default=0.05, ge=0, description="Max gap between envelope wall endpoints (m)")


class EngineConfig(BaseModel):
    """All engine settings."""

    placement: PlacementSettings = Field(default_factory=PlacementSettings)
    annealing: AnnealingSettings = Field(default_factory=AnnealingSettings)
    scoring: ScoringSettings = Field(default_factory=ScoringSettings)
    walls: WallSettings = Field(default_factory=WallSettings)
    openings: OpeningSettings = Field(default_factory=OpeningSettings)
    validation: ValidationSettings = Field(default_factory=ValidationSettings)

    # ── File I/O ─────────────────────────────────────────────────────

    def save(self, path: str | Path) -> None:
        """Save config to a JSON file."""
        Path(path).write_text(self.model_dump_json(indent=2))

    @classmethod
    def load(cls, path: str | Path) -> EngineConfig:
        """Load config from a JSON file. Missing keys take their defaults."""
        return cls.model_validate_json(Path(path).read_text())
