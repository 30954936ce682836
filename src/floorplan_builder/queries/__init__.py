"""Read-only queries over placements.

- spatial: rectangle overlap, shared edges, adjacency, wall contact
- scoring: multi-objective layout score used by placer and optimizer
- diversity: pairwise comparison and filtering of layout variations
"""

from floorplan_builder.queries.spatial import (
    SharedEdge,
    are_adjacent,
    bounding_box,
    overlap_area,
    rects_overlap,
    shared_edge,
    wall_contact,
)
from floorplan_builder.queries.scoring import (
    LayoutScore,
    MultiObjectiveScorer,
    ScoreBreakdown,
    ScoreDetails,
)
from floorplan_builder.queries.diversity import (
    DiversityScore,
    compare_layouts,
    filter_for_diversity,
)

__all__ = [
    "SharedEdge",
    "are_adjacent",
    "bounding_box",
    "overlap_area",
    "rects_overlap",
    "shared_edge",
    "wall_contact",
    "LayoutScore",
    "MultiObjectiveScorer",
    "ScoreBreakdown",
    "ScoreDetails",
    "DiversityScore",
    "compare_layouts",
    "filter_for_diversity",
]
