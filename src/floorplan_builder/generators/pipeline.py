"""Layout pipeline orchestrator.

Runs one specification through every stage:

    specification check → placement → annealing → audit → walls →
    openings → geometry assembly → validation → confidence

Components never raise for layout problems; they hand back relaxations
and issue lists. This module is the only place that decides whether a
run failed: SpecificationError before placement, LayoutValidationError
when more validation checks fail with errors than tolerated.

Variations are independent runs (own seed, own variation index) and are
dispatched through a concurrent.futures executor, then gathered.
"""

from __future__ import annotations

import logging
import re
from concurrent.futures import Executor, Future, ProcessPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Optional, Sequence

import numpy as np

from floorplan_builder.config import EngineConfig
from floorplan_builder.errors import (
    FloorPlanError,
    LayoutValidationError,
    PlacementRelaxation,
)
from floorplan_builder.generators.annealing import (
    OptimizationResult,
    SimulatedAnnealingOptimizer,
)
from floorplan_builder.generators.openings import OpeningPlan, place_openings
from floorplan_builder.generators.placer import (
    PlacementResult,
    PlacementStrategy,
    RoomPlacer,
)
from floorplan_builder.generators.walls import synthesize_walls
from floorplan_builder.models.elements import Wall
from floorplan_builder.models.geometry import Bounds, Polygon2D
from floorplan_builder.models.placement import PlacedRoom
from floorplan_builder.models.plan import (
    AdjacencyGraph,
    AdjacencyGraphEdge,
    AdjacencyGraphNode,
    BuildingDimensions,
    FloorPlanGeometry,
    GraphEdgeKind,
    PlanMetadata,
    RoomGeometry,
    RoomLabels,
)
from floorplan_builder.models.spec import (
    AdjacencyType,
    ConstraintType,
    FloorPlanSpecification,
    RoomType,
    ZoneType,
)
from floorplan_builder.queries.diversity import filter_for_diversity
from floorplan_builder.queries.scoring import LayoutScore, MultiObjectiveScorer
from floorplan_builder.queries.spatial import are_adjacent, bounding_box, center_distance
from floorplan_builder.validators.geometry import validate_geometry
from floorplan_builder.validators.issues import ValidationReport
from floorplan_builder.validators.specification import ensure_valid_specification

logger = logging.getLogger(__name__)

MAX_VARIATIONS = 10
RELAXATION_PENALTY = 5
UNCONVERGED_PENALTY = 10
ERROR_PENALTY = 10

_AREA_EPS = 1e-6


@dataclass
class GenerationResult:
    """Everything one pipeline run produced."""

    geometry: FloorPlanGeometry
    placement: list[PlacedRoom]
    score: LayoutScore
    validation: ValidationReport
    relaxations: list[PlacementRelaxation] = field(default_factory=list)
    optimization: Optional[OptimizationResult] = None
    openings: Optional[OpeningPlan] = None
    seed: Optional[int] = None
    variation: Optional[int] = None

    @property
    def solved(self) -> bool:
        return not self.relaxations

    @property
    def confidence(self) -> float:
        return self.geometry.metadata.confidence

    def to_dict(self) -> dict:
        return {
            "solved": self.solved,
            "confidence": self.confidence,
            "seed": self.seed,
            "variation": self.variation,
            "score": self.score.to_dict(),
            "optimization": self.optimization.to_dict() if self.optimization else None,
            "validation": self.validation.to_dict(),
            "relaxed_constraints": [str(r) for r in self.relaxations],
            "skipped_openings": list(self.openings.skipped) if self.openings else [],
            "geometry": self.geometry.model_dump(mode="json"),
        }


class FloorPlanGenerator:
    """Runs the full layout pipeline.

    Args:
        config: Engine settings; defaults everywhere when omitted.
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or EngineConfig()
        self.scorer = MultiObjectiveScorer(self.config.scoring)

    def generate(
        self,
        spec: FloorPlanSpecification,
        strategy: PlacementStrategy = PlacementStrategy.ZONE_CLUSTERED,
        seed: Optional[int] = None,
        variation: Optional[int] = None,
        optimize: bool = True,
    ) -> GenerationResult:
        """Generate one floor plan.

        Args:
            spec: Input specification.
            strategy: Room placement strategy.
            seed: Seed for every random choice of the run. None draws
                fresh entropy, so repeated runs differ.
            variation: Variation index; selects among the top templates
                and, from 1 on, perturbs template-guided room proportions.
            optimize: Run simulated annealing on the initial placement.

        Returns:
            GenerationResult with the geometry and run diagnostics.

        Raises:
            SpecificationError: The specification is malformed.
            LayoutValidationError: The finished geometry failed more
                validation checks than the configured threshold.
        """
        cfg = self.config
        ensure_valid_specification(spec)
        rng = np.random.default_rng(seed)

        placement = RoomPlacer(cfg.placement, rng).place(spec, strategy, variation)
        rooms = placement.rooms
        optimization: Optional[OptimizationResult] = None
        if optimize and rooms:
            optimizer = SimulatedAnnealingOptimizer(self.scorer, cfg.annealing, rng)
            optimization = optimizer.optimize(rooms, spec, placement.search_bounds)
            rooms = optimization.best_placement
            score = optimization.best_score
        else:
            score = self.scorer.score(rooms, spec)

        relaxations = list(placement.relaxations)
        for relaxation in audit_placement(rooms, spec, cfg.scoring.adjacency_tolerance,
                                          cfg.scoring.heavy_edge_weight):
            if relaxation not in relaxations:
                relaxations.append(relaxation)

        walls = synthesize_walls(rooms, cfg.walls)
        openings = place_openings(rooms, walls, spec, cfg.openings)
        geometry = assemble_geometry(
            rooms, walls, openings, spec, placement,
            relaxations=relaxations,
            score=score,
            seed=seed,
            iterations=optimization.iterations if optimization else 0,
        )

        report = validate_geometry(geometry, spec, cfg.validation)
        geometry.metadata.confidence = compute_confidence(relaxations, optimization, report)

        result = GenerationResult(
            geometry=geometry,
            placement=rooms,
            score=score,
            validation=report,
            relaxations=relaxations,
            optimization=optimization,
            openings=openings,
            seed=seed,
            variation=variation,
        )
        logger.info(
            "generated %d rooms (%s): score %.1f, confidence %.0f, %d relaxed, %d errors, %d warnings",
            len(rooms), strategy.value, score.total, result.confidence,
            len(relaxations), len(report.errors), len(report.warnings),
        )
        if report.exceeds(cfg.validation.error_threshold):
            failed = sorted(report.failed_error_checks)
            raise LayoutValidationError(
                f"Layout failed {len(failed)} validation checks ({', '.join(failed)}; "
                f"threshold {cfg.validation.error_threshold})",
                report,
                result=result,
            )
        return result


# ── Audit ────────────────────────────────────────────────────────────


def audit_placement(
    rooms: Sequence[PlacedRoom],
    spec: FloorPlanSpecification,
    adjacency_tolerance: float = 0.2,
    heavy_edge_weight: float = 8.0,
) -> list[PlacementRelaxation]:
    """Requirements the final placement does not meet.

    Covers room areas outside their bounds, required/strong constraints
    and heavy ``must`` adjacency edges whose rooms do not touch.
    """
    by_id = {r.id: r for r in rooms}
    relaxed: list[PlacementRelaxation] = []

    for room in rooms:
        spec_room = room.spec
        if room.area < spec_room.min_area - _AREA_EPS or room.area > spec_room.max_area + _AREA_EPS:
            relaxed.append(PlacementRelaxation(
                f"Room {room.id} area {room.area:.1f} m² outside "
                f"[{spec_room.min_area:g}, {spec_room.max_area:g}]",
                room.id,
            ))

    for constraint in spec.constraints:
        if not constraint.is_hard:
            continue
        members = [by_id[ref] for ref in constraint.room_refs if ref in by_id]
        value = constraint.value
        if constraint.type == ConstraintType.MIN_DIMENSION:
            for room in members:
                if room.min_dimension < value - _AREA_EPS:
                    relaxed.append(PlacementRelaxation(
                        f"Room {room.id} narrower than {value:g} m ({room.min_dimension:.2f} m)",
                        room.id,
                    ))
        elif constraint.type == ConstraintType.MAX_DIMENSION:
            for room in members:
                if room.max_dimension > value + _AREA_EPS:
                    relaxed.append(PlacementRelaxation(
                        f"Room {room.id} longer than {value:g} m ({room.max_dimension:.2f} m)",
                        room.id,
                    ))
        elif len(members) == 2:
            a, b = members
            if constraint.type == ConstraintType.ADJACENCY and not are_adjacent(a, b, adjacency_tolerance):
                relaxed.append(PlacementRelaxation(
                    f"Rooms {a.id} and {b.id} not adjacent", a.id,
                ))
            elif constraint.type == ConstraintType.SEPARATION and center_distance(a, b) < value:
                relaxed.append(PlacementRelaxation(
                    f"Rooms {a.id} and {b.id} closer than {value:g} m", a.id,
                ))

    for edge in spec.adjacency_graph:
        if edge.type != AdjacencyType.MUST or edge.weight < heavy_edge_weight:
            continue
        a = by_id.get(edge.source)
        b = by_id.get(edge.target)
        if a is not None and b is not None and not are_adjacent(a, b, adjacency_tolerance):
            relaxed.append(PlacementRelaxation(
                f"Required adjacency {a.id}–{b.id} not satisfied", a.id,
            ))
    return relaxed


def compute_confidence(
    relaxations: Sequence[PlacementRelaxation],
    optimization: Optional[OptimizationResult],
    report: ValidationReport,
) -> float:
    """0–100 heuristic: relaxations, an unfinished search and failed checks lower it.

    Validation is penalised once per check that produced errors, matching
    how the failure threshold counts them.
    """
    confidence = 100.0
    confidence -= RELAXATION_PENALTY * len(relaxations)
    if optimization is not None and not optimization.converged:
        confidence -= UNCONVERGED_PENALTY
    confidence -= ERROR_PENALTY * len(report.failed_error_checks)
    return max(0.0, min(100.0, confidence))


# ── Geometry assembly ────────────────────────────────────────────────


def display_name(room_id: str) -> str:
    """'bedroom1' → 'Bedroom 1', 'master_bedroom' → 'Master Bedroom'."""
    name = room_id.replace("_", " ").replace("-", " ")
    name = re.sub(r"(\D)(\d+)$", r"\1 \2", name)
    return name.strip().title()


def room_geometry(room: PlacedRoom) -> RoomGeometry:
    polygon = Polygon2D.rectangle(room.x, room.y, room.width, room.height)
    return RoomGeometry(
        id=room.id,
        room_type=room.spec.type,
        zone=room.zone,
        polygon=polygon,
        centroid=room.center,
        area=room.area,
        bounds=Bounds(x=room.x, y=room.y, width=room.width, height=room.height),
        labels=RoomLabels(
            name=display_name(room.id),
            area=f"{room.area:.1f} m²",
            dimensions=f"{room.width:.2f} × {room.height:.2f} m",
        ),
    )


def build_adjacency_graph(
    rooms: Sequence[PlacedRoom],
    walls: Sequence[Wall],
    openings: OpeningPlan,
    spec: FloorPlanSpecification,
    tolerance: float = 0.2,
) -> AdjacencyGraph:
    """Room connectivity from actual doors, plus open connections in open plans.

    A door edge becomes ``hallway`` when either room is a hallway. With the
    open_plan preference, touching public rooms without a door between
    them are joined by an ``open`` edge.
    """
    by_id = {r.id: r for r in rooms}
    walls_by_id = {w.id: w for w in walls}
    graph = AdjacencyGraph(nodes=[
        AdjacencyGraphNode(id=r.id, room_type=r.spec.type, zone=r.zone) for r in rooms
    ])
    connected: set[frozenset[str]] = set()

    for door in openings.openings:
        if not door.is_door or door.properties.is_entry:
            continue
        wall = walls_by_id.get(door.wall_id)
        if wall is None or not wall.is_shared:
            continue
        a, b = (by_id.get(room_id) for room_id in wall.adjacent_rooms)
        if a is None or b is None:
            continue
        hallway = RoomType.HALLWAY in (a.spec.type, b.spec.type)
        graph.edges.append(AdjacencyGraphEdge(
            source=a.id,
            target=b.id,
            kind=GraphEdgeKind.HALLWAY if hallway else GraphEdgeKind.DOOR,
            opening_id=door.id,
        ))
        connected.add(frozenset((a.id, b.id)))

    if spec.metadata.preferences.open_plan:
        public = [r for r in rooms if r.zone == ZoneType.PUBLIC]
        for i, a in enumerate(public):
            for b in public[i + 1:]:
                pair = frozenset((a.id, b.id))
                if pair not in connected and are_adjacent(a, b, tolerance):
                    graph.edges.append(AdjacencyGraphEdge(
                        source=a.id, target=b.id, kind=GraphEdgeKind.OPEN,
                    ))
                    connected.add(pair)
    return graph


def assemble_geometry(
    rooms: Sequence[PlacedRoom],
    walls: list[Wall],
    openings: OpeningPlan,
    spec: FloorPlanSpecification,
    placement: PlacementResult,
    relaxations: Sequence[PlacementRelaxation] = (),
    score: Optional[LayoutScore] = None,
    seed: Optional[int] = None,
    iterations: int = 0,
) -> FloorPlanGeometry:
    """Package a frozen placement with its walls and openings.

    Confidence starts at 100; the orchestrator sets the final value once
    validation has run.
    """
    exterior = [w for w in walls if w.is_exterior]
    if exterior:
        xs = [p.x for w in exterior for p in (w.start, w.end)]
        ys = [p.y for w in exterior for p in (w.start, w.end)]
        dimensions = BuildingDimensions(width=max(xs) - min(xs), height=max(ys) - min(ys))
    elif rooms:
        box = bounding_box(rooms)
        dimensions = BuildingDimensions(width=box.width, height=box.height)
    else:
        dimensions = BuildingDimensions(width=0.0, height=0.0)

    ordered = sorted(rooms, key=lambda r: r.id)
    return FloorPlanGeometry(
        rooms=[room_geometry(r) for r in rooms],
        walls=walls,
        openings=list(openings.openings),
        adjacency_graph=build_adjacency_graph(ordered, walls, openings, spec),
        metadata=PlanMetadata(
            total_area=round(sum(r.area for r in rooms), 2),
            building_dimensions=dimensions,
            confidence=100.0,
            relaxed_constraints=[str(r) for r in relaxations],
            strategy=placement.strategy.value,
            template_id=placement.template.id if placement.template else None,
            seed=seed,
            iterations=iterations,
            score=round(score.total, 2) if score else 0.0,
        ),
    )


# ── Entry points ─────────────────────────────────────────────────────


def generate_floor_plan(
    spec: FloorPlanSpecification,
    config: Optional[EngineConfig] = None,
    strategy: PlacementStrategy = PlacementStrategy.ZONE_CLUSTERED,
    seed: Optional[int] = None,
    variation: Optional[int] = None,
    optimize: bool = True,
) -> GenerationResult:
    """Generate one floor plan with a fresh FloorPlanGenerator."""
    return FloorPlanGenerator(config).generate(
        spec, strategy=strategy, seed=seed, variation=variation, optimize=optimize,
    )


def _run_variation(
    spec: FloorPlanSpecification,
    config: EngineConfig,
    strategy: PlacementStrategy,
    seed: Optional[int],
    variation: int,
    optimize: bool,
) -> GenerationResult:
    return FloorPlanGenerator(config).generate(
        spec, strategy=strategy, seed=seed, variation=variation, optimize=optimize,
    )


def _placement_of(result: GenerationResult) -> list[PlacedRoom]:
    return result.placement


def generate_variations(
    spec: FloorPlanSpecification,
    count: int = 3,
    seed: Optional[int] = None,
    config: Optional[EngineConfig] = None,
    strategy: PlacementStrategy = PlacementStrategy.TEMPLATE_GUIDED,
    executor: Optional[Executor] = None,
    timeout: Optional[float] = None,
    diverse: bool = False,
    min_diversity: float = 30.0,
    optimize: bool = True,
) -> list[GenerationResult]:
    """Generate independent variations in parallel.

    Variation i runs with variation index i and seed ``seed + i`` (or
    fresh entropy when seed is None). Runs that fail or do not finish
    within ``timeout`` seconds are logged and dropped; the rest are
    gathered and sorted by confidence. With ``diverse`` the list is then
    thinned so every kept variation differs enough from the better ones.

    Args:
        spec: Input specification (checked once before dispatch).
        count: Number of variations, at most MAX_VARIATIONS.
        seed: Base seed.
        config: Engine settings shared by all runs.
        strategy: Placement strategy for every run.
        executor: Where to run; a process pool of ``count`` workers when
            omitted. A caller-supplied executor is not shut down.
        timeout: Seconds to wait for all runs together.
        diverse: Drop variations less than ``min_diversity`` away from a
            better one.
        min_diversity: Diversity (0–100) a kept variation needs.
        optimize: Run simulated annealing in each variation.

    Returns:
        Successful results, best confidence first.
    """
    ensure_valid_specification(spec)
    config = config or EngineConfig()
    count = max(1, min(count, MAX_VARIATIONS))

    own_executor = executor is None
    pool = executor if executor is not None else ProcessPoolExecutor(max_workers=count)
    futures: dict[Future, int] = {}
    try:
        for i in range(count):
            run_seed = seed + i if seed is not None else None
            future = pool.submit(_run_variation, spec, config, strategy, run_seed, i, optimize)
            futures[future] = i
        done, not_done = wait(futures, timeout=timeout)
    finally:
        if own_executor:
            pool.shutdown(wait=False, cancel_futures=True)

    for future in not_done:
        future.cancel()
        logger.warning("variation %d abandoned after %.1fs timeout", futures[future], timeout or 0)

    results: list[GenerationResult] = []
    for future in sorted(done, key=lambda f: futures[f]):
        try:
            results.append(future.result())
        except FloorPlanError as e:
            logger.warning("variation %d failed: %s", futures[future], e)

    results.sort(key=lambda r: -r.confidence)
    if diverse and len(results) > 1:
        results = filter_for_diversity(
            results, count, min_diversity, key=_placement_of,
        )
    logger.info("generated %d of %d variations", len(results), count)
    return results
