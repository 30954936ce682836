"""Floorplan Builder CLI.

Usage:
    python -m floorplan_builder <command> [args] [options]

Every command prints one JSON object to stdout with an "ok" flag.
Failures print {"ok": false, "error": ...} and exit with status 1.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import typer

from floorplan_builder import __version__
from floorplan_builder.config import EngineConfig
from floorplan_builder.errors import LayoutValidationError, SpecificationError
from floorplan_builder.generators.pipeline import FloorPlanGenerator, generate_variations
from floorplan_builder.generators.placer import PlacementStrategy
from floorplan_builder.generators.templates import (
    LAYOUT_TEMPLATES,
    classify_typology,
    select_templates,
)
from floorplan_builder.models.plan import FloorPlanGeometry
from floorplan_builder.models.spec import FloorPlanSpecification
from floorplan_builder.validators.geometry import validate_geometry
from floorplan_builder.validators.specification import check_specification, load_specification

app = typer.Typer(
    name="floorplan_builder",
    help="Floorplan Builder — automated floor-plan layout from room specifications.",
    no_args_is_help=True,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _output(data: dict) -> None:
    """Print JSON output to stdout."""
    typer.echo(json.dumps(data, indent=2, ensure_ascii=False))


def _fail(message: str, **extra) -> None:
    _output({"ok": False, "error": message, **extra})
    raise typer.Exit(1)


def _load_spec(path: Path) -> FloorPlanSpecification:
    """Load and check a specification file, exiting on any problem."""
    if not path.exists():
        _fail(f"Specification not found: {path}")
    try:
        return load_specification(path)
    except SpecificationError as e:
        _fail(str(e), issues=[i.to_dict() for i in e.issues])


def _load_config(path: Optional[Path]) -> EngineConfig:
    if path is None:
        return EngineConfig()
    if not path.exists():
        _fail(f"Config not found: {path}")
    return EngineConfig.load(path)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log pipeline progress to stderr"),
) -> None:
    """Floorplan Builder — automated floor-plan layout from room specifications."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------

@app.command()
def generate(
    spec_path: Path = typer.Argument(..., help="Specification JSON file"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write geometry JSON here"),
    seed: Optional[int] = typer.Option(None, "--seed", help="Random seed for a reproducible run"),
    strategy: PlacementStrategy = typer.Option(
        PlacementStrategy.ZONE_CLUSTERED, "--strategy", "-s", help="Room placement strategy",
    ),
    variation: Optional[int] = typer.Option(None, "--variation", help="Variation index"),
    no_optimize: bool = typer.Option(False, "--no-optimize", help="Skip simulated annealing"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Engine config JSON"),
):
    """Generate a floor plan from a specification."""
    spec = _load_spec(spec_path)
    config = _load_config(config_path)
    try:
        result = FloorPlanGenerator(config).generate(
            spec, strategy=strategy, seed=seed, variation=variation, optimize=not no_optimize,
        )
    except LayoutValidationError as e:
        extra: dict = {"validation": e.report.to_dict()}
        if e.geometry is not None:
            if output is not None:
                output.parent.mkdir(parents=True, exist_ok=True)
                e.geometry.save(output)
                extra["output"] = str(output)
            else:
                extra["geometry"] = e.geometry.model_dump(mode="json")
        _fail(str(e), **extra)

    data: dict = {"ok": True}
    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        result.geometry.save(output)
        data["output"] = str(output)
        summary = result.to_dict()
        summary.pop("geometry")
        data.update(summary)
    else:
        data.update(result.to_dict())
    _output(data)


@app.command()
def variations(
    spec_path: Path = typer.Argument(..., help="Specification JSON file"),
    count: int = typer.Option(3, "--count", "-n", help="Number of variations (max 10)"),
    seed: Optional[int] = typer.Option(None, "--seed", help="Base seed; variation i uses seed + i"),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Seconds before slow variations are abandoned"),
    output_dir: Optional[Path] = typer.Option(None, "--output", "-o", help="Write variation_N.json files here"),
    diverse: bool = typer.Option(False, "--diverse/--all", help="Drop variations too similar to better ones"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Engine config JSON"),
):
    """Generate several variations in parallel, best first."""
    spec = _load_spec(spec_path)
    config = _load_config(config_path)
    results = generate_variations(
        spec, count=count, seed=seed, config=config, timeout=timeout, diverse=diverse,
    )
    if not results:
        _fail("No variation could be generated")

    entries = []
    for rank, result in enumerate(results, start=1):
        entry = {
            "rank": rank,
            "variation": result.variation,
            "seed": result.seed,
            "confidence": result.confidence,
            "score": round(result.score.total, 2),
            "template": result.geometry.metadata.template_id,
            "relaxed_constraints": [str(r) for r in result.relaxations],
        }
        if output_dir is not None:
            output_dir.mkdir(parents=True, exist_ok=True)
            path = output_dir / f"variation_{rank}.json"
            result.geometry.save(path)
            entry["path"] = str(path)
        entries.append(entry)
    _output({"ok": True, "count": len(entries), "variations": entries})


# ---------------------------------------------------------------------------
# Checks
# ---------------------------------------------------------------------------

@app.command()
def check(spec_path: Path = typer.Argument(..., help="Specification JSON file")):
    """Check a specification without generating anything."""
    spec = _load_spec(spec_path)
    issues = check_specification(spec)
    _output({
        "ok": True,
        "rooms": len(spec.rooms),
        "edges": len(spec.adjacency_graph),
        "typology": classify_typology(spec.total_area, len(spec.rooms)).value,
        "warnings": len([i for i in issues if i.severity == "warning"]),
        "details": [i.to_dict() for i in issues],
    })


@app.command()
def validate(
    geometry_path: Path = typer.Argument(..., help="Geometry JSON written by 'generate'"),
    spec_path: Path = typer.Argument(..., help="Specification JSON file"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Engine config JSON"),
):
    """Re-run the geometric validator on a saved floor plan."""
    if not geometry_path.exists():
        _fail(f"Geometry not found: {geometry_path}")
    geometry = FloorPlanGeometry.load(geometry_path)
    spec = _load_spec(spec_path)
    config = _load_config(config_path)
    report = validate_geometry(geometry, spec, config.validation)
    _output({
        "ok": not report.exceeds(config.validation.error_threshold),
        "validation": report.to_dict(),
    })


@app.command()
def templates(
    rooms: Optional[int] = typer.Option(None, "--rooms", "-r", help="Room count to rank templates for"),
    area: Optional[float] = typer.Option(None, "--area", "-a", help="Total area (m²) to rank templates for"),
    top: int = typer.Option(20, "--top", help="Number of templates to list"),
):
    """List layout templates, ranked when --rooms and --area are given."""
    if rooms is not None and area is not None:
        ranked = select_templates(rooms, area, top_n=top)
        typology = classify_typology(area, rooms).value
    else:
        ranked = [(t, None) for t in LAYOUT_TEMPLATES[:top]]
        typology = None

    _output({
        "ok": True,
        "typology": typology,
        "templates": [
            {
                "id": t.id,
                "name": t.name,
                "pattern": t.pattern,
                "circulation": t.circulation.value,
                "score": round(score, 1) if score is not None else None,
            }
            for t, score in ranked
        ],
    })


@app.command()
def version() -> None:
    """Show version."""
    typer.echo(f"floorplan-builder v{__version__}")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    app()
