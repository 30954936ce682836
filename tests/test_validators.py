"""Tests for specification checks and post-hoc geometry validation."""

import json

import pytest

from floorplan_builder.config import ValidationSettings
from floorplan_builder.errors import SpecificationError
from floorplan_builder.generators.openings import place_openings
from floorplan_builder.generators.pipeline import assemble_geometry
from floorplan_builder.generators.placer import PlacementResult, PlacementStrategy
from floorplan_builder.generators.walls import synthesize_walls
from floorplan_builder.models.geometry import Bounds
from floorplan_builder.models.placement import PlacedRoom
from floorplan_builder.models.spec import FloorPlanSpecification
from floorplan_builder.validators import (
    check_specification,
    ensure_valid_specification,
    load_specification,
    validate_geometry,
)
from floorplan_builder.validators.geometry import (
    validate_code_minimums,
    validate_door_access,
    validate_envelope_closure,
    validate_no_overlap,
    validate_total_area,
    validate_window_exposure,
)
from floorplan_builder.validators.issues import ValidationError, ValidationReport

from conftest import TWO_BEDROOM, edge, room


def spec_from(**overrides) -> FloorPlanSpecification:
    return FloorPlanSpecification.model_validate(dict(TWO_BEDROOM, **overrides))


def build(spec: FloorPlanSpecification, boxes: dict):
    """Geometry for a hand-made placement, without optimisation or validation."""
    rooms = [PlacedRoom.from_spec(spec.get_room(rid), *box) for rid, box in boxes.items()]
    walls = synthesize_walls(rooms)
    openings = place_openings(rooms, walls, spec)
    placement = PlacementResult(
        rooms=rooms,
        strategy=PlacementStrategy.ZONE_CLUSTERED,
        width=10,
        height=10,
        search_bounds=Bounds(width=10, height=10),
    )
    return assemble_geometry(rooms, walls, openings, spec, placement)


@pytest.fixture
def small_spec() -> FloorPlanSpecification:
    return FloorPlanSpecification.model_validate({
        "totalArea": 36,
        "rooms": [
            room("living", "living", 18, 22, "public", requiresWindow=True),
            room("bedroom", "bedroom", 10, 14, "private", requiresWindow=True),
        ],
        "adjacencyGraph": [edge("living", "bedroom", 6)],
    })


@pytest.fixture
def small_geometry(small_spec):
    return build(small_spec, {"living": (0, 0, 4.8, 4.2), "bedroom": (4.9, 0, 3, 4.2)})


# ── Specification checks ─────────────────────────────────────────────


class TestSpecificationChecks:
    def test_clean_specification(self, two_bedroom_spec):
        assert check_specification(two_bedroom_spec) == []

    def test_duplicate_ids(self):
        rooms = TWO_BEDROOM["rooms"] + [room("kitchen", "kitchen", 8, 10, "service")]
        issues = check_specification(spec_from(rooms=rooms))
        dup = [i for i in issues if i.check == "unique_ids"]
        assert len(dup) == 1
        assert dup[0].severity == "error"
        assert "Duplicate room id 'kitchen'" in dup[0].message

    def test_unknown_edge_room(self):
        edges = TWO_BEDROOM["adjacencyGraph"] + [edge("living", "garage", 5)]
        issues = check_specification(spec_from(adjacencyGraph=edges))
        refs = [i for i in issues if i.check == "references"]
        assert len(refs) == 1
        assert "unknown room 'garage'" in refs[0].message

    def test_self_loop(self):
        edges = TWO_BEDROOM["adjacencyGraph"] + [edge("living", "living", 5)]
        issues = check_specification(spec_from(adjacencyGraph=edges))
        assert any("connects a room to itself" in i.message for i in issues)

    def test_unknown_constraint_room(self):
        constraints = [{"type": "minDimension", "room": "attic", "value": 2}]
        issues = check_specification(spec_from(constraints=constraints))
        assert [i.element_id for i in issues if i.check == "references"] == ["constraint_0"]

    def test_contradictory_dimensions(self):
        """minDimension 4 m and maxDimension 3 m on the same room → error."""
        constraints = [
            {"type": "minDimension", "room": "bedroom1", "value": 4},
            {"type": "maxDimension", "room": "bedroom1", "value": 3},
        ]
        issues = check_specification(spec_from(constraints=constraints))
        dims = [i for i in issues if i.check == "dimensions"]
        assert len(dims) == 1
        assert dims[0].element_id == "bedroom1"

    def test_area_budget_warning(self):
        issues = check_specification(spec_from(totalArea=50))
        budget = [i for i in issues if i.check == "area_budget"]
        assert len(budget) == 1
        assert budget[0].severity == "warning"

    def test_tiny_bedroom_warning(self):
        rooms = [r for r in TWO_BEDROOM["rooms"] if r["id"] != "bedroom2"]
        rooms.append(room("bedroom2", "bedroom", 4, 6, "private"))
        issues = check_specification(spec_from(rooms=rooms))
        assert [i.element_id for i in issues if i.check == "room_size"] == ["bedroom2"]

    def test_isolated_room_warning(self):
        rooms = TWO_BEDROOM["rooms"] + [room("study", "study", 8, 10, "private")]
        issues = check_specification(spec_from(rooms=rooms))
        assert [i.element_id for i in issues if i.check == "isolated"] == ["study"]

    def test_no_isolation_warning_without_edges(self):
        issues = check_specification(spec_from(adjacencyGraph=[]))
        assert not [i for i in issues if i.check == "isolated"]

    def test_many_rooms_warning(self):
        rooms = [room(f"room{i}", "study", 5, 8, "public") for i in range(16)]
        issues = check_specification(spec_from(rooms=rooms, adjacencyGraph=[], totalArea=200))
        assert [i.check for i in issues] == ["room_count"]


class TestEnsureAndLoad:
    def test_ensure_raises_with_issues(self):
        edges = TWO_BEDROOM["adjacencyGraph"] + [edge("living", "garage", 5)]
        with pytest.raises(SpecificationError, match="unknown room") as exc:
            ensure_valid_specification(spec_from(adjacencyGraph=edges))
        assert len(exc.value.issues) == 1

    def test_ensure_returns_warnings(self):
        warnings = ensure_valid_specification(spec_from(totalArea=50))
        assert [w.check for w in warnings] == ["area_budget"]

    def test_load_from_dict(self):
        spec = load_specification(TWO_BEDROOM)
        assert len(spec.rooms) == 6

    def test_load_from_json_string(self):
        spec = load_specification(json.dumps(TWO_BEDROOM))
        assert spec.total_area == 80

    def test_load_from_path(self, tmp_path):
        path = tmp_path / "spec.json"
        path.write_text(json.dumps(TWO_BEDROOM))
        assert load_specification(path).room_ids[0] == "living"

    def test_load_passes_model_through(self, two_bedroom_spec):
        assert load_specification(two_bedroom_spec) is two_bedroom_spec

    def test_malformed_json(self):
        with pytest.raises(SpecificationError, match="Cannot read specification"):
            load_specification("{not json")

    def test_missing_file(self, tmp_path):
        with pytest.raises(SpecificationError, match="Cannot read specification"):
            load_specification(tmp_path / "missing.json")

    def test_schema_errors_become_issues(self):
        data = dict(TWO_BEDROOM, totalArea=-5)
        with pytest.raises(SpecificationError, match="schema error") as exc:
            load_specification(data)
        assert exc.value.issues[0].check == "schema"
        assert exc.value.issues[0].element_id == "totalArea"


# ── Geometry checks ──────────────────────────────────────────────────


class TestGeometryValidation:
    def test_clean_plan(self, small_geometry, small_spec):
        report = validate_geometry(small_geometry, small_spec)
        assert report.issues == []
        assert report.is_valid

    def test_overlap(self, small_spec):
        geometry = build(small_spec, {"living": (0, 0, 4.8, 4.2), "bedroom": (4, 0, 3, 4.2)})
        errors = validate_no_overlap(geometry)
        assert len(errors) == 1
        assert errors[0].element_id == "living/bedroom"
        assert "3.36" in errors[0].message

    def test_missing_doors(self, small_geometry, small_spec):
        small_geometry.openings = [o for o in small_geometry.openings if not o.is_door]
        errors = validate_door_access(small_geometry, small_spec, ValidationSettings())
        assert sorted(e.element_id for e in errors) == ["bedroom", "living"]
        assert all(e.severity == "error" and e.check == "access" for e in errors)

    def test_hallway_needs_no_door(self):
        spec = FloorPlanSpecification.model_validate({
            "totalArea": 30,
            "rooms": [
                room("hall", "hallway", 4, 6, "public", aspect=(0.3, 0.7)),
                room("store", "utility", 4, 6, "service", requiresDoor=False),
            ],
        })
        geometry = build(spec, {"hall": (0, 0, 1.5, 3.5), "store": (1.6, 0, 2, 2.5)})
        geometry.openings = []
        assert validate_door_access(geometry, spec, ValidationSettings()) == []

    def test_window_exposure(self, small_geometry, small_spec):
        small_geometry.walls = [w for w in small_geometry.walls if not w.is_exterior]
        small_geometry.openings = []
        warnings = validate_window_exposure(small_geometry, small_spec, ValidationSettings())
        assert sorted(w.element_id for w in warnings) == ["bedroom", "living"]
        assert all(w.severity == "warning" for w in warnings)

    def test_open_envelope(self, small_geometry):
        """West wall removed → south start and north end dangle."""
        small_geometry.walls = [w for w in small_geometry.walls if w.id != "wall_ext_4"]
        warnings = validate_envelope_closure(small_geometry, ValidationSettings())
        assert sorted(w.element_id for w in warnings) == ["wall_ext_1", "wall_ext_3"]

    def test_too_few_exterior_walls(self, small_geometry):
        small_geometry.walls = [w for w in small_geometry.walls if w.id in ("wall_ext_1", "wall_ext_2")]
        warnings = validate_envelope_closure(small_geometry, ValidationSettings())
        assert len(warnings) == 1
        assert warnings[0].element_id == "exterior"

    def test_total_area(self, small_geometry, small_spec):
        spec = small_spec.model_copy(update={"total_area": 60})
        warnings = validate_total_area(small_geometry, spec, ValidationSettings())
        assert len(warnings) == 1
        assert warnings[0].check == "area"

    def test_code_minimums(self):
        spec = FloorPlanSpecification.model_validate({
            "totalArea": 20,
            "rooms": [
                room("bed", "bedroom", 5, 14, "private"),
                room("bath", "bathroom", 1, 6, "private"),
                room("hall", "hallway", 1, 6, "public", aspect=(0.2, 0.7)),
            ],
        })
        geometry = build(spec, {
            "bed": (0, 0, 2.4, 2.8),
            "bath": (2.5, 0, 1.2, 1.5),
            "hall": (3.8, 0, 0.8, 3),
        })
        warnings = validate_code_minimums(geometry, ValidationSettings())
        assert sorted(w.element_id for w in warnings) == ["bath", "bed", "bed", "hall"]
        assert all(w.check == "code" for w in warnings)

    def test_report_threshold(self, small_geometry, small_spec):
        """Two rooms without a door are one failed access check."""
        small_geometry.openings = []
        report = validate_geometry(small_geometry, small_spec)
        assert len(report.errors) == 2
        assert report.failed_error_checks == {"access"}
        assert not report.exceeds(1)
        assert report.exceeds(0)
        assert "access" in report.failed_checks()

    def test_threshold_counts_checks_not_elements(self):
        report = ValidationReport(
            [ValidationError("error", "room", f"r{i}", "no door", "access") for i in range(5)]
            + [ValidationError("error", "room", "r0", "overlaps r1", "overlap")]
            + [ValidationError("warning", "room", "r2", "too small", "code")]
        )
        assert len(report.errors) == 6
        assert report.failed_error_checks == {"access", "overlap"}
        assert not report.exceeds(2)
        assert report.exceeds(1)


class TestReport:
    def test_to_dict(self, small_geometry, small_spec):
        small_geometry.openings = []
        data = validate_geometry(small_geometry, small_spec).to_dict()
        assert data["errors"] == 2
        assert data["failed_checks"] == ["access"]
        assert {d["check"] for d in data["details"]} >= {"access"}

    def test_empty_report(self):
        report = ValidationReport()
        assert report.is_valid
        assert report.to_dict() == {"errors": 0, "failed_checks": [], "warnings": 0, "details": []}
