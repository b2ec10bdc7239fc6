# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Tests for the FloorPlan editor state."""

from __future__ import annotations

import pytest

from tableplan.errors import LayoutError
from tableplan.floorplan import Canvas, Fixture, FloorPlan, TablePosition, get_structure


def _table(table_id: str, number: str | None = None, capacity: int = 4) -> dict:
    return {"id": table_id, "table_number": number or table_id, "capacity": capacity}


@pytest.fixture
def plan() -> FloorPlan:
    return FloorPlan("main")


class TestPlace:
    def test_place_from_pointer_clamps_and_snaps(self, plan):
        pos = plan.place(_table("t1", "1"), 205, 303, "circle-4")
        assert (pos.x, pos.y) == (160, 260)
        assert pos.shape == "round"
        assert pos.structure_id == "circle-4"
        assert pos.capacity == 4
        assert plan.dirty

    def test_place_without_structure_uses_table_shape(self, plan):
        pos = plan.place({"id": "t1", "table_number": "1", "capacity": 2, "shape": "oval"}, 0, 0)
        assert pos.shape == "oval"
        assert (pos.width, pos.height) == (60, 60)

    def test_place_exact_corner(self, plan):
        pos = plan.place(_table("t1"), 0, 0, from_pointer=False)
        assert (pos.x, pos.y) == (0, 0)

    def test_place_twice_rejected(self, plan):
        plan.place(_table("t1"), 100, 100)
        with pytest.raises(LayoutError, match="already on the floor plan"):
            plan.place(_table("t1"), 300, 300)

    def test_duplicate_number_rejected(self, plan):
        plan.place(_table("t1", "5"), 100, 100)
        with pytest.raises(LayoutError, match="Table number 5"):
            plan.place(_table("t2", "5"), 300, 300)

    def test_unknown_structure(self, plan):
        with pytest.raises(LayoutError):
            plan.place(_table("t1"), 100, 100, "hexagon-12")


class TestEdits:
    @pytest.fixture
    def placed(self, plan) -> FloorPlan:
        plan.place(_table("t1", "1"), 100, 100, get_structure("square-4"))
        return plan

    def test_move_snaps(self, placed):
        pos = placed.move("t1", 213, 187)
        assert (pos.x, pos.y) == (220, 180)

    def test_move_without_snap(self):
        plan = FloorPlan("main", snap_to_grid=False)
        plan.place(_table("t1"), 0, 0, from_pointer=False)
        assert plan.move("t1", 13.5, 7).x == 13.5

    def test_move_stays_on_canvas(self, placed):
        pos = placed.move("t1", -500, 5000)
        assert (pos.x, pos.y) == (0, pytest.approx(600 - 52.73))
        assert pos.footprint.bounding_box().inside(placed.canvas.box)
        pos = placed.move("t1", 5000, -20)
        assert (pos.x, pos.y) == (pytest.approx(800 - 77.27), 0)

    def test_move_from_pointer_uses_drop_margins(self, placed):
        pos = placed.move("t1", -500, 5000, from_pointer=True)
        assert (pos.x, pos.y) == (40, 520)

    def test_rotate_steps_of_45(self, placed):
        for expected in (45, 90, 135, 180, 225, 270, 315, 0):
            assert placed.rotate("t1").rotation == expected

    def test_set_rotation(self, placed):
        assert placed.set_rotation("t1", 450).rotation == 90

    def test_resize(self, placed):
        pos = placed.resize("t1", 100, 50)
        assert (pos.width, pos.height) == (100, 50)
        with pytest.raises(LayoutError):
            placed.resize("t1", 0, 50)

    def test_set_shape(self, placed):
        assert placed.set_shape("t1", "hexagon").shape == "hexagon"
        with pytest.raises(LayoutError):
            placed.set_shape("t1", "blob")

    def test_remove(self, placed):
        removed = placed.remove("t1")
        assert removed.table_id == "t1"
        assert "t1" not in placed

    def test_unknown_table(self, placed):
        for call in (
            lambda: placed.move("ghost", 0, 0),
            lambda: placed.rotate("ghost"),
            lambda: placed.resize("ghost", 10, 10),
            lambda: placed.remove("ghost"),
        ):
            with pytest.raises(LayoutError, match="not on the floor plan"):
                call()

    def test_configure_refreshes_cached_values(self, placed):
        pos = placed.configure("t1", table_number="1A", capacity=6)
        assert (pos.table_number, pos.capacity) == ("1A", 6)

    def test_configure_rejects_number_on_plan(self, placed):
        placed.place(_table("t2", "2"), 400, 400)
        with pytest.raises(LayoutError, match="Table number 2"):
            placed.configure("t1", table_number="2")


class TestFixtures:
    def test_add_uses_template(self, plan):
        wall = plan.add_fixture("wall", 103, 47)
        assert (wall.x, wall.y) == (100, 40)
        assert (wall.width, wall.height) == (100, 10)
        assert wall.color == "#666666"
        assert plan.get_fixture(wall.fixture_id) is wall
        assert len(plan) == 0
        assert plan.summary()["fixtures"] == 1

    def test_add_kept_on_canvas(self, plan):
        window = plan.add_fixture("window", 790, 590, label="Street")
        assert window.footprint.bounding_box().inside(plan.canvas.box)
        assert window.label == "Street"

    def test_unknown_kind_or_shape(self, plan):
        with pytest.raises(LayoutError, match="Unknown fixture kind 'chair'"):
            plan.add_fixture("chair", 0, 0)
        with pytest.raises(LayoutError, match="Unknown fixture shape"):
            plan.add_fixture("decoration", 0, 0, shape="star")
        with pytest.raises(LayoutError, match="Size must be positive"):
            plan.add_fixture("wall", 0, 0, width=0)

    def test_edit_and_remove(self, plan):
        door = plan.add_fixture("door", 0, 0)
        assert plan.rotate(door.fixture_id).rotation == 45
        assert plan.resize(door.fixture_id, 40, 10).width == 40
        assert plan.move(door.fixture_id, 200, 200).x == 200
        plan.remove_fixture(door.fixture_id)
        assert plan.fixtures == {}
        with pytest.raises(LayoutError, match="Fixture .* is not on the floor plan"):
            plan.remove_fixture(door.fixture_id)

    def test_serialised_apart_from_tables(self, plan):
        plan.place(_table("t1", "1"), 100, 100)
        door = plan.add_fixture("door", 300, 0)
        assert list(plan.to_positions()) == ["t1"]
        assert plan.to_fixtures()[door.fixture_id]["kind"] == "door"
        restored = FloorPlan.from_positions(
            "main", plan.to_positions(), fixtures=plan.to_fixtures()
        )
        assert restored.get_fixture(door.fixture_id) == door

    def test_legacy_type_key(self):
        fixture = Fixture.from_dict("f1", {"type": "wall", "x": 0, "y": "10"})
        assert fixture.kind == "wall"
        assert (fixture.y, fixture.width) == (10.0, 100)


class TestDuplicate:
    def test_duplicate_tables_and_fixtures(self, plan):
        plan.place(_table("t1", "1", 6), 100, 100, "square-8")
        plan.rotate("t1")
        wall = plan.add_fixture("wall", 300, 300)

        copies = plan.duplicate(
            ["t1", wall.fixture_id], {"t1": {"id": "t9", "table_number": "9", "capacity": 6}}
        )

        table_copy, wall_copy = copies
        source = plan.get("t1")
        assert table_copy.table_id == "t9"
        assert table_copy.table_number == "9"
        assert (table_copy.x, table_copy.y) == (source.x + 20, source.y + 20)
        assert table_copy.rotation == source.rotation
        assert table_copy.structure_id == "square-8"
        assert wall_copy.fixture_id != wall.fixture_id
        assert (wall_copy.x, wall_copy.y) == (320, 320)
        assert len(plan) == 2
        assert len(plan.fixtures) == 2

    def test_duplicate_is_one_edit(self, plan):
        plan.place(_table("t1", "1"), 100, 100)
        plan.duplicate(["t1"], {"t1": {"id": "t2", "table_number": "2", "capacity": 4}})
        assert plan.undo()
        assert list(plan.positions) == ["t1"]

    def test_table_needs_new_record(self, plan):
        plan.place(_table("t1", "1"), 100, 100)
        with pytest.raises(LayoutError, match="No new table"):
            plan.duplicate(["t1"])
        with pytest.raises(LayoutError, match="not on the floor plan"):
            plan.duplicate(["ghost"])
        assert not plan.can_redo
        assert len(plan) == 1


class TestHistory:
    def test_undo_redo(self, plan):
        plan.place(_table("t1"), 0, 0, from_pointer=False)
        plan.move("t1", 100, 100)

        assert plan.undo()
        assert plan.get("t1").x == 0
        assert plan.undo()
        assert "t1" not in plan
        assert not plan.undo()

        assert plan.redo()
        assert plan.get("t1").x == 0
        assert plan.redo()
        assert plan.get("t1").x == 100
        assert not plan.redo()

    def test_new_edit_clears_redo(self, plan):
        plan.place(_table("t1"), 0, 0, from_pointer=False)
        plan.move("t1", 100, 100)
        plan.undo()
        plan.rotate("t1")
        assert not plan.can_redo

    def test_undo_restores_independent_copy(self, plan):
        plan.place(_table("t1"), 0, 0, from_pointer=False)
        plan.rotate("t1")
        plan.undo()
        plan.rotate("t1", 90)
        plan.undo()
        assert plan.get("t1").rotation == 0

    def test_undo_covers_fixtures(self, plan):
        wall = plan.add_fixture("wall", 0, 0)
        plan.move(wall.fixture_id, 200, 200)
        assert plan.undo()
        assert plan.get_fixture(wall.fixture_id).x == 0
        assert plan.undo()
        assert plan.fixtures == {}
        assert plan.redo()
        assert wall.fixture_id in plan.fixtures

    def test_mark_saved(self, plan):
        plan.place(_table("t1"), 0, 0)
        plan.mark_saved()
        assert not plan.dirty
        plan.undo()
        assert plan.dirty


class TestValidate:
    def _types(self, plan):
        return sorted(issue["type"] for issue in plan.validate())

    def test_clean_layout(self, plan):
        plan.place(_table("t1", "1"), 100, 100)
        plan.place(_table("t2", "2"), 400, 100)
        assert plan.validate() == []

    def test_overlap_warning(self, plan):
        plan.place(_table("t1", "1"), 100, 100, from_pointer=False)
        plan.place(_table("t2", "2"), 120, 120, from_pointer=False)
        [issue] = plan.validate()
        assert issue["type"] == "overlapping_tables"
        assert issue["severity"] == "warning"
        assert issue["table_ids"] == ["t1", "t2"]

    def test_out_of_bounds(self):
        plan = FloorPlan("main", Canvas(200, 200))
        plan.place(_table("t1"), 180, 180, from_pointer=False)
        assert self._types(plan) == ["table_out_of_bounds"]

    def test_duplicate_number_and_capacity_errors(self):
        plan = FloorPlan.from_positions(
            "main",
            {
                "a": {"x": 0, "y": 0, "table_number": "7", "capacity": 0},
                "b": {"x": 300, "y": 0, "table_number": "7", "capacity": 2},
            },
        )
        assert self._types(plan) == ["duplicate_table_number", "invalid_capacity"]
        assert all(i["severity"] == "error" for i in plan.validate())


class TestSerialisation:
    def test_positions_round_trip(self, plan):
        plan.place(_table("t1", "1"), 200, 200, "square-8")
        plan.rotate("t1")
        restored = FloorPlan.from_positions("main", plan.to_positions())
        assert restored.get("t1") == plan.get("t1")

    def test_legacy_camel_case_keys(self):
        pos = TablePosition.from_dict(
            "t9", {"x": "10", "y": 20, "tableNumber": 9, "isConfigured": False}
        )
        assert pos.table_number == "9"
        assert pos.is_configured is False
        assert pos.x == 10.0

    def test_missing_coordinates(self):
        with pytest.raises(LayoutError, match="numeric x and y"):
            TablePosition.from_dict("t1", {"x": 1})

    @pytest.mark.parametrize("flag", ["false", "0", "no", "", False, 0])
    def test_unconfigured_flag(self, flag):
        pos = TablePosition.from_dict("t1", {"x": 0, "y": 0, "is_configured": flag})
        assert pos.is_configured is False

    @pytest.mark.parametrize("flag", ["true", "1", "yes", True, 1])
    def test_configured_flag(self, flag):
        assert TablePosition.from_dict("t1", {"x": 0, "y": 0, "isConfigured": flag}).is_configured

    def test_stored_size(self):
        pos = TablePosition.from_dict("t1", {"x": 0, "y": 0, "width": "90", "height": 45})
        assert (pos.width, pos.height) == (90.0, 45.0)
        assert TablePosition.from_dict("t1", {"x": 0, "y": 0}).width == 60
        with pytest.raises(LayoutError, match="must be positive, got 0.0x45.0"):
            TablePosition.from_dict("t1", {"x": 0, "y": 0, "width": 0, "height": 45})
        with pytest.raises(LayoutError, match="Size of table t1"):
            TablePosition.from_dict("t1", {"x": 0, "y": 0, "width": "wide"})

    def test_summary(self, plan):
        plan.place(_table("t1", "1", 4), 100, 100)
        plan.place(_table("t2", "2", 6), 400, 100)
        summary = plan.summary()
        assert summary["tables"] == 2
        assert summary["seats"] == 10
