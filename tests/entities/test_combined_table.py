# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Tests for table combinations."""

from __future__ import annotations

import pytest

from tableplan.errors import LayoutError


@pytest.fixture
def combos(endpoints):
    return endpoints["combined_tables"]


class TestCombinedTables:
    async def test_add_sums_capacity(self, combos, make_table, scope):
        first = await make_table("1", 2)
        second = await make_table("2", 4)
        combo = await combos.add(
            **scope, name="Window", table_ids=[first["id"], second["id"], first["id"]]
        )
        assert combo["table_ids"] == [first["id"], second["id"]]
        assert combo["total_capacity"] == 6
        assert combo["is_active"] is True

    async def test_needs_two_tables(self, combos, make_table, scope):
        first = await make_table("1", 2)
        with pytest.raises(LayoutError, match="at least 2"):
            await combos.add(**scope, name="Solo", table_ids=[first["id"], first["id"]])

    async def test_unknown_member(self, combos, make_table, scope):
        first = await make_table("1", 2)
        with pytest.raises(ValueError, match="Table 'ghost' not found"):
            await combos.add(**scope, name="Bad", table_ids=[first["id"], "ghost"])

    async def test_update_members(self, combos, make_table, scope):
        tables = [await make_table(str(n), n) for n in (2, 3, 4)]
        combo = await combos.add(**scope, name="Pair", table_ids=[t["id"] for t in tables[:2]])

        updated = await combos.update(
            **scope,
            combination_id=combo["id"],
            name="Trio",
            table_ids=[t["id"] for t in tables],
        )
        assert updated["name"] == "Trio"
        assert updated["total_capacity"] == 9

    async def test_list_and_delete(self, combos, make_table, scope):
        first = await make_table("1", 2)
        second = await make_table("2", 2)
        combo = await combos.add(**scope, name="Pair", table_ids=[first["id"], second["id"]])
        await combos.update(**scope, combination_id=combo["id"], is_active=False)

        assert len(await combos.list(**scope)) == 1
        assert await combos.list(**scope, active_only=True) == []
        assert await combos.delete(**scope, combination_id=combo["id"]) is True
        assert await combos.list(**scope) == []
