"""Tests for dependency tree rendering."""

import pytest

from conftest import BASE_DATE
from tmod.models import RelationType
from tmod.pool import DepInfo, build_tree, render_tree

REQUIRED = RelationType.REQUIRED_DEPENDENCY


class TestTree:
    @pytest.mark.asyncio
    async def test_remote_dependencies(self, pool, searcher):
        searcher.add(3, "indium")
        searcher.add(2, "fabric-api")
        await pool.add_to_remotes(searcher.add(1, "sodium", [(2, REQUIRED)]))
        await pool.add_to_remotes(searcher.mods[3])

        assert render_tree(build_tree(pool)) == [
            "Tmod",
            "├── Remotes",
            "│   ├── indium",
            "│   └── sodium",
            "│       └── fabric-api",
            "└── Locals",
        ]

    def test_cycles_and_missing_locks(self, pool):
        pool.manually_added = {"mod-a", "mod-c"}
        pool.locks = {
            "mod-a": DepInfo(BASE_DATE, ["mod-b"]),
            "mod-b": DepInfo(BASE_DATE, ["mod-a"]),
        }

        label, sections = build_tree(pool)
        remotes = sections[0][1]

        assert label == "Tmod"
        assert remotes == [
            ("mod-a", [("mod-b", [("mod-a (循环)", [])])]),
            ("mod-c (未锁定)", []),
        ]
