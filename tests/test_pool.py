"""Tests for the pool resolution engine."""

import copy
from datetime import timedelta

import pytest

from conftest import BASE_DATE
from tmod.exceptions import (
    APINotFoundError,
    ConfigError,
    IncompatibilityRejected,
    LookupFailure,
)
from tmod.models import RelationType
from tmod.pool import Pool

REQUIRED = RelationType.REQUIRED_DEPENDENCY
INCOMPATIBLE = RelationType.INCOMPATIBLE


class TestAddToRemotes:
    @pytest.mark.asyncio
    async def test_sodium_pulls_fabric_api(self, pool, searcher):
        searcher.add(2, "fabric-api")
        sodium = searcher.add(1, "sodium", [(2, REQUIRED)])

        await pool.add_to_remotes(sodium, manual=True)

        assert pool.manually_added == {"sodium"}
        assert set(pool.locks) == {"sodium", "fabric-api"}
        assert pool.locks["sodium"].dependencies == ["fabric-api"]
        assert pool.locks["fabric-api"].dependencies == []
        assert pool.locks["sodium"].timestamp == BASE_DATE + timedelta(days=1)

    @pytest.mark.asyncio
    async def test_transitive_dependencies(self, pool, searcher):
        searcher.add(3, "lib-c")
        searcher.add(2, "lib-b", [(3, REQUIRED)])
        top = searcher.add(1, "top", [(2, REQUIRED)])

        await pool.add_to_remotes(top)

        assert pool.manually_added == {"top"}
        assert set(pool.locks) == {"top", "lib-b", "lib-c"}
        assert pool.locks["lib-b"].dependencies == ["lib-c"]

    @pytest.mark.asyncio
    async def test_dependencies_are_sorted_and_unique(self, pool, searcher):
        searcher.add(2, "zeta")
        searcher.add(3, "alpha")
        top = searcher.add(1, "top", [(2, REQUIRED), (3, REQUIRED), (2, REQUIRED)])

        await pool.add_to_remotes(top)

        assert pool.locks["top"].dependencies == ["alpha", "zeta"]

    @pytest.mark.asyncio
    async def test_only_required_relations_are_followed(self, pool, searcher):
        searcher.add(2, "embedded")
        searcher.add(3, "optional")
        top = searcher.add(
            1,
            "top",
            [(2, RelationType.EMBEDDED_LIBRARY), (3, RelationType.OPTIONAL_DEPENDENCY)],
        )

        await pool.add_to_remotes(top)

        assert set(pool.locks) == {"top"}
        assert pool.locks["top"].dependencies == []

    @pytest.mark.asyncio
    async def test_non_manual_add(self, pool, searcher):
        lib = searcher.add(1, "lib")

        await pool.add_to_remotes(lib, manual=False)

        assert pool.manually_added == set()
        assert "lib" in pool.locks

    @pytest.mark.asyncio
    async def test_readd_is_idempotent(self, pool, searcher):
        searcher.add(2, "fabric-api")
        sodium = searcher.add(1, "sodium", [(2, REQUIRED)])

        await pool.add_to_remotes(sodium)
        manual, locks = set(pool.manually_added), copy.deepcopy(pool.locks)
        await pool.add_to_remotes(sodium)

        assert pool.manually_added == manual
        assert pool.locks == locks

    @pytest.mark.asyncio
    async def test_readd_overwrites_with_newest_file(self, pool, searcher):
        sodium = searcher.add(1, "sodium")
        await pool.add_to_remotes(sodium)

        newer = BASE_DATE + timedelta(days=30)
        searcher.add_file(1, date=newer)
        await pool.add_to_remotes(sodium)

        assert pool.locks["sodium"].timestamp == newer

    @pytest.mark.asyncio
    async def test_dependency_cycle_terminates(self, pool, searcher):
        searcher.add(1, "mod-a", [(2, REQUIRED)])
        searcher.add(2, "mod-b", [(1, REQUIRED)])

        await pool.add_to_remotes(searcher.mods[1])

        assert pool.manually_added == {"mod-a"}
        assert pool.locks["mod-a"].dependencies == ["mod-b"]
        assert pool.locks["mod-b"].dependencies == ["mod-a"]

    @pytest.mark.asyncio
    async def test_shared_dependency_is_resolved_once_per_call(self, pool, searcher):
        searcher.add(3, "shared")
        searcher.add(2, "lib-b", [(3, REQUIRED)])
        top = searcher.add(1, "top", [(2, REQUIRED), (3, REQUIRED)])

        await pool.add_to_remotes(top)

        fetched = [arg for name, arg in searcher.calls if name == "get_specific_mod_file"]
        # 兼容性检查与取文件各一次
        assert fetched.count("shared") == 2

    @pytest.mark.asyncio
    async def test_requires_searcher(self, tmp_path, fabric_config, searcher):
        pool = Pool(str(tmp_path), fabric_config)
        with pytest.raises(ConfigError):
            await pool.add_to_remotes(searcher.add(1, "lib"))


class TestCompatibility:
    @pytest.mark.asyncio
    async def test_incompatible_with_manual_mod_is_rejected(self, pool, searcher):
        mod_a = searcher.add(10, "mod-a")
        mod_b = searcher.add(11, "mod-b", [(10, INCOMPATIBLE)])
        await pool.add_to_remotes(mod_a)
        manual, locks = set(pool.manually_added), copy.deepcopy(pool.locks)

        with pytest.raises(IncompatibilityRejected) as info:
            await pool.add_to_remotes(mod_b)

        assert info.value.slug == "mod-b"
        assert info.value.conflicting_slug == "mod-a"
        assert pool.manually_added == manual
        assert pool.locks == locks

    @pytest.mark.asyncio
    async def test_incompatibility_with_absent_mod_is_fine(self, pool, searcher):
        searcher.add(10, "mod-a")
        mod_b = searcher.add(11, "mod-b", [(10, INCOMPATIBLE)])

        assert await pool.is_compatible(mod_b)
        await pool.add_to_remotes(mod_b)
        assert "mod-b" in pool.locks
        assert "mod-a" not in pool.locks

    @pytest.mark.asyncio
    async def test_only_manual_mods_count_as_conflicts(self, pool, searcher):
        searcher.add(10, "lib")
        await pool.add_to_remotes(searcher.mods[10], manual=False)
        mod_b = searcher.add(11, "mod-b", [(10, INCOMPATIBLE)])

        assert await pool.is_compatible(mod_b)

    @pytest.mark.asyncio
    async def test_missing_file_is_incompatible(self, pool, searcher):
        orphan = searcher.add(5, "orphan", with_file=False)

        assert not await pool.is_compatible(orphan)
        with pytest.raises(IncompatibilityRejected) as info:
            await pool.add_to_remotes(orphan)
        assert info.value.conflicting_slug is None
        assert pool.locks == {}

    @pytest.mark.asyncio
    async def test_incompatible_transitive_dependency_rolls_back_manual_entry(self, pool, searcher):
        await pool.add_to_remotes(searcher.add(10, "mod-a"))
        searcher.add(2, "lib", [(10, INCOMPATIBLE)])
        top = searcher.add(1, "top", [(2, REQUIRED)])

        with pytest.raises(IncompatibilityRejected):
            await pool.add_to_remotes(top)

        assert pool.manually_added == {"mod-a"}
        assert set(pool.locks) == {"mod-a"}


class TestLookupFailures:
    @pytest.mark.asyncio
    async def test_unexpected_error_rolls_back_manual_entry(self, pool, searcher, monkeypatch):
        searcher.add(2, "lib", [(99, REQUIRED)])
        top = searcher.add(1, "top", [(2, REQUIRED)])
        search_mod_by_id = searcher.search_mod_by_id

        async def flaky(mod_id):
            if mod_id == 99:
                raise RuntimeError("connection reset")
            return await search_mod_by_id(mod_id)

        monkeypatch.setattr(searcher, "search_mod_by_id", flaky)

        with pytest.raises(RuntimeError):
            await pool.add_to_remotes(top)

        assert pool.manually_added == set()
        assert pool.locks == {}

    @pytest.mark.asyncio
    async def test_unknown_relation_aborts_without_mutation(self, pool, searcher):
        top = searcher.add(1, "top", [(99, REQUIRED)])

        with pytest.raises(LookupFailure) as info:
            await pool.add_to_remotes(top)

        assert isinstance(info.value, APINotFoundError)
        assert info.value.context["slug"] == "top"
        assert info.value.context["relation_id"] == 99
        assert pool.manually_added == set()
        assert pool.locks == {}

    @pytest.mark.asyncio
    async def test_earlier_siblings_keep_their_writes(self, pool, searcher):
        searcher.add(4, "good")
        searcher.add(3, "bad", [(99, REQUIRED)])
        top = searcher.add(1, "top", [(4, REQUIRED), (3, REQUIRED)])

        with pytest.raises(LookupFailure) as info:
            await pool.add_to_remotes(top)

        assert info.value.context["slug"] == "bad"
        assert set(pool.locks) == {"good"}
        assert "top" not in pool.manually_added


class TestRemoveMod:
    @pytest.mark.asyncio
    async def test_remove_manual_mod_does_not_cascade(self, pool, searcher):
        searcher.add(2, "fabric-api")
        await pool.add_to_remotes(searcher.add(1, "sodium", [(2, REQUIRED)]))

        assert pool.remove_mod("sodium") is True
        assert pool.manually_added == set()
        assert set(pool.locks) == {"fabric-api"}

    @pytest.mark.asyncio
    async def test_remove_transitive_mod_is_refused(self, pool, searcher):
        searcher.add(2, "fabric-api")
        await pool.add_to_remotes(searcher.add(1, "sodium", [(2, REQUIRED)]))

        assert pool.remove_mod("fabric-api") is False
        assert "fabric-api" in pool.locks

    def test_remove_unknown_mod(self, pool):
        assert pool.remove_mod("nothing") is False
