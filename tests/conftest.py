import json
import zipfile
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional, Tuple

import pytest

from tmod.exceptions import APINotFoundError, LookupFailure
from tmod.models import (
    Loader,
    Loaders,
    ModFile,
    ModRelation,
    PoolConfig,
    RelationType,
    SearchedMod,
)
from tmod.pool import Pool

BASE_DATE = datetime(2024, 1, 1, tzinfo=timezone.utc)


class FakeSearcher:
    """内存中的模组仓库"""

    def __init__(self):
        self.mods: Dict[int, SearchedMod] = {}
        self.files: Dict[int, List[ModFile]] = {}
        self.calls: List[Tuple[str, object]] = []

    def add(
        self,
        mod_id: int,
        slug: str,
        relations: Iterable[Tuple[int, RelationType]] = (),
        date: Optional[datetime] = None,
        with_file: bool = True,
    ) -> SearchedMod:
        mod = SearchedMod(id=mod_id, name=slug.title(), slug=slug)
        self.mods[mod_id] = mod
        self.files.setdefault(mod_id, [])
        if with_file:
            self.add_file(mod_id, relations, date)
        return mod

    def add_file(
        self,
        mod_id: int,
        relations: Iterable[Tuple[int, RelationType]] = (),
        date: Optional[datetime] = None,
    ) -> ModFile:
        files = self.files.setdefault(mod_id, [])
        file = ModFile(
            id=mod_id * 100 + len(files),
            file_name=f"{self.mods[mod_id].slug}-{len(files)}.jar",
            date=date or BASE_DATE + timedelta(days=mod_id),
            url=f"https://example.invalid/{mod_id}/{len(files)}.jar",
            relations=[ModRelation(other, relation) for other, relation in relations],
        )
        files.append(file)
        return file

    async def search_mod_by_id(self, mod_id: int) -> SearchedMod:
        self.calls.append(("search_mod_by_id", mod_id))
        if mod_id not in self.mods:
            raise APINotFoundError(f"资源不存在: /mods/{mod_id}")
        return self.mods[mod_id]

    async def search_mod_by_slug(self, slug: str) -> SearchedMod:
        self.calls.append(("search_mod_by_slug", slug))
        for mod in self.mods.values():
            if mod.slug == slug:
                return mod
        raise APINotFoundError(f"模组 '{slug}' 不存在")

    async def get_specific_mod_file(
        self,
        mod: SearchedMod,
        config: PoolConfig,
        timestamp: Optional[datetime] = None,
    ) -> ModFile:
        self.calls.append(("get_specific_mod_file", mod.slug))
        files = self.files.get(mod.id, [])
        if timestamp is not None:
            for file in files:
                if file.date == timestamp:
                    return file
            raise LookupFailure(f"模组 '{mod.slug}' 没有对应时间的文件")
        if not files:
            raise LookupFailure(f"模组 '{mod.slug}' 没有可用文件")
        return max(files, key=lambda file: file.date)


@pytest.fixture
def searcher() -> FakeSearcher:
    return FakeSearcher()


@pytest.fixture
def fabric_config() -> PoolConfig:
    return PoolConfig(Loader(Loaders.FABRIC, "0.15.7"), "1.20.1")


@pytest.fixture
def forge_config() -> PoolConfig:
    return PoolConfig(Loader(Loaders.FORGE, "47.2.0"), "1.20.1")


@pytest.fixture
def pool(tmp_path, fabric_config, searcher) -> Pool:
    return Pool(str(tmp_path / "pool"), fabric_config, searcher)


def build_jar(path, files: Dict[str, str]) -> str:
    with zipfile.ZipFile(path, "w") as archive:
        for name, content in files.items():
            archive.writestr(name, content)
    return str(path)


def fabric_jar(path, **manifest) -> str:
    data = {"schemaVersion": 1, "id": "mymod", "version": "1.2.0"}
    data.update(manifest)
    return build_jar(path, {"fabric.mod.json": json.dumps(data)})


FORGE_MODS_TOML = """
modLoader = "javafml"
loaderVersion = "[47,)"
license = "MIT"

[[mods]]
modId = "examplemod"
version = "${file.jarVersion}"
displayName = "Example Mod"

[[dependencies.examplemod]]
modId = "forge"
mandatory = true
versionRange = "[47,)"
ordering = "NONE"
side = "BOTH"

[[dependencies.examplemod]]
modId = "minecraft"
mandatory = true
versionRange = "[1.20.1,1.21)"
ordering = "NONE"
side = "BOTH"

[[dependencies.examplemod]]
modId = "jei"
mandatory = true
versionRange = "[15.0,)"
side = "CLIENT"

[[dependencies.examplemod]]
modId = "serveronly"
mandatory = true
versionRange = "[1.0,)"
side = "SERVER"

[[dependencies.examplemod]]
modId = "optionalmod"
mandatory = false
versionRange = "[1.0,)"
side = "BOTH"
"""

FORGE_MANIFEST_MF = "Manifest-Version: 1.0\nImplementation-Version: 1.4.2\n"


def forge_jar(path, mods_toml: str = FORGE_MODS_TOML, manifest: str = FORGE_MANIFEST_MF) -> str:
    return build_jar(
        path,
        {"META-INF/mods.toml": mods_toml, "META-INF/MANIFEST.MF": manifest},
    )
