"""
Fabric 模组清单解析

读取 fabric.mod.json。
"""

import json
from typing import Any, Dict

from tmod.exceptions import JarError, VersionParseError
from tmod.models import Loaders, ModDescriptor
from tmod.version import AnyRange, FabricVersion, VersionFamily, parse_range

FABRIC_MANIFEST = "fabric.mod.json"

# 模组作者写错的依赖 id
KNOWN_MISSPELLINGS = {
    "fzzy_core": "fzzy-core",
}


def _parse_relations(entries: Any, slug: str, field: str) -> Dict[str, AnyRange]:
    if not isinstance(entries, dict):
        raise JarError(f"fabric.mod.json 的 {field} 应为对象", context={"slug": slug})
    relations = {}
    for mod_id, requirement in entries.items():
        try:
            relations[mod_id] = parse_range(requirement, VersionFamily.FABRIC)
        except VersionParseError as e:
            raise JarError(
                f"模组 {slug} 对 {mod_id} 的版本要求无效: {requirement!r}",
                context={"slug": slug, "dependency": mod_id, "error": e.message},
            ) from e
    return relations


def parse_fabric_manifest(content: str) -> ModDescriptor:
    """解析 fabric.mod.json 文本"""
    try:
        # 部分清单的字符串中含有未转义的换行
        data = json.loads(content, strict=False)
    except json.JSONDecodeError as e:
        raise JarError(f"无法解析 fabric.mod.json: {e}") from e

    for key in ("id", "version"):
        if key not in data:
            raise JarError(f"fabric.mod.json 缺少 {key}")
    slug = data["id"]

    try:
        version = FabricVersion.parse(str(data["version"]))
    except VersionParseError as e:
        raise JarError(
            f"模组 {slug} 的版本号无效: {data['version']!r}",
            context={"slug": slug, "error": e.message},
        ) from e

    dependencies = _parse_relations(data.get("depends", {}), slug, "depends")
    loader_version = dependencies.pop("fabricloader", None)
    game_version = dependencies.pop("minecraft", None)
    dependencies.pop("java", None)

    # fabric-api 等内部模块无法在远程按 slug 找到
    dependencies = {
        KNOWN_MISSPELLINGS.get(mod_id, mod_id): requirement
        for mod_id, requirement in dependencies.items()
        if not mod_id.startswith("fabric")
    }

    return ModDescriptor(
        slug=slug,
        version=version,
        loader=Loaders.FABRIC,
        required_loader_version=loader_version,
        required_game_version=game_version,
        dependencies=dependencies,
        incompatibilities=_parse_relations(data.get("breaks", {}), slug, "breaks"),
        name=data.get("name"),
    )
