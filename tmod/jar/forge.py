"""
Forge / NeoForge 模组清单解析

读取 META-INF/mods.toml（或 META-INF/neoforge.mods.toml），只保留客户端需要的必需依赖。
"""

import re
from typing import Any, Dict, Optional

import toml

from tmod.exceptions import JarError, VersionParseError
from tmod.models import Loaders, ModDescriptor
from tmod.version import AnyRange, MavenVersion, MavenVersionRange

FORGE_MANIFEST = "META-INF/mods.toml"
NEOFORGE_MANIFEST = "META-INF/neoforge.mods.toml"

# 未写 versionRange 的依赖接受任意版本
ANY_VERSION = "[0,)"

_PLACEHOLDER = re.compile(r"^\$\{.+\}$")


def _client_side(side: Optional[str]) -> bool:
    return side is None or str(side).strip().lower() in ("both", "client")


def _is_mandatory(dependency: Dict[str, Any]) -> bool:
    # NeoForge 用 type 取代了 mandatory
    if "type" in dependency:
        return str(dependency["type"]).lower() == "required"
    return bool(dependency.get("mandatory", False))


def _is_incompatible(dependency: Dict[str, Any]) -> bool:
    return str(dependency.get("type", "")).lower() == "incompatible"


def _parse_range(text: Any, mod_id: str) -> AnyRange:
    text = str(text or "").strip() or ANY_VERSION
    try:
        return MavenVersionRange.parse(text)
    except VersionParseError as e:
        raise JarError(
            f"依赖 {mod_id} 的版本范围无效: {text}",
            context={"dependency": mod_id, "error": e.message},
        ) from e


def read_manifest_version(manifest: Optional[str]) -> Optional[str]:
    """从 META-INF/MANIFEST.MF 读取 Implementation-Version"""
    if not manifest:
        return None
    for line in manifest.splitlines():
        key, _, value = line.partition(":")
        if key.strip() == "Implementation-Version":
            return value.strip()
    return None


def parse_forge_manifest(
    content: str,
    manifest: Optional[str] = None,
    neoforge: bool = False,
) -> ModDescriptor:
    """
    解析 Forge 模组清单

    Args:
        content: mods.toml 文本
        manifest: MANIFEST.MF 文本，用于替换 ${file.jarVersion}
        neoforge: 清单是否来自 neoforge.mods.toml

    Returns:
        ModDescriptor
    """
    try:
        data = toml.loads(content)
    except toml.TomlDecodeError as e:
        raise JarError(f"无法解析 mods.toml: {e}") from e

    mods = data.get("mods") or []
    if not mods:
        raise JarError("mods.toml 中没有 [[mods]] 条目")
    info = mods[0]
    if "modId" not in info:
        raise JarError("mods.toml 的 [[mods]] 缺少 modId")
    slug = info["modId"]

    version_text = str(info.get("version", ""))
    if _PLACEHOLDER.match(version_text):
        version_text = read_manifest_version(manifest) or ""
    try:
        version = MavenVersion.parse(version_text)
    except VersionParseError as e:
        raise JarError(
            f"模组 {slug} 的版本号无效: {version_text!r}",
            context={"slug": slug, "error": e.message},
        ) from e

    dependencies: Dict[str, AnyRange] = {}
    incompatibilities: Dict[str, AnyRange] = {}
    for dependency in (data.get("dependencies") or {}).get(slug, []):
        mod_id = dependency.get("modId")
        if not mod_id or not _client_side(dependency.get("side")):
            continue
        if _is_incompatible(dependency):
            incompatibilities[mod_id] = _parse_range(dependency.get("versionRange"), mod_id)
        elif _is_mandatory(dependency):
            dependencies[mod_id] = _parse_range(dependency.get("versionRange"), mod_id)

    kind = Loaders.FORGE
    if neoforge or ("neoforge" in dependencies and "forge" not in dependencies):
        kind = Loaders.NEOFORGE
    loader_version = dependencies.pop("forge", None)
    neoforge_version = dependencies.pop("neoforge", None)
    if kind is Loaders.NEOFORGE:
        loader_version = neoforge_version

    return ModDescriptor(
        slug=slug,
        version=version,
        loader=kind,
        required_loader_version=loader_version,
        required_game_version=dependencies.pop("minecraft", None),
        dependencies=dependencies,
        incompatibilities=incompatibilities,
        name=info.get("displayName"),
    )
