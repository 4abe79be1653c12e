"""
Tmod 版本模型

包含 Maven (Forge/NeoForge) 与 Fabric (Fabric/Quilt) 两套版本号及版本范围。
"""

from typing import Any, Dict, Type, Union

from tmod.exceptions import VersionParseError
from tmod.version.base import (
    Combinator,
    Version,
    VersionFamily,
    VersionRange,
    VersionRangeUnion,
)
from tmod.version.fabric import FabricVersion, FabricVersionReq
from tmod.version.maven import MavenVersion, MavenVersionRange

AnyRange = Union[VersionRange, VersionRangeUnion]

VERSION_CLASSES: Dict[VersionFamily, Type[Version]] = {
    VersionFamily.MAVEN: MavenVersion,
    VersionFamily.FABRIC: FabricVersion,
}

RANGE_CLASSES: Dict[VersionFamily, Type[VersionRange]] = {
    VersionFamily.MAVEN: MavenVersionRange,
    VersionFamily.FABRIC: FabricVersionReq,
}


def parse_version(text: str, family: VersionFamily) -> Version:
    """按版本体系解析版本号"""
    return VERSION_CLASSES[family].parse(text)  # type: ignore[attr-defined]


def parse_range(value: Any, family: VersionFamily) -> AnyRange:
    """
    按版本体系解析版本范围

    Args:
        value: 范围文本；Fabric 体系下也接受字符串列表（任一满足即可）
        family: 版本体系

    Returns:
        VersionRange 或 VersionRangeUnion
    """
    range_class = RANGE_CLASSES[family]
    if isinstance(value, (list, tuple)):
        if not value:
            raise VersionParseError("版本要求列表不能为空", str(list(value)))
        return VersionRangeUnion(range_class.parse(item) for item in value)  # type: ignore[attr-defined]
    return range_class.parse(value)  # type: ignore[attr-defined]


def parse_game_version(text: str, family: VersionFamily) -> Version:
    """解析池配置中的游戏版本号（Fabric 体系下宽松补零）"""
    if family is VersionFamily.FABRIC:
        return FabricVersion.coerce(text)
    return MavenVersion.parse(text)


__all__ = [
    "AnyRange",
    "Combinator",
    "FabricVersion",
    "FabricVersionReq",
    "MavenVersion",
    "MavenVersionRange",
    "Version",
    "VersionFamily",
    "VersionRange",
    "VersionRangeUnion",
    "parse_game_version",
    "parse_range",
    "parse_version",
]
