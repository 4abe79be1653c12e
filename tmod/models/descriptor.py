"""
模组描述

与来源无关的统一视图：模组标识、版本、所需加载器/游戏版本以及依赖与不兼容关系。
"""

from dataclasses import dataclass, field
from typing import Dict, Optional

from tmod.models.config import Loaders
from tmod.version import AnyRange, Version, VersionFamily


@dataclass(frozen=True)
class ModDescriptor:
    """模组描述，构造后不可变"""

    slug: str
    version: Version
    loader: Loaders
    required_loader_version: Optional[AnyRange] = None
    required_game_version: Optional[AnyRange] = None
    # key: 模组 slug
    dependencies: Dict[str, AnyRange] = field(default_factory=dict)
    # key: 模组 slug
    incompatibilities: Dict[str, AnyRange] = field(default_factory=dict)
    name: Optional[str] = None

    @property
    def family(self) -> VersionFamily:
        return self.version.family

    @property
    def display_name(self) -> str:
        return self.name or self.slug
