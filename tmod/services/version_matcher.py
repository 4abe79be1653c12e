"""
版本匹配服务

检查模组描述中声明的游戏版本与加载器版本要求是否被池配置满足。
"""

from loguru import logger

from tmod.models import Loaders, ModDescriptor, PoolConfig
from tmod.version import parse_game_version, parse_version

# 可以加载其他加载器模组的加载器
COMPATIBLE_LOADERS = {
    Loaders.QUILT: {Loaders.FABRIC},
}


class VersionMatcher:
    """版本匹配器"""

    def __init__(self, config: PoolConfig):
        self.config = config

    def accepts_loader(self, kind: Loaders) -> bool:
        """池的加载器能否加载该种类的模组"""
        own = self.config.loader.kind
        return kind is own or kind in COMPATIBLE_LOADERS.get(own, set())

    def matches_game_version(self, desc: ModDescriptor) -> bool:
        """
        检查游戏版本要求

        Args:
            desc: 模组描述

        Returns:
            未声明要求或池的游戏版本满足要求时为 True
        """
        if desc.required_game_version is None:
            return True
        version = parse_game_version(self.config.game_version, desc.family)
        matched = desc.required_game_version.satisfies(version)
        logger.debug(
            f"游戏版本 {version} 对 {desc.slug} 的要求 '{desc.required_game_version}': {matched}"
        )
        return matched

    def matches_loader(self, desc: ModDescriptor) -> bool:
        """
        检查加载器种类与版本要求

        加载器种类不同（且不可兼容加载）时不匹配；兼容加载时不比较版本号。
        """
        if not self.accepts_loader(desc.loader):
            logger.debug(f"{desc.slug} 需要 {desc.loader}，池使用 {self.config.loader.kind}")
            return False
        if desc.required_loader_version is None or desc.loader is not self.config.loader.kind:
            return True
        version = parse_version(self.config.loader.version, desc.family)
        matched = desc.required_loader_version.satisfies(version)
        logger.debug(
            f"加载器版本 {version} 对 {desc.slug} 的要求 '{desc.required_loader_version}': {matched}"
        )
        return matched
