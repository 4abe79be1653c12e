"""
Tmod 服务层

包含 CurseForge API 客户端与版本匹配。
"""

from tmod.services.api_client import CurseForgeClient
from tmod.services.version_matcher import VersionMatcher

__all__ = [
    "CurseForgeClient",
    "VersionMatcher",
]
