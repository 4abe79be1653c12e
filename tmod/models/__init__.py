"""
Tmod 数据模型包

包含配置模型、API 模型与模组描述。
"""

from tmod.models.config import (
    ClientSettings,
    Loader,
    Loaders,
    PoolConfig,
)
from tmod.models.api import (
    FileHash,
    ModFile,
    ModRelation,
    RelationType,
    SearchedMod,
)
from tmod.models.descriptor import ModDescriptor

__all__ = [
    # 配置模型
    "ClientSettings",
    "Loader",
    "Loaders",
    "PoolConfig",
    # API 模型
    "FileHash",
    "ModFile",
    "ModRelation",
    "RelationType",
    "SearchedMod",
    # 模组描述
    "ModDescriptor",
]
