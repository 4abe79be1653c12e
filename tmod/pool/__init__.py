"""
Tmod 模组池

包含依赖解析引擎与池文件读写。
"""

from tmod.pool.pool import Pool
from tmod.pool.storage import DepInfo, PoolStorage
from tmod.pool.tree import build_tree, render_tree

__all__ = [
    "DepInfo",
    "Pool",
    "PoolStorage",
    "build_tree",
    "render_tree",
]
