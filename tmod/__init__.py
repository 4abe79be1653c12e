"""
Tmod - Minecraft 模组池管理工具

管理本地模组池：从 CurseForge 或本地 jar 添加模组，递归解析必需依赖，
拒绝不兼容的模组，并生成锁定文件。
"""

__version__ = "0.1.0"
