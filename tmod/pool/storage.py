"""
池文件读写

一个池对应一个目录：

    config.toml   加载器与游戏版本
    Tmod.json     手动添加的模组 slug（排序后的 JSON 数组）
    Tmod.lock     slug -> { timestamp, dependencies } 的 TOML 表
    locals/       本地 jar 模组
"""

import json
import os
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Set

import aiofiles
import toml

from tmod.exceptions import PersistenceError
from tmod.models import PoolConfig
from tmod.models.api import format_datetime, parse_datetime

CONFIG_FILE = "config.toml"
REMOTES_FILE = "Tmod.json"
LOCK_FILE = "Tmod.lock"
LOCALS_DIR = "locals"


@dataclass
class DepInfo:
    """锁定信息：文件发布时间与直接依赖的 slug"""

    timestamp: datetime
    dependencies: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DepInfo":
        timestamp = data["timestamp"]
        if isinstance(timestamp, datetime):
            timestamp = format_datetime(timestamp)
        return cls(
            timestamp=parse_datetime(str(timestamp)),
            dependencies=sorted(set(data.get("dependencies", []))),
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"timestamp": format_datetime(self.timestamp)}
        if self.dependencies:
            data["dependencies"] = list(self.dependencies)
        return data


async def _read_text(path: str) -> str:
    try:
        async with aiofiles.open(path, "r", encoding="utf-8") as f:
            return await f.read()
    except OSError as e:
        raise PersistenceError(
            f"无法读取 {os.path.basename(path)}: {e}", context={"path": path}
        ) from e


async def _write_text(path: str, content: str) -> None:
    try:
        async with aiofiles.open(path, "w", encoding="utf-8") as f:
            await f.write(content)
    except OSError as e:
        raise PersistenceError(
            f"无法写入 {os.path.basename(path)}: {e}", context={"path": path}
        ) from e


class PoolStorage:
    """池目录的读写"""

    def __init__(self, path: str):
        self.path = path

    @property
    def config_path(self) -> str:
        return os.path.join(self.path, CONFIG_FILE)

    @property
    def remotes_path(self) -> str:
        return os.path.join(self.path, REMOTES_FILE)

    @property
    def locks_path(self) -> str:
        return os.path.join(self.path, LOCK_FILE)

    @property
    def locals_path(self) -> str:
        return os.path.join(self.path, LOCALS_DIR)

    def exists(self) -> bool:
        return os.path.isfile(self.config_path)

    def ensure_dirs(self) -> None:
        try:
            os.makedirs(self.locals_path, exist_ok=True)
        except OSError as e:
            raise PersistenceError(
                f"无法创建池目录 {self.path}: {e}", context={"path": self.path}
            ) from e

    def check_layout(self) -> None:
        """确认池目录及其文件存在"""
        if not os.path.isdir(self.path):
            raise PersistenceError(
                f"池 '{self.path}' 不存在，请先执行 tmod init", context={"path": self.path}
            )
        for path in (self.config_path, self.remotes_path, self.locks_path):
            if not os.path.isfile(path):
                raise PersistenceError(
                    f"池中缺少 {os.path.basename(path)}", context={"path": path}
                )

    async def read_config(self) -> PoolConfig:
        content = await _read_text(self.config_path)
        try:
            data = toml.loads(content)
        except toml.TomlDecodeError as e:
            raise PersistenceError(f"无法解析 {CONFIG_FILE}: {e}") from e
        return PoolConfig.from_dict(data)

    async def read_remotes(self) -> Set[str]:
        content = await _read_text(self.remotes_path)
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise PersistenceError(f"无法解析 {REMOTES_FILE}: {e}") from e
        if not isinstance(data, list) or not all(isinstance(item, str) for item in data):
            raise PersistenceError(f"{REMOTES_FILE} 应为字符串数组")
        return set(data)

    async def read_locks(self) -> Dict[str, DepInfo]:
        content = await _read_text(self.locks_path)
        try:
            data = toml.loads(content)
            return {slug: DepInfo.from_dict(entry) for slug, entry in data.items()}
        except (toml.TomlDecodeError, KeyError, TypeError, ValueError, AttributeError) as e:
            raise PersistenceError(f"无法解析 {LOCK_FILE}: {e}") from e

    async def write_config(self, config: PoolConfig) -> None:
        await _write_text(self.config_path, toml.dumps(config.to_dict()))

    async def write_remotes(self, manually_added: Set[str]) -> None:
        await _write_text(
            self.remotes_path,
            json.dumps(sorted(manually_added), indent=2, ensure_ascii=False) + "\n",
        )

    async def write_locks(self, locks: Dict[str, DepInfo]) -> None:
        data = {slug: locks[slug].to_dict() for slug in sorted(locks)}
        await _write_text(self.locks_path, toml.dumps(data))

    def local_jars(self) -> List[str]:
        if not os.path.isdir(self.locals_path):
            return []
        return sorted(
            os.path.join(self.locals_path, name)
            for name in os.listdir(self.locals_path)
            if name.endswith(".jar")
        )
