"""
配置数据模型

定义池配置 (config.toml) 与客户端设置。
"""

import os
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from tmod.exceptions import ConfigError, VersionParseError
from tmod.version import (
    Version,
    VersionFamily,
    parse_game_version,
    parse_version,
)

DEFAULT_API_URL = "https://api.curseforge.com/v1"


class Loaders(Enum):
    """模组加载器"""

    FORGE = "forge"
    FABRIC = "fabric"
    QUILT = "quilt"
    NEOFORGE = "neoforge"

    @classmethod
    def from_str(cls, value: str) -> "Loaders":
        """大小写不敏感地解析加载器名称"""
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            choices = ", ".join(item.value for item in cls)
            raise ConfigError(
                f"未知的模组加载器: {value} (可选: {choices})",
                context={"loader": value},
            ) from None

    @property
    def curseforge_id(self) -> int:
        """CurseForge API 中的 modLoaderType"""
        return {
            Loaders.FORGE: 1,
            Loaders.FABRIC: 4,
            Loaders.QUILT: 5,
            Loaders.NEOFORGE: 6,
        }[self]

    @property
    def family(self) -> VersionFamily:
        if self in (Loaders.FORGE, Loaders.NEOFORGE):
            return VersionFamily.MAVEN
        return VersionFamily.FABRIC

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Loader:
    """加载器种类及其版本"""

    kind: Loaders
    version: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Loader":
        if not isinstance(data, dict):
            raise ConfigError("loader 应为包含 kind 与 version 的表")
        if "kind" not in data:
            raise ConfigError("loader 缺少 kind")
        if "version" not in data:
            raise ConfigError("loader 缺少 version")
        loader = cls(Loaders.from_str(data["kind"]), str(data["version"]))
        loader.parsed_version()
        return loader

    def parsed_version(self) -> Version:
        try:
            return parse_version(self.version, self.kind.family)
        except VersionParseError as e:
            raise ConfigError(
                f"加载器版本无效: {self.version}",
                context={"loader": self.kind.value, "error": e.message},
            ) from e

    def to_dict(self) -> Dict[str, str]:
        return {"kind": self.kind.value, "version": self.version}


@dataclass(frozen=True)
class PoolConfig:
    """
    池的基础配置：加载器与目标游戏版本

    对应 config.toml:

        game_version = "1.20.1"

        [loader]
        kind = "fabric"
        version = "0.15.7"
    """

    loader: Loader
    game_version: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PoolConfig":
        if "loader" not in data:
            raise ConfigError("配置缺少 loader")
        if "game_version" not in data:
            raise ConfigError("配置缺少 game_version")
        config = cls(Loader.from_dict(data["loader"]), str(data["game_version"]))
        config.parsed_game_version()
        return config

    def parsed_game_version(self) -> Version:
        try:
            return parse_game_version(self.game_version, self.family)
        except VersionParseError as e:
            raise ConfigError(
                f"游戏版本无效: {self.game_version}",
                context={"error": e.message},
            ) from e

    @property
    def family(self) -> VersionFamily:
        return self.loader.kind.family

    def to_dict(self) -> Dict[str, Any]:
        return {"game_version": self.game_version, "loader": self.loader.to_dict()}


@dataclass(frozen=True)
class ClientSettings:
    """CurseForge 客户端设置"""

    api_key: Optional[str] = None
    api_url: str = DEFAULT_API_URL

    @classmethod
    def from_env(cls, api_key: Optional[str] = None) -> "ClientSettings":
        return cls(
            api_key=api_key or os.environ.get("CURSEFORGE_API_KEY"),
            api_url=os.environ.get("TMOD_API_URL", DEFAULT_API_URL).rstrip("/"),
        )
