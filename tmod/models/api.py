"""
API 数据模型

定义 CurseForge API 相关的数据类，包括模组信息、文件信息与关联关系。
"""

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import IntEnum
from typing import Any, Dict, List, Optional

_FRACTION = re.compile(r"\.(\d+)")


def parse_datetime(value: str) -> datetime:
    """解析 CurseForge 返回的 RFC3339 时间（统一为 UTC）"""
    text = value.strip().replace("Z", "+00:00")
    # 小数秒位数不固定，补齐为微秒
    text = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_datetime(value: datetime) -> str:
    """格式化为 RFC3339 (UTC, 以 Z 结尾)"""
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


class RelationType(IntEnum):
    """文件关联类型（服务端以整数下发）"""

    EMBEDDED_LIBRARY = 1
    OPTIONAL_DEPENDENCY = 2
    REQUIRED_DEPENDENCY = 3
    TOOL = 4
    INCOMPATIBLE = 5
    INCLUDE = 6

    @property
    def is_dependency(self) -> bool:
        return self is RelationType.REQUIRED_DEPENDENCY

    @property
    def is_incompatible(self) -> bool:
        return self is RelationType.INCOMPATIBLE

    @property
    def is_needed(self) -> bool:
        """解析时需要保留的关联：必需依赖、内嵌库与不兼容"""
        return self in (
            RelationType.REQUIRED_DEPENDENCY,
            RelationType.EMBEDDED_LIBRARY,
            RelationType.INCOMPATIBLE,
        )


RELATION_VALUES = frozenset(item.value for item in RelationType)


@dataclass(frozen=True)
class ModRelation:
    """文件对另一个模组的关联"""

    mod_id: int
    relation: RelationType

    @classmethod
    def from_curseforge(cls, data: dict) -> "ModRelation":
        return cls(mod_id=int(data["modId"]), relation=RelationType(data["relationType"]))


@dataclass(frozen=True)
class FileHash:
    """文件哈希，algo: 1 = sha1, 2 = md5"""

    value: str
    algo: int


@dataclass
class ModFile:
    """
    模组文件信息。
    """

    id: int
    file_name: str
    date: datetime
    url: Optional[str]
    game_versions: List[str] = field(default_factory=list)
    relations: List[ModRelation] = field(default_factory=list)
    hashes: List[FileHash] = field(default_factory=list)
    download_count: int = 0

    @classmethod
    def from_curseforge(cls, data: dict) -> "ModFile":
        """
        将 CurseForge API 返回的文件信息转换为 ModFile 对象。
        """
        return cls(
            id=int(data.get("id", 0)),
            file_name=data.get("fileName", ""),
            date=parse_datetime(data["fileDate"]),
            url=data.get("downloadUrl"),
            game_versions=list(data.get("gameVersions", [])),
            relations=[
                ModRelation.from_curseforge(dep)
                for dep in data.get("dependencies", [])
                # 忽略未知的关联类型
                if dep.get("relationType") in RELATION_VALUES
            ],
            hashes=[
                FileHash(value=item["value"], algo=int(item["algo"]))
                for item in data.get("hashes", [])
            ],
            download_count=int(data.get("downloadCount", 0)),
        )

    @property
    def sha1(self) -> Optional[str]:
        for item in self.hashes:
            if item.algo == 1:
                return item.value
        return None

    @property
    def dependencies(self) -> List[ModRelation]:
        return [item for item in self.relations if item.relation.is_dependency]

    @property
    def incompatibilities(self) -> List[ModRelation]:
        return [item for item in self.relations if item.relation.is_incompatible]


@dataclass
class SearchedMod:
    """
    远程模组信息。
    """

    id: int
    name: str
    slug: str
    summary: str = ""
    download_count: int = 0
    thumbs_up_count: int = 0
    links: Dict[str, Optional[str]] = field(default_factory=dict)

    @classmethod
    def from_curseforge(cls, data: Dict[str, Any]) -> "SearchedMod":
        return cls(
            id=int(data["id"]),
            name=data.get("name", ""),
            slug=data["slug"],
            summary=data.get("summary", ""),
            download_count=int(data.get("downloadCount", 0)),
            thumbs_up_count=int(data.get("thumbsUpCount", 0)),
            links=dict(data.get("links") or {}),
        )

    def popularity(self) -> tuple:
        return self.download_count, self.thumbs_up_count
