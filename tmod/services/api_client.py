"""
API 客户端

CurseForge API 客户端。游戏 id、分类表、版本列表等全局信息在客户端实例内
只成功获取一次并缓存；获取失败不会被缓存，下次访问时重试。
"""

import asyncio
from datetime import datetime
from typing import Any, Dict, List, Optional

import aiohttp
from loguru import logger

from tmod.exceptions import APIError, APINotFoundError, ConfigError, LookupFailure
from tmod.models import ClientSettings, ModFile, PoolConfig, SearchedMod

MINECRAFT_VERSIONS_URL = "https://mc-versions-api.net/api/java"
FABRIC_VERSIONS_URL = "https://meta.fabricmc.net/v2/versions/loader"


class CurseForgeClient:
    """CurseForge API 客户端"""

    def __init__(
        self,
        settings: Optional[ClientSettings] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.settings = settings or ClientSettings.from_env()
        self._session = session
        self._owned_session = session is None

        self._minecraft_id: Optional[int] = None
        self._categories: Optional[Dict[str, int]] = None
        self._minecraft_versions: Optional[List[str]] = None
        self._fabric_versions: Optional[List[str]] = None

    @property
    def session(self) -> aiohttp.ClientSession:
        """获取或创建 aiohttp session"""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return self._session

    async def _request(
        self,
        endpoint: str,
        params: Optional[dict] = None,
        external: bool = False,
    ) -> Any:
        """
        发送 API 请求

        Args:
            endpoint: CurseForge 路径，external 为真时为完整 URL
            params: 查询参数
            external: 是否为 CurseForge 以外的地址（不携带 API key）
        """
        headers = {"Accept": "application/json"}
        if external:
            url = endpoint
        else:
            if not self.settings.api_key:
                raise ConfigError(
                    "缺少 CurseForge API key，请设置 CURSEFORGE_API_KEY 或使用 --api-key"
                )
            url = f"{self.settings.api_url}{endpoint}"
            headers["x-api-key"] = self.settings.api_key

        logger.debug(f"[请求] GET {url} {params or ''}")
        try:
            async with self.session.get(url, params=params, headers=headers) as response:
                if response.status == 200:
                    return await response.json()
                if response.status == 404:
                    raise APINotFoundError(
                        f"资源不存在: {endpoint}", response=response
                    )
                raise APIError(
                    f"API 请求失败 (状态码: {response.status})",
                    response=response,
                )
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise LookupFailure(
                f"请求 {url} 时出错: {e}", context={"url": url}
            ) from e

    async def minecraft_id(self) -> int:
        """获取 Minecraft 在 CurseForge 中的游戏 id"""
        if self._minecraft_id is None:
            response = await self._request("/games")
            for entry in response.get("data", []):
                if entry.get("slug") == "minecraft" or str(entry.get("name", "")).lower() == "minecraft":
                    self._minecraft_id = int(entry["id"])
                    break
            else:
                raise LookupFailure("游戏列表中没有找到 Minecraft")
            logger.debug(f"Minecraft 游戏 id: {self._minecraft_id}")
        return self._minecraft_id

    async def curseforge_categories(self) -> Dict[str, int]:
        """获取分类名称到分类 id 的映射"""
        if self._categories is None:
            params = {"gameId": str(await self.minecraft_id()), "classesOnly": "true"}
            response = await self._request("/categories", params)
            self._categories = {
                entry["name"]: int(entry["id"]) for entry in response.get("data", [])
            }
        return self._categories

    async def minecraft_versions(self) -> List[str]:
        """获取全部 Minecraft Java 版版本号"""
        if self._minecraft_versions is None:
            response = await self._request(MINECRAFT_VERSIONS_URL, external=True)
            self._minecraft_versions = list(response["result"])
        return self._minecraft_versions

    async def fabric_versions(self) -> List[str]:
        """获取全部 Fabric 加载器版本号"""
        if self._fabric_versions is None:
            response = await self._request(FABRIC_VERSIONS_URL, external=True)
            self._fabric_versions = [item["version"] for item in response]
        return self._fabric_versions

    async def search_mod_by_id(self, mod_id: int) -> SearchedMod:
        """通过数字 id 获取模组"""
        response = await self._request(f"/mods/{mod_id}")
        return SearchedMod.from_curseforge(response["data"])

    async def search_mods(self, slug: str) -> List[SearchedMod]:
        """按 slug 搜索模组，按下载量与点赞数降序排列"""
        categories = await self.curseforge_categories()
        if "Mods" not in categories:
            raise LookupFailure("没有找到分类 'Mods'")
        params = {
            "gameId": str(await self.minecraft_id()),
            "classId": str(categories["Mods"]),
            "slug": slug,
        }
        response = await self._request("/mods/search", params)
        mods = [SearchedMod.from_curseforge(item) for item in response.get("data", [])]
        return sorted(mods, key=SearchedMod.popularity, reverse=True)

    async def search_mod_by_slug(self, slug: str) -> SearchedMod:
        """通过 slug 获取唯一的模组"""
        mods = await self.search_mods(slug)
        if not mods:
            raise APINotFoundError(f"模组 '{slug}' 不存在", context={"slug": slug})
        if len(mods) > 1:
            raise LookupFailure(
                f"slug '{slug}' 应只对应 1 个模组，实际找到 {len(mods)} 个",
                context={"slug": slug, "count": len(mods)},
            )
        return mods[0]

    async def get_mod_files(self, mod: SearchedMod, config: PoolConfig) -> List[ModFile]:
        """获取适用于池配置的模组文件（仅保留必需依赖、内嵌库与不兼容关联）"""
        params = {
            "gameVersion": config.game_version,
            "modLoaderType": str(config.loader.kind.curseforge_id),
        }
        response = await self._request(f"/mods/{mod.id}/files", params)
        files = [ModFile.from_curseforge(item) for item in response.get("data", [])]
        for file in files:
            file.relations = [item for item in file.relations if item.relation.is_needed]
        return files

    async def get_specific_mod_file(
        self,
        mod: SearchedMod,
        config: PoolConfig,
        timestamp: Optional[datetime] = None,
    ) -> ModFile:
        """
        获取指定文件

        Args:
            mod: 模组
            config: 池配置
            timestamp: 指定时返回发布时间完全一致的文件，否则返回最新文件
        """
        files = await self.get_mod_files(mod, config)
        if timestamp is not None:
            for file in files:
                if file.date == timestamp:
                    return file
            raise LookupFailure(
                f"模组 '{mod.slug}' 没有发布时间为 {timestamp.isoformat()} 的文件",
                context={"slug": mod.slug, "timestamp": timestamp.isoformat()},
            )
        if not files:
            raise LookupFailure(
                f"模组 '{mod.slug}' 没有适用于 {config.loader.kind} {config.game_version} 的文件",
                context={"slug": mod.slug},
            )
        return max(files, key=lambda file: file.date)

    async def close(self):
        """关闭客户端"""
        if self._owned_session and self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
