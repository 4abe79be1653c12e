"""
模组池

维护手动添加的模组与扁平化的锁定表，递归拉取远程模组的必需依赖，并拒绝与池中
手动添加的模组不兼容的模组。
"""

import os
import shutil
from typing import Dict, List, Optional, Set, Tuple

from loguru import logger

from tmod.exceptions import (
    ConfigError,
    IncompatibilityRejected,
    LookupFailure,
    PersistenceError,
)
from tmod.jar import JarMod
from tmod.models import ModFile, PoolConfig, SearchedMod
from tmod.pool.storage import DepInfo, PoolStorage
from tmod.services import CurseForgeClient, VersionMatcher


def _tag(error: LookupFailure, slug: str, relation_id: Optional[int] = None) -> LookupFailure:
    error.context.setdefault("slug", slug)
    if relation_id is not None:
        error.context.setdefault("relation_id", relation_id)
    return error


class Pool:
    """模组池"""

    def __init__(
        self,
        path: str,
        config: PoolConfig,
        searcher: Optional[CurseForgeClient] = None,
    ):
        self.path = path
        self.config = config
        self.manually_added: Set[str] = set()
        # key: 模组 slug
        self.locks: Dict[str, DepInfo] = {}
        # key: 模组 slug
        self.locals: Dict[str, JarMod] = {}
        self._searcher = searcher
        self.storage = PoolStorage(path)

    @property
    def searcher(self) -> CurseForgeClient:
        if self._searcher is None:
            raise ConfigError("该操作需要 CurseForge 客户端")
        return self._searcher

    @searcher.setter
    def searcher(self, value: CurseForgeClient):
        self._searcher = value

    @staticmethod
    def exists(path: str) -> bool:
        return PoolStorage(path).exists()

    @classmethod
    async def init(
        cls,
        path: str,
        config: PoolConfig,
        searcher: Optional[CurseForgeClient] = None,
    ) -> "Pool":
        """创建空池并写入磁盘"""
        storage = PoolStorage(path)
        if storage.exists():
            raise PersistenceError(f"池 '{path}' 已存在", context={"path": path})
        pool = cls(path, config, searcher)
        await pool.save()
        logger.success(f"已创建池 {path} ({config.loader.kind} {config.loader.version}, Minecraft {config.game_version})")
        return pool

    @classmethod
    async def read(cls, path: str, searcher: Optional[CurseForgeClient] = None) -> "Pool":
        """从磁盘读取池"""
        storage = PoolStorage(path)
        storage.check_layout()

        pool = cls(path, await storage.read_config(), searcher)
        pool.manually_added = await storage.read_remotes()
        pool.locks = await storage.read_locks()
        for jar_path in storage.local_jars():
            jar = JarMod.open(jar_path)
            pool.locals[jar.slug] = jar

        missing = pool.manually_added - set(pool.locks)
        if missing:
            logger.warning(f"以下手动添加的模组没有锁定信息: {', '.join(sorted(missing))}")
        logger.debug(
            f"读取池 {path}: {len(pool.manually_added)} 个手动添加, "
            f"{len(pool.locks)} 个锁定, {len(pool.locals)} 个本地模组"
        )
        return pool

    async def save(self) -> None:
        """将池写入磁盘"""
        self.storage.ensure_dirs()
        await self.storage.write_config(self.config)
        await self.storage.write_remotes(self.manually_added)
        await self.storage.write_locks(self.locks)
        logger.debug(f"已保存池 {self.path}")

    async def _fetch_file(self, mod: SearchedMod) -> ModFile:
        try:
            return await self.searcher.get_specific_mod_file(mod, self.config)
        except LookupFailure as e:
            raise _tag(e, mod.slug)

    async def _fetch_relation(self, mod: SearchedMod, relation_id: int) -> SearchedMod:
        try:
            return await self.searcher.search_mod_by_id(relation_id)
        except LookupFailure as e:
            raise _tag(e, mod.slug, relation_id)

    async def check_compatibility(self, mod: SearchedMod) -> Tuple[bool, Optional[str]]:
        """
        检查模组能否加入池

        Returns:
            (是否兼容, 冲突的手动模组 slug)；没有适用文件时为 (False, None)
        """
        try:
            file = await self.searcher.get_specific_mod_file(mod, self.config)
        except LookupFailure as e:
            logger.warning(f"{mod.slug} 没有可用文件，视为不兼容: {e.message}")
            return False, None

        for relation in file.incompatibilities:
            other = await self._fetch_relation(mod, relation.mod_id)
            if other.slug in self.manually_added:
                logger.warning(f"{mod.slug} 与已添加的 {other.slug} 不兼容")
                return False, other.slug
            if other.slug in self.locals:
                logger.warning(f"{mod.slug} 与本地模组 {other.slug} 不兼容")
                return False, other.slug
        return True, None

    async def is_compatible(self, mod: SearchedMod) -> bool:
        compatible, _ = await self.check_compatibility(mod)
        return compatible

    async def add_to_remotes(
        self,
        mod: SearchedMod,
        manual: bool = True,
        visited: Optional[Set[str]] = None,
    ) -> None:
        """
        添加远程模组及其必需依赖

        先通过兼容性检查，再逐个解析依赖；全部依赖解析成功后才修改池。
        自身的锁定信息在递归添加依赖之后写入。

        Args:
            mod: 远程模组
            manual: 是否为手动添加
            visited: 本次添加中已处理的 slug，重复进入时直接返回

        Raises:
            IncompatibilityRejected: 模组与池不兼容
            LookupFailure: 依赖链中的查询失败
        """
        if visited is None:
            visited = set()
        if mod.slug in visited:
            logger.debug(f"{mod.slug} 已在本次添加中处理，跳过")
            return
        visited.add(mod.slug)

        compatible, conflicting = await self.check_compatibility(mod)
        if not compatible:
            raise IncompatibilityRejected(mod.slug, conflicting)

        file = await self._fetch_file(mod)
        relations: List[SearchedMod] = []
        for relation in file.dependencies:
            logger.debug(f"[{mod.slug}] 查询依赖 {relation.mod_id}")
            relations.append(await self._fetch_relation(mod, relation.mod_id))

        dep_info = DepInfo(
            timestamp=file.date,
            dependencies=sorted({related.slug for related in relations}),
        )

        inserted = manual and mod.slug not in self.manually_added
        if manual:
            self.manually_added.add(mod.slug)
        resolved = False
        try:
            for related in relations:
                await self.add_to_remotes(related, manual=False, visited=visited)
            resolved = True
        finally:
            if inserted and not resolved:
                self.manually_added.discard(mod.slug)

        self.locks[mod.slug] = dep_info
        if manual:
            logger.success(f"已添加 {mod.slug} ({file.file_name})")
        else:
            logger.info(f"  依赖 {mod.slug} ({file.file_name})")

    def remove_mod(self, slug: str) -> bool:
        """
        移除手动添加的模组

        不会级联移除它的依赖。

        Returns:
            模组是否为手动添加
        """
        if slug not in self.manually_added:
            return False
        self.manually_added.discard(slug)
        self.locks.pop(slug, None)
        logger.info(f"已移除 {slug}")
        return True

    def add_to_locals(self, jar: JarMod, move: bool = False) -> JarMod:
        """
        将本地 jar 模组复制（或移动）到 locals/

        Raises:
            IncompatibilityRejected: 加载器或游戏版本不满足，或与池中模组冲突
        """
        desc = jar.descriptor
        matcher = VersionMatcher(self.config)
        if not matcher.matches_loader(desc):
            raise IncompatibilityRejected(
                desc.slug,
                message=f"模组 {desc.slug} 需要 {desc.loader} {desc.required_loader_version or '*'}"
                f"，池使用 {self.config.loader.kind} {self.config.loader.version}",
            )
        if not matcher.matches_game_version(desc):
            raise IncompatibilityRejected(
                desc.slug,
                message=f"模组 {desc.slug} 需要 Minecraft {desc.required_game_version}"
                f"，池使用 {self.config.game_version}",
            )
        for slug in desc.incompatibilities:
            if slug in self.manually_added or slug in self.locals:
                raise IncompatibilityRejected(desc.slug, slug)

        self.storage.ensure_dirs()
        target = os.path.join(self.storage.locals_path, f"{desc.slug}.jar")
        try:
            if move:
                shutil.move(jar.path, target)
            else:
                shutil.copyfile(jar.path, target)
        except OSError as e:
            raise PersistenceError(
                f"无法{'移动' if move else '复制'} {jar.path}: {e}",
                context={"path": jar.path, "target": target},
            ) from e

        local = JarMod(target, desc)
        self.locals[desc.slug] = local
        logger.success(f"已添加本地模组 {desc.slug} ({jar.file_name})")
        return local

    def remove_local(self, slug: str) -> bool:
        """移除本地模组，返回模组是否存在"""
        jar = self.locals.pop(slug, None)
        if jar is None:
            return False
        try:
            os.remove(jar.path)
        except OSError as e:
            raise PersistenceError(f"无法删除 {jar.path}: {e}", context={"path": jar.path}) from e
        logger.info(f"已移除本地模组 {slug}")
        return True
