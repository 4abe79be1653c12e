"""
安装协调器

按锁定表把池中的全部模组下载到输出目录，本地模组直接复制。
"""

import os
import shutil

from loguru import logger

from tmod.download import DownloadManager, DownloadStats, DownloadTask
from tmod.exceptions import DownloadError, LookupFailure
from tmod.pool import Pool
from tmod.services import CurseForgeClient


class PoolInstaller:
    """池安装器"""

    def __init__(
        self,
        pool: Pool,
        client: CurseForgeClient,
        out_dir: str,
        max_concurrent: int = 4,
    ):
        self.pool = pool
        self.client = client
        self.out_dir = out_dir
        self.max_concurrent = max_concurrent

    async def run(self) -> DownloadStats:
        """
        下载全部锁定的模组

        锁定文件按记录的发布时间查找；查找失败的模组记入失败列表，不中断其他模组。
        """
        os.makedirs(self.out_dir, exist_ok=True)

        async with DownloadManager(max_concurrent=self.max_concurrent) as manager:
            for slug, dep_info in sorted(self.pool.locks.items()):
                try:
                    mod = await self.client.search_mod_by_slug(slug)
                    file = await self.client.get_specific_mod_file(
                        mod, self.pool.config, dep_info.timestamp
                    )
                except LookupFailure as e:
                    logger.error(f"[错误] 无法找到 {slug} 的锁定文件: {e.message}")
                    manager.stats.total += 1
                    manager.stats.failed[slug] = e.message
                    continue

                if not file.url:
                    logger.error(f"[错误] {slug} 的作者禁止第三方下载 ({file.file_name})")
                    manager.stats.total += 1
                    manager.stats.failed[file.file_name] = "没有下载地址"
                    continue
                manager.add(DownloadTask(file.url, file.file_name, self.out_dir, file.sha1))

            stats = await manager.run()

        for slug, jar in sorted(self.pool.locals.items()):
            stats.total += 1
            target = os.path.join(self.out_dir, jar.file_name)
            try:
                shutil.copyfile(jar.path, target)
            except OSError as e:
                stats.failed[jar.file_name] = str(e)
                logger.error(f"[错误] 复制本地模组 {slug} 失败: {e}")
                continue
            stats.completed += 1
            logger.success(f"[复制] 本地模组 {jar.file_name}")

        return stats

    @staticmethod
    def raise_for_failures(stats: DownloadStats) -> None:
        if stats.failed:
            raise DownloadError(
                f"{len(stats.failed)} 个文件安装失败: {', '.join(sorted(stats.failed))}",
                context={"failed": dict(stats.failed)},
            )
