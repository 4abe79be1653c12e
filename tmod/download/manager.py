"""
下载管理器

固定数量的工作协程从队列中取任务下载，失败时按指数退避重试，下载后校验 SHA1。
"""

import asyncio
import os
from dataclasses import dataclass, field
from typing import Dict, Optional

import aiofiles
import aiohttp
from loguru import logger

from tmod.download.verifier import verify_sha1
from tmod.exceptions import DownloadChecksumError, DownloadError, DownloadNetworkError


@dataclass(frozen=True)
class DownloadTask:
    """下载任务"""

    url: str
    file_name: str
    target_dir: str
    sha1: Optional[str] = None

    @property
    def path(self) -> str:
        return os.path.join(self.target_dir, self.file_name)


@dataclass
class DownloadStats:
    """下载统计"""

    total: int = 0
    completed: int = 0
    skipped: int = 0
    bytes_downloaded: int = 0
    # key: 文件名
    failed: Dict[str, str] = field(default_factory=dict)


class DownloadManager:
    """下载管理器"""

    def __init__(
        self,
        max_concurrent: int = 4,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.max_concurrent = max(1, max_concurrent)
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.stats = DownloadStats()
        self._tasks: Dict[str, DownloadTask] = {}
        self._session = session
        self._owned_session = session is None

    @property
    def session(self) -> aiohttp.ClientSession:
        """获取或创建 aiohttp session"""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return self._session

    def add(self, task: DownloadTask) -> bool:
        """添加任务，同一目标路径只下载一次"""
        if task.path in self._tasks:
            return False
        self._tasks[task.path] = task
        self.stats.total += 1
        logger.debug(f"[队列] {task.file_name}")
        return True

    async def _fetch(self, task: DownloadTask) -> None:
        async with self.session.get(task.url) as response:
            if response.status != 200:
                raise DownloadNetworkError(
                    f"HTTP {response.status}",
                    context={"url": task.url, "status": response.status},
                )
            async with aiofiles.open(task.path, "wb") as f:
                async for chunk in response.content.iter_chunked(8192):
                    await f.write(chunk)
                    self.stats.bytes_downloaded += len(chunk)

        if not await verify_sha1(task.path, task.sha1):
            raise DownloadChecksumError(
                f"SHA1 校验失败: {task.file_name}",
                context={"file": task.file_name, "expected": task.sha1},
            )

    async def download(self, task: DownloadTask) -> None:
        """
        下载单个文件，已存在且校验通过的文件直接跳过

        Raises:
            DownloadError: 重试耗尽后仍然失败
        """
        os.makedirs(task.target_dir, exist_ok=True)
        if task.sha1 and await verify_sha1(task.path, task.sha1):
            self.stats.skipped += 1
            logger.info(f"[跳过] {task.file_name} 已存在且校验通过")
            return

        for attempt in range(self.max_retries + 1):
            try:
                await self._fetch(task)
                self.stats.completed += 1
                logger.success(f"[完成] {task.file_name}")
                return
            except (aiohttp.ClientError, asyncio.TimeoutError, DownloadError) as e:
                if os.path.exists(task.path):
                    os.remove(task.path)
                if attempt >= self.max_retries:
                    if isinstance(e, DownloadError):
                        raise
                    raise DownloadNetworkError(
                        f"下载失败: {task.file_name}: {e}", context={"url": task.url}
                    ) from e
                delay = self.retry_delay * (2**attempt)
                logger.warning(
                    f"[重试] {task.file_name} 第 {attempt + 1} 次失败: {e}，{delay:.1f}s 后重试"
                )
                await asyncio.sleep(delay)

    async def _worker(self, queue: "asyncio.Queue[DownloadTask]") -> None:
        while True:
            try:
                task = queue.get_nowait()
            except asyncio.QueueEmpty:
                return
            try:
                await self.download(task)
            except DownloadError as e:
                self.stats.failed[task.file_name] = e.message
                logger.error(f"[错误] {task.file_name}: {e.message}")
            finally:
                queue.task_done()

    async def run(self) -> DownloadStats:
        """下载全部任务并返回统计"""
        queue: "asyncio.Queue[DownloadTask]" = asyncio.Queue()
        for task in self._tasks.values():
            queue.put_nowait(task)

        workers = min(self.max_concurrent, queue.qsize())
        logger.info(f"[启动] 共 {queue.qsize()} 个文件，并发数 {workers}")
        await asyncio.gather(*(self._worker(queue) for _ in range(workers)))
        self._tasks.clear()
        return self.stats

    async def close(self):
        if self._owned_session and self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
