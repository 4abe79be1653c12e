"""
文件校验

计算并比对 SHA1。
"""

import hashlib
import os
from typing import Optional

import aiofiles

CHUNK_SIZE = 64 * 1024


async def calc_sha1(file_path: str) -> Optional[str]:
    """计算文件 SHA1，文件不存在时返回 None"""
    if not os.path.isfile(file_path):
        return None
    sha1 = hashlib.sha1()
    async with aiofiles.open(file_path, "rb") as f:
        while True:
            data = await f.read(CHUNK_SIZE)
            if not data:
                break
            sha1.update(data)
    return sha1.hexdigest()


async def verify_sha1(file_path: str, expected: Optional[str]) -> bool:
    """没有预期值时只检查文件是否存在"""
    if not expected:
        return os.path.isfile(file_path)
    return await calc_sha1(file_path) == expected.lower()
