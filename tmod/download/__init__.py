"""
Tmod 下载层

包含下载管理与 SHA1 校验。
"""

from tmod.download.manager import DownloadManager, DownloadStats, DownloadTask
from tmod.download.verifier import calc_sha1, verify_sha1

__all__ = [
    "DownloadManager",
    "DownloadStats",
    "DownloadTask",
    "calc_sha1",
    "verify_sha1",
]
