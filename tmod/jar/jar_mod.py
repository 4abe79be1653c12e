"""
本地 jar 模组

根据 jar 中的清单文件判断加载器并解析为 ModDescriptor。
"""

import os
import zipfile
from typing import Optional

from loguru import logger

from tmod.exceptions import JarError
from tmod.jar.fabric import FABRIC_MANIFEST, parse_fabric_manifest
from tmod.jar.forge import FORGE_MANIFEST, NEOFORGE_MANIFEST, parse_forge_manifest
from tmod.models import Loaders, ModDescriptor

JAR_MANIFEST = "META-INF/MANIFEST.MF"


def _read_text(archive: zipfile.ZipFile, name: str) -> Optional[str]:
    if name not in archive.namelist():
        return None
    return archive.read(name).decode("utf-8-sig", errors="replace")


class JarMod:
    """本地 jar 模组"""

    def __init__(self, path: str, descriptor: ModDescriptor):
        self.path = path
        self.descriptor = descriptor

    @classmethod
    def open(cls, path: str) -> "JarMod":
        """
        打开 jar 并解析模组清单

        Raises:
            JarError: 文件不是有效的 jar，或无法识别加载器
        """
        try:
            with zipfile.ZipFile(path) as archive:
                descriptor = cls._parse(archive)
        except (OSError, zipfile.BadZipFile) as e:
            raise JarError(f"无法读取 jar 文件 {path}: {e}", context={"path": path}) from e
        except JarError as e:
            e.context.setdefault("path", path)
            raise

        logger.debug(
            f"读取 jar: {os.path.basename(path)} -> {descriptor.slug} {descriptor.version} ({descriptor.loader})"
        )
        return cls(path, descriptor)

    @staticmethod
    def _parse(archive: zipfile.ZipFile) -> ModDescriptor:
        names = archive.namelist()
        if NEOFORGE_MANIFEST in names:
            return parse_forge_manifest(
                _read_text(archive, NEOFORGE_MANIFEST),
                _read_text(archive, JAR_MANIFEST),
                neoforge=True,
            )
        if FORGE_MANIFEST in names:
            return parse_forge_manifest(
                _read_text(archive, FORGE_MANIFEST),
                _read_text(archive, JAR_MANIFEST),
            )
        if FABRIC_MANIFEST in names:
            return parse_fabric_manifest(_read_text(archive, FABRIC_MANIFEST))
        raise JarError("无法识别 jar 的模组加载器")

    @property
    def slug(self) -> str:
        return self.descriptor.slug

    @property
    def loader(self) -> Loaders:
        return self.descriptor.loader

    @property
    def file_name(self) -> str:
        return os.path.basename(self.path)

    def __repr__(self) -> str:
        return f"JarMod({self.slug!r}, {str(self.descriptor.version)!r})"
