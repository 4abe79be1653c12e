"""
Tmod 本地 jar 模组

支持 Forge / NeoForge (mods.toml) 与 Fabric (fabric.mod.json)。
"""

from tmod.jar.fabric import parse_fabric_manifest
from tmod.jar.forge import parse_forge_manifest
from tmod.jar.jar_mod import JarMod

__all__ = [
    "JarMod",
    "parse_fabric_manifest",
    "parse_forge_manifest",
]
