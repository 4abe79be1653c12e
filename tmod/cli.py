"""
CLI 模块

命令行接口实现。
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import Awaitable, Optional, TypeVar

import click
from loguru import logger

from tmod import __version__
from tmod.exceptions import TmodError
from tmod.installer import PoolInstaller
from tmod.jar import JarMod
from tmod.logger import setup_logger
from tmod.models import ClientSettings, Loaders, ModFile, PoolConfig, SearchedMod
from tmod.models.api import format_datetime, parse_datetime
from tmod.pool import Pool, build_tree, render_tree
from tmod.services import CurseForgeClient

T = TypeVar("T")


@dataclass
class CliContext:
    pool_dir: str
    quiet: bool
    settings: ClientSettings

    def echo(self, message: str = "") -> None:
        if not self.quiet:
            click.echo(message)


pass_cli = click.make_pass_decorator(CliContext)


def run_async(coro: Awaitable[T]) -> T:
    """运行协程并把 Tmod 异常转换为 click 异常"""
    try:
        return asyncio.run(coro)
    except TmodError as e:
        logger.error(str(e))
        raise click.ClickException(e.message)
    except click.ClickException:
        raise
    except Exception as e:
        logger.exception(f"运行时错误: {e}")
        raise click.ClickException(f"运行时错误: {e}")


def format_mod(mod: SearchedMod) -> str:
    text = f"(id: {click.style(str(mod.id), bold=True)}) {click.style(mod.name, fg='blue')}"
    if mod.summary:
        text += f" - {mod.summary}"
    return text


def format_file(file: ModFile) -> str:
    lines = [f"文件: {file.file_name} ({format_datetime(file.date)})"]
    if file.relations:
        lines.append("关联:")
        for relation in file.relations:
            lines.append(f"\t- {relation.mod_id} ({relation.relation.name})")
    return "\n".join(lines)


def parse_timestamp(ctx, param, value: Optional[str]) -> Optional[datetime]:
    if value is None:
        return None
    try:
        return parse_datetime(value)
    except ValueError:
        raise click.BadParameter(f"无效的 RFC3339 时间: {value}")


@click.group()
@click.option(
    "--pool-dir",
    default=".tmod",
    show_default=True,
    type=click.Path(file_okay=False),
    help="池目录",
)
@click.option("-q", "--quiet", is_flag=True, help="不输出 Tmod 的提示信息")
@click.option("--debug", is_flag=True, help="启用调试模式")
@click.option("--api-key", help="CurseForge API key（默认读取 CURSEFORGE_API_KEY）")
@click.version_option(version=__version__)
@click.pass_context
def main(ctx, pool_dir: str, quiet: bool, debug: bool, api_key: Optional[str]):
    """Tmod - Minecraft 模组池管理工具"""
    setup_logger(level="DEBUG" if debug else None, quiet=quiet)
    ctx.obj = CliContext(pool_dir, quiet, ClientSettings.from_env(api_key))


@main.command()
@click.option(
    "--loader",
    type=click.Choice([item.value for item in Loaders], case_sensitive=False),
    help="模组加载器",
)
@click.option("--loader-version", help="加载器版本")
@click.option("--game-version", help="Minecraft 版本")
@pass_cli
def init(cli: CliContext, loader: Optional[str], loader_version: Optional[str], game_version: Optional[str]):
    """初始化新的池"""
    if loader is None:
        loader = click.prompt(
            "选择模组加载器",
            type=click.Choice([item.value for item in Loaders], case_sensitive=False),
        )
    if loader_version is None:
        loader_version = click.prompt("加载器版本")
    if game_version is None:
        game_version = click.prompt("Minecraft 版本")

    async def _init():
        config = PoolConfig.from_dict(
            {
                "game_version": game_version,
                "loader": {"kind": loader, "version": loader_version},
            }
        )
        await Pool.init(cli.pool_dir, config)

    run_async(_init())


@main.command(name="list")
@pass_cli
def list_mods(cli: CliContext):
    """列出池中的模组"""
    pool = run_async(Pool.read(cli.pool_dir))

    if not pool.manually_added and not pool.locals:
        click.echo("池为空")
        return
    if pool.manually_added:
        click.echo("Remotes:")
        for slug in sorted(pool.manually_added):
            click.echo(f"\t- {click.style(slug, fg='blue', italic=True)}")
    if pool.locals:
        click.echo("Locals:")
        for slug in sorted(pool.locals):
            click.echo(f"\t- {click.style(slug, fg='blue', italic=True)}")


@main.group()
def add():
    """向池中添加模组"""


async def _add_remote(cli: CliContext, mod_id: Optional[int] = None, slug: Optional[str] = None) -> SearchedMod:
    async with CurseForgeClient(cli.settings) as client:
        pool = await Pool.read(cli.pool_dir, client)
        if mod_id is not None:
            mod = await client.search_mod_by_id(mod_id)
        else:
            mod = await client.search_mod_by_slug(slug)
        await pool.add_to_remotes(mod, manual=True)
        await pool.save()
        return mod


@add.command(name="id")
@click.argument("mod_id", type=int)
@pass_cli
def add_id(cli: CliContext, mod_id: int):
    """通过 CurseForge 模组 id 添加"""
    mod = run_async(_add_remote(cli, mod_id=mod_id))
    cli.echo(format_mod(mod))


@add.command(name="slug")
@click.argument("mod_slug")
@pass_cli
def add_slug(cli: CliContext, mod_slug: str):
    """通过模组 slug 添加（slug 不一定与模组名相同）"""
    mod = run_async(_add_remote(cli, slug=mod_slug))
    cli.echo(format_mod(mod))


@add.command(name="jar")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option("-m", "--move", is_flag=True, help="移动文件而不是复制")
@pass_cli
def add_jar(cli: CliContext, path: str, move: bool):
    """添加本地 jar 模组"""

    async def _add():
        pool = await Pool.read(cli.pool_dir)
        jar = JarMod.open(path)
        pool.add_to_locals(jar, move=move)
        await pool.save()

    run_async(_add())
    cli.echo(f"{'移动' if move else '复制'} {path}")


@main.command()
@click.argument("names", nargs=-1, required=True)
@pass_cli
def remove(cli: CliContext, names):
    """从池中移除模组"""

    async def _remove():
        pool = await Pool.read(cli.pool_dir)
        for name in names:
            removed = pool.remove_mod(name)
            removed = pool.remove_local(name) or removed
            if not removed:
                cli.echo(f"没有移除模组 {click.style(name, fg='blue', italic=True)}")
        await pool.save()

    run_async(_remove())


@main.group()
def info():
    """查询模组信息"""


async def _remote_info(cli: CliContext, timestamp: Optional[datetime], mod_id=None, slug=None):
    async with CurseForgeClient(cli.settings) as client:
        if mod_id is not None:
            mod = await client.search_mod_by_id(mod_id)
        else:
            mod = await client.search_mod_by_slug(slug)
        file = None
        if Pool.exists(cli.pool_dir):
            pool = await Pool.read(cli.pool_dir)
            file = await client.get_specific_mod_file(mod, pool.config, timestamp)
        return mod, file


def _print_remote(mod: SearchedMod, file: Optional[ModFile]) -> None:
    click.echo(format_mod(mod))
    click.echo(f"slug: {mod.slug}")
    if file is not None:
        click.echo(format_file(file))


@info.command(name="id")
@click.argument("mod_id", type=int)
@click.option("-t", "--timestamp", callback=parse_timestamp, help="文件发布时间 (RFC3339)，默认最新")
@pass_cli
def info_id(cli: CliContext, mod_id: int, timestamp: Optional[datetime]):
    """通过 CurseForge 模组 id 查询"""
    _print_remote(*run_async(_remote_info(cli, timestamp, mod_id=mod_id)))


@info.command(name="slug")
@click.argument("mod_slug")
@click.option("-t", "--timestamp", callback=parse_timestamp, help="文件发布时间 (RFC3339)，默认最新")
@pass_cli
def info_slug(cli: CliContext, mod_slug: str, timestamp: Optional[datetime]):
    """通过模组 slug 查询"""
    _print_remote(*run_async(_remote_info(cli, timestamp, slug=mod_slug)))


@info.command(name="jar")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
def info_jar(path: str):
    """查询本地 jar 模组"""
    try:
        desc = JarMod.open(path).descriptor
    except TmodError as e:
        logger.error(str(e))
        raise click.ClickException(e.message)

    click.echo(f"名称: {click.style(desc.display_name, fg='blue', italic=True)}")
    click.echo(f"slug: {desc.slug}")
    click.echo(f"加载器: {desc.loader}")
    click.echo(f"版本: {desc.version}")
    click.echo(f"需要的 Minecraft 版本: {desc.required_game_version or '任意'}")
    click.echo(f"需要的加载器版本: {desc.required_loader_version or '任意'}")
    if desc.dependencies:
        click.echo()
        click.echo("依赖:")
        for slug, requirement in sorted(desc.dependencies.items()):
            click.echo(f"\t- {click.style(slug, fg='green', italic=True)} ({requirement})")
    if desc.incompatibilities:
        click.echo()
        click.echo("不兼容:")
        for slug, requirement in sorted(desc.incompatibilities.items()):
            click.echo(f"\t- {click.style(slug, fg='red', bold=True)} ({requirement})")


@main.command()
@click.option(
    "-o",
    "--out-dir",
    default="mods",
    show_default=True,
    type=click.Path(file_okay=False),
    help="输出目录",
)
@click.option("-j", "--max-concurrent", default=4, show_default=True, help="最大并发下载数")
@pass_cli
def install(cli: CliContext, out_dir: str, max_concurrent: int):
    """下载池中的全部模组"""

    async def _install():
        async with CurseForgeClient(cli.settings) as client:
            pool = await Pool.read(cli.pool_dir)
            stats = await PoolInstaller(pool, client, out_dir, max_concurrent).run()
        logger.info(
            f"完成 {stats.completed}，跳过 {stats.skipped}，失败 {len(stats.failed)} (共 {stats.total})"
        )
        PoolInstaller.raise_for_failures(stats)

    run_async(_install())


@main.command()
@pass_cli
def tree(cli: CliContext):
    """打印池的依赖树"""
    pool = run_async(Pool.read(cli.pool_dir))
    for line in render_tree(build_tree(pool)):
        click.echo(line)


if __name__ == "__main__":
    main()
