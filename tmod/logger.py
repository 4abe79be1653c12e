"""
日志模块

使用 loguru 提供统一的日志记录功能。命令输出走 stdout，日志走 stderr，
两者互不干扰。
"""

import os
import sys
from pathlib import Path
from typing import Optional, Union

from loguru import logger

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {message}"


def resolve_level(level: Optional[str] = None, quiet: bool = False) -> str:
    """根据参数与 TMOD_DEBUG 环境变量确定日志级别"""
    if level:
        return level.upper()
    if os.environ.get("TMOD_DEBUG", "0") == "1":
        return "DEBUG"
    return "WARNING" if quiet else "INFO"


def setup_logger(
    level: Optional[str] = None,
    quiet: bool = False,
    sink=sys.stderr,
    log_file: Optional[Union[str, Path]] = None,
    colorize: bool = True,
) -> str:
    """
    设置日志记录器

    Args:
        level: 日志级别 (DEBUG, INFO, WARNING, ERROR)，优先于 quiet
        quiet: 静默模式，只输出警告及以上
        sink: 控制台输出目标
        log_file: 额外写入的日志文件（按 1 MB 轮转）
        colorize: 是否启用颜色

    Returns:
        实际生效的日志级别
    """
    level = resolve_level(level, quiet)
    debug_mode = level == "DEBUG"

    logger.remove()
    logger.add(
        sink=sink,
        format=LOG_FORMAT,
        level=level,
        colorize=colorize,
        backtrace=debug_mode,
        diagnose=debug_mode,
    )

    if log_file is not None:
        logger.add(
            str(log_file),
            format=LOG_FORMAT,
            level="DEBUG",
            rotation="1 MB",
            retention=3,
            encoding="utf-8",
        )

    if debug_mode:
        logger.debug("DEBUG 模式已启用")
    return level


__all__ = ["logger", "setup_logger", "resolve_level"]
