"""日志模块

三个输出: 彩色控制台 (stderr)、按大小滚动的日志文件、只记录 ERROR 以上的错误文件。
滚动大小与保留时间由 config.settings 传入, 未传入时使用默认值。

使用：main.py 启动时调用一次 setup_logging, 其余模块直接 from logger import logger
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Literal, Union

from loguru import logger

LogLevel = Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL", "FATAL"]

DEFAULT_ROTATION = "10 MB"
DEFAULT_RETENTION = "30 days"
DEFAULT_ERROR_RETENTION = "90 days"

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level:<8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)

FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<8} | {name}:{function}:{line} - {message}"


def _normalize_level(level: Union[str, LogLevel]) -> str:
    level = str(level).upper()
    return "CRITICAL" if level == "FATAL" else level


def error_log_path(log_file: Union[str, Path]) -> Path:
    """logs/remindme.log -> logs/remindme_error.log"""
    log_file = Path(log_file)
    return log_file.with_name(f"{log_file.stem}_error{log_file.suffix}")


def setup_logging(
    log_level: LogLevel,
    log_file: Union[str, Path],
    console_level: LogLevel = "INFO",
    rotation: str = DEFAULT_ROTATION,
    retention: str = DEFAULT_RETENTION,
    error_retention: str = DEFAULT_ERROR_RETENTION,
) -> None:
    log_file = Path(log_file)
    log_file.parent.mkdir(parents=True, exist_ok=True)

    file_sink = {
        "format": FILE_FORMAT,
        "rotation": rotation,
        "compression": "zip",
        "encoding": "utf-8",
    }
    logger.configure(
        handlers=[
            {
                "sink": sys.stderr,
                "level": _normalize_level(console_level),
                "format": CONSOLE_FORMAT,
                "colorize": True,
            },
            {**file_sink, "sink": log_file, "level": _normalize_level(log_level), "retention": retention},
            {**file_sink, "sink": error_log_path(log_file), "level": "ERROR", "retention": error_retention},
        ]
    )


__all__ = ["setup_logging", "error_log_path", "logger", "LogLevel"]
