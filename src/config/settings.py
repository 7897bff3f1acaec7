import os
from dotenv import load_dotenv
from logger import logger
load_dotenv()

__all__ = [
    "TELEGRAM_BOT_TOKEN", "PUBLISH_BOT_PROFILE",
    "DATABASE_PATH", "LOG_FILE", "LOG_LEVEL", "CONSOLE_LOG_LEVEL",
    "LOG_ROTATION", "LOG_RETENTION", "ERROR_LOG_RETENTION",
    "RATE_LIMIT_MAX", "RATE_LIMIT_WINDOW_MINUTES", "DELIVERY_INTERVAL_SECONDS",
]


def _parse_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on", "y")


def _parse_number(name: str, default, cast=int):
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = cast(raw)
    except ValueError:
        logger.warning(f"{name} 非法: {raw}, 已回退到 {default}")
        return default
    if value <= 0:
        logger.warning(f"{name} 必须为正数: {raw}, 已回退到 {default}")
        return default
    return value


# Telegram Bot
TELEGRAM_BOT_TOKEN = os.getenv("TELEGRAM_BOT_TOKEN", "")
if TELEGRAM_BOT_TOKEN == "":
    logger.critical("TELEGRAM_BOT_TOKEN 未设置")
    exit(0)
PUBLISH_BOT_PROFILE = _parse_bool("PUBLISH_BOT_PROFILE", True)

# 存储与日志
DATABASE_PATH = os.getenv("DATABASE_PATH", "data/remindme.db")
LOG_FILE = os.getenv("LOG_FILE", "logs/remindme.log")
LOG_LEVEL = os.getenv("LOG_LEVEL", "TRACE")
CONSOLE_LOG_LEVEL = os.getenv("CONSOLE_LOG_LEVEL", "INFO")
LOG_ROTATION = os.getenv("LOG_ROTATION", "10 MB")
LOG_RETENTION = os.getenv("LOG_RETENTION", "30 days")
ERROR_LOG_RETENTION = os.getenv("ERROR_LOG_RETENTION", "90 days")

# 提醒策略
RATE_LIMIT_MAX = _parse_number("RATE_LIMIT_MAX", 5)
RATE_LIMIT_WINDOW_MINUTES = _parse_number("RATE_LIMIT_WINDOW_MINUTES", 60)
DELIVERY_INTERVAL_SECONDS = _parse_number("DELIVERY_INTERVAL_SECONDS", 60.0, cast=float)
