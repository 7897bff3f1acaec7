from datetime import datetime, timezone

__all__ = ["DB_TIME_FORMAT", "now_utc", "to_db_time", "from_db_time"]

# 数据库中的时间统一存为 UTC 文本, 格式固定以保证字符串比较与时间先后一致
DB_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def now_utc() -> datetime:
    """获取当前 UTC 时间"""
    return datetime.now(timezone.utc)


def to_db_time(dt: datetime) -> str:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).strftime(DB_TIME_FORMAT)


def from_db_time(raw: str | None) -> datetime | None:
    if raw is None:
        return None
    return datetime.strptime(raw, DB_TIME_FORMAT).replace(tzinfo=timezone.utc)
