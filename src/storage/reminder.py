"""提醒存储

数据库是提醒状态的唯一来源, 两个主循环之间不共享任何内存状态。
每个函数都是一次独立的原子操作, 准入流程的 "先检查再插入" 没有包在同一事务里,
重复请求的最终保障是 (target_id, requester_id) 唯一索引。

注意: 本模块假设只有一个实例在运行, 多个投递循环同时扫描同一数据库会造成重复投递。
"""

import sqlite3
from contextlib import contextmanager
from datetime import datetime

import storage.db_config as db_config
from datamodel import Reminder
from errors import DuplicateReminderError, StoreError
from events import bus, E
from logger import logger
from utils import from_db_time, now_utc, to_db_time

__all__ = [
    "count_recent_reminders",
    "has_reminder",
    "create_reminder",
    "get_due_reminders",
    "mark_fired",
    "get_reminder",
]

_COLUMNS = "id, target_id, requester_id, created_at, remind_at, fired_at"


def _ensure_conn():
    if db_config.conn is None:
        raise RuntimeError("数据库未初始化，请先调用 init_db()")


@contextmanager
def _store_errors(action: str):
    try:
        yield
    except sqlite3.IntegrityError as e:
        # 只有唯一索引冲突才算重复提醒, NOT NULL 等其他约束按普通存储错误处理
        if "UNIQUE" in str(e):
            raise DuplicateReminderError(f"{action}失败: {e}") from e
        raise StoreError(f"{action}失败: {e}") from e
    except sqlite3.Error as e:
        raise StoreError(f"{action}失败: {e}") from e


def _row_to_reminder(row) -> Reminder:
    return Reminder(
        id=row[0],
        target_id=row[1],
        requester_id=row[2],
        created_at=from_db_time(row[3]),
        remind_at=from_db_time(row[4]),
        fired_at=from_db_time(row[5]),
    )


async def count_recent_reminders(requester_id: str, since: datetime) -> int:
    """统计某用户 created_at >= since 的提醒数量"""
    _ensure_conn()
    with _store_errors("统计用户近期提醒"):
        async with db_config.conn.execute(
            "SELECT COUNT(1) FROM reminders WHERE requester_id = ? AND created_at >= ?",
            (requester_id, to_db_time(since)),
        ) as cursor:
            row = await cursor.fetchone()
    return row[0] if row else 0


async def has_reminder(target_id: str, requester_id: str) -> bool:
    """该用户是否已经对该消息设置过提醒 (不区分是否已触发)"""
    _ensure_conn()
    with _store_errors("查询重复提醒"):
        async with db_config.conn.execute(
            "SELECT COUNT(1) FROM reminders WHERE target_id = ? AND requester_id = ?",
            (target_id, requester_id),
        ) as cursor:
            row = await cursor.fetchone()
    return bool(row and row[0])


async def create_reminder(
    target_id: str,
    requester_id: str,
    created_at: datetime,
    remind_at: datetime,
) -> Reminder:
    """创建提醒"""
    _ensure_conn()
    with _store_errors("创建提醒"):
        async with db_config.conn.execute(
            "INSERT INTO reminders (target_id, requester_id, created_at, remind_at) VALUES (?, ?, ?, ?)",
            (target_id, requester_id, to_db_time(created_at), to_db_time(remind_at)),
        ) as cursor:
            reminder_id = cursor.lastrowid
        await db_config.conn.commit()

    reminder = Reminder(
        id=reminder_id,
        target_id=target_id,
        requester_id=requester_id,
        created_at=from_db_time(to_db_time(created_at)),
        remind_at=from_db_time(to_db_time(remind_at)),
    )
    bus.emit(E.REMINDER_CREATED, reminder=reminder)
    logger.trace(f"创建提醒: id={reminder_id}, target_id={target_id}, requester_id={requester_id}, remind_at={reminder.remind_at}")
    return reminder


async def get_due_reminders(now: datetime | None = None) -> list[Reminder]:
    """获取所有已到期且尚未触发的提醒, 顺序为数据库默认顺序"""
    _ensure_conn()
    now = now or now_utc()
    with _store_errors("查询到期提醒"):
        async with db_config.conn.execute(
            f"SELECT {_COLUMNS} FROM reminders WHERE fired_at IS NULL AND remind_at <= ?",
            (to_db_time(now),),
        ) as cursor:
            rows = await cursor.fetchall()
    return [_row_to_reminder(row) for row in rows]


async def mark_fired(reminder_id: int, fired_at: datetime | None = None) -> bool:
    """标记提醒为已触发; 已触发的提醒不会被再次修改, 此时返回 False"""
    _ensure_conn()
    fired_at = fired_at or now_utc()
    with _store_errors("更新提醒触发时间"):
        async with db_config.conn.execute(
            "UPDATE reminders SET fired_at = ? WHERE id = ? AND fired_at IS NULL",
            (to_db_time(fired_at), reminder_id),
        ) as cursor:
            updated = cursor.rowcount
        await db_config.conn.commit()

    if updated:
        bus.emit(E.REMINDER_FIRED, reminder_id=reminder_id)
        logger.trace(f"提醒已触发: id={reminder_id}, fired_at={to_db_time(fired_at)}")
    return updated > 0


async def get_reminder(reminder_id: int) -> Reminder | None:
    _ensure_conn()
    with _store_errors("查询提醒"):
        async with db_config.conn.execute(
            f"SELECT {_COLUMNS} FROM reminders WHERE id = ?",
            (reminder_id,),
        ) as cursor:
            row = await cursor.fetchone()
    return _row_to_reminder(row) if row else None
