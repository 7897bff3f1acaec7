"""投递循环

启动后立即扫描一次, 之后每隔固定间隔扫描一次到期提醒:
先发送提醒消息, 发送成功后再标记 fired_at。顺序不能反过来, 进程在两步之间崩溃时
最多导致下一轮重复提醒, 而不会静默丢失提醒。
发送失败的提醒保持未触发状态, 在下一轮自动重试, 没有次数上限与退避。

注意: 只支持单实例运行, 多实例同时扫描会重复投递。
"""

import asyncio
from datetime import datetime
from typing import Callable

import core.notifier as notifier
import storage.reminder as reminder_storage
from channels.base import NotificationSink
from errors import NotifyError, StoreError
from events import bus, E
from logger import logger
from metrics import runtime_metrics
from utils import now_utc

__all__ = ["main_loop", "run_once", "DEFAULT_INTERVAL_SECONDS"]

DEFAULT_INTERVAL_SECONDS = 60.0


async def _wait_for_shutdown(shutdown_event: asyncio.Event, seconds: float) -> bool:
    """睡眠指定秒数, 期间收到关闭信号则提前返回 True"""
    if shutdown_event.is_set():
        return True
    if seconds <= 0:
        return False
    try:
        await asyncio.wait_for(shutdown_event.wait(), timeout=seconds)
    except asyncio.TimeoutError:
        return False
    return True


async def run_once(
    sink: NotificationSink,
    clock: Callable[[], datetime] = now_utc,
    shutdown_event: asyncio.Event | None = None,
) -> int:
    """扫描并投递一轮到期提醒, 返回本轮成功标记为已触发的数量"""
    logger.info("检查到期提醒")
    try:
        reminders = await reminder_storage.get_due_reminders(clock())
    except StoreError as e:
        logger.error(f"获取到期提醒失败: {e}", exc_info=e)
        return 0
    logger.debug(f"找到 {len(reminders)} 条到期提醒")

    fired = 0
    for reminder in reminders:
        if shutdown_event is not None and shutdown_event.is_set():
            logger.info("收到关闭信号, 剩余提醒留到下次启动后投递")
            break

        logger.debug(f"提醒 {reminder.requester_id} 关于 {reminder.target_id}")
        try:
            await notifier.reminder_due(sink, reminder)
        except NotifyError as e:
            logger.error(f"发送提醒 {reminder.id} 失败, 下一轮重试: {e}", exc_info=e)
            bus.emit(E.REMINDER_DELIVERY_FAILED, reminder_id=reminder.id)
            continue

        try:
            if await reminder_storage.mark_fired(reminder.id, clock()):
                fired += 1
        except StoreError as e:
            logger.error(f"更新提醒 {reminder.id} 的触发时间失败: {e}", exc_info=e)
            continue
        logger.debug(f"提醒 {reminder.id} 已发送并标记")

    return fired


async def main_loop(
    shutdown_event: asyncio.Event,
    sink: NotificationSink,
    interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
    clock: Callable[[], datetime] = now_utc,
) -> None:
    logger.info("投递循环已启动")
    sleep_seconds = 0.0
    while not await _wait_for_shutdown(shutdown_event, sleep_seconds):
        try:
            await run_once(sink, clock, shutdown_event)
        except Exception as e:
            logger.error(f"投递循环发生预期外的错误: {e}", exc_info=e)
        logger.trace(f"运行指标: {runtime_metrics.snapshot()}")
        sleep_seconds = interval_seconds

    logger.info("投递循环已关闭")
