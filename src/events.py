"""事件总线模块，定义了事件总线类 Bus 及事件名集合 E

存储层与两个主循环在状态变化时发出事件, 订阅方 (如 metrics) 只做旁路统计,
不参与提醒生命周期本身。
"""

from __future__ import annotations
from pyee.asyncio import AsyncIOEventEmitter
from typing import Any, Callable

from logger import logger

Handler = Callable[..., Any]


# 事件名集中定义
class E:
    IO_MESSAGE_RECEIVED = "io.message_received"
    IO_SEND_MESSAGE = "io.send_message"
    REMINDER_CREATED = "reminder.created"
    REMINDER_RATE_LIMITED = "reminder.rate_limited"
    REMINDER_DUPLICATE = "reminder.duplicate"
    REMINDER_FIRED = "reminder.fired"
    REMINDER_DELIVERY_FAILED = "reminder.delivery_failed"


class Bus(AsyncIOEventEmitter):
    def on(self, event: str) -> Callable[[Handler], Handler]:
        """注册事件处理器装饰器"""
        def decorator(handler: Handler) -> Handler:
            logger.debug(f"注册事件处理器: {event} -> {handler.__name__}")
            super(Bus, self).on(event, handler)
            return handler

        return decorator


bus = Bus()

__all__ = ["bus", "E", "Bus"]
