"""
一个简单的运行时指标收集类，订阅事件总线统计消息流量与提醒生命周期，方便后续扩展和监控。
"""

from __future__ import annotations

import time
from dataclasses import dataclass

from events import E, bus


@dataclass
class RuntimeMetrics:
    msg_in_count: int = 0
    msg_out_count: int = 0
    reminder_created_count: int = 0
    reminder_rate_limited_count: int = 0
    reminder_duplicate_count: int = 0
    reminder_fired_count: int = 0
    delivery_failed_count: int = 0
    last_fired_at: float | None = None

    def record_msg_in(self) -> None:
        self.msg_in_count += 1

    def record_msg_out(self) -> None:
        self.msg_out_count += 1

    def record_created(self) -> None:
        self.reminder_created_count += 1

    def record_rate_limited(self) -> None:
        self.reminder_rate_limited_count += 1

    def record_duplicate(self) -> None:
        self.reminder_duplicate_count += 1

    def record_fired(self) -> None:
        self.reminder_fired_count += 1
        self.last_fired_at = time.time()

    def record_delivery_failed(self) -> None:
        self.delivery_failed_count += 1

    def snapshot(self) -> dict:
        return {
            "msg_in_count": self.msg_in_count,
            "msg_out_count": self.msg_out_count,
            "reminder_created_count": self.reminder_created_count,
            "reminder_rate_limited_count": self.reminder_rate_limited_count,
            "reminder_duplicate_count": self.reminder_duplicate_count,
            "reminder_fired_count": self.reminder_fired_count,
            "delivery_failed_count": self.delivery_failed_count,
            "last_fired_at_epoch": self.last_fired_at,
            "last_fired_at_utc": (
                time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime(self.last_fired_at))
                if self.last_fired_at is not None
                else None
            ),
        }


runtime_metrics = RuntimeMetrics()


@bus.on(E.IO_MESSAGE_RECEIVED)
def _on_message_received(*args, **kwargs) -> None:
    runtime_metrics.record_msg_in()


@bus.on(E.IO_SEND_MESSAGE)
def _on_send_message(*args, **kwargs) -> None:
    runtime_metrics.record_msg_out()


@bus.on(E.REMINDER_CREATED)
def _on_created(*args, **kwargs) -> None:
    runtime_metrics.record_created()


@bus.on(E.REMINDER_RATE_LIMITED)
def _on_rate_limited(*args, **kwargs) -> None:
    runtime_metrics.record_rate_limited()


@bus.on(E.REMINDER_DUPLICATE)
def _on_duplicate(*args, **kwargs) -> None:
    runtime_metrics.record_duplicate()


@bus.on(E.REMINDER_FIRED)
def _on_fired(*args, **kwargs) -> None:
    runtime_metrics.record_fired()


@bus.on(E.REMINDER_DELIVERY_FAILED)
def _on_delivery_failed(*args, **kwargs) -> None:
    runtime_metrics.record_delivery_failed()


__all__ = ["RuntimeMetrics", "runtime_metrics"]
