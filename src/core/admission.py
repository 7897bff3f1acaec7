"""请求准入

把一条回复消息判定为以下结果之一:
IGNORED (不是提醒请求 / 时长无法解析), RATE_LIMITED, DUPLICATE, CREATED, ERROR。

各检查依次短路; 只有 CREATED 路径会写一次数据库。
限流计数与重复检查都不在事务里, 并发准入时用户可能略微超过限额, 属于可接受的放宽;
重复请求最终由数据库唯一索引拦截 (此时结果为 ERROR)。
"""

import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable

import storage.reminder as reminder_storage
from datamodel import Outcome
from errors import DurationParseError, StoreError
from events import bus, E
from logger import logger
from utils import now_utc
from core.duration import parse_duration

__all__ = ["RequestMatcher", "Admission", "DEFAULT_RATE_LIMIT_MAX", "DEFAULT_RATE_LIMIT_WINDOW"]

DEFAULT_RATE_LIMIT_MAX = 5
DEFAULT_RATE_LIMIT_WINDOW = timedelta(minutes=60)


@dataclass(frozen=True)
class RequestMatcher:
    """识别 "<address> in <duration>" 形式的请求

    address 为 bot 自己的地址 (例如 "@remindme_bot"), 必须紧贴在 "in" 之前;
    address 为 None 时只要求出现 "in <duration>"。
    """
    address: str | None = None
    pattern: re.Pattern = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.address:
            prefix = re.escape(self.address) + r"\s+"
        else:
            prefix = r"\b"
        object.__setattr__(
            self,
            "pattern",
            re.compile(prefix + r"in\s+(\d+\s?[A-Za-z]+)\b", re.IGNORECASE),
        )

    def extract(self, content: str) -> str | None:
        """返回匹配到的时长文本, 未匹配时返回 None"""
        match = self.pattern.search(content or "")
        if match is None:
            return None
        return match.group(1)


class Admission:
    def __init__(
        self,
        matcher: RequestMatcher,
        rate_limit_max: int = DEFAULT_RATE_LIMIT_MAX,
        rate_limit_window: timedelta = DEFAULT_RATE_LIMIT_WINDOW,
        clock: Callable[[], datetime] = now_utc,
    ) -> None:
        self.matcher = matcher
        self.rate_limit_max = rate_limit_max
        self.rate_limit_window = rate_limit_window
        self.clock = clock

    async def admit(
        self,
        requester_id: str,
        target_id: str,
        request_time: datetime,
        content: str,
    ) -> Outcome:
        duration_text = self.matcher.extract(content)
        if duration_text is None:
            logger.debug(f"消息不是提醒请求: requester_id={requester_id}, target_id={target_id}")
            return Outcome.ignored()

        try:
            remind_in = parse_duration(duration_text)
        except DurationParseError as e:
            logger.debug(f"提醒请求的时长无效, 已忽略: {e}")
            return Outcome.ignored()

        now = self.clock()
        try:
            remind_at = now + remind_in
        except OverflowError:
            logger.debug(f"提醒时间超出可表示范围, 已忽略: {duration_text!r}")
            return Outcome.ignored()

        logger.info(
            f"收到提醒请求: requester_id={requester_id}, target_id={target_id}, "
            f"timeframe={duration_text!r}, remind_in={int(remind_in.total_seconds())}s"
        )

        try:
            recent = await reminder_storage.count_recent_reminders(
                requester_id, now - self.rate_limit_window
            )
            if recent >= self.rate_limit_max:
                logger.info(f"用户 {requester_id} 已触发限流 ({recent} 条/窗口), 跳过")
                bus.emit(E.REMINDER_RATE_LIMITED, requester_id=requester_id, target_id=target_id)
                return Outcome.rate_limited()

            if await reminder_storage.has_reminder(target_id, requester_id):
                logger.info(f"用户 {requester_id} 已对 {target_id} 设置过提醒")
                bus.emit(E.REMINDER_DUPLICATE, requester_id=requester_id, target_id=target_id)
                return Outcome.duplicate()

            await reminder_storage.create_reminder(
                target_id=target_id,
                requester_id=requester_id,
                created_at=request_time,
                remind_at=remind_at,
            )
        except StoreError as e:
            logger.error(f"准入过程中数据库操作失败: {e}", exc_info=e)
            return Outcome.failed(e)

        return Outcome.created(remind_at)
