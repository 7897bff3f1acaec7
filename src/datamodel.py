from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

__all__ = [
    "Reminder",
    "InboundMessage",
    "OutcomeKind", "Outcome",
]


# ----------------- Reminder 数据模型 ----------------
@dataclass
class Reminder:
    id: int
    target_id: str     # 被提醒的消息 ID
    requester_id: str  # 发起提醒请求的用户 ID
    created_at: datetime  # 取自原始请求消息的时间戳
    remind_at: datetime
    fired_at: Optional[datetime] = None  # 为 None 表示尚未触发

    @property
    def is_fired(self) -> bool:
        return self.fired_at is not None


# ----------------- 消息数据模型 ----------------
@dataclass
class InboundMessage:
    id: str
    author_id: str
    content: str
    created_at: datetime
    reply_to: Optional[str] = None  # 被回复消息的 ID, 非回复消息为 None


# ----------------- 准入结果 ----------------
class OutcomeKind(str, Enum):
    IGNORED = "ignored"
    RATE_LIMITED = "rate_limited"
    DUPLICATE = "duplicate"
    CREATED = "created"
    ERROR = "error"


@dataclass
class Outcome:
    kind: OutcomeKind
    remind_at: Optional[datetime] = None  # 仅 CREATED 时有值
    error: Optional[Exception] = None     # 仅 ERROR 时有值

    @classmethod
    def ignored(cls) -> "Outcome":
        return cls(OutcomeKind.IGNORED)

    @classmethod
    def rate_limited(cls) -> "Outcome":
        return cls(OutcomeKind.RATE_LIMITED)

    @classmethod
    def duplicate(cls) -> "Outcome":
        return cls(OutcomeKind.DUPLICATE)

    @classmethod
    def created(cls, remind_at: datetime) -> "Outcome":
        return cls(OutcomeKind.CREATED, remind_at=remind_at)

    @classmethod
    def failed(cls, error: Exception) -> "Outcome":
        return cls(OutcomeKind.ERROR, error=error)
