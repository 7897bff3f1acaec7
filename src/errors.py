"""异常分类

- DurationParseError: 时长文本无法解析, 在准入阶段被就地吞掉 (视为普通消息)
- StoreError: 数据库访问失败 (连接、约束、查询), 由调用方的循环记录后跳过当前工作单元
- NotifyError: 消息发送失败, 投递阶段遇到时不会标记为已触发, 下一轮重试
"""

__all__ = [
    "RemindMeError",
    "DurationParseError",
    "StoreError",
    "DuplicateReminderError",
    "NotifyError",
]


class RemindMeError(Exception):
    pass


class DurationParseError(RemindMeError, ValueError):
    def __init__(self, text: str, reason: str = "无法识别的时长") -> None:
        super().__init__(f"{reason}: {text!r}")
        self.text = text


class StoreError(RemindMeError):
    pass


class DuplicateReminderError(StoreError):
    """(target_id, requester_id) 唯一索引冲突"""


class NotifyError(RemindMeError):
    pass
