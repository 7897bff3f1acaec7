"""把准入与投递的结果翻译成出站消息"""

from datetime import datetime, timezone
from email.utils import format_datetime

from channels.base import NotificationSink
from config import replies
from datamodel import InboundMessage, Reminder
from events import bus, E

__all__ = ["reminder_created", "rate_limit_hit", "reminder_due"]


async def _respond(sink: NotificationSink, content: str, recipient: str, reply_to: str) -> None:
    await sink.publish(content, [recipient], reply_to=reply_to)
    bus.emit(E.IO_SEND_MESSAGE, recipient=recipient, reply_to=reply_to)


async def reminder_created(sink: NotificationSink, message: InboundMessage, remind_at: datetime) -> None:
    # RFC 2822, 例如 "Sat, 18 Oct 2026 12:00:00 +0000"
    when = format_datetime(remind_at.astimezone(timezone.utc))
    content = replies.REMINDER_CREATED.format(remind_at=when)
    await _respond(sink, content, message.author_id, message.id)


async def rate_limit_hit(sink: NotificationSink, message: InboundMessage) -> None:
    await _respond(sink, replies.RATE_LIMIT_HIT, message.author_id, message.id)


async def reminder_due(sink: NotificationSink, reminder: Reminder) -> None:
    content = replies.REMINDER_DUE.format(mention=sink.mention(reminder.requester_id))
    await _respond(sink, content, reminder.requester_id, reminder.target_id)
