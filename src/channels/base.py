"""通道 (传输层) 接口

核心逻辑只依赖这里的两个抽象:
- MessageSource: 可取消的无限入站消息序列
- NotificationSink: 发送一条文本消息, 可指定收件人并作为某条消息的回复
发送失败时 publish 必须抛出 NotifyError, 通道自身不做重试。
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Sequence

from datamodel import InboundMessage
from events import bus, E


class MessageSource(ABC):
    @abstractmethod
    async def receive(self) -> InboundMessage:
        """等待并返回下一条入站消息"""


class QueueMessageSource(MessageSource):
    """基于 asyncio.Queue 的消息源, 由具体通道的回调往里推送消息"""

    def __init__(self, maxsize: int = 0) -> None:
        self._queue: asyncio.Queue[InboundMessage] = asyncio.Queue(maxsize=maxsize)

    def push(self, message: InboundMessage) -> None:
        self._queue.put_nowait(message)
        bus.emit(E.IO_MESSAGE_RECEIVED, message)

    async def receive(self) -> InboundMessage:
        return await self._queue.get()

    def pending(self) -> int:
        return self._queue.qsize()


class NotificationSink(ABC):
    @abstractmethod
    async def publish(
        self,
        content: str,
        recipients: Sequence[str],
        reply_to: str | None = None,
    ) -> None:
        """发送消息, 失败时抛出 NotifyError"""

    def mention(self, identity: str) -> str:
        """返回可嵌入消息正文的用户提及文本"""
        return identity


__all__ = ["MessageSource", "QueueMessageSource", "NotificationSink"]
