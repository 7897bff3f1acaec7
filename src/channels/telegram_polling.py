"""Telegram 通道

入站: 群聊/私聊中回复了另一条消息的文本消息会被转成 InboundMessage 推入消息源。
消息 ID 统一编码为 "<chat_id>/<message_id>", 用户 ID 为 Telegram user id 的字符串形式。
出站: 发送到 reply_to 所在的会话并作为回复; 没有 reply_to 时发到第一个收件人的私聊。
"""

import datetime
from typing import Sequence

import telegram
from telegram.constants import ParseMode
from telegram.ext import Application, ApplicationBuilder, ContextTypes, MessageHandler, filters
from telegram.helpers import mention_html

from channels.base import NotificationSink, QueueMessageSource
from datamodel import InboundMessage
from errors import NotifyError
from logger import logger

__all__ = ["TelegramChannel", "encode_message_id", "decode_message_id"]

BOT_DESCRIPTION = "Reply to any message with \"@{username} in 3 days\" and I will remind you about it."
BOT_SHORT_DESCRIPTION = "Simple bot for reminding you about messages"


def encode_message_id(chat_id: int, message_id: int) -> str:
    return f"{chat_id}/{message_id}"


def decode_message_id(raw: str) -> tuple[int, int]:
    chat_id, _, message_id = raw.rpartition("/")
    if not chat_id:
        raise ValueError(f"无效的消息 ID: {raw!r}")
    return int(chat_id), int(message_id)


def to_inbound_message(message: telegram.Message) -> InboundMessage | None:
    if message is None or message.text is None or message.from_user is None:
        return None
    reply_to = None
    if message.reply_to_message is not None:
        reply_to = encode_message_id(message.chat_id, message.reply_to_message.message_id)
    return InboundMessage(
        id=encode_message_id(message.chat_id, message.message_id),
        author_id=str(message.from_user.id),
        content=message.text,
        created_at=message.date,
        reply_to=reply_to,
    )


class TelegramChannel(NotificationSink):
    def __init__(self, token: str, publish_profile: bool = True) -> None:
        self.source = QueueMessageSource()
        self.publish_profile = publish_profile
        self._app: Application = ApplicationBuilder().token(token).build()
        self._app.add_handler(MessageHandler(filters.TEXT & filters.REPLY & ~filters.COMMAND, self._on_message))
        self._app.add_error_handler(self._on_error)

    @property
    def address(self) -> str:
        """bot 的 @username, 需在 start() 之后访问"""
        return f"@{self._app.bot.username}"

    async def _on_message(self, update: telegram.Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        inbound = to_inbound_message(update.effective_message)
        if inbound is None:
            return
        logger.debug(f"收到 Telegram 消息 {inbound.id}: {inbound.content}")
        self.source.push(inbound)

    async def _on_error(self, update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
        logger.error(f"Telegram 错误: {context.error}", exc_info=context.error)

    @staticmethod
    def _on_polling_error(error: telegram.error.TelegramError) -> None:
        if isinstance(error, telegram.error.NetworkError):
            logger.warning(f"Telegram Bot 网络错误: {error}")
        else:
            logger.error(f"Telegram Bot 发生预期外的错误: {error}", exc_info=error)

    async def _publish_profile(self) -> None:
        bot = self._app.bot
        try:
            await bot.set_my_description(BOT_DESCRIPTION.format(username=bot.username))
            await bot.set_my_short_description(BOT_SHORT_DESCRIPTION)
            logger.debug("bot 简介已更新")
        except telegram.error.TelegramError as e:
            logger.warning(f"更新 bot 简介失败: {e}")

    async def start(self) -> None:
        """连接 Telegram 并开始轮询, 失败时直接抛出"""
        await self._app.initialize()
        logger.info(f"bot 地址: {self.address}")
        if self.publish_profile:
            await self._publish_profile()
        await self._app.updater.start_polling(
            poll_interval=0.5,
            timeout=datetime.timedelta(seconds=15),
            bootstrap_retries=-1,
            drop_pending_updates=False,  # 保留下线期间的消息
            error_callback=self._on_polling_error,
        )
        await self._app.start()
        logger.info("Telegram Bot Polling 已启动")

    async def stop(self) -> None:
        logger.info("关闭 Telegram Bot Polling...")
        if self._app.updater.running:
            await self._app.updater.stop()
        if self._app.running:
            await self._app.stop()
        await self._app.shutdown()

    def mention(self, identity: str) -> str:
        return mention_html(int(identity), "you")

    async def publish(self, content: str, recipients: Sequence[str], reply_to: str | None = None) -> None:
        reply_parameters = None
        try:
            if reply_to is not None:
                chat_id, message_id = decode_message_id(reply_to)
                reply_parameters = telegram.ReplyParameters(
                    message_id=message_id,
                    allow_sending_without_reply=True,
                )
            elif recipients:
                chat_id = int(recipients[0])
            else:
                raise NotifyError("消息既没有回复目标也没有收件人")
        except ValueError as e:
            raise NotifyError(f"无法确定发送目标: {e}") from e

        logger.info(f"发送消息到 {chat_id}: {content}")
        try:
            await self._app.bot.send_message(
                chat_id=chat_id,
                text=content,
                parse_mode=ParseMode.HTML,
                reply_parameters=reply_parameters,
            )
        except telegram.error.TelegramError as e:
            raise NotifyError(f"向 {chat_id} 发送消息失败: {e}") from e
