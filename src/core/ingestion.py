"""入站循环

逐条消费消息源, 对回复类消息做准入判定并回复:
CREATED -> 确认消息; RATE_LIMITED -> 限流提示; IGNORED / DUPLICATE -> 不回复; ERROR -> 仅记录日志。
任何一条消息出错都不能让循环退出, 只有关闭信号可以。
"""

import asyncio

import core.notifier as notifier
from channels.base import MessageSource, NotificationSink
from core.admission import Admission
from datamodel import InboundMessage, Outcome, OutcomeKind
from errors import NotifyError
from logger import logger

__all__ = ["main_loop", "handle_message"]


async def _next_message(source: MessageSource, shutdown_event: asyncio.Event) -> InboundMessage | None:
    """等待下一条消息或关闭信号, 收到关闭信号时返回 None

    与关闭信号同时到达的消息已经出队, 仍作为当前消息返回, 交给调用方处理完再退出。
    """
    if shutdown_event.is_set():
        return None
    receive_task = asyncio.ensure_future(source.receive())
    shutdown_task = asyncio.ensure_future(shutdown_event.wait())
    try:
        await asyncio.wait({receive_task, shutdown_task}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for task in (receive_task, shutdown_task):
            if not task.done():
                task.cancel()
        await asyncio.gather(receive_task, shutdown_task, return_exceptions=True)

    if receive_task.done() and not receive_task.cancelled() and receive_task.exception() is None:
        return receive_task.result()
    if shutdown_event.is_set():
        return None
    return receive_task.result()


async def handle_message(message: InboundMessage, sink: NotificationSink, admission: Admission) -> Outcome:
    logger.trace(f"收到消息 {message.id}: {message.content!r}")
    if message.reply_to is None:
        logger.debug(f"消息 {message.id} 不是回复, 跳过")
        return Outcome.ignored()

    outcome = await admission.admit(
        requester_id=message.author_id,
        target_id=message.reply_to,
        request_time=message.created_at,
        content=message.content,
    )

    try:
        if outcome.kind == OutcomeKind.CREATED:
            await notifier.reminder_created(sink, message, outcome.remind_at)
            logger.info(f"提醒已创建: {message.reply_to} -> {message.author_id} @ {outcome.remind_at}")
        elif outcome.kind == OutcomeKind.RATE_LIMITED:
            await notifier.rate_limit_hit(sink, message)
        elif outcome.kind == OutcomeKind.ERROR:
            logger.error(f"处理消息 {message.id} 失败: {outcome.error}")
    except NotifyError as e:
        # 提醒记录已经写入, 只是回复没发出去
        logger.error(f"回复消息 {message.id} 失败: {e}", exc_info=e)

    return outcome


async def main_loop(
    shutdown_event: asyncio.Event,
    source: MessageSource,
    sink: NotificationSink,
    admission: Admission,
) -> None:
    logger.info("入站循环已启动, 正在监听消息")
    while True:
        try:
            message = await _next_message(source, shutdown_event)
        except Exception as e:
            logger.error(f"读取入站消息失败: {e}", exc_info=e)
            await asyncio.sleep(1)
            continue
        if message is None:
            break
        try:
            await handle_message(message, sink, admission)
        except Exception as e:
            logger.error(f"处理消息 {message.id} 时发生预期外的错误: {e}", exc_info=e)

    logger.info("入站循环已关闭")
