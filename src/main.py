from logger import setup_logging, logger
from config.settings import *
setup_logging(
    log_level=LOG_LEVEL,
    log_file=LOG_FILE,
    console_level=CONSOLE_LOG_LEVEL,
    rotation=LOG_ROTATION,
    retention=LOG_RETENTION,
    error_retention=ERROR_LOG_RETENTION,
)

import asyncio
import signal
from datetime import timedelta

import core.delivery as delivery
import core.ingestion as ingestion
import storage.db_config as db_config
from channels.telegram_polling import TelegramChannel
from core.admission import Admission, RequestMatcher

shutdown_event = asyncio.Event()


def signal_handler(sig, frame):
    """处理 SIGINT (Ctrl+C) / SIGTERM 信号"""
    logger.info("收到中断信号,正在依次关闭组件...")
    shutdown_event.set()


async def main():
    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    # 以下任何一步失败都属于启动期致命错误, 直接抛出
    await db_config.init_db(DATABASE_PATH)
    channel = TelegramChannel(TELEGRAM_BOT_TOKEN, publish_profile=PUBLISH_BOT_PROFILE)

    try:
        await channel.start()
        admission = Admission(
            matcher=RequestMatcher(address=channel.address),
            rate_limit_max=RATE_LIMIT_MAX,
            rate_limit_window=timedelta(minutes=RATE_LIMIT_WINDOW_MINUTES),
        )

        await asyncio.gather(
            ingestion.main_loop(shutdown_event, channel.source, channel, admission),
            delivery.main_loop(shutdown_event, channel, interval_seconds=DELIVERY_INTERVAL_SECONDS),
        )
    finally:
        logger.info("关闭 RemindMe...")
        await channel.stop()

        logger.info("关闭数据库连接...")
        await db_config.close_db()
        logger.info("RemindMe 已关闭")


def run() -> None:
    logger.info("启动 RemindMe...")
    asyncio.run(main())


if __name__ == "__main__":
    run()
