from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
import sys

from .config import Settings, load_settings
from .service import BuyTracker

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _log_banner(settings: Settings) -> None:
    logger.info("Buy alert bot starting")
    logger.info(
        "Token: %s (%s %s)", settings.token_address, settings.token_name or "-", settings.token_symbol or "-"
    )
    logger.info("Chat: %s", settings.telegram_chat_id)
    logger.info("Min buy: $%s", settings.min_buy_usd)
    logger.info(
        "Emoji: %s ($%s each, max %d)", settings.alert_emoji, settings.emoji_value, settings.max_emojis
    )
    logger.info("Poll interval: %.1fs", settings.poll_interval_seconds)


async def _main(argv: list[str]) -> None:
    settings = load_settings()
    configure_logging(settings.log_level)
    _log_banner(settings)
    tracker = BuyTracker(settings)

    if "--demo" in argv:
        try:
            await tracker.send_demo_alert()
        finally:
            await tracker.close()
        return

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, stop.set)

    await tracker.run(stop)
    logger.info("Bot stopped gracefully")


def main() -> None:
    try:
        asyncio.run(_main(sys.argv[1:]))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
