from __future__ import annotations

import logging
from typing import Protocol

from .formatting import AlertStyle, emoji_count, format_buy_alert, short_address
from .types import PairContext, Trade

logger = logging.getLogger(__name__)


class AlertTransport(Protocol):
    async def send(self, text: str) -> None: ...

    async def send_media(self, media_url: str, caption: str, kind: str = "photo") -> None: ...

    async def close(self) -> None: ...


class BuyNotifier:
    def __init__(
        self,
        transport: AlertTransport,
        style: AlertStyle,
        image_url: str | None = None,
        image_type: str = "photo",
    ) -> None:
        self.transport = transport
        self.style = style
        self.image_url = image_url
        self.image_type = image_type

    async def close(self) -> None:
        await self.transport.close()

    async def notify(self, trade: Trade, pair: PairContext) -> bool:
        try:
            text = format_buy_alert(trade, pair, self.style)
            if self.image_url:
                await self.transport.send_media(self.image_url, text, kind=self.image_type)
            else:
                await self.transport.send(text)
        except Exception as exc:
            logger.error("Failed to deliver alert for tx %s: %s", trade.tx_hash, exc)
            return False

        logger.info(
            "Alert sent: $%.2f | %d emojis | buyer %s",
            trade.amount_usd,
            emoji_count(trade.amount_usd, self.style.emoji_value, self.style.max_emojis),
            short_address(trade.buyer),
        )
        return True
