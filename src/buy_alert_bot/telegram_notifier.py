from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

import httpx

from .errors import DeliveryError

logger = logging.getLogger(__name__)

_MEDIA_METHODS = {"photo": "sendPhoto", "animation": "sendAnimation"}


class TelegramNotifier:
    def __init__(
        self,
        bot_token: str,
        chat_id: str,
        timeout: float = 15.0,
        client: httpx.AsyncClient | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.chat_id = chat_id
        self._sleep = sleep
        self._base_url = f"https://api.telegram.org/bot{bot_token}"
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def close(self) -> None:
        await self._client.aclose()

    async def send(self, text: str) -> None:
        await self._post(
            "sendMessage",
            {
                "chat_id": self.chat_id,
                "text": text,
                "parse_mode": "HTML",
                "disable_web_page_preview": True,
            },
        )

    async def send_media(self, media_url: str, caption: str, kind: str = "photo") -> None:
        method = _MEDIA_METHODS.get(kind)
        if method is None:
            raise ValueError(f"Unsupported media kind: {kind}")
        await self._post(
            method,
            {
                "chat_id": self.chat_id,
                kind: media_url,
                "caption": caption,
                "parse_mode": "HTML",
            },
        )

    async def _post(self, method: str, payload: dict[str, Any]) -> None:
        retries = 4
        delay = 1.0

        for attempt in range(retries):
            try:
                response = await self._client.post(f"{self._base_url}/{method}", json=payload)

                if response.status_code == 429:
                    retry_after = 2.0
                    try:
                        body = response.json()
                        retry_after = float(body.get("parameters", {}).get("retry_after", retry_after))
                    except (ValueError, TypeError, AttributeError):
                        pass
                    logger.warning("Telegram rate limited. Sleeping %.1fs", retry_after)
                    await self._sleep(retry_after)
                    continue

                response.raise_for_status()
                data = response.json()
                if not data.get("ok", False):
                    raise DeliveryError(f"Telegram {method} failed: {data}")
                return
            except Exception as exc:
                if attempt == retries - 1:
                    raise
                logger.warning("Telegram %s attempt %d failed: %s", method, attempt + 1, exc)
                await self._sleep(delay)
                delay *= 2

        raise DeliveryError(f"Telegram {method} still rate limited after {retries} attempts")
