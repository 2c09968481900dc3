from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv


@dataclass(frozen=True)
class Settings:
    telegram_bot_token: str
    telegram_chat_id: str
    token_address: str
    token_name: str | None = None
    token_symbol: str | None = None
    explorer_url: str = "https://megaeth.blockscout.com"
    dexscreener_api_base: str = "https://api.dexscreener.com"
    dex_chain_id: str = "megaeth"
    min_buy_usd: float = 10.0
    alert_emoji: str = "🟢"
    emoji_value: float = 10.0
    max_emojis: int = 30
    alert_image_url: str | None = None
    alert_image_type: str = "photo"
    poll_interval_seconds: float = 5.0
    initial_delay_seconds: float = 1.0
    api_cooldown_seconds: float = 0.5
    alert_delay_seconds: float = 0.5
    request_timeout_seconds: float = 10.0
    retry_attempts: int = 3
    retry_base_delay_seconds: float = 1.0
    preload_retry_base_delay_seconds: float = 2.0
    ledger_max_size: int = 1000
    ledger_keep: int = 500
    health_log_interval_seconds: int = 60
    log_level: str = "INFO"


def _required(name: str) -> str:
    value = os.getenv(name, "").strip()
    if not value:
        raise ValueError(f"Missing required environment variable: {name}")
    return value


def _optional_str(name: str) -> str | None:
    return os.getenv(name, "").strip() or None


def _optional_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return int(raw)


def _optional_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return float(raw)


def load_settings() -> Settings:
    load_dotenv()
    settings = Settings(
        telegram_bot_token=_required("TELEGRAM_BOT_TOKEN"),
        telegram_chat_id=_required("TELEGRAM_CHAT_ID"),
        token_address=_required("TOKEN_ADDRESS"),
        token_name=_optional_str("TOKEN_NAME"),
        token_symbol=_optional_str("TOKEN_SYMBOL"),
        explorer_url=os.getenv("EXPLORER_URL", "https://megaeth.blockscout.com").strip(),
        dexscreener_api_base=os.getenv("DEXSCREENER_API_BASE", "https://api.dexscreener.com").strip(),
        dex_chain_id=os.getenv("DEX_CHAIN_ID", "megaeth").strip(),
        min_buy_usd=_optional_float("MIN_BUY_USD", 10.0),
        alert_emoji=_optional_str("ALERT_EMOJI") or "🟢",
        emoji_value=_optional_float("EMOJI_VALUE", 10.0),
        max_emojis=_optional_int("MAX_EMOJIS", 30),
        alert_image_url=_optional_str("ALERT_IMAGE"),
        alert_image_type=os.getenv("IMAGE_TYPE", "photo").strip().lower(),
        poll_interval_seconds=_optional_float("POLL_INTERVAL_SECONDS", 5.0),
        initial_delay_seconds=_optional_float("INITIAL_DELAY_SECONDS", 1.0),
        api_cooldown_seconds=_optional_float("API_COOLDOWN_SECONDS", 0.5),
        alert_delay_seconds=_optional_float("ALERT_DELAY_SECONDS", 0.5),
        request_timeout_seconds=_optional_float("REQUEST_TIMEOUT_SECONDS", 10.0),
        retry_attempts=_optional_int("RETRY_ATTEMPTS", 3),
        retry_base_delay_seconds=_optional_float("RETRY_BASE_DELAY_SECONDS", 1.0),
        preload_retry_base_delay_seconds=_optional_float("PRELOAD_RETRY_BASE_DELAY_SECONDS", 2.0),
        ledger_max_size=_optional_int("LEDGER_MAX_SIZE", 1000),
        ledger_keep=_optional_int("LEDGER_KEEP", 500),
        health_log_interval_seconds=_optional_int("HEALTH_LOG_INTERVAL_SECONDS", 60),
        log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper(),
    )
    _validate(settings)
    return settings


def _validate(settings: Settings) -> None:
    if settings.alert_image_type not in ("photo", "animation"):
        raise ValueError("IMAGE_TYPE must be 'photo' or 'animation'")
    if settings.poll_interval_seconds <= 0:
        raise ValueError("POLL_INTERVAL_SECONDS must be positive")
    if settings.retry_attempts < 1:
        raise ValueError("RETRY_ATTEMPTS must be at least 1")
    if not 0 < settings.ledger_keep < settings.ledger_max_size:
        raise ValueError("LEDGER_KEEP must be positive and smaller than LEDGER_MAX_SIZE")
