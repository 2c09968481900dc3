import pytest

from buy_alert_bot import config
from buy_alert_bot.config import load_settings

_VARS = (
    "TELEGRAM_BOT_TOKEN",
    "TELEGRAM_CHAT_ID",
    "TOKEN_ADDRESS",
    "TOKEN_NAME",
    "MIN_BUY_USD",
    "IMAGE_TYPE",
    "LEDGER_MAX_SIZE",
    "LEDGER_KEEP",
    "POLL_INTERVAL_SECONDS",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.setattr(config, "load_dotenv", lambda: None)
    for name in _VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "token")
    monkeypatch.setenv("TELEGRAM_CHAT_ID", "-100")
    monkeypatch.setenv("TOKEN_ADDRESS", "0xtoken")


def test_defaults() -> None:
    settings = load_settings()
    assert settings.min_buy_usd == 10.0
    assert settings.poll_interval_seconds == 5.0
    assert settings.ledger_max_size == 1000
    assert settings.ledger_keep == 500
    assert settings.token_name is None
    assert settings.alert_image_url is None


def test_overrides(monkeypatch) -> None:
    monkeypatch.setenv("TOKEN_NAME", "Mega Dog")
    monkeypatch.setenv("MIN_BUY_USD", "25.5")
    monkeypatch.setenv("IMAGE_TYPE", "Animation")
    settings = load_settings()
    assert settings.token_name == "Mega Dog"
    assert settings.min_buy_usd == 25.5
    assert settings.alert_image_type == "animation"


def test_missing_required(monkeypatch) -> None:
    monkeypatch.delenv("TOKEN_ADDRESS")
    with pytest.raises(ValueError, match="TOKEN_ADDRESS"):
        load_settings()


def test_invalid_ledger_bounds(monkeypatch) -> None:
    monkeypatch.setenv("LEDGER_MAX_SIZE", "100")
    monkeypatch.setenv("LEDGER_KEEP", "100")
    with pytest.raises(ValueError):
        load_settings()


def test_invalid_image_type(monkeypatch) -> None:
    monkeypatch.setenv("IMAGE_TYPE", "video")
    with pytest.raises(ValueError):
        load_settings()
