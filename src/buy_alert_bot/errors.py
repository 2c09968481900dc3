from __future__ import annotations


class BuyBotError(Exception):
    pass


class FetchError(BuyBotError):
    def __init__(self, message: str, url: str | None = None, status_code: int | None = None) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class FetchTransientError(FetchError):
    """Rate-limit, upstream-busy or timeout that outlived the retry policy."""


class FetchFatalError(FetchError):
    pass


class DataUnavailableError(BuyBotError):
    pass


class DeliveryError(BuyBotError):
    pass
