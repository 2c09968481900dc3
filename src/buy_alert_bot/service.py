from __future__ import annotations

import asyncio
import logging
import math
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Protocol

from .classifier import classify_transfer
from .config import Settings
from .dedupe import TransactionLedger
from .errors import DataUnavailableError, FetchTransientError
from .formatting import AlertStyle, format_number
from .http_client import JsonFetcher, RequestGate, RetryPolicy
from .market_data import MarketDataFetcher
from .notifier import BuyNotifier
from .telegram_notifier import TelegramNotifier
from .transfer_feed import TransferFeedFetcher
from .types import PairContext, RawTransfer, Trade, Verdict

logger = logging.getLogger(__name__)


class PairSource(Protocol):
    async def fetch_pair(self) -> PairContext | None: ...


class TransferSource(Protocol):
    async def fetch_transfers(self, policy: RetryPolicy | None = None) -> list[RawTransfer]: ...

    async def fetch_transaction_ids(self, policy: RetryPolicy | None = None) -> list[str]: ...


class TradeNotifier(Protocol):
    async def notify(self, trade: Trade, pair: PairContext) -> bool: ...

    async def close(self) -> None: ...


@dataclass
class Metrics:
    cycles: int = 0
    cycles_failed: int = 0
    transfers_seen: int = 0
    buys_detected: int = 0
    buys_below_threshold: int = 0
    alerts_sent: int = 0
    alerts_failed: int = 0
    ledger_evictions: int = 0


class BuyTracker:
    """Polls the transfer feed and alerts on new buys from the tracked pair.

    One tracker owns its ledger and request gate, so independent trackers can
    share a process. Cycles never overlap: a trigger that arrives while a
    cycle is running is dropped.
    """

    def __init__(
        self,
        settings: Settings,
        market: PairSource | None = None,
        feed: TransferSource | None = None,
        notifier: TradeNotifier | None = None,
        ledger: TransactionLedger | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.settings = settings
        self.metrics = Metrics()
        if ledger is None:
            ledger = TransactionLedger(settings.ledger_max_size, settings.ledger_keep)
        self.ledger = ledger
        self.policy = RetryPolicy(
            max_attempts=settings.retry_attempts,
            base_delay=settings.retry_base_delay_seconds,
        )
        self.preload_policy = self.policy.with_base_delay(settings.preload_retry_base_delay_seconds)
        self._sleep = sleep
        self._cycle_lock = asyncio.Lock()

        self._fetcher: JsonFetcher | None = None
        if market is None or feed is None:
            self._fetcher = JsonFetcher(
                RequestGate(settings.api_cooldown_seconds),
                self.policy,
                timeout=settings.request_timeout_seconds,
            )
        self.market = market or MarketDataFetcher(
            self._fetcher,
            settings.dexscreener_api_base,
            settings.token_address,
            settings.dex_chain_id,
        )
        self.feed = feed or TransferFeedFetcher(
            self._fetcher,
            settings.explorer_url,
            settings.token_address,
        )
        self.notifier = notifier or BuyNotifier(
            TelegramNotifier(settings.telegram_bot_token, settings.telegram_chat_id),
            AlertStyle(
                token_address=settings.token_address,
                explorer_url=settings.explorer_url,
                dex_chain_id=settings.dex_chain_id,
                token_name=settings.token_name,
                token_symbol=settings.token_symbol,
                emoji=settings.alert_emoji,
                emoji_value=settings.emoji_value,
                max_emojis=settings.max_emojis,
            ),
            image_url=settings.alert_image_url,
            image_type=settings.alert_image_type,
        )

    async def close(self) -> None:
        await self.notifier.close()
        if self._fetcher is not None:
            await self._fetcher.close()

    async def run(self, stop_event: asyncio.Event | None = None) -> None:
        stop = stop_event or asyncio.Event()
        health_task = asyncio.create_task(self._health_loop())
        try:
            await self.preload()
            logger.info("Bot running, monitoring for new buys")
            if await self._wait_for_stop(stop, self.settings.initial_delay_seconds):
                return

            interval = self.settings.poll_interval_seconds
            next_tick = time.monotonic()
            while not stop.is_set():
                if not await self._cycle_until_stopped(stop):
                    logger.info("Stop requested, abandoning current cycle")
                    return
                next_tick += interval
                now = time.monotonic()
                if next_tick < now:
                    missed = math.ceil((now - next_tick) / interval)
                    logger.debug("Cycle overran the poll interval, skipping %d trigger(s)", missed)
                    next_tick += missed * interval
                if await self._wait_for_stop(stop, next_tick - now):
                    return
        finally:
            health_task.cancel()
            await asyncio.gather(health_task, return_exceptions=True)
            await self.close()

    async def preload(self) -> int:
        logger.info("Loading existing transactions")
        try:
            tx_hashes = await self.feed.fetch_transaction_ids(policy=self.preload_policy)
        except Exception as exc:
            logger.warning("Could not pre-load transactions: %s", exc)
            return 0
        added = self.ledger.add_many(tx_hashes)
        logger.info("Loaded %d existing txs (will skip these)", len(self.ledger))
        return added

    async def run_cycle(self) -> int:
        if self._cycle_lock.locked():
            logger.debug("Cycle already running, trigger ignored")
            return 0

        async with self._cycle_lock:
            self.metrics.cycles += 1
            try:
                return await self._check_for_new_buys()
            except FetchTransientError as exc:
                self.metrics.cycles_failed += 1
                logger.debug("Transient fetch failure: %s", exc)
            except DataUnavailableError as exc:
                self.metrics.cycles_failed += 1
                logger.info("Data unavailable this cycle: %s", exc)
            except Exception as exc:
                self.metrics.cycles_failed += 1
                logger.exception("Check error: %s", exc)
            return 0

    async def _check_for_new_buys(self) -> int:
        pair = await self.market.fetch_pair()
        if pair is None:
            logger.debug("No market data this cycle")
            return 0
        if not pair.pair_address:
            logger.warning("No pair address found")
            return 0

        transfers = await self.feed.fetch_transfers()
        sent = 0
        for transfer in transfers:
            tx_hash = transfer.tx_hash
            if not tx_hash or tx_hash in self.ledger:
                continue
            self.ledger.add(tx_hash)
            self.metrics.transfers_seen += 1

            result = classify_transfer(
                transfer,
                pair.pair_address,
                pair.price_usd,
                pair.price_native,
                self.settings.min_buy_usd,
            )
            if result.verdict is Verdict.BELOW_THRESHOLD:
                self.metrics.buys_below_threshold += 1
                logger.info("Skip small buy: $%.2f", result.amount_usd)
                continue
            if result.verdict is not Verdict.BUY or result.trade is None:
                continue

            trade = result.trade
            self.metrics.buys_detected += 1
            logger.info("NEW BUY: $%.2f | %s tokens", trade.amount_usd, format_number(trade.tokens_received))
            if await self.notifier.notify(trade, pair):
                self.metrics.alerts_sent += 1
                sent += 1
            else:
                self.metrics.alerts_failed += 1
            await self._sleep(self.settings.alert_delay_seconds)

        evicted = self.ledger.prune_if_oversized()
        if evicted:
            self.metrics.ledger_evictions += evicted
            logger.info("Cleaned up %d old transaction ids, %d kept", evicted, len(self.ledger))
        return sent

    async def send_demo_alert(self) -> bool:
        logger.info("Sending demo alert")
        try:
            pair = await self.market.fetch_pair()
        except Exception as exc:
            logger.error("Could not fetch token data: %s", exc)
            return False
        if pair is None:
            logger.error("Could not fetch token data from DexScreener, make sure the token is listed on a DEX")
            return False

        logger.info(
            "Token found: %s, price $%s, mcap %s",
            self.settings.token_name or pair.base_name,
            pair.price_usd,
            format_number(pair.market_cap),
        )
        demo = Trade(
            tx_hash=f"0xdemo{int(time.time() * 1000):x}abcdef1234567890abcdef1234567890",
            buyer="0xabcdef1234567890abcdef1234567890abcdef12",
            amount_usd=150.0,
            amount_native=0.05,
            tokens_received=1_000_000.0,
            position=500.0,
        )
        return await self.notifier.notify(demo, pair)

    async def _cycle_until_stopped(self, stop: asyncio.Event) -> bool:
        cycle = asyncio.create_task(self.run_cycle())
        stopper = asyncio.create_task(stop.wait())
        done, _ = await asyncio.wait({cycle, stopper}, return_when=asyncio.FIRST_COMPLETED)
        if cycle in done:
            stopper.cancel()
            await asyncio.gather(stopper, return_exceptions=True)
            return True
        cycle.cancel()
        await asyncio.gather(cycle, return_exceptions=True)
        return False

    async def _wait_for_stop(self, stop: asyncio.Event, timeout: float) -> bool:
        try:
            await asyncio.wait_for(stop.wait(), timeout=max(timeout, 0.0))
        except asyncio.TimeoutError:
            return False
        return True

    async def _health_loop(self) -> None:
        while True:
            await asyncio.sleep(self.settings.health_log_interval_seconds)
            logger.info(
                (
                    "health cycles=%d failed=%d transfers=%d buys=%d small=%d "
                    "alerts_sent=%d alerts_failed=%d ledger=%d evicted=%d"
                ),
                self.metrics.cycles,
                self.metrics.cycles_failed,
                self.metrics.transfers_seen,
                self.metrics.buys_detected,
                self.metrics.buys_below_threshold,
                self.metrics.alerts_sent,
                self.metrics.alerts_failed,
                len(self.ledger),
                self.metrics.ledger_evictions,
            )
