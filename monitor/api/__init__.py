"""Market-data provider registry.

Everything here performs network I/O and runs before the signal and alert
code is invoked. A price series that cannot be fetched raises
``DataUnavailableError``; individual sentiment inputs degrade to ``None``.
"""
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import List, Optional

from models.sentiment import SentimentInputs
from monitor.api.binance import BinanceFuturesClient
from monitor.api.coingecko import CoinGeckoClient, resolve_coin_id
from monitor.api.fear_greed import FearGreedClient
from monitor.api.yfinance_client import YFinanceClient
from utils.http_client import APIError

logger = logging.getLogger("signalpulse.api")


class DataUnavailableError(Exception):
    """A required upstream series or quote could not be fetched."""

    def __init__(self, message, source=None):
        super().__init__(message)
        self.source = source


@dataclass(frozen=True)
class MarketSeries:
    symbol: str
    asset_type: str
    closes: List[float]
    volumes: Optional[List[float]] = None


class MarketDataRegistry:
    def __init__(self, config=None):
        cfg = config or {}
        api_cfg = cfg.get("api", {})
        timeout = api_cfg.get("timeout", 15)

        def _opts(name, rate_limit, cache_ttl):
            sub = api_cfg.get(name, {})
            return dict(rate_limit=sub.get("rate_limit", rate_limit),
                        cache_ttl=sub.get("cache_ttl", cache_ttl), timeout=timeout)

        self.fear_greed = FearGreedClient(**_opts("fear_greed", 30, 600))
        self.binance = BinanceFuturesClient(**_opts("binance", 60, 120))
        self.coingecko = CoinGeckoClient(**_opts("coingecko", 30, 300))
        self.yfinance = YFinanceClient()
        self.futures_symbol = api_cfg.get("binance", {}).get("symbol", "BTCUSDT")
        self.history_days = cfg.get("monitor", {}).get("history_days", 200)

    # ── price series ─────────────────────────────────

    def get_price_series(self, symbol, asset_type=None, days=None) -> MarketSeries:
        """Daily closes (and volumes where the provider has them) for a crypto or stock symbol."""
        days = days or self.history_days
        coin_id = resolve_coin_id(symbol)
        if asset_type is None:
            asset_type = "crypto" if coin_id else "stock"

        try:
            if asset_type == "crypto":
                closes, volumes = self.coingecko.get_market_chart(coin_id or symbol.lower(), days)
            else:
                closes, volumes = self.yfinance.get_history(symbol, period="1y")
        except APIError as e:
            raise DataUnavailableError(f"Price history unavailable for {symbol}: {e}",
                                       source=e.source) from e
        return MarketSeries(symbol=symbol.upper(), asset_type=asset_type,
                            closes=closes, volumes=volumes)

    def get_btc_quote(self):
        """BTC price and 24h change, Binance first then CoinGecko."""
        try:
            return self.binance.get_24h_ticker(self.futures_symbol)
        except APIError as e:
            logger.warning(f"Binance ticker failed, falling back to CoinGecko: {e}")
        try:
            return self.coingecko.get_quote("bitcoin")
        except APIError as e:
            raise DataUnavailableError(f"BTC quote unavailable: {e}", source=e.source) from e

    # ── sentiment ────────────────────────────────────

    def fetch_sentiment_inputs(self) -> SentimentInputs:
        """Fetch every sentiment input concurrently. Failed inputs come back as None."""

        def _fetch(name, func):
            try:
                return func()
            except (APIError, KeyError, ValueError, TypeError) as e:
                logger.warning(f"{name} unavailable: {e}")
                return None

        with ThreadPoolExecutor(max_workers=4) as executor:
            fg = executor.submit(_fetch, "Fear & Greed", self.fear_greed.get_current)
            funding = executor.submit(_fetch, "Funding rate",
                                      lambda: self.binance.get_funding_rate(self.futures_symbol))
            ls = executor.submit(_fetch, "Long/short ratio",
                                 lambda: self.binance.get_long_short_ratio(self.futures_symbol))
            oi = executor.submit(_fetch, "Open interest",
                                 lambda: self.binance.get_open_interest_usd(self.futures_symbol))
            fg, funding, ls, oi = fg.result(), funding.result(), ls.result(), oi.result()

        return SentimentInputs(
            fear_greed_value=fg["value"] if fg else None,
            fear_greed_label=fg["label"] if fg else None,
            funding_rate_pct=funding,
            long_short_ratio=ls["ratio"] if ls else None,
            long_percent=ls["long_percent"] if ls else None,
            short_percent=ls["short_percent"] if ls else None,
            open_interest_usd=oi,
        )

    def health_check(self):
        """Test connectivity to each API."""
        checks = {}
        apis = [
            ("Fear & Greed", self.fear_greed.get_current),
            ("Binance Futures", lambda: self.binance.get_funding_rate(self.futures_symbol)),
            ("CoinGecko", lambda: self.coingecko.get_quote("bitcoin")),
        ]
        for name, func in apis:
            start = time.monotonic()
            try:
                func()
                reachable = True
            except APIError as e:
                logger.debug(f"{name} health check failed: {e}")
                reachable = False
            checks[name] = {"reachable": reachable,
                            "latency_ms": int((time.monotonic() - start) * 1000)}
        return checks

    def close(self):
        for client in (self.fear_greed, self.binance, self.coingecko):
            client.close()
