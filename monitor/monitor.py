"""SignalMonitor - central orchestrator for fetching, analysing and alerting."""
import logging
from dataclasses import dataclass
from typing import Optional

from models.alerts import MetricSnapshot
from models.indicators import CombinedSignal
from monitor.api import DataUnavailableError
from sentiment.evaluator import summarize
from signals.aggregator import calculate_combined_signal

logger = logging.getLogger("signalpulse.monitor")


@dataclass(frozen=True)
class SignalAnalysis:
    symbol: str
    asset_type: str
    price: Optional[float]
    change_pct: Optional[float]
    data_points: int
    signal: CombinedSignal

    def to_dict(self):
        return {
            "symbol": self.symbol,
            "assetType": self.asset_type,
            "price": self.price,
            "changePercent": self.change_pct,
            "dataPoints": self.data_points,
            **self.signal.to_dict(),
        }


class SignalMonitor:
    def __init__(self, market, store, engine=None, config=None):
        self.market = market
        self.store = store
        self.engine = engine
        self.config = config or {}

    @property
    def enabled_indicators(self):
        return self.config.get("indicators", {}).get("enabled")

    def analyze(self, symbol, asset_type=None, enabled_ids=None) -> SignalAnalysis:
        """Fetch history for ``symbol`` and run the enabled indicators over it."""
        series = self.market.get_price_series(symbol, asset_type=asset_type)
        ids = enabled_ids if enabled_ids is not None else self.enabled_indicators
        combined = calculate_combined_signal(series.closes, series.volumes, ids)

        price = series.closes[-1] if series.closes else None
        change = None
        if len(series.closes) >= 2 and series.closes[-2]:
            change = (series.closes[-1] - series.closes[-2]) / series.closes[-2] * 100
        logger.info(f"{series.symbol}: {combined.overall.value} ({combined.score:+d}) "
                    f"over {len(series.closes)} prices")
        return SignalAnalysis(series.symbol, series.asset_type, price, change,
                              len(series.closes), combined)

    def sentiment(self):
        """Fetch sentiment inputs and classify them. Returns (inputs, summary)."""
        inputs = self.market.fetch_sentiment_inputs()
        return inputs, summarize(inputs)

    def current_snapshot(self) -> MetricSnapshot:
        inputs, summary = self.sentiment()
        price = change = None
        try:
            quote = self.market.get_btc_quote()
            price, change = quote.get("price"), quote.get("change_24h_pct")
        except DataUnavailableError as e:
            logger.warning(f"Price unavailable for alert snapshot: {e}")
        return MetricSnapshot.from_sentiment(inputs, summary, price=price, price_change_24h=change)

    def run_alert_check(self, now=None):
        """Fetch metrics, persist the snapshot and let the engine decide."""
        if self.engine is None:
            raise RuntimeError("SignalMonitor has no alert engine")
        snapshot = self.current_snapshot()
        self.store.save_market_snapshot(snapshot)
        result = self.engine.check(snapshot, now=now)
        logger.info(f"Alert check: {result.alert_type.value} - {result.reason} "
                    f"(send={result.should_send}, suppressed={result.suppressed})")
        return result
