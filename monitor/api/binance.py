"""Binance USD-M futures client: funding, positioning, open interest and 24h ticker."""
import logging

from utils.http_client import APIError, HTTPClient, RateLimiter

logger = logging.getLogger("signalpulse.api.binance")

FUTURES_API = "https://fapi.binance.com"


class BinanceFuturesClient:
    def __init__(self, rate_limit=60, cache_ttl=120, timeout=15):
        self.client = HTTPClient(
            base_url=FUTURES_API,
            source="binance",
            rate_limiter=RateLimiter(rate_limit),
            cache_ttl=cache_ttl,
            timeout=timeout,
        )

    @staticmethod
    def _first(data, what):
        if not isinstance(data, list) or not data:
            raise APIError(f"Binance returned no {what}", source="binance")
        return data[0]

    def get_funding_rate(self, symbol="BTCUSDT"):
        """Latest funding rate in percent (0.01 == 0.01%)."""
        entry = self._first(
            self.client.get("/fapi/v1/fundingRate", params={"symbol": symbol, "limit": 1}),
            "funding rate",
        )
        return float(entry["fundingRate"]) * 100

    def get_long_short_ratio(self, symbol="BTCUSDT", period="1h"):
        entry = self._first(
            self.client.get("/futures/data/globalLongShortAccountRatio",
                            params={"symbol": symbol, "period": period, "limit": 1}),
            "long/short ratio",
        )
        return {
            "ratio": float(entry["longShortRatio"]),
            "long_percent": float(entry["longAccount"]) * 100,
            "short_percent": float(entry["shortAccount"]) * 100,
        }

    def get_open_interest_usd(self, symbol="BTCUSDT", period="5m"):
        entry = self._first(
            self.client.get("/futures/data/openInterestHist",
                            params={"symbol": symbol, "period": period, "limit": 1}),
            "open interest",
        )
        return float(entry["sumOpenInterestValue"])

    def get_24h_ticker(self, symbol="BTCUSDT"):
        data = self.client.get("/fapi/v1/ticker/24hr", params={"symbol": symbol})
        try:
            return {
                "price": float(data["lastPrice"]),
                "change_24h_pct": float(data["priceChangePercent"]),
                "volume": float(data["quoteVolume"]),
            }
        except (KeyError, TypeError, ValueError) as e:
            raise APIError(f"Unexpected ticker payload: {data!r:.200}", source="binance") from e

    def close(self):
        self.client.close()
