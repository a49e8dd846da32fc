"""CoinGecko API client for crypto quotes and daily history."""
import logging

from utils.http_client import APIError, HTTPClient, RateLimiter

logger = logging.getLogger("signalpulse.api.coingecko")

# Ticker -> CoinGecko id for the assets the dashboard lists by default
CRYPTO_IDS = {
    "BTC": "bitcoin",
    "ETH": "ethereum",
    "BNB": "binancecoin",
    "SOL": "solana",
    "ADA": "cardano",
    "XRP": "ripple",
    "DOGE": "dogecoin",
    "DOT": "polkadot",
    "AVAX": "avalanche-2",
    "LINK": "chainlink",
    "LTC": "litecoin",
    "UNI": "uniswap",
    "XLM": "stellar",
    "ATOM": "cosmos",
}


def resolve_coin_id(symbol):
    """Map a ticker (BTC) or id (bitcoin) to a CoinGecko id, or None if unknown."""
    if symbol.upper() in CRYPTO_IDS:
        return CRYPTO_IDS[symbol.upper()]
    if symbol.lower() in CRYPTO_IDS.values():
        return symbol.lower()
    return None


class CoinGeckoClient:
    def __init__(self, rate_limit=30, cache_ttl=300, timeout=15):
        self.client = HTTPClient(
            base_url="https://api.coingecko.com/api/v3",
            source="coingecko",
            rate_limiter=RateLimiter(rate_limit),
            cache_ttl=cache_ttl,
            timeout=timeout,
        )

    def get_quote(self, coin_id="bitcoin"):
        data = self.client.get("/simple/price", params={
            "ids": coin_id,
            "vs_currencies": "usd",
            "include_24hr_vol": "true",
            "include_24hr_change": "true",
        })
        coin = data.get(coin_id) if isinstance(data, dict) else None
        if not coin:
            raise APIError(f"No quote for {coin_id}", source="coingecko")
        return {
            "price": coin.get("usd"),
            "change_24h_pct": coin.get("usd_24h_change"),
            "volume": coin.get("usd_24h_vol"),
        }

    def get_market_chart(self, coin_id="bitcoin", days=200):
        """Daily closes and volumes, oldest first."""
        data = self.client.get(f"/coins/{coin_id}/market_chart", params={
            "vs_currency": "usd",
            "days": str(days),
            "interval": "daily",
        })
        prices = data.get("prices", []) if isinstance(data, dict) else []
        if not prices:
            raise APIError(f"No price history for {coin_id}", source="coingecko")
        closes = [p[1] for p in prices]
        volumes = [v[1] for v in data.get("total_volumes", [])]
        if len(volumes) != len(closes):
            logger.debug(f"{coin_id}: volume length {len(volumes)} != {len(closes)}, dropping")
            volumes = None
        return closes, volumes

    def close(self):
        self.client.close()
