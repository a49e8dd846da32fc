"""Yahoo Finance client for stock daily history.

No API key required. Rate limiting is handled by the library.
"""
import logging

import yfinance as yf

from utils.http_client import APIError

logger = logging.getLogger("signalpulse.api.yfinance")


class YFinanceClient:
    def get_history(self, symbol: str, period: str = "1y"):
        """Daily closes and volumes for ``symbol``, oldest first."""
        symbol = symbol.upper()
        try:
            df = yf.Ticker(symbol).history(period=period, interval="1d")
        except Exception as e:
            raise APIError(f"yfinance fetch failed for {symbol}: {e}", source="yfinance") from e

        if df is None or df.empty:
            raise APIError(f"No price history for {symbol}", source="yfinance")

        df = df[df["Close"] > 0]
        closes = [float(c) for c in df["Close"]]
        volumes = [float(v) for v in df["Volume"]] if "Volume" in df else None
        logger.info(f"yfinance: fetched {len(closes)} days for {symbol}")
        return closes, volumes
