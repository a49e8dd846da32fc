"""Alternative.me Fear & Greed Index client."""
import logging
from datetime import datetime, timezone

from utils.http_client import APIError, HTTPClient, RateLimiter

logger = logging.getLogger("signalpulse.api.feargreed")


class FearGreedClient:
    def __init__(self, rate_limit=30, cache_ttl=600, timeout=15):
        self.client = HTTPClient(
            base_url="https://api.alternative.me/fng",
            source="alternative.me",
            rate_limiter=RateLimiter(rate_limit),
            cache_ttl=cache_ttl,
            timeout=timeout,
        )

    def get_current(self):
        """Latest reading as ``{"value", "label", "timestamp"}``."""
        data = self.client.get("/", params={"limit": "1"})
        entries = data.get("data", []) if isinstance(data, dict) else []
        if not entries:
            raise APIError("Fear & Greed response had no data", source="alternative.me")
        return self._parse(entries[0])

    def get_history(self, days=30):
        data = self.client.get("/", params={"limit": str(days)})
        entries = data.get("data", []) if isinstance(data, dict) else []
        return list(reversed([self._parse(e) for e in entries]))  # Oldest first

    @staticmethod
    def _parse(entry):
        return {
            "value": int(entry["value"]),
            "label": entry.get("value_classification", ""),
            "timestamp": datetime.fromtimestamp(int(entry.get("timestamp", 0)), tz=timezone.utc),
        }

    def close(self):
        self.client.close()
