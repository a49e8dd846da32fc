"""Tests for the HTTP client and market-data providers (no network)."""
import pytest
import requests
from unittest.mock import MagicMock, patch

from monitor.api import DataUnavailableError, MarketDataRegistry
from monitor.api.binance import BinanceFuturesClient
from monitor.api.coingecko import CoinGeckoClient, resolve_coin_id
from monitor.api.fear_greed import FearGreedClient
from utils.http_client import APIError, HTTPClient, RateLimiter


def _resp(status=200, payload=None, headers=None):
    resp = MagicMock(status_code=status, headers=headers or {}, text=str(payload))
    resp.json.return_value = payload
    return resp


# ── HTTPClient ──────────────────────────────────────────

def test_get_returns_json():
    client = HTTPClient("https://example.com/api/", source="example")
    client.session.get = MagicMock(return_value=_resp(payload={"x": 1}))
    assert client.get("/thing", params={"a": 1}) == {"x": 1}
    assert client.session.get.call_args[0][0] == "https://example.com/api/thing"


def test_client_error_not_retried():
    client = HTTPClient("https://example.com", max_retries=3)
    client.session.get = MagicMock(return_value=_resp(404, {"error": "nope"}))
    with pytest.raises(APIError) as exc:
        client.get("/missing")
    assert exc.value.status_code == 404
    assert client.session.get.call_count == 1


@patch("utils.http_client.time.sleep")
def test_server_error_retried(mock_sleep):
    client = HTTPClient("https://example.com", max_retries=2)
    client.session.get = MagicMock(side_effect=[
        _resp(503, None, headers={"Retry-After": "3"}),
        _resp(200, [1, 2]),
    ])
    assert client.get("/flaky") == [1, 2]
    assert client.session.get.call_count == 2
    mock_sleep.assert_called_once_with(3.0)


@patch("utils.http_client.time.sleep")
def test_network_errors_exhaust_retries(mock_sleep):
    client = HTTPClient("https://example.com", source="example", max_retries=2)
    client.session.get = MagicMock(side_effect=requests.ConnectionError("refused"))
    with pytest.raises(APIError) as exc:
        client.get("/down")
    assert exc.value.source == "example"
    assert client.session.get.call_count == 3


def test_cache_ttl():
    client = HTTPClient("https://example.com", cache_ttl=60)
    client.session.get = MagicMock(return_value=_resp(payload={"v": 1}))
    client.get("/a")
    client.get("/a")
    client.get("/b")
    assert client.session.get.call_count == 2


def test_rate_limiter_allows_burst():
    limiter = RateLimiter(60)
    for _ in range(5):
        limiter.wait()
    assert limiter.tokens == pytest.approx(55, abs=1)


# ── Providers ───────────────────────────────────────────

def test_fear_greed_current():
    client = FearGreedClient()
    client.client.get = MagicMock(return_value={"data": [
        {"value": "23", "value_classification": "Extreme Fear", "timestamp": "1717243200"},
    ]})
    current = client.get_current()
    assert current["value"] == 23
    assert current["label"] == "Extreme Fear"
    assert current["timestamp"].year == 2024


def test_fear_greed_empty():
    client = FearGreedClient()
    client.client.get = MagicMock(return_value={"data": []})
    with pytest.raises(APIError):
        client.get_current()


def test_fear_greed_history_oldest_first():
    client = FearGreedClient()
    client.client.get = MagicMock(return_value={"data": [
        {"value": "40", "timestamp": "200"}, {"value": "30", "timestamp": "100"},
    ]})
    assert [h["value"] for h in client.get_history(2)] == [30, 40]


def test_binance_funding_rate_in_percent():
    client = BinanceFuturesClient()
    client.client.get = MagicMock(return_value=[{"fundingRate": "0.00010000"}])
    assert client.get_funding_rate() == pytest.approx(0.01)


def test_binance_empty_payload():
    client = BinanceFuturesClient()
    client.client.get = MagicMock(return_value=[])
    with pytest.raises(APIError):
        client.get_funding_rate()


def test_binance_long_short_and_oi():
    client = BinanceFuturesClient()
    client.client.get = MagicMock(return_value=[
        {"longShortRatio": "1.5", "longAccount": "0.6", "shortAccount": "0.4"}])
    ls = client.get_long_short_ratio()
    assert ls["ratio"] == 1.5
    assert ls["long_percent"] == pytest.approx(60)

    client.client.get = MagicMock(return_value=[{"sumOpenInterestValue": "25000000000.5"}])
    assert client.get_open_interest_usd() == pytest.approx(25e9, rel=1e-6)


def test_binance_ticker():
    client = BinanceFuturesClient()
    client.client.get = MagicMock(return_value={
        "lastPrice": "58000.5", "priceChangePercent": "-4.2", "quoteVolume": "1000"})
    ticker = client.get_24h_ticker()
    assert ticker["price"] == 58000.5
    assert ticker["change_24h_pct"] == pytest.approx(-4.2)


def test_binance_ticker_error_body():
    client = BinanceFuturesClient()
    client.client.get = MagicMock(return_value={"code": -1121, "msg": "Invalid symbol."})
    with pytest.raises(APIError) as exc:
        client.get_24h_ticker()
    assert exc.value.source == "binance"


def test_resolve_coin_id():
    assert resolve_coin_id("btc") == "bitcoin"
    assert resolve_coin_id("ethereum") == "ethereum"
    assert resolve_coin_id("AAPL") is None


def test_coingecko_market_chart_drops_mismatched_volumes():
    client = CoinGeckoClient()
    client.client.get = MagicMock(return_value={
        "prices": [[0, 100.0], [1, 101.0]],
        "total_volumes": [[0, 5.0]],
    })
    closes, volumes = client.get_market_chart("bitcoin", 2)
    assert closes == [100.0, 101.0]
    assert volumes is None


def test_coingecko_quote_missing():
    client = CoinGeckoClient()
    client.client.get = MagicMock(return_value={})
    with pytest.raises(APIError):
        client.get_quote("bitcoin")


# ── Registry ────────────────────────────────────────────

@pytest.fixture
def registry():
    return MarketDataRegistry({"monitor": {"history_days": 90}})


def test_crypto_symbols_route_to_coingecko(registry):
    registry.coingecko.get_market_chart = MagicMock(return_value=([1.0, 2.0], [3.0, 4.0]))
    series = registry.get_price_series("btc")
    assert series.asset_type == "crypto"
    assert series.symbol == "BTC"
    registry.coingecko.get_market_chart.assert_called_once_with("bitcoin", 90)


def test_other_symbols_route_to_yfinance(registry):
    registry.yfinance.get_history = MagicMock(return_value=([10.0, 11.0], None))
    series = registry.get_price_series("aapl")
    assert series.asset_type == "stock"
    assert series.closes == [10.0, 11.0]


def test_price_series_failure(registry):
    registry.coingecko.get_market_chart = MagicMock(side_effect=APIError("429", source="coingecko"))
    with pytest.raises(DataUnavailableError) as exc:
        registry.get_price_series("ETH")
    assert exc.value.source == "coingecko"


def test_btc_quote_falls_back(registry):
    registry.binance.get_24h_ticker = MagicMock(side_effect=APIError("451"))
    registry.coingecko.get_quote = MagicMock(return_value={"price": 1.0, "change_24h_pct": 2.0})
    assert registry.get_btc_quote()["price"] == 1.0


def test_btc_quote_falls_back_on_error_body(registry):
    registry.binance.client.get = MagicMock(return_value={"code": -1121, "msg": "Invalid symbol."})
    registry.coingecko.get_quote = MagicMock(return_value={"price": 1.0, "change_24h_pct": 2.0})
    assert registry.get_btc_quote() == {"price": 1.0, "change_24h_pct": 2.0}


def test_sentiment_inputs_degrade_individually(registry):
    registry.fear_greed.get_current = MagicMock(return_value={"value": 20, "label": "Fear"})
    registry.binance.get_funding_rate = MagicMock(side_effect=APIError("down"))
    registry.binance.get_long_short_ratio = MagicMock(return_value={
        "ratio": 2.0, "long_percent": 66.7, "short_percent": 33.3})
    registry.binance.get_open_interest_usd = MagicMock(side_effect=KeyError("sumOpenInterestValue"))

    inputs = registry.fetch_sentiment_inputs()
    assert inputs.fear_greed_value == 20
    assert inputs.funding_rate_pct is None
    assert inputs.long_short_ratio == 2.0
    assert inputs.open_interest_usd is None


def test_health_check(registry):
    registry.fear_greed.get_current = MagicMock(return_value={})
    registry.binance.get_funding_rate = MagicMock(side_effect=APIError("down"))
    registry.coingecko.get_quote = MagicMock(return_value={})
    checks = registry.health_check()
    assert checks["Fear & Greed"]["reachable"]
    assert not checks["Binance Futures"]["reachable"]
