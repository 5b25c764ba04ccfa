import asyncio
import pytest
import os
import sys
import time

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import httpx

from data.intelligence_client import (
    IntelligenceClient,
    MissingCredentialsError,
    TIMEOUT,
    QUOTA_EXCEEDED,
    SERVICE_UNAVAILABLE,
    MALFORMED_RESPONSE,
    QUOTA_SUMMARY,
    SERVICE_SUMMARY,
)
from data.models import Asset


BTC = Asset(id="btc", symbol="BTC", name="Bitcoin", category="crypto",
            price=96854.20, change=2.45, rsi=72, macd="+125.3")
ETH = Asset(id="eth", symbol="ETH", name="Ethereum", category="crypto",
            price=3582.45, change=1.85, rsi=68, macd="+84.2")


class MockResponse:
    def __init__(self, json_data, status_code=200):
        self._json = json_data
        self.status_code = status_code

    def json(self):
        if isinstance(self._json, Exception):
            raise self._json
        return self._json


class MockClient:
    def __init__(self, response=None, delay=0.0, exc=None):
        self.response = response
        self.delay = delay
        self.exc = exc
        self.requests = []
        self.is_closed = False

    async def post(self, url, json=None, headers=None, **kwargs):
        self.requests.append({"url": url, "json": json, "headers": headers or {}})
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.exc is not None:
            raise self.exc
        return self.response

    async def aclose(self):
        self.is_closed = True


def _client(mock, timeout=30.0, api_key=""):
    c = IntelligenceClient("http://intel.test/api/omni-intelligence", api_key=api_key, timeout=timeout)
    c._client = mock
    return c


FULL_BODY = {
    "summary": "Risk-on tone, crypto leading.",
    "signals": [
        {"type": "MACRO", "title": "FED PIVOT", "description": "Cuts priced in", "impact": "high"},
        {"type": "weird", "impact": "EXTREME"},
    ],
    "recommendations": [
        {"asset": "BTC", "action": "BUY", "confidence": 88, "justification": "Momentum", "signals": ["RSI_BULL"]},
        {"asset": "ETH", "action": "accumulate", "confidence": "lots"},
        {"action": "SELL", "confidence": 60},
    ],
    "news": [
        {"title": "Bitcoin breaks out", "uri": "https://www.coindesk.com/a", "sentiment": "positive"},
        {"title": "Duplicate headline", "uri": "https://www.coindesk.com/a", "sentiment": "negative"},
        {"title": "No link"},
    ],
    "grounding": [
        {"title": "Fed minutes", "uri": "https://reuters.com/fed"},
    ],
    "quotaReached": False,
}


@pytest.mark.asyncio
async def test_bulk_payload_shape():
    mock = MockClient(MockResponse(FULL_BODY))
    client = _client(mock, api_key="secret")
    await client.analyze_market([BTC, ETH])

    sent = mock.requests[0]
    assert list(sent["json"].keys()) == ["marketData"]
    first = sent["json"]["marketData"][0]
    for key in ("name", "symbol", "price", "change", "rsi"):
        assert key in first
    assert sent["headers"]["X-API-Key"] == "secret"


@pytest.mark.asyncio
async def test_bulk_normalizes_response():
    client = _client(MockClient(MockResponse(FULL_BODY)))
    result = await client.analyze_market([BTC, ETH])

    assert result.ok
    assert result.summary == "Risk-on tone, crypto leading."
    assert result.quota_reached is False

    assert len(result.signals) == 2
    fallback = result.signals[1]
    assert fallback.type == "MACRO"
    assert fallback.title == "MARKET SIGNAL"
    assert fallback.description == ""
    assert fallback.impact == "low"

    assert [r.asset for r in result.recommendations] == ["BTC", "ETH"]
    eth = result.recommendations[1]
    assert eth.action == "HOLD"
    assert eth.confidence == 0.0
    assert result.recommendations[0].signals == ["RSI_BULL"]


@pytest.mark.asyncio
async def test_news_dedup_and_defaults():
    client = _client(MockClient(MockResponse(FULL_BODY)))
    result = await client.analyze_market([BTC])

    uris = [n.uri for n in result.news]
    assert uris == ["https://www.coindesk.com/a", "https://reuters.com/fed"]
    first = result.news[0]
    assert first.title == "Bitcoin breaks out"
    assert first.source == "coindesk.com"
    assert first.time == "LIVE"
    assert first.sentiment == "positive"
    assert result.news[1].sentiment == "neutral"


@pytest.mark.asyncio
async def test_news_capped_at_five():
    news = [{"title": f"n{i}", "uri": f"https://site{i}.com/x"} for i in range(9)]
    client = _client(MockClient(MockResponse({"summary": "s", "news": news})))
    result = await client.analyze_market([BTC])
    assert len(result.news) == 5
    assert result.news[0].uri == "https://site0.com/x"


@pytest.mark.asyncio
async def test_quota_flag_in_successful_body():
    body = {"summary": "", "signals": [], "recommendations": [], "news": [], "quotaReached": True}
    client = _client(MockClient(MockResponse(body)))
    result = await client.analyze_market([BTC])
    assert result.quota_reached is True
    assert result.failure == QUOTA_EXCEEDED
    assert result.summary == ""


@pytest.mark.asyncio
async def test_http_429_is_quota():
    client = _client(MockClient(MockResponse({"error": "Quota exhausted for today"}, 429)))
    result = await client.analyze_market([BTC])
    assert result.quota_reached is True
    assert result.failure == QUOTA_EXCEEDED
    assert result.summary == "Quota exhausted for today"
    assert result.recommendations == [] and result.signals == [] and result.news == []


@pytest.mark.asyncio
async def test_http_429_without_body_uses_default_summary():
    client = _client(MockClient(MockResponse(ValueError("no json"), 429)))
    result = await client.analyze_market([BTC])
    assert result.summary == QUOTA_SUMMARY


@pytest.mark.asyncio
async def test_http_500_surfaces_error_text():
    client = _client(MockClient(MockResponse({"error": "Service unavailable. Please try again later."}, 500)))
    result = await client.analyze_market([BTC])
    assert result.failure == SERVICE_UNAVAILABLE
    assert result.quota_reached is False
    assert result.summary == "Service unavailable. Please try again later."


@pytest.mark.asyncio
async def test_network_error_degrades():
    client = _client(MockClient(exc=httpx.ConnectError("refused")))
    result = await client.analyze_market([BTC])
    assert result.failure == SERVICE_UNAVAILABLE
    assert result.summary == SERVICE_SUMMARY


@pytest.mark.asyncio
async def test_malformed_json_degrades():
    client = _client(MockClient(MockResponse(ValueError("Expecting value"))))
    result = await client.analyze_market([BTC])
    assert result.failure == MALFORMED_RESPONSE
    assert result.summary == SERVICE_SUMMARY


@pytest.mark.asyncio
async def test_non_object_body_degrades():
    client = _client(MockClient(MockResponse(["not", "an", "object"])))
    result = await client.analyze_market([BTC])
    assert result.failure == MALFORMED_RESPONSE


@pytest.mark.asyncio
async def test_parse_error_body_degrades():
    client = _client(MockClient(MockResponse({"error": "Failed to parse AI response"})))
    result = await client.analyze_market([BTC])
    assert result.failure == MALFORMED_RESPONSE
    assert result.summary == SERVICE_SUMMARY


@pytest.mark.asyncio
async def test_timeout_resolves_within_margin():
    client = _client(MockClient(MockResponse(FULL_BODY), delay=3600), timeout=0.1)
    start = time.monotonic()
    result = await client.analyze_market([BTC])
    elapsed = time.monotonic() - start

    assert result.failure == TIMEOUT
    assert "timed out" in result.summary
    assert elapsed < 0.1 + 1.0


@pytest.mark.asyncio
async def test_httpx_timeout_is_timeout():
    client = _client(MockClient(exc=httpx.ReadTimeout("slow")))
    result = await client.analyze_market([BTC])
    assert result.failure == TIMEOUT


@pytest.mark.asyncio
async def test_missing_credentials_propagates():
    client = _client(MockClient(MockResponse({"error": "API_KEY_MISSING"}, 503)))
    with pytest.raises(MissingCredentialsError):
        await client.analyze_market([BTC])


@pytest.mark.asyncio
async def test_unauthorized_propagates_for_deep_dive():
    client = _client(MockClient(MockResponse({"detail": "Invalid API key."}, 403)))
    with pytest.raises(MissingCredentialsError):
        await client.analyze_asset(BTC)


@pytest.mark.asyncio
async def test_deep_dive_returns_recommendation():
    body = {"recommendation": {"asset": "BTC", "action": "BUY", "confidence": 88,
                               "justification": "...", "signals": ["RSI_BULL"]}}
    mock = MockClient(MockResponse(body))
    client = _client(mock)
    rec = await client.analyze_asset(BTC)

    assert mock.requests[0]["json"]["targetAsset"]["symbol"] == "BTC"
    assert rec.asset == "BTC"
    assert rec.action == "BUY"
    assert rec.confidence == 88
    assert rec.signals == ["RSI_BULL"]


@pytest.mark.asyncio
async def test_deep_dive_failures_return_none():
    assert await _client(MockClient(MockResponse({"error": "boom"}, 500))).analyze_asset(BTC) is None
    assert await _client(MockClient(MockResponse({"error": "Failed to parse AI response"}))).analyze_asset(BTC) is None
    assert await _client(MockClient(MockResponse({}, 200), delay=3600), timeout=0.05).analyze_asset(BTC) is None


@pytest.mark.asyncio
async def test_close_closes_http_client():
    mock = MockClient(MockResponse(FULL_BODY))
    client = _client(mock)
    await client.close()
    assert mock.is_closed
