import json
import pytest
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from unittest.mock import MagicMock

import anthropic
import httpx

from agent.omni_agent import (
    OmniIntelligenceAgent,
    LLMQuotaExceeded,
    PARSE_ERROR,
    WEB_SEARCH_TOOL,
    sanitize_target_asset,
    format_market_lines,
)
from api_budget import DailyBudgetTracker
import agent.omni_agent as omni


@pytest.fixture
def fresh_budget(monkeypatch):
    budget = DailyBudgetTracker({"anthropic": 100})
    monkeypatch.setattr(omni, "daily_budget", budget)
    return budget


def _agent(content=None, exc=None):
    a = OmniIntelligenceAgent.__new__(OmniIntelligenceAgent)
    a.model = "test-model"
    a.timeout = 5.0
    a.client = MagicMock()
    if exc is not None:
        a.client.messages.create.side_effect = exc
    else:
        a.client.messages.create.return_value = {"content": content or []}
    return a


SCAN_JSON = {
    "summary": "Risk-on",
    "signals": [{"type": "MACRO", "title": "CPI", "description": "soft", "impact": "high"}],
    "recommendations": [{"asset": "BTC", "action": "BUY", "confidence": 80, "justification": "x", "signals": []}],
    "news": [{"title": "Fed holds", "uri": "https://reuters.com/fed", "sentiment": "neutral"}],
}


def test_extract_json_raw():
    assert _agent()._extract_json('{"a": 1}') == {"a": 1}


def test_extract_json_fenced_block():
    text = 'Here is the analysis:\n```json\n{"summary": "ok"}\n```\nDone.'
    assert _agent()._extract_json(text) == {"summary": "ok"}


def test_extract_json_brace_balanced_with_prose():
    text = 'Sure! {"summary": "braces } inside strings", "n": {"x": 1}} trailing words'
    assert _agent()._extract_json(text) == {"summary": "braces } inside strings", "n": {"x": 1}}


def test_extract_json_failure_is_error_dict():
    assert _agent()._extract_json("no json here") == {"error": PARSE_ERROR}
    assert _agent()._extract_json("") == {"error": PARSE_ERROR}
    assert _agent()._extract_json("[1, 2]") == {"error": PARSE_ERROR}


def test_extract_text_joins_cited_fragments():
    response = {"content": [
        {"type": "text", "text": '{"summary": '},
        {"type": "server_tool_use", "name": "web_search"},
        {"type": "text", "text": '"ok"}'},
    ]}
    assert _agent()._extract_text(response) == '{"summary": "ok"}'


def test_extract_grounding_from_search_results_and_citations():
    response = {"content": [
        {"type": "web_search_tool_result", "content": [
            {"type": "web_search_result", "url": "https://www.bloomberg.com/a", "title": "Stocks rally"},
            {"type": "web_search_result", "url": "https://ft.com/b"},
        ]},
        {"type": "web_search_tool_result", "content": {"type": "web_search_tool_result_error"}},
        {"type": "text", "text": "x", "citations": [{"url": "https://cnbc.com/c", "title": "Oil dips"}]},
    ]}
    items = _agent()._extract_grounding(response)
    assert [i["uri"] for i in items] == ["https://www.bloomberg.com/a", "https://ft.com/b", "https://cnbc.com/c"]
    assert items[0]["title"] == "Stocks rally"
    assert items[1]["title"] == "Market Flash"


def test_sanitize_target_asset_bounds_fields():
    clean = sanitize_target_asset({
        "name": "A" * 80,
        "symbol": "btc-usd; DROP\n",
        "price": "not a number",
        "rsi": 0,
        "macd": "+" * 40,
    })
    assert len(clean["name"]) == 50
    assert clean["symbol"] == "BTCUSDD"
    assert clean["price"] == 0.0
    assert clean["change"] == 0.0
    assert clean["rsi"] == 50.0
    assert len(clean["macd"]) == 20


def test_sanitize_target_asset_defaults():
    clean = sanitize_target_asset({})
    assert clean["name"] == "Unknown Asset"
    assert clean["symbol"] == "UNKNOWN"
    assert sanitize_target_asset({"symbol": "!!!"})["symbol"] == "UNKNOWN"


def test_format_market_lines_skips_non_dicts():
    lines = format_market_lines([{"name": "Bitcoin", "symbol": "BTC", "price": 1, "change": 2, "rsi": 70}, "junk"])
    assert lines == "Bitcoin (BTC): Price 1, Change 2%, RSI 70"


@pytest.mark.asyncio
async def test_scan_merges_model_news_with_grounding(fresh_budget):
    content = [
        {"type": "web_search_tool_result", "content": [
            {"type": "web_search_result", "url": "https://reuters.com/fed", "title": "dup"},
            {"type": "web_search_result", "url": "https://wsj.com/oil", "title": "Oil"},
        ]},
        {"type": "text", "text": json.dumps(SCAN_JSON)},
    ]
    a = _agent(content)
    result = await a.scan_market([{"name": "Bitcoin", "symbol": "BTC", "price": 1, "change": 0, "rsi": 50}])

    assert result["summary"] == "Risk-on"
    assert [n["uri"] for n in result["news"]] == ["https://reuters.com/fed", "https://wsj.com/oil"]
    assert result["news"][0]["title"] == "Fed holds"

    kwargs = a.client.messages.create.call_args.kwargs
    assert kwargs["tools"] == [WEB_SEARCH_TOOL]
    assert "Bitcoin (BTC)" in kwargs["messages"][0]["content"]
    assert fresh_budget.status()["providers"]["anthropic"]["used"] == 1


@pytest.mark.asyncio
async def test_scan_parse_failure_returns_error_only(fresh_budget):
    a = _agent([{"type": "text", "text": "I could not find anything."}])
    assert await a.scan_market([]) == {"error": PARSE_ERROR}


@pytest.mark.asyncio
async def test_deep_dive_prompt_carries_sanitized_asset(fresh_budget):
    verdict = {"recommendation": {"asset": "BTC", "action": "BUY", "confidence": 88}}
    a = _agent([{"type": "text", "text": "```json\n" + json.dumps(verdict) + "\n```"}])
    target = sanitize_target_asset({"name": "Bitcoin", "symbol": "BTC", "price": 96854.2, "change": 2.45, "rsi": 72})

    result = await a.deep_dive(target)

    assert result == verdict
    prompt = a.client.messages.create.call_args.kwargs["messages"][0]["content"]
    assert "<MARKET_DATA>" in prompt
    assert "BTC" in prompt


@pytest.mark.asyncio
async def test_vendor_rate_limit_becomes_quota(fresh_budget):
    response = httpx.Response(429, request=httpx.Request("POST", "https://api.anthropic.com/v1/messages"))
    a = _agent(exc=anthropic.RateLimitError("rate limited", response=response, body=None))
    with pytest.raises(LLMQuotaExceeded):
        await a.scan_market([])


@pytest.mark.asyncio
async def test_exhausted_budget_refuses_before_calling(monkeypatch):
    monkeypatch.setattr(omni, "daily_budget", DailyBudgetTracker({"anthropic": 0}))
    a = _agent([{"type": "text", "text": "{}"}])
    with pytest.raises(LLMQuotaExceeded):
        await a.scan_market([])
    a.client.messages.create.assert_not_called()
