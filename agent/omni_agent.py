import asyncio
import json
import re

import anthropic

from agent.prompts import (
    SYSTEM_PROMPT,
    MARKET_SCAN_PROMPT,
    DEEP_DIVE_PROMPT,
    FINTWIT_HANDLES,
    TRUSTED_SOURCES,
)
from api_budget import daily_budget
from data.news_feed import grounding_item, merge_news

PARSE_ERROR = "Failed to parse AI response"
QUOTA_MESSAGE = "Search quota reached. Switching to local technical analysis mode."

WEB_SEARCH_TOOL = {
    "type": "web_search_20250305",
    "name": "web_search",
    "max_uses": 5,
}


class LLMQuotaExceeded(Exception):
    """The LLM vendor or the local daily budget refused the call."""


def _field(obj, key, default=None):
    if isinstance(obj, dict):
        return obj.get(key, default)
    return getattr(obj, key, default)


def _as_float(value, default: float) -> float:
    try:
        f = float(value)
    except (TypeError, ValueError):
        return default
    return f if f == f else default


def sanitize_target_asset(raw: dict) -> dict:
    """Bound and clean a client-supplied asset before it reaches a prompt."""
    symbol = re.sub(r"[^A-Z0-9]", "", str(raw.get("symbol") or "UNKNOWN")[:10].upper())
    return {
        "name": str(raw.get("name") or "Unknown Asset")[:50],
        "symbol": symbol or "UNKNOWN",
        "price": _as_float(raw.get("price"), 0.0),
        "change": _as_float(raw.get("change"), 0.0),
        "rsi": _as_float(raw.get("rsi"), 50.0) or 50.0,
        "macd": str(raw.get("macd") or "")[:20],
    }


def format_market_lines(market_data: list) -> str:
    lines = []
    for m in market_data:
        if not isinstance(m, dict):
            continue
        lines.append(
            f"{m.get('name', '?')} ({m.get('symbol', '?')}): "
            f"Price {m.get('price', '?')}, Change {m.get('change', '?')}%, RSI {m.get('rsi', '?')}"
        )
    return "\n".join(lines)


class OmniIntelligenceAgent:
    def __init__(self, api_key: str, model: str = "claude-sonnet-4-20250514", timeout: float = 25.0):
        self.client = anthropic.Anthropic(api_key=api_key, timeout=120.0)
        self.model = model
        self.timeout = timeout

    async def scan_market(self, market_data: list) -> dict:
        """Global scan over the whole snapshot."""
        prompt = MARKET_SCAN_PROMPT.format(
            data_summary=format_market_lines(market_data),
            sources=", ".join(TRUSTED_SOURCES),
            handles=", ".join(FINTWIT_HANDLES),
        )
        text, grounding = await self._call_llm(prompt, max_tokens=4096)
        intelligence = self._extract_json(text)
        if "error" in intelligence:
            return intelligence

        news = merge_news(intelligence.get("news") or [], grounding)
        intelligence["news"] = [n.model_dump(by_alias=True, exclude_none=True) for n in news]
        print(f"[PROXY] Scan: {len(intelligence.get('recommendations') or [])} recs, "
              f"{len(news)} news ({len(grounding)} grounding links)")
        return intelligence

    async def deep_dive(self, target_asset: dict) -> dict:
        """Single-asset committee verdict. Expects an already sanitized asset."""
        print(f"[PROXY] Analyzing target: {target_asset['symbol']}")
        prompt = DEEP_DIVE_PROMPT.format(**target_asset)
        text, _ = await self._call_llm(prompt, max_tokens=2048)
        return self._extract_json(text)

    async def _call_llm(self, prompt: str, max_tokens: int):
        if not daily_budget.spend("anthropic"):
            raise LLMQuotaExceeded("Daily LLM budget exhausted")
        try:
            response = await asyncio.wait_for(
                asyncio.to_thread(
                    self.client.messages.create,
                    model=self.model,
                    max_tokens=max_tokens,
                    system=SYSTEM_PROMPT,
                    tools=[WEB_SEARCH_TOOL],
                    messages=[{"role": "user", "content": prompt}],
                ),
                timeout=self.timeout,
            )
        except anthropic.RateLimitError as e:
            raise LLMQuotaExceeded(str(e)) from e
        return self._extract_text(response), self._extract_grounding(response)

    def _extract_text(self, response) -> str:
        """Concatenate the model's text blocks; citations split one answer into several."""
        texts = []
        for block in _field(response, "content", None) or []:
            if _field(block, "type") == "text":
                texts.append(_field(block, "text", "") or "")
        return "".join(texts).strip()

    def _extract_grounding(self, response) -> list:
        """Web search results and citations, as news dicts in answer order."""
        items = []
        for block in _field(response, "content", None) or []:
            btype = _field(block, "type")
            if btype == "web_search_tool_result":
                results = _field(block, "content", None)
                if not isinstance(results, list):
                    continue
                for r in results:
                    url = _field(r, "url")
                    if url and _field(r, "type", "web_search_result") == "web_search_result":
                        items.append(grounding_item(url, _field(r, "title")))
            elif btype == "text":
                for c in _field(block, "citations", None) or []:
                    url = _field(c, "url")
                    if url:
                        items.append(grounding_item(url, _field(c, "title")))
        return items

    def _extract_json(self, text: str) -> dict:
        """
        Parse the model's answer into a dict.
        Tries the raw text, then a ```json``` block, then the outermost
        brace-balanced object. Anything else becomes an error dict.
        """
        text = (text or "").strip()
        if not text:
            return {"error": PARSE_ERROR}

        if text.startswith("{"):
            try:
                data = json.loads(text)
                if isinstance(data, dict):
                    return data
            except json.JSONDecodeError:
                pass

        block = re.search(r"```(?:json)?\s*(.*?)\s*```", text, re.DOTALL)
        if block:
            try:
                data = json.loads(block.group(1))
                if isinstance(data, dict):
                    return data
            except json.JSONDecodeError as e:
                print(f"[PROXY] Code block JSON failed: {e}")

        first_brace = text.find("{")
        if first_brace != -1:
            depth = 0
            in_string = False
            escape_next = False
            for i in range(first_brace, len(text)):
                c = text[i]
                if escape_next:
                    escape_next = False
                    continue
                if c == "\\" and in_string:
                    escape_next = True
                    continue
                if c == '"':
                    in_string = not in_string
                    continue
                if in_string:
                    continue
                if c == "{":
                    depth += 1
                elif c == "}":
                    depth -= 1
                    if depth == 0:
                        try:
                            data = json.loads(text[first_brace:i + 1])
                            if isinstance(data, dict):
                                return data
                        except json.JSONDecodeError:
                            pass
                        break

        print(f"[PROXY] Could not parse model output ({len(text)} chars): {text[:200]}")
        return {"error": PARSE_ERROR}
