"""
Client for the market intelligence service.

Two operations:
  analyze_market(assets)  bulk scan -> IntelligenceResult
  analyze_asset(asset)    deep dive -> Recommendation | None

Neither raises for transient problems. Timeouts, quota exhaustion, HTTP and
network failures and malformed payloads all come back as an empty, degraded
result whose summary says what went wrong. The one exception is
MissingCredentialsError: a setup problem the caller has to surface.
"""
import asyncio
from typing import List, Optional, Tuple

import httpx
from pydantic import ValidationError

from data.models import Asset, IntelligenceResult, MarketSignal, Recommendation
from data.news_feed import merge_news

TIMEOUT = "timeout"
QUOTA_EXCEEDED = "quota_exceeded"
SERVICE_UNAVAILABLE = "service_unavailable"
MALFORMED_RESPONSE = "malformed_response"
MISSING_CREDENTIALS = "missing_credentials"

QUOTA_SUMMARY = "Search quota reached. Switching to local technical analysis mode."
SERVICE_SUMMARY = "Could not connect to the intelligence engine."
TIMEOUT_SUMMARY = "The intelligence engine timed out after {seconds:.0f}s. Showing the last successful scan."

_QUOTA_MARKERS = ("429", "quota", "resource_exhausted", "rate limit", "rate_limit")
_RESULT_KEYS = ("summary", "signals", "recommendations", "news")


class MissingCredentialsError(Exception):
    """The intelligence service rejected or lacks the credentials it needs."""

    kind = MISSING_CREDENTIALS


def _looks_like_quota(text: Optional[str]) -> bool:
    if not text:
        return False
    lowered = text.lower()
    return any(m in lowered for m in _QUOTA_MARKERS)


def _degraded(kind: str, summary: str) -> IntelligenceResult:
    return IntelligenceResult(
        summary=summary,
        quota_reached=kind == QUOTA_EXCEEDED,
        failure=kind,
    )


def normalize_signals(raw) -> List[MarketSignal]:
    if not isinstance(raw, list):
        return []
    return [MarketSignal.model_validate(s) for s in raw if isinstance(s, dict)]


def normalize_recommendation(raw) -> Optional[Recommendation]:
    if not isinstance(raw, dict):
        return None
    try:
        return Recommendation.model_validate(raw)
    except ValidationError:
        return None


def normalize_recommendations(raw) -> List[Recommendation]:
    if not isinstance(raw, list):
        return []
    recs = [normalize_recommendation(r) for r in raw]
    return [r for r in recs if r is not None]


def normalize_result(body: dict) -> IntelligenceResult:
    summary = body.get("summary")
    quota = body.get("quotaReached") is True
    return IntelligenceResult(
        summary=summary.strip() if isinstance(summary, str) else "",
        signals=normalize_signals(body.get("signals")),
        recommendations=normalize_recommendations(body.get("recommendations")),
        news=merge_news(body.get("news"), body.get("grounding"), body.get("citations")),
        quota_reached=quota,
        failure=QUOTA_EXCEEDED if quota else None,
    )


class IntelligenceClient:
    def __init__(self, url: str, api_key: str = "", timeout: float = 30.0):
        self.url = url
        self.api_key = api_key
        self.timeout = timeout
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                headers={"Content-Type": "application/json", "Accept": "application/json"},
                timeout=self.timeout,
            )
        return self._client

    async def close(self):
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()

    async def _post(self, payload: dict):
        headers = {"X-API-Key": self.api_key} if self.api_key else {}
        client = await self._get_client()
        return await asyncio.wait_for(
            client.post(self.url, json=payload, headers=headers),
            timeout=self.timeout,
        )

    def _read_body(self, resp) -> Tuple[Optional[dict], Optional[Tuple[str, str]]]:
        """Return ``(body, None)`` on success or ``(None, (kind, summary))``."""
        status = resp.status_code
        try:
            body = resp.json()
        except ValueError:
            body = None

        error_text = None
        if isinstance(body, dict) and isinstance(body.get("error"), str):
            error_text = body["error"].strip() or None

        if status in (401, 403) or error_text == "API_KEY_MISSING":
            raise MissingCredentialsError(error_text or f"Intelligence service returned {status}")

        if status == 429 or (status >= 400 and _looks_like_quota(error_text)):
            return None, (QUOTA_EXCEEDED, error_text or QUOTA_SUMMARY)

        if not 200 <= status < 300:
            print(f"[INTEL] HTTP {status}: {error_text or '<no error field>'}")
            return None, (SERVICE_UNAVAILABLE, error_text or SERVICE_SUMMARY)

        if not isinstance(body, dict):
            print(f"[INTEL] Non-object response body ({type(body).__name__})")
            return None, (MALFORMED_RESPONSE, SERVICE_SUMMARY)

        return body, None

    async def analyze_market(self, assets: List[Asset]) -> IntelligenceResult:
        payload = {"marketData": [a.to_wire() for a in assets]}
        try:
            resp = await self._post(payload)
        except (asyncio.TimeoutError, httpx.TimeoutException):
            print(f"[INTEL] Bulk analysis timed out after {self.timeout}s")
            return _degraded(TIMEOUT, TIMEOUT_SUMMARY.format(seconds=self.timeout))
        except Exception as e:
            print(f"[INTEL] Bulk analysis request failed: {e}")
            return _degraded(SERVICE_UNAVAILABLE, SERVICE_SUMMARY)

        body, failure = self._read_body(resp)
        if failure:
            kind, summary = failure
            print(f"[INTEL] Bulk analysis degraded: {kind}")
            return _degraded(kind, summary)

        if body.get("error") and not any(k in body for k in _RESULT_KEYS):
            print(f"[INTEL] Service reported: {body.get('error')}")
            if _looks_like_quota(str(body.get("error"))):
                return _degraded(QUOTA_EXCEEDED, str(body["error"]))
            return _degraded(MALFORMED_RESPONSE, SERVICE_SUMMARY)

        result = normalize_result(body)
        print(
            f"[INTEL] Bulk analysis ok: {len(result.recommendations)} recs, "
            f"{len(result.signals)} signals, {len(result.news)} news, quota={result.quota_reached}"
        )
        return result

    async def analyze_asset(self, asset: Asset) -> Optional[Recommendation]:
        payload = {"targetAsset": asset.to_wire()}
        try:
            resp = await self._post(payload)
        except (asyncio.TimeoutError, httpx.TimeoutException):
            print(f"[INTEL] Deep dive {asset.symbol} timed out after {self.timeout}s")
            return None
        except Exception as e:
            print(f"[INTEL] Deep dive {asset.symbol} request failed: {e}")
            return None

        body, failure = self._read_body(resp)
        if failure:
            print(f"[INTEL] Deep dive {asset.symbol} degraded: {failure[0]}")
            return None

        rec = normalize_recommendation(body.get("recommendation"))
        if rec is None:
            print(f"[INTEL] Deep dive {asset.symbol}: no usable recommendation")
        return rec
