"""
News list normalization shared by the intelligence proxy and client.

Items can come from two places: news the model lists explicitly and
grounding links from its web searches. Both are merged in that order,
deduplicated by URI (first occurrence wins) and capped.
"""
from typing import Iterable, List, Optional
from urllib.parse import urlparse

from pydantic import ValidationError

from data.models import NewsItem, LIVE_LABEL

MAX_NEWS_ITEMS = 5
GROUNDING_TITLE = "Market Flash"


def source_from_uri(uri: str) -> str:
    try:
        host = urlparse(uri).hostname or ""
    except ValueError:
        return ""
    return host[4:] if host.startswith("www.") else host


def _valid_uri(uri) -> bool:
    if not isinstance(uri, str) or not uri.strip():
        return False
    parsed = urlparse(uri.strip())
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def to_news_item(raw) -> Optional[NewsItem]:
    """Coerce one raw dict into a NewsItem, or None if it has no usable URI."""
    if isinstance(raw, NewsItem):
        return raw
    if not isinstance(raw, dict):
        return None
    uri = raw.get("uri") or raw.get("url")
    if not _valid_uri(uri):
        return None
    uri = uri.strip()
    title = raw.get("title")
    if not isinstance(title, str) or not title.strip():
        title = GROUNDING_TITLE
    source = raw.get("source")
    if not isinstance(source, str) or not source.strip():
        source = source_from_uri(uri)
    try:
        return NewsItem(
            title=title.strip(),
            uri=uri,
            source=source,
            time=raw.get("time"),
            sentiment=raw.get("sentiment"),
            imageUrl=raw.get("imageUrl") or raw.get("image_url"),
        )
    except ValidationError as e:
        print(f"[NEWS] Dropping malformed item {uri}: {e.errors()[:1]}")
        return None


def grounding_item(uri: str, title: Optional[str] = None) -> dict:
    return {
        "title": title or GROUNDING_TITLE,
        "uri": uri,
        "source": source_from_uri(uri),
        "time": LIVE_LABEL,
        "sentiment": "neutral",
    }


def merge_news(*sources: Iterable, limit: int = MAX_NEWS_ITEMS) -> List[NewsItem]:
    seen = set()
    merged: List[NewsItem] = []
    for items in sources:
        for raw in items or []:
            item = to_news_item(raw)
            if item is None or item.uri in seen:
                continue
            seen.add(item.uri)
            merged.append(item)
            if len(merged) >= limit:
                return merged
    return merged
