"""
Match recommendations to assets.

The LLM keys recommendations loosely: by ticker, display name or internal id,
in any case. Keys are compared after trim + lowercase, trying the asset's
symbol first, then its name, then its id.
"""
from typing import List, Optional

from data.models import Asset, Recommendation


def normalize_key(value) -> str:
    if not isinstance(value, str):
        return ""
    return value.strip().lower()


def asset_keys(asset: Asset) -> List[str]:
    """Lookup keys for an asset in precedence order (symbol, name, id)."""
    keys = []
    for field in (asset.symbol, asset.name, asset.id):
        k = normalize_key(field)
        if k and k not in keys:
            keys.append(k)
    return keys


def matches_asset(recommendation: Recommendation, asset: Asset) -> bool:
    return normalize_key(recommendation.asset) in asset_keys(asset)


def find_recommendation(recommendations: List[Recommendation], asset: Asset) -> Optional[Recommendation]:
    for key in asset_keys(asset):
        for rec in recommendations:
            if normalize_key(rec.asset) == key:
                return rec
    return None


def recommendations_for_asset(recommendations: List[Recommendation], asset: Asset) -> List[Recommendation]:
    return [r for r in recommendations if matches_asset(r, asset)]


def dedupe_by_key(recommendations: List[Recommendation]) -> List[Recommendation]:
    """One record per normalized key; the last one wins, keeping first position."""
    order: List[str] = []
    latest = {}
    for rec in recommendations:
        k = normalize_key(rec.asset)
        if not k:
            continue
        if k not in latest:
            order.append(k)
        latest[k] = rec
    return [latest[k] for k in order]
