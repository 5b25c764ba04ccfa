"""
Blended market sentiment.

Derived on demand, never stored:
  price_bullish  percent of assets with a positive change
  news_bullish   50 with no news, else (positive + total / 2) / total
  bullish        round(0.4 * price_bullish + 0.6 * news_bullish), clamped to 0-100

Rounding is half-up, matching the dashboard gauge.
"""
import math

from data.models import SentimentSummary

PRICE_WEIGHT = 0.4
NEWS_WEIGHT = 0.6
NEUTRAL_NEWS_SCORE = 50.0


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def price_bullish_pct(assets) -> float:
    if not assets:
        return 50.0
    up = sum(1 for a in assets if a.change > 0)
    return up / len(assets) * 100


def news_bullish_pct(news) -> float:
    if not news:
        return NEUTRAL_NEWS_SCORE
    positive = sum(1 for n in news if n.sentiment == "positive")
    return (positive + len(news) / 2) / len(news) * 100


def compute_sentiment(assets, news) -> SentimentSummary:
    price = price_bullish_pct(assets)
    news_score = news_bullish_pct(news)
    bullish = _round_half_up(price * PRICE_WEIGHT + news_score * NEWS_WEIGHT)
    bullish = max(0, min(100, bullish))
    return SentimentSummary(
        bullish=bullish,
        neutral=0,
        bearish=100 - bullish,
        price_bullish=round(price, 2),
        news_bullish=round(news_score, 2),
    )
