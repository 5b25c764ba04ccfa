"""
Domain records shared by the dashboard, the intelligence client and the proxy.

Fields coming back from the LLM service are not trusted: enum-like values are
coerced into their closed sets and missing pieces get safe placeholders, so the
presentation layer never sees undefined data.
"""
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

CATEGORIES = ("indices", "forex", "crypto", "sectors", "commodities", "bonds")

ACTIONS = ("BUY", "SELL", "HOLD")
SIGNAL_TYPES = ("CORRELATION", "MACRO", "VOLATILITY")
IMPACTS = ("high", "medium", "low")
SENTIMENTS = ("positive", "negative", "neutral")

DEFAULT_ACTION = "HOLD"
DEFAULT_SIGNAL_TYPE = "MACRO"
DEFAULT_SIGNAL_TITLE = "MARKET SIGNAL"
DEFAULT_IMPACT = "low"
DEFAULT_SENTIMENT = "neutral"
LIVE_LABEL = "LIVE"


def _coerce_choice(value, choices: tuple, default: str, upper: bool) -> str:
    if not isinstance(value, str):
        return default
    v = value.strip()
    v = v.upper() if upper else v.lower()
    return v if v in choices else default


class Asset(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    symbol: str
    name: str
    category: str
    price: float
    change: float
    rsi: float = 50.0
    macd: str = ""
    icon: str = ""

    @field_validator("category")
    @classmethod
    def _known_category(cls, v: str) -> str:
        if v not in CATEGORIES:
            raise ValueError(f"unknown category: {v}")
        return v

    def to_wire(self) -> dict:
        """Payload shape the intelligence service expects for one asset."""
        return {
            "id": self.id,
            "name": self.name,
            "symbol": self.symbol,
            "price": self.price,
            "change": self.change,
            "rsi": self.rsi,
            "macd": self.macd,
            "category": self.category,
        }


class Recommendation(BaseModel):
    model_config = ConfigDict(extra="ignore")

    asset: str
    action: str = DEFAULT_ACTION
    confidence: float = 0.0
    justification: str = ""
    signals: List[str] = Field(default_factory=list)

    @field_validator("asset", mode="before")
    @classmethod
    def _asset_key(cls, v):
        if not isinstance(v, str) or not v.strip():
            raise ValueError("recommendation needs an asset key")
        return v.strip()

    @field_validator("action", mode="before")
    @classmethod
    def _action(cls, v):
        return _coerce_choice(v, ACTIONS, DEFAULT_ACTION, upper=True)

    @field_validator("confidence", mode="before")
    @classmethod
    def _confidence(cls, v):
        try:
            c = float(v)
        except (TypeError, ValueError):
            return 0.0
        if c != c:
            return 0.0
        return max(0.0, min(100.0, c))

    @field_validator("justification", mode="before")
    @classmethod
    def _justification(cls, v):
        return v if isinstance(v, str) else ""

    @field_validator("signals", mode="before")
    @classmethod
    def _tags(cls, v):
        if not isinstance(v, list):
            return []
        return [str(t).strip() for t in v if isinstance(t, (str, int, float)) and str(t).strip()]


class MarketSignal(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: str = DEFAULT_SIGNAL_TYPE
    title: str = DEFAULT_SIGNAL_TITLE
    description: str = ""
    impact: str = DEFAULT_IMPACT

    @field_validator("type", mode="before")
    @classmethod
    def _type(cls, v):
        return _coerce_choice(v, SIGNAL_TYPES, DEFAULT_SIGNAL_TYPE, upper=True)

    @field_validator("title", mode="before")
    @classmethod
    def _title(cls, v):
        return v.strip() if isinstance(v, str) and v.strip() else DEFAULT_SIGNAL_TITLE

    @field_validator("description", mode="before")
    @classmethod
    def _description(cls, v):
        return v if isinstance(v, str) else ""

    @field_validator("impact", mode="before")
    @classmethod
    def _impact(cls, v):
        return _coerce_choice(v, IMPACTS, DEFAULT_IMPACT, upper=False)


class NewsItem(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    title: str
    uri: str
    source: str = ""
    time: str = LIVE_LABEL
    sentiment: str = DEFAULT_SENTIMENT
    image_url: Optional[str] = Field(default=None, alias="imageUrl")

    @field_validator("time", mode="before")
    @classmethod
    def _time(cls, v):
        return v.strip() if isinstance(v, str) and v.strip() else LIVE_LABEL

    @field_validator("sentiment", mode="before")
    @classmethod
    def _sentiment(cls, v):
        return _coerce_choice(v, SENTIMENTS, DEFAULT_SENTIMENT, upper=False)


class SentimentSummary(BaseModel):
    bullish: int
    neutral: int = 0
    bearish: int
    price_bullish: float
    news_bullish: float


class IntelligenceResult(BaseModel):
    """Outcome of one bulk analysis call. ``failure`` is None on success."""

    summary: str = ""
    signals: List[MarketSignal] = Field(default_factory=list)
    recommendations: List[Recommendation] = Field(default_factory=list)
    news: List[NewsItem] = Field(default_factory=list)
    quota_reached: bool = False
    failure: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.failure is None
