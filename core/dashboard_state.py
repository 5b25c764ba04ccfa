"""
Single shared state container for the dashboard.

Writers are the analysis orchestrator, the market store tick and the scheduler
clock. Everything else reads through accessors or snapshots, or subscribes to
the events published after each write:

  markets          store tick replaced the asset mapping
  analysis         summary / signals / recommendations merged
  news             news list replaced (image-less phase)
  news_images      images patched into the current news list
  recommendation   one recommendation upserted by a deep dive
  status           busy / quota / config-error flags changed
  clock            cosmetic clock tick
"""
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from data.models import Asset, MarketSignal, NewsItem, Recommendation
from core.sentiment_engine import compute_sentiment

Listener = Callable[[str, "DashboardState"], None]


class DashboardState:
    def __init__(
        self,
        markets: Dict[str, List[Asset]],
        recommendations: Optional[List[Recommendation]] = None,
        summary: str = "",
    ):
        self._markets: Dict[str, List[Asset]] = {cat: list(assets) for cat, assets in markets.items()}
        self._recommendations: List[Recommendation] = list(recommendations or [])
        self._signals: List[MarketSignal] = []
        self._news: List[NewsItem] = []
        self._news_generation = 0
        self._summary = summary
        self._busy = 0
        self._quota_limited = False
        self._config_error: Optional[str] = None
        self._clock = datetime.now(timezone.utc)
        self._last_cycle_at: Optional[datetime] = None
        self._listeners: List[Listener] = []

    # ---------- subscription ----------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener(event, state)``. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _publish(self, event: str):
        for listener in list(self._listeners):
            try:
                listener(event, self)
            except Exception as e:
                print(f"[STATE] listener failed on '{event}': {e}")

    # ---------- readers ----------

    @property
    def markets(self) -> Dict[str, List[Asset]]:
        return {cat: list(assets) for cat, assets in self._markets.items()}

    def assets(self) -> List[Asset]:
        return [a for assets in self._markets.values() for a in assets]

    def get_asset(self, asset_id: str) -> Optional[Asset]:
        for asset in self.assets():
            if asset.id == asset_id:
                return asset
        return None

    @property
    def recommendations(self) -> List[Recommendation]:
        return list(self._recommendations)

    @property
    def signals(self) -> List[MarketSignal]:
        return list(self._signals)

    @property
    def news(self) -> List[NewsItem]:
        return list(self._news)

    @property
    def news_generation(self) -> int:
        return self._news_generation

    @property
    def summary(self) -> str:
        return self._summary

    @property
    def is_analyzing(self) -> bool:
        return self._busy > 0

    @property
    def quota_limited(self) -> bool:
        return self._quota_limited

    @property
    def config_error(self) -> Optional[str]:
        return self._config_error

    @property
    def clock(self) -> datetime:
        return self._clock

    def sentiment(self):
        return compute_sentiment(self.assets(), self._news)

    def snapshot(self) -> dict:
        return {
            "markets": {
                cat: [a.model_dump() for a in assets]
                for cat, assets in self._markets.items()
            },
            "recommendations": [r.model_dump() for r in self._recommendations],
            "signals": [s.model_dump() for s in self._signals],
            "news": [n.model_dump() for n in self._news],
            "summary": self._summary,
            "sentiment": self.sentiment().model_dump(),
            "is_analyzing": self.is_analyzing,
            "quota_limited": self._quota_limited,
            "mode": "economy" if self._quota_limited else "active",
            "config_error": self._config_error,
            "clock": self._clock.isoformat(),
            "last_cycle_at": self._last_cycle_at.isoformat() if self._last_cycle_at else None,
        }

    # ---------- writers ----------

    def replace_markets(self, markets: Dict[str, List[Asset]]):
        self._markets = {cat: list(assets) for cat, assets in markets.items()}
        self._publish("markets")

    def apply_analysis(
        self,
        summary: Optional[str] = None,
        signals: Optional[List[MarketSignal]] = None,
        recommendations: Optional[List[Recommendation]] = None,
    ):
        """Replace whichever parts are given; None leaves a part untouched."""
        if summary is not None:
            self._summary = summary
        if signals is not None:
            self._signals = list(signals)
        if recommendations is not None:
            self._recommendations = list(recommendations)
        self._last_cycle_at = datetime.now(timezone.utc)
        self._publish("analysis")

    def replace_news(self, news: List[NewsItem]) -> int:
        """Set the image-less news list. Returns its generation number."""
        self._news = list(news)
        self._news_generation += 1
        self._publish("news")
        return self._news_generation

    def patch_news_images(self, generation: int, images: Dict[str, str]) -> int:
        """
        Attach images by URI to the news list of ``generation``.
        A newer news list wins: stale patches are dropped. Returns the number
        of items patched.
        """
        if generation != self._news_generation or not images:
            return 0
        patched = 0
        updated = []
        for item in self._news:
            url = images.get(item.uri)
            if url:
                updated.append(item.model_copy(update={"image_url": url}))
                patched += 1
            else:
                updated.append(item)
        if patched:
            self._news = updated
            self._publish("news_images")
        return patched

    def put_recommendation(self, recommendation: Recommendation, replaced: List[Recommendation]):
        """Drop ``replaced`` records and append ``recommendation``."""
        drop = {id(r) for r in replaced}
        self._recommendations = [r for r in self._recommendations if id(r) not in drop]
        self._recommendations.append(recommendation)
        self._publish("recommendation")

    def begin_work(self):
        self._busy += 1
        if self._busy == 1:
            self._publish("status")

    def end_work(self):
        self._busy = max(0, self._busy - 1)
        if self._busy == 0:
            self._publish("status")

    def set_quota_limited(self, limited: bool):
        if limited != self._quota_limited:
            self._quota_limited = limited
            self._publish("status")

    def set_config_error(self, message: Optional[str]):
        if message != self._config_error:
            self._config_error = message
            self._publish("status")

    def tick_clock(self, now: Optional[datetime] = None):
        self._clock = now or datetime.now(timezone.utc)
        self._publish("clock")
