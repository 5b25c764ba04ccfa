"""
In-memory market data store.

Holds the category -> assets table inside the shared dashboard state and
simulates live prices: every tick applies a uniform, zero-mean multiplicative
move of at most +/-0.025% to each price and adds the same move (in percent)
to the change field.

Drift is bounded around the startup price by ``drift_limit_pct`` so long
uptimes cannot compound without limit. A non-positive limit disables it.
"""
import random
from typing import Callable, Dict, List, Optional

from data.models import Asset
from data.market_universe import INITIAL_MARKETS

TICK_AMPLITUDE = 0.0005

TickListener = Callable[[List[Asset]], None]


def build_initial_markets(raw: Optional[dict] = None) -> Dict[str, List[Asset]]:
    raw = raw if raw is not None else INITIAL_MARKETS
    return {
        category: [Asset(category=category, **entry) for entry in entries]
        for category, entries in raw.items()
    }


class MarketDataStore:
    def __init__(self, state, drift_limit_pct: float = 25.0, rng: Optional[random.Random] = None):
        self.state = state
        self.drift_limit_pct = drift_limit_pct
        self.rng = rng or random.Random()
        self.tick_count = 0
        self._reference_prices = {a.id: a.price for a in state.assets()}
        self._listeners: List[TickListener] = []

    def on_tick(self, listener: TickListener) -> None:
        """Call ``listener(assets)`` after every completed tick."""
        self._listeners.append(listener)

    def flatten(self) -> List[Asset]:
        return self.state.assets()

    def get_asset(self, asset_id: str) -> Optional[Asset]:
        return self.state.get_asset(asset_id)

    def _clamp(self, asset_id: str, price: float, change: float):
        limit = self.drift_limit_pct
        if not limit or limit <= 0:
            return price, change
        ref = self._reference_prices.get(asset_id)
        if ref:
            lo = ref * (1 - limit / 100)
            hi = ref * (1 + limit / 100)
            price = min(max(price, lo), hi)
        change = min(max(change, -limit), limit)
        return price, change

    def _perturb(self, asset: Asset) -> Asset:
        variation = (self.rng.random() - 0.5) * TICK_AMPLITUDE
        price = asset.price * (1 + variation)
        change = asset.change + variation * 100
        price, change = self._clamp(asset.id, price, change)
        return asset.model_copy(update={"price": price, "change": change})

    def tick(self) -> List[Asset]:
        """Perturb every asset, publish the new table, then notify tick listeners."""
        updated = {
            category: [self._perturb(a) for a in assets]
            for category, assets in self.state.markets.items()
        }
        self.state.replace_markets(updated)
        self.tick_count += 1

        assets = self.flatten()
        for listener in list(self._listeners):
            try:
                listener(assets)
            except Exception as e:
                print(f"[MARKET] tick listener failed: {e}")
        return assets
