"""
Daily call budget for the paid AI backends.
Counts LLM scans and image generations per day, warns at 70% and refuses
calls past 90% so the dashboard drops into quota mode before the vendor does.
"""
from datetime import datetime

from config import DAILY_LLM_LIMIT, DAILY_IMAGE_LIMIT


class DailyBudgetTracker:
    WARN_PCT = 0.70
    HARD_STOP_PCT = 0.90

    def __init__(self, limits: dict | None = None):
        self.daily_limits = dict(limits or {
            "anthropic": DAILY_LLM_LIMIT,
            "openai_images": DAILY_IMAGE_LIMIT,
        })
        self._counts: dict[str, int] = {}
        self._day: str = ""
        self._reset_if_new_day()

    def _reset_if_new_day(self):
        today = datetime.now().strftime("%Y-%m-%d")
        if today != self._day:
            self._day = today
            self._counts = {k: 0 for k in self.daily_limits}

    def spend(self, provider: str, n: int = 1) -> bool:
        self._reset_if_new_day()
        provider = provider.lower()
        if provider not in self.daily_limits:
            return True

        limit = self.daily_limits[provider]
        current = self._counts.get(provider, 0)

        if current + n > limit * self.HARD_STOP_PCT:
            pct = current / limit * 100 if limit else 100.0
            print(f"[BUDGET] HARD STOP: {provider} at {current}/{limit} "
                  f"({pct:.0f}%) - refusing {n} calls")
            return False

        self._counts[provider] = current + n

        if self._counts[provider] > limit * self.WARN_PCT:
            print(f"[BUDGET] WARNING: {provider} at {self._counts[provider]}/{limit} "
                  f"({self._counts[provider]/limit*100:.0f}%)")

        return True

    def can_spend(self, provider: str, n: int = 1) -> bool:
        self._reset_if_new_day()
        provider = provider.lower()
        if provider not in self.daily_limits:
            return True
        current = self._counts.get(provider, 0)
        return (current + n) <= self.daily_limits[provider] * self.HARD_STOP_PCT

    def reset(self):
        self._day = ""
        self._reset_if_new_day()

    def status(self) -> dict:
        self._reset_if_new_day()
        return {
            "day": self._day,
            "providers": {
                provider: {
                    "used": self._counts.get(provider, 0),
                    "limit": limit,
                    "pct": round(self._counts.get(provider, 0) / limit * 100, 1) if limit else 0.0,
                    "warn_at": int(limit * self.WARN_PCT),
                    "hard_stop_at": int(limit * self.HARD_STOP_PCT),
                }
                for provider, limit in self.daily_limits.items()
            },
        }


daily_budget = DailyBudgetTracker()
