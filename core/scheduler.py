"""
Timers driving the dashboard.

Two independent loops on the event loop:
  - a cosmetic clock tick (1s) that refreshes the displayed time
  - the market tick (15 min) that perturbs prices; the store's tick listener
    schedules the follow-up analysis

Plus one analysis shortly after startup, once the proxy is accepting calls.
"""
import asyncio
from typing import List

from data.intelligence_client import MissingCredentialsError


class MarketScheduler:
    def __init__(
        self,
        state,
        store,
        orchestrator,
        market_interval: float = 900.0,
        clock_interval: float = 1.0,
        startup_delay: float = 2.0,
    ):
        self.state = state
        self.store = store
        self.orchestrator = orchestrator
        self.market_interval = market_interval
        self.clock_interval = clock_interval
        self.startup_delay = startup_delay
        self._tasks: List[asyncio.Task] = []

    @property
    def running(self) -> bool:
        return any(not t.done() for t in self._tasks)

    def start(self):
        if self.running:
            return
        self._tasks = [
            asyncio.create_task(self._clock_loop(), name="clock-tick"),
            asyncio.create_task(self._market_loop(), name="market-tick"),
            asyncio.create_task(self._startup_analysis(), name="startup-analysis"),
        ]
        print(
            f"[SCHEDULER] Started: market tick every {self.market_interval:.0f}s, "
            f"clock every {self.clock_interval:.0f}s"
        )

    async def stop(self):
        for t in self._tasks:
            t.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        await self.orchestrator.drain()
        print("[SCHEDULER] Stopped")

    async def _clock_loop(self):
        while True:
            await asyncio.sleep(self.clock_interval)
            self.state.tick_clock()

    async def _market_loop(self):
        while True:
            await asyncio.sleep(self.market_interval)
            try:
                self.store.tick()
            except Exception as e:
                print(f"[SCHEDULER] Market tick failed: {e}")

    async def _startup_analysis(self):
        await asyncio.sleep(self.startup_delay)
        try:
            await self.orchestrator.run_analysis()
        except MissingCredentialsError as e:
            print(f"[SCHEDULER] Startup analysis needs configuration: {e}")
