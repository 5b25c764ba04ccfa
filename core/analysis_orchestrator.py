"""
Analysis Orchestrator.

Decides when the bulk market scan runs and how its results land in the shared
dashboard state.

  idle -> running   at startup, after every market tick, on manual request
  running -> idle   when the scan returns, success or failure (no retries)

Triggers that arrive while a scan is in flight join it instead of starting a
second request. ``quota_limited`` is sticky: set by a quota result, cleared
only by a later successful cycle that is not quota limited.

Merge rules for a completed scan:
  - recommendations, signals and summary are replaced only when non-empty
  - news is published right away without images, then images for the first
    few items are patched in once the cycle is already idle

Deep dives analyse one asset, share the busy flag and upsert exactly one
recommendation for that asset. They never touch signals, summary or news.
"""
import asyncio
from typing import Dict, List, Optional, Set

from core.dashboard_state import DashboardState
from core.recommendation_lookup import dedupe_by_key, matches_asset, recommendations_for_asset
from data.intelligence_client import IntelligenceClient, MissingCredentialsError
from data.models import IntelligenceResult, NewsItem, Recommendation

IMAGE_ENRICHED_ITEMS = 2
CONFIG_ERROR_MESSAGE = "Intelligence service credentials are missing or invalid: {detail}"


def _log_task_outcome(task: asyncio.Task):
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        print(f"[ORCH] {task.get_name()} failed: {type(exc).__name__}: {exc}")


class AnalysisOrchestrator:
    def __init__(
        self,
        state: DashboardState,
        store,
        client: IntelligenceClient,
        images=None,
        image_count: int = IMAGE_ENRICHED_ITEMS,
        follow_ticks: bool = True,
    ):
        self.state = state
        self.store = store
        self.client = client
        self.images = images
        self.image_count = image_count
        self.cycles = 0
        self._bulk_task: Optional[asyncio.Task] = None
        self._enrichment_task: Optional[asyncio.Task] = None
        self._enrichment_tasks: Set[asyncio.Task] = set()
        self._deep_dives: Dict[str, asyncio.Task] = {}
        if follow_ticks:
            store.on_tick(self._on_market_tick)

    # ---------- bulk scan ----------

    @property
    def is_running(self) -> bool:
        return self._bulk_task is not None and not self._bulk_task.done()

    @property
    def enrichment_task(self) -> Optional[asyncio.Task]:
        return self._enrichment_task

    def _on_market_tick(self, assets):
        print(f"[ORCH] Market tick ({len(assets)} assets) -> scheduling analysis")
        self.schedule_analysis()

    def schedule_analysis(self) -> asyncio.Task:
        """Start a bulk scan, or return the one already in flight."""
        if self.is_running:
            print("[ORCH] Analysis already running, joining in-flight cycle")
            return self._bulk_task
        task = asyncio.create_task(self._run_cycle(), name="bulk-analysis")
        task.add_done_callback(_log_task_outcome)
        self._bulk_task = task
        return task

    async def run_analysis(self) -> IntelligenceResult:
        # the shared cycle outlives any one cancelled caller
        return await asyncio.shield(self.schedule_analysis())

    async def _run_cycle(self) -> IntelligenceResult:
        assets = self.store.flatten()
        generation = None
        self.state.begin_work()
        try:
            result = await self.client.analyze_market(assets)
            generation = self._merge(result)
        except MissingCredentialsError as e:
            self.state.set_config_error(CONFIG_ERROR_MESSAGE.format(detail=e))
            raise
        finally:
            self.state.end_work()

        if generation is not None and self.images is not None:
            head = result.news[: self.image_count]
            task = asyncio.create_task(self._enrich_news(generation, head), name="news-images")
            task.add_done_callback(_log_task_outcome)
            task.add_done_callback(self._enrichment_tasks.discard)
            self._enrichment_tasks.add(task)
            self._enrichment_task = task
        return result

    def _merge(self, result: IntelligenceResult) -> Optional[int]:
        self.cycles += 1
        if result.quota_reached:
            self.state.set_quota_limited(True)
        elif result.ok:
            self.state.set_quota_limited(False)
        if result.ok:
            self.state.set_config_error(None)

        recommendations = dedupe_by_key(result.recommendations) if result.recommendations else None
        self.state.apply_analysis(
            summary=result.summary or None,
            signals=result.signals or None,
            recommendations=recommendations,
        )
        print(
            f"[ORCH] Cycle {self.cycles} merged: failure={result.failure} "
            f"recs={'replaced' if recommendations else 'kept'} "
            f"signals={'replaced' if result.signals else 'kept'} news={len(result.news)}"
        )

        if not result.news:
            return None
        return self.state.replace_news(result.news)

    async def _enrich_news(self, generation: int, items: List[NewsItem]) -> int:
        if not items:
            return 0
        images = await asyncio.gather(
            *(self.images.generate_image(item.title) for item in items),
            return_exceptions=True,
        )
        found = {
            item.uri: img
            for item, img in zip(items, images)
            if isinstance(img, str) and img
        }
        patched = self.state.patch_news_images(generation, found)
        if patched:
            print(f"[ORCH] Patched {patched} news images")
        return patched

    # ---------- deep dive ----------

    async def deep_dive(self, asset_id: str) -> Optional[Recommendation]:
        asset = self.store.get_asset(asset_id)
        if asset is None:
            raise KeyError(asset_id)
        task = self._deep_dives.get(asset.id)
        if task is None or task.done():
            task = asyncio.create_task(self._run_deep_dive(asset), name=f"deep-dive-{asset.id}")
            self._deep_dives[asset.id] = task
            task.add_done_callback(self._forget_deep_dive)
            task.add_done_callback(_log_task_outcome)
        return await asyncio.shield(task)

    def _forget_deep_dive(self, task: asyncio.Task):
        for key, current in list(self._deep_dives.items()):
            if current is task:
                del self._deep_dives[key]

    async def _run_deep_dive(self, asset) -> Optional[Recommendation]:
        self.state.begin_work()
        try:
            rec = await self.client.analyze_asset(asset)
        except MissingCredentialsError as e:
            self.state.set_config_error(CONFIG_ERROR_MESSAGE.format(detail=e))
            raise
        finally:
            self.state.end_work()

        if rec is None:
            return None
        if not matches_asset(rec, asset):
            rec = rec.model_copy(update={"asset": asset.symbol})
        replaced = recommendations_for_asset(self.state.recommendations, asset)
        self.state.put_recommendation(rec, replaced)
        print(f"[ORCH] Deep dive {asset.symbol}: {rec.action} ({rec.confidence:.0f}%)")
        return rec

    @property
    def pending_enrichments(self) -> int:
        return len(self._enrichment_tasks)

    async def drain(self):
        """Wait for the in-flight scan, deep dives and every image patch to settle."""
        pending = [self._bulk_task] if self._bulk_task is not None else []
        pending.extend(self._deep_dives.values())
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        # a finishing scan can start one more image task
        while self._enrichment_tasks:
            await asyncio.gather(*list(self._enrichment_tasks), return_exceptions=True)
