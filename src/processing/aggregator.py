"""
Fans a topic out over every evidence source in waves, then merges the
results into four deduplicated, score-ordered buckets.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from core.entities import BUCKETS, AggregatedData, EvidenceItem
from ingestion.base import (
    WAVE_OPTIONAL,
    WAVES,
    HttpSourceAdapter,
    SearchBackedAdapter,
    SearchOptions,
    SourceAdapter,
    keywords_for,
)
from ingestion.hackernews import HackerNewsAdapter
from processing.deduplicator import rank_by_score
from processing.signals import is_lead_user_item
from services.config import TopicConfig

logger = logging.getLogger(__name__)


class AggregationCancelled(Exception):
    pass


class CancellationToken:
    """Cooperative cancel flag, checked between waves."""

    def __init__(self):
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


@dataclass
class AggregateOptions:
    # None: run optional sources whenever one of them is usable.
    use_optional_providers: Optional[bool] = None
    max_items_per_source: int = 20
    cancellation: Optional[CancellationToken] = None


@dataclass(frozen=True)
class SourceStatus:
    provider: str
    label: str
    configured: bool
    available: bool
    rate_limit_description: str
    usage: Optional[str] = None


@dataclass(frozen=True)
class PlannedCall:
    adapter: SourceAdapter
    intent: str
    keywords: List[str] = field(default_factory=list)


class Aggregator:
    def __init__(self, adapters: Sequence[SourceAdapter]):
        self.adapters = list(adapters)

    async def aggregate(
        self,
        topic: TopicConfig,
        options: Optional[AggregateOptions] = None,
    ) -> AggregatedData:
        """
        Collect evidence for one topic.

        Waves run in order (direct, proxied, optional) and every call in a
        wave is awaited before the next wave starts. Source failures only
        shrink the result. The only error raised is AggregationCancelled.
        """
        options = options or AggregateOptions()
        self._check_cancelled(options)

        plan = await self._plan(topic, options)
        logger.info(
            f"[Aggregator] '{topic.name}': "
            + ", ".join(f"{wave}={len(calls)}" for wave, calls in plan.items())
        )

        buckets: Dict[str, List[EvidenceItem]] = {name: [] for name in BUCKETS}
        attempted: List[str] = []

        for wave, calls in plan.items():
            if not calls:
                continue

            results = await asyncio.gather(
                *(self._run(call, topic, options) for call in calls)
            )
            self._check_cancelled(options)

            # Merge in plan order so the outcome does not depend on timing.
            for call, items in zip(calls, results):
                bucket = call.adapter.intents[call.intent].bucket
                buckets[bucket].extend(items[: options.max_items_per_source])
                if call.adapter.name not in attempted:
                    attempted.append(call.adapter.name)

            logger.debug(f"[Aggregator] Wave '{wave}' merged")

        buckets["lead_user_signals"].extend(
            item.with_tag("lead-user")
            for item in buckets["pain_points"]
            if is_lead_user_item(item)
        )

        ranked = {name: tuple(rank_by_score(items)) for name, items in buckets.items()}
        total = sum(len(items) for items in ranked.values())

        logger.info(f"[Aggregator] '{topic.name}': {total} items from {len(attempted)} sources")

        return AggregatedData(
            **ranked,
            sources_used=tuple(attempted),
            total_items=total,
        )

    async def _plan(self, topic: TopicConfig, options: AggregateOptions) -> Dict[str, List[PlannedCall]]:
        plan: Dict[str, List[PlannedCall]] = {wave: [] for wave in WAVES}

        for adapter in self.adapters:
            if adapter.wave == WAVE_OPTIONAL:
                if options.use_optional_providers is False:
                    continue
                if not await adapter.can_use():
                    logger.debug(f"[Aggregator] Skipping {adapter.label}, not usable")
                    continue
            elif not adapter.is_configured():
                continue

            for intent_name, intent in adapter.intents.items():
                keywords = keywords_for(intent.scope, topic.name, topic.search_keywords)
                plan[adapter.wave].append(PlannedCall(adapter, intent_name, keywords))

        return plan

    async def _run(self, call: PlannedCall, topic: TopicConfig, options: AggregateOptions) -> List[EvidenceItem]:
        return await call.adapter.search(
            call.keywords,
            SearchOptions(
                intent=call.intent,
                topic=topic.name,
                limit=options.max_items_per_source,
            ),
        )

    @staticmethod
    def _check_cancelled(options: AggregateOptions) -> None:
        if options.cancellation is not None and options.cancellation.cancelled:
            raise AggregationCancelled("Aggregation cancelled")

    async def quick_search(self, query: str) -> List[EvidenceItem]:
        """Hacker News stories for a free-text query, best first."""
        hn = next((a for a in self.adapters if isinstance(a, HackerNewsAdapter)), None)
        if hn is None:
            logger.warning("[Aggregator] Quick search needs the Hacker News source")
            return []

        try:
            items = await hn.search_stories(query, hits_per_page=20)
        except Exception as e:
            logger.warning(f"[Aggregator] Quick search failed: {e}")
            return []

        return sorted(items[:20], key=lambda item: item.score, reverse=True)

    async def source_status(self) -> List[SourceStatus]:
        statuses = []
        for adapter in self.adapters:
            usage = None
            if isinstance(adapter, SearchBackedAdapter):
                stats = await adapter.search_client.usage_stats()
                usage = "DISABLED - Limit reached" if stats.disabled else f"{stats.percent_used}% used"

            statuses.append(SourceStatus(
                provider=adapter.name,
                label=adapter.label,
                configured=adapter.is_configured(),
                available=await adapter.can_use(),
                rate_limit_description=adapter.rate_limit_description(),
                usage=usage,
            ))
        return statuses

    def proxy_status(self) -> Optional[Dict[str, Any]]:
        """Current proxy and failure counts of the shared fetch client, if any source uses one."""
        for adapter in self.adapters:
            if isinstance(adapter, HttpSourceAdapter):
                return adapter.fetcher.status()
        return None
