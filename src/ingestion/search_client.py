"""
Quota-tracked Google search through serper.dev.

The free tier is a hard ceiling, so every query is counted and persisted
before it is sent, and the client disables itself a safety buffer short of
the limit. Counters only go back to zero through reset_usage().
"""
import asyncio
import logging
import math
from typing import List, Optional

import httpx
from pydantic import BaseModel

from core.entities import now_ms
from services.usage_store import UsageState, UsageStore

logger = logging.getLogger(__name__)


SERPER_API_URL = "https://google.serper.dev"
PROVIDER = "serper"

MAX_QUERIES = 2500
SAFETY_BUFFER = 100
LOW_QUOTA_WARNING = 500


class OrganicResult(BaseModel):
    title: str = ""
    link: str
    snippet: str = ""
    position: int
    date: Optional[str] = None


class NewsResult(BaseModel):
    title: str = ""
    link: str
    snippet: str = ""
    date: Optional[str] = None
    source: Optional[str] = None


class SearchResult(BaseModel):
    query: str
    organic: List[OrganicResult] = []
    news: List[NewsResult] = []
    related_searches: List[str] = []


class UsageStats(BaseModel):
    used: int
    remaining: int
    limit: int
    disabled: bool
    percent_used: int


class QuotaTrackedSearchClient:
    def __init__(
        self,
        http: httpx.AsyncClient,
        store: UsageStore,
        api_key: Optional[str] = None,
        max_queries: int = MAX_QUERIES,
        safety_buffer: int = SAFETY_BUFFER,
    ):
        self.http = http
        self.store = store
        self.api_key = api_key
        self.max_queries = max_queries
        self.safety_buffer = safety_buffer
        # Serializes read-increment-write on the shared counter.
        self._lock = asyncio.Lock()

    @property
    def limit(self) -> int:
        return self.max_queries - self.safety_buffer

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def can_use(self) -> bool:
        if not self.configured:
            return False
        state = await self.store.load(PROVIDER)
        return not state.disabled and state.count < self.limit

    async def _consume(self) -> bool:
        """
        Count one query and persist it. Returns False, without counting,
        once the limit is reached.
        """
        async with self._lock:
            return await self._consume_locked()

    async def _consume_locked(self) -> bool:
        state = await self.store.load(PROVIDER)

        if state.disabled:
            logger.warning("[Serper] Disabled, query limit reached. Run reset_usage() after buying credits.")
            return False

        if state.count >= self.limit:
            state.disabled = True
            await self.store.save(PROVIDER, state)
            logger.error(f"[Serper] Limit reached, {state.count} queries used. Serper is now disabled.")
            return False

        now = now_ms()
        state.count += 1
        state.last_used_at = now
        if state.first_used_at == 0:
            state.first_used_at = now

        if state.count >= self.limit:
            state.disabled = True
            logger.error(f"[Serper] Limit reached, {state.count} queries used. Serper is now disabled.")

        await self.store.save(PROVIDER, state)

        remaining = self.limit - state.count
        if 0 < remaining <= LOW_QUOTA_WARNING:
            logger.warning(f"[Serper] Only {remaining} queries remaining")

        return True

    async def search(
        self,
        query: str,
        num: int = 10,
        gl: str = "us",
        hl: str = "en",
        search_type: str = "search",
    ) -> SearchResult:
        """
        Run one query. An empty result means either nothing was found or
        the client is unavailable; check can_use() to tell them apart.
        """
        empty = SearchResult(query=query)

        if not self.configured:
            logger.debug("[Serper] API key not configured")
            return empty

        if not await self._consume():
            return empty

        try:
            response = await self.http.post(
                f"{SERPER_API_URL}/{search_type}",
                headers={"X-API-KEY": self.api_key, "Content-Type": "application/json"},
                json={"q": query, "num": num, "gl": gl, "hl": hl},
            )
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"[Serper] Search failed for '{query}': {e}")
            return empty

        organic = [
            OrganicResult(
                title=r.get("title") or "",
                link=r["link"],
                snippet=r.get("snippet") or "",
                position=index + 1,
                date=r.get("date"),
            )
            for index, r in enumerate(data.get("organic") or [])
            if r.get("link")
        ]
        news = [
            NewsResult(
                title=r.get("title") or "",
                link=r["link"],
                snippet=r.get("snippet") or "",
                date=r.get("date"),
                source=r.get("source"),
            )
            for r in data.get("news") or []
            if r.get("link")
        ]
        related = [r.get("query", "") for r in data.get("relatedSearches") or []]

        return SearchResult(query=query, organic=organic, news=news, related_searches=related)

    async def usage_stats(self) -> UsageStats:
        state = await self.store.load(PROVIDER)
        limit = self.limit
        return UsageStats(
            used=state.count,
            remaining=max(0, limit - state.count),
            limit=limit,
            disabled=state.disabled,
            percent_used=int(math.floor(state.count / limit * 100 + 0.5)) if limit else 100,
        )

    async def reset_usage(self) -> None:
        """Zero the counter. Manual only, for when new credits are bought."""
        async with self._lock:
            await self.store.save(PROVIDER, UsageState())
        logger.info(f"[Serper] Usage counter reset, {self.limit} queries available")
