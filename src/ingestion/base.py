"""
Base classes for evidence sources
"""
import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Hashable, Iterable, List, Optional, TypeVar

import httpx
from bs4 import BeautifulSoup

from core.entities import Bucket, EvidenceItem, now_ms
from ingestion.http_client import ProxyFetchClient
from ingestion.search_client import QuotaTrackedSearchClient

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Waves run in this order; optional sources need credentials or quota.
WAVE_DIRECT = "direct"
WAVE_PROXIED = "proxied"
WAVE_OPTIONAL = "optional"
WAVES = (WAVE_DIRECT, WAVE_PROXIED, WAVE_OPTIONAL)

# How many of the topic keywords an intent receives.
KEYWORD_SCOPES: Dict[str, Optional[int]] = {
    "topic": 0,
    "primary": 4,
    "secondary": 3,
    "pair": 2,
    "all": None,
}


@dataclass(frozen=True)
class Intent:
    """One kind of query a source can answer, and where its results go."""
    bucket: Bucket
    scope: str = "primary"


@dataclass(frozen=True)
class SearchOptions:
    intent: str
    topic: str = ""
    limit: int = 20


def keywords_for(scope: str, topic_name: str, keywords: List[str]) -> List[str]:
    """Slice topic keywords for an intent scope. 'topic' means the topic name alone."""
    if scope not in KEYWORD_SCOPES:
        raise ValueError(f"Unknown keyword scope: {scope}")

    size = KEYWORD_SCOPES[scope]
    if size == 0:
        return [topic_name] if topic_name else []
    return list(keywords) if size is None else list(keywords[:size])


def dedupe_by(items: Iterable[T], key: Callable[[T], Hashable]) -> List[T]:
    """Drop repeats by key, keeping the first one seen."""
    seen = set()
    unique = []
    for item in items:
        k = key(item)
        if k in seen:
            continue
        seen.add(k)
        unique.append(item)
    return unique


def parse_timestamp(value: Any) -> int:
    """Epoch milliseconds from an ISO string or epoch seconds; fetch time if unknown."""
    if value is None or value == "":
        return now_ms()

    if isinstance(value, (int, float)):
        return int(value * 1000)

    text = str(value)
    try:
        return int(datetime.fromisoformat(text.replace("Z", "+00:00")).timestamp() * 1000)
    except ValueError:
        pass

    # Search result dates such as "Jan 5, 2024"
    try:
        parsed = datetime.strptime(text, "%b %d, %Y").replace(tzinfo=timezone.utc)
        return int(parsed.timestamp() * 1000)
    except ValueError:
        return now_ms()


def strip_html(text: Optional[str]) -> str:
    if not text:
        return ""
    if "<" not in text:
        return text
    return BeautifulSoup(text, "html.parser").get_text(" ", strip=True)


def build_url(base: str, params: Dict[str, Any]) -> str:
    return str(httpx.URL(base, params=params))


class SourceAdapter(ABC):
    """
    Base interface for all evidence sources.

    Subclasses implement `_search`; callers only ever use `search`, which
    never raises and returns an empty list when anything goes wrong.
    """

    name: str
    label: str
    rate_limit: str = "Fair use"
    wave: str = WAVE_DIRECT
    intents: Dict[str, Intent] = {}

    def __init__(self, delay_scale: float = 1.0):
        self.delay_scale = delay_scale

    def is_configured(self) -> bool:
        return True

    async def can_use(self) -> bool:
        return self.is_configured()

    async def search(self, keywords: List[str], options: SearchOptions) -> List[EvidenceItem]:
        """
        Query the provider for one intent.
        Must NEVER raise uncaught exceptions.
        """
        if options.intent not in self.intents:
            logger.warning(f"[{self.label}] Unknown intent '{options.intent}'")
            return []

        try:
            items = await self._search(options.intent, list(keywords), options)
        except Exception as e:
            logger.warning(f"[{self.label}] {options.intent} failed: {type(e).__name__}: {e}")
            return []

        logger.debug(f"[{self.label}] {options.intent}: {len(items)} items")
        return items[: options.limit]

    @abstractmethod
    async def _search(
        self,
        intent: str,
        keywords: List[str],
        options: SearchOptions,
    ) -> List[EvidenceItem]:
        raise NotImplementedError

    async def pause(self, seconds: float) -> None:
        """Politeness delay between consecutive requests to one provider."""
        if seconds > 0 and self.delay_scale > 0:
            await asyncio.sleep(seconds * self.delay_scale)

    async def attempt(self, call: Awaitable[T], default: T) -> T:
        """Await one sub-query, swallowing its failure so siblings still count."""
        try:
            return await call
        except Exception as e:
            logger.debug(f"[{self.label}] sub-query failed: {type(e).__name__}: {e}")
            return default

    def rate_limit_description(self) -> str:
        return self.rate_limit


class HttpSourceAdapter(SourceAdapter):
    """Source reached over plain HTTP, directly or through the proxy chain."""

    def __init__(self, fetcher: ProxyFetchClient, delay_scale: float = 1.0):
        super().__init__(delay_scale)
        self.fetcher = fetcher

    @property
    def http(self) -> httpx.AsyncClient:
        return self.fetcher.http

    async def get_json(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        """GET JSON directly from hosts that allow it, through the proxy chain otherwise."""
        if params:
            url = build_url(url, params)
        return await self.fetcher.smart_fetch_json(url, headers)


class SearchBackedAdapter(SourceAdapter):
    """Source read through site-restricted queries on the metered search client."""

    wave = WAVE_OPTIONAL
    rate_limit = "Via Serper"
    site = ""  # keep only results on this domain

    def __init__(self, search_client: QuotaTrackedSearchClient, delay_scale: float = 1.0):
        super().__init__(delay_scale)
        self.search_client = search_client

    def is_configured(self) -> bool:
        return self.search_client.configured

    async def can_use(self) -> bool:
        return await self.search_client.can_use()

    async def run_queries(self, queries: List[str], num: int = 10, delay: float = 0.3):
        """
        Run queries one after another, stopping as soon as quota runs out.
        Returns organic results deduplicated by link.
        """
        results = []
        for i, query in enumerate(queries):
            if not await self.search_client.can_use():
                logger.info(f"[{self.label}] Quota exhausted, skipping remaining queries")
                break
            if i:
                await self.pause(delay)
            found = await self.search_client.search(query, num=num)
            results.extend(r for r in found.organic if self.site in r.link)

        return dedupe_by(results, lambda r: r.link)
