"""
Hacker News through the Algolia search API
"""
import logging
from typing import Any, Dict, List, Optional

from core.entities import EvidenceItem
from ingestion.base import (
    WAVE_DIRECT,
    HttpSourceAdapter,
    Intent,
    SearchOptions,
    dedupe_by,
    parse_timestamp,
    strip_html,
)

logger = logging.getLogger(__name__)

HN_ALGOLIA_URL = "https://hn.algolia.com/api/v1"
HN_ITEM_URL = "https://news.ycombinator.com/item?id="

COMMENT_PAIN_PHRASES = [
    "wish there was",
    "frustrated with",
    "looking for",
    "anyone know",
    "alternative to",
]

MIN_COMMENT_LENGTH = 50


class HackerNewsAdapter(HttpSourceAdapter):
    name = "hackernews"
    label = "Hacker News"
    rate_limit = "Unlimited"
    wave = WAVE_DIRECT
    intents = {
        "ask": Intent("pain_points", scope="primary"),
        "comments": Intent("pain_points", scope="secondary"),
        "show": Intent("competitors", scope="topic"),
    }

    async def _search(self, intent: str, keywords: List[str], options: SearchOptions) -> List[EvidenceItem]:
        if intent == "ask":
            hits = []
            for keyword in keywords:
                hits.extend(await self.attempt(
                    self.query(keyword, tags="ask_hn", hits_per_page=15, min_points=10), []
                ))
            hits = dedupe_by(hits, lambda h: h["objectID"])
            hits.sort(key=lambda h: h.get("points") or 0, reverse=True)

        elif intent == "comments":
            hits = []
            for keyword in keywords[:3]:
                for phrase in COMMENT_PAIN_PHRASES[:3]:
                    hits.extend(await self.attempt(
                        self.query(f"{keyword} {phrase}", tags="comment", hits_per_page=10), []
                    ))
                    await self.pause(0.2)
            hits = [
                h for h in dedupe_by(hits, lambda h: h["objectID"])
                if len(h.get("comment_text") or "") > MIN_COMMENT_LENGTH
            ]

        else:
            topic = keywords[0] if keywords else options.topic
            hits = await self.query(topic, tags="show_hn", hits_per_page=30, min_points=5)

        return [self.to_evidence(h) for h in hits]

    async def search_stories(self, query: str, hits_per_page: int = 20) -> List[EvidenceItem]:
        """Plain relevance search across all item types, best first."""
        try:
            hits = await self.query(query, hits_per_page=hits_per_page)
        except Exception as e:
            logger.warning(f"[{self.label}] search failed: {e}")
            return []

        items = [self.to_evidence(h) for h in hits[:hits_per_page]]
        return sorted(items, key=lambda i: i.score, reverse=True)

    async def query(
        self,
        query: str,
        tags: Optional[str] = None,
        hits_per_page: int = 20,
        min_points: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        params: Dict[str, Any] = {"query": query, "page": 0, "hitsPerPage": hits_per_page}
        if tags:
            params["tags"] = tags
        if min_points:
            params["numericFilters"] = f"points>={min_points}"

        data = await self.get_json(f"{HN_ALGOLIA_URL}/search", params=params)
        return [h for h in data.get("hits") or [] if h.get("objectID")]

    def to_evidence(self, hit: Dict[str, Any]) -> EvidenceItem:
        title = hit.get("title") or hit.get("story_title") or ""
        content = strip_html(hit.get("story_text") or hit.get("comment_text")) or title

        return EvidenceItem(
            id=f"hn-{hit['objectID']}",
            source=self.name,
            title=title or "Comment",
            content=content,
            url=f"{HN_ITEM_URL}{hit['objectID']}",
            score=(hit.get("points") or 0) + 2 * (hit.get("num_comments") or 0),
            timestamp=parse_timestamp(hit.get("created_at_i")),
            author=hit.get("author"),
            tags=hit.get("_tags") or [],
        )
