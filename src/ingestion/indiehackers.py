"""
IndieHackers posts. There is no public API; the site's own Algolia index
is queried with its public search-only key.
"""
from typing import Any, Dict, List

from core.entities import EvidenceItem
from ingestion.base import (
    WAVE_PROXIED,
    HttpSourceAdapter,
    Intent,
    SearchOptions,
    dedupe_by,
    parse_timestamp,
)

ALGOLIA_APP_ID = "N36RSOIVP9"
ALGOLIA_SEARCH_KEY = "69e9e7ecb0654ce498f5e6a44b3d6243"
ALGOLIA_URL = f"https://{ALGOLIA_APP_ID}-dsn.algolia.net/1/indexes/{{index}}/query"
POST_URL = "https://www.indiehackers.com/post/"

PAIN_PHRASES = ["struggling with", "need help", "looking for", "anyone built"]
IDEA_TEMPLATES = ["{t} idea", "{t} saas", "{t} tool", "building {t}", "{t} business"]

ATTRIBUTES = [
    "objectID",
    "title",
    "body",
    "authorUsername",
    "votesCount",
    "commentsCount",
    "createdAt",
    "slug",
]


class IndieHackersAdapter(HttpSourceAdapter):
    name = "indiehackers"
    label = "IndieHackers"
    wave = WAVE_PROXIED
    intents = {
        "pain_points": Intent("pain_points", scope="primary"),
        "ideas": Intent("lead_user_signals", scope="topic"),
    }

    async def _search(self, intent: str, keywords: List[str], options: SearchOptions) -> List[EvidenceItem]:
        hits: List[Dict[str, Any]] = []

        if intent == "pain_points":
            for keyword in keywords[:3]:
                hits.extend(await self.attempt(self.query(keyword, hits_per_page=10), []))
                for phrase in PAIN_PHRASES[:2]:
                    hits.extend(await self.attempt(self.query(f"{keyword} {phrase}", hits_per_page=5), []))
                    await self.pause(0.3)
            hits = dedupe_by(hits, lambda h: h["objectID"])
            hits.sort(key=lambda h: h.get("votesCount") or 0, reverse=True)
        else:
            topic = keywords[0] if keywords else options.topic
            for template in IDEA_TEMPLATES:
                hits.extend(await self.attempt(self.query(template.format(t=topic), hits_per_page=10), []))
                await self.pause(0.3)
            hits = [
                h for h in dedupe_by(hits, lambda h: h["objectID"])
                if (h.get("votesCount") or 0) >= 2 or (h.get("commentsCount") or 0) >= 3
            ]

        return [self._to_evidence(h) for h in hits]

    async def query(self, query: str, hits_per_page: int = 20, index: str = "posts") -> List[Dict[str, Any]]:
        data = await self.fetcher.post_json(
            ALGOLIA_URL.format(index=index),
            {
                "query": query,
                "hitsPerPage": hits_per_page,
                "attributesToRetrieve": ATTRIBUTES,
            },
            headers={
                "X-Algolia-Application-Id": ALGOLIA_APP_ID,
                "X-Algolia-API-Key": ALGOLIA_SEARCH_KEY,
            },
        )
        return [h for h in data.get("hits") or [] if h.get("objectID")]

    def _to_evidence(self, hit: Dict[str, Any]) -> EvidenceItem:
        votes = hit.get("votesCount") or 0
        comments = hit.get("commentsCount") or 0

        return EvidenceItem(
            id=f"ih-{hit['objectID']}",
            source=self.name,
            title=hit.get("title") or "",
            content=(hit.get("body") or "")[:400],
            url=f"{POST_URL}{hit.get('slug') or hit['objectID']}",
            score=2 * votes + 3 * comments,
            timestamp=parse_timestamp(hit.get("createdAt")),
            author=hit.get("authorUsername") or "anonymous",
            tags=["indiehackers"],
        )
