"""
DEV.to articles by tag. The API has no full-text search, so articles are
pulled by tags that fit the topic and kept only when they talk about a pain.
"""
from typing import Any, Dict, List

from core.entities import EvidenceItem
from ingestion.base import (
    WAVE_DIRECT,
    HttpSourceAdapter,
    Intent,
    SearchOptions,
    dedupe_by,
    parse_timestamp,
)
from processing.signals import keyword_match

DEVTO_API_URL = "https://dev.to/api"

PAIN_INDICATORS = [
    "struggle",
    "problem",
    "challenge",
    "frustrat",
    "difficult",
    "wish",
    "need",
    "looking for",
    "alternative",
    "better",
]

TOPIC_TAGS = [
    (("marketing",), ["marketing", "seo", "analytics", "growth"]),
    (("ecommerce", "commerce"), ["ecommerce", "shopify", "stripe", "payments"]),
    (("fintech", "finance"), ["fintech", "finance", "payments", "blockchain"]),
    (("legal",), ["legal", "compliance", "security", "privacy"]),
    (("edtech", "education"), ["education", "learning", "edtech", "tutorial"]),
]
DEFAULT_TAGS = ["saas", "startup", "productivity", "automation"]


def tags_for_topic(topic: str) -> List[str]:
    lowered = topic.lower()
    for needles, tags in TOPIC_TAGS:
        if any(n in lowered for n in needles):
            return tags
    return DEFAULT_TAGS


class DevToAdapter(HttpSourceAdapter):
    name = "devto"
    label = "DEV.to"
    wave = WAVE_DIRECT
    intents = {
        "pain_points": Intent("pain_points", scope="topic"),
    }

    async def _search(self, intent: str, keywords: List[str], options: SearchOptions) -> List[EvidenceItem]:
        topic = keywords[0] if keywords else options.topic

        articles: List[Dict[str, Any]] = []
        for tag in tags_for_topic(topic):
            articles.extend(await self.attempt(self._by_tag(tag), []))
            await self.pause(0.3)

        painful = [
            a for a in articles
            if keyword_match(f"{a.get('title', '')} {a.get('description', '')}", PAIN_INDICATORS)
        ]
        return [self._to_evidence(a) for a in dedupe_by(painful, lambda a: a["id"])]

    async def _by_tag(self, tag: str) -> List[Dict[str, Any]]:
        data = await self.get_json(
            f"{DEVTO_API_URL}/articles",
            params={"tag": tag, "page": 1, "per_page": 20, "top": "month"},
        )
        return [a for a in data or [] if a.get("id") is not None]

    def _to_evidence(self, article: Dict[str, Any]) -> EvidenceItem:
        user = article.get("user") or {}
        tags = article.get("tag_list") or []
        if isinstance(tags, str):
            tags = [t.strip() for t in tags.split(",") if t.strip()]

        return EvidenceItem(
            id=f"devto-{article['id']}",
            source=self.name,
            title=article.get("title") or "",
            content=article.get("description") or "",
            url=article.get("url") or "",
            score=(article.get("public_reactions_count") or 0) + 2 * (article.get("comments_count") or 0),
            timestamp=parse_timestamp(article.get("published_at")),
            author=user.get("username"),
            tags=tags,
        )
