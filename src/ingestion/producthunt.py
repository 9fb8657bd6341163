"""
Get launches from ProductHunt through the v2 GraphQL API.
Needs an API key and secret; the access token is fetched once per adapter.
"""
import logging
from typing import Any, Dict, List, Optional

import httpx

from core.entities import EvidenceItem
from ingestion.base import (
    WAVE_OPTIONAL,
    Intent,
    SearchOptions,
    SourceAdapter,
    dedupe_by,
    parse_timestamp,
)

logger = logging.getLogger(__name__)

PH_TOKEN_URL = "https://api.producthunt.com/v2/oauth/token"
PH_API_URL = "https://api.producthunt.com/v2/api/graphql"

POST_FIELDS = """
        edges {
          node {
            id
            name
            tagline
            description
            url
            votesCount
            commentsCount
            topics { edges { node { name } } }
            createdAt
            website
          }
        }
"""

TODAYS_POSTS_QUERY = "query { posts(first: 20, order: VOTES) {" + POST_FIELDS + "} }"
TOPIC_POSTS_QUERY = (
    "query($topic: String!) { posts(first: 20, topic: $topic, order: VOTES) {"
    + POST_FIELDS
    + "} }"
)

TOPIC_MAP = {
    "marketing": ["marketing", "social-media-tools", "analytics"],
    "ecommerce": ["e-commerce", "shopify", "payments"],
    "fintech": ["fintech", "personal-finance", "invoicing"],
    "legal": ["legal", "privacy", "compliance"],
    "edtech": ["education", "online-learning", "productivity"],
}
DEFAULT_TOPICS = ["saas", "productivity"]


def topics_for_vertical(vertical: str) -> List[str]:
    lowered = vertical.lower()
    for key, topics in TOPIC_MAP.items():
        if key in lowered:
            return topics
    return DEFAULT_TOPICS


class ProductHuntAdapter(SourceAdapter):
    name = "producthunt"
    label = "ProductHunt"
    rate_limit = "OAuth API"
    wave = WAVE_OPTIONAL
    intents = {
        "trending": Intent("trending_topics", scope="topic"),
        "competitors": Intent("competitors", scope="topic"),
    }

    def __init__(
        self,
        http: httpx.AsyncClient,
        api_key: Optional[str] = None,
        api_secret: Optional[str] = None,
        delay_scale: float = 1.0,
    ):
        super().__init__(delay_scale)
        self.http = http
        self.api_key = api_key
        self.api_secret = api_secret
        self._token: Optional[str] = None

    def is_configured(self) -> bool:
        return bool(self.api_key and self.api_secret)

    async def _search(self, intent: str, keywords: List[str], options: SearchOptions) -> List[EvidenceItem]:
        if intent == "trending":
            posts = await self.query(TODAYS_POSTS_QUERY)
        else:
            vertical = keywords[0] if keywords else options.topic
            posts = []
            for i, topic in enumerate(topics_for_vertical(vertical)):
                if i:
                    await self.pause(0.5)
                posts.extend(await self.attempt(self.query(TOPIC_POSTS_QUERY, {"topic": topic}), []))
            posts = dedupe_by(posts, lambda p: p["id"])

        posts.sort(key=lambda p: p.get("votesCount") or 0, reverse=True)
        return [self._to_evidence(p) for p in posts]

    async def access_token(self) -> str:
        if self._token:
            return self._token

        response = await self.http.post(
            PH_TOKEN_URL,
            json={
                "client_id": self.api_key,
                "client_secret": self.api_secret,
                "grant_type": "client_credentials",
            },
        )
        response.raise_for_status()
        self._token = response.json()["access_token"]
        logger.debug("[ProductHunt] Access token acquired")
        return self._token

    async def query(self, query: str, variables: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        token = await self.access_token()
        response = await self.http.post(
            PH_API_URL,
            headers={"Authorization": f"Bearer {token}"},
            json={"query": query, "variables": variables or {}},
        )
        response.raise_for_status()

        data = response.json().get("data") or {}
        edges = (data.get("posts") or {}).get("edges") or []
        return [e["node"] for e in edges if (e.get("node") or {}).get("id")]

    def _to_evidence(self, post: Dict[str, Any]) -> EvidenceItem:
        tagline = post.get("tagline") or ""
        description = post.get("description") or ""
        topics = [
            t["node"]["name"]
            for t in (post.get("topics") or {}).get("edges") or []
            if (t.get("node") or {}).get("name")
        ]

        return EvidenceItem(
            id=f"ph-{post['id']}",
            source=self.name,
            title=post.get("name") or "",
            content=f"{tagline} - {description}" if description else tagline,
            url=post.get("website") or post.get("url") or "",
            score=(post.get("votesCount") or 0) + 3 * (post.get("commentsCount") or 0),
            timestamp=parse_timestamp(post.get("createdAt")),
            tags=topics,
        )
