"""
Hashnode developer blog posts via the public GraphQL API.

The API dropped full-text search, so the relevant feed is read once per
call and filtered locally for each query term.
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

HASHNODE_API_URL = "https://gql.hashnode.com"

FEED_QUERY = """
query Feed($first: Int!) {
  feed(first: $first, filter: { type: RELEVANT }) {
    edges {
      node {
        id
        title
        brief
        url
        author { username }
        publishedAt
        reactionCount
        responseCount
        tags { name }
      }
    }
  }
}
"""

PAIN_PHRASES = ["problem", "struggle", "challenge", "pain point"]
PROJECT_TEMPLATES = ["{t} tool", "building {t}", "{t} project"]


def matches_query(post: Dict[str, Any], query: str) -> bool:
    """True when the post mentions the whole query or any single word of it."""
    text = f"{post.get('title') or ''} {post.get('brief') or ''}".lower()
    query = query.lower()
    return query in text or any(word in text for word in query.split())


class HashnodeAdapter(HttpSourceAdapter):
    name = "hashnode"
    label = "Hashnode"
    wave = WAVE_PROXIED
    intents = {
        "pain_points": Intent("pain_points", scope="primary"),
        "projects": Intent("trending_topics", scope="topic"),
    }

    async def _search(self, intent: str, keywords: List[str], options: SearchOptions) -> List[EvidenceItem]:
        if intent == "pain_points":
            queries = []
            for keyword in keywords[:3]:
                queries.append(keyword)
                queries.extend(f"{keyword} {phrase}" for phrase in PAIN_PHRASES[:2])
        else:
            topic = keywords[0] if keywords else options.topic
            queries = [template.format(t=topic) for template in PROJECT_TEMPLATES]

        feed = await self.feed(first=20)

        posts = [p for q in queries for p in feed if matches_query(p, q)]
        posts = dedupe_by(posts, lambda p: p["id"])
        posts.sort(key=lambda p: p.get("reactionCount") or 0, reverse=True)

        return [self._to_evidence(p) for p in posts]

    async def feed(self, first: int = 20) -> List[Dict[str, Any]]:
        data = await self.fetcher.post_json(
            HASHNODE_API_URL,
            {"query": FEED_QUERY, "variables": {"first": first}},
        )
        if data.get("errors"):
            raise ValueError(f"GraphQL errors: {data['errors']}")

        edges = ((data.get("data") or {}).get("feed") or {}).get("edges") or []
        return [e["node"] for e in edges if (e.get("node") or {}).get("id")]

    def _to_evidence(self, post: Dict[str, Any]) -> EvidenceItem:
        return EvidenceItem(
            id=f"hashnode-{post['id']}",
            source=self.name,
            title=post.get("title") or "",
            content=post.get("brief") or "",
            url=post.get("url") or "",
            score=2 * (post.get("reactionCount") or 0) + 3 * (post.get("responseCount") or 0),
            timestamp=parse_timestamp(post.get("publishedAt")),
            author=(post.get("author") or {}).get("username", "unknown"),
            tags=[t.get("name", "") for t in post.get("tags") or []],
        )
