from typing import Any, Dict, List

from core.entities import EvidenceItem
from ingestion.base import (
    WAVE_DIRECT,
    HttpSourceAdapter,
    Intent,
    SearchOptions,
    build_url,
    dedupe_by,
    parse_timestamp,
)

REDDIT_BASE_URL = "https://www.reddit.com"

PAIN_KEYWORDS = [
    "frustrated",
    "annoying",
    "wish there was",
    "hate when",
    "looking for tool",
    "need help with",
]

QUESTION_PHRASES = [
    "how do I",
    "is there a tool",
    "what do you use for",
    "looking for",
]


class RedditAdapter(HttpSourceAdapter):
    name = "reddit"
    label = "Reddit"
    rate_limit = "1 req/s via proxy"
    wave = WAVE_DIRECT
    intents = {
        "pain_points": Intent("pain_points", scope="topic"),
        "questions": Intent("lead_user_signals", scope="primary"),
    }

    headers = {"User-Agent": "opportunity-forge/1.0"}

    async def _search(self, intent: str, keywords: List[str], options: SearchOptions) -> List[EvidenceItem]:
        if intent == "pain_points":
            topic = keywords[0] if keywords else options.topic
            queries = [f"{topic} {pain}" for pain in PAIN_KEYWORDS[:3]]
            limit = 15
        else:
            queries = [
                f"{keyword} {phrase}"
                for keyword in keywords[:2]
                for phrase in QUESTION_PHRASES[:2]
            ]
            limit = 10

        posts: List[Dict[str, Any]] = []
        for query in queries:
            await self.pause(1.0)
            posts.extend(await self.attempt(self._query(query, limit), []))

        posts = dedupe_by(posts, lambda p: p["permalink"])
        posts.sort(key=lambda p: p["score"] + p["num_comments"], reverse=True)

        return [self._to_evidence(p) for p in posts]

    async def _query(self, query: str, limit: int) -> List[Dict[str, Any]]:
        url = build_url(
            f"{REDDIT_BASE_URL}/search.json",
            {"q": query, "sort": "relevance", "t": "year", "limit": limit},
        )
        data = await self.fetcher.fetch_json(url, headers=self.headers)

        posts = []
        for child in (data.get("data") or {}).get("children") or []:
            post = child.get("data") or {}
            if not post.get("permalink"):
                continue
            posts.append({
                "title": post.get("title") or "",
                "selftext": post.get("selftext") or "",
                "subreddit": post.get("subreddit") or "",
                "author": post.get("author"),
                "score": post.get("score") or 0,
                "num_comments": post.get("num_comments") or 0,
                "created_utc": post.get("created_utc"),
                "permalink": f"{REDDIT_BASE_URL}{post['permalink']}",
            })
        return posts

    def _to_evidence(self, post: Dict[str, Any]) -> EvidenceItem:
        return EvidenceItem(
            id=f"reddit-{post['permalink']}",
            source=self.name,
            title=post["title"],
            content=post["selftext"],
            url=post["permalink"],
            score=post["score"] + 2 * post["num_comments"],
            timestamp=parse_timestamp(post["created_utc"]),
            author=post["author"],
            tags=[post["subreddit"]] if post["subreddit"] else [],
        )
