"""
Lobsters stories. No search endpoint, so tag feeds are read through the
proxy and filtered by topic keywords.
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
from processing.signals import keyword_match

LOBSTERS_BASE_URL = "https://lobste.rs"

PAIN_TAGS = ["ask", "show", "programming", "devops"]


class LobstersAdapter(HttpSourceAdapter):
    name = "lobsters"
    label = "Lobsters"
    wave = WAVE_PROXIED
    intents = {
        "pain_points": Intent("pain_points", scope="primary"),
        "show": Intent("competitors", scope="topic"),
    }

    async def _search(self, intent: str, keywords: List[str], options: SearchOptions) -> List[EvidenceItem]:
        if intent == "show":
            stories = await self.feed("/t/show.json")
            return [self._to_evidence(s) for s in stories]

        stories: List[Dict[str, Any]] = []
        for tag in PAIN_TAGS:
            stories.extend(await self.attempt(self.feed(f"/t/{tag}.json"), []))
            await self.pause(0.3)
        stories.extend(await self.attempt(self.feed("/hottest.json"), []))

        matching = [
            s for s in stories
            if keyword_match(f"{s.get('title', '')} {s.get('description', '')}", keywords)
        ]
        matching = dedupe_by(matching, lambda s: s["short_id"])
        matching.sort(key=lambda s: s.get("score") or 0, reverse=True)

        return [self._to_evidence(s) for s in matching]

    async def feed(self, path: str) -> List[Dict[str, Any]]:
        data = await self.fetcher.fetch_json(f"{LOBSTERS_BASE_URL}{path}?page=1")
        return [s for s in data or [] if s.get("short_id")]

    def _to_evidence(self, story: Dict[str, Any]) -> EvidenceItem:
        submitter = story.get("submitter_user")
        if isinstance(submitter, dict):
            submitter = submitter.get("username")

        return EvidenceItem(
            id=f"lobsters-{story['short_id']}",
            source=self.name,
            title=story.get("title") or "",
            content=story.get("description_plain") or story.get("description") or "",
            url=story.get("comments_url") or story.get("url") or "",
            score=(story.get("score") or 0) + 2 * (story.get("comment_count") or 0),
            timestamp=parse_timestamp(story.get("created_at")),
            author=submitter or "unknown",
            tags=story.get("tags") or [],
        )
