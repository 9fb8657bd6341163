"""
Medium articles via site-restricted search: complaints about existing
tools, and "I built this because" stories from lead users.
"""
import re
from typing import List, Optional

from core.entities import EvidenceItem
from ingestion.base import Intent, SearchBackedAdapter, SearchOptions, parse_timestamp
from ingestion.search_client import OrganicResult

PAIN_PHRASES = ["problems with", "challenges", "struggles", "pain points", "frustrations"]
BUILT_BECAUSE_TEMPLATES = [
    '"I built" {t}',
    '"why I created" {t}',
    '{t} "didn\'t exist"',
    '{t} "needed a tool"',
    "building {t} saas",
]

MEDIUM_SUFFIX = re.compile(r"\s*\|\s*Medium\s*$", re.IGNORECASE)
AUTHOR_PATTERN = re.compile(r"medium\.com/@([^/?#]+)")


def clean_title(title: str) -> str:
    return MEDIUM_SUFFIX.sub("", title).strip()


def author_from_url(url: str) -> Optional[str]:
    match = AUTHOR_PATTERN.search(url)
    return match.group(1) if match else None


class MediumAdapter(SearchBackedAdapter):
    name = "medium"
    label = "Medium"
    site = "medium.com"
    intents = {
        "pain_points": Intent("pain_points", scope="pair"),
        "built_because": Intent("lead_user_signals", scope="topic"),
    }

    async def _search(self, intent: str, keywords: List[str], options: SearchOptions) -> List[EvidenceItem]:
        if intent == "pain_points":
            queries = [
                f'site:medium.com "{keyword} {phrase}"'
                for keyword in keywords
                for phrase in PAIN_PHRASES[:2]
            ]
            tag = "article"
        else:
            vertical = keywords[0] if keywords else options.topic
            queries = [
                f"site:medium.com {template.format(t=vertical)}"
                for template in BUILT_BECAUSE_TEMPLATES[:3]
            ]
            tag = "built-because"

        results = await self.run_queries(queries, num=8, delay=0.4)
        return [self._to_evidence(r, tag) for r in results]

    def _to_evidence(self, result: OrganicResult, tag: str) -> EvidenceItem:
        return EvidenceItem(
            id=f"medium-{result.link}",
            source=self.name,
            title=clean_title(result.title),
            content=result.snippet,
            url=result.link,
            timestamp=parse_timestamp(result.date),
            score=45,
            author=author_from_url(result.link) or "unknown",
            tags=[tag],
        )
