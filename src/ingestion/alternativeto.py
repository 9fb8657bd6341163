"""
AlternativeTo listings via site-restricted search. People hunting for an
alternative name the incumbent they are unhappy with.
"""
import re
from typing import List

from core.entities import EvidenceItem
from ingestion.base import Intent, SearchBackedAdapter, SearchOptions, parse_timestamp
from ingestion.search_client import OrganicResult

ALTERNATIVE_TEMPLATES = [
    "{t} alternatives",
    "{t} software alternatives",
    "free {t} alternative",
    "open source {t}",
    "{t} replacement",
]

NAME_PATTERN = re.compile(r"(?:Alternatives? to |^)([^-|]+)", re.IGNORECASE)


def software_name(title: str) -> str:
    match = NAME_PATTERN.search(title)
    if not match:
        return title
    return re.sub(r"Alternatives?$", "", match.group(1), flags=re.IGNORECASE).strip() or title


class AlternativeToAdapter(SearchBackedAdapter):
    name = "alternativeto"
    label = "AlternativeTo"
    site = "alternativeto.net"
    intents = {
        "wanted_alternatives": Intent("competitors", scope="topic"),
    }

    async def _search(self, intent: str, keywords: List[str], options: SearchOptions) -> List[EvidenceItem]:
        vertical = keywords[0] if keywords else options.topic
        queries = [
            f'site:alternativeto.net "{template.format(t=vertical)}"'
            for template in ALTERNATIVE_TEMPLATES[:3]
        ]
        results = await self.run_queries(queries, num=10, delay=0.5)
        return [self._to_evidence(r) for r in results]

    def _to_evidence(self, result: OrganicResult) -> EvidenceItem:
        return EvidenceItem(
            id=f"altto-{result.link}",
            source=self.name,
            title=result.title,
            content=result.snippet,
            url=result.link,
            timestamp=parse_timestamp(result.date),
            score=60,
            tags=["alternative", software_name(result.title)],
        )
