"""
Quora questions via site-restricted search.
"""
import re
from typing import List

from core.entities import EvidenceItem
from ingestion.base import Intent, SearchBackedAdapter, SearchOptions, parse_timestamp
from ingestion.search_client import OrganicResult

PAIN_PHRASES = [
    "struggling with",
    "how to solve",
    "why is it so hard",
    "best way to",
    "alternative to",
    "frustrated with",
    "problem with",
]

QUORA_SUFFIX = re.compile(r"\s*-\s*Quora\s*$", re.IGNORECASE)


def clean_title(title: str) -> str:
    return QUORA_SUFFIX.sub("", title).strip()


class QuoraAdapter(SearchBackedAdapter):
    name = "quora"
    label = "Quora"
    site = "quora.com"
    intents = {
        "pain_points": Intent("pain_points", scope="pair"),
    }

    async def _search(self, intent: str, keywords: List[str], options: SearchOptions) -> List[EvidenceItem]:
        queries = []
        for keyword in keywords:
            queries.append(f'site:quora.com "{keyword}"')
            queries.extend(f'site:quora.com "{keyword} {phrase}"' for phrase in PAIN_PHRASES[:2])

        results = await self.run_queries(queries, num=10, delay=0.4)
        return [self._to_evidence(r) for r in results]

    def _to_evidence(self, result: OrganicResult) -> EvidenceItem:
        return EvidenceItem(
            id=f"quora-{result.link}",
            source=self.name,
            title=clean_title(result.title),
            content=result.snippet,
            url=result.link,
            timestamp=parse_timestamp(result.date),
            score=55,
            tags=["question"],
        )
