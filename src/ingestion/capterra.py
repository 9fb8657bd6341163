"""
Capterra review snippets via site-restricted search, aimed at feature gaps.
"""
import re
from typing import List

from core.entities import EvidenceItem
from ingestion.base import Intent, SearchBackedAdapter, SearchOptions, parse_timestamp
from ingestion.search_client import OrganicResult

GAP_PHRASES = ['"missing feature"', '"wish it could"', '"doesn\'t integrate"', '"limited functionality"']
COMPLAINT_FILTER = '"cons" OR "disadvantages" OR "missing"'


def product_name(title: str) -> str:
    head = re.split(r"[-|]", title, maxsplit=1)[0]
    return re.sub(r"Reviews.*$", "", head, flags=re.IGNORECASE).strip() or title


class CapterraAdapter(SearchBackedAdapter):
    name = "capterra"
    label = "Capterra"
    site = "capterra.com"
    intents = {
        "feature_gaps": Intent("pain_points", scope="topic"),
    }

    async def _search(self, intent: str, keywords: List[str], options: SearchOptions) -> List[EvidenceItem]:
        vertical = keywords[0] if keywords else options.topic
        queries = [
            f'site:capterra.com "{vertical}" {phrase} reviews {COMPLAINT_FILTER}'
            for phrase in GAP_PHRASES[:3]
        ]
        results = await self.run_queries(queries, num=10, delay=0.5)
        return [self._to_evidence(r, vertical) for r in results]

    def _to_evidence(self, result: OrganicResult, vertical: str) -> EvidenceItem:
        return EvidenceItem(
            id=f"capterra-{result.link}",
            source=self.name,
            title=result.title,
            content=result.snippet,
            url=result.link,
            timestamp=parse_timestamp(result.date),
            score=50,
            author=product_name(result.title),
            tags=["review", vertical],
        )
