"""
G2 review snippets, found through site-restricted search. Complaint-focused
queries surface the features buyers miss in existing products.
"""
import re
from typing import List

from core.entities import EvidenceItem
from ingestion.base import Intent, SearchBackedAdapter, SearchOptions, parse_timestamp
from ingestion.search_client import OrganicResult

GAP_PHRASES = ['"missing feature"', '"wish it had"', '"doesn\'t have"', '"limited"', '"frustrating"']
CONS_FILTER = '"what I dislike" OR "cons" OR "missing features"'


def product_name(title: str) -> str:
    head = title.split("|", 1)[0]
    return re.sub(r"Reviews.*$", "", head, flags=re.IGNORECASE).strip() or title


class G2Adapter(SearchBackedAdapter):
    name = "g2"
    label = "G2"
    site = "g2.com"
    intents = {
        "market_gaps": Intent("pain_points", scope="topic"),
    }

    async def _search(self, intent: str, keywords: List[str], options: SearchOptions) -> List[EvidenceItem]:
        vertical = keywords[0] if keywords else options.topic
        queries = [
            f'site:g2.com "{vertical}" {phrase} reviews {CONS_FILTER}'
            for phrase in GAP_PHRASES[:3]
        ]
        results = await self.run_queries(queries, num=10, delay=0.5)
        return [self._to_evidence(r, vertical) for r in results]

    def _to_evidence(self, result: OrganicResult, vertical: str) -> EvidenceItem:
        return EvidenceItem(
            id=f"g2-{result.link}",
            source=self.name,
            title=result.title,
            content=result.snippet,
            url=result.link,
            timestamp=parse_timestamp(result.date),
            score=50,
            author=product_name(result.title),
            tags=["review", vertical],
        )
