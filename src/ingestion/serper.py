"""
Google results through the metered Serper client: platform complaints and
people who already built their own workaround.
"""
import logging
from typing import List, Tuple

from core.entities import EvidenceItem
from ingestion.base import Intent, SearchBackedAdapter, SearchOptions, dedupe_by, parse_timestamp
from ingestion.search_client import OrganicResult

logger = logging.getLogger(__name__)

PAIN_QUERIES = [
    ("reddit-serper", 'site:reddit.com {t} (frustrated OR "wish there was" OR "need tool" OR workaround)', 15),
    ("quora", 'site:quora.com {t} (recommend OR alternative OR "best tool")', 15),
    ("forum", "{t} forum (problem OR issue OR frustrated OR help)", 10),
]

LEAD_USER_QUERIES = [
    '{t} "python script" OR "built my own" OR "custom solution"',
    '{t} "google sheets" OR "excel macro" OR "airtable"',
    '{t} "zapier" OR "make.com" OR "n8n" automation',
]


def position_score(position: int) -> int:
    return max(0, (11 - position) * 10)


class SerperAdapter(SearchBackedAdapter):
    name = "serper"
    label = "Serper"
    intents = {
        "pain_points": Intent("pain_points", scope="topic"),
        "lead_users": Intent("lead_user_signals", scope="topic"),
    }

    async def _search(self, intent: str, keywords: List[str], options: SearchOptions) -> List[EvidenceItem]:
        vertical = keywords[0] if keywords else options.topic
        tagged: List[Tuple[OrganicResult, str]] = []

        if intent == "pain_points":
            for tag, template, num in PAIN_QUERIES:
                if not await self.search_client.can_use():
                    logger.info(f"[{self.label}] Quota exhausted, stopping after {len(tagged)} results")
                    break
                found = await self.search_client.search(template.format(t=vertical), num=num)
                tagged.extend((r, tag) for r in found.organic)
        else:
            results = await self.run_queries([q.format(t=vertical) for q in LEAD_USER_QUERIES])
            tagged = [(r, "lead-user") for r in results]

        tagged = dedupe_by(tagged, lambda pair: pair[0].link)
        return [self._to_evidence(r, tag) for r, tag in tagged]

    def _to_evidence(self, result: OrganicResult, tag: str) -> EvidenceItem:
        return EvidenceItem(
            id=f"serper-{result.link}",
            source=self.name,
            title=result.title,
            content=result.snippet,
            url=result.link,
            timestamp=parse_timestamp(result.date),
            score=position_score(result.position),
            tags=[tag],
        )
