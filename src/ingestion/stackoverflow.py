"""
Stack Overflow questions through the Stack Exchange API
"""
import logging
import math
from typing import Any, Dict, List, Optional

from core.entities import EvidenceItem
from ingestion.base import (
    WAVE_DIRECT,
    HttpSourceAdapter,
    Intent,
    SearchOptions,
    dedupe_by,
    parse_timestamp,
)

logger = logging.getLogger(__name__)

SO_API_URL = "https://api.stackexchange.com/2.3"
BODY_FILTER = "!nNPvSNPI7A"

HIGH_DEMAND_MIN_VIEWS = 1000
HIGH_DEMAND_MAX_ANSWERS = 2


class StackOverflowAdapter(HttpSourceAdapter):
    name = "stackoverflow"
    label = "Stack Overflow"
    rate_limit = "300 req/day"
    wave = WAVE_DIRECT
    intents = {
        "questions": Intent("pain_points", scope="topic"),
        "high_demand": Intent("lead_user_signals", scope="primary"),
    }

    async def _search(self, intent: str, keywords: List[str], options: SearchOptions) -> List[EvidenceItem]:
        if intent == "questions":
            topic = keywords[0] if keywords else options.topic
            questions = await self.query(topic, page_size=15)
        else:
            questions = []
            for keyword in keywords[:2]:
                questions.extend(await self.attempt(
                    self.query(keyword, page_size=20, min_views=HIGH_DEMAND_MIN_VIEWS), []
                ))
                await self.pause(0.5)

            questions = [
                q for q in dedupe_by(questions, lambda q: q["question_id"])
                if (q.get("answer_count") or 0) <= HIGH_DEMAND_MAX_ANSWERS
            ]
            questions.sort(key=lambda q: q.get("view_count") or 0, reverse=True)

        return [self._to_evidence(q) for q in questions]

    async def query(
        self,
        query: str,
        page_size: int = 20,
        sort: str = "votes",
        min_views: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        data = await self.get_json(
            f"{SO_API_URL}/search/advanced",
            params={
                "order": "desc",
                "sort": sort,
                "intitle": query,
                "site": "stackoverflow",
                "pagesize": page_size,
                "filter": BODY_FILTER,
            },
        )

        if data.get("error_id"):
            logger.warning(f"[StackOverflow] API error: {data.get('error_message')}")
            return []

        questions = [q for q in data.get("items") or [] if q.get("question_id") is not None]
        if min_views:
            questions = [q for q in questions if (q.get("view_count") or 0) >= min_views]
        return questions

    def _to_evidence(self, question: Dict[str, Any]) -> EvidenceItem:
        views = question.get("view_count") or 0
        body = (question.get("body_markdown") or "")[:300]

        return EvidenceItem(
            id=f"so-{question['question_id']}",
            source=self.name,
            title=question.get("title") or "",
            content=body,
            url=question.get("link") or "",
            score=2 * (question.get("score") or 0) + math.log10(views + 1) * 10,
            timestamp=parse_timestamp(question.get("creation_date")),
            tags=question.get("tags") or [],
        )
