"""
GitHub issue search: feature requests and recurring bugs in public repos.
"""
import logging
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
from ingestion.http_client import ProxyFetchClient

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"

FEATURE_LABELS = ["enhancement", "feature request", "feature", "help wanted"]
BUG_PHRASES = ["bug", "broken", "not working"]
MIN_BUG_COMMENTS = 3


class GitHubAdapter(HttpSourceAdapter):
    name = "github"
    label = "GitHub Issues"
    wave = WAVE_DIRECT
    intents = {
        "feature_requests": Intent("lead_user_signals", scope="primary"),
        "bug_reports": Intent("pain_points", scope="secondary"),
    }

    def __init__(self, fetcher: ProxyFetchClient, token: Optional[str] = None, delay_scale: float = 1.0):
        super().__init__(fetcher, delay_scale)
        self.token = token

    def rate_limit_description(self) -> str:
        return "30 req/min" if self.token else "10 req/min"

    async def _search(self, intent: str, keywords: List[str], options: SearchOptions) -> List[EvidenceItem]:
        issues: List[Dict[str, Any]] = []

        if intent == "feature_requests":
            for keyword in keywords[:3]:
                issues.extend(await self.attempt(
                    self.query(keyword, labels=FEATURE_LABELS, per_page=15, sort="reactions"), []
                ))
                await self.pause(1.0)
            issues = dedupe_by(issues, lambda i: i["id"])
            issues.sort(key=lambda i: (i.get("reactions") or {}).get("total_count", 0), reverse=True)
        else:
            for keyword in keywords[:2]:
                for phrase in BUG_PHRASES[:2]:
                    issues.extend(await self.attempt(
                        self.query(f"{keyword} {phrase}", per_page=10, sort="comments"), []
                    ))
                    await self.pause(1.0)
            issues = [
                i for i in dedupe_by(issues, lambda i: i["id"])
                if (i.get("comments") or 0) >= MIN_BUG_COMMENTS
            ]

        return [self._to_evidence(i) for i in issues]

    async def query(
        self,
        query: str,
        labels: Optional[List[str]] = None,
        per_page: int = 20,
        sort: str = "reactions",
    ) -> List[Dict[str, Any]]:
        q = f"{query} is:issue state:open"
        if labels:
            q += " " + " ".join(f'label:"{label}"' for label in labels)

        headers = {"Accept": "application/vnd.github.v3+json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        response = await self.http.get(
            f"{GITHUB_API_URL}/search/issues",
            params={"q": q, "per_page": per_page, "sort": sort, "order": "desc"},
            headers=headers,
        )
        if response.status_code == 403:
            logger.warning("[GitHub] Rate limit exceeded")
            return []
        response.raise_for_status()

        return [i for i in response.json().get("items") or [] if i.get("id") is not None]

    def _to_evidence(self, issue: Dict[str, Any]) -> EvidenceItem:
        reactions = (issue.get("reactions") or {}).get("total_count", 0)
        comments = issue.get("comments") or 0

        return EvidenceItem(
            id=f"github-{issue['id']}",
            source=self.name,
            title=issue.get("title") or "",
            content=issue.get("body") or "",
            url=issue.get("html_url") or "",
            score=3 * reactions + 2 * comments,
            timestamp=parse_timestamp(issue.get("created_at")),
            author=(issue.get("user") or {}).get("login", "unknown"),
            tags=[label.get("name", "") for label in issue.get("labels") or [] if isinstance(label, dict)],
        )
