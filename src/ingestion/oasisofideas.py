"""
Oasis of Ideas: raw business ideas people shared but never built.
The site has no API; its front page is scraped through the proxy.
"""
import re
from typing import Dict, List, Optional

from bs4 import BeautifulSoup

from core.entities import EvidenceItem
from ingestion.base import (
    WAVE_PROXIED,
    HttpSourceAdapter,
    Intent,
    SearchOptions,
    dedupe_by,
)

OASIS_BASE_URL = "https://oasis-of-ideas.com"

CARD_CLASS = re.compile(r"idea|card|post")
VOTES_PATTERN = re.compile(r"(\d+)\s*(?:votes?|upvotes?|likes?)", re.IGNORECASE)
SAAS_TERMS = ["saas", "tool"]

CATEGORIES = [
    ("developer-tools", ["api", "code", "developer", "programming", "github", "devops"]),
    ("productivity", ["productivity", "task", "todo", "workflow", "automation"]),
    ("marketing", ["marketing", "seo", "social media", "content", "analytics"]),
    ("fintech", ["finance", "money", "payment", "invoice", "accounting"]),
    ("ecommerce", ["shop", "store", "ecommerce", "product", "inventory"]),
    ("ai-tools", ["ai", "machine learning", "gpt", "smart"]),
    ("health", ["health", "fitness", "medical", "wellness", "therapy"]),
    ("education", ["learn", "education", "course", "tutorial", "training"]),
    ("communication", ["chat", "message", "email", "communication", "team"]),
]


def categorize(text: str) -> str:
    lowered = text.lower()
    for category, needles in CATEGORIES:
        if any(n in lowered for n in needles):
            return category
    return "general"


def _slug(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")[:80]


def _absolute(href: Optional[str]) -> str:
    if not href:
        return OASIS_BASE_URL
    if href.startswith("http"):
        return href
    return f"{OASIS_BASE_URL}{href if href.startswith('/') else '/' + href}"


def parse_ideas(html: str) -> List[Dict]:
    """
    Idea cards from the page. Falls back to plain list items when the
    layout has no recognisable cards.
    """
    soup = BeautifulSoup(html, "html.parser")
    ideas = []

    for card in soup.find_all(["div", "article"], class_=CARD_CLASS):
        heading = card.find(["h2", "h3"])
        if heading is None:
            continue
        title = heading.get_text(" ", strip=True)
        if not title:
            continue

        description = ""
        for p in card.find_all("p"):
            text = p.get_text(" ", strip=True)
            if len(text) >= 20:
                description = text
                break

        votes = VOTES_PATTERN.search(card.get_text(" ", strip=True))
        link = card.find("a", href=True)
        url = _absolute(link["href"] if link else None)

        ideas.append({
            "id": _slug(url) if url != OASIS_BASE_URL else _slug(title),
            "title": title,
            "description": description[:300],
            "url": url,
            "votes": int(votes.group(1)) if votes else 0,
            "category": categorize(f"{title} {description}"),
        })

    if not ideas:
        for li in soup.find_all("li"):
            text = li.get_text(" ", strip=True)
            if 30 < len(text) < 500:
                ideas.append({
                    "id": f"list-{_slug(text[:80])}",
                    "title": text[:80],
                    "description": text,
                    "url": OASIS_BASE_URL,
                    "votes": 0,
                    "category": categorize(text),
                })

    return dedupe_by(ideas, lambda i: i["id"])


def _matches(idea: Dict, query: str) -> bool:
    return not query or query.lower() in f"{idea['title']} {idea['description']}".lower()


class OasisOfIdeasAdapter(HttpSourceAdapter):
    name = "oasisofideas"
    label = "Oasis of Ideas"
    rate_limit = "Via proxy"
    wave = WAVE_PROXIED
    intents = {
        "saas": Intent("lead_user_signals", scope="secondary"),
        "vertical": Intent("trending_topics", scope="topic"),
    }

    async def _search(self, intent: str, keywords: List[str], options: SearchOptions) -> List[EvidenceItem]:
        html = await self.fetcher.fetch_text(OASIS_BASE_URL)
        ideas = parse_ideas(html)

        if intent == "vertical":
            topic = keywords[0] if keywords else options.topic
            found = [i for i in ideas if _matches(i, topic)][:15]
        else:
            found = []
            for query in [*keywords[:3], *SAAS_TERMS]:
                found.extend([i for i in ideas if _matches(i, query)][:10])
            found = dedupe_by(found, lambda i: i["id"])

        found.sort(key=lambda i: i["votes"], reverse=True)
        return [self._to_evidence(i) for i in found]

    def _to_evidence(self, idea: Dict) -> EvidenceItem:
        return EvidenceItem(
            id=f"oasis-{idea['id']}",
            source=self.name,
            title=idea["title"],
            content=idea["description"],
            url=idea["url"],
            score=3 * idea["votes"] + 20,
            tags=[idea["category"], "raw_idea"],
        )
