"""
BetaList startup listings, scraped from HTML through the proxy chain.

Early-stage startups validated in English markets are candidate import
opportunities for Spanish-speaking markets.
"""
import re
from typing import Dict, List

from bs4 import BeautifulSoup

from core.entities import EvidenceItem
from ingestion.base import (
    WAVE_PROXIED,
    HttpSourceAdapter,
    Intent,
    SearchOptions,
    dedupe_by,
)

BETALIST_BASE_URL = "https://betalist.com"
SAAS_CATEGORIES = ["saas", "developer-tools", "productivity"]
SPANISH_MARKET_TERMS = ("español", "latam")

MAX_PER_PAGE = 20
SLUG_PATTERN = re.compile(r"^/startups/([^/?#]+)")


def parse_startups(html: str) -> List[Dict[str, str]]:
    """Startup links on a listing page, in page order."""
    soup = BeautifulSoup(html, "html.parser")
    startups = []
    seen = set()

    for link in soup.find_all("a", href=True):
        match = SLUG_PATTERN.match(link["href"])
        if not match:
            continue
        slug = match.group(1)
        if slug in seen:
            continue
        seen.add(slug)

        name = " ".join(w[:1].upper() + w[1:] for w in slug.split("-"))
        text = link.get_text(" ", strip=True)
        startups.append({
            "slug": slug,
            "name": name,
            "tagline": text if text and text.lower() != name.lower() else "",
            "url": f"{BETALIST_BASE_URL}/startups/{slug}",
        })

    return startups[:MAX_PER_PAGE]


def is_import_opportunity(name: str) -> bool:
    lowered = name.lower()
    return not any(term in lowered for term in SPANISH_MARKET_TERMS)


def _matches(startup: Dict[str, str], query: str) -> bool:
    if not query:
        return True
    query = query.lower()
    return query in startup["name"].lower() or query in startup["tagline"].lower()


class BetaListAdapter(HttpSourceAdapter):
    name = "betalist"
    label = "BetaList"
    rate_limit = "Via proxy"
    wave = WAVE_PROXIED
    intents = {
        "saas": Intent("competitors", scope="primary"),
        "imports": Intent("trending_topics", scope="topic"),
    }

    async def _search(self, intent: str, keywords: List[str], options: SearchOptions) -> List[EvidenceItem]:
        if intent == "imports":
            topic = keywords[0] if keywords else options.topic
            startups = [s for s in await self.listing() if _matches(s, topic)]
            startups = [s for s in startups if is_import_opportunity(s["name"])]
            return [self._to_evidence(s, "startup", import_opportunity=True) for s in startups]

        found = []
        for category in SAAS_CATEGORIES:
            startups = await self.attempt(self.listing(category), [])
            found.extend((s, category) for s in startups[:10])
            await self.pause(0.5)

        recent = await self.attempt(self.listing(), [])
        for keyword in keywords[:2]:
            found.extend((s, "startup") for s in recent[:10] if _matches(s, keyword))

        found = dedupe_by(found, lambda pair: pair[0]["slug"])
        return [
            self._to_evidence(s, category, import_opportunity=is_import_opportunity(s["name"]))
            for s, category in found
        ]

    async def listing(self, category: str = "") -> List[Dict[str, str]]:
        url = f"{BETALIST_BASE_URL}/topics/{category}" if category else f"{BETALIST_BASE_URL}/startups"
        html = await self.fetcher.fetch_text(url)
        return parse_startups(html)

    def _to_evidence(self, startup: Dict[str, str], category: str, import_opportunity: bool) -> EvidenceItem:
        return EvidenceItem(
            id=f"betalist-{startup['slug']}",
            source=self.name,
            title=startup["name"],
            content=startup["tagline"],
            url=startup["url"],
            score=60,
            tags=[category],
            is_import_opportunity=import_opportunity,
        )
