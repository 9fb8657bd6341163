"""
Source Factory - Creates evidence source adapters from configuration.
"""
import logging
from typing import Callable, Dict, List

from ingestion.alternativeto import AlternativeToAdapter
from ingestion.base import SourceAdapter
from ingestion.betalist import BetaListAdapter
from ingestion.capterra import CapterraAdapter
from ingestion.devto import DevToAdapter
from ingestion.g2 import G2Adapter
from ingestion.github import GitHubAdapter
from ingestion.hackernews import HackerNewsAdapter
from ingestion.hashnode import HashnodeAdapter
from ingestion.http_client import ProxyFetchClient
from ingestion.indiehackers import IndieHackersAdapter
from ingestion.lobsters import LobstersAdapter
from ingestion.medium import MediumAdapter
from ingestion.oasisofideas import OasisOfIdeasAdapter
from ingestion.producthunt import ProductHuntAdapter
from ingestion.quora import QuoraAdapter
from ingestion.reddit import RedditAdapter
from ingestion.search_client import QuotaTrackedSearchClient
from ingestion.serper import SerperAdapter
from ingestion.stackoverflow import StackOverflowAdapter
from services.config import Config

logger = logging.getLogger(__name__)


AdapterBuilder = Callable[[Config, ProxyFetchClient, QuotaTrackedSearchClient], SourceAdapter]


def _delay(config: Config) -> float:
    return config.sources.delay_scale


# Registry order is plan order within a wave.
SOURCES: Dict[str, AdapterBuilder] = {
    "reddit": lambda c, f, s: RedditAdapter(f, delay_scale=_delay(c)),
    "hackernews": lambda c, f, s: HackerNewsAdapter(f, delay_scale=_delay(c)),
    "devto": lambda c, f, s: DevToAdapter(f, delay_scale=_delay(c)),
    "github": lambda c, f, s: GitHubAdapter(f, token=c.GITHUB_TOKEN, delay_scale=_delay(c)),
    "stackoverflow": lambda c, f, s: StackOverflowAdapter(f, delay_scale=_delay(c)),
    "indiehackers": lambda c, f, s: IndieHackersAdapter(f, delay_scale=_delay(c)),
    "lobsters": lambda c, f, s: LobstersAdapter(f, delay_scale=_delay(c)),
    "hashnode": lambda c, f, s: HashnodeAdapter(f, delay_scale=_delay(c)),
    "betalist": lambda c, f, s: BetaListAdapter(f, delay_scale=_delay(c)),
    "oasisofideas": lambda c, f, s: OasisOfIdeasAdapter(f, delay_scale=_delay(c)),
    "producthunt": lambda c, f, s: ProductHuntAdapter(
        f.http,
        api_key=c.producthunt.api_key,
        api_secret=c.producthunt.api_secret,
        delay_scale=_delay(c),
    ),
    "serper": lambda c, f, s: SerperAdapter(s, delay_scale=_delay(c)),
    "g2": lambda c, f, s: G2Adapter(s, delay_scale=_delay(c)),
    "capterra": lambda c, f, s: CapterraAdapter(s, delay_scale=_delay(c)),
    "alternativeto": lambda c, f, s: AlternativeToAdapter(s, delay_scale=_delay(c)),
    "quora": lambda c, f, s: QuoraAdapter(s, delay_scale=_delay(c)),
    "medium": lambda c, f, s: MediumAdapter(s, delay_scale=_delay(c)),
}

SOURCE_NAMES = tuple(SOURCES)


def create_source_adapter(
    name: str,
    config: Config,
    fetcher: ProxyFetchClient,
    search_client: QuotaTrackedSearchClient,
) -> SourceAdapter:
    """
    Create one adapter by registry name.

    Raises:
        ValueError: If the source name is unknown
    """
    builder = SOURCES.get(name.lower())
    if builder is None:
        raise ValueError(f"Unknown source: {name}")
    return builder(config, fetcher, search_client)


def create_adapters(
    config: Config,
    fetcher: ProxyFetchClient,
    search_client: QuotaTrackedSearchClient,
) -> List[SourceAdapter]:
    """
    Create every enabled adapter, in registry order.
    An empty `sources.enabled` list enables all of them.
    """
    enabled = {n.lower() for n in config.sources.enabled} or set(SOURCE_NAMES)
    unknown = enabled - set(SOURCE_NAMES)
    if unknown:
        raise ValueError(f"Unknown sources in config: {sorted(unknown)}")

    adapters = [
        create_source_adapter(name, config, fetcher, search_client)
        for name in SOURCE_NAMES
        if name in enabled
    ]
    logger.info(f"Created {len(adapters)} source adapters: {', '.join(a.name for a in adapters)}")
    return adapters
