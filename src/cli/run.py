import argparse
import asyncio
import json
import logging
import time
from datetime import date
from pathlib import Path
from typing import List, Optional

import httpx

from core.entities import MicroSaaSIdea
from core.profiles import weights_for_profile
from core.scoring import calculate_score, rank_ideas
from delivery.file_delivery import FileReport
from ingestion.http_client import ProxyFetchClient, ProxyHealth, strategies_by_name
from ingestion.search_client import QuotaTrackedSearchClient
from ingestion.source_factory import create_adapters
from processing.aggregator import AggregateOptions, Aggregator
from services.config import Config, get_topic, load_config
from services.database import Database
from services.logging import setup_logging
from services.usage_store import SqliteUsageStore
from workflows.opportunity_hunt import HuntResult

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="opportunity-forge",
        description="Collect public evidence of software pain points and score product ideas.",
    )
    parser.add_argument("--config", help="Path to config.yml")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    commands = parser.add_subparsers(dest="command", required=True)

    aggregate = commands.add_parser("aggregate", help="Collect evidence for a configured topic")
    aggregate.add_argument("topic", help="Topic id from config.yml")
    aggregate.add_argument("--no-optional", action="store_true", help="Skip metered and credentialed sources")
    aggregate.add_argument("--output", help="Report directory (defaults to OUTPUT_DIR)")

    quick = commands.add_parser("quick-search", help="Search Hacker News stories")
    quick.add_argument("query")

    commands.add_parser("status", help="Show which sources are configured and usable")
    commands.add_parser("usage", help="Show Serper quota usage")
    commands.add_parser("reset-usage", help="Zero the Serper usage counter")

    score = commands.add_parser("score", help="Score and rank ideas from a JSON file")
    score.add_argument("ideas", help="JSON file holding a list of ideas")
    score.add_argument("--profile", help="Weight profile (default, solo_dev, small_team, agency)")
    score.add_argument("--min-score", type=int, help="Drop ideas below this total")

    return parser


def build_search_client(config: Config, http: httpx.AsyncClient) -> QuotaTrackedSearchClient:
    return QuotaTrackedSearchClient(
        http,
        SqliteUsageStore(Database(config.DATABASE_PATH)),
        api_key=config.serper.api_key,
        max_queries=config.serper.max_queries,
        safety_buffer=config.serper.safety_buffer,
    )


def build_aggregator(config: Config, http: httpx.AsyncClient) -> Aggregator:
    fetcher = ProxyFetchClient(
        http,
        strategies=strategies_by_name(config.proxy.strategies),
        health=ProxyHealth(reset_interval=config.proxy.reset_interval_seconds),
        failure_threshold=config.proxy.failure_threshold,
    )
    return Aggregator(create_adapters(config, fetcher, build_search_client(config, http)))


async def run_aggregate(config: Config, http: httpx.AsyncClient, args: argparse.Namespace) -> None:
    topic = get_topic(config, args.topic)
    aggregator = build_aggregator(config, http)

    options = AggregateOptions(
        use_optional_providers=False if args.no_optional else config.sources.use_optional_providers,
        max_items_per_source=config.sources.max_items_per_source,
    )
    evidence = await aggregator.aggregate(topic, options)

    report = FileReport(args.output or config.OUTPUT_DIR)
    await report.deliver(
        report_date=date.today().isoformat(),
        result=HuntResult(topic=topic, evidence=evidence),
    )

    print(f"{topic.name}: {evidence.total_items} items")
    print(f"  pain points:       {len(evidence.pain_points)}")
    print(f"  lead user signals: {len(evidence.lead_user_signals)}")
    print(f"  competitors:       {len(evidence.competitors)}")
    print(f"  trending topics:   {len(evidence.trending_topics)}")
    print(f"  sources: {', '.join(evidence.sources_used)}")


async def run_quick_search(config: Config, http: httpx.AsyncClient, args: argparse.Namespace) -> None:
    items = await build_aggregator(config, http).quick_search(args.query)
    for item in items:
        print(f"{item.score:>6.0f}  {item.title}\n        {item.url}")


async def run_status(config: Config, http: httpx.AsyncClient, args: argparse.Namespace) -> None:
    aggregator = build_aggregator(config, http)
    for status in await aggregator.source_status():
        mark = "ok" if status.available else ("--" if status.configured else "off")
        line = f"{mark:>3}  {status.label:<16} {status.rate_limit_description}"
        if status.usage:
            line += f" ({status.usage})"
        print(line)

    proxy = aggregator.proxy_status()
    if proxy:
        print(f"proxy: {proxy['current_proxy']}, failures: {proxy['failures'] or 'none'}")


async def run_usage(config: Config, http: httpx.AsyncClient, args: argparse.Namespace) -> None:
    stats = await build_search_client(config, http).usage_stats()
    print(json.dumps(stats.model_dump(), indent=2))


async def run_reset_usage(config: Config, http: httpx.AsyncClient, args: argparse.Namespace) -> None:
    await build_search_client(config, http).reset_usage()
    print("Serper usage counter reset")


def run_score(config: Config, args: argparse.Namespace) -> None:
    weights = weights_for_profile(args.profile or config.SCORING_PROFILE)
    min_score = config.MIN_SCORE if args.min_score is None else args.min_score

    raw = json.loads(Path(args.ideas).read_text(encoding="utf-8"))
    if not isinstance(raw, list):
        raise ValueError(f"Expected a list of ideas in {args.ideas}")
    ideas = [MicroSaaSIdea.model_validate(entry) for entry in raw]

    # Breakdowns first: ranking overwrites potential_score, which feeds the base.
    results = {id(idea): calculate_score(idea, weights) for idea in ideas}
    ranked = rank_ideas(ideas, weights, min_score)

    output = []
    for idea in ranked:
        result = results[id(idea)]
        output.append({
            "title": idea.title,
            "total_score": result.total_score,
            "confidence": result.confidence,
            "breakdown": result.breakdown.__dict__,
        })
    print(json.dumps(output, indent=2, ensure_ascii=False))


COMMANDS = {
    "aggregate": run_aggregate,
    "quick-search": run_quick_search,
    "status": run_status,
    "usage": run_usage,
    "reset-usage": run_reset_usage,
}


async def main(argv: Optional[List[str]] = None) -> None:
    start_time = time.perf_counter()
    args = build_parser().parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO)

    config = load_config(args.config)

    if args.command == "score":
        run_score(config, args)
        return

    async with httpx.AsyncClient(
        timeout=config.HTTP_TIMEOUT,
        headers={"User-Agent": config.USER_AGENT},
        follow_redirects=True,
    ) as http:
        await COMMANDS[args.command](config, http, args)

    end_time = time.perf_counter()
    logger.info(f"Total time: {end_time - start_time:.2f}s")


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
