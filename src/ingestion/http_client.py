"""
HTTP fetching with proxy failover.

Some providers refuse direct calls, so requests are rewritten through a
chain of public pass-through proxies. The client remembers the last proxy
that worked and benches proxies that keep failing, but never fails a call
without giving the final strategy a try.
"""
import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence
from urllib.parse import quote, urlparse

import httpx

logger = logging.getLogger(__name__)


DEFAULT_ACCEPT = "application/json, text/html, */*"

# Hosts that answer direct requests, no proxy needed.
DIRECT_HOSTS = (
    "algolia.net",
    "api.stackexchange.com",
    "api.github.com",
    "dev.to",
    "hn.algolia.com",
)


class AllProxiesExhausted(Exception):
    """Every strategy failed for one request."""

    def __init__(self, url: str, errors: List[str]):
        self.url = url
        self.errors = errors
        super().__init__(f"All proxies failed for {url}. Errors: {', '.join(errors)}")


@dataclass(frozen=True)
class ProxyStrategy:
    """
    A pure URL rewrite. `template` receives the target as {url}, percent
    encoded unless `encode` is False.
    """
    name: str
    template: str
    encode: bool = True
    envelope: bool = False  # body wrapped as {"data": ...}, reply in "contents"

    def format_url(self, url: str) -> str:
        target = quote(url, safe="") if self.encode else url
        return self.template.format(url=target)


DEFAULT_STRATEGIES = (
    ProxyStrategy("corsproxy.io", "https://corsproxy.io/?url={url}"),
    ProxyStrategy("allorigins.win", "https://api.allorigins.win/raw?url={url}"),
    ProxyStrategy("codetabs", "https://api.codetabs.com/v1/proxy?quest={url}"),
    ProxyStrategy("cors.sh", "https://proxy.cors.sh/{url}", encode=False),
)

POST_STRATEGIES = (
    ProxyStrategy("corsproxy.io", "https://corsproxy.io/?url={url}"),
    ProxyStrategy("allorigins.win", "https://api.allorigins.win/post?url={url}", envelope=True),
)


def strategies_by_name(names: Sequence[str]) -> Sequence[ProxyStrategy]:
    """Pick built-in strategies by name, keeping the given order."""
    if not names:
        return DEFAULT_STRATEGIES

    known = {s.name: s for s in DEFAULT_STRATEGIES}
    unknown = [n for n in names if n not in known]
    if unknown:
        raise ValueError(f"Unknown proxy strategies: {unknown}")
    return tuple(known[n] for n in names)


class ProxyHealth:
    """
    Last-known-good index and rolling failure counts.

    Counters clear every `reset_interval` seconds so a benched proxy always
    comes back. Safe to reset() at any time.
    """

    def __init__(
        self,
        reset_interval: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.reset_interval = reset_interval
        self.clock = clock
        self.current_index = 0
        self.failures: Dict[str, int] = {}
        self.last_reset = clock()

    def maybe_reset(self) -> None:
        now = self.clock()
        if now - self.last_reset >= self.reset_interval:
            self.failures.clear()
            self.last_reset = now

    def failure_count(self, name: str) -> int:
        return self.failures.get(name, 0)

    def record_failure(self, name: str) -> None:
        self.failures[name] = self.failures.get(name, 0) + 1

    def record_success(self, index: int, name: str) -> None:
        self.current_index = index
        self.failures[name] = 0

    def reset(self) -> None:
        self.current_index = 0
        self.failures.clear()
        self.last_reset = self.clock()


class ProxyFetchClient:
    def __init__(
        self,
        http: httpx.AsyncClient,
        strategies: Sequence[ProxyStrategy] = DEFAULT_STRATEGIES,
        health: Optional[ProxyHealth] = None,
        failure_threshold: int = 3,
    ):
        if not strategies:
            raise ValueError("At least one proxy strategy is required")

        self.http = http
        self.strategies = tuple(strategies)
        self.health = health or ProxyHealth()
        self.failure_threshold = failure_threshold

    async def fetch_through_proxy(
        self,
        url: str,
        headers: Optional[Dict[str, str]] = None,
    ) -> httpx.Response:
        """
        GET `url` through the proxy chain, starting at the last proxy that
        worked. Raises AllProxiesExhausted when every strategy fails.
        """
        self.health.maybe_reset()

        merged = {"Accept": DEFAULT_ACCEPT, **(headers or {})}
        total = len(self.strategies)
        errors: List[str] = []

        for attempt in range(total):
            index = (self.health.current_index + attempt) % total
            strategy = self.strategies[index]

            failures = self.health.failure_count(strategy.name)
            if failures >= self.failure_threshold and attempt < total - 1:
                continue

            try:
                response = await self.http.get(strategy.format_url(url), headers=merged)
            except httpx.HTTPError as e:
                self.health.record_failure(strategy.name)
                errors.append(f"{strategy.name}: {type(e).__name__}: {e}")
                continue

            if response.is_success:
                self.health.record_success(index, strategy.name)
                return response

            self.health.record_failure(strategy.name)
            errors.append(f"{strategy.name} returned {response.status_code}")

        logger.warning(f"[Proxy] Exhausted for {url}: {errors}")
        raise AllProxiesExhausted(url, errors)

    async def fetch_json(self, url: str, headers: Optional[Dict[str, str]] = None) -> Any:
        response = await self.fetch_through_proxy(
            url, {"Accept": "application/json", **(headers or {})}
        )
        return response.json()

    async def fetch_text(self, url: str, headers: Optional[Dict[str, str]] = None) -> str:
        response = await self.fetch_through_proxy(
            url, {"Accept": "text/html", **(headers or {})}
        )
        return response.text

    async def post_json(
        self,
        url: str,
        body: Any,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        """
        POST a JSON body. Tries the target directly first, then the POST
        capable proxies. Raises AllProxiesExhausted when all of them fail.
        """
        merged = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            **(headers or {}),
        }
        errors: List[str] = []

        try:
            response = await self.http.post(url, json=body, headers=merged)
            if response.is_success:
                return response.json()
            errors.append(f"direct returned {response.status_code}")
        except httpx.HTTPError as e:
            errors.append(f"direct: {type(e).__name__}: {e}")

        for strategy in POST_STRATEGIES:
            try:
                if strategy.envelope:
                    response = await self.http.post(
                        strategy.format_url(url),
                        json={"data": body},
                        headers={"Content-Type": "application/json"},
                    )
                else:
                    response = await self.http.post(
                        strategy.format_url(url), json=body, headers=merged
                    )
            except httpx.HTTPError as e:
                errors.append(f"{strategy.name}: {type(e).__name__}: {e}")
                continue

            if not response.is_success:
                errors.append(f"{strategy.name} returned {response.status_code}")
                continue

            if strategy.envelope:
                return json.loads(response.json()["contents"])
            return response.json()

        raise AllProxiesExhausted(url, errors)

    @staticmethod
    def needs_proxy(url: str) -> bool:
        host = urlparse(url).hostname or ""
        return not any(host == d or host.endswith("." + d) for d in DIRECT_HOSTS)

    async def smart_get(self, url: str, headers: Optional[Dict[str, str]] = None) -> httpx.Response:
        """Direct GET for hosts that allow it, proxy chain for the rest."""
        if self.needs_proxy(url):
            return await self.fetch_through_proxy(url, headers)

        response = await self.http.get(url, headers=headers)
        response.raise_for_status()
        return response

    async def smart_fetch_json(self, url: str, headers: Optional[Dict[str, str]] = None) -> Any:
        response = await self.smart_get(url, headers)
        return response.json()

    def status(self) -> Dict[str, Any]:
        return {
            "current_proxy": self.strategies[self.health.current_index % len(self.strategies)].name,
            "failures": dict(self.health.failures),
        }
