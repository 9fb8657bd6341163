import os
import sys
from typing import Callable, List

import httpx
import pytest

SRC = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "src")
if SRC not in sys.path:
    sys.path.insert(0, SRC)

from services.config import TopicConfig  # noqa: E402


def mock_http(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
    """AsyncClient whose every request is answered by `handler`."""
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class RequestLog:
    """Handler wrapper that records every request it answers."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]):
        self.handler = handler
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    @property
    def urls(self) -> List[str]:
        return [str(r.url) for r in self.requests]


@pytest.fixture
def topic() -> TopicConfig:
    return TopicConfig(
        id="developer-tools",
        name="Developer Tools",
        search_keywords=[
            "vscode extension",
            "git workflow",
            "code review",
            "linting setup",
            "monorepo management",
        ],
        platforms=["reddit", "hackernews"],
        lead_user_patterns=["wrote a script to", "built internal tool"],
    )
