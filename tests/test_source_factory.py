import httpx
import pytest

from conftest import mock_http
from ingestion.base import WAVE_DIRECT, WAVE_OPTIONAL, WAVE_PROXIED
from ingestion.http_client import ProxyFetchClient
from ingestion.search_client import QuotaTrackedSearchClient
from ingestion.source_factory import SOURCE_NAMES, create_adapters
from services.config import Config, SourcesConfig
from services.usage_store import MemoryUsageStore


def build(enabled=None):
    http = mock_http(lambda r: httpx.Response(200, json={}))
    config = Config(DATABASE_PATH=":memory:", sources=SourcesConfig(enabled=enabled or [], delay_scale=0))
    return create_adapters(config, ProxyFetchClient(http), QuotaTrackedSearchClient(http, MemoryUsageStore()))


def test_all_sources_by_default():
    adapters = build()
    assert [a.name for a in adapters] == list(SOURCE_NAMES)
    assert len(adapters) == 17
    assert all(a.delay_scale == 0 for a in adapters)


def test_waves():
    waves = {a.name: a.wave for a in build()}
    assert waves["hackernews"] == WAVE_DIRECT
    assert waves["reddit"] == WAVE_DIRECT
    assert waves["betalist"] == WAVE_PROXIED
    assert waves["producthunt"] == WAVE_OPTIONAL
    assert waves["g2"] == WAVE_OPTIONAL


def test_every_intent_targets_a_bucket():
    from core.entities import BUCKETS

    for adapter in build():
        assert adapter.intents
        for intent in adapter.intents.values():
            assert intent.bucket in BUCKETS


def test_enabled_subset_keeps_registry_order():
    assert [a.name for a in build(["serper", "hackernews"])] == ["hackernews", "serper"]


def test_unknown_source_rejected():
    with pytest.raises(ValueError):
        build(["myspace"])
