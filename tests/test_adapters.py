import asyncio
import json
from urllib.parse import unquote

import httpx

from conftest import RequestLog, mock_http
from ingestion.base import SearchOptions
from ingestion.betalist import BetaListAdapter, is_import_opportunity, parse_startups
from ingestion.devto import DevToAdapter, tags_for_topic
from ingestion.g2 import G2Adapter
from ingestion.github import GitHubAdapter
from ingestion.hackernews import HackerNewsAdapter
from ingestion.hashnode import HashnodeAdapter
from ingestion.http_client import ProxyFetchClient, ProxyStrategy
from ingestion.indiehackers import IndieHackersAdapter
from ingestion.lobsters import LobstersAdapter
from ingestion.medium import MediumAdapter, author_from_url
from ingestion.oasisofideas import OasisOfIdeasAdapter, categorize, parse_ideas
from ingestion.producthunt import ProductHuntAdapter, topics_for_vertical
from ingestion.quora import QuoraAdapter, clean_title
from ingestion.reddit import RedditAdapter
from ingestion.search_client import QuotaTrackedSearchClient
from ingestion.serper import SerperAdapter
from ingestion.stackoverflow import StackOverflowAdapter
from services.usage_store import MemoryUsageStore

PROXY = (ProxyStrategy("local", "https://proxy.test/?url={url}"),)


def fetcher_for(handler):
    log = RequestLog(handler)
    return ProxyFetchClient(mock_http(log), PROXY), log


def proxied_target(request: httpx.Request) -> str:
    return unquote(request.url.params["url"])


def run_search(adapter, intent, keywords, topic="Developer Tools", limit=20):
    return asyncio.run(adapter.search(keywords, SearchOptions(intent=intent, topic=topic, limit=limit)))


def test_search_never_raises():
    def handler(request):
        raise httpx.ConnectError("down", request=request)

    fetcher, _ = fetcher_for(handler)
    adapter = HackerNewsAdapter(fetcher, delay_scale=0)

    assert run_search(adapter, "show", ["crm"]) == []


def test_unknown_intent_returns_empty():
    fetcher, log = fetcher_for(lambda r: httpx.Response(200, json={}))
    assert run_search(HackerNewsAdapter(fetcher, delay_scale=0), "nope", ["crm"]) == []
    assert log.requests == []


def test_results_capped_by_limit():
    hits = {"hits": [{"objectID": str(n), "title": f"Show HN {n}", "points": n} for n in range(30)]}
    fetcher, _ = fetcher_for(lambda r: httpx.Response(200, json=hits))

    items = run_search(HackerNewsAdapter(fetcher, delay_scale=0), "show", ["crm"], limit=5)

    assert len(items) == 5


def test_hackernews_comments_need_substance():
    hits = {
        "hits": [
            {"objectID": "1", "comment_text": "<p>short</p>", "story_title": "Ask"},
            {"objectID": "2", "comment_text": "<p>" + "I wish there was a tool for this. " * 3 + "</p>",
             "story_title": "Invoicing", "points": 2, "num_comments": 1},
        ]
    }
    fetcher, _ = fetcher_for(lambda r: httpx.Response(200, json=hits))

    items = run_search(HackerNewsAdapter(fetcher, delay_scale=0), "comments", ["crm"])

    assert [i.id for i in items] == ["hn-2"]
    assert "<p>" not in items[0].content
    assert items[0].score == 4


def test_reddit_goes_through_proxy():
    listing = {
        "data": {
            "children": [
                {"data": {"title": "CRM is a nightmare", "selftext": "so slow", "permalink": "/r/sales/1",
                          "score": 10, "num_comments": 5, "subreddit": "sales", "created_utc": 1700000000}},
                {"data": {"title": "no permalink"}},
            ]
        }
    }
    fetcher, log = fetcher_for(lambda r: httpx.Response(200, json=listing))

    items = run_search(RedditAdapter(fetcher, delay_scale=0), "pain_points", ["CRM"])

    assert all(r.url.host == "proxy.test" for r in log.requests)
    assert proxied_target(log.requests[0]).startswith("https://www.reddit.com/search.json?q=CRM")
    assert len(items) == 1
    assert items[0].id == "reddit-https://www.reddit.com/r/sales/1"
    assert items[0].score == 20
    assert items[0].timestamp == 1700000000000


def test_devto_keeps_only_pain_articles():
    articles = [
        {"id": 1, "title": "Why invoicing is a problem", "description": "", "public_reactions_count": 4,
         "comments_count": 1, "tag_list": "saas, startup"},
        {"id": 2, "title": "My holiday photos", "description": "sunny"},
    ]
    fetcher, log = fetcher_for(lambda r: httpx.Response(200, json=articles))

    items = run_search(DevToAdapter(fetcher, delay_scale=0), "pain_points", ["Developer Tools"])

    assert [i.id for i in items] == ["devto-1"]
    assert items[0].score == 6
    assert items[0].tags == ["saas", "startup"]
    assert {r.url.params["tag"] for r in log.requests} == set(tags_for_topic("Developer Tools"))


def test_devto_topic_tags():
    assert tags_for_topic("Fintech for freelancers")[0] == "fintech"
    assert tags_for_topic("Gardening") == ["saas", "startup", "productivity", "automation"]


def test_github_rate_limit_gives_empty_result():
    fetcher, _ = fetcher_for(lambda r: httpx.Response(403, json={"message": "rate limited"}))
    assert run_search(GitHubAdapter(fetcher, delay_scale=0), "feature_requests", ["crm"]) == []


def test_github_bug_reports_need_discussion_and_send_token():
    issues = {
        "items": [
            {"id": 1, "title": "Sync broken", "comments": 5, "reactions": {"total_count": 2},
             "html_url": "https://github.com/x/1", "user": {"login": "ana"}},
            {"id": 2, "title": "Typo", "comments": 1},
        ]
    }
    fetcher, log = fetcher_for(lambda r: httpx.Response(200, json=issues))
    adapter = GitHubAdapter(fetcher, token="secret", delay_scale=0)

    items = run_search(adapter, "bug_reports", ["crm"])

    assert [i.id for i in items] == ["github-1"]
    assert items[0].score == 16
    assert log.requests[0].headers["Authorization"] == "Bearer secret"
    assert adapter.rate_limit_description() == "30 req/min"


def test_stackoverflow_score_and_high_demand_filter():
    questions = {
        "items": [
            {"question_id": 1, "title": "How to sync", "score": 5, "view_count": 9999, "answer_count": 1},
            {"question_id": 2, "title": "Answered a lot", "score": 5, "view_count": 5000, "answer_count": 7},
            {"question_id": 3, "title": "Unseen", "score": 1, "view_count": 10, "answer_count": 0},
        ]
    }
    fetcher, _ = fetcher_for(lambda r: httpx.Response(200, json=questions))

    items = run_search(StackOverflowAdapter(fetcher, delay_scale=0), "high_demand", ["crm"])

    assert [i.id for i in items] == ["so-1"]
    assert items[0].score == 50.0


def test_stackoverflow_api_error():
    fetcher, _ = fetcher_for(lambda r: httpx.Response(200, json={"error_id": 502, "error_message": "throttled"}))
    assert run_search(StackOverflowAdapter(fetcher, delay_scale=0), "questions", ["crm"]) == []


def test_indiehackers_posts_to_algolia_directly():
    hits = {"hits": [{"objectID": "abc", "title": "Struggling with churn", "votesCount": 3,
                      "commentsCount": 2, "slug": "struggling-with-churn"}]}
    fetcher, log = fetcher_for(lambda r: httpx.Response(200, json=hits))

    items = run_search(IndieHackersAdapter(fetcher, delay_scale=0), "pain_points", ["churn"])

    request = log.requests[0]
    assert request.method == "POST"
    assert request.url.host.endswith("algolia.net")
    assert request.headers["X-Algolia-Application-Id"]
    assert json.loads(request.content)["query"] == "churn"
    assert items[0].id == "ih-abc"
    assert items[0].url == "https://www.indiehackers.com/post/struggling-with-churn"
    assert items[0].score == 12


def test_lobsters_filters_feeds_by_keyword():
    stories = [
        {"short_id": "a1", "title": "Monorepo tooling is painful", "score": 9, "comment_count": 2,
         "comments_url": "https://lobste.rs/s/a1", "submitter_user": {"username": "kim"}},
        {"short_id": "b2", "title": "Rust release notes", "score": 50},
    ]
    fetcher, log = fetcher_for(lambda r: httpx.Response(200, json=stories))

    items = run_search(LobstersAdapter(fetcher, delay_scale=0), "pain_points", ["monorepo"])

    assert [i.id for i in items] == ["lobsters-a1"]
    assert items[0].author == "kim"
    assert len(log.requests) == 5


def test_hashnode_fetches_feed_once():
    feed = {
        "data": {
            "feed": {
                "edges": [
                    {"node": {"id": "p1", "title": "Invoicing problem for freelancers", "brief": "",
                              "reactionCount": 3, "responseCount": 1, "author": {"username": "lu"}}},
                    {"node": {"id": "p2", "title": "Cooking", "brief": "pasta"}},
                ]
            }
        }
    }
    fetcher, log = fetcher_for(lambda r: httpx.Response(200, json=feed))

    items = run_search(HashnodeAdapter(fetcher, delay_scale=0), "pain_points", ["invoicing", "billing"])

    assert len(log.requests) == 1
    assert [i.id for i in items] == ["hashnode-p1"]
    assert items[0].score == 9


BETALIST_HTML = """
<html><body>
  <a href="/startups/invoice-bot">Invoice Bot</a>
  <a href="/startups/invoice-bot">Invoice Bot again</a>
  <a href="/startups/crm-latam">CRM for teams</a>
  <a href="/about">About</a>
</body></html>
"""


def test_betalist_parsing_and_import_flag():
    startups = parse_startups(BETALIST_HTML)

    assert [s["slug"] for s in startups] == ["invoice-bot", "crm-latam"]
    assert startups[0]["name"] == "Invoice Bot"
    assert startups[0]["tagline"] == ""
    assert startups[1]["tagline"] == "CRM for teams"
    assert is_import_opportunity("Invoice Bot")
    assert not is_import_opportunity("Crm Latam")


def test_betalist_imports_are_marked():
    fetcher, _ = fetcher_for(lambda r: httpx.Response(200, text=BETALIST_HTML))

    items = run_search(BetaListAdapter(fetcher, delay_scale=0), "imports", ["invoice"])

    assert [i.id for i in items] == ["betalist-invoice-bot"]
    assert items[0].is_import_opportunity is True
    assert items[0].score == 60


OASIS_HTML = """
<html><body>
  <div class="idea-card">
    <h3>Invoice reminders for freelancers</h3>
    <p>Automatically chase late payments without awkward emails.</p>
    <span>12 votes</span>
    <a href="/ideas/invoice-reminders">Open</a>
  </div>
  <div class="idea-card"><p>No heading here at all, skipped.</p></div>
</body></html>
"""


def test_oasis_parsing():
    ideas = parse_ideas(OASIS_HTML)

    assert len(ideas) == 1
    assert ideas[0]["votes"] == 12
    assert ideas[0]["url"] == "https://oasis-of-ideas.com/ideas/invoice-reminders"
    assert ideas[0]["category"] == "fintech"


def test_oasis_falls_back_to_list_items():
    html = "<ul><li>A tool that turns meeting notes into follow-up tasks automatically</li><li>short</li></ul>"
    ideas = parse_ideas(html)
    assert len(ideas) == 1
    assert ideas[0]["category"] == "productivity"


def test_oasis_vertical_intent():
    fetcher, _ = fetcher_for(lambda r: httpx.Response(200, text=OASIS_HTML))

    items = run_search(OasisOfIdeasAdapter(fetcher, delay_scale=0), "vertical", ["freelancers"])

    assert len(items) == 1
    assert items[0].score == 56
    assert items[0].tags == ["fintech", "raw_idea"]


def test_categorize():
    assert categorize("A github bot for code review") == "developer-tools"
    assert categorize("Dog walking") == "general"


def test_producthunt_requires_credentials():
    adapter = ProductHuntAdapter(mock_http(lambda r: httpx.Response(500)), delay_scale=0)
    assert not adapter.is_configured()
    assert not asyncio.run(adapter.can_use())


def test_producthunt_trending():
    posts = {
        "data": {
            "posts": {
                "edges": [
                    {"node": {"id": "7", "name": "Invoicer", "tagline": "Get paid", "description": "Fast invoices",
                              "votesCount": 100, "commentsCount": 10, "website": "https://invoicer.test",
                              "topics": {"edges": [{"node": {"name": "Fintech"}}]}}},
                ]
            }
        }
    }

    def handler(request):
        if request.url.path == "/v2/oauth/token":
            assert json.loads(request.content)["grant_type"] == "client_credentials"
            return httpx.Response(200, json={"access_token": "tok"})
        assert request.headers["Authorization"] == "Bearer tok"
        return httpx.Response(200, json=posts)

    log = RequestLog(handler)
    adapter = ProductHuntAdapter(mock_http(log), api_key="k", api_secret="s", delay_scale=0)

    items = run_search(adapter, "trending", ["fintech"])

    assert items[0].id == "ph-7"
    assert items[0].score == 130
    assert items[0].content == "Get paid - Fast invoices"
    assert items[0].tags == ["Fintech"]


def test_producthunt_topic_map():
    assert topics_for_vertical("Fintech tools") == ["fintech", "personal-finance", "invoicing"]
    assert topics_for_vertical("Gardening") == ["saas", "productivity"]


def serper_client(organic, max_queries=100, safety_buffer=0):
    def handler(request):
        return httpx.Response(200, json={"organic": organic})

    log = RequestLog(handler)
    client = QuotaTrackedSearchClient(
        mock_http(log), MemoryUsageStore(), api_key="key",
        max_queries=max_queries, safety_buffer=safety_buffer,
    )
    return client, log


def test_serper_pain_points_short_circuit_on_quota():
    client, log = serper_client([{"title": "t", "link": "https://reddit.com/r/x/1"}], max_queries=1)

    items = run_search(SerperAdapter(client, delay_scale=0), "pain_points", ["crm"])

    assert len(log.requests) == 1
    assert items[0].id == "serper-https://reddit.com/r/x/1"
    assert items[0].score == 100
    assert items[0].tags == ["reddit-serper"]


def test_serper_lead_users():
    client, log = serper_client([
        {"title": "a", "link": "https://x.test/1"},
        {"title": "b", "link": "https://x.test/2"},
    ])

    items = run_search(SerperAdapter(client, delay_scale=0), "lead_users", ["crm"])

    assert len(log.requests) == 3
    assert [i.id for i in items] == ["serper-https://x.test/1", "serper-https://x.test/2"]
    assert [i.score for i in items] == [100, 90]
    assert all(i.tags == ["lead-user"] for i in items)


def test_g2_keeps_only_g2_links():
    client, log = serper_client([
        {"title": "Acme CRM Reviews 2024 | G2", "link": "https://www.g2.com/products/acme/reviews"},
        {"title": "Elsewhere", "link": "https://example.test/acme"},
    ])

    items = run_search(G2Adapter(client, delay_scale=0), "market_gaps", ["crm"])

    assert [i.id for i in items] == ["g2-https://www.g2.com/products/acme/reviews"]
    assert items[0].author == "Acme CRM"
    assert items[0].score == 50
    assert json.loads(log.requests[0].content)["q"].startswith('site:g2.com "crm"')


def test_search_backed_adapter_unusable_without_key():
    client = QuotaTrackedSearchClient(mock_http(lambda r: httpx.Response(500)), MemoryUsageStore())
    adapter = QuoraAdapter(client, delay_scale=0)
    assert not adapter.is_configured()
    assert not asyncio.run(adapter.can_use())


def test_quora_and_medium_helpers():
    assert clean_title("How do I automate invoices? - Quora") == "How do I automate invoices?"
    assert author_from_url("https://medium.com/@ana/why-i-built-it-123") == "ana"
    assert author_from_url("https://blog.test/post") is None


def test_medium_built_because_goes_to_lead_users():
    client, _ = serper_client([{"title": "Why I built it | Medium", "link": "https://medium.com/@ana/x"}])
    adapter = MediumAdapter(client, delay_scale=0)

    items = run_search(adapter, "built_because", ["crm"])

    assert adapter.intents["built_because"].bucket == "lead_user_signals"
    assert items[0].title == "Why I built it"
    assert items[0].author == "ana"
    assert items[0].score == 45


def test_search_results_keep_their_date():
    client, _ = serper_client([
        {"title": "Dated", "link": "https://www.quora.com/q/1", "date": "Jan 5, 2024"},
        {"title": "Iso", "link": "https://www.quora.com/q/2", "date": "2024-01-05T00:00:00Z"},
    ])

    items = run_search(QuoraAdapter(client, delay_scale=0), "pain_points", ["crm"])

    assert [i.timestamp for i in items] == [1704412800000, 1704412800000]


def test_direct_api_sources_skip_the_proxy():
    fetcher, log = fetcher_for(lambda r: httpx.Response(200, json={"items": []}))

    run_search(StackOverflowAdapter(fetcher, delay_scale=0), "questions", ["crm"])

    assert log.requests
    assert all(r.url.host == "api.stackexchange.com" for r in log.requests)
