import asyncio
import json

import pytest

from core.entities import AggregatedData, EvidenceItem, MicroSaaSIdea
from delivery.file_delivery import FileReport
from processing.aggregator import AggregateOptions, AggregationCancelled, CancellationToken, Aggregator
from workflows import HuntResult, IdeaGenerator, OpportunityHunt
from workflows.opportunity_hunt import enrich_idea


def evidence(count=2):
    items = tuple(
        EvidenceItem(id=f"hackernews-{i}", source="hackernews", title=f"Pain {i}", score=10 * i)
        for i in range(count, 0, -1)
    )
    return AggregatedData(pain_points=items, sources_used=("hackernews",), total_items=len(items))


class StubAggregator:
    def __init__(self, data):
        self.data = data
        self.calls = 0

    async def aggregate(self, topic, options=None):
        self.calls += 1
        return self.data


class ListGenerator(IdeaGenerator):
    name = "list"

    def __init__(self, ideas=None, error=None):
        self.ideas = ideas or []
        self.error = error
        self.calls = 0

    async def generate(self, topic, data):
        self.calls += 1
        if self.error:
            raise self.error
        return [idea.model_copy() for idea in self.ideas]


IDEAS = [
    MicroSaaSIdea(title="Weak", problem="A minor annoyance in the settings page"),
    MicroSaaSIdea(
        title="Strong",
        problem="Teams have to manually copy review comments, it is a nightmare",
        evidence_source="We wrote a script to sync them every night",
        jtbd="When reviewing I want to see history so I can decide faster",
    ),
]


def test_enrich_idea_fills_missing_fields(topic):
    idea = enrich_idea(IDEAS[1], topic)
    assert idea.friction_severity == "critical_pain"
    assert idea.vertical == "Developer Tools"
    assert [i.description for i in idea.lead_user_indicators] == ["wrote a script to"]
    assert idea.lead_user_indicators[0].type == "custom_script"


def test_enrich_idea_keeps_given_fields(topic):
    given = MicroSaaSIdea(title="x", friction_severity="minor_bug", vertical="CRM")
    idea = enrich_idea(given, topic)
    assert idea.friction_severity == "minor_bug"
    assert idea.vertical == "CRM"


def test_hunt_ranks_enriched_ideas(topic):
    hunt = OpportunityHunt(StubAggregator(evidence()), ListGenerator(IDEAS))
    result = asyncio.run(hunt.run(topic))

    assert isinstance(result, HuntResult)
    assert [i.title for i in result.ideas] == ["Strong", "Weak"]
    assert result.ideas[0].potential_score > result.ideas[1].potential_score


def test_hunt_min_score_filters(topic):
    hunt = OpportunityHunt(StubAggregator(evidence()), ListGenerator(IDEAS), min_score=60)
    result = asyncio.run(hunt.run(topic))
    assert [i.title for i in result.ideas] == ["Strong"]


def test_no_evidence_skips_generator(topic):
    generator = ListGenerator(IDEAS)
    result = asyncio.run(OpportunityHunt(StubAggregator(AggregatedData()), generator).run(topic))
    assert generator.calls == 0
    assert result.ideas == []


def test_generator_failure_keeps_evidence(topic):
    generator = ListGenerator(error=RuntimeError("model unavailable"))
    result = asyncio.run(OpportunityHunt(StubAggregator(evidence()), generator).run(topic))
    assert result.ideas == []
    assert result.evidence.total_items == 2


def test_cancellation_propagates(topic):
    token = CancellationToken()
    token.cancel()
    hunt = OpportunityHunt(Aggregator([]), ListGenerator(IDEAS))
    with pytest.raises(AggregationCancelled):
        asyncio.run(hunt.run(topic, AggregateOptions(cancellation=token)))


def test_file_report(tmp_path, topic):
    hunt = OpportunityHunt(StubAggregator(evidence(7)), ListGenerator(IDEAS))
    result = asyncio.run(hunt.run(topic))

    asyncio.run(FileReport(str(tmp_path)).deliver(report_date="2026-01-31", result=result))

    payload = json.loads((tmp_path / "developer-tools_2026-01-31.json").read_text(encoding="utf-8"))
    assert payload["topic"]["id"] == "developer-tools"
    assert [i["title"] for i in payload["ideas"]] == ["Strong", "Weak"]
    assert len(payload["evidence"]["pain_points"]) == 7
    assert payload["evidence"]["sources_used"] == ["hackernews"]

    markdown = (tmp_path / "developer-tools_2026-01-31.md").read_text(encoding="utf-8")
    assert markdown.startswith("# Developer Tools (2026-01-31)")
    assert "### Strong" in markdown
    assert "### Pain Points (7)" in markdown
    assert markdown.count("(hackernews,") == 5


def test_file_report_without_ideas(tmp_path, topic):
    result = HuntResult(topic=topic, evidence=AggregatedData())
    asyncio.run(FileReport(str(tmp_path)).deliver(report_date="2026-01-31", result=result))

    markdown = (tmp_path / "developer-tools_2026-01-31.md").read_text(encoding="utf-8")
    assert "_No ideas scored above the threshold._" in markdown
