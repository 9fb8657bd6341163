import logging
from dataclasses import dataclass, field
from typing import List, Optional

from core.entities import AggregatedData, MicroSaaSIdea, ScoringWeights
from core.profiles import DEFAULT_WEIGHTS
from core.scoring import rank_ideas
from processing.aggregator import AggregateOptions, Aggregator
from processing.signals import classify_friction_severity, detect_lead_user_indicators
from services.config import TopicConfig
from workflows.base import IdeaGenerator

logger = logging.getLogger(__name__)


@dataclass
class HuntResult:
    topic: TopicConfig
    evidence: AggregatedData
    ideas: List[MicroSaaSIdea] = field(default_factory=list)


def enrich_idea(idea: MicroSaaSIdea, topic: TopicConfig) -> MicroSaaSIdea:
    """Fill friction and lead-user fields the generator left empty."""
    update = {}
    if idea.friction_severity is None:
        update["friction_severity"] = classify_friction_severity(f"{idea.problem} {idea.evidence_source}")
    if not idea.lead_user_indicators and topic.lead_user_patterns:
        text = f"{idea.problem} {idea.evidence_source}".lower()
        signals = [p for p in topic.lead_user_patterns if p.lower() in text]
        update["lead_user_indicators"] = detect_lead_user_indicators(signals)
    if not idea.vertical:
        update["vertical"] = topic.name
    return idea.model_copy(update=update) if update else idea


class OpportunityHunt:
    """
    Aggregates evidence for a topic, asks the generator for ideas and ranks
    them with the scoring engine.
    """

    def __init__(
        self,
        aggregator: Aggregator,
        generator: IdeaGenerator,
        weights: ScoringWeights = DEFAULT_WEIGHTS,
        min_score: int = 0,
    ):
        self.aggregator = aggregator
        self.generator = generator
        self.weights = weights
        self.min_score = min_score

    async def run(self, topic: TopicConfig, options: Optional[AggregateOptions] = None) -> HuntResult:
        evidence = await self.aggregator.aggregate(topic, options)
        logger.info(f"Collected {evidence.total_items} evidence items for {topic.name}")

        if evidence.total_items == 0:
            logger.info(f"No evidence for {topic.name}, skipping idea generation")
            return HuntResult(topic=topic, evidence=evidence)

        try:
            ideas = await self.generator.generate(topic, evidence)
        except Exception as e:
            logger.error(f"Idea generation failed ({self.generator.name}): {e}")
            return HuntResult(topic=topic, evidence=evidence)

        ideas = [enrich_idea(idea, topic) for idea in ideas]
        ranked = rank_ideas(ideas, self.weights, self.min_score)
        logger.info(f"Ranked {len(ranked)} of {len(ideas)} ideas at or above {self.min_score}")

        return HuntResult(topic=topic, evidence=evidence, ideas=ranked)
