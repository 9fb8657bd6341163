"""
Multi-criteria opportunity scoring.

Pure functions only: the same idea and weights always give the same result.
"""
import math
from typing import Iterable, List, Optional

from core.entities import (
    MicroSaaSIdea,
    ScoreBreakdown,
    ScoringResult,
    ScoringWeights,
)
from core.profiles import DEFAULT_WEIGHTS


FRICTION_MULTIPLIERS = {
    "critical_pain": 1.3,
    "workflow_gap": 1.0,
    "minor_bug": 0.7,
}

# keyed by sophistication level
LEAD_USER_BONUS = {
    1: 5,   # manual process
    2: 10,  # zapier / no-code
    3: 15,  # spreadsheet macro
    4: 20,  # custom script
    5: 25,
}

IMPORT_OPPORTUNITY_BONUS = 15
REVENUE_VERIFIED_BONUS = 20

MRR_TIER_BONUS = {
    "starter": 5,
    "growing": 10,
    "established": 15,
    "scale": 20,
}

MRR_TIER_LABELS = {
    "starter": "Early revenue",
    "growing": "$1k+ MRR",
    "established": "$10k+ MRR",
    "scale": "$50k+ MRR",
}

BLEND_BASE_WEIGHT = 0.4
BLEND_DIMENSION_WEIGHT = 0.6
DEFAULT_BASE_SCORE = 50

PAYMENT_SIGNALS = ["money", "cost", "expensive", "hours", "time", "revenue", "clients"]
NICHE_SIGNALS = ["niche", "specific", "specialized", "freelancer", "small business"]
BROAD_SIGNALS = ["enterprise", "global", "all industries"]
SATURATION_SIGNALS = ["like competitors", "similar to", "another tool"]
FAST_STACKS = ["no-code", "low-code", "supabase", "firebase", "vercel", "nextjs"]
COMPLEX_SIGNALS = ["real-time", "video", "complex", "ml", "blockchain"]

ENGLISH_ONLY_SIGNALS = [
    "us only", "usa only", "uk only", "english only", "us market", "north america",
]
SPANISH_MARKET_SIGNALS = [
    "español", "spanish", "latam", "latinoamerica", "mexico",
    "argentina", "colombia", "españa", "spain",
]


def _clamp(value: float, low: float = 0, high: float = 100) -> float:
    return max(low, min(high, value))


def _lower(value: Optional[str]) -> str:
    return (value or "").lower()


def _contains_any(text: str, needles: Iterable[str]) -> bool:
    return any(n in text for n in needles)


def accessibility_score(idea: MicroSaaSIdea) -> float:
    """Can one developer build this?"""
    stack = _lower(idea.tech_stack_suggestion)
    score = 50

    if _contains_any(stack, ("react", "vue", "next")):
        score += 15
    if _contains_any(stack, ("postgres", "firebase", "supabase")):
        score += 10
    if _contains_any(stack, ("machine learning", "ai model")):
        score -= 15
    if _contains_any(stack, ("iot", "hardware", "embedded")):
        score -= 20

    return _clamp(score)


def payment_potential_score(idea: MicroSaaSIdea) -> float:
    """Will users pay?"""
    score = 50

    vertical = _lower(idea.vertical)
    if _contains_any(vertical, ("enterprise", "business", "agency")):
        score += 20

    problem = _lower(idea.problem)
    score += 5 * sum(1 for s in PAYMENT_SIGNALS if s in problem)
    score += 8 * len(idea.lead_user_indicators)

    return _clamp(score)


def market_size_score(idea: MicroSaaSIdea) -> float:
    # Broad markets score lower: niches are easier to reach for a small product.
    vertical = _lower(idea.vertical)
    score = 50

    if _contains_any(vertical, NICHE_SIGNALS):
        score += 15
    if _contains_any(vertical, BROAD_SIGNALS):
        score -= 10

    return _clamp(score)


def competition_level_score(idea: MicroSaaSIdea) -> float:
    """Higher means a less crowded space."""
    score = 50

    if idea.lead_user_indicators:
        score += 15
    if idea.friction_severity == "critical_pain":
        score += 10
    if _contains_any(_lower(idea.problem), SATURATION_SIGNALS):
        score -= 20

    return _clamp(score)


def implementation_speed_score(idea: MicroSaaSIdea) -> float:
    stack = _lower(idea.tech_stack_suggestion)
    score = 50

    if _contains_any(stack, FAST_STACKS):
        score += 20
    if _contains_any(stack, ("api", "integration")):
        score += 10
    if _contains_any(stack, COMPLEX_SIGNALS):
        score -= 15

    return _clamp(score)


def score_breakdown(idea: MicroSaaSIdea) -> ScoreBreakdown:
    return ScoreBreakdown(
        accessibility=accessibility_score(idea),
        payment_potential=payment_potential_score(idea),
        market_size=market_size_score(idea),
        competition_level=competition_level_score(idea),
        implementation_speed=implementation_speed_score(idea),
    )


def weighted_sum(breakdown: ScoreBreakdown, weights: ScoringWeights) -> float:
    return (
        breakdown.accessibility * weights.accessibility
        + breakdown.payment_potential * weights.payment_potential
        + breakdown.market_size * weights.market_size
        + breakdown.competition_level * weights.competition_level
        + breakdown.implementation_speed * weights.implementation_speed
    )


def mrr_tier(mrr: Optional[float]) -> Optional[str]:
    """Tier name for an estimated MRR, or None when there is no revenue."""
    if not mrr or mrr <= 0:
        return None
    if mrr >= 50_000:
        return "scale"
    if mrr >= 10_000:
        return "established"
    if mrr >= 1_000:
        return "growing"
    return "starter"


def mrr_bonus(mrr: Optional[float]) -> int:
    tier = mrr_tier(mrr)
    return MRR_TIER_BONUS[tier] if tier else 0


def mrr_tier_label(mrr: Optional[float]) -> Optional[str]:
    tier = mrr_tier(mrr)
    return MRR_TIER_LABELS[tier] if tier else None


def lead_user_bonus(idea: MicroSaaSIdea) -> int:
    return sum(
        LEAD_USER_BONUS.get(indicator.sophistication_level, 0)
        for indicator in idea.lead_user_indicators
    )


def confidence_score(idea: MicroSaaSIdea) -> float:
    """How much the score can be trusted, from 0.5 up to 1.0."""
    confidence = 0.5

    if idea.evidence_source and len(idea.evidence_source) > 10:
        confidence += 0.15
    if idea.lead_user_indicators:
        confidence += 0.1
    if idea.friction_severity:
        confidence += 0.1
    if idea.jtbd and "want to" in idea.jtbd and "so I can" in idea.jtbd:
        confidence += 0.15
    if idea.revenue_verified:
        confidence += 0.2
    if idea.estimated_mrr and idea.estimated_mrr > 0:
        confidence += 0.1

    return round(min(1.0, confidence), 2)


def calculate_score(
    idea: MicroSaaSIdea,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
) -> ScoringResult:
    """
    Score an idea on a 0-100 scale.

    The model-supplied potential score is blended with the weighted
    dimension scores, scaled by friction severity, then flat bonuses are
    added. The total is clamped to [0, 100] and rounded half up.
    """
    base = idea.potential_score or DEFAULT_BASE_SCORE
    breakdown = score_breakdown(idea)

    blended = base * BLEND_BASE_WEIGHT + weighted_sum(breakdown, weights) * BLEND_DIMENSION_WEIGHT
    multiplier = FRICTION_MULTIPLIERS.get(idea.friction_severity, 1.0)

    raw = (
        blended * multiplier
        + lead_user_bonus(idea)
        + (IMPORT_OPPORTUNITY_BONUS if idea.is_import_opportunity else 0)
        + (REVENUE_VERIFIED_BONUS if idea.revenue_verified else 0)
        + mrr_bonus(idea.estimated_mrr)
    )

    total = int(math.floor(_clamp(raw) + 0.5))

    return ScoringResult(
        total_score=total,
        breakdown=breakdown,
        confidence=confidence_score(idea),
    )


def detect_import_opportunity(idea: MicroSaaSIdea) -> bool:
    """
    Keyword heuristic: an idea is an import opportunity when it targets an
    English-only market or shows no Spanish-market presence at all.
    """
    text = f"{idea.title} {idea.problem} {idea.jtbd}".lower()
    if _contains_any(text, ENGLISH_ONLY_SIGNALS):
        return True
    return not _contains_any(text, SPANISH_MARKET_SIGNALS)


def rank_ideas(
    ideas: List[MicroSaaSIdea],
    weights: ScoringWeights = DEFAULT_WEIGHTS,
    min_score: int = 0,
) -> List[MicroSaaSIdea]:
    """
    Score every idea, overwrite its potential_score with the total and
    return the ones at or above min_score, best first.
    """
    ranked = []
    for idea in ideas:
        result = calculate_score(idea, weights)
        idea.potential_score = result.total_score
        if result.total_score >= min_score:
            ranked.append(idea)

    return sorted(ranked, key=lambda i: i.potential_score, reverse=True)
