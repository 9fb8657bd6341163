import pytest

from core.entities import LeadUserIndicator, MicroSaaSIdea
from core.profiles import AGENCY, DEFAULT_WEIGHTS, SOLO_DEV, weights_for_profile
from core.scoring import (
    calculate_score,
    confidence_score,
    detect_import_opportunity,
    mrr_bonus,
    mrr_tier,
    mrr_tier_label,
    rank_ideas,
)


def make_idea(**kwargs) -> MicroSaaSIdea:
    return MicroSaaSIdea(title=kwargs.pop("title", "Idea"), **kwargs)


def test_same_input_gives_same_result():
    idea = make_idea(
        problem="Agencies lose hours on manual invoicing",
        vertical="agency",
        tech_stack_suggestion="nextjs supabase api",
        friction_severity="workflow_gap",
        lead_user_indicators=[LeadUserIndicator(type="excel_macro", sophistication_level=3)],
    )
    assert calculate_score(idea) == calculate_score(idea)


def test_neutral_idea_scores_fifty():
    result = calculate_score(make_idea())
    assert result.total_score == 50
    assert result.confidence == 0.5


def test_critical_pain_multiplier_rounds_half_up_to_seventy():
    # dimensions 50/50/50/60/50 -> weighted 51.5; 57.75*0.4 + 51.5*0.6 = 54.0; * 1.3 = 70.2
    idea = make_idea(potential_score=57.75, friction_severity="critical_pain")
    assert calculate_score(idea).total_score == 70


def test_minor_bug_multiplier():
    idea = make_idea(potential_score=50, friction_severity="minor_bug")
    assert calculate_score(idea).total_score == 35


def test_half_values_round_up():
    # 81.25*0.4 + 50*0.6 = 62.5
    idea = make_idea(potential_score=81.25)
    assert calculate_score(idea).total_score == 63


def test_total_is_clamped_to_hundred():
    idea = make_idea(
        potential_score=100,
        friction_severity="critical_pain",
        lead_user_indicators=[LeadUserIndicator(type="custom_script", sophistication_level=5)] * 5,
        is_import_opportunity=True,
        revenue_verified=True,
        estimated_mrr=80_000,
    )
    result = calculate_score(idea)
    assert result.total_score == 100
    assert result.confidence == 1.0


def test_total_never_negative():
    idea = make_idea(
        potential_score=0,
        friction_severity="minor_bug",
        problem="another tool similar to the rest",
        vertical="enterprise global",
        tech_stack_suggestion="embedded hardware blockchain",
    )
    result = calculate_score(idea)
    assert 0 <= result.total_score <= 100
    for value in result.breakdown.__dict__.values():
        assert 0 <= value <= 100


def test_mrr_tiers():
    assert mrr_tier(15_000) == "established"
    assert mrr_bonus(15_000) == 15
    assert mrr_tier_label(15_000) == "$10k+ MRR"
    assert mrr_bonus(50_000) == 20
    assert mrr_bonus(1_000) == 10
    assert mrr_bonus(1) == 5
    assert mrr_bonus(0) == 0
    assert mrr_bonus(None) == 0
    assert mrr_tier(None) is None


def test_mrr_bonus_is_added_after_blend():
    assert calculate_score(make_idea(estimated_mrr=15_000)).total_score == 65


def test_lead_user_bonus_per_indicator():
    idea = make_idea(lead_user_indicators=[
        LeadUserIndicator(type="manual_process", sophistication_level=1),
        LeadUserIndicator(type="custom_script", sophistication_level=4),
    ])
    # payment +16, competition +15 -> weighted 50 + 4.8 + 2.25 = 57.05
    # blended 20 + 34.23 = 54.23, plus 5 + 20
    assert calculate_score(idea).total_score == 79


def test_confidence_needs_motivation_and_outcome():
    with_both = make_idea(jtbd="When invoicing, I want to automate reminders so I can get paid")
    only_motivation = make_idea(jtbd="I want to automate reminders")
    assert confidence_score(with_both) == 0.65
    assert confidence_score(only_motivation) == 0.5


def test_profile_weights_change_totals():
    idea = make_idea(vertical="business agency", tech_stack_suggestion="react postgres")
    solo = calculate_score(idea, SOLO_DEV.weights).total_score
    agency = calculate_score(idea, AGENCY.weights).total_score
    assert solo != agency


def test_weights_for_profile():
    assert weights_for_profile("default") is DEFAULT_WEIGHTS
    assert weights_for_profile("solo_dev") is SOLO_DEV.weights
    with pytest.raises(ValueError):
        weights_for_profile("unicorn")


def test_import_opportunity_heuristic():
    assert detect_import_opportunity(make_idea(problem="Only sold in the US market"))
    assert detect_import_opportunity(make_idea(problem="Invoicing for plumbers"))
    assert not detect_import_opportunity(make_idea(problem="Facturación para LATAM"))


def test_rank_ideas_overwrites_filters_and_sorts():
    low = make_idea(title="low", potential_score=10, friction_severity="minor_bug")
    high = make_idea(title="high", estimated_mrr=60_000, revenue_verified=True)
    mid = make_idea(title="mid")

    ranked = rank_ideas([low, high, mid], min_score=40)

    assert [i.title for i in ranked] == ["high", "mid"]
    assert mid.potential_score == 50
    assert low.potential_score < 40
