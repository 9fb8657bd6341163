from dataclasses import dataclass

from core.entities import ScoringWeights


@dataclass(frozen=True)
class DeveloperProfile:
    """
    Declarative developer profile with its scoring emphasis.
    """
    name: str
    description: str
    weights: ScoringWeights


DEFAULT_WEIGHTS = ScoringWeights(
    accessibility=0.25,
    payment_potential=0.30,
    market_size=0.15,
    competition_level=0.15,
    implementation_speed=0.15,
)

SOLO_DEV = DeveloperProfile(
    name="solo_dev",
    description="One developer shipping nights and weekends",
    weights=ScoringWeights(
        accessibility=0.35,
        payment_potential=0.25,
        market_size=0.10,
        competition_level=0.15,
        implementation_speed=0.15,
    ),
)

SMALL_TEAM = DeveloperProfile(
    name="small_team",
    description="Two to five people with some runway",
    weights=ScoringWeights(
        accessibility=0.20,
        payment_potential=0.30,
        market_size=0.20,
        competition_level=0.15,
        implementation_speed=0.15,
    ),
)

AGENCY = DeveloperProfile(
    name="agency",
    description="Service business looking for a productized offer",
    weights=ScoringWeights(
        accessibility=0.10,
        payment_potential=0.35,
        market_size=0.25,
        competition_level=0.20,
        implementation_speed=0.10,
    ),
)


ALL_PROFILES = {
    SOLO_DEV.name: SOLO_DEV,
    SMALL_TEAM.name: SMALL_TEAM,
    AGENCY.name: AGENCY,
}


def weights_for_profile(name: str) -> ScoringWeights:
    """Weight preset for a developer profile; raises ValueError when unknown."""
    if name == "default":
        return DEFAULT_WEIGHTS
    if name not in ALL_PROFILES:
        raise ValueError(f"Unknown profile: {name}")
    return ALL_PROFILES[name].weights
