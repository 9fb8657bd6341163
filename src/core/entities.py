from __future__ import annotations

import time
from dataclasses import dataclass
from typing import List, Literal, Optional, Tuple

from pydantic import BaseModel, Field, field_validator


MAX_CONTENT_LENGTH = 500

Bucket = Literal["pain_points", "lead_user_signals", "competitors", "trending_topics"]
BUCKETS: Tuple[Bucket, ...] = (
    "pain_points",
    "lead_user_signals",
    "competitors",
    "trending_topics",
)

FrictionSeverity = Literal["minor_bug", "workflow_gap", "critical_pain"]
LeadUserType = Literal["custom_script", "excel_macro", "zapier_integration", "manual_process"]


def now_ms() -> int:
    return int(time.time() * 1000)


class EvidenceItem(BaseModel):
    """
    Normalized unit of external signal.

    The id is namespaced by source ("<source>-<native-id>") so two items
    with the same id always come from the same origin record.
    """
    id: str
    source: str
    title: str = ""
    content: str = ""
    url: str = ""
    score: float = 0.0
    timestamp: int = Field(default_factory=now_ms)
    author: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    is_import_opportunity: Optional[bool] = None

    @field_validator("content", mode="before")
    @classmethod
    def _truncate_content(cls, value):
        if value is None:
            return ""
        return str(value)[:MAX_CONTENT_LENGTH]

    @field_validator("title", mode="before")
    @classmethod
    def _coerce_title(cls, value):
        return "" if value is None else str(value)

    def with_tag(self, tag: str) -> "EvidenceItem":
        return self.model_copy(update={"tags": [*self.tags, tag]})

    @property
    def text(self) -> str:
        return f"{self.title} {self.content}"


@dataclass(frozen=True)
class AggregatedData:
    """
    Immutable result of one aggregation run.
    Every bucket is deduplicated by id and sorted descending by score.
    """
    pain_points: Tuple[EvidenceItem, ...] = ()
    lead_user_signals: Tuple[EvidenceItem, ...] = ()
    competitors: Tuple[EvidenceItem, ...] = ()
    trending_topics: Tuple[EvidenceItem, ...] = ()
    sources_used: Tuple[str, ...] = ()
    total_items: int = 0

    @classmethod
    def empty(cls, sources_used: Tuple[str, ...] = ()) -> "AggregatedData":
        return cls(sources_used=sources_used)

    def bucket(self, name: Bucket) -> Tuple[EvidenceItem, ...]:
        return getattr(self, name)

    def to_dict(self) -> dict:
        payload = {
            name: [item.model_dump() for item in self.bucket(name)]
            for name in BUCKETS
        }
        payload["sources_used"] = list(self.sources_used)
        payload["total_items"] = self.total_items
        return payload


class LeadUserIndicator(BaseModel):
    type: LeadUserType = "manual_process"
    description: str = ""
    sophistication_level: int = Field(1, ge=1, le=5)


class MicroSaaSIdea(BaseModel):
    """
    Candidate opportunity produced by the idea generator.
    Only potential_score is rewritten after scoring.
    """
    title: str
    problem: str = ""
    jtbd: str = ""
    vertical: str = ""
    evidence_source: str = ""
    potential_score: Optional[float] = Field(None, ge=0, le=100)
    tech_stack_suggestion: str = ""
    friction_severity: Optional[FrictionSeverity] = None
    lead_user_indicators: List[LeadUserIndicator] = Field(default_factory=list)
    is_import_opportunity: Optional[bool] = None
    revenue_verified: Optional[bool] = None
    estimated_mrr: Optional[float] = None


@dataclass(frozen=True)
class ScoringWeights:
    accessibility: float
    payment_potential: float
    market_size: float
    competition_level: float
    implementation_speed: float


@dataclass(frozen=True)
class ScoreBreakdown:
    accessibility: float
    payment_potential: float
    market_size: float
    competition_level: float
    implementation_speed: float


@dataclass(frozen=True)
class ScoringResult:
    total_score: int
    breakdown: ScoreBreakdown
    confidence: float
