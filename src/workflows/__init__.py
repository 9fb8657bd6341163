"""
Workflows module - Evidence-to-idea orchestration.
"""
from workflows.base import IdeaGenerator
from workflows.opportunity_hunt import HuntResult, OpportunityHunt

__all__ = [
    "IdeaGenerator",
    "HuntResult",
    "OpportunityHunt",
]
