"""
Contains base class for idea generators
"""
from abc import ABC, abstractmethod
from typing import List

from core.entities import AggregatedData, MicroSaaSIdea
from services.config import TopicConfig


class IdeaGenerator(ABC):
    """
    Turns aggregated evidence into candidate ideas, typically by prompting
    a language model with the evidence buckets.
    """

    name: str

    @abstractmethod
    async def generate(self, topic: TopicConfig, data: AggregatedData) -> List[MicroSaaSIdea]:
        raise NotImplementedError
