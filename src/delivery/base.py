"""
Module to contain base class for report channels
"""
from abc import ABC, abstractmethod

from workflows.opportunity_hunt import HuntResult


class ReportChannel(ABC):
    """
    Base interface for all report channels.
    """

    name: str

    @abstractmethod
    async def deliver(
        self,
        *,
        report_date: str,
        result: HuntResult,
    ) -> None:
        """
        Deliver the report.
        Must raise exceptions on failure (handled upstream).
        """
        raise NotImplementedError
