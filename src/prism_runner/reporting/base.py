"""
Base class for report generators.
"""

from abc import ABC, abstractmethod

from .model import RenderModel


class ReportGenerator(ABC):
    """Base class for generating test reports."""

    @abstractmethod
    def generate(self, report: RenderModel) -> str:
        """
        Generate a report from the render model.

        Args:
            report: RenderModel built from a finished run

        Returns:
            Report as a string
        """
        pass
