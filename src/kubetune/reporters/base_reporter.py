# src/kubetune/reporters/base_reporter.py
"""
Defines the abstract base class for all reporters.
"""

from abc import ABC, abstractmethod

from ..models.metrics import AnalysisResult


class BaseReporter(ABC):
    """
    Abstract Base Class for all reporters.
    """

    @abstractmethod
    def report(self, result: AnalysisResult):
        """
        Takes the final analysis result and presents it in a specific format.
        """
        pass
