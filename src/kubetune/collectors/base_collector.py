# src/kubetune/collectors/base_collector.py
"""
This module defines the abstract base class for telemetry collectors.
Enforcing this interface keeps the analysis processor independent of the
metrics provider it reads from.
"""

from abc import ABC, abstractmethod
from typing import Dict

from ..core.series import AlignedSeries
from ..models.metrics import MetricQuery, TimeWindow


class BaseCollector(ABC):
    """
    Abstract Base Class for all telemetry collectors.
    """

    @abstractmethod
    async def collect(self, catalog: Dict[str, MetricQuery], window: TimeWindow) -> Dict[str, AlignedSeries]:
        """
        Runs every query of the catalog over the window and returns one
        aligned series per logical metric name.
        """
        pass

    async def close(self):
        """
        Clean up resources (e.g., close HTTP sessions or API clients).
        """
        pass
