from .base_collector import BaseCollector
from .datadog_collector import DatadogCollector

__all__ = [
    "BaseCollector",
    "DatadogCollector",
]
