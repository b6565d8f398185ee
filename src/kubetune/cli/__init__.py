# src/kubetune/cli/__init__.py
"""
kubetune CLI Package

This package exposes the top-level Typer `app` so tests and the console
entrypoint can import `kubetune.cli.app`.
"""

import logging

from ..core.processor import AnalysisProcessor
from ..core.recommender import Recommender
from ..reporters.console_reporter import ConsoleReporter
from .main import app

logger = logging.getLogger(__name__)

__all__ = ["app", "AnalysisProcessor", "ConsoleReporter", "Recommender"]
