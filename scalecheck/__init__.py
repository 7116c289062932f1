"""Scaling and cost analysis agent for local codebases."""

from scalecheck.analyzer import ProjectAnalyzer
from scalecheck.client import AGENT_VERSION
from scalecheck.models import AnalysisReport
from scalecheck.normalizer import normalize_report
from scalecheck.runner import PassRunner

__version__ = AGENT_VERSION

__all__ = [
    "AnalysisReport",
    "PassRunner",
    "ProjectAnalyzer",
    "normalize_report",
    "__version__",
]
