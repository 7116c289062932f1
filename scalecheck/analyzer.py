"""Orchestrates the analysis passes that build a cost/scaling report."""

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable

from pydantic import BaseModel, ValidationError

from scalecheck.config.prompts import (
    DATABASE_API_PROMPT,
    PERFORMANCE_PROMPT,
    RESOURCE_PROMPT_TEMPLATE,
    STRUCTURE_PROMPT,
)
from scalecheck.extractor import (
    extract_bottlenecks,
    extract_cache_technologies,
    extract_complexity,
    extract_first_float,
    extract_first_integer,
    extract_integer,
    extract_json_object,
    extract_security_issues,
)
from scalecheck.models import AnalysisReport, ResourceEstimate
from scalecheck.normalizer import (
    cpu_from_endpoints,
    memory_from_complexity,
    normalize_report,
)
from scalecheck.runner import PassRunner, ToolUnavailableError

# Heuristic vocabularies, in priority order; first match wins
LANGUAGES = ("javascript", "python", "go", "java", "php", "ruby", "typescript")
FRAMEWORKS = ("react", "vue", "angular", "express", "fastapi", "django", "gin", "echo")

# Endpoint count assumed when the structure pass reports none
DEFAULT_ENDPOINTS = 5

ENDPOINT_PATTERN = r"(\d+).*(?:endpoint|route|api)"
DATABASE_CALLS_PATTERN = r"(\d+).*(?:database|query)"

# Performance figures; misses leave the metric at 0
RESPONSE_TIME_PATTERN = r"response time[^\d\n]*?(\d+)\s*ms|(\d+)\s*ms"
QUERIES_PER_REQUEST_PATTERN = r"(\d+)\s*(?:database\s+)?quer(?:y|ies) per request"
CACHE_HIT_RATE_PATTERN = r"cache hit rate[^\d\n]*?(\d+)|(\d+)\s*%\s*cache hit"

# Resource dimensions: keyword-led pattern first, then unit-led
MEMORY_PATTERNS = (r"memory[^\d\n]*?(\d+)", r"(\d+)\s*MB\b")
CPU_PATTERNS = (
    r"(?:cpu|cores?)[^\d\n]*?(\d+(?:\.\d+)?)",
    r"(\d+(?:\.\d+)?)\s*(?:v?cpus?|cores?)\b",
)
CONNECTION_PATTERNS = (
    r"connections?[^\d\n]*?(\d+)",
    r"(\d+)\s*(?:database\s+|db\s+)?conn(?:ection)?s?\b",
)
NETWORK_PATTERNS = (r"bandwidth[^\d\n]*?(\d+)", r"(\d+)\s*Mbps\b")
STORAGE_PATTERNS = (r"storage[^\d\n]*?(\d+)", r"(\d+)\s*GB\b")

# Files and directories that mark a typical code project
PROJECT_INDICATORS = (
    "package.json",
    "requirements.txt",
    "go.mod",
    "Cargo.toml",
    "composer.json",
    "Gemfile",
    "pom.xml",
    "build.gradle",
    "Dockerfile",
    ".git",
)
SOURCE_DIRS = ("src", "lib", "app", "components", "pages")


class StructureFindings(BaseModel):
    """Structured payload requested from the structure pass."""

    language: str = ""
    framework: str = ""
    dependencies: list[str] = []
    api_endpoints: int = 0
    background_jobs: list[str] = []
    file_uploads: bool = False


@dataclass(frozen=True)
class AnalysisPass:
    """One round-trip to the analysis tool plus its extraction logic.

    Attributes:
        name: Human-readable pass name
        build_prompt: Builds the instruction from the report so far
        apply: Returns the report updated with this pass's findings
    """

    name: str
    build_prompt: Callable[[AnalysisReport], str]
    apply: Callable[[AnalysisReport, str], AnalysisReport]


def apply_structure(report: AnalysisReport, output: str) -> AnalysisReport:
    """Apply structure pass output, preferring a structured payload."""
    payload = extract_json_object(output)
    if payload is not None:
        try:
            findings = StructureFindings.model_validate(payload)
            return report.model_copy(update=findings.model_dump())
        except ValidationError as e:
            logging.debug("Structure payload did not validate: %s", e)

    logging.debug("Falling back to heuristic structure parsing")
    return parse_structure_heuristic(report, output)


def parse_structure_heuristic(report: AnalysisReport, output: str) -> AnalysisReport:
    """Guess language, framework and endpoint count from free text."""
    lower = output.lower()
    update: dict = {}

    language = next((lang for lang in LANGUAGES if lang in lower), None)
    if language:
        update["language"] = language.title()

    framework = next((fw for fw in FRAMEWORKS if fw in lower), None)
    if framework:
        update["framework"] = framework.title()

    update["api_endpoints"] = (
        extract_integer(output, ENDPOINT_PATTERN) or DEFAULT_ENDPOINTS
    )
    return report.model_copy(update=update)


def apply_database_api(report: AnalysisReport, output: str) -> AnalysisReport:
    """Apply database/API pass output; always parsed heuristically."""
    lower = output.lower()
    performance = report.performance.model_copy(
        update={"has_n_plus_one_query": "n+1" in lower or "n plus one" in lower}
    )
    return report.model_copy(
        update={
            "database_calls": extract_integer(output, DATABASE_CALLS_PATTERN),
            "complexity_score": extract_complexity(output),
            "cache_usage": extract_cache_technologies(output),
            "performance": performance,
        }
    )


def apply_performance(report: AnalysisReport, output: str) -> AnalysisReport:
    """Apply performance/scaling pass output."""
    performance = report.performance.model_copy(
        update={
            "has_large_payloads": "large payload" in output.lower(),
            "avg_response_time_ms": extract_integer(output, RESPONSE_TIME_PATTERN),
            "database_queries_per_request": extract_integer(
                output, QUERIES_PER_REQUEST_PATTERN
            ),
            "cache_hit_rate_percent": extract_integer(output, CACHE_HIT_RATE_PATTERN),
        }
    )
    return report.model_copy(
        update={
            "scaling_bottlenecks": extract_bottlenecks(output),
            "security_issues": extract_security_issues(output),
            "performance": performance,
        }
    )


def build_resource_prompt(report: AnalysisReport) -> str:
    """Parameterize the resource instruction with earlier pass results."""
    return RESOURCE_PROMPT_TEMPLATE.format(
        language=report.language,
        framework=report.framework,
        endpoints=report.api_endpoints,
        jobs=len(report.background_jobs),
        complexity=report.complexity_score,
    )


def apply_resources(report: AnalysisReport, output: str) -> AnalysisReport:
    """Apply resource estimation output, falling back to band tables."""
    memory_mb = extract_first_integer(output, MEMORY_PATTERNS)
    cpu_cores = extract_first_float(output, CPU_PATTERNS)

    resources = ResourceEstimate(
        memory_mb=memory_mb or memory_from_complexity(report.complexity_score),
        cpu_cores=cpu_cores or cpu_from_endpoints(report.api_endpoints),
        database_connections=extract_first_integer(output, CONNECTION_PATTERNS),
        network_mbps=extract_first_integer(output, NETWORK_PATTERNS),
        storage_gb=extract_first_integer(output, STORAGE_PATTERNS),
    )
    return report.model_copy(update={"resource_usage": resources})


# Order matters: the resource pass is parameterized by passes 1-3
ANALYSIS_PASSES: tuple[AnalysisPass, ...] = (
    AnalysisPass("structure", lambda _: STRUCTURE_PROMPT, apply_structure),
    AnalysisPass("database/API", lambda _: DATABASE_API_PROMPT, apply_database_api),
    AnalysisPass("performance", lambda _: PERFORMANCE_PROMPT, apply_performance),
    AnalysisPass("resource estimation", build_resource_prompt, apply_resources),
)


class ProjectAnalyzer:
    """Runs the analysis passes against a project and normalizes the result."""

    def __init__(
        self,
        directory: Path,
        project_id: str,
        runner: PassRunner | None = None,
        passes: tuple[AnalysisPass, ...] = ANALYSIS_PASSES,
    ):
        """
        Initialize analyzer.

        Args:
            directory: Project directory to analyze
            project_id: Opaque project identifier stamped on the report
            runner: PassRunner to use (creates a default one if None)
            passes: Ordered analysis passes
        """
        self.directory = directory.resolve()
        self.project_id = project_id
        self.runner = runner or PassRunner(self.directory)
        self.passes = passes

    def preflight(self) -> None:
        """
        Validate prerequisites before any pass runs.

        Raises:
            FileNotFoundError: If the directory does not exist
            ToolUnavailableError: If the analysis tool is not installed
        """
        if not self.directory.is_dir():
            raise FileNotFoundError(f"Directory does not exist: {self.directory}")

        if not self.is_code_project():
            logging.warning(
                "%s doesn't appear to contain a typical code project; "
                "results may be limited",
                self.directory,
            )

        if not self.runner.is_available():
            raise ToolUnavailableError(self.runner.executable)

    def is_code_project(self) -> bool:
        """Check whether the directory contains typical project markers."""
        for indicator in PROJECT_INDICATORS:
            if (self.directory / indicator).exists():
                return True
        return any((self.directory / name).is_dir() for name in SOURCE_DIRS)

    def analyze(
        self, on_pass: Callable[[int, int, str], None] | None = None
    ) -> AnalysisReport:
        """
        Run every pass in order and return the normalized report.

        Args:
            on_pass: Optional callback(index, total, name) invoked before each pass

        Returns:
            Normalized AnalysisReport

        Raises:
            FileNotFoundError: If the directory does not exist
            ToolUnavailableError: If the analysis tool is not installed
            ToolInvocationError: If any pass fails; no partial report is returned
        """
        self.preflight()

        report = AnalysisReport(
            project_id=self.project_id,
            timestamp=datetime.now(),
            directory=str(self.directory),
        )

        total = len(self.passes)
        for index, analysis_pass in enumerate(self.passes, 1):
            if on_pass:
                on_pass(index, total, analysis_pass.name)
            logging.info("Running %s pass (%d/%d)", analysis_pass.name, index, total)

            output = self.runner.run_pass(analysis_pass.build_prompt(report))
            report = analysis_pass.apply(report, output)

        return normalize_report(report)
