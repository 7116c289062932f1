# scalecheck/models.py
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

# Subscription tiers
TIER_TRIAL = "trial"
TIER_STARTER = "starter"
TIER_PROFESSIONAL = "professional"
TIER_ENTERPRISE = "enterprise"

# Valid bottleneck categories
VALID_BOTTLENECK_TYPES = ("database", "cpu", "memory", "network")

# Valid severity levels, most severe first
VALID_SEVERITIES = ("critical", "high", "medium", "low")

# Map common LLM severity variations to valid severities
SEVERITY_MAPPING = {
    "critical": "critical",
    "severe": "critical",
    "blocker": "critical",
    "fatal": "critical",
    "high": "high",
    "major": "high",
    "important": "high",
    "medium": "medium",
    "moderate": "medium",
    "warning": "medium",
    "low": "low",
    "minor": "low",
    "trivial": "low",
    "info": "low",
}

# Map common LLM category variations to valid bottleneck categories
BOTTLENECK_TYPE_MAPPING = {
    "database": "database",
    "db": "database",
    "sql": "database",
    "query": "database",
    "cpu": "cpu",
    "compute": "cpu",
    "processing": "cpu",
    "memory": "memory",
    "ram": "memory",
    "heap": "memory",
    "network": "network",
    "bandwidth": "network",
    "io": "network",
    "latency": "network",
}


def _normalize_severity(v: Any) -> str:
    if not isinstance(v, str):
        return "low"
    return SEVERITY_MAPPING.get(v.lower().strip(), "low")


class Bottleneck(BaseModel):
    """A scaling bottleneck surfaced from analysis output."""

    type: Literal["database", "cpu", "memory", "network"] = Field(
        default="database", description="Resource the bottleneck affects"
    )
    description: str = Field(default="", description="Free-text description")
    severity: Literal["critical", "high", "medium", "low"] = Field(
        default="low", description="Bottleneck severity"
    )
    impact: str = Field(default="", description="Expected impact under load")

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, v: Any) -> str:
        """Normalize category to valid value, handling LLM variations."""
        _ = cls
        if not isinstance(v, str):
            return "database"
        return BOTTLENECK_TYPE_MAPPING.get(v.lower().strip(), "database")

    @field_validator("severity", mode="before")
    @classmethod
    def normalize_severity(cls, v: Any) -> str:
        """Normalize severity to valid value, handling LLM variations."""
        _ = cls
        return _normalize_severity(v)


class SecurityIssue(BaseModel):
    """A security concern surfaced from analysis output."""

    type: str = Field(default="security", description="Issue category")
    description: str = Field(default="", description="Free-text description")
    severity: Literal["critical", "high", "medium", "low"] = Field(
        default="low", description="Issue severity"
    )
    file: str | None = Field(default=None, description="File the issue was seen in")
    line: int | None = Field(default=None, ge=1, description="Line number in file")

    @field_validator("severity", mode="before")
    @classmethod
    def normalize_severity(cls, v: Any) -> str:
        """Normalize severity to valid value, handling LLM variations."""
        _ = cls
        return _normalize_severity(v)


class PerformanceMetrics(BaseModel):
    """Performance characteristics reported by the performance pass."""

    avg_response_time_ms: int = Field(default=0, description="Average response time")
    database_queries_per_request: int = Field(
        default=0, description="Database queries issued per request"
    )
    cache_hit_rate_percent: int = Field(default=0, description="Cache hit rate")
    has_n_plus_one_query: bool = Field(
        default=False, description="Whether N+1 query patterns were reported"
    )
    has_large_payloads: bool = Field(
        default=False, description="Whether large payload responses were reported"
    )


class ResourceEstimate(BaseModel):
    """Estimated resource requirements for 1000 concurrent users."""

    memory_mb: int = Field(default=0, description="Memory in MB")
    cpu_cores: float = Field(default=0.0, description="CPU cores (fractional)")
    database_connections: int = Field(default=0, description="Database connections")
    network_mbps: int = Field(default=0, description="Network bandwidth in Mbps")
    storage_gb: int = Field(default=0, description="Storage in GB")


class AnalysisReport(BaseModel):
    """Cost/scaling report accumulated across analysis passes."""

    project_id: str = Field(default="", description="Opaque project identifier")
    timestamp: datetime = Field(
        default_factory=datetime.now, description="When the analysis started"
    )
    directory: str = Field(default="", description="Analyzed source directory")

    # Structure pass
    language: str = Field(default="", description="Primary language")
    framework: str = Field(default="", description="Primary framework")
    dependencies: list[str] = Field(default_factory=list, description="Dependencies")
    api_endpoints: int = Field(default=0, description="Number of API endpoints")
    # Not populated by any pass; kept because the report API schema carries it
    stateless_functions: int = Field(
        default=0, description="Number of stateless functions"
    )
    background_jobs: list[str] = Field(
        default_factory=list, description="Background job descriptors"
    )
    file_uploads: bool = Field(default=False, description="File upload capability")

    # Database/API pass
    database_calls: int = Field(default=0, description="Number of database calls")
    complexity_score: int = Field(default=0, description="Complexity score (1-100)")
    cache_usage: list[str] = Field(
        default_factory=list, description="Cache technologies in use"
    )

    # Performance pass
    scaling_bottlenecks: list[Bottleneck] = Field(
        default_factory=list, description="Scaling bottlenecks"
    )
    security_issues: list[SecurityIssue] = Field(
        default_factory=list, description="Security concerns"
    )
    performance: PerformanceMetrics = Field(
        default_factory=PerformanceMetrics, description="Performance metrics"
    )

    # Resource pass
    resource_usage: ResourceEstimate = Field(
        default_factory=ResourceEstimate, description="Resource requirements"
    )

    # Set only by the normalizer
    estimated_users: int = Field(default=0, description="Estimated current users")


class SubscriptionInfo(BaseModel):
    """Subscription and quota record returned by the API."""

    tier: str = Field(default=TIER_TRIAL, description="Subscription tier")
    status: str = Field(default="active", description="Subscription status")
    analyses_used: int = Field(default=0, description="Analyses used this period")
    analyses_limit: int = Field(
        default=1, description="Analyses allowed this period (-1 for unlimited)"
    )
    trial_ends_at: datetime | None = Field(default=None, description="Trial end")
    is_trialing: bool = Field(default=False, description="Whether on a trial")
    days_remaining: int = Field(default=0, description="Trial days remaining")

    @property
    def is_unlimited(self) -> bool:
        return self.analyses_limit == -1

    @property
    def limit_reached(self) -> bool:
        """Whether no further analyses are allowed in this period."""
        if self.is_unlimited:
            return False
        return self.analyses_used >= self.analyses_limit


class TrialInfo(BaseModel):
    """Response from starting a free trial."""

    api_key: str
    project_id: str
    trial_ends_at: datetime | None = None
    analyses_remaining: int = 0


class ProjectInfo(BaseModel):
    """Project record returned by the API."""

    id: str
    name: str = ""
    description: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None
    analysis_count: int = 0
    last_analysis: datetime | None = None
