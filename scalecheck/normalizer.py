"""Post-processing that guarantees every finished report is complete and bounded."""

from scalecheck.models import AnalysisReport, ResourceEstimate

DEFAULT_LANGUAGE = "Unknown"
DEFAULT_FRAMEWORK = "Unknown"
DEFAULT_COMPLEXITY = 50

COMPLEXITY_RANGE = (1, 100)
API_ENDPOINTS_RANGE = (0, 1_000_000)

# Closed ranges for each resource dimension
MEMORY_MB_RANGE = (128, 16384)
CPU_CORES_RANGE = (0.1, 32.0)
DATABASE_CONNECTIONS_RANGE = (1, 1000)
NETWORK_MBPS_RANGE = (1, 10000)
STORAGE_GB_RANGE = (1, 10000)

ESTIMATED_USERS_RANGE = (100, 1_000_000)

# Threshold bands, highest threshold first: (minimum input, value)
MEMORY_MB_BY_COMPLEXITY: tuple[tuple[int, int], ...] = (
    (80, 2048),
    (60, 1024),
    (40, 512),
)
DEFAULT_MEMORY_MB = 256

CPU_CORES_BY_ENDPOINTS: tuple[tuple[int, float], ...] = (
    (50, 4.0),
    (20, 2.0),
    (10, 1.0),
)
DEFAULT_CPU_CORES = 0.5


def lookup_band(value, bands, default):
    """Return the value of the first band whose threshold value reaches."""
    for threshold, result in bands:
        if value >= threshold:
            return result
    return default


def memory_from_complexity(complexity: int) -> int:
    """Estimate memory (MB) from a complexity score."""
    return lookup_band(complexity, MEMORY_MB_BY_COMPLEXITY, DEFAULT_MEMORY_MB)


def cpu_from_endpoints(endpoints: int) -> float:
    """Estimate CPU cores from an API endpoint count."""
    return lookup_band(endpoints, CPU_CORES_BY_ENDPOINTS, DEFAULT_CPU_CORES)


def clamp(value, bounds):
    low, high = bounds
    return max(low, min(high, value))


def estimate_current_users(
    complexity: int, endpoints: int, background_jobs: list[str]
) -> int:
    """Coarse order-of-magnitude estimate of the current user base.

    Only meant to seed cost projections; it is not an accurate figure.
    """
    complexity_multiplier = complexity / 50.0
    endpoint_multiplier = max(0.5, endpoints / 10.0)
    job_multiplier = 1.5 if background_jobs else 1.0

    estimated = int(1000 * complexity_multiplier * endpoint_multiplier * job_multiplier)
    return clamp(estimated, ESTIMATED_USERS_RANGE)


def normalize_resources(
    resources: ResourceEstimate, complexity: int, endpoints: int
) -> ResourceEstimate:
    """Fill unset memory/CPU from the band tables and clamp every dimension."""
    memory_mb = resources.memory_mb or memory_from_complexity(complexity)
    cpu_cores = resources.cpu_cores or cpu_from_endpoints(endpoints)

    return ResourceEstimate(
        memory_mb=clamp(memory_mb, MEMORY_MB_RANGE),
        cpu_cores=clamp(float(cpu_cores), CPU_CORES_RANGE),
        database_connections=clamp(
            resources.database_connections, DATABASE_CONNECTIONS_RANGE
        ),
        network_mbps=clamp(resources.network_mbps, NETWORK_MBPS_RANGE),
        storage_gb=clamp(resources.storage_gb, STORAGE_GB_RANGE),
    )


def normalize_report(report: AnalysisReport) -> AnalysisReport:
    """
    Apply defaults, clamp resources and derive the user estimate.

    Never fails and never mutates its input; normalizing an already
    normalized report returns an equal report.

    Args:
        report: Report as produced by the analysis passes

    Returns:
        New report satisfying all field invariants
    """
    complexity = report.complexity_score or DEFAULT_COMPLEXITY
    complexity = clamp(complexity, COMPLEXITY_RANGE)
    endpoints = clamp(report.api_endpoints, API_ENDPOINTS_RANGE)

    return report.model_copy(
        deep=True,
        update={
            "language": report.language.strip() or DEFAULT_LANGUAGE,
            "framework": report.framework.strip() or DEFAULT_FRAMEWORK,
            "api_endpoints": endpoints,
            "complexity_score": complexity,
            "resource_usage": normalize_resources(
                report.resource_usage, complexity, endpoints
            ),
            "estimated_users": estimate_current_users(
                complexity, endpoints, report.background_jobs
            ),
        },
    )
