"""Heuristic extraction of structured values from free-form analysis output.

The analysis tool gives no guarantee about the shape of its output, so every
function here is total: malformed or unexpected text yields a documented
default rather than an exception. A miss is data, not an error.
"""

import json
import logging
import re
from typing import Any

from scalecheck.models import Bottleneck, SecurityIssue

# Returned by extract_complexity when no usable score is found
DEFAULT_COMPLEXITY = 50

# Severity keywords in priority order; first match wins
SEVERITY_KEYWORDS = ("critical", "high", "medium")
DEFAULT_SEVERITY = "low"

# Known cache technologies: (reported name, substrings that indicate it).
# Results follow this order, not the order of appearance in the text.
CACHE_TECHNOLOGIES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("redis", ("redis",)),
    ("memcached", ("memcached",)),
    ("in-process cache", ("in-process cache", "in-memory cache", "memory cache")),
    ("cdn", ("cdn",)),
    ("browser cache", ("browser cache",)),
)

# Line-level bottleneck rules: (category, required keyword, any-of keywords,
# fixed severity or None to derive from the line, impact)
BOTTLENECK_RULES: tuple[tuple[str, str, tuple[str, ...], str | None, str], ...] = (
    (
        "database",
        "database",
        ("slow", "bottleneck", "limit"),
        None,
        "May cause slow response times under load",
    ),
    (
        "memory",
        "memory",
        ("leak",),
        "high",
        "Could cause application crashes",
    ),
    (
        "cpu",
        "cpu",
        ("intensive", "heavy", "bound", "bottleneck"),
        None,
        "May saturate compute under load",
    ),
    (
        "network",
        "network",
        ("latency", "bottleneck", "saturat"),
        None,
        "May increase latency and egress cost under load",
    ),
)

# Security keywords mapped to issue categories; first match per line wins
SECURITY_KEYWORDS: tuple[tuple[str, str], ...] = (
    ("sql injection", "injection"),
    ("command injection", "injection"),
    ("injection", "injection"),
    ("xss", "xss"),
    ("cross-site scripting", "xss"),
    ("csrf", "csrf"),
    ("hardcoded secret", "secrets"),
    ("hardcoded credential", "secrets"),
    ("hardcoded password", "secrets"),
    ("hard-coded", "secrets"),
    ("vulnerab", "vulnerability"),
    ("insecure", "insecure-configuration"),
)

# path/to/file.ext:42 style references
FILE_REFERENCE_PATTERN = re.compile(r"([\w./\\-]+\.[A-Za-z0-9]+):(\d+)")


def _first_group(text: str, pattern: str) -> str | None:
    """Return the first non-empty capture group of the first match."""
    try:
        match = re.search(pattern, text, re.IGNORECASE)
    except re.error as e:
        logging.debug("Invalid extraction pattern %r: %s", pattern, e)
        return None
    if not match:
        return None
    for group in match.groups():
        if group:
            return group
    return None


def extract_integer(text: str, pattern: str) -> int:
    """Extract the first captured integer matching pattern.

    Args:
        text: Free-form text to search
        pattern: Regular expression with at least one capture group,
            matched case-insensitively

    Returns:
        The captured integer, or 0 when nothing matches or parsing fails
    """
    captured = _first_group(text, pattern)
    if captured is None:
        return 0
    try:
        return int(captured)
    except ValueError:
        return 0


def extract_float(text: str, pattern: str) -> float:
    """Extract the first captured decimal matching pattern, or 0.0 on a miss."""
    captured = _first_group(text, pattern)
    if captured is None:
        return 0.0
    try:
        return float(captured)
    except ValueError:
        return 0.0


def extract_first_integer(text: str, patterns: tuple[str, ...]) -> int:
    """Try patterns in order and return the first non-zero integer found."""
    for pattern in patterns:
        value = extract_integer(text, pattern)
        if value:
            return value
    return 0


def extract_first_float(text: str, patterns: tuple[str, ...]) -> float:
    """Try patterns in order and return the first non-zero decimal found."""
    for pattern in patterns:
        value = extract_float(text, pattern)
        if value:
            return value
    return 0.0


def extract_complexity(text: str) -> int:
    """Extract a 1-100 complexity score.

    Tries "keyword precedes number" first, then "number precedes keyword".
    Returns DEFAULT_COMPLEXITY on a miss or an out-of-range value.
    """
    complexity = extract_integer(text, r"(?:complexity|score).*?(\d+)")
    if complexity == 0:
        complexity = extract_integer(text, r"(\d+).*(?:complexity|score)")
    if not 1 <= complexity <= 100:
        return DEFAULT_COMPLEXITY
    return complexity


def extract_cache_technologies(text: str) -> list[str]:
    """Return known cache technologies mentioned in text, in vocabulary order."""
    lower = text.lower()
    return [
        name
        for name, needles in CACHE_TECHNOLOGIES
        if any(needle in lower for needle in needles)
    ]


def extract_severity(text: str) -> str:
    """Return the highest-priority severity keyword in text, default "low"."""
    lower = text.lower()
    for severity in SEVERITY_KEYWORDS:
        if severity in lower:
            return severity
    return DEFAULT_SEVERITY


def extract_bottlenecks(text: str) -> list[Bottleneck]:
    """Scan text line by line for scaling bottleneck mentions.

    A line may produce more than one bottleneck when it matches several
    rules. Lines matching no rule are dropped.
    """
    bottlenecks: list[Bottleneck] = []
    for line in text.splitlines():
        lower = line.strip().lower()
        if not lower:
            continue

        for category, keyword, qualifiers, severity, impact in BOTTLENECK_RULES:
            if keyword in lower and any(q in lower for q in qualifiers):
                bottlenecks.append(
                    Bottleneck(
                        type=category,
                        description=line.strip(),
                        severity=severity or extract_severity(line),
                        impact=impact,
                    )
                )
    return bottlenecks


def extract_security_issues(text: str) -> list[SecurityIssue]:
    """Scan text line by line for security concerns.

    Each line contributes at most one issue, categorised by the first
    matching keyword in SECURITY_KEYWORDS.
    """
    issues: list[SecurityIssue] = []
    for line in text.splitlines():
        lower = line.strip().lower()
        if not lower:
            continue

        category = next(
            (cat for keyword, cat in SECURITY_KEYWORDS if keyword in lower), None
        )
        if category is None:
            continue

        file_path = None
        line_number = None
        reference = FILE_REFERENCE_PATTERN.search(line)
        if reference:
            file_path = reference.group(1)
            try:
                line_number = int(reference.group(2)) or None
            except ValueError:
                line_number = None

        issues.append(
            SecurityIssue(
                type=category,
                description=line.strip(),
                severity=extract_severity(line),
                file=file_path,
                line=line_number,
            )
        )
    return issues


def extract_json_object(text: str) -> dict[str, Any] | None:
    """Decode a JSON object from text.

    Accepts either text that is entirely a JSON object or text with one
    embedded between its first "{" and last "}" (e.g. a fenced code block).

    Returns:
        Decoded object, or None if no JSON object could be decoded
    """
    candidates = [text.strip()]
    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end > start:
        candidates.append(text[start : end + 1])

    for candidate in candidates:
        try:
            decoded = json.loads(candidate)
        except (ValueError, RecursionError):
            continue
        if isinstance(decoded, dict):
            return decoded
    return None
