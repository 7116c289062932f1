"""Setup diagnostics for the `doctor` command."""

import platform
from dataclasses import dataclass, field

from scalecheck.config.models import AgentConfig
from scalecheck.health import is_daemon_healthy, is_daemon_installed, is_model_available
from scalecheck.runner import is_tool_installed


@dataclass
class ValidationResult:
    """Result of setup diagnostics.

    Attributes:
        name: What was checked (shown as the table title)
        checks: List of individual check results (name, passed, message)
        warnings: List of warning messages
        suggestions: List of fix suggestions
    """

    name: str
    checks: list[tuple[str, bool, str]] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return all(passed for _, passed, _ in self.checks)

    def add_check(self, name: str, passed: bool, message: str = "") -> None:
        """Add a check result."""
        self.checks.append((name, passed, message))
        if not passed and message:
            self.errors.append(message)

    def add_warning(self, message: str) -> None:
        """Add a warning message."""
        self.warnings.append(message)

    def add_suggestion(self, message: str) -> None:
        """Add a fix suggestion."""
        self.suggestions.append(message)


def run_diagnostics(config: AgentConfig) -> ValidationResult:
    """
    Diagnose configuration, dependencies and local services.

    Args:
        config: Loaded agent configuration

    Returns:
        ValidationResult; invalid when any check failed
    """
    result = ValidationResult(name="ScaleCheck Health")
    mode = config.llm.mode

    result.add_check("Analysis mode", True, mode)
    result.add_check(
        "Platform", True, f"{platform.system()} {platform.machine()}".strip()
    )

    executable = config.tool.command[0]
    if is_tool_installed(executable):
        result.add_check("Analysis tool", True, f"{executable} found on PATH")
    else:
        result.add_check("Analysis tool", False, f"{executable} not found on PATH")
        result.add_suggestion(f"Install {executable} and make sure it is on PATH")

    if config.api_key:
        result.add_check("API key", True, "API key configured")
    elif mode == "local":
        result.add_warning("No API key configured (not needed in local mode)")
    else:
        result.add_check("API key", False, "No API key configured")
        result.add_suggestion("Run: scalecheck auth login")

    if mode in ("local", "hybrid"):
        _check_local_daemon(config, result)

    return result


def _check_local_daemon(config: AgentConfig, result: ValidationResult) -> None:
    base_url = config.llm.local_url

    if not is_daemon_installed():
        result.add_check("Local daemon", False, "ollama not installed")
        result.add_suggestion("Run: scalecheck setup --mode local")
        return
    result.add_check("Local daemon", True, "ollama installed")

    if not is_daemon_healthy(base_url):
        result.add_check("Daemon service", False, f"No response from {base_url}")
        result.add_suggestion("Start the daemon with: ollama serve")
        return
    result.add_check("Daemon service", True, f"Responding at {base_url}")

    model = config.llm.local_model
    if not model:
        result.add_check("Local model", False, "No local model configured")
        result.add_suggestion("Run: scalecheck setup --mode local --model <name>")
    elif is_model_available(base_url, model):
        result.add_check("Local model", True, f"{model} available")
    else:
        result.add_check("Local model", False, f"{model} not pulled")
        result.add_suggestion(f"Run: ollama pull {model}")
