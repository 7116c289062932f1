"""Rich terminal and JSON output rendering."""

import json
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from scalecheck.doctor import ValidationResult
from scalecheck.models import AnalysisReport, SubscriptionInfo, TIER_TRIAL

SEVERITY_ORDER: list[str] = ["critical", "high", "medium", "low"]

SEVERITY_ICONS: dict[str, str] = {
    "critical": "🔴",
    "high": "🟠",
    "medium": "🟡",
    "low": "🟢",
}

UPGRADE_OPTIONS = (
    "🌱 Starter ($29/mo): 10 analyses/month + export + history",
    "⚡ Professional ($149/mo): 100 analyses/month + team + API",
    "🏢 Enterprise ($499/mo): Unlimited + local AI + security",
)
PRICING_URL = "https://scalecheck.dev/pricing"


class TerminalRenderer:
    """Renders an analysis report summary to Rich terminal."""

    SEVERITY_COLORS = {
        "critical": "bold red",
        "high": "red",
        "medium": "yellow",
        "low": "green",
    }

    def __init__(self, console: Console | None = None):
        """Initialize renderer.

        Args:
            console: Rich console for output (creates new one if None)
        """
        self.console = console or Console()

    def render(self, report: AnalysisReport) -> None:
        """Render full report summary to terminal."""
        self.console.print()
        self.console.print(
            Panel.fit("[bold cyan]📊 Analysis Summary[/bold cyan]", border_style="cyan")
        )
        self.console.print(
            Panel(self._format_overview(report), title="Overview", border_style="green")
        )
        self._render_resources(report)
        self._render_bottlenecks(report)
        self._render_security_issues(report)
        self._render_performance(report)
        self._render_complexity(report)
        self.console.print()

    def _format_overview(self, report: AnalysisReport) -> str:
        lines = [
            f"🏗  [bold]Framework:[/bold] {report.framework}",
            f"💾 [bold]Language:[/bold] {report.language}",
            f"📦 [bold]Dependencies:[/bold] {len(report.dependencies)}",
            f"🔌 [bold]API Endpoints:[/bold] {report.api_endpoints}",
            f"⚡ [bold]Background Jobs:[/bold] {len(report.background_jobs)}",
            f"👥 [bold]Estimated Users:[/bold] {report.estimated_users:,}",
        ]
        if report.cache_usage:
            lines.append(f"🗄  [bold]Caching:[/bold] {', '.join(report.cache_usage)}")
        return "\n".join(lines)

    def _render_resources(self, report: AnalysisReport) -> None:
        resources = report.resource_usage
        table = Table(
            title="💻 Resource Requirements",
            show_header=True,
            header_style="bold green",
        )
        table.add_column("Resource", style="cyan")
        table.add_column("Estimate", justify="right")

        table.add_row("Memory", f"{resources.memory_mb:,} MB")
        table.add_row("CPU", f"{resources.cpu_cores:.1f} cores")
        table.add_row("DB Connections", f"{resources.database_connections:,}")
        table.add_row("Network", f"{resources.network_mbps:,} Mbps")
        table.add_row("Storage", f"{resources.storage_gb:,} GB")

        self.console.print(table)
        self.console.print()

    def _render_bottlenecks(self, report: AnalysisReport) -> None:
        if not report.scaling_bottlenecks:
            return

        self.console.print("[bold yellow]⚠️  Scaling Bottlenecks[/bold yellow]")
        for bottleneck in sorted(
            report.scaling_bottlenecks,
            key=lambda b: SEVERITY_ORDER.index(b.severity),
        ):
            color = self._get_severity_color(bottleneck.severity)
            self.console.print(
                f"  [{color}]●[/{color}] [bold]{bottleneck.type}[/bold]: "
                f"{bottleneck.description}"
            )
        self.console.print()

    def _render_security_issues(self, report: AnalysisReport) -> None:
        if not report.security_issues:
            return

        self.console.print("[bold red]🔒 Security Issues[/bold red]")
        for issue in report.security_issues:
            icon = SEVERITY_ICONS[issue.severity]
            location = ""
            if issue.file:
                line = f":{issue.line}" if issue.line else ""
                location = f" ({issue.file}{line})"
            self.console.print(
                f"  {icon} [bold]{issue.type}[/bold]{location}: {issue.description}"
            )
        self.console.print()

    def _render_performance(self, report: AnalysisReport) -> None:
        performance = report.performance
        if not (performance.has_n_plus_one_query or performance.has_large_payloads):
            return

        self.console.print("[bold red]🐌 Performance Issues[/bold red]")
        if performance.has_n_plus_one_query:
            self.console.print("  • N+1 query patterns detected")
        if performance.has_large_payloads:
            self.console.print("  • Large payload responses found")
        self.console.print()

    def _render_complexity(self, report: AnalysisReport) -> None:
        color = self._get_complexity_color(report.complexity_score)
        score = f"[{color}]{report.complexity_score}/100[/{color}]"
        self.console.print(f"🎯 [bold]Complexity Score:[/bold] {score}")

    def _get_severity_color(self, severity: str) -> str:
        """Get color for severity level."""
        return self.SEVERITY_COLORS.get(severity, "white")

    @staticmethod
    def _get_complexity_color(score: int) -> str:
        if score >= 80:
            return "bold red"
        if score >= 60:
            return "bold yellow"
        if score >= 40:
            return "bold cyan"
        return "bold green"


class JsonRenderer:
    """Renders a report as indented JSON."""

    def __init__(self, console: Console | None = None):
        self.console = console or Console()

    @staticmethod
    def to_json(report: AnalysisReport) -> str:
        data: dict[str, Any] = report.model_dump(mode="json")
        return json.dumps(data, indent=2)

    def render(self, report: AnalysisReport) -> None:
        # Raw output: no markup, emoji codes or wrapping
        self.console.out(self.to_json(report), highlight=False)


class SubscriptionRenderer:
    """Renders subscription status, trial warnings and upgrade prompts."""

    def __init__(self, console: Console | None = None):
        """Initialize renderer.

        Args:
            console: Rich console for output (creates new one if None)
        """
        self.console = console or Console()

    def render_status(
        self, subscription: SubscriptionInfo, project_id: str | None
    ) -> None:
        """Render the `auth status` table."""
        table = Table(title="📊 ScaleCheck Status", show_header=False)
        table.add_column("Key", style="bold cyan", justify="right")
        table.add_column("Value")

        table.add_row("Plan", subscription.tier.title())
        table.add_row("Status", subscription.status.title())
        if subscription.is_trialing:
            if subscription.trial_ends_at:
                table.add_row(
                    "Trial ends", subscription.trial_ends_at.strftime("%B %d, %Y")
                )
            table.add_row("Days remaining", str(subscription.days_remaining))
        if subscription.is_unlimited:
            table.add_row("Analyses used", f"{subscription.analyses_used} (unlimited)")
        else:
            table.add_row(
                "Analyses used",
                f"{subscription.analyses_used}/{subscription.analyses_limit}",
            )
        table.add_row("Project ID", project_id or "-")

        self.console.print(table)

        if subscription.tier == TIER_TRIAL:
            self._render_upgrade_options()

    def render_trial_warning(self, subscription: SubscriptionInfo) -> None:
        self.console.print(
            f"[yellow]⚠️  Trial expires in {subscription.days_remaining} days! "
            f"Upgrade to keep your analysis: {PRICING_URL}[/yellow]\n"
        )

    def render_upgrade_prompt(self, subscription: SubscriptionInfo) -> None:
        """Render the prompt shown when the trial quota is used up."""
        self.console.print("[bold]🎯 Trial Analysis Used![/bold]\n")
        if subscription.days_remaining > 0:
            self.console.print(
                f"You've used your trial analysis. "
                f"Your trial expires in {subscription.days_remaining} days."
            )
        else:
            self.console.print(
                "You've used your trial analysis. Your trial has expired."
            )
        self._render_upgrade_options()

    def _render_upgrade_options(self) -> None:
        self.console.print()
        self.console.print("[bold]📊 Upgrade to continue analyzing:[/bold]")
        for option in UPGRADE_OPTIONS:
            self.console.print(f"   {option}")
        self.console.print(f"\n   Upgrade: {PRICING_URL}\n")


class ValidationRenderer:
    """Renders diagnostic results to Rich terminal."""

    def __init__(self, console: Console | None = None):
        """Initialize renderer.

        Args:
            console: Rich console for output (creates new one if None)
        """
        self.console = console or Console()

    def render(self, validation: ValidationResult) -> None:
        """Render validation result to terminal."""
        table = Table(
            title=validation.name,
            show_header=True,
            header_style="bold cyan",
        )
        table.add_column("Check", style="cyan")
        table.add_column("Status", justify="center")
        table.add_column("Details")

        for name, passed, message in validation.checks:
            status = "[green]✓ Pass[/green]" if passed else "[red]✗ Fail[/red]"
            table.add_row(name, status, message or "-")

        self.console.print(table)

        if validation.warnings:
            self.console.print()
            for warning in validation.warnings:
                self.console.print(f"[yellow]⚠️  {warning}[/yellow]")

        if not validation.valid and validation.suggestions:
            self.console.print()
            self.console.print("[bold]💡 Suggestions:[/bold]")
            for suggestion in validation.suggestions:
                self.console.print(f"   • {suggestion}")

        self.console.print()
        if validation.valid:
            self.console.print("[green]🎉 All systems operational![/green]")
        else:
            self.console.print(
                f"[red]✗ {len(validation.errors)} issue(s) found[/red]"
            )
