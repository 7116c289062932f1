"""CLI entry point for the scaling and cost analysis agent."""

import logging
import platform
import sys
import time
import traceback
from pathlib import Path

import click
import yaml  # type: ignore[import-untyped]
from rich.console import Console
from rich.markup import escape
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)

from scalecheck.analyzer import ProjectAnalyzer
from scalecheck.client import AGENT_VERSION, ApiError, ScaleCheckClient
from scalecheck.config import ConfigLoader, generate_project_id
from scalecheck.config.models import DEFAULT_LOCAL_MODEL, DEFAULT_LOCAL_URL, AgentConfig
from scalecheck.doctor import run_diagnostics
from scalecheck.health import is_daemon_healthy, is_daemon_installed, is_model_available
from scalecheck.models import TIER_TRIAL, AnalysisReport
from scalecheck.renderer import (
    JsonRenderer,
    SubscriptionRenderer,
    TerminalRenderer,
    ValidationRenderer,
)
from scalecheck.runner import (
    PassRunner,
    ToolInvocationError,
    ToolUnavailableError,
    install_instructions,
)

DASHBOARD_URL = "https://scalecheck.dev/dashboard"

# Trial warning is shown when this many days or fewer remain
TRIAL_WARNING_DAYS = 2

console = Console()


def _get_loader(ctx: click.Context) -> ConfigLoader:
    """Load configuration for a command, turning config errors into exit 1."""
    try:
        return ConfigLoader(ctx.obj.get("config_path"))
    except ValueError as e:
        console.print(f"[red]✗ {escape(str(e))}[/red]")
        raise SystemExit(1)


def _client(config: AgentConfig) -> ScaleCheckClient:
    return ScaleCheckClient(config.api_url, api_key=config.api_key)


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Config file (default: ~/.scalecheck.yaml)",
)
@click.option("--verbose", "-v", is_flag=True, help="Show detailed progress")
@click.pass_context
def main(ctx: click.Context, config_path: Path | None, verbose: bool) -> None:
    """
    Analyze a codebase for infrastructure scaling patterns and cloud cost.

    Source code never leaves your machine: only the derived report is sent.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose


@main.command()
@click.argument(
    "directory",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=Path("."),
)
@click.option("--project-id", "-p", help="Project ID (default: from config)")
@click.option(
    "--output",
    "-o",
    type=click.Choice(["dashboard", "json", "quiet"], case_sensitive=False),
    default="dashboard",
    help="Output format (default: dashboard)",
)
@click.pass_context
def analyze(
    ctx: click.Context, directory: Path, project_id: str | None, output: str
) -> None:
    """Analyze DIRECTORY (default: current directory) and report scaling costs."""
    verbose = ctx.obj.get("verbose", False)
    loader = _get_loader(ctx)
    config = loader.config
    mode = config.llm.mode
    output = output.lower()

    if mode != "local":
        _check_subscription(config)

    project_id = project_id or config.project_id
    if not project_id:
        project_id = generate_project_id()
        console.print(f"[yellow]📝 Generated new project ID: {project_id}[/yellow]")
        console.print(
            f"[yellow]💡 Save this ID with: "
            f"scalecheck config set project_id {project_id}[/yellow]\n"
        )

    directory = directory.resolve()
    if output == "dashboard":
        console.print("\n[bold magenta]📈 ScaleCheck Agent[/bold magenta]")
        console.print(f"📁 Analyzing: {directory}")
        console.print(f"🆔 Project ID: {project_id}")
        console.print(f"🔧 Mode: {mode}\n")

    if mode in ("local", "hybrid") and not is_daemon_healthy(config.llm.local_url):
        console.print(
            f"[yellow]⚠️  Local model daemon not responding at "
            f"{config.llm.local_url} (run 'scalecheck doctor')[/yellow]\n"
        )

    runner = PassRunner(
        directory, command=config.tool.command, timeout=config.tool.timeout
    )
    analyzer = ProjectAnalyzer(directory, project_id, runner=runner)

    start_time = time.time()
    try:
        report = _run_analysis(analyzer, show_progress=output == "dashboard")

    except ToolUnavailableError as e:
        console.print(f"\n[red]✗ {escape(str(e))}[/red]\n")
        console.print(install_instructions())
        raise SystemExit(1)

    except ToolInvocationError as e:
        console.print("\n[red]✗ Analysis failed[/red]")
        if e.returncode is not None:
            console.print(f"[red]Analysis tool exited with code {e.returncode}[/red]")
        if e.output:
            console.print("[bold]Tool output:[/bold]")
            console.print(escape(e.output))
        if verbose:
            console.print(traceback.format_exc())
        raise SystemExit(1)

    except FileNotFoundError as e:
        console.print(f"\n[red]✗ {escape(str(e))}[/red]\n")
        raise SystemExit(1)

    if output == "json":
        JsonRenderer(console).render(report)
    elif output == "dashboard":
        TerminalRenderer(console).render(report)
        elapsed = time.time() - start_time
        console.print(f"[dim]⏱️  Completed in {elapsed:.1f}s[/dim]\n")

    if mode == "local":
        if output != "quiet":
            console.print("[green]✅ Local analysis completed (nothing was sent)[/green]")
        return

    _send_report(config, report, quiet=output != "dashboard")


def _check_subscription(config: AgentConfig) -> None:
    """Gate the run on the subscription; exits on missing key or exhausted trial."""
    if not config.api_key:
        console.print("[red]✗ No API key found[/red]")
        console.print("Run: scalecheck auth login  (or scalecheck auth signup)")
        raise SystemExit(1)

    try:
        subscription = _client(config).get_subscription()
    except ApiError as e:
        console.print(f"[red]✗ Failed to get subscription info: {escape(str(e))}[/red]")
        raise SystemExit(1)

    if subscription.tier != TIER_TRIAL:
        return

    renderer = SubscriptionRenderer(console)
    if subscription.limit_reached:
        renderer.render_upgrade_prompt(subscription)
        raise SystemExit(1)
    if subscription.days_remaining <= TRIAL_WARNING_DAYS:
        renderer.render_trial_warning(subscription)


def _run_analysis(analyzer: ProjectAnalyzer, show_progress: bool) -> AnalysisReport:
    if not show_progress:
        return analyzer.analyze()

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
        console=console,
        transient=False,
    ) as progress:
        task = progress.add_task("🔍 Running code analysis", total=len(analyzer.passes))

        def on_pass(index: int, total: int, name: str) -> None:
            progress.update(
                task,
                completed=index - 1,
                description=f"[cyan]Pass {index}/{total}[/cyan] {name}",
            )

        report = analyzer.analyze(on_pass=on_pass)
        progress.update(task, completed=len(analyzer.passes), description="✅ Done")

    return report


def _send_report(config: AgentConfig, report: AnalysisReport, quiet: bool) -> None:
    if not quiet:
        console.print("📡 Sending results...")

    try:
        _client(config).send_report(report)
    except ApiError as e:
        console.print(f"[red]❌ Failed to send results: {escape(str(e))}[/red]")
        console.print("[yellow]💡 Run 'scalecheck auth login' to authenticate[/yellow]")
        raise SystemExit(1)

    if not quiet:
        console.print("[green]✅ Analysis complete![/green]")
        console.print(f"🌐 View results: {DASHBOARD_URL}")


@main.group()
def auth() -> None:
    """Manage authentication and trial signup."""


@auth.command()
@click.option("--api-key", help="API key (prompted for if omitted)")
@click.option("--project-id", help="Default project ID")
@click.option("--verify", is_flag=True, help="Check the key with the server first")
@click.pass_context
def login(
    ctx: click.Context, api_key: str | None, project_id: str | None, verify: bool
) -> None:
    """Store your API key."""
    loader = _get_loader(ctx)

    if api_key is None:
        api_key = click.prompt("Enter your API key", hide_input=True)
        project_id = project_id or click.prompt(
            "Enter your default project ID (optional)",
            default="",
            show_default=False,
        )

    api_key = api_key.strip()
    if not api_key:
        console.print("[red]✗ API key cannot be empty[/red]")
        raise SystemExit(1)
    if not api_key.startswith("sc_"):
        console.print("[yellow]⚠️  API key should start with 'sc_'[/yellow]")

    if verify:
        try:
            _client(loader.config).validate_api_key(api_key)
        except ApiError as e:
            console.print(f"[red]✗ {escape(str(e))}[/red]")
            raise SystemExit(1)

    loader.set_value("api_key", api_key)
    if project_id:
        loader.set_value("project_id", project_id.strip())
    path = loader.save()

    console.print("[green]✅ Successfully authenticated![/green]")
    if project_id:
        console.print(f"[green]📝 Default project ID set to: {project_id}[/green]")
    console.print(f"[dim]Credentials saved to {path}[/dim]")


@auth.command()
@click.pass_context
def logout(ctx: click.Context) -> None:
    """Remove stored credentials."""
    loader = _get_loader(ctx)
    loader.clear_credentials()
    loader.save()
    console.print("[green]✅ Successfully logged out[/green]")


@auth.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show your subscription status."""
    config = _get_loader(ctx).config
    if not config.api_key:
        console.print("[red]✗ Not logged in. Run: scalecheck auth login[/red]")
        raise SystemExit(1)

    try:
        subscription = _client(config).get_subscription()
    except ApiError as e:
        console.print(f"[red]✗ Failed to get status: {escape(str(e))}[/red]")
        raise SystemExit(1)

    SubscriptionRenderer(console).render_status(subscription, config.project_id)

    if config.project_id:
        try:
            project = _client(config).get_project(config.project_id)
        except ApiError as e:
            logging.debug("Project lookup failed: %s", e)
        else:
            console.print(
                f"📁 {escape(project.name or project.id)}: "
                f"{project.analysis_count} analyses"
            )


@auth.command()
@click.option("--email", prompt="Work email", help="Work email address")
@click.option("--name", prompt="Your name", help="Your name")
@click.option(
    "--company", prompt="Company (optional)", default="", show_default=False
)
@click.pass_context
def signup(ctx: click.Context, email: str, name: str, company: str) -> None:
    """Start a 7-day free trial."""
    loader = _get_loader(ctx)

    try:
        trial = _client(loader.config).start_trial(email, name, company)
    except ApiError as e:
        console.print(f"[red]✗ Failed to create trial: {escape(str(e))}[/red]")
        raise SystemExit(1)

    loader.set_value("api_key", trial.api_key)
    loader.set_value("project_id", trial.project_id)
    loader.save()

    console.print("[green]🎉 Trial activated![/green]")
    if trial.trial_ends_at:
        console.print(f"   • Trial ends: {trial.trial_ends_at.strftime('%B %d, %Y')}")
    console.print(f"   • Analyses remaining: {trial.analyses_remaining}")
    console.print(f"   • Project ID: {trial.project_id}\n")
    console.print("🚀 Ready to analyze! Run: scalecheck analyze")


@main.group(name="config")
def config_group() -> None:
    """Read and change configuration values."""


@config_group.command(name="set")
@click.argument("key")
@click.argument("value")
@click.pass_context
def config_set(ctx: click.Context, key: str, value: str) -> None:
    """Set KEY (e.g. project_id, llm.mode, tool.timeout) to VALUE."""
    loader = _get_loader(ctx)
    try:
        loader.set_value(key, yaml.safe_load(value))
    except (ValueError, yaml.YAMLError) as e:
        console.print(f"[red]✗ {escape(str(e))}[/red]")
        raise SystemExit(1)
    loader.save()
    console.print(f"[green]✓ {key} updated[/green]")


@config_group.command(name="get")
@click.argument("key")
@click.pass_context
def config_get(ctx: click.Context, key: str) -> None:
    """Print the stored value of KEY."""
    value = _get_loader(ctx).get_value(key)
    if value is None:
        raise SystemExit(1)
    click.echo(value)


@main.command()
@click.option(
    "--mode",
    type=click.Choice(["local", "hybrid", "cloud"], case_sensitive=False),
    default="local",
    help="Analysis mode (default: local)",
)
@click.option("--model", help=f"Local model to use (default: {DEFAULT_LOCAL_MODEL})")
@click.option("--local-url", default=DEFAULT_LOCAL_URL, help="Local daemon URL")
@click.pass_context
def setup(ctx: click.Context, mode: str, model: str | None, local_url: str) -> None:
    """Configure cloud, local or hybrid analysis."""
    loader = _get_loader(ctx)
    mode = mode.lower()

    loader.set_value("llm.mode", mode)
    if mode == "cloud":
        loader.save()
        console.print("[green]✅ Cloud mode configured[/green]")
        return

    model = model or DEFAULT_LOCAL_MODEL
    loader.set_value("llm.local_model", model)
    loader.set_value("llm.local_url", local_url)
    loader.save()
    console.print(f"[green]✅ {mode.title()} mode configured with {model}[/green]")

    if not is_daemon_installed():
        console.print("[yellow]⚠️  ollama not installed: https://ollama.com/download[/yellow]")
    elif not is_daemon_healthy(local_url):
        console.print("[yellow]⚠️  Daemon not running. Start it with: ollama serve[/yellow]")
    elif not is_model_available(local_url, model):
        console.print(f"[yellow]⚠️  Model not pulled. Run: ollama pull {model}[/yellow]")
    else:
        console.print("[green]✓ Local daemon ready[/green]")


@main.command()
@click.pass_context
def doctor(ctx: click.Context) -> None:
    """Diagnose setup and configuration."""
    config = _get_loader(ctx).config
    console.print("[bold]🏥 ScaleCheck Health Check[/bold]\n")

    result = run_diagnostics(config)
    ValidationRenderer(console).render(result)

    if not result.valid:
        raise SystemExit(1)


@main.command()
def version() -> None:
    """Show agent version."""
    console.print(f"[bold magenta]ScaleCheck Agent[/bold magenta] [cyan]v{AGENT_VERSION}[/cyan]")
    console.print(f"Python: {sys.version.split()[0]}")
    console.print(f"Platform: {platform.system().lower()}/{platform.machine()}")


if __name__ == "__main__":
    main()
