"""Tests for the command-line interface."""

import json
from unittest.mock import Mock, patch

import pytest
import yaml
from click.testing import CliRunner

from scalecheck.cli import main
from scalecheck.client import ApiError
from scalecheck.doctor import ValidationResult
from scalecheck.models import AnalysisReport, ProjectInfo, SubscriptionInfo, TrialInfo
from scalecheck.normalizer import normalize_report
from scalecheck.runner import ToolInvocationError, ToolUnavailableError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep host credentials out of the tests."""
    for var in ("SCALECHECK_API_KEY", "SCALECHECK_PROJECT_ID", "SCALECHECK_API_URL"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def cli_runner():
    """Create CLI runner."""
    return CliRunner()


@pytest.fixture
def config_file(tmp_path):
    """Config file with credentials in cloud mode."""
    path = tmp_path / "config.yaml"
    path.write_text("api_key: sc_test\nproject_id: proj_cfg\n")
    return path


@pytest.fixture
def sample_code_dir(tmp_path):
    """Create sample code directory."""
    code_dir = tmp_path / "app"
    code_dir.mkdir()
    (code_dir / "go.mod").write_text("module example.com/app\n")
    return code_dir


@pytest.fixture
def sample_report():
    return normalize_report(
        AnalysisReport(project_id="proj_cfg", language="Go", framework="Gin")
    )


@pytest.fixture
def mock_analyzer(sample_report):
    """Patch the analyzer so no tool is invoked."""
    with patch("scalecheck.cli.ProjectAnalyzer") as mock_cls:
        analyzer = Mock()
        analyzer.passes = (1, 2, 3, 4)
        analyzer.analyze.return_value = sample_report
        mock_cls.return_value = analyzer
        yield mock_cls


@pytest.fixture
def mock_client():
    """Patch the API client."""
    with patch("scalecheck.cli.ScaleCheckClient") as mock_cls:
        client = Mock()
        client.get_subscription.return_value = SubscriptionInfo(
            tier="professional", analyses_used=1, analyses_limit=100
        )
        client.get_project.return_value = ProjectInfo(
            id="proj_cfg", name="shop", analysis_count=3
        )
        mock_cls.return_value = client
        yield client


def read_config(path):
    return yaml.safe_load(path.read_text()) or {}


def test_cli_help(cli_runner):
    """Test CLI help command."""
    result = cli_runner.invoke(main, ["--help"])
    assert result.exit_code == 0
    assert "Usage:" in result.output
    assert "analyze" in result.output


def test_version(cli_runner):
    """Test the version command."""
    result = cli_runner.invoke(main, ["version"])
    assert result.exit_code == 0
    assert "1.0.0" in result.output


def test_analyze_cloud_sends_report(
    cli_runner, config_file, sample_code_dir, mock_analyzer, mock_client
):
    """Test a cloud run analyzes, renders and sends the report."""
    result = cli_runner.invoke(
        main, ["--config", str(config_file), "analyze", str(sample_code_dir)]
    )

    assert result.exit_code == 0, result.output
    mock_analyzer.assert_called_once()
    assert mock_analyzer.call_args.args[1] == "proj_cfg"
    mock_client.send_report.assert_called_once()
    assert "Analysis complete" in result.output


def test_analyze_json_output(
    cli_runner, config_file, sample_code_dir, mock_analyzer, mock_client
):
    """Test JSON output contains the report."""
    result = cli_runner.invoke(
        main,
        ["--config", str(config_file), "analyze", str(sample_code_dir), "-o", "json"],
    )

    assert result.exit_code == 0, result.output
    start = result.output.index("{")
    end = result.output.rindex("}") + 1
    data = json.loads(result.output[start:end])
    assert data["framework"] == "Gin"


def test_analyze_project_id_flag(
    cli_runner, config_file, sample_code_dir, mock_analyzer, mock_client
):
    """Test --project-id takes precedence over config."""
    result = cli_runner.invoke(
        main,
        [
            "--config",
            str(config_file),
            "analyze",
            str(sample_code_dir),
            "--project-id",
            "proj_flag",
        ],
    )

    assert result.exit_code == 0, result.output
    assert mock_analyzer.call_args.args[1] == "proj_flag"


def test_analyze_local_mode_never_sends(
    cli_runner, tmp_path, sample_code_dir, mock_analyzer, mock_client
):
    """Test local mode neither checks the subscription nor sends."""
    config_file = tmp_path / "local.yaml"
    config_file.write_text("llm:\n  mode: local\n")

    with patch("scalecheck.cli.is_daemon_healthy", return_value=True):
        result = cli_runner.invoke(
            main, ["--config", str(config_file), "analyze", str(sample_code_dir)]
        )

    assert result.exit_code == 0, result.output
    assert "Generated new project ID: proj_" in result.output
    mock_client.get_subscription.assert_not_called()
    mock_client.send_report.assert_not_called()
    assert "nothing was sent" in result.output


def test_analyze_without_key(cli_runner, tmp_path, sample_code_dir, mock_analyzer):
    """Test cloud mode requires a key."""
    config_file = tmp_path / "empty.yaml"

    result = cli_runner.invoke(
        main, ["--config", str(config_file), "analyze", str(sample_code_dir)]
    )

    assert result.exit_code == 1
    assert "No API key found" in result.output
    mock_analyzer.assert_not_called()


def test_analyze_trial_exhausted(
    cli_runner, config_file, sample_code_dir, mock_analyzer, mock_client
):
    """Test an exhausted trial blocks the run with an upgrade prompt."""
    mock_client.get_subscription.return_value = SubscriptionInfo(
        tier="trial", analyses_used=1, analyses_limit=1, days_remaining=5
    )

    result = cli_runner.invoke(
        main, ["--config", str(config_file), "analyze", str(sample_code_dir)]
    )

    assert result.exit_code == 1
    assert "Trial Analysis Used" in result.output
    mock_analyzer.assert_not_called()


def test_analyze_trial_expiring_warns(
    cli_runner, config_file, sample_code_dir, mock_analyzer, mock_client
):
    """Test a nearly expired trial warns but continues."""
    mock_client.get_subscription.return_value = SubscriptionInfo(
        tier="trial", analyses_used=0, analyses_limit=1, days_remaining=1
    )

    result = cli_runner.invoke(
        main, ["--config", str(config_file), "analyze", str(sample_code_dir)]
    )

    assert result.exit_code == 0, result.output
    assert "Trial expires in 1 days" in result.output


def test_analyze_tool_missing(
    cli_runner, config_file, sample_code_dir, mock_analyzer, mock_client
):
    """Test install instructions are shown when the tool is missing."""
    mock_analyzer.return_value.analyze.side_effect = ToolUnavailableError("claude")

    result = cli_runner.invoke(
        main, ["--config", str(config_file), "analyze", str(sample_code_dir)]
    )

    assert result.exit_code == 1
    assert "npm install" in result.output
    mock_client.send_report.assert_not_called()


def test_analyze_pass_failure_shows_output(
    cli_runner, config_file, sample_code_dir, mock_analyzer, mock_client
):
    """Test tool failures print the captured output."""
    mock_analyzer.return_value.analyze.side_effect = ToolInvocationError(
        "Analysis tool failed with exit code 3", output="not logged in", returncode=3
    )

    result = cli_runner.invoke(
        main, ["--config", str(config_file), "analyze", str(sample_code_dir)]
    )

    assert result.exit_code == 1
    assert "not logged in" in result.output
    mock_client.send_report.assert_not_called()


def test_analyze_send_failure(
    cli_runner, config_file, sample_code_dir, mock_analyzer, mock_client
):
    """Test a rejected report exits non-zero."""
    mock_client.send_report.side_effect = ApiError("API request failed", 500)

    result = cli_runner.invoke(
        main, ["--config", str(config_file), "analyze", str(sample_code_dir)]
    )

    assert result.exit_code == 1
    assert "Failed to send results" in result.output


def test_auth_login(cli_runner, tmp_path):
    """Test login stores the key and project."""
    config_file = tmp_path / "config.yaml"

    result = cli_runner.invoke(
        main,
        ["--config", str(config_file), "auth", "login"],
        input="sc_secret\nproj_42\n",
    )

    assert result.exit_code == 0, result.output
    stored = read_config(config_file)
    assert stored["api_key"] == "sc_secret"
    assert stored["project_id"] == "proj_42"
    assert "sc_secret" not in result.output


def test_auth_login_warns_on_key_format(cli_runner, tmp_path):
    """Test an unexpected key prefix is only a warning."""
    config_file = tmp_path / "config.yaml"

    result = cli_runner.invoke(
        main, ["--config", str(config_file), "auth", "login", "--api-key", "abc"]
    )

    assert result.exit_code == 0
    assert "should start with 'sc_'" in result.output
    assert read_config(config_file)["api_key"] == "abc"


def test_auth_logout(cli_runner, config_file):
    """Test logout removes credentials."""
    result = cli_runner.invoke(main, ["--config", str(config_file), "auth", "logout"])

    assert result.exit_code == 0
    assert "api_key" not in read_config(config_file)


def test_auth_status(cli_runner, config_file, mock_client):
    """Test status shows the subscription."""
    result = cli_runner.invoke(main, ["--config", str(config_file), "auth", "status"])

    assert result.exit_code == 0, result.output
    assert "Professional" in result.output
    assert "proj_cfg" in result.output
    assert "shop: 3 analyses" in result.output


def test_auth_status_not_logged_in(cli_runner, tmp_path):
    """Test status without a key fails."""
    result = cli_runner.invoke(
        main, ["--config", str(tmp_path / "none.yaml"), "auth", "status"]
    )
    assert result.exit_code == 1


def test_auth_signup(cli_runner, tmp_path, mock_client):
    """Test signup stores the trial credentials."""
    config_file = tmp_path / "config.yaml"
    mock_client.start_trial.return_value = TrialInfo(
        api_key="sc_trial", project_id="proj_trial", analyses_remaining=1
    )

    result = cli_runner.invoke(
        main,
        ["--config", str(config_file), "auth", "signup"],
        input="dev@example.com\nDev\n\n",
    )

    assert result.exit_code == 0, result.output
    mock_client.start_trial.assert_called_once_with("dev@example.com", "Dev", "")
    stored = read_config(config_file)
    assert stored["api_key"] == "sc_trial"
    assert stored["project_id"] == "proj_trial"


def test_config_set(cli_runner, tmp_path):
    """Test config set coerces scalar values."""
    config_file = tmp_path / "config.yaml"

    result = cli_runner.invoke(
        main, ["--config", str(config_file), "config", "set", "tool.timeout", "300"]
    )

    assert result.exit_code == 0, result.output
    assert read_config(config_file)["tool"]["timeout"] == 300


def test_config_set_invalid(cli_runner, tmp_path):
    """Test invalid values are rejected and nothing is written."""
    config_file = tmp_path / "config.yaml"

    result = cli_runner.invoke(
        main, ["--config", str(config_file), "config", "set", "llm.mode", "offline"]
    )

    assert result.exit_code == 1
    assert not config_file.exists()


def test_invalid_config_file(cli_runner, tmp_path, sample_code_dir):
    """Test a broken config file is reported."""
    config_file = tmp_path / "broken.yaml"
    config_file.write_text("llm: [unclosed\n")

    result = cli_runner.invoke(
        main, ["--config", str(config_file), "analyze", str(sample_code_dir)]
    )

    assert result.exit_code == 1
    assert "Invalid YAML" in result.output


def test_setup_local(cli_runner, tmp_path):
    """Test local setup writes mode and model."""
    config_file = tmp_path / "config.yaml"

    with (
        patch("scalecheck.cli.is_daemon_installed", return_value=True),
        patch("scalecheck.cli.is_daemon_healthy", return_value=True),
        patch("scalecheck.cli.is_model_available", return_value=False),
    ):
        result = cli_runner.invoke(
            main,
            ["--config", str(config_file), "setup", "--mode", "local", "--model", "m1"],
        )

    assert result.exit_code == 0, result.output
    stored = read_config(config_file)
    assert stored["llm"]["mode"] == "local"
    assert stored["llm"]["local_model"] == "m1"
    assert "ollama pull m1" in result.output


def test_setup_cloud(cli_runner, tmp_path):
    """Test cloud setup only sets the mode."""
    config_file = tmp_path / "config.yaml"

    result = cli_runner.invoke(
        main, ["--config", str(config_file), "setup", "--mode", "cloud"]
    )

    assert result.exit_code == 0
    assert read_config(config_file)["llm"] == {"mode": "cloud"}


def test_doctor_exit_code(cli_runner, config_file):
    """Test doctor exits non-zero when a check fails."""
    failing = ValidationResult(name="ScaleCheck Health")
    failing.add_check("Analysis tool", False, "claude not found on PATH")

    with patch("scalecheck.cli.run_diagnostics", return_value=failing):
        result = cli_runner.invoke(main, ["--config", str(config_file), "doctor"])

    assert result.exit_code == 1
    assert "claude not found on PATH" in result.output


def test_doctor_success(cli_runner, config_file):
    """Test doctor exits zero when every check passes."""
    passing = ValidationResult(name="ScaleCheck Health")
    passing.add_check("API key", True, "API key configured")

    with patch("scalecheck.cli.run_diagnostics", return_value=passing):
        result = cli_runner.invoke(main, ["--config", str(config_file), "doctor"])

    assert result.exit_code == 0
    assert "All systems operational" in result.output


def test_auth_login_verify(cli_runner, tmp_path, mock_client):
    """Test --verify checks the key before storing it."""
    config_file = tmp_path / "config.yaml"

    result = cli_runner.invoke(
        main,
        ["--config", str(config_file), "auth", "login", "--api-key", "sc_ok", "--verify"],
    )

    assert result.exit_code == 0, result.output
    mock_client.validate_api_key.assert_called_once_with("sc_ok")
    assert read_config(config_file)["api_key"] == "sc_ok"


def test_auth_login_verify_rejected(cli_runner, tmp_path, mock_client):
    """Test a rejected key is not stored."""
    config_file = tmp_path / "config.yaml"
    mock_client.validate_api_key.side_effect = ApiError("Invalid API key", 401)

    result = cli_runner.invoke(
        main,
        ["--config", str(config_file), "auth", "login", "--api-key", "sc_no", "--verify"],
    )

    assert result.exit_code == 1
    assert "Invalid API key" in result.output
    assert not config_file.exists()
