"""Invocation of the external code-analysis tool, one pass at a time."""

import logging
import re
import shutil
import subprocess
from pathlib import Path

# argv template for the analysis tool; {instruction} and {directory} are bound
# per invocation
DEFAULT_TOOL_COMMAND = [
    "claude",
    "code",
    "--prompt",
    "{instruction}",
    "--directory",
    "{directory}",
]

# Both placeholders are bound in a single pass over each argument
PLACEHOLDER_PATTERN = re.compile(r"\{(instruction|directory)\}")


class ToolUnavailableError(RuntimeError):
    """The analysis tool could not be found on the execution path."""

    def __init__(self, executable: str):
        self.executable = executable
        super().__init__(f"Analysis tool not found: {executable}")


class ToolInvocationError(RuntimeError):
    """The analysis tool ran but failed.

    Attributes:
        returncode: Exit status of the tool (None when it timed out)
        output: Combined stdout/stderr captured before the failure
    """

    def __init__(self, message: str, output: str = "", returncode: int | None = None):
        self.output = output
        self.returncode = returncode
        super().__init__(f"{message}\nOutput: {output}" if output else message)


def is_tool_installed(executable: str = DEFAULT_TOOL_COMMAND[0]) -> bool:
    """Check whether the analysis tool is resolvable on PATH."""
    return shutil.which(executable) is not None


def install_instructions() -> str:
    """Installation help shown when the analysis tool is missing."""
    return """Analysis tool CLI not found. Install it with:

  • npm: npm install -g @anthropic-ai/claude-code
  • Docs: https://docs.anthropic.com/claude-code

After installation, authenticate the tool and re-run this command."""


class PassRunner:
    """Runs the external analysis tool once per pass against a directory."""

    def __init__(
        self,
        directory: Path,
        command: list[str] | None = None,
        timeout: float | None = None,
    ):
        """
        Initialize runner.

        Args:
            directory: Directory the tool should analyze
            command: argv template with {instruction}/{directory} placeholders
                (defaults to DEFAULT_TOOL_COMMAND)
            timeout: Optional per-invocation timeout in seconds (None waits
                indefinitely)
        """
        self.directory = directory.resolve()
        self.command = list(command or DEFAULT_TOOL_COMMAND)
        self.timeout = timeout

    @property
    def executable(self) -> str:
        return self.command[0]

    def is_available(self) -> bool:
        return is_tool_installed(self.executable)

    def build_command(self, instruction: str) -> list[str]:
        """Bind instruction and directory into the argv template."""
        values = {"instruction": instruction, "directory": str(self.directory)}
        return [
            PLACEHOLDER_PATTERN.sub(lambda m: values[m.group(1)], part)
            for part in self.command
        ]

    def run_pass(self, instruction: str) -> str:
        """
        Invoke the tool once and return its combined output.

        Args:
            instruction: Natural-language instruction for this pass

        Returns:
            stdout and stderr, interleaved as produced

        Raises:
            ToolUnavailableError: If the tool is not on PATH
            ToolInvocationError: If the tool exits non-zero or times out
        """
        command = self.build_command(instruction)
        logging.debug("Running analysis tool: %s", command[0])

        try:
            result = subprocess.run(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=self.timeout,
                cwd=self.directory,
                shell=False,  # Security: instruction text is never shell-parsed
            )
        except FileNotFoundError:
            raise ToolUnavailableError(self.executable)
        except PermissionError:
            raise ToolUnavailableError(self.executable)
        except subprocess.TimeoutExpired as e:
            output = e.output or ""
            if isinstance(output, bytes):
                output = output.decode("utf-8", errors="replace")
            raise ToolInvocationError(
                f"Analysis tool timed out after {self.timeout} seconds", output=output
            )

        output = result.stdout or ""
        if result.returncode != 0:
            raise ToolInvocationError(
                f"Analysis tool failed with exit code {result.returncode}",
                output=output,
                returncode=result.returncode,
            )

        return output
