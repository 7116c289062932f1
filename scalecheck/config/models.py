"""Pydantic data models for agent configuration validation."""

from typing import Literal

from pydantic import BaseModel, Field

from scalecheck.runner import DEFAULT_TOOL_COMMAND

DEFAULT_API_URL = "https://api.scalecheck.dev"
DEFAULT_LOCAL_URL = "http://localhost:11434"
DEFAULT_LOCAL_MODEL = "codellama:7b"


class LLMConfig(BaseModel):
    """Analysis mode configuration.

    Attributes:
        mode: "cloud" sends reports to the API, "local" never sends anything,
            "hybrid" analyzes locally and then sends the report.
        local_url: Base URL of the local model-serving daemon.
        local_model: Model the local daemon should serve.
    """

    model_config = {"frozen": True}

    mode: Literal["cloud", "local", "hybrid"] = Field(
        default="cloud", description="Analysis mode"
    )
    local_url: str = Field(
        default=DEFAULT_LOCAL_URL, min_length=1, description="Local daemon base URL"
    )
    local_model: str | None = Field(default=None, description="Local model name")


class ToolConfig(BaseModel):
    """External analysis tool configuration.

    Attributes:
        command: argv template; {instruction} and {directory} are substituted.
        timeout: Optional per-pass timeout in seconds.
    """

    model_config = {"frozen": True}

    command: list[str] = Field(
        default_factory=lambda: list(DEFAULT_TOOL_COMMAND),
        min_length=1,
        description="Analysis tool argv template",
    )
    timeout: float | None = Field(
        default=None, gt=0, description="Per-pass timeout in seconds"
    )


class AgentConfig(BaseModel):
    """Root configuration for the agent.

    Attributes:
        api_key: Bearer credential for the report API.
        project_id: Default project identifier.
        api_url: Base URL of the report API.
        llm: Analysis mode settings.
        tool: Analysis tool settings.
    """

    model_config = {"frozen": True}

    api_key: str | None = Field(default=None, description="API key")
    project_id: str | None = Field(default=None, description="Default project ID")
    api_url: str = Field(
        default=DEFAULT_API_URL, min_length=1, description="Report API base URL"
    )
    llm: LLMConfig = Field(default_factory=LLMConfig, description="Mode settings")
    tool: ToolConfig = Field(default_factory=ToolConfig, description="Tool settings")

    @property
    def is_authenticated(self) -> bool:
        return bool(self.api_key)
