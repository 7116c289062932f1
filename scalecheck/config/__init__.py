"""Configuration package: settings models, YAML loader and pass instructions."""

from scalecheck.config.loader import (
    ConfigLoader,
    default_config_path,
    generate_project_id,
)
from scalecheck.config.models import AgentConfig, LLMConfig, ToolConfig
from scalecheck.config.prompts import (
    DATABASE_API_PROMPT,
    PERFORMANCE_PROMPT,
    RESOURCE_PROMPT_TEMPLATE,
    STRUCTURE_PROMPT,
)

__all__ = [
    "AgentConfig",
    "LLMConfig",
    "ToolConfig",
    "ConfigLoader",
    "default_config_path",
    "generate_project_id",
    "STRUCTURE_PROMPT",
    "DATABASE_API_PROMPT",
    "PERFORMANCE_PROMPT",
    "RESOURCE_PROMPT_TEMPLATE",
]
