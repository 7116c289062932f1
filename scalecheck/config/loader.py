"""Configuration loader for agent settings.

This module provides the ConfigLoader class that:
- Loads configuration from ~/.scalecheck.yaml (or an explicit path)
- Expands environment variables (${VAR_NAME} syntax) in values
- Applies SCALECHECK_* environment overrides for credentials
- Persists changes back to YAML with owner-only permissions
"""

import copy
import logging
import os
import re
import secrets
from pathlib import Path
from typing import Any

import yaml  # type: ignore[import-untyped]
from pydantic import ValidationError

from scalecheck.config.models import AgentConfig

CONFIG_FILE_NAME = ".scalecheck.yaml"

# Environment variables that take precedence over the config file
ENV_OVERRIDES = {
    "SCALECHECK_API_KEY": "api_key",
    "SCALECHECK_PROJECT_ID": "project_id",
    "SCALECHECK_API_URL": "api_url",
}


def default_config_path() -> Path:
    return Path.home() / CONFIG_FILE_NAME


def generate_project_id() -> str:
    """Create a new random project ID of the form proj_<16 hex chars>."""
    return "proj_" + secrets.token_hex(8)


class ConfigLoader:
    """Loads, edits and saves agent configuration YAML."""

    def __init__(self, config_path: Path | None = None):
        """Initialize loader with config file path.

        Args:
            config_path: Path to YAML config (defaults to ~/.scalecheck.yaml)

        Raises:
            ValueError: If the file exists but is not valid configuration
        """
        self.config_path = config_path or default_config_path()
        self._raw_config: dict[str, Any] = {}
        self._config: AgentConfig = AgentConfig()

        self._load_config()

    def _load_config(self) -> None:
        """Load and parse YAML configuration."""
        try:
            with open(self.config_path, encoding="utf-8") as f:
                raw_yaml = f.read()
        except FileNotFoundError:
            logging.debug("No config file at %s, using defaults", self.config_path)
            raw_yaml = ""
        except PermissionError:
            raise ValueError(
                f"Permission denied reading configuration: {self.config_path}"
            )

        try:
            loaded = yaml.safe_load(raw_yaml) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}")

        if not isinstance(loaded, dict):
            raise ValueError(
                f"Configuration file must contain a mapping: {self.config_path}"
            )

        self._raw_config = loaded
        self._config = self._build_config()

    def _build_config(self) -> AgentConfig:
        """Validate raw settings, with env vars expanded and overrides applied."""
        data = copy.deepcopy(self._raw_config)
        self._expand_env_vars_in_dict(data)

        for env_var, key in ENV_OVERRIDES.items():
            value = os.environ.get(env_var)
            if value:
                data[key] = value

        try:
            return AgentConfig.model_validate(data)
        except ValidationError as e:
            raise ValueError(f"Invalid configuration in {self.config_path}: {e}")

    def _expand_env_var_string(self, text: str) -> str:
        """Expand ${VAR_NAME} placeholders in a single string value."""

        def replacer(match: re.Match) -> str:
            var_name = match.group(1)
            value = os.environ.get(var_name, "")
            if not value:
                logging.warning("Environment variable not set: %s", var_name)
                return ""
            return value

        return re.sub(r"\$\{([A-Z_][A-Z0-9_]*)\}", replacer, text)

    def _expand_env_vars_in_dict(self, data: Any) -> None:
        """Recursively expand ${VAR_NAME} in parsed YAML values in-place."""
        if isinstance(data, dict):
            for key in data:
                value = data[key]
                if isinstance(value, str) and "${" in value:
                    data[key] = self._expand_env_var_string(value)
                elif isinstance(value, (dict, list)):
                    self._expand_env_vars_in_dict(value)
        elif isinstance(data, list):
            for i, item in enumerate(data):
                if isinstance(item, str) and "${" in item:
                    data[i] = self._expand_env_var_string(item)
                elif isinstance(item, (dict, list)):
                    self._expand_env_vars_in_dict(item)

    @property
    def config(self) -> AgentConfig:
        """Validated configuration."""
        return self._config

    def get_value(self, dotted_key: str) -> Any:
        """Look up a raw (unexpanded) value such as "llm.mode"."""
        node: Any = self._raw_config
        for part in dotted_key.split("."):
            if not isinstance(node, dict) or part not in node:
                return None
            node = node[part]
        return node

    def set_value(self, dotted_key: str, value: Any) -> None:
        """Set a value such as "llm.mode" and revalidate.

        Raises:
            ValueError: If the resulting configuration is invalid
        """
        previous = copy.deepcopy(self._raw_config)
        node = self._raw_config
        parts = dotted_key.split(".")
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        node[parts[-1]] = value

        try:
            self._config = self._build_config()
        except ValueError:
            self._raw_config = previous
            raise

    def clear_credentials(self) -> None:
        """Remove the stored API key and project ID."""
        self._raw_config.pop("api_key", None)
        self._raw_config.pop("project_id", None)
        self._config = self._build_config()

    def save(self) -> Path:
        """Write configuration to disk, readable only by the owner.

        Returns:
            Path written
        """
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_path, "w", encoding="utf-8") as f:
            yaml.safe_dump(self._raw_config, f, default_flow_style=False, sort_keys=True)
        os.chmod(self.config_path, 0o600)
        return self.config_path
