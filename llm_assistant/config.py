"""
Configuration management for the project assistant.

One immutable ``AssistantConfig`` is built at startup and handed to every
component. Values come from defaults, an optional JSON file and command-line
overrides, in that order.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Literal

from dotenv import load_dotenv

CONFIG_PATH = Path.home() / ".llm-assistant" / "config.json"

DEFAULT_EXCLUDE_DIRS = ("node_modules", ".git", "vendor", "tmp", "log", "coverage", "build")

PROVIDER_KEY_VARS = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
}


class ConfigError(Exception):
    """Configuration is missing or unreadable."""
    pass


def _filter_dataclass_fields(data: dict[str, Any], cls: type) -> dict[str, Any]:
    """Filter dict to only include fields that exist in the dataclass."""
    valid_fields = {f.name for f in fields(cls)}
    return {k: v for k, v in data.items() if k in valid_fields}


@dataclass(frozen=True)
class ContextConfig:
    """What goes into the project context message."""

    extensions: tuple[str, ...] = ()
    exclude_dirs: tuple[str, ...] = DEFAULT_EXCLUDE_DIRS
    max_tokens: int = 16000
    max_file_bytes: int = 1_000_000


@dataclass(frozen=True)
class HistoryConfig:
    """Conversation window sizes."""

    # Total messages (system + context + transcript) before trimming
    capacity: int = 12
    # Transcript entries dropped per trim step
    trim_step: int = 2
    # Transcript entries kept on refresh
    refresh_keep: int = 10


@dataclass(frozen=True)
class ModelConfig:
    """Model selection and sampling."""

    model: str = "gpt-4.1-2025-04-14"
    provider: Literal["openai", "anthropic"] | None = None
    base_url: str | None = None
    temperature: float = 0.7
    max_tokens: int = 2000
    request_timeout: float = 120.0


@dataclass(frozen=True)
class PipelineConfig:
    """Behaviour of the code artifact pipeline."""

    default_language: str = "ruby"
    max_repair_attempts: int = 3
    auto_commit_on_start: bool = True


@dataclass(frozen=True)
class AssistantConfig:
    """Complete assistant configuration."""

    project_dir: Path = field(default_factory=Path.cwd)
    api_key: str | None = field(default=None, repr=False)
    context: ContextConfig = field(default_factory=ContextConfig)
    history: HistoryConfig = field(default_factory=HistoryConfig)
    model: ModelConfig = field(default_factory=ModelConfig)
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)

    @classmethod
    def load(cls, path: Path | None = None) -> "AssistantConfig":
        """
        Load configuration from a JSON file.

        Missing file means defaults. Unknown keys are ignored.

        Raises:
            ConfigError: If the file exists but is not valid JSON
        """
        if path is None:
            path = CONFIG_PATH

        if not path.exists():
            return cls()

        try:
            data = json.loads(path.read_text())
        except (json.JSONDecodeError, OSError) as e:
            raise ConfigError(f"Cannot read config file {path}: {e}") from e

        context_data = _filter_dataclass_fields(data.get("context", {}), ContextConfig)
        for key in ("extensions", "exclude_dirs"):
            if key in context_data:
                context_data[key] = tuple(context_data[key])

        kwargs: dict[str, Any] = {}
        if "project_dir" in data:
            kwargs["project_dir"] = Path(data["project_dir"]).expanduser()
        if "api_key" in data:
            kwargs["api_key"] = data["api_key"]

        return cls(
            context=ContextConfig(**context_data),
            history=HistoryConfig(**_filter_dataclass_fields(data.get("history", {}), HistoryConfig)),
            model=ModelConfig(**_filter_dataclass_fields(data.get("model", {}), ModelConfig)),
            pipeline=PipelineConfig(**_filter_dataclass_fields(data.get("pipeline", {}), PipelineConfig)),
            **kwargs,
        )

    def with_overrides(
        self,
        project_dir: Path | None = None,
        api_key: str | None = None,
        **sections: dict[str, Any],
    ) -> "AssistantConfig":
        """
        Return a copy with fields replaced.

        Args:
            project_dir: New project directory (resolved to an absolute path)
            api_key: New API key
            **sections: Per-section field overrides, e.g.
                ``context={"max_tokens": 8000}``. ``None`` values are skipped
                so unset command-line options keep the loaded value.

        Raises:
            ConfigError: If a section or field name is unknown
        """
        changes: dict[str, Any] = {}

        for name, values in sections.items():
            section = getattr(self, name, None)
            if name not in ("context", "history", "model", "pipeline") or section is None:
                raise ConfigError(f"Unknown configuration section: {name}")

            values = {k: v for k, v in values.items() if v is not None}
            unknown = set(values) - {f.name for f in fields(section)}
            if unknown:
                raise ConfigError(f"Unknown {name} options: {', '.join(sorted(unknown))}")
            if values:
                changes[name] = replace(section, **values)

        if project_dir is not None:
            changes["project_dir"] = Path(project_dir).expanduser().resolve()
        if api_key is not None:
            changes["api_key"] = api_key

        return replace(self, **changes)

    def resolve_api_key(self) -> str:
        """
        Find the API key for the configured model.

        Priority order:
        1. api_key set in the config or on the command line
        2. LLM_API_KEY environment variable
        3. The provider's own variable (OPENAI_API_KEY / ANTHROPIC_API_KEY)

        A ``.env`` file in the project directory is loaded first.

        Raises:
            ConfigError: If no key is found
        """
        if self.api_key:
            return self.api_key

        env_file = Path(self.project_dir) / ".env"
        if env_file.exists():
            load_dotenv(env_file)

        key = os.environ.get("LLM_API_KEY")
        if not key:
            from .api_client import resolve_wire_format

            wire_format = resolve_wire_format(self.model.model, self.model.provider)
            key = os.environ.get(PROVIDER_KEY_VARS[wire_format.value])

        if not key:
            raise ConfigError(
                "API key is required. Pass --api-key or set the LLM_API_KEY environment variable."
            )
        return key


__all__ = [
    "AssistantConfig",
    "CONFIG_PATH",
    "ConfigError",
    "ContextConfig",
    "DEFAULT_EXCLUDE_DIRS",
    "HistoryConfig",
    "ModelConfig",
    "PipelineConfig",
]
