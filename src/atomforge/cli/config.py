"""Settings loading for the atomforge CLI."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import jsonschema

from atomforge.application.blackboard import BlackboardConfig
from atomforge.application.planner import PlannerConfig
from atomforge.domain.exceptions import ConfigurationError
from atomforge.infrastructure.llm.openai_chat import OpenAIDecomposerConfig
from atomforge.infrastructure.persistence.filesystem import DEFAULT_MANIFEST_FILE_NAME
from atomforge.schemas import validate_settings

DEFAULT_SETTINGS_FILE = "atomforge.json"

ENV_OVERRIDES = {
    "OPENAI_API_KEY": "api_key",
    "ATOMFORGE_MODEL": "model",
    "ATOMFORGE_BASE_URL": "base_url",
}


@dataclass
class Settings:
    """Resolved settings for one CLI invocation."""

    workspace_root: str = "./output"
    manifest_file_name: str = DEFAULT_MANIFEST_FILE_NAME
    blackboard: BlackboardConfig = field(default_factory=BlackboardConfig)
    planner: PlannerConfig = field(default_factory=PlannerConfig)
    llm: OpenAIDecomposerConfig = field(default_factory=OpenAIDecomposerConfig)


def _section(config_class: type, data: dict[str, Any]) -> Any:
    known = {f.name for f in fields(config_class)}
    return config_class(**{k: v for k, v in data.items() if k in known})


def load_settings(
    path: Path | None = None, environ: dict[str, str] | None = None
) -> Settings:
    """
    Load settings from a JSON file and apply environment overrides.

    Args:
        path: Settings file; None uses ./atomforge.json when present
        environ: Environment mapping (defaults to os.environ)

    Returns:
        Resolved Settings

    Raises:
        ConfigurationError: If an explicit file is missing, or any file is invalid
    """
    environ = dict(os.environ) if environ is None else environ

    data: dict[str, Any] = {}
    if path is None:
        default = Path(DEFAULT_SETTINGS_FILE)
        if default.exists():
            data = _read_settings_file(default)
    else:
        if not path.exists():
            raise ConfigurationError(f"Settings file not found: {path}")
        data = _read_settings_file(path)

    workspace = data.get("workspace", {})
    settings = Settings(
        workspace_root=workspace.get("root_path", Settings.workspace_root),
        manifest_file_name=workspace.get(
            "manifest_file_name", DEFAULT_MANIFEST_FILE_NAME
        ),
        blackboard=_section(BlackboardConfig, data.get("blackboard", {})),
        planner=_section(PlannerConfig, data.get("planner", {})),
        llm=_section(OpenAIDecomposerConfig, data.get("llm", {})),
    )

    for variable, attribute in ENV_OVERRIDES.items():
        value = environ.get(variable)
        if value:
            setattr(settings.llm, attribute, value)

    return settings


def _read_settings_file(path: Path) -> dict[str, Any]:
    try:
        with open(path) as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Expected dict in {path}, got {type(data).__name__}")

    try:
        validate_settings(data)
    except jsonschema.ValidationError as e:
        location = "/".join(str(p) for p in e.absolute_path) or "(root)"
        raise ConfigurationError(f"Invalid settings in {path} at {location}: {e.message}") from e

    return data
