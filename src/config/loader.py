import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from src.config.models import Settings

CONFIG_ENV_VAR = "NEWSLETTER_CONFIG"
DEFAULT_CONFIG_PATH = Path("configuration.yaml")

# Environment variable -> (section, key) in configuration.yaml
ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "NEWSLETTER_DATABASE_PATH": ("database", "path"),
    "NEWSLETTER_EMAIL_API_KEY": ("email_client", "api_key"),
    "NEWSLETTER_EMAIL_API_SECRET": ("email_client", "api_secret"),
    "NEWSLETTER_EMAIL_BASE_URL": ("email_client", "base_url"),
}


def resolve_config_path(
    path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> Path:
    """Explicit path, then $NEWSLETTER_CONFIG, then ./configuration.yaml."""
    if path is not None:
        return path
    env = os.environ if environ is None else environ
    override = env.get(CONFIG_ENV_VAR)
    return Path(override) if override else DEFAULT_CONFIG_PATH


def apply_env_overrides(data: dict[str, Any], environ: Mapping[str, str]) -> dict[str, Any]:
    """Return a copy of data with environment overrides applied."""
    merged = {key: dict(value) if isinstance(value, dict) else value for key, value in data.items()}
    for env_var, (section, key) in ENV_OVERRIDES.items():
        value = environ.get(env_var)
        if value is None:
            continue
        target = merged.setdefault(section, {})
        if not isinstance(target, dict):
            raise ValueError(f"Configuration section '{section}' must be a mapping")
        target[key] = value
    return merged


def load_settings(
    path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> Settings:
    """
    Load and validate the configuration file.
    Raises FileNotFoundError if file missing.
    Raises ValueError if YAML or schema invalid.
    """
    env = os.environ if environ is None else environ
    config_path = resolve_config_path(path, env)
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found at: {config_path}")

    with open(config_path) as f:
        content = f.read()

    try:
        data = yaml.safe_load(content) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML syntax in configuration file: {e}") from e

    if not isinstance(data, dict):
        raise ValueError("Configuration file must contain a mapping at the top level")

    try:
        return Settings.model_validate(apply_env_overrides(data, env))
    except ValidationError as e:
        # Re-raise with a clear message for the caller/logs
        raise ValueError(f"Configuration validation failed:\n{e}") from e
