"""Persisted configuration management."""

from __future__ import annotations

import json
import os
from dataclasses import asdict, fields, replace
from pathlib import Path
from typing import Any

from .errors import ConfigurationError
from .models import Config

APP_DIR = Path.home() / ".recapmail"
CONFIG_PATH = (APP_DIR / "config.json").expanduser()

# Environment variables win over the config file.
ENV_OVERRIDES = {
    "google_api_key": ("GOOGLE_API_KEY",),
    "openai_api_key": ("OPENAI_API_KEY",),
    "groq_api_key": ("GROQ_API_KEY", "VITE_GROQ_API_KEY"),
    "resend_api_key": ("RESEND_API_KEY",),
    "mail_from": ("RECAPMAIL_MAIL_FROM",),
}


class ConfigError(ConfigurationError):
    """Raised when configuration cannot be loaded or saved."""


def load_config() -> Config:
    if not CONFIG_PATH.exists():
        return Config()
    try:
        payload = json.loads(CONFIG_PATH.read_text())
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Failed to parse configuration file: {exc}") from exc
    known = {f.name for f in fields(Config)}
    unknown = set(payload) - known
    if unknown:
        raise ConfigError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")
    return Config(**payload)


def runtime_config() -> Config:
    """Return the stored configuration with environment overrides applied.

    Called per request so that credentials are never cached between calls.
    """

    config = load_config()
    for attribute, names in ENV_OVERRIDES.items():
        for name in names:
            value = os.environ.get(name)
            if value:
                setattr(config, attribute, value)
                break
    return config


def save_config(config: Config) -> None:
    """Write the non-empty settings; the file holds API keys so it is owner-only."""

    CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
    data = {k: v for k, v in asdict(config).items() if v not in (None, "")}
    CONFIG_PATH.write_text(json.dumps(data, indent=2, sort_keys=True))
    CONFIG_PATH.chmod(0o600)


def update_config(**kwargs: Any) -> Config:
    unknown = sorted(set(kwargs) - {f.name for f in fields(Config)})
    if unknown:
        raise ConfigError(f"Unknown configuration key: {', '.join(unknown)}")
    config = replace(load_config(), **kwargs)
    save_config(config)
    return config


def redacted(config: Config) -> dict:
    """Configuration as a dict with credentials masked, for display."""

    data = asdict(config)
    for key, value in data.items():
        if key.endswith("_api_key") and value:
            data[key] = value[:4] + "..." if len(value) > 8 else "***"
    return data
