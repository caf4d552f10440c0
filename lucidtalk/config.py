"""Configuration construction, validation and persistence."""

from __future__ import annotations

import json
from dataclasses import asdict, fields, replace
from pathlib import Path
from typing import Any, Optional

import structlog

from .errors import ConfigurationError
from .models import Config

CONFIG_PATH = (Path.home() / ".lucidtalk" / "config.json").expanduser()

logger = structlog.get_logger(__name__)

_KNOWN_KEYS = frozenset(f.name for f in fields(Config))


def validate_config(config: Config) -> Config:
    """Check the invariants of ``config`` and warn about missing API keys."""

    if not config.privacy:
        raise ConfigurationError("Privacy mode is required")
    if config.ai and config.ai != "local" and not config.api_keys.get(config.ai):
        logger.warning(
            "API key not provided, some features may not work",
            provider=config.ai,
        )
    return config


def merge_config(base: Optional[Config] = None, **overrides: Any) -> Config:
    """Return ``base`` (or defaults) with ``overrides`` applied, without validating."""

    unknown = sorted(set(overrides) - _KNOWN_KEYS)
    if unknown:
        raise ConfigurationError(f"Unknown configuration key: {', '.join(unknown)}")
    config = replace(base or Config(), **overrides)
    return replace(config, api_keys=dict(config.api_keys or {}))


def build_config(base: Optional[Config] = None, **overrides: Any) -> Config:
    """Return a validated config made of ``base`` (or defaults) plus ``overrides``."""

    return validate_config(merge_config(base, **overrides))


def load_config() -> Config:
    if not CONFIG_PATH.exists():
        return Config()
    try:
        payload = json.loads(CONFIG_PATH.read_text())
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Failed to parse configuration file: {exc}") from exc
    if not isinstance(payload, dict):
        raise ConfigurationError("Configuration file must contain a JSON object")
    return merge_config(**payload)


def save_config(config: Config) -> None:
    CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
    data = {k: v for k, v in asdict(config).items() if v is not None}
    CONFIG_PATH.write_text(json.dumps(data, indent=2))


def update_config(**kwargs: Any) -> Config:
    config = build_config(load_config(), **kwargs)
    save_config(config)
    return config
