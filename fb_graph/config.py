from __future__ import annotations

import hashlib
import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

import yaml
from pydantic import ValidationError

from .config_schema import AppConfig
from .errors import ConfigError
from .retry import RetryPolicy


@dataclass(frozen=True)
class RuntimeSecrets:
    access_token: str
    client_id: str | None = None
    client_secret: str | None = None


def load_config(path: str | Path) -> AppConfig:
    """
    Load a YAML config file and validate it into a typed AppConfig.

    Raises ConfigError with a readable validation message on failure.
    """
    p = Path(path)

    if not p.exists():
        raise ConfigError(f"Config file not found: {p}")

    try:
        raw_text = p.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Failed to read config file: {p}") from e

    try:
        data = yaml.safe_load(raw_text)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse YAML in {p}: {e}") from e

    if data is None:
        data = {}

    if not isinstance(data, dict):
        raise ConfigError(f"Top-level YAML in {p} must be a mapping/object")

    try:
        return AppConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(_format_pydantic_errors(e, p)) from e


def _env_value(env: Mapping[str, str], name: str) -> str | None:
    value = (env.get(name) or "").strip()
    return value or None


def resolve_runtime_secrets(
    config: AppConfig, *, environ: Mapping[str, str] | None = None
) -> RuntimeSecrets:
    """
    Read the access token (required) and OAuth client credentials (optional)
    from the environment variables named in the config.
    """
    env = os.environ if environ is None else environ

    token = _env_value(env, config.graph.access_token_env)
    if token is None:
        raise ConfigError(f"Missing required environment variables: {config.graph.access_token_env}")

    return RuntimeSecrets(
        access_token=token,
        client_id=_env_value(env, config.oauth.client_id_env),
        client_secret=_env_value(env, config.oauth.client_secret_env),
    )


def retry_policy(config: AppConfig) -> RetryPolicy:
    r = config.retry
    return RetryPolicy(
        max_attempts=r.max_attempts,
        base_delay_seconds=r.base_delay_seconds,
        max_delay_seconds=r.max_delay_seconds,
        jitter_ratio=r.jitter_ratio,
    )


def config_sha256(config: AppConfig) -> str:
    """
    Compute a stable SHA-256 hash of the config values.
    """
    payload = json.dumps(
        config.model_dump(mode="json"),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    ).encode("utf-8")
    return hashlib.sha256(payload).hexdigest()


def _format_pydantic_errors(err: ValidationError, path: Path) -> str:
    lines: list[str] = [f"Invalid configuration in {path}:"]
    for item in err.errors():
        loc = ".".join(str(part) for part in item.get("loc", [])) or "<root>"
        msg = item.get("msg", "invalid value")
        lines.append(f"- {loc}: {msg}")
    return "\n".join(lines)
