"""Configuration loading utilities for codeswitch_lm."""

from __future__ import annotations

import logging
import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from codeswitch_lm.errors import ConfigurationError, MissingResourceError
from codeswitch_lm.models import TrainingOptions

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass(frozen=True)
class AppConfig:
    """Application configuration resolved from profile + environment variables."""

    env: str
    log_level: str
    api_host: str
    api_port: int
    workers: int
    model_path: str


def load_config(env_name: str | None = None, config_dir: Path | None = None) -> AppConfig:
    """Load configuration from `configs/<env>.toml` and environment overrides."""
    env = env_name or os.getenv("CODESWITCH_LM_ENV", "dev")
    resolved_dir = config_dir or _default_config_dir()
    profile_path = resolved_dir / f"{env}.toml"

    defaults: dict[str, str | int] = {
        "log_level": "INFO",
        "api_host": "127.0.0.1",
        "api_port": 8000,
        "workers": 1,
        "model_path": "lm/cs_lm.json.gz",
    }
    file_values = _load_profile(profile_path)
    defaults.update(file_values)

    log_level = os.getenv("CODESWITCH_LM_LOG_LEVEL", str(defaults["log_level"]))
    api_host = os.getenv("CODESWITCH_LM_API_HOST", str(defaults["api_host"]))
    api_port = _parse_int("CODESWITCH_LM_API_PORT", os.getenv("CODESWITCH_LM_API_PORT"), defaults["api_port"])
    workers = _parse_int("CODESWITCH_LM_WORKERS", os.getenv("CODESWITCH_LM_WORKERS"), defaults["workers"])
    model_path = os.getenv("CODESWITCH_LM_MODEL_PATH", str(defaults["model_path"]))

    return AppConfig(
        env=env,
        log_level=log_level,
        api_host=api_host,
        api_port=api_port,
        workers=workers,
        model_path=model_path,
    )


def configure_logging(level: str) -> None:
    """Install the process-wide log handler."""
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        raise ConfigurationError(f"unknown log level {level!r}")
    logging.basicConfig(level=numeric, format=_LOG_FORMAT, force=True)


def load_training_options(
    profile_path: str | Path | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> TrainingOptions:
    """Build training options from a TOML profile's `[training]` table.

    Keys in ``overrides`` whose value is not ``None`` win over the profile.
    """
    values: dict[str, Any] = {}
    if profile_path is not None:
        path = Path(profile_path)
        if not path.is_file():
            raise MissingResourceError(path, what="training profile")
        try:
            with path.open("rb") as handle:
                payload = tomllib.load(handle)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigurationError(f"{path}: {exc}") from exc
        training = payload.get("training", {})
        if not isinstance(training, dict):
            raise ConfigurationError(f"{path}: [training] must be a table")
        values.update(training)
    for key, value in (overrides or {}).items():
        if value is not None:
            values[key] = value

    try:
        return TrainingOptions.model_validate(values)
    except ValidationError as exc:
        raise ConfigurationError(f"invalid training options: {exc}") from exc


def _default_config_dir() -> Path:
    return Path(__file__).resolve().parents[2] / "configs"


def _load_profile(path: Path) -> dict[str, str | int]:
    if not path.exists():
        return {}

    with path.open("rb") as handle:
        payload = tomllib.load(handle)

    allowed = {"log_level", "api_host", "api_port", "workers", "model_path"}
    resolved: dict[str, str | int] = {}
    for key, raw in payload.items():
        if key not in allowed:
            continue
        if key in {"api_port", "workers"}:
            resolved[key] = _coerce_int(key, raw)
        else:
            resolved[key] = _coerce_str(key, raw)
    return resolved


def _parse_int(name: str, raw: str | None, default: str | int) -> int:
    if raw is None:
        return _coerce_int(name, default)
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


def _coerce_int(name: str, value: object) -> int:
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError as exc:
            raise ValueError(f"{name} must be an integer, got {value!r}") from exc
    raise ValueError(f"{name} must be an integer, got type {type(value).__name__}")


def _coerce_str(name: str, value: object) -> str:
    if isinstance(value, str):
        return value
    raise ValueError(f"{name} must be a string, got type {type(value).__name__}")
