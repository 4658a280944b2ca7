"""
cargo-gate Configuration

Pydantic-backed configuration loaded from environment variables once at startup.
Uses the CARGOGATE_ prefix for all environment variables.
"""

import os
from pathlib import Path
from typing import Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from cargogate.errors import ConfigError

FEATURES_ENV = "CARGOGATE_FEATURES"
PROJECT_ROOT_ENV = "CARGOGATE_PROJECT_ROOT"
LOG_LEVEL_ENV = "CARGOGATE_LOG_LEVEL"
LOG_JSON_ENV = "CARGOGATE_LOG_JSON"

# exported to every child so cargo colorizes even when piped
CHILD_ENV_OVERRIDES = {"CARGO_TERM_COLOR": "always"}

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Config(BaseModel):
    """
    Pydantic-backed configuration loaded from environment variables.

    Key env vars:
    - CARGOGATE_FEATURES: explicit feature list. Set to any value, including
      the empty string, to disable default features and enable exactly that list.
    - CARGOGATE_PROJECT_ROOT: directory every command runs in.
    - CARGOGATE_LOG_LEVEL (default: INFO)
    - CARGOGATE_LOG_JSON (default: false)
    """

    # None means unset; "" is an explicit empty feature list
    features_override: Optional[str] = Field(default=None)
    project_root: Optional[Path] = Field(default=None)

    log_level: str = Field(default="INFO")
    log_json: bool = Field(default=False)

    # snapshot of the caller's environment, the base for child processes
    environ: Dict[str, str] = Field(default_factory=dict, repr=False)

    model_config = ConfigDict(frozen=True)

    @property
    def features_overridden(self) -> bool:
        return self.features_override is not None

    def child_env(self) -> Dict[str, str]:
        """Environment handed to every external command."""
        env = dict(self.environ)
        env.update(CHILD_ENV_OVERRIDES)
        return env


def _parse_bool(value: Optional[str], default: bool = False) -> bool:
    """Parse boolean from environment variable."""
    if value is None:
        return default
    return value.lower() in ("1", "true", "yes", "on")


def _parse_log_level(value: Optional[str]) -> str:
    level = (value or "INFO").strip().upper()
    if level not in _LOG_LEVELS:
        raise ConfigError(
            f"Invalid {LOG_LEVEL_ENV}: {value!r}",
            metadata={"value": value, "allowed": list(_LOG_LEVELS)},
        )
    return level


def load_config(environ: Optional[Mapping[str, str]] = None) -> Config:
    """
    Load cargo-gate configuration from the environment.

    The mapping is read exactly once; later changes to os.environ are not seen.
    """
    env = dict(os.environ if environ is None else environ)
    project_root = env.get(PROJECT_ROOT_ENV)
    return Config(
        features_override=env.get(FEATURES_ENV),
        project_root=Path(project_root).expanduser() if project_root else None,
        log_level=_parse_log_level(env.get(LOG_LEVEL_ENV)),
        log_json=_parse_bool(env.get(LOG_JSON_ENV)),
        environ=env,
    )
