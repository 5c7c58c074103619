"""Configuration utilities for the form tree engine.

This module loads configuration with the following rules:
- Primary source: `formtree_config.json` at the project root.
- Overrides: environment variables, then optional text files under `config/`.
- Validation: Pydantic models enforce allowed values.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, ValidationError as PydanticValidationError, field_validator


CONFIG_DIR = Path("config")
ROOT_CONFIG = Path("formtree_config.json")
logger = logging.getLogger(__name__)

ORPHAN_POLICIES = {"strict", "drop"}
EXPRESSION_EXEMPTIONS = {"always", "non_empty"}


def _read_config_file(rel_path: str) -> Optional[str]:
    path = CONFIG_DIR / rel_path
    try:
        if path.exists():
            return path.read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError) as e:
        # Recoverable: log and ignore unreadable override
        logger.warning("Failed to read override %s: %s", path, e)
        return None
    return None


def _env(key: str, default: Optional[str] = None) -> Optional[str]:
    return os.environ.get(key, default)


class ValidationPolicy(BaseModel):
    """Knobs the core consults while building and checking trees.

    - orphan_policy: ``strict`` raises on response nodes with no definition at
      their level, ``drop`` logs and discards them.
    - expression_exemption: ``always`` lets expression-sourced initial values
      skip the que-11 check; ``non_empty`` grants the exemption only when the
      expression produced at least one value.
    """

    model_config = ConfigDict(frozen=True)

    orphan_policy: str = "strict"
    expression_exemption: str = "always"

    @field_validator("orphan_policy")
    @classmethod
    def orphan_policy_must_be_allowed(cls, v: str) -> str:
        if v not in ORPHAN_POLICIES:
            raise ValueError(f"orphan_policy must be one of {sorted(ORPHAN_POLICIES)}")
        return v

    @field_validator("expression_exemption")
    @classmethod
    def exemption_must_be_allowed(cls, v: str) -> str:
        if v not in EXPRESSION_EXEMPTIONS:
            raise ValueError(f"expression_exemption must be one of {sorted(EXPRESSION_EXEMPTIONS)}")
        return v


DEFAULT_POLICY = ValidationPolicy()


class LoggingConfig(BaseModel):
    level: str = "INFO"

    @field_validator("level")
    @classmethod
    def level_must_be_known(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError("logging.level must be a standard logging level name")
        return level


class SessionsConfig(BaseModel):
    """Bounds of the in-memory session store."""

    max_sessions: int = 1000

    @field_validator("max_sessions")
    @classmethod
    def max_sessions_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("sessions.max_sessions must be at least 1")
        return v


class AppConfig(BaseModel):
    policy: ValidationPolicy
    logging: LoggingConfig
    sessions: SessionsConfig = SessionsConfig()


def _read_json_file(path: Path) -> dict:
    try:
        if path.exists():
            return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.error("Failed to read JSON config %s: %s", path, e)
    return {}


def load_config() -> AppConfig:
    """Load configuration with validation.

    Precedence (highest first):
    1) Environment variables
    2) Text files in `config/` (optional)
    3) formtree_config.json at project root (primary base)
    4) Safe defaults
    """

    base = _read_json_file(ROOT_CONFIG)

    def _base(path: str, default: Optional[str] = None) -> Optional[str]:
        cur: object = base
        for key in path.split("."):
            if not isinstance(cur, dict) or key not in cur:
                return default
            cur = cur[key]
        return str(cur) if cur is not None else default

    orphan_policy = (
        _env("FORMTREE_ORPHAN_POLICY")
        or _read_config_file("policy.orphan")
        or _base("policy.orphan_policy", "strict")
    )
    exemption = (
        _env("FORMTREE_EXPRESSION_EXEMPTION")
        or _read_config_file("policy.expression_exemption")
        or _base("policy.expression_exemption", "always")
    )
    level = _env("FORMTREE_LOG_LEVEL") or _read_config_file("logging.level") or _base("logging.level", "INFO")
    max_sessions = (
        _env("FORMTREE_MAX_SESSIONS")
        or _read_config_file("sessions.max")
        or _base("sessions.max_sessions", "1000")
    )

    try:
        return AppConfig(
            policy=ValidationPolicy(
                orphan_policy=str(orphan_policy).strip().lower(),
                expression_exemption=str(exemption).strip().lower(),
            ),
            logging=LoggingConfig(level=str(level)),
            sessions=SessionsConfig(max_sessions=str(max_sessions).strip()),
        )
    except PydanticValidationError as e:
        logger.error("Invalid application configuration: %s", e)
        raise


__all__ = [
    "AppConfig",
    "LoggingConfig",
    "SessionsConfig",
    "ValidationPolicy",
    "DEFAULT_POLICY",
    "load_config",
]
