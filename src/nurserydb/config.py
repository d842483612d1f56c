"""Runtime settings — environment variables with development defaults."""

from __future__ import annotations

import enum
import os
import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import timedelta

from nurserydb.errors import ConfigError

DEFAULT_JWT_SECRET = "default_secret_change_in_production"
DEFAULT_JWT_EXPIRES_IN = "24h"

_ENV_PREFIX = "NURSERYDB_"
_DURATION_RE = re.compile(r"^\s*(\d+)\s*([smhd]?)\s*$")
_UNIT_SECONDS = {"": 1, "s": 1, "m": 60, "h": 3600, "d": 86400}


class Environment(enum.Enum):
    DEVELOPMENT = "development"
    PRODUCTION = "production"
    TEST = "test"


@dataclass(frozen=True)
class Settings:
    environment: Environment = Environment.DEVELOPMENT
    jwt_secret: str = DEFAULT_JWT_SECRET
    jwt_expires_in: timedelta = timedelta(hours=24)
    database: str | None = None

    @property
    def is_development(self) -> bool:
        return self.environment == Environment.DEVELOPMENT

    @property
    def is_production(self) -> bool:
        return self.environment == Environment.PRODUCTION


def parse_duration(value: str) -> timedelta:
    """Parse token lifetimes like ``24h``, ``30m``, ``7d`` or ``3600``."""
    match = _DURATION_RE.match(value)
    if match is None:
        raise ConfigError(f"Invalid duration '{value}' (expected e.g. 30m, 24h, 7d)")
    amount, unit = match.groups()
    return timedelta(seconds=int(amount) * _UNIT_SECONDS[unit.lower()])


def _parse_environment(value: str) -> Environment:
    try:
        return Environment(value.strip().lower())
    except ValueError as e:
        valid = ", ".join(env.value for env in Environment)
        raise ConfigError(f"Unknown environment '{value}'. Valid: {valid}") from e


def validate_settings(settings: Settings) -> list[str]:
    """Return configuration problems; an empty list means usable."""
    problems: list[str] = []
    if not settings.database:
        problems.append(f"{_ENV_PREFIX}DB is required (connection name or type:key=val)")
    if settings.is_production and settings.jwt_secret == DEFAULT_JWT_SECRET:
        problems.append(f"{_ENV_PREFIX}JWT_SECRET must be changed in production")
    return problems


def load_settings(env: Mapping[str, str] | None = None, *, strict: bool = False) -> Settings:
    """Build Settings from ``NURSERYDB_*`` variables.

    With ``strict=True`` a production configuration with problems raises
    ConfigError instead of starting with unsafe defaults.
    """
    env = os.environ if env is None else env

    settings = Settings(
        environment=_parse_environment(env.get(f"{_ENV_PREFIX}ENV", "development")),
        jwt_secret=env.get(f"{_ENV_PREFIX}JWT_SECRET") or DEFAULT_JWT_SECRET,
        jwt_expires_in=parse_duration(
            env.get(f"{_ENV_PREFIX}JWT_EXPIRES_IN") or DEFAULT_JWT_EXPIRES_IN
        ),
        database=env.get(f"{_ENV_PREFIX}DB") or None,
    )

    if strict and settings.is_production:
        problems = validate_settings(settings)
        if problems:
            raise ConfigError("Configuration errors: " + "; ".join(problems), problems)

    return settings
