"""Configuration management for the account service."""
from __future__ import annotations

import os
from dataclasses import dataclass, replace
from datetime import timedelta
from pathlib import Path
from typing import Dict, Mapping, Optional

import yaml


DEFAULT_BCRYPT_ROUNDS = 12
DEFAULT_PASSWORD_MIN_LENGTH = 8
DEFAULT_SESSION_TTL_HOURS = 8

# Range accepted by passlib's bcrypt handler.
MIN_BCRYPT_ROUNDS = 4
MAX_BCRYPT_ROUNDS = 31


def resolve_database_path(env_value: Optional[str]) -> Path:
    """Resolve the on-disk path for the account database."""

    if env_value:
        return Path(env_value).expanduser().resolve(strict=False)
    base_dir = Path(__file__).resolve().parent.parent / "data"
    return (base_dir / "accounts.sqlite3").resolve(strict=False)


def resolve_config_path(env_value: Optional[str]) -> Path:
    """Resolve the path to the optional YAML configuration file."""
    if env_value:
        return Path(env_value).expanduser().resolve(strict=False)
    return (Path(__file__).resolve().parent.parent / "config" / "selfserve.yaml").resolve(strict=False)


def _env_flag(value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _parse_int(name: str, value: object) -> int:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{name} must be an integer, got {value!r}") from exc


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the account service."""

    database_path: Path
    bcrypt_rounds: int = DEFAULT_BCRYPT_ROUNDS
    password_min_length: int = DEFAULT_PASSWORD_MIN_LENGTH
    session_ttl: timedelta = timedelta(hours=DEFAULT_SESSION_TTL_HOURS)
    secure_cookies: bool = True

    def __post_init__(self) -> None:
        if not MIN_BCRYPT_ROUNDS <= self.bcrypt_rounds <= MAX_BCRYPT_ROUNDS:
            raise ValueError(
                f"bcrypt_rounds must be between {MIN_BCRYPT_ROUNDS} and {MAX_BCRYPT_ROUNDS}"
            )
        if self.password_min_length < 1:
            raise ValueError("password_min_length must be at least 1")
        if self.session_ttl <= timedelta(0):
            raise ValueError("session_ttl must be positive")

    @staticmethod
    def from_dict(data: Mapping[str, object], base_path: Path | None = None) -> "Settings":
        """Create :class:`Settings` from raw dictionary data."""
        raw_db_path = data.get("database_path")
        if raw_db_path:
            candidate = Path(str(raw_db_path)).expanduser()
            if not candidate.is_absolute() and base_path is not None:
                candidate = base_path / candidate
            database_path = candidate.resolve(strict=False)
        else:
            database_path = resolve_database_path(None)

        return Settings(
            database_path=database_path,
            bcrypt_rounds=_parse_int("bcrypt_rounds", data.get("bcrypt_rounds", DEFAULT_BCRYPT_ROUNDS)),
            password_min_length=_parse_int(
                "password_min_length",
                data.get("password_min_length", DEFAULT_PASSWORD_MIN_LENGTH),
            ),
            session_ttl=timedelta(
                hours=_parse_int(
                    "session_ttl_hours",
                    data.get("session_ttl_hours", DEFAULT_SESSION_TTL_HOURS),
                )
            ),
            secure_cookies=bool(data.get("secure_cookies", True)),
        )


def _load_yaml(config_path: Path) -> Dict[str, object]:
    with config_path.open("r", encoding="utf-8") as handle:
        raw = yaml.safe_load(handle) or {}
    if not isinstance(raw, dict):
        raise ValueError("Configuration file must contain a mapping")
    section = raw.get("selfserve", {})
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise ValueError("The 'selfserve' configuration key must contain a mapping")
    return section


def load_settings(
    config_path: Optional[Path] = None,
    *,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    """Load settings from the YAML file and environment.

    Environment variables take precedence over the file, which takes
    precedence over the built-in defaults. A missing file is not an error.
    """

    env = os.environ if environ is None else environ

    path = config_path or resolve_config_path(env.get("SELFSERVE_CONFIG"))
    data: Dict[str, object] = {}
    base_path: Path | None = None
    if path.exists():
        data = _load_yaml(path)
        base_path = path.parent

    settings = Settings.from_dict(data, base_path=base_path)

    overrides: Dict[str, object] = {}
    if env.get("SELFSERVE_DB_PATH"):
        overrides["database_path"] = resolve_database_path(env["SELFSERVE_DB_PATH"])
    if env.get("SELFSERVE_BCRYPT_ROUNDS"):
        overrides["bcrypt_rounds"] = _parse_int("SELFSERVE_BCRYPT_ROUNDS", env["SELFSERVE_BCRYPT_ROUNDS"])
    if env.get("SELFSERVE_PASSWORD_MIN_LENGTH"):
        overrides["password_min_length"] = _parse_int(
            "SELFSERVE_PASSWORD_MIN_LENGTH", env["SELFSERVE_PASSWORD_MIN_LENGTH"]
        )
    if env.get("SELFSERVE_SESSION_SECURE") is not None:
        overrides["secure_cookies"] = _env_flag(env.get("SELFSERVE_SESSION_SECURE"), True)

    if overrides:
        settings = replace(settings, **overrides)
    return settings


__all__ = [
    "DEFAULT_BCRYPT_ROUNDS",
    "DEFAULT_PASSWORD_MIN_LENGTH",
    "Settings",
    "load_settings",
    "resolve_config_path",
    "resolve_database_path",
]
