from __future__ import annotations

import textwrap
from datetime import timedelta
from pathlib import Path

import pytest

from selfserve.config import Settings, load_settings


def _write_config(path: Path, body: str) -> Path:
    path.write_text(textwrap.dedent(body), encoding="utf-8")
    return path


def test_defaults_when_no_file_or_environment(tmp_path: Path) -> None:
    settings = load_settings(tmp_path / "missing.yaml", environ={})

    assert settings.bcrypt_rounds == 12
    assert settings.password_min_length == 8
    assert settings.session_ttl == timedelta(hours=8)
    assert settings.secure_cookies is True
    assert settings.database_path.name == "accounts.sqlite3"


def test_yaml_file_values_are_loaded(tmp_path: Path) -> None:
    config = _write_config(
        tmp_path / "selfserve.yaml",
        """
        selfserve:
          database_path: data/test.sqlite3
          bcrypt_rounds: 10
          password_min_length: 10
          session_ttl_hours: 2
          secure_cookies: false
        """,
    )

    settings = load_settings(config, environ={})

    assert settings.database_path == (tmp_path / "data" / "test.sqlite3").resolve()
    assert settings.bcrypt_rounds == 10
    assert settings.password_min_length == 10
    assert settings.session_ttl == timedelta(hours=2)
    assert settings.secure_cookies is False


def test_environment_overrides_file(tmp_path: Path) -> None:
    config = _write_config(
        tmp_path / "selfserve.yaml",
        """
        selfserve:
          bcrypt_rounds: 10
          secure_cookies: true
        """,
    )

    settings = load_settings(
        config,
        environ={
            "SELFSERVE_BCRYPT_ROUNDS": "13",
            "SELFSERVE_PASSWORD_MIN_LENGTH": "9",
            "SELFSERVE_SESSION_SECURE": "off",
            "SELFSERVE_DB_PATH": str(tmp_path / "env.sqlite3"),
        },
    )

    assert settings.bcrypt_rounds == 13
    assert settings.password_min_length == 9
    assert settings.secure_cookies is False
    assert settings.database_path == (tmp_path / "env.sqlite3").resolve()


def test_config_path_from_environment(tmp_path: Path) -> None:
    config = _write_config(tmp_path / "custom.yaml", "selfserve:\n  bcrypt_rounds: 6\n")

    settings = load_settings(environ={"SELFSERVE_CONFIG": str(config)})

    assert settings.bcrypt_rounds == 6


@pytest.mark.parametrize("rounds", ["3", "32", "twelve"])
def test_invalid_bcrypt_rounds_rejected(tmp_path: Path, rounds: str) -> None:
    with pytest.raises(ValueError):
        load_settings(tmp_path / "missing.yaml", environ={"SELFSERVE_BCRYPT_ROUNDS": rounds})


def test_non_mapping_section_rejected(tmp_path: Path) -> None:
    config = _write_config(tmp_path / "selfserve.yaml", "selfserve:\n  - not\n  - a mapping\n")
    with pytest.raises(ValueError):
        load_settings(config, environ={})


def test_settings_validate_minimum_length(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        Settings(database_path=tmp_path / "x.sqlite3", password_min_length=0)
