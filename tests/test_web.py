from datetime import datetime, timezone
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from selfserve.application import create_application
from selfserve.config import Settings
from selfserve.database import Database
from selfserve.passwords import PasswordHasher


EMAIL = "user@example.com"
PASSWORD = "oldpass123"


@pytest.fixture()
def web_database(tmp_path: Path) -> Database:
    database = Database(tmp_path / "web.sqlite3")
    database.initialize()
    database.create_user("Test User", EMAIL, PasswordHasher(rounds=4).hash(PASSWORD))
    return database


@pytest.fixture()
def client(web_database: Database, tmp_path: Path):
    settings = Settings(database_path=tmp_path / "web.sqlite3", bcrypt_rounds=4, secure_cookies=False)
    app = create_application(settings, database=web_database)
    with TestClient(app) as test_client:
        yield test_client


def _login(client: TestClient, password: str = PASSWORD):
    return client.post(
        "/login",
        data={"email": EMAIL, "password": password},
        follow_redirects=False,
    )


def test_anonymous_visitors_are_sent_to_login(client):
    response = client.get("/account", follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"].endswith("/login")

    home = client.get("/", follow_redirects=False)
    assert home.status_code == 303
    assert home.headers["location"].endswith("/login")


def test_login_redirects_to_account_when_credentials_valid(client):
    response = _login(client)
    assert response.status_code == 303
    assert response.headers["location"].endswith("/account")

    account = client.get("/account")
    assert account.status_code == 200
    assert 'value="Test"' in account.text
    assert 'value="User"' in account.text
    assert EMAIL in account.text


def test_login_rejects_bad_credentials(client):
    response = _login(client, password="wrong-password")
    assert response.status_code == 401
    assert "Invalid email or password" in response.text

    missing = client.post("/login", data={"email": "", "password": ""})
    assert missing.status_code == 400


def test_profile_form_updates_name_and_email(client, web_database):
    _login(client)

    response = client.post(
        "/account/profile",
        data={"first_name": "Jane", "last_name": "Doe", "email": "jane@example.com"},
    )
    assert response.status_code == 200
    assert "Profile updated successfully." in response.text
    assert 'value="Jane"' in response.text

    stored = web_database.get_user_by_email("jane@example.com")
    assert stored is not None
    assert stored.name == "Jane Doe"


def test_profile_form_shows_validation_error(client):
    _login(client)

    response = client.post(
        "/account/profile",
        data={"first_name": "Jane", "last_name": "Doe", "email": "not-an-email"},
    )
    assert response.status_code == 400
    assert "Invalid email format" in response.text
    assert 'value="not-an-email"' in response.text


def test_password_form_requires_matching_confirmation(client, web_database):
    _login(client)
    before = web_database.get_user_by_email(EMAIL).password_hash

    response = client.post(
        "/account/password",
        data={
            "current_password": PASSWORD,
            "new_password": "newpass456",
            "confirm_password": "different456",
        },
    )
    assert response.status_code == 400
    assert "Passwords do not match" in response.text
    assert web_database.get_user_by_email(EMAIL).password_hash == before


def test_password_form_changes_password(client):
    _login(client)

    response = client.post(
        "/account/password",
        data={
            "current_password": PASSWORD,
            "new_password": "newpass456",
            "confirm_password": "newpass456",
        },
    )
    assert response.status_code == 200
    assert "Password updated successfully" in response.text

    client.get("/logout")
    assert _login(client).status_code == 401
    assert _login(client, password="newpass456").status_code == 303


def test_password_form_reports_wrong_current_password(client):
    _login(client)

    response = client.post(
        "/account/password",
        data={
            "current_password": "not-my-password",
            "new_password": "newpass456",
            "confirm_password": "newpass456",
        },
    )
    assert response.status_code == 400
    assert "Current password is incorrect" in response.text


def test_logout_clears_session(client):
    _login(client)
    assert client.get("/account", follow_redirects=False).status_code == 200

    client.get("/logout", follow_redirects=False)
    response = client.get("/account", follow_redirects=False)
    assert response.status_code == 303


def test_password_change_shows_fresh_update_time(client, web_database):
    _login(client)
    user = web_database.get_user_by_email(EMAIL)
    web_database.update_user(user.id, updated_at=datetime(2020, 1, 1, tzinfo=timezone.utc))

    response = client.post(
        "/account/password",
        data={
            "current_password": PASSWORD,
            "new_password": "newpass456",
            "confirm_password": "newpass456",
        },
    )
    assert response.status_code == 200

    stored = web_database.get_user(user.id)
    assert "2020-01-01" not in response.text
    assert stored.updated_at.strftime("%Y-%m-%d %H:%M:%S") in response.text


def test_password_change_signs_out_other_browsers(client):
    other = TestClient(client.app)
    assert _login(other).status_code == 303
    assert other.get("/account", follow_redirects=False).status_code == 200

    _login(client)
    response = client.post(
        "/account/password",
        data={
            "current_password": PASSWORD,
            "new_password": "newpass456",
            "confirm_password": "newpass456",
        },
    )
    assert response.status_code == 200

    assert client.get("/account", follow_redirects=False).status_code == 200
    assert other.get("/account", follow_redirects=False).status_code == 303
