import uuid

import pytest

from jdigital import create_app

ADMIN_EMAIL = "admin@jdigital.local"
ADMIN_PASSWORD = "admin-pass-123"


def build_test_app(tmp_path, monkeypatch, overrides=None):
    db_path = tmp_path / f"site_test_{uuid.uuid4().hex[:8]}.db"

    monkeypatch.setenv("ADMIN_PASSWORD", ADMIN_PASSWORD)

    config = {
        "TESTING": True,
        "SECRET_KEY": "test-secret-key",
        "SQLALCHEMY_DATABASE_URI": f"sqlite:///{db_path}",
        "SQLALCHEMY_ENGINE_OPTIONS": {},
        "ADMIN_EMAIL": ADMIN_EMAIL,
        "TRUST_PROXY_HEADERS": False,
        "RATE_LIMIT_BACKEND": "memory",
        "RESEND_API_KEY": "",
        "SMTP_HOST": "",
        "NOTIFY_TO_EMAIL": "",
        "SUPABASE_URL": "",
        "SUPABASE_SERVICE_ROLE_KEY": "",
        "SUPABASE_STORAGE_BUCKET": "",
        "SENTRY_DSN": "",
    }
    if overrides:
        config.update(overrides)
    return create_app(config)


def fetch_csrf_token(client):
    response = client.get("/api/csrf-token")
    assert response.status_code == 200
    token = response.get_json()["csrf_token"]
    assert token
    return token


def admin_login(client, email=ADMIN_EMAIL, password=ADMIN_PASSWORD):
    token = fetch_csrf_token(client)
    response = client.post(
        "/admin/login",
        json={"email": email, "password": password},
        headers={"X-CSRF-Token": token},
    )
    return response


def admin_post(client, path, data=None, **kwargs):
    """POST as the signed-in admin, sending the session's current CSRF token."""
    token = fetch_csrf_token(client)
    if kwargs.pop("as_form", False):
        form = dict(data or {})
        form["_csrf_token"] = token
        return client.post(path, data=form, **kwargs)
    return client.post(path, json=data or {}, headers={"X-CSRF-Token": token}, **kwargs)


def public_post(client, path, payload):
    token = fetch_csrf_token(client)
    return client.post(path, json=payload, headers={"X-CSRF-Token": token})


@pytest.fixture()
def app(tmp_path, monkeypatch):
    return build_test_app(tmp_path, monkeypatch)


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def admin_client(app):
    client = app.test_client()
    response = admin_login(client)
    assert response.status_code == 200, response.get_data(as_text=True)
    return client


@pytest.fixture()
def lead_payload():
    return {
        "full_name": "Maria Santos",
        "email": "maria@example.com",
        "mobile_number": "09171234567",
        "business_name": "Santos Bakery",
        "industry": "Food & Beverage",
        "package_interest": "Startup",
        "budget_range": "PHP 10,000 - 20,000",
        "preferred_contact_method": "Email",
        "preferred_contact_value": "maria@example.com",
        "message_goals": "We need a website that brings in catering orders.",
    }
