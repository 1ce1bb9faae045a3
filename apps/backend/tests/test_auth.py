from __future__ import annotations

from datetime import timedelta

from pocketledger import models
from pocketledger.core.config import settings
from pocketledger.services.auth_service import AuthService, hash_token


def _signup(client, email="new@example.com", password="s3cret-pass", full_name="New User"):
    return client.post(
        "/api/auth/signup",
        json={"email": email, "password": password, "full_name": full_name},
    )


def _login(client, email, password):
    return client.post("/api/auth/login", json={"email": email, "password": password})


def test_signup_seeds_profile_categories_and_cash_account(client):
    resp = _signup(client)
    assert resp.status_code == 201, resp.text
    body = resp.json()
    assert body["user"]["email"] == "new@example.com"
    assert body["confirmation_required"] is False
    # 비운영 환경에서는 확인 토큰을 응답에 포함
    assert body["confirmation_token"]

    token = _login(client, "new@example.com", "s3cret-pass").json()["access_token"]
    headers = {"Authorization": f"Bearer {token}"}

    me = client.get("/api/auth/me", headers=headers).json()
    assert me["profile"]["full_name"] == "New User"
    assert me["profile"]["currency"] == "INR"

    cats = client.get("/api/categories", headers=headers).json()
    assert {c["name"] for c in cats} == {
        "Food & Groceries",
        "Entertainment",
        "Salary",
        "Freelance",
        "Shopping",
        "Transport",
        "Utilities",
    }
    accounts = client.get("/api/accounts", headers=headers).json()
    assert [a["name"] for a in accounts] == ["Cash"]


def test_signup_duplicate_email_is_conflict(client):
    # 대소문자가 달라도 같은 이메일로 취급
    resp = _signup(client, email="Demo@Example.COM")
    assert resp.status_code == 409
    assert resp.json()["detail"] == "User already registered"


def test_signup_rejects_short_password(client):
    resp = _signup(client, password="short")
    assert resp.status_code == 422


def test_login_and_me(client):
    resp = _login(client, "demo@example.com", "demo-password")
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["token_type"] == "bearer"
    assert body["expires_at"]

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"})
    assert me.status_code == 200
    assert me.json()["user"]["email"] == "demo@example.com"


def test_login_failures_share_one_message(client):
    wrong_password = _login(client, "demo@example.com", "not-the-password")
    unknown_email = _login(client, "nobody@example.com", "demo-password")
    assert wrong_password.status_code == 401
    assert unknown_email.status_code == 401
    assert wrong_password.json()["detail"] == unknown_email.json()["detail"] == "Invalid login credentials"


def test_protected_routes_require_token(client):
    assert client.get("/api/auth/me").status_code == 401
    resp = client.get("/api/transactions", headers={"Authorization": "Bearer bogus"})
    assert resp.status_code == 401
    assert resp.headers.get("WWW-Authenticate") == "Bearer"


def test_logout_revokes_session(client):
    token = _login(client, "demo@example.com", "demo-password").json()["access_token"]
    headers = {"Authorization": f"Bearer {token}"}
    assert client.post("/api/auth/logout", headers=headers).status_code == 204
    assert client.get("/api/auth/me", headers=headers).status_code == 401


def test_confirm_redirects_and_stamps_user(client):
    token = _signup(client).json()["confirmation_token"]

    resp = client.get(
        "/api/auth/confirm",
        params={"token_hash": token, "type": "signup", "next": "/budgets"},
        follow_redirects=False,
    )
    assert resp.status_code == 303
    assert resp.headers["location"] == "/budgets"

    login = _login(client, "new@example.com", "s3cret-pass").json()
    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {login['access_token']}"}).json()
    assert me["user"]["email_confirmed_at"] is not None

    # 한 번 사용한 토큰은 재사용 불가
    again = client.get(
        "/api/auth/confirm",
        params={"token_hash": token, "type": "signup"},
        follow_redirects=False,
    )
    assert again.headers["location"] == "/auth/error"


def test_confirm_defaults_and_rejects_bad_input(client):
    token = _signup(client).json()["confirmation_token"]
    # 외부 URL 은 무시하고 기본 경로로
    resp = client.get(
        "/api/auth/confirm",
        params={"token_hash": token, "type": "signup", "next": "https://evil.example.com"},
        follow_redirects=False,
    )
    assert resp.headers["location"] == "/dashboard"

    for params in ({}, {"token_hash": "nope", "type": "signup"}, {"token_hash": token, "type": "recovery"}):
        bad = client.get("/api/auth/confirm", params=params, follow_redirects=False)
        assert bad.status_code == 303
        assert bad.headers["location"] == "/auth/error"


def test_login_requires_confirmation_when_enabled(client, monkeypatch):
    _signup(client)
    monkeypatch.setattr(settings, "REQUIRE_EMAIL_CONFIRMATION", True)
    resp = _login(client, "new@example.com", "s3cret-pass")
    assert resp.status_code == 403
    assert resp.json()["detail"] == "Email not confirmed"


def test_expired_session_is_rejected(client, db_session, demo_user):
    token = AuthService(db_session).issue_session(demo_user.id)
    headers = {"Authorization": f"Bearer {token}"}
    assert client.get("/api/auth/me", headers=headers).status_code == 200

    row = db_session.query(models.AuthToken).filter_by(token_hash=hash_token(token)).one()
    row.expires_at = models.now_local_naive() - timedelta(minutes=1)
    db_session.commit()

    resp = client.get("/api/auth/me", headers=headers)
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Session expired or invalid"


def test_login_purges_stale_tokens(client, db_session, demo_user):
    service = AuthService(db_session)
    expired = service.issue_session(demo_user.id)
    db_session.query(models.AuthToken).filter_by(token_hash=hash_token(expired)).one().expires_at = (
        models.now_local_naive() - timedelta(hours=1)
    )
    db_session.commit()
    revoked = _login(client, "demo@example.com", "demo-password").json()["access_token"]
    assert client.post("/api/auth/logout", headers={"Authorization": f"Bearer {revoked}"}).status_code == 204

    fresh = _login(client, "demo@example.com", "demo-password").json()["access_token"]

    hashes = {
        row.token_hash
        for row in db_session.query(models.AuthToken).filter_by(
            user_id=demo_user.id, purpose=models.AuthTokenPurpose.SESSION
        )
    }
    assert hash_token(expired) not in hashes
    assert hash_token(revoked) not in hashes
    assert hash_token(fresh) in hashes
