from datetime import datetime, timedelta, timezone

import jwt
import pytest

from usched import auth, models
from usched.config import get_settings
from usched.errors import AuthenticationError
from usched.identity import create_professor


def login(client, username, password):
    return client.post("/api/login", json={"username": username, "password": password})


def test_admin_login_issues_one_hour_token(client, admin_account):
    response = login(client, "admin@usched.test", "admin-pass")
    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Login successful."
    assert body["user"]["fullName"] == "Ada Lovelace"
    assert body["user"]["user_type"] == "ADMIN"
    assert body["user"]["position"] is None

    claims = jwt.decode(body["token"], get_settings().secret, algorithms=["HS256"])
    assert claims["user_id"] == admin_account.user_id
    assert claims["email"] == "admin@usched.test"
    assert claims["exp"] - claims["iat"] == 3600


def test_professor_login_carries_position_and_department(client, db, ccs, mailer):
    create_professor(
        db,
        mailer,
        {
            "first_name": "Grace",
            "last_name": "Hopper",
            "college_id": ccs.college_id,
            "faculty_type": "Full-Time",
            "position": "Dean",
            "status": "Active",
            "email": "dean@usched.test",
        },
    )
    password = mailer.sent[0]["text"].split("Temporary password: ")[1].splitlines()[0]

    body = login(client, "dean@usched.test", password).json()
    assert body["user"]["position"] == "Dean"
    assert body["user"]["department"] == "CCS"
    assert body["user"]["role"] == "Dean"


def test_wrong_password_and_unknown_email_look_the_same(client, admin_account):
    wrong_password = login(client, "admin@usched.test", "nope")
    unknown_email = login(client, "ghost@usched.test", "nope")
    assert wrong_password.status_code == unknown_email.status_code == 401
    assert wrong_password.json() == unknown_email.json() == {"detail": "Invalid credentials."}


def test_unknown_email_checks_prebuilt_dummy_hash(monkeypatch, db):
    checked = []

    def fake_check(stored_hash, password):
        checked.append(stored_hash)
        return False

    def no_hashing(password):
        raise AssertionError("login must not generate a hash")

    monkeypatch.setattr(auth, "check_password_hash", fake_check)
    monkeypatch.setattr(auth, "generate_password_hash", no_hashing)
    with pytest.raises(AuthenticationError):
        auth.authenticate(db, "ghost@usched.test", "whatever")
    assert checked == [auth.DUMMY_HASH]


def test_login_requires_both_fields(client):
    response = client.post("/api/login", json={"username": "admin@usched.test"})
    assert response.status_code == 400
    assert response.json()["detail"] == "Username and password are required."


def test_dashboard_token_checks(client, admin_account):
    assert client.get("/api/dashboard").json() == {"detail": "No token provided."}

    response = client.get("/api/dashboard", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid token."

    token = login(client, "admin@usched.test", "admin-pass").json()["token"]
    response = client.get("/api/dashboard", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200
    assert response.json()["message"] == "Welcome to the Dashboard!"
    assert response.json()["user"]["email"] == "admin@usched.test"


def test_expired_and_foreign_tokens_are_invalid():
    settings = get_settings()
    profile = {
        "user_id": 1,
        "email": "a@b.c",
        "user_type": "ADMIN",
        "role": "ADMIN",
        "position": None,
        "department": None,
    }
    expired = auth.issue_token(settings, profile, now=datetime.now(timezone.utc) - timedelta(hours=2))
    with pytest.raises(AuthenticationError, match="Invalid token"):
        auth.decode_token(settings, expired)

    foreign = jwt.encode({"user_id": 1}, "some-other-secret", algorithm="HS256")
    with pytest.raises(AuthenticationError, match="Invalid token"):
        auth.decode_token(settings, foreign)


def test_logout_is_stateless(client):
    assert client.post("/api/logout").json() == {"message": "Sign out successful."}


def test_password_reset_request_is_generic(client, db, mailer, admin_account):
    known = client.post("/api/password-reset/request", json={"email": "admin@usched.test"})
    unknown = client.post("/api/password-reset/request", json={"email": "ghost@usched.test"})
    assert known.status_code == unknown.status_code == 200
    assert known.json() == unknown.json()

    assert len(mailer.sent) == 1
    db.refresh(admin_account)
    assert admin_account.reset_token
    assert f"token={admin_account.reset_token}" in mailer.sent[0]["text"]
    assert "60 minutes" in mailer.sent[0]["text"]


def test_password_reset_request_survives_mail_failure(client, mailer, admin_account):
    mailer.fail = True
    response = client.post("/api/password-reset/request", json={"email": "admin@usched.test"})
    assert response.status_code == 200


def test_password_reset_updates_user_and_admin(client, db, admin_account):
    client.post("/api/password-reset/request", json={"email": "admin@usched.test"})
    db.refresh(admin_account)
    token = admin_account.reset_token

    response = client.post("/api/password-reset/reset", json={"token": token, "newPassword": "fresh-pass"})
    assert response.status_code == 200

    assert login(client, "admin@usched.test", "fresh-pass").status_code == 200
    db.refresh(admin_account)
    assert admin_account.reset_token is None
    admin = db.get(models.Admin, admin_account.ref_id)
    db.refresh(admin)
    assert admin.password == admin_account.password

    again = client.post("/api/password-reset/reset", json={"token": token, "newPassword": "x"})
    assert again.status_code == 400


def test_password_reset_rejects_expired_token(client, db, admin_account):
    admin_account.reset_token = "a" * 40
    admin_account.reset_expires = datetime.now(timezone.utc) - timedelta(minutes=1)
    db.commit()
    response = client.post(
        "/api/password-reset/reset", json={"token": "a" * 40, "newPassword": "fresh-pass"}
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Password reset token is invalid or has expired."
