"""
Integration tests for Auth API endpoints.

Tests registration, verification, login/logout and the request guard.
"""

import logging
import uuid
from datetime import timedelta

import pytest
from sqlmodel import select

from app.core.auth import token_service
from app.models.user import User


class TestRegistration:

    @pytest.mark.api
    def test_register_success(self, client, mailer, test_config):
        response = client.post(
            "/api/auth/register",
            json={"email": test_config["email"], "password": test_config["password"]},
        )

        assert response.status_code == 201
        user = response.json()["user"]
        assert user["email"] == test_config["email"]
        assert user["subscription"] == "starter"
        assert user["avatarUrl"].startswith("https://www.gravatar.com/avatar/")
        assert set(user) == {"email", "subscription", "avatarUrl"}

        sent = mailer.last_to(test_config["email"])
        assert "/api/auth/verify/" in sent.text_body
        assert sent.text_body.startswith("Open this link")

    @pytest.mark.api
    def test_register_stores_hash_and_pending_token(self, client, db_session, mailer):
        client.post("/api/auth/register", json={"email": "a@x.com", "password": "secret1"})

        user = db_session.exec(select(User).where(User.email == "a@x.com")).one()
        assert user.password != "secret1"
        assert user.verify is False
        assert user.token is None
        assert user.verification_token == mailer.last_to("a@x.com").verification_token

    @pytest.mark.api
    def test_register_duplicate_email(self, client, register_user):
        register_user("a@x.com", "secret1")

        response = client.post(
            "/api/auth/register", json={"email": "a@x.com", "password": "another1"}
        )

        assert response.status_code == 409
        assert response.json() == {"message": "Email in use"}

    @pytest.mark.api
    @pytest.mark.parametrize(
        "body",
        [
            {"email": "not-an-email", "password": "secret1"},
            {"email": "a@x.com", "password": "123"},
            {"email": "a@x.com"},
            {"password": "secret1"},
            {"email": "a@x.com", "password": "secret1", "role": "admin"},
        ],
    )
    def test_register_invalid_body(self, client, body):
        response = client.post("/api/auth/register", json=body)
        assert response.status_code == 400
        assert "message" in response.json()

    @pytest.mark.api
    def test_register_multibyte_password_over_72_bytes(self, client, db_session, mailer):
        password = "пароль" * 7  # 42 chars, 84 bytes

        response = client.post(
            "/api/auth/register", json={"email": "m@x.com", "password": password}
        )

        assert response.status_code == 400
        assert "password" in response.json()["message"]
        assert db_session.exec(select(User).where(User.email == "m@x.com")).first() is None
        assert mailer.sent == []

    @pytest.mark.api
    def test_register_multibyte_password_within_72_bytes(self, client):
        response = client.post(
            "/api/auth/register", json={"email": "m@x.com", "password": "пароль" * 6}
        )
        assert response.status_code == 201

    @pytest.mark.api
    def test_register_keeps_email_as_sent(self, client, db_session):
        response = client.post(
            "/api/auth/register", json={"email": "Mixed@Example.COM", "password": "secret1"}
        )

        assert response.status_code == 201
        assert response.json()["user"]["email"] == "Mixed@Example.COM"
        stored = db_session.exec(select(User)).one()
        assert stored.email == "Mixed@Example.COM"

    @pytest.mark.api
    def test_mail_failure_does_not_block_registration(
        self, client, mailer, db_session, caplog
    ):
        mailer.fail = True

        with caplog.at_level(logging.ERROR):
            response = client.post(
                "/api/auth/register", json={"email": "a@x.com", "password": "secret1"}
            )

        assert response.status_code == 201
        assert db_session.exec(select(User).where(User.email == "a@x.com")).first()
        assert "Failed to send verification email" in caplog.text


class TestLogin:

    @pytest.mark.api
    def test_login_blocked_until_verified(self, client, register_user):
        verification_token = register_user("a@x.com", "secret1")

        response = client.post(
            "/api/auth/login", json={"email": "a@x.com", "password": "secret1"}
        )
        assert response.status_code == 401
        assert response.json() == {"message": "Email not verified"}

        assert client.get(f"/api/auth/verify/{verification_token}").status_code == 200

        response = client.post(
            "/api/auth/login", json={"email": "a@x.com", "password": "secret1"}
        )
        assert response.status_code == 200

        data = response.json()
        assert data["user"]["email"] == "a@x.com"
        assert data["user"]["subscription"] == "starter"

    @pytest.mark.api
    def test_token_claim_resolves_to_user(self, client, db_session, token):
        user = db_session.exec(select(User).where(User.email == "a@x.com")).one()
        assert token_service.verify(token) == str(user.id)
        assert user.token == token

    @pytest.mark.api
    def test_wrong_password_and_unknown_email_are_identical(self, client, token):
        wrong_password = client.post(
            "/api/auth/login", json={"email": "a@x.com", "password": "nope123"}
        )
        unknown_email = client.post(
            "/api/auth/login", json={"email": "ghost@x.com", "password": "secret1"}
        )

        assert wrong_password.status_code == unknown_email.status_code == 401
        assert wrong_password.json() == unknown_email.json()
        assert wrong_password.json() == {"message": "Email or password is wrong"}

    @pytest.mark.api
    def test_unverified_wrong_password_reports_credentials(self, client, register_user):
        register_user("a@x.com", "secret1")

        response = client.post(
            "/api/auth/login", json={"email": "a@x.com", "password": "wrong12"}
        )

        assert response.json() == {"message": "Email or password is wrong"}

    @pytest.mark.api
    def test_second_login_replaces_first_session(self, client, bearer, token):
        second = client.post(
            "/api/auth/login", json={"email": "a@x.com", "password": "secret1"}
        ).json()["token"]

        assert second != token
        assert client.get("/api/auth/current", headers=bearer(token)).status_code == 401
        assert client.get("/api/auth/current", headers=bearer(second)).status_code == 200


class TestSession:

    @pytest.mark.api
    def test_current(self, client, bearer, token):
        response = client.get("/api/auth/current", headers=bearer(token))

        assert response.status_code == 200
        data = response.json()
        assert data["email"] == "a@x.com"
        assert data["subscription"] == "starter"
        assert "avatarUrl" in data
        assert "token" not in data and "password" not in data

    @pytest.mark.api
    def test_logout_revokes_token(self, client, bearer, token, db_session):
        response = client.post("/api/auth/logout", headers=bearer(token))

        assert response.status_code == 204
        assert response.content == b""

        # still signed and unexpired, but no longer the active session
        assert token_service.verify(token) is not None
        again = client.get("/api/auth/current", headers=bearer(token))
        assert again.status_code == 401
        assert again.json() == {"message": "Not authorized"}

        user = db_session.exec(select(User).where(User.email == "a@x.com")).one()
        assert user.token is None

    @pytest.mark.api
    def test_logout_requires_auth(self, client):
        assert client.post("/api/auth/logout").status_code == 401

    @pytest.mark.api
    @pytest.mark.parametrize(
        "headers",
        [
            {},
            {"Authorization": "Token abc"},
            {"Authorization": "Bearer"},
            {"Authorization": "Bearer not-a-jwt"},
        ],
    )
    def test_guard_rejects_missing_or_malformed(self, client, headers):
        response = client.get("/api/auth/current", headers=headers)
        assert response.status_code == 401
        assert response.json() == {"message": "Not authorized"}

    @pytest.mark.api
    def test_guard_rejects_expired_token(self, client, bearer, token, db_session):
        user = db_session.exec(select(User).where(User.email == "a@x.com")).one()
        expired = token_service.issue(str(user.id), ttl=timedelta(seconds=-5))
        user.token = expired
        db_session.add(user)
        db_session.commit()

        assert client.get("/api/auth/current", headers=bearer(expired)).status_code == 401

    @pytest.mark.api
    def test_guard_rejects_unknown_user(self, client, bearer):
        orphan = token_service.issue(str(uuid.uuid4()))
        assert client.get("/api/auth/current", headers=bearer(orphan)).status_code == 401

    @pytest.mark.api
    def test_guard_rejects_non_uuid_claim(self, client, bearer):
        odd = token_service.issue("42")
        assert client.get("/api/auth/current", headers=bearer(odd)).status_code == 401


class TestVerification:

    @pytest.mark.api
    def test_verify_twice(self, client, register_user):
        verification_token = register_user("a@x.com", "secret1")

        first = client.get(f"/api/auth/verify/{verification_token}")
        second = client.get(f"/api/auth/verify/{verification_token}")

        assert first.status_code == 200
        assert first.json() == {"message": "Verification successful"}
        assert second.status_code == 404
        assert second.json() == {"message": "User not found"}

    @pytest.mark.api
    def test_verify_unknown_token(self, client):
        response = client.get("/api/auth/verify/does-not-exist")
        assert response.status_code == 404

    @pytest.mark.api
    def test_resend_reuses_pending_token(self, client, mailer, register_user):
        verification_token = register_user("a@x.com", "secret1")

        response = client.post("/api/auth/verify", json={"email": "a@x.com"})

        assert response.status_code == 200
        assert response.json() == {"message": "Verification email sent"}
        assert len([m for m in mailer.sent if m.to_email == "a@x.com"]) == 2
        assert mailer.last_to("a@x.com").verification_token == verification_token

    @pytest.mark.api
    def test_resend_generates_token_when_missing(
        self, client, mailer, register_user, db_session
    ):
        register_user("a@x.com", "secret1")
        user = db_session.exec(select(User).where(User.email == "a@x.com")).one()
        user.verification_token = None
        db_session.add(user)
        db_session.commit()

        assert client.post("/api/auth/verify", json={"email": "a@x.com"}).status_code == 200

        fresh = mailer.last_to("a@x.com").verification_token
        assert fresh
        assert client.get(f"/api/auth/verify/{fresh}").status_code == 200

    @pytest.mark.api
    def test_resend_unknown_email(self, client):
        response = client.post("/api/auth/verify", json={"email": "ghost@x.com"})
        assert response.status_code == 404

    @pytest.mark.api
    def test_resend_after_verification(self, client, token):
        response = client.post("/api/auth/verify", json={"email": "a@x.com"})
        assert response.status_code == 400
        assert response.json() == {"message": "Verification has already been passed"}

    @pytest.mark.api
    def test_resend_requires_email(self, client):
        assert client.post("/api/auth/verify", json={}).status_code == 400


class TestProfile:

    @pytest.mark.api
    def test_update_avatar(self, client, bearer, token, storage, db_session):
        response = client.patch(
            "/api/auth/avatars",
            headers=bearer(token),
            files={"avatar": ("me.png", b"\x89PNG fake bytes", "image/png")},
        )

        assert response.status_code == 200
        user = db_session.exec(select(User).where(User.email == "a@x.com")).one()
        expected_path = f"avatars/{user.id}_me.png"
        assert response.json() == {"avatarUrl": f"https://storage.test/{expected_path}"}
        assert storage.objects[expected_path] == b"\x89PNG fake bytes"

        current = client.get("/api/auth/current", headers=bearer(token)).json()
        assert current["avatarUrl"] == f"https://storage.test/{expected_path}"

    @pytest.mark.api
    def test_avatar_filename_is_stripped_of_directories(
        self, client, bearer, token, storage, db_session
    ):
        response = client.patch(
            "/api/auth/avatars",
            headers=bearer(token),
            files={"avatar": ("../../etc/me.png", b"img", "image/png")},
        )

        assert response.status_code == 200
        user = db_session.exec(select(User).where(User.email == "a@x.com")).one()
        assert list(storage.objects) == [f"avatars/{user.id}_me.png"]

    @pytest.mark.api
    def test_avatar_rejects_non_image(self, client, bearer, token, storage):
        response = client.patch(
            "/api/auth/avatars",
            headers=bearer(token),
            files={"avatar": ("notes.txt", b"hello", "text/plain")},
        )
        assert response.status_code == 400
        assert storage.objects == {}

    @pytest.mark.api
    def test_avatar_requires_file(self, client, bearer, token):
        response = client.patch("/api/auth/avatars", headers=bearer(token))
        assert response.status_code == 400

    @pytest.mark.api
    def test_avatar_requires_auth(self, client):
        response = client.patch(
            "/api/auth/avatars",
            files={"avatar": ("me.png", b"img", "image/png")},
        )
        assert response.status_code == 401

    @pytest.mark.api
    def test_update_subscription(self, client, bearer, token):
        response = client.patch(
            "/api/auth/subscription",
            headers=bearer(token),
            json={"subscription": "pro"},
        )
        assert response.status_code == 200
        assert response.json()["subscription"] == "pro"

        current = client.get("/api/auth/current", headers=bearer(token)).json()
        assert current["subscription"] == "pro"

    @pytest.mark.api
    def test_update_subscription_rejects_unknown_tier(self, client, bearer, token):
        response = client.patch(
            "/api/auth/subscription",
            headers=bearer(token),
            json={"subscription": "gold"},
        )
        assert response.status_code == 400


class TestWalkthrough:

    @pytest.mark.api
    def test_register_verify_login_logout(self, client, mailer, bearer):
        credentials = {"email": "a@x.com", "password": "secret1"}

        assert client.post("/api/auth/register", json=credentials).status_code == 201

        early = client.post("/api/auth/login", json=credentials)
        assert early.status_code == 401
        assert early.json()["message"] == "Email not verified"

        verification_token = mailer.last_to("a@x.com").verification_token
        assert client.get(f"/api/auth/verify/{verification_token}").status_code == 200

        login = client.post("/api/auth/login", json=credentials)
        assert login.status_code == 200
        session_token = login.json()["token"]

        current = client.get("/api/auth/current", headers=bearer(session_token))
        assert current.status_code == 200
        assert current.json()["email"] == "a@x.com"
        assert current.json()["subscription"] == "starter"

        assert client.post("/api/auth/logout", headers=bearer(session_token)).status_code == 204
        assert client.get("/api/auth/current", headers=bearer(session_token)).status_code == 401
