"""
Tests for /api/auth and bearer token handling.
"""

from jose import jwt

from levelup.core.config import get_settings
from levelup.core.security import create_access_token
from levelup.models.user import User


class TestRegisterLogin:
    def test_register_then_login(self, client):
        resp = client.post(
            "/api/auth/register",
            json={"email": "New.Manager@Example.com", "password": "s3cret-pass", "first_name": "Sam"},
        )
        assert resp.status_code == 200
        assert resp.json()["email"] == "new.manager@example.com"

        token = client.post(
            "/api/auth/login", data={"username": "new.manager@example.com", "password": "s3cret-pass"}
        ).json()["access_token"]
        me = client.get("/api/auth/user", headers={"Authorization": f"Bearer {token}"}).json()
        assert me["first_name"] == "Sam"
        assert me["is_admin"] is False

    def test_duplicate_email(self, client):
        body = {"email": "dup@example.com", "password": "pw-123456"}
        client.post("/api/auth/register", json=body)
        assert client.post("/api/auth/register", json=body).status_code == 400

    def test_wrong_password(self, client):
        client.post("/api/auth/register", json={"email": "a@example.com", "password": "right-pass"})
        resp = client.post("/api/auth/login", data={"username": "a@example.com", "password": "wrong"})
        assert resp.status_code == 401


class TestTokens:
    def test_garbage_token(self, client):
        assert client.get("/api/auth/user", headers={"Authorization": "Bearer nope"}).status_code == 401

    def test_unknown_subject_with_email_is_provisioned(self, client, db):
        token = create_access_token(subject="hosted-user-1", email="Hosted@Example.com")
        resp = client.get("/api/auth/user", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 200
        assert resp.json()["email"] == "hosted@example.com"
        db.expire_all()
        assert db.get(User, "hosted-user-1") is not None

    def test_unknown_subject_without_email(self, client):
        token = create_access_token(subject="ghost")
        assert client.get("/api/auth/user", headers={"Authorization": f"Bearer {token}"}).status_code == 401

    def test_audience_is_not_pinned(self, client, user):
        settings = get_settings()
        token = jwt.encode(
            {"sub": user.id, "aud": "authenticated"}, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM
        )
        assert client.get("/api/auth/user", headers={"Authorization": f"Bearer {token}"}).status_code == 200

    def test_admin_by_email_list(self, client, db):
        admin_email = get_settings().ADMIN_EMAILS[0]
        token = create_access_token(subject="cfg-admin", email=admin_email)
        me = client.get("/api/auth/user", headers={"Authorization": f"Bearer {token}"}).json()
        assert me["is_admin"] is True


def test_health(client):
    data = client.get("/api/health").json()
    assert data["ok"] is True
