"""Integration tests for /api/auth/* and GET /api/users/profile.

Covers:
- register returns 201 with token and safe user (no password digest)
- register validation reports every violated rule at once
- duplicate username or email gives the combined "already in use" message
- login succeeds with the right password and is indistinguishable otherwise
- the gate rejects missing, malformed, invalid, and orphaned tokens
- logout is a stateless acknowledgement
"""

from __future__ import annotations

from fastapi.testclient import TestClient

from api.main import app
from auth.tokens import TokenSigner


def _auth(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


class TestRegister:
    def test_register_success(self, api_client: TestClient) -> None:
        resp = api_client.post(
            "/api/auth/register",
            json={
                "username": "alice",
                "email": "alice@example.com",
                "password": "password123",
                "age": 30,
                "description": "Reads HN daily",
            },
        )
        assert resp.status_code == 201, f"Expected 201, got {resp.status_code}: {resp.text}"
        data = resp.json()
        assert data["message"] == "User registered successfully"
        assert data["token"]
        user = data["user"]
        assert user["username"] == "alice"
        assert user["email"] == "alice@example.com"
        assert user["description"] == "Reads HN daily"
        assert user["profileVisibility"] is True
        assert user["profileImageUrl"] is None
        assert "password" not in user
        assert "hashedPassword" not in user
        assert resp.headers["Cache-Control"] == "no-store"

    def test_register_private_profile(self, api_client: TestClient) -> None:
        resp = api_client.post(
            "/api/auth/register",
            json={
                "username": "hidden",
                "email": "hidden@example.com",
                "password": "password123",
                "age": 40,
                "profileVisibility": False,
            },
        )
        assert resp.status_code == 201
        assert resp.json()["user"]["profileVisibility"] is False

    def test_register_reports_every_violation(self, api_client: TestClient) -> None:
        resp = api_client.post(
            "/api/auth/register",
            json={"username": "ab", "email": "not-an-email", "password": "short", "age": 12},
        )
        assert resp.status_code == 400
        errors = {e["field"]: e["message"] for e in resp.json()["errors"]}
        assert errors["username"] == "Username must be at least 3 characters"
        assert errors["email"] == "Please provide a valid email"
        assert errors["password"] == "Password must be at least 8 characters"
        assert errors["age"] == "Age must be at least 13"

    def test_register_missing_fields(self, api_client: TestClient) -> None:
        resp = api_client.post("/api/auth/register", json={"username": "nobody"})
        assert resp.status_code == 400
        fields = {e["field"] for e in resp.json()["errors"]}
        assert {"email", "password", "age"} <= fields

    def test_register_age_out_of_range(self, api_client: TestClient) -> None:
        """An age too large for the database is a validation error, not a 500."""
        resp = api_client.post(
            "/api/auth/register",
            json={"username": "bigage", "email": "bigage@example.com", "password": "password123", "age": 10**20},
        )
        assert resp.status_code == 400, f"Expected 400, got {resp.status_code}: {resp.text}"
        errors = {e["field"]: e["message"] for e in resp.json()["errors"]}
        assert errors["age"] == "Age is out of range"

    def test_duplicate_username(self, api_client: TestClient, register) -> None:
        register("dupname")
        resp = api_client.post(
            "/api/auth/register",
            json={"username": "dupname", "email": "fresh@example.com", "password": "password123", "age": 20},
        )
        assert resp.status_code == 400
        assert resp.json()["message"] == "Username or email already in use"

    def test_duplicate_email(self, api_client: TestClient, register) -> None:
        register("dupmail")
        resp = api_client.post(
            "/api/auth/register",
            json={"username": "freshname", "email": "dupmail@example.com", "password": "password123", "age": 20},
        )
        assert resp.status_code == 400
        assert resp.json()["message"] == "Username or email already in use"


class TestLogin:
    def test_login_success(self, api_client: TestClient, register) -> None:
        _, user = register("bob")
        resp = api_client.post("/api/auth/login", json={"email": "bob@example.com", "password": "password123"})
        assert resp.status_code == 200, f"Expected 200, got {resp.status_code}: {resp.text}"
        data = resp.json()
        assert data["message"] == "Login successful"
        assert data["user"]["id"] == user["id"]
        assert data["token"]

        profile = api_client.get("/api/users/profile", headers=_auth(data["token"]))
        assert profile.status_code == 200
        assert profile.json()["username"] == "bob"

    def test_wrong_password_and_unknown_email_look_the_same(self, api_client: TestClient, register) -> None:
        register("carol")
        wrong = api_client.post("/api/auth/login", json={"email": "carol@example.com", "password": "wrongpass1"})
        unknown = api_client.post("/api/auth/login", json={"email": "ghost@example.com", "password": "password123"})
        assert wrong.status_code == 401
        assert unknown.status_code == 401
        assert wrong.json()["message"] == unknown.json()["message"] == "Invalid credentials"

    def test_login_validation(self, api_client: TestClient) -> None:
        resp = api_client.post("/api/auth/login", json={"email": "bad", "password": ""})
        assert resp.status_code == 400
        errors = {e["field"]: e["message"] for e in resp.json()["errors"]}
        assert errors["email"] == "Please provide a valid email"
        assert errors["password"] == "Password is required"


class TestGate:
    def test_profile_with_registration_token(self, api_client: TestClient, register) -> None:
        token, user = register("dave", description="hello")
        resp = api_client.get("/api/users/profile", headers=_auth(token))
        assert resp.status_code == 200
        data = resp.json()
        assert data["id"] == user["id"]
        assert data["email"] == "dave@example.com"
        assert data["description"] == "hello"
        assert "hashedPassword" not in data

    def test_missing_header(self, api_client: TestClient) -> None:
        resp = api_client.get("/api/users/profile")
        assert resp.status_code == 401
        assert resp.json()["message"] == "Authentication required"

    def test_malformed_header(self, api_client: TestClient) -> None:
        resp = api_client.get("/api/users/profile", headers={"Authorization": "Token abc"})
        assert resp.status_code == 401
        assert resp.json()["message"] == "Authentication required"

    def test_invalid_token(self, api_client: TestClient) -> None:
        resp = api_client.get("/api/users/profile", headers=_auth("not.a.token"))
        assert resp.status_code == 401
        assert resp.json()["message"] == "Invalid token"

    def test_token_for_deleted_user(self, api_client: TestClient) -> None:
        token = TokenSigner.from_settings(app.state.settings).issue(99999, "ghost")
        resp = api_client.get("/api/users/profile", headers=_auth(token))
        assert resp.status_code == 401
        assert resp.json()["message"] == "User not found"

    def test_debug_error_code(self, api_client: TestClient) -> None:
        """Development mode adds the machine code under "error"."""
        resp = api_client.get("/api/users/profile")
        assert resp.json()["error"] == "auth_required"


def test_logout(api_client: TestClient) -> None:
    resp = api_client.post("/api/auth/logout")
    assert resp.status_code == 200
    assert resp.json() == {"message": "Logged out"}
