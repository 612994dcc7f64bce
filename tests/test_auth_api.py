from datetime import timedelta

from jose import jwt

from task_tracker.auth import create_access_token, decode_token, hash_password, verify_password


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


def assert_unauthorized(res, detail):
    assert res.status_code == 401
    assert res.json() == {"error": "AuthenticationFailed", "detail": detail}
    assert res.headers["www-authenticate"] == "Bearer"


class TestHealth:
    def test_health_check(self, client):
        res = client.get("/")
        assert res.status_code == 200
        data = res.json()
        assert data["message"] == "Healthy"
        assert data["backend"] in ("memory", "sqlite")


class TestSignup:
    def test_signup_returns_user_and_token(self, client):
        res = client.post("/api/v1/auth/signup", json={"email": "dave@example.com", "password": "hunter22"})
        assert res.status_code == 201
        body = res.json()
        assert body["user"]["email"] == "dave@example.com"
        assert isinstance(body["user"]["id"], int)
        assert body["token_type"] == "bearer"
        assert "password" not in body["user"] and "password_hash" not in body["user"]
        assert decode_token(body["token"])["user_id"] == body["user"]["id"]

    def test_duplicate_email_conflicts(self, client, alice):
        res = client.post("/api/v1/auth/signup", json={"email": "alice@example.com", "password": "another1"})
        assert res.status_code == 409
        assert res.json()["error"] == "Conflict"

    def test_short_password_rejected(self, client):
        res = client.post("/api/v1/auth/signup", json={"email": "eve@example.com", "password": "12345"})
        assert res.status_code == 422
        body = res.json()
        assert body["error"] == "ValidationError"
        assert body["message"] == "Request validation failed"
        assert isinstance(body["detail"], list)

    def test_invalid_email_rejected(self, client):
        res = client.post("/api/v1/auth/signup", json={"email": "not-an-email", "password": "password123"})
        assert res.status_code == 422

    def test_email_domain_is_normalized(self, client, user_repo):
        res = client.post("/api/v1/auth/signup", json={"email": "Bob@Example.COM", "password": "password123"})
        assert res.status_code == 201
        assert res.json()["user"]["email"] == "Bob@example.com"
        assert user_repo.get_by_email("Bob@example.com") is not None
        res = client.post("/api/v1/auth/login", json={"email": "Bob@EXAMPLE.com", "password": "password123"})
        assert res.status_code == 200

    def test_password_is_hashed(self, client, user_repo, alice):
        stored = user_repo.get_by_email("alice@example.com")
        assert stored["password_hash"] != "password123"
        assert verify_password("password123", stored["password_hash"])


class TestLogin:
    def test_login_success(self, client, alice):
        res = client.post("/api/v1/auth/login", json={"email": "alice@example.com", "password": "password123"})
        assert res.status_code == 200
        body = res.json()
        assert body["user"] == alice[0]
        me = client.get("/api/v1/auth/me", headers=bearer(body["token"]))
        assert me.status_code == 200
        assert me.json() == alice[0]

    def test_wrong_password(self, client, alice):
        res = client.post("/api/v1/auth/login", json={"email": "alice@example.com", "password": "wrong-pass"})
        assert_unauthorized(res, "Invalid email or password")

    def test_unknown_email(self, client):
        res = client.post("/api/v1/auth/login", json={"email": "ghost@example.com", "password": "password123"})
        assert_unauthorized(res, "Invalid email or password")


class TestTokens:
    def test_me_requires_token(self, client):
        res = client.get("/api/v1/auth/me")
        assert_unauthorized(res, "Authentication required")

    def test_expired_token_rejected(self, client, user_repo, alice):
        user = user_repo.get(alice[0]["id"])
        token = create_access_token(user, expires_delta=timedelta(minutes=-5))
        res = client.get("/api/v1/auth/me", headers=bearer(token))
        assert_unauthorized(res, "Could not validate credentials")

    def test_token_signed_with_other_key_rejected(self, client, alice):
        forged = jwt.encode(
            {"sub": "alice@example.com", "user_id": alice[0]["id"], "type": "access"},
            "not-the-server-secret",
            algorithm="HS256",
        )
        res = client.get("/api/v1/auth/me", headers=bearer(forged))
        assert_unauthorized(res, "Could not validate credentials")

    def test_garbage_token_rejected(self, client):
        res = client.get("/api/v1/auth/me", headers=bearer("eyJ1c2VyX2lkIjoxfQ=="))
        assert_unauthorized(res, "Could not validate credentials")

    def test_token_for_unknown_user_rejected(self, client):
        token = create_access_token(
            {"id": 42, "email": "ghost@example.com", "password_hash": hash_password("x"), "created_at": None}
        )
        res = client.get("/api/v1/auth/me", headers=bearer(token))
        assert_unauthorized(res, "Could not validate credentials")


class TestUsers:
    def test_list_users_requires_auth(self, client):
        assert_unauthorized(client.get("/api/v1/users/"), "Authentication required")

    def test_list_users_ordered_by_email(self, client, register):
        register("zed@example.com")
        register("amy@example.com")
        _, headers = register("moe@example.com")
        res = client.get("/api/v1/users/", headers=headers)
        assert res.status_code == 200
        emails = [u["email"] for u in res.json()]
        assert emails == ["amy@example.com", "moe@example.com", "zed@example.com"]
        assert all(set(u) == {"id", "email"} for u in res.json())
