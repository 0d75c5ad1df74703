"""
End-to-end tests of the /auth routes through the ASGI app.
"""
from datetime import timedelta

from school_auth.core.config import get_settings
from school_auth.core.tokens import TokenService, token_service


def auth_header(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


async def test_register_returns_user_and_tokens(client, register_payload):
    r = await client.post("/auth/register", json=register_payload)
    assert r.status_code == 201
    body = r.json()
    assert body["success"] is True
    data = body["data"]
    assert data["user"]["email"] == "alice@example.com"
    assert data["user"]["fullName"] == "Alice Teacher"
    assert data["user"]["role"] == "teacher"
    assert data["token"] and data["refreshToken"]
    assert data["expiresIn"] == 24 * 3600
    for secret_field in ("password", "hashedPassword", "resetPasswordToken", "emailVerificationToken"):
        assert secret_field not in data["user"]


async def test_register_missing_fields_is_400(client):
    r = await client.post("/auth/register", json={"email": "alice@example.com"})
    assert r.status_code == 400
    body = r.json()
    assert body["success"] is False
    assert "password" in body["error"]


async def test_register_rejects_unknown_role_and_bad_email(client, register_payload):
    r = await client.post("/auth/register", json={**register_payload, "role": "janitor"})
    assert r.status_code == 400
    r = await client.post("/auth/register", json={**register_payload, "email": "not-an-email"})
    assert r.status_code == 400


async def test_register_duplicate_is_409(client, registered, register_payload):
    r = await client.post("/auth/register", json=register_payload)
    assert r.status_code == 409
    body = r.json()
    assert body["success"] is False
    assert body["error"] == "User with this email already exists"


async def test_alice_scenario_login_then_profile(client, registered):
    r = await client.post(
        "/auth/login", json={"email": "alice@example.com", "password": "Secret123"}
    )
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["token"] and data["refreshToken"]
    assert token_service.verify_access(data["token"])["userId"] == registered["user"]["id"]

    r = await client.get("/auth/profile", headers=auth_header(data["token"]))
    assert r.status_code == 200
    profile = r.json()["data"]
    assert profile["email"] == "alice@example.com"
    assert "password" not in profile
    assert "hashedPassword" not in profile
    assert profile["lastLogin"] is not None


async def test_wrong_password_and_unknown_email_are_indistinguishable(client, registered):
    wrong = await client.post(
        "/auth/login", json={"email": "alice@example.com", "password": "WrongPass"}
    )
    unknown = await client.post(
        "/auth/login", json={"email": "bob@nonexistent.com", "password": "anything"}
    )
    assert wrong.status_code == unknown.status_code == 401
    assert wrong.json()["error"] == unknown.json()["error"] == "Invalid email or password"
    assert wrong.headers["WWW-Authenticate"] == "Bearer"


async def test_login_missing_password_is_400(client):
    r = await client.post("/auth/login", json={"email": "alice@example.com"})
    assert r.status_code == 400


async def test_profile_requires_token(client):
    r = await client.get("/auth/profile")
    assert r.status_code == 401
    assert r.json()["error"] == "Access token required"


async def test_profile_rejects_invalid_and_expired_tokens(client, registered):
    r = await client.get("/auth/profile", headers=auth_header("not.a.token"))
    assert r.status_code == 401
    assert r.json()["error"] == "Invalid token"

    # Same access secret as the app, already-expired lifetime.
    expired_service = TokenService.from_settings(get_settings())
    expired_service.access_ttl = timedelta(seconds=-1)

    class _User:
        id = registered["user"]["id"]
        email = "alice@example.com"
        role = "teacher"
        school_id = None

    expired = expired_service.create_access_token(_User())
    r = await client.get("/auth/profile", headers=auth_header(expired))
    assert r.status_code == 401
    assert r.json()["error"] == "Token expired"


async def test_refresh_token_cannot_be_used_as_bearer(client, registered):
    r = await client.get("/auth/profile", headers=auth_header(registered["refreshToken"]))
    assert r.status_code == 401


async def test_refresh_endpoint_rotates(client, registered):
    r = await client.post("/auth/refresh", json={"refreshToken": registered["refreshToken"]})
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["refreshToken"] != registered["refreshToken"]
    assert data["user"]["id"] == registered["user"]["id"]

    replay = await client.post("/auth/refresh", json={"refreshToken": registered["refreshToken"]})
    assert replay.status_code == 401


async def test_refresh_requires_body(client):
    r = await client.post("/auth/refresh", json={})
    assert r.status_code == 400


async def test_logout_revokes_access_token(client, registered):
    headers = auth_header(registered["token"])
    r = await client.post("/auth/logout", headers=headers)
    assert r.status_code == 200
    assert r.json() == {"success": True, "message": "Logged out successfully"}

    r = await client.get("/auth/profile", headers=headers)
    assert r.status_code == 401
    assert r.json()["error"] == "Token has been revoked"


async def test_logout_with_refresh_token_revokes_both(client, registered):
    r = await client.post(
        "/auth/logout",
        headers=auth_header(registered["token"]),
        json={"refreshToken": registered["refreshToken"]},
    )
    assert r.status_code == 200
    r = await client.post("/auth/refresh", json={"refreshToken": registered["refreshToken"]})
    assert r.status_code == 401


async def test_forgot_and_reset_password(client, registered):
    r = await client.post("/auth/forgot-password", json={"email": "alice@example.com"})
    assert r.status_code == 200
    token = r.json()["resetToken"]

    unknown = await client.post("/auth/forgot-password", json={"email": "bob@nonexistent.com"})
    assert unknown.status_code == 200
    assert unknown.json()["message"] == r.json()["message"]
    assert "resetToken" not in unknown.json()

    r = await client.post(
        "/auth/reset-password", json={"token": token, "newPassword": "NewSecret456"}
    )
    assert r.status_code == 200

    old = await client.post("/auth/login", json={"email": "alice@example.com", "password": "Secret123"})
    new = await client.post("/auth/login", json={"email": "alice@example.com", "password": "NewSecret456"})
    assert old.status_code == 401
    assert new.status_code == 200

    reuse = await client.post(
        "/auth/reset-password", json={"token": token, "newPassword": "Another789"}
    )
    assert reuse.status_code == 400
    assert reuse.json()["error"] == "Invalid or expired reset token"


async def test_change_password_endpoint(client, registered):
    headers = auth_header(registered["token"])
    r = await client.post(
        "/auth/change-password",
        headers=headers,
        json={"currentPassword": "WrongPass", "newPassword": "NewSecret456"},
    )
    assert r.status_code == 401

    r = await client.post(
        "/auth/change-password",
        headers=headers,
        json={"currentPassword": "Secret123", "newPassword": "NewSecret456"},
    )
    assert r.status_code == 200
    r = await client.post(
        "/auth/login", json={"email": "alice@example.com", "password": "NewSecret456"}
    )
    assert r.status_code == 200


async def test_verify_email_endpoint(client, registered, store):
    user = await store.get_by_email("alice@example.com")
    token = user.email_verification_token
    await store.db.commit()

    r = await client.post("/auth/verify-email", json={"token": token})
    assert r.status_code == 200

    r = await client.get("/auth/profile", headers=auth_header(registered["token"]))
    assert r.json()["data"]["emailVerified"] is True

    r = await client.post("/auth/verify-email", json={"token": token})
    assert r.status_code == 400
    assert r.json()["error"] == "Invalid verification token"


async def test_unknown_route_uses_error_envelope(client):
    r = await client.get("/auth/nope")
    assert r.status_code == 404
    assert r.json()["success"] is False


async def test_mixed_case_email_logs_in_with_registered_string(client, register_payload):
    email = "Carol@Example.COM"
    r = await client.post("/auth/register", json={**register_payload, "email": email})
    assert r.status_code == 201
    assert r.json()["data"]["user"]["email"] == email

    r = await client.post("/auth/login", json={"email": email, "password": "Secret123"})
    assert r.status_code == 200

    r = await client.post("/auth/forgot-password", json={"email": email})
    assert r.json()["resetToken"]
