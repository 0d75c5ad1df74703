from school_auth.core.config import get_settings

settings = get_settings()


async def test_login_blocked_after_max_attempts(client):
    payload = {"email": "rate-limit@example.com", "password": "wrong_password"}
    responses = [await client.post("/auth/login", json=payload) for _ in range(settings.RATE_LIMIT_MAX_ATTEMPTS + 1)]

    assert all(r.status_code == 401 for r in responses[:-1])
    blocked = responses[-1]
    assert blocked.status_code == 429
    assert blocked.headers["Retry-After"] == str(settings.RATE_LIMIT_WINDOW_SECONDS)
    assert blocked.json() == {
        "success": False,
        "error": "Too many authentication attempts, please try again later",
        "retryAfter": settings.RATE_LIMIT_WINDOW_SECONDS,
    }


async def test_limit_is_per_email(client, fake_redis):
    for _ in range(settings.RATE_LIMIT_MAX_ATTEMPTS):
        await client.post("/auth/login", json={"email": "one@example.com", "password": "x"})

    r = await client.post("/auth/login", json={"email": "two@example.com", "password": "x"})
    assert r.status_code == 401
    assert await fake_redis.zcard("ratelimit:login:one@example.com") == settings.RATE_LIMIT_MAX_ATTEMPTS


async def test_forgot_password_is_limited_separately(client):
    for _ in range(settings.RATE_LIMIT_MAX_ATTEMPTS):
        r = await client.post("/auth/forgot-password", json={"email": "someone@example.com"})
        assert r.status_code == 200
    r = await client.post("/auth/forgot-password", json={"email": "someone@example.com"})
    assert r.status_code == 429

    r = await client.post("/auth/login", json={"email": "someone@example.com", "password": "x"})
    assert r.status_code == 401


async def test_other_routes_are_not_limited(client):
    for _ in range(settings.RATE_LIMIT_MAX_ATTEMPTS + 2):
        r = await client.post("/auth/refresh", json={"refreshToken": "junk"})
        assert r.status_code == 401


async def test_body_is_still_readable_by_route(client, registered):
    r = await client.post("/auth/login", json={"email": "alice@example.com", "password": "Secret123"})
    assert r.status_code == 200
