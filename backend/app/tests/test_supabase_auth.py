"""
Tests for the Supabase Auth provider against a mocked Supabase REST API.
"""
import json
from datetime import datetime, timedelta

import httpx
import pytest
from jose import jwt

from app.api.dependencies import get_auth
from app.core.auth import AuthError, SupabaseAuthProvider, UserNotFound
from app.main import app
from app.models.user import User

SUPABASE_URL = "https://project.supabase.test"
JWT_SECRET = "super-secret-jwt-token-with-at-least-32-characters"
SUPABASE_USER = {"id": "0b7c1e4e-uuid", "email": "ana@example.com", "user_metadata": {"name": "Ana"}}


def make_token(sub=SUPABASE_USER["id"], secret=JWT_SECRET, expires_in=3600):
    claims = {
        "sub": sub,
        "aud": "authenticated",
        "exp": datetime.utcnow() + timedelta(seconds=expires_in),
    }
    return jwt.encode(claims, secret, algorithm="HS256")


class FakeSupabase:
    """Minimal stand-in for the /auth/v1 endpoints."""

    def __init__(self):
        self.requests = []
        self.password = "correct-horse"
        self.token = make_token()

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        assert request.headers["apikey"] == "anon-key"
        path = request.url.path

        if path == "/auth/v1/signup":
            return httpx.Response(200, json={"access_token": self.token, "user": SUPABASE_USER})
        if path == "/auth/v1/token":
            body = json.loads(request.content)
            if body["password"] != self.password:
                return httpx.Response(400, json={"error": "invalid_grant"})
            return httpx.Response(200, json={"access_token": self.token, "user": SUPABASE_USER})
        if path == "/auth/v1/logout":
            return httpx.Response(204)
        if path == "/auth/v1/user":
            if request.headers.get("authorization") != f"Bearer {self.token}":
                return httpx.Response(401, json={"msg": "invalid JWT"})
            return httpx.Response(200, json=SUPABASE_USER)
        return httpx.Response(404)


@pytest.fixture
def fake_supabase():
    return FakeSupabase()


@pytest.fixture
def provider(fake_supabase):
    return SupabaseAuthProvider(
        SUPABASE_URL, "anon-key", jwt_secret=JWT_SECRET, transport=httpx.MockTransport(fake_supabase)
    )


@pytest.mark.asyncio
async def test_register_creates_local_profile(provider, db):
    user, token = await provider.register("ana@example.com", "correct-horse", "Ana", db)

    assert token
    assert user.external_id == SUPABASE_USER["id"]
    assert user.display_name == "Ana"
    assert user.hashed_password is None
    assert db.query(User).count() == 1


@pytest.mark.asyncio
async def test_login_reuses_profile(provider, db):
    registered, _ = await provider.register("ana@example.com", "correct-horse", None, db)
    user, _ = await provider.login("ana@example.com", "correct-horse", db)

    assert user.id == registered.id
    assert db.query(User).count() == 1


@pytest.mark.asyncio
async def test_login_links_existing_profile_by_email(provider, db):
    db.add(User(email="ana@example.com", display_name="Ana L"))
    db.commit()

    user, _ = await provider.login("ana@example.com", "correct-horse", db)

    assert user.external_id == SUPABASE_USER["id"]
    assert user.display_name == "Ana L"


@pytest.mark.asyncio
async def test_wrong_password(provider, db):
    with pytest.raises(AuthError) as exc_info:
        await provider.login("ana@example.com", "wrong", db)
    assert exc_info.value.status_code == 401


@pytest.mark.asyncio
async def test_resolve_user_from_jwt(provider, fake_supabase, db):
    await provider.register("ana@example.com", "correct-horse", None, db)
    calls_before = len(fake_supabase.requests)

    user = await provider.resolve_user(make_token(), db)

    assert user.email == "ana@example.com"
    assert len(fake_supabase.requests) == calls_before


@pytest.mark.asyncio
async def test_resolve_user_rejects_bad_tokens(provider, db):
    await provider.register("ana@example.com", "correct-horse", None, db)

    for token in (make_token(expires_in=-60), make_token(secret="another-secret-another-secret-xx"), "garbage"):
        with pytest.raises(AuthError) as exc_info:
            await provider.resolve_user(token, db)
        assert exc_info.value.status_code == 401


@pytest.mark.asyncio
async def test_resolve_user_without_profile(provider, db):
    with pytest.raises(UserNotFound):
        await provider.resolve_user(make_token(), db)


@pytest.mark.asyncio
async def test_resolve_user_via_api_without_secret(fake_supabase, db):
    provider = SupabaseAuthProvider(SUPABASE_URL, "anon-key", transport=httpx.MockTransport(fake_supabase))
    await provider.register("ana@example.com", "correct-horse", None, db)

    user = await provider.resolve_user(fake_supabase.token, db)
    assert user.external_id == SUPABASE_USER["id"]
    assert fake_supabase.requests[-1].url.path == "/auth/v1/user"

    with pytest.raises(AuthError):
        await provider.resolve_user("not-the-token", db)


@pytest.mark.asyncio
async def test_service_unreachable(db):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    provider = SupabaseAuthProvider(SUPABASE_URL, "anon-key", transport=httpx.MockTransport(handler))
    with pytest.raises(AuthError) as exc_info:
        await provider.login("ana@example.com", "correct-horse", db)
    assert exc_info.value.status_code == 503


def test_routes_use_configured_provider(client, provider):
    app.dependency_overrides[get_auth] = lambda: provider

    registered = client.post(
        "/api/auth/register", json={"email": "ana@example.com", "password": "correct-horse", "name": "Ana"}
    )
    assert registered.status_code == 201
    token = registered.json()["token"]

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["displayName"] == "Ana"

    logout = client.post("/api/auth/logout", headers={"Authorization": f"Bearer {token}"})
    assert logout.json() == {"success": True}
