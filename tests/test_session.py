from datetime import timedelta

from jose import jwt

from cling.core import security
from cling.core.config import settings


def test_round_trip_through_cookie_header():
    token = security.create_session_token(42, "me@example.com")
    claims = security.resolve_session_from_cookie_header(f"theme=dark; token={token}")
    assert claims is not None
    assert claims.sub == 42
    assert claims.email == "me@example.com"


def test_session_found_after_cookie_with_json_value():
    token = security.create_session_token(7, "p@example.com")
    claims = security.resolve_session_from_cookie_header('prefs={"theme":"dark"}; token=' + token)
    assert claims is not None
    assert claims.sub == 7
    assert claims.email == "p@example.com"


def test_missing_or_garbage_cookie_resolves_to_none():
    assert security.resolve_session_from_cookie_header(None) is None
    assert security.resolve_session_from_cookie_header("") is None
    assert security.resolve_session_from_cookie_header("theme=dark") is None
    assert security.resolve_session_from_cookie_header("token=not-a-jwt") is None
    assert security.resolve_session_from_cookie_header('token="unterminated') is None


def test_expired_token_resolves_to_none():
    token = security.create_session_token(1, "old@example.com", expires_delta=timedelta(seconds=-5))
    assert security.resolve_session_from_cookie_header(f"token={token}") is None


def test_token_signed_with_other_key_is_rejected():
    token = jwt.encode({"sub": "1", "email": "x@example.com"}, "another-key", algorithm=settings.ALGORITHM)
    assert security.decode_session_token(token) is None


def test_token_without_email_claim_is_rejected():
    token = jwt.encode({"sub": "1"}, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    assert security.decode_session_token(token) is None


def test_protected_routes_require_session(client):
    assert client.get("/api/reminders").status_code == 401
    assert client.get("/api/dashboard/userinfo").status_code == 401
    res = client.post("/api/reminders", json={"title": "x"})
    assert res.status_code == 401
    assert res.json()["error"] is True
