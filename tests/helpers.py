"""Shared constants and helpers for the task server test suite."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from jose import jwt

from core.config import get_settings

TEST_EMAIL = "tester@example.com"
TEST_PASSWORD = "testpass123"
TEST_NAME = "Test User"


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def make_token(claims: dict, *, expires_in: int = 3600, key: str | None = None) -> str:
    """Sign arbitrary claims with HS256, bypassing auth.tokens.

    A negative expires_in produces an already-expired token.
    """
    payload = {**claims, "exp": datetime.now(timezone.utc) + timedelta(seconds=expires_in)}
    return jwt.encode(payload, key or get_settings().secret_key, algorithm="HS256")
