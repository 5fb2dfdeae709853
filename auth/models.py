"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Stores and routes do
the work; these only own the shape.

Layer rule: no imports from api/ or tasks/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class User:
    """A registered account.

    email is the login identifier and is unique across all users (enforced by
    a UNIQUE constraint in auth/store.py). hashed_password is the bcrypt hash;
    the plaintext never reaches the store.

    id is None before the record is written to the database.
    """

    name: str
    email: str
    hashed_password: str
    id: int | None = None
    created_at: str | None = None


@dataclass(frozen=True)
class TokenClaims:
    """Decoded payload of a verified access token.

    Attached to request.state.claims by auth.dependencies.require_token().
    exp is the expiry as a UNIX timestamp, as python-jose decodes it.
    """

    email: str
    id: int
    exp: int
