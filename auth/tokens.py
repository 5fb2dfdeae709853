"""
auth/tokens.py -- JWT and password hashing utilities.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with SECRET_KEY and carry
       email, id, and expiry. Verification returns None on any failure --
       the auth dependency turns that into a 401.

  Passwords: bcrypt with a fixed work factor of 10. Bcrypt's cost factor
       makes brute-forcing low-entropy secrets expensive.

  SECRET_KEY: sourced from core.config.get_settings(). The Settings class
       validates the key at startup: dev mode (DEBUG=true) auto-generates a
       random key with a warning; production mode refuses to start without one.

Layer rule: no imports from api/ or tasks/. Import from core/ is allowed --
core/ is the kernel and has no reverse dependencies.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

import bcrypt
from jose import JWTError, jwt

from auth.models import TokenClaims
from core.config import get_settings
from core.errors import AuthenticationError

if TYPE_CHECKING:
    from auth.models import User
    from auth.store import UserStore

logger = logging.getLogger("taskserver.auth")

# ---------------------------------------------------------------------------
# Config -- read once at module load via the lru_cache singleton
# ---------------------------------------------------------------------------

_settings = get_settings()

_ALGORITHM = "HS256"
_BCRYPT_ROUNDS = 10
_BCRYPT_MAX_BYTES = 72

# ---------------------------------------------------------------------------
# Password hashing (bcrypt -- direct usage, no passlib wrapper)
# ---------------------------------------------------------------------------


def _password_bytes(plain: str) -> bytes:
    """UTF-8 encode a password and keep the first 72 bytes.

    bcrypt only ever uses 72 bytes of input, and bcrypt 5 raises ValueError
    on anything longer instead of truncating. Hashing and verification must
    truncate identically so long passwords still log in.
    """
    return plain.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(plain: str) -> str:
    """Return a salted bcrypt hash of the given plaintext password."""
    return bcrypt.hashpw(_password_bytes(plain), bcrypt.gensalt(rounds=_BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash."""
    try:
        return bcrypt.checkpw(_password_bytes(plain), hashed.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash.
        return False


# ---------------------------------------------------------------------------
# JWT encode / decode
# ---------------------------------------------------------------------------


def create_access_token(user_id: int, email: str, expire_seconds: int = 0) -> str:
    """Encode a signed JWT with user identity and expiry.

    Args:
        user_id:        Numeric user ID stored in the DB.
        email:          Login email, carried as the "email" claim.
        expire_seconds: Token lifetime in seconds. If 0 (default), uses
                        Settings.token_expire_seconds.
    """
    duration = expire_seconds if expire_seconds > 0 else _settings.token_expire_seconds
    expire = datetime.now(timezone.utc) + timedelta(seconds=duration)
    payload = {
        "email": email,
        "id": user_id,
        "exp": expire,
    }
    return jwt.encode(payload, _settings.secret_key, algorithm=_ALGORITHM)


def decode_access_token(token: str) -> TokenClaims | None:
    """Decode and verify a JWT. Returns the claims or None on any failure.

    Expiry is checked by python-jose. A token signed with the right key but
    missing the email, id, or exp claim is treated as invalid.
    """
    try:
        payload = jwt.decode(token, _settings.secret_key, algorithms=[_ALGORITHM])
    except JWTError:
        return None
    if not {"email", "id", "exp"} <= payload.keys():
        return None
    return TokenClaims(email=payload["email"], id=payload["id"], exp=payload["exp"])


# ---------------------------------------------------------------------------
# Credential check
# ---------------------------------------------------------------------------


def check_credentials(store: UserStore, email: str, password: str) -> User:
    """Return the User whose email and password match.

    Raises AuthenticationError("User not found") for an unknown email and
    AuthenticationError("Invalid password") for a wrong password. Both are
    401s; the distinct messages are part of the login contract.
    """
    user = store.get_by_email(email)
    if user is None:
        logger.info("Login rejected: unknown email")
        raise AuthenticationError("User not found")
    if not verify_password(password, user.hashed_password):
        logger.info("Login rejected: bad password for user %s", user.id)
        raise AuthenticationError("Invalid password")
    return user
