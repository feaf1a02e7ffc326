"""
Password hashing and signed tokens.

Passwords are stored as PBKDF2-HMAC-SHA256 digests in the self-describing
form ``pbkdf2_sha256$<iterations>$<salt hex>$<hash hex>``.

Tokens are HS256 JWTs. The ``typ`` claim separates API access tokens from
the single-purpose links sent by email (email verification and password
recovery), so a link token can never be replayed as a bearer token.
"""

from __future__ import annotations

import hashlib
import hmac
import secrets
import string
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, Optional

import jwt

from requisition_workflow.server.core.config import settings

PBKDF2_ALGORITHM = "pbkdf2_sha256"
PBKDF2_ITERATIONS = 100000
SALT_BYTES = 32
JWT_ALGORITHM = "HS256"


class TokenType(str, Enum):
    access = "access"
    email_verification = "email_verification"
    recovery = "recovery"


class InvalidToken(Exception):
    """Raised when a token is malformed, expired, or of the wrong type."""


def hash_password(password: str, salt: Optional[bytes] = None, iterations: int = PBKDF2_ITERATIONS) -> str:
    """Hash a password with a fresh random salt."""
    if salt is None:
        salt = secrets.token_bytes(SALT_BYTES)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)
    return f"{PBKDF2_ALGORITHM}${iterations}${salt.hex()}${digest.hex()}"


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    """Check a password against a stored hash. Unset or malformed hashes never match."""
    if not password_hash:
        return False
    try:
        algorithm, iterations, salt_hex, hash_hex = password_hash.split("$")
        if algorithm != PBKDF2_ALGORITHM:
            return False
        digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), bytes.fromhex(salt_hex), int(iterations))
    except ValueError:
        return False
    return hmac.compare_digest(digest.hex(), hash_hex)


def generate_temporary_password(length: int = 16) -> str:
    alphabet = string.ascii_letters + string.digits + "!@#$%^&*"
    return "".join(secrets.choice(alphabet) for _ in range(length))


def create_token(
    subject: str,
    token_type: TokenType,
    expires_delta: Optional[timedelta] = None,
    extra_claims: Optional[Dict[str, Any]] = None,
) -> str:
    """
    Create a signed token for a user.

    Args:
        subject: User id placed in the ``sub`` claim
        token_type: What the token may be used for
        expires_delta: Lifetime override; defaults come from the auth settings
        extra_claims: Additional claims to embed (e.g. the email it was issued to)

    Returns:
        Encoded JWT string
    """
    if expires_delta is None:
        if token_type == TokenType.access:
            expires_delta = timedelta(minutes=settings.auth.access_token_ttl_minutes)
        else:
            expires_delta = timedelta(hours=settings.auth.link_token_ttl_hours)
    now = datetime.now(timezone.utc)
    payload: Dict[str, Any] = {
        "sub": subject,
        "typ": token_type.value,
        "iat": now,
        "exp": now + expires_delta,
    }
    if extra_claims:
        payload.update(extra_claims)
    return jwt.encode(payload, settings.auth.jwt_secret, algorithm=JWT_ALGORITHM)


def decode_token(token: str, expected_type: TokenType) -> Dict[str, Any]:
    """
    Decode and validate a token.

    Raises:
        InvalidToken: if the signature, expiry or ``typ`` claim does not check out
    """
    try:
        payload = jwt.decode(token, settings.auth.jwt_secret, algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError as e:
        raise InvalidToken("Token has expired") from e
    except jwt.InvalidTokenError as e:
        raise InvalidToken("Invalid token") from e

    if payload.get("typ") != expected_type.value or not payload.get("sub"):
        raise InvalidToken("Invalid token")
    return payload
