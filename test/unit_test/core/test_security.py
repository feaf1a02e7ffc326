"""Unit tests for password hashing and signed tokens."""

from datetime import timedelta

import jwt
import pytest

from requisition_workflow.core.security import (
    JWT_ALGORITHM,
    InvalidToken,
    TokenType,
    create_token,
    decode_token,
    generate_temporary_password,
    hash_password,
    verify_password,
)
from requisition_workflow.server.core.config import settings


class TestPasswordHashing:
    def test_hash_format(self):
        hashed = hash_password("s3cret!", iterations=1000)

        algorithm, iterations, salt_hex, hash_hex = hashed.split("$")
        assert algorithm == "pbkdf2_sha256"
        assert iterations == "1000"
        assert len(bytes.fromhex(salt_hex)) == 32
        assert len(hash_hex) == 64

    def test_verify_round_trip(self):
        hashed = hash_password("s3cret!", iterations=1000)

        assert verify_password("s3cret!", hashed)
        assert not verify_password("S3cret!", hashed)

    def test_salts_differ(self):
        assert hash_password("same", iterations=1000) != hash_password("same", iterations=1000)

    @pytest.mark.parametrize(
        "stored",
        [None, "", "not-a-hash", "md5$1000$abcd$ef01", "pbkdf2_sha256$many$zz$00"],
    )
    def test_unusable_hashes_never_match(self, stored):
        assert verify_password("anything", stored) is False


def test_generate_temporary_password():
    first = generate_temporary_password()

    assert len(first) == 16
    assert len(generate_temporary_password(24)) == 24
    assert first != generate_temporary_password()


class TestTokens:
    def test_access_token_round_trip(self):
        token = create_token("user-1", TokenType.access, extra_claims={"email": "a@grace.org"})

        payload = decode_token(token, TokenType.access)

        assert payload["sub"] == "user-1"
        assert payload["typ"] == "access"
        assert payload["email"] == "a@grace.org"

    def test_default_access_lifetime(self):
        payload = decode_token(create_token("user-1", TokenType.access), TokenType.access)

        assert payload["exp"] - payload["iat"] == settings.auth.access_token_ttl_minutes * 60

    def test_default_link_lifetime(self):
        payload = decode_token(create_token("user-1", TokenType.recovery), TokenType.recovery)

        assert payload["exp"] - payload["iat"] == settings.auth.link_token_ttl_hours * 3600

    def test_link_token_is_not_an_access_token(self):
        token = create_token("user-1", TokenType.email_verification)

        with pytest.raises(InvalidToken):
            decode_token(token, TokenType.access)

    def test_expired_token(self):
        token = create_token("user-1", TokenType.access, expires_delta=timedelta(seconds=-5))

        with pytest.raises(InvalidToken, match="expired"):
            decode_token(token, TokenType.access)

    def test_foreign_signature(self):
        token = jwt.encode({"sub": "user-1", "typ": "access"}, "another-secret-of-sufficient-length!", JWT_ALGORITHM)

        with pytest.raises(InvalidToken):
            decode_token(token, TokenType.access)

    def test_missing_subject(self):
        token = jwt.encode({"typ": "access"}, settings.auth.jwt_secret, JWT_ALGORITHM)

        with pytest.raises(InvalidToken):
            decode_token(token, TokenType.access)

    def test_garbage(self):
        with pytest.raises(InvalidToken):
            decode_token("not.a.jwt", TokenType.access)
