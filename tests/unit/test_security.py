"""
Unit tests for password, verification code and token helpers.
"""

from datetime import timedelta
from jose import jwt

from propfind.core.security import (
    ALGORITHM,
    SECRET_KEY,
    create_access_token,
    generate_otp,
    get_password_hash,
    hash_otp,
    verify_otp,
    verify_password,
)


class TestPasswords:

    def test_hash_and_verify(self):
        hashed = get_password_hash("Password123!")

        assert hashed != "Password123!"
        assert verify_password("Password123!", hashed)
        assert not verify_password("WrongPassword", hashed)

    def test_verify_handles_empty_and_garbage(self):
        assert not verify_password("", get_password_hash("x"))
        assert not verify_password("Password123!", "not-a-bcrypt-hash")


class TestOtp:

    def test_generate_range(self):
        for _ in range(100):
            code = generate_otp()
            assert len(code) == 6
            assert 100000 <= int(code) <= 999999

    def test_hash_and_verify(self):
        code_hash = hash_otp("123456")

        assert verify_otp("123456", code_hash)
        assert not verify_otp("654321", code_hash)
        assert not verify_otp("", code_hash)


class TestAccessToken:

    def test_token_carries_subject_and_version(self):
        token = create_access_token(data={"sub": "42"}, token_version=3)

        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])

        assert payload["sub"] == "42"
        assert payload["tv"] == 3
        assert payload["exp"] > payload["iat"]

    def test_custom_expiry(self):
        token = create_access_token(data={"sub": "1"}, token_version=1, expires_delta=timedelta(minutes=5))

        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])

        assert payload["exp"] - payload["iat"] == 300
