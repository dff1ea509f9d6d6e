"""Unit tests for auth/passwords.py -- bcrypt hashing and verification."""

import pytest

from auth.passwords import burn_verification, hash_password, verify_password


class TestHashPassword:
    def test_hash_is_not_plaintext(self):
        digest = hash_password("s3cret-pass", rounds=4)
        assert digest
        assert digest != "s3cret-pass"

    def test_hash_is_salted(self):
        """Two hashes of one password differ because each gets its own salt."""
        assert hash_password("same", rounds=4) != hash_password("same", rounds=4)

    def test_cost_factor_is_encoded_in_digest(self):
        assert hash_password("pw", rounds=5).startswith("$2b$05$")

    def test_default_cost_is_ten_rounds(self):
        assert hash_password("pw").startswith("$2b$10$")


class TestVerifyPassword:
    @pytest.mark.parametrize("password", ["correct horse", "p", "ünïcødé-pässwörd", " padded "])
    def test_matching_password_verifies(self, password):
        assert verify_password(password, hash_password(password, rounds=4)) is True

    def test_different_password_fails(self):
        assert verify_password("wrong", hash_password("right", rounds=4)) is False

    def test_whitespace_is_significant(self):
        assert verify_password("secret ", hash_password("secret", rounds=4)) is False

    @pytest.mark.parametrize("digest", ["", "not-a-bcrypt-hash", "$2b$04$short"])
    def test_malformed_digest_returns_false(self, digest):
        assert verify_password("anything", digest) is False

    def test_burn_verification_returns_nothing(self):
        assert burn_verification("whatever") is None
