"""
Tests for bcrypt password hashing.
"""

import pytest
from unittest.mock import patch

from catalog_api.errors import PasswordHashingError
from catalog_api.passwords import BcryptPasswordHasher


class TestBcryptPasswordHasher:
    """Test cases for BcryptPasswordHasher."""

    def test_hash_verifies_same_password(self, hasher):
        digest = hasher.hash("secret1")
        assert hasher.verify("secret1", digest) is True

    def test_hash_rejects_other_password(self, hasher):
        digest = hasher.hash("secret1")
        assert hasher.verify("secret2", digest) is False

    def test_hash_is_salted(self, hasher):
        """Two hashes of the same password differ but both verify."""
        first = hasher.hash("same-password")
        second = hasher.hash("same-password")
        assert first != second
        assert hasher.verify("same-password", first)
        assert hasher.verify("same-password", second)

    def test_digest_does_not_contain_plaintext(self, hasher):
        assert "secret1" not in hasher.hash("secret1")

    def test_digest_embeds_cost_factor(self):
        hasher = BcryptPasswordHasher(rounds=5)
        assert hasher.hash("secret1").startswith("$2b$05$")

    @pytest.mark.parametrize("digest", ["", "not-a-bcrypt-hash", "$2b$04$short", None])
    def test_verify_malformed_digest_returns_false(self, hasher, digest):
        assert hasher.verify("secret1", digest) is False

    def test_hash_failure_raises_internal_error(self, hasher):
        with patch("catalog_api.passwords.bcrypt.hashpw", side_effect=ValueError("boom")):
            with pytest.raises(PasswordHashingError) as exc_info:
                hasher.hash("secret1")
        assert exc_info.value.status_code == 500

    def test_burn_does_not_raise(self, hasher):
        assert hasher.burn("anything") is None

    @pytest.mark.asyncio
    async def test_async_round_trip(self, hasher):
        digest = await hasher.hash_async("secret1")
        assert await hasher.verify_async("secret1", digest) is True
        assert await hasher.verify_async("wrong-password", digest) is False
