"""
Password hashing for user credentials.

bcrypt embeds a random per-hash salt and the cost factor in every digest, so
no salt is stored separately. Hashing is CPU-bound; the async helpers run it
in the thread pool so request handling is not blocked.
"""

import bcrypt
import structlog
from fastapi.concurrency import run_in_threadpool

from catalog_api.errors import PasswordHashingError

logger = structlog.get_logger(__name__)

DEFAULT_ROUNDS = 10


class BcryptPasswordHasher:
    """One-way password hashing with bcrypt."""

    def __init__(self, rounds: int = DEFAULT_ROUNDS):
        self.rounds = rounds
        # Digest used to equalise login timing for unknown usernames
        self._dummy_hash = self.hash("catalog-timing-dummy")

    def hash(self, plaintext: str) -> str:
        """
        Hash a plaintext password.

        Args:
            plaintext: Password to hash

        Returns:
            bcrypt digest including salt and cost factor

        Raises:
            PasswordHashingError: If bcrypt rejects the input
        """
        try:
            digest = bcrypt.hashpw(plaintext.encode("utf-8"), bcrypt.gensalt(rounds=self.rounds))
        except (ValueError, TypeError) as e:
            logger.error("Password hashing failed", error=str(e))
            raise PasswordHashingError() from e
        return digest.decode("utf-8")

    def verify(self, plaintext: str, digest: str) -> bool:
        """Return True if the plaintext matches the digest; malformed digests never match."""
        try:
            return bcrypt.checkpw(plaintext.encode("utf-8"), digest.encode("utf-8"))
        except (ValueError, TypeError, AttributeError):
            return False

    def burn(self, plaintext: str) -> None:
        """Spend one verification worth of work against a dummy digest."""
        self.verify(plaintext, self._dummy_hash)

    async def hash_async(self, plaintext: str) -> str:
        return await run_in_threadpool(self.hash, plaintext)

    async def verify_async(self, plaintext: str, digest: str) -> bool:
        return await run_in_threadpool(self.verify, plaintext, digest)

    async def burn_async(self, plaintext: str) -> None:
        await run_in_threadpool(self.burn, plaintext)
