"""
Password hashing with Argon2id.

Argon2id is the recommended password hashing algorithm because:
- Memory-hard (resists GPU/ASIC attacks)
- Side-channel resistant (id variant)
- Winner of the Password Hashing Competition

Hashing is deliberately slow. The async helpers run it in the threadpool
so a login never stalls the event loop.
"""

import logging
import secrets

from argon2 import PasswordHasher as Argon2Hasher
from argon2.exceptions import HashingError, InvalidHashError, VerificationError, VerifyMismatchError
from starlette.concurrency import run_in_threadpool

from jobmarket.core.config import Settings
from jobmarket.core.errors import InternalError

logger = logging.getLogger(__name__)


class PasswordHasher:
    """
    One-way password hashing and verification.

    Holds the Argon2 parameters and one throwaway hash; plaintexts and digests are never
    logged or returned beyond the verification boolean.
    """

    def __init__(
        self,
        time_cost: int = 3,         # Number of iterations
        memory_cost: int = 65536,   # 64 MB memory usage
        parallelism: int = 4,       # Number of parallel threads
        hash_len: int = 32,         # Length of the hash in bytes
        salt_len: int = 16,         # Length of the random salt
    ):
        self._ph = Argon2Hasher(
            time_cost=time_cost,
            memory_cost=memory_cost,
            parallelism=parallelism,
            hash_len=hash_len,
            salt_len=salt_len,
        )
        self._dummy_hash = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "PasswordHasher":
        return cls(
            time_cost=settings.argon2_time_cost,
            memory_cost=settings.argon2_memory_cost,
            parallelism=settings.argon2_parallelism,
        )

    def hash(self, password: str) -> str:
        """
        Hash a password using Argon2id.

        Returns:
            The hashed password string (includes algorithm, params, salt, and hash)

        Raises:
            InternalError: If the hashing primitive fails
        """
        try:
            return self._ph.hash(password)
        except HashingError as exc:
            logger.error("Password hashing failed: %s", type(exc).__name__)
            raise InternalError("Password hashing failed") from exc

    def verify(self, password: str, password_hash: str) -> bool:
        """
        Verify a password against its hash.

        Returns:
            True if password matches, False otherwise (including malformed hashes)
        """
        try:
            return self._ph.verify(password_hash, password)
        except VerifyMismatchError:
            return False
        except (InvalidHashError, VerificationError):
            # Hash is malformed - treat as verification failure
            return False

    @property
    def dummy_hash(self) -> str:
        """A hash of a random secret, for verifying against when there is no account."""
        if self._dummy_hash is None:
            self._dummy_hash = self.hash(secrets.token_urlsafe(32))
        return self._dummy_hash

    def needs_rehash(self, password_hash: str) -> bool:
        """
        Check if a password hash needs to be rehashed.

        After a successful login, check this and rehash if the Argon2
        parameters have been raised since the hash was made.
        """
        try:
            return self._ph.check_needs_rehash(password_hash)
        except InvalidHashError:
            return True

    async def hash_async(self, password: str) -> str:
        return await run_in_threadpool(self.hash, password)

    async def verify_async(self, password: str, password_hash: str) -> bool:
        return await run_in_threadpool(self.verify, password, password_hash)
