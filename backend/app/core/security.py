"""
Password hashing and verification.

bcrypt through passlib; the salted hash embeds its own work factor, so
changing ``password_hash_rounds`` only affects newly hashed passwords.
"""

from functools import lru_cache

from passlib.context import CryptContext
from starlette.concurrency import run_in_threadpool

from backend.app.core.config import settings

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.password_hash_rounds,
)


def get_password_hash(password: str) -> str:
    """Hash a plaintext password with a fresh salt."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a plaintext password against a stored hash.

    Uses passlib's own constant-time compare. Malformed hashes count as a
    mismatch.
    """
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        return False


async def hash_password_async(password: str) -> str:
    """Hash in the thread pool so bcrypt does not stall the event loop."""
    return await run_in_threadpool(get_password_hash, password)


async def verify_password_async(plain_password: str, hashed_password: str) -> bool:
    """Thread-pool variant of :func:`verify_password`."""
    return await run_in_threadpool(verify_password, plain_password, hashed_password)


@lru_cache(maxsize=1)
def dummy_password_hash() -> str:
    """
    Hash checked when a login names an unknown email, so that path costs
    the same bcrypt work as a wrong password.
    """
    return get_password_hash("not-a-real-password")
