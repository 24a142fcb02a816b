# delivery/utils/security.py

"""
Driver credential hashing.
passlib with sha256_crypt; the round count comes from settings so the
test suite can keep registration fast.
"""

from passlib.context import CryptContext

from delivery.config import settings

pwd_context = CryptContext(
    schemes=["sha256_crypt"],
    deprecated="auto",
    sha256_crypt__default_rounds=settings.PASSWORD_HASH_ROUNDS,
)


def hash_password(password: str) -> str:
    """Salted hash stored in drivers.password; never returned by the API."""
    return pwd_context.hash(password)
