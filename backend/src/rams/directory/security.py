"""Password hashing."""

from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Check a password against a stored hash. Unknown hash formats never match."""
    try:
        return pwd_context.verify(password, password_hash)
    except ValueError:
        return False
