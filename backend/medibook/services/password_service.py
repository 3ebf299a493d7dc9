"""Password hashing backed by passlib (argon2)."""
from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check a plaintext password against a stored hash. Unknown hash formats never match."""
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        return False
