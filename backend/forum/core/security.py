# backend/forum/core/security.py
import hashlib
import hmac
import secrets

from passlib.context import CryptContext

from forum.core.config import settings

SESSION_COOKIE = "session_token"
CAPTCHA_COOKIE = "captcha_answer"
CAPTCHA_COOKIE_PATH = "/api/auth/register"

# Pure-python hashing, no native deps
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def keyed_digest(value: str) -> str:
    """HMAC-SHA256 of a value, peppered with the server secret."""
    pepper = settings.secret_key.encode()
    return hmac.new(pepper, value.encode(), hashlib.sha256).hexdigest()


def verify_keyed_digest(value: str, stored_digest: str) -> bool:
    return secrets.compare_digest(keyed_digest(value), stored_digest)
