import time
from typing import Optional

import jwt
from passlib.context import CryptContext

from .config import get_settings

# Use pbkdf2_sha256 as default to avoid bcrypt 72-byte limitation in some envs
pwd_context = CryptContext(schemes=["pbkdf2_sha256", "bcrypt"], deprecated="auto")

ALGORITHM = "HS256"
COOKIE_NAME = "auth-token"


def create_access_token(user_id, email: str, name: str, role: str, expires_delta: Optional[int] = None) -> str:
    settings = get_settings()
    now = int(time.time())
    exp = now + (expires_delta or settings.token_ttl_seconds)
    payload = {"sub": str(user_id), "email": email, "name": name, "role": role, "iat": now, "exp": exp}
    return jwt.encode(payload, settings.jwt_secret, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict:
    """Decode and verify a token; raises ``jwt.PyJWTError`` when invalid or expired."""
    return jwt.decode(token, get_settings().jwt_secret, algorithms=[ALGORITHM])


def token_from_request(authorization: Optional[str], cookie_token: Optional[str]) -> Optional[str]:
    # prefer Authorization bearer token, fall back to the auth cookie
    if authorization and authorization.lower().startswith("bearer "):
        return authorization.split(None, 1)[1]
    return cookie_token or None


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)
