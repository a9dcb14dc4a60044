"""Password hashing and signed bearer tokens for the persistence service."""

import time
from typing import Optional

import bcrypt
import jwt


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False


def sign_token(account_id: str, secret: str, algorithm: str = "HS256", exp_seconds: int = 3600) -> str:
    """Bearer token carrying the account id, valid for exp_seconds."""
    now = int(time.time())
    payload = {"sub": account_id, "iat": now, "exp": now + exp_seconds}
    return jwt.encode(payload, secret, algorithm=algorithm)


def decode_token(token: str, secret: str, algorithm: str = "HS256") -> Optional[str]:
    """Account id from a token, or None when it is expired, malformed or forged."""
    try:
        payload = jwt.decode(token, secret, algorithms=[algorithm])
    except jwt.PyJWTError:
        return None
    return payload.get("sub")
