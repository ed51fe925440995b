from datetime import datetime, timedelta, timezone
from jose import JWTError, jwt
from playsync.config import get_settings

ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_HOURS = 24


def create_access_token(owner_id: str, expires_delta: timedelta | None = None) -> str:
    """Create a JWT identifying the account that owns playback sessions"""
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(hours=ACCESS_TOKEN_EXPIRE_HOURS))

    to_encode = {
        "sub": owner_id,
        "exp": expire,
        "iat": now
    }
    return jwt.encode(to_encode, get_settings().secret_key, algorithm=ALGORITHM)


def verify_token(token: str) -> str | None:
    """
    Verify a JWT and return the owner id it was issued for.
    Returns None if the token is invalid or expired.
    """
    try:
        payload = jwt.decode(token, get_settings().secret_key, algorithms=[ALGORITHM])
    except JWTError:
        return None
    return payload.get("sub")
