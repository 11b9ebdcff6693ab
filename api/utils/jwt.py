from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import HTTPException, status
from jose import JWTError
from jose.jwt import decode, encode

from api.config import get_settings
from api.schemas.auth_schemas import AuthTokenPayload
from api.utils.logger import configure_logging

logger = configure_logging()

ACCESS_TOKEN_EXPIRE_MINUTES = 30


def create_access_token(data: AuthTokenPayload) -> str:
    """Create a signed JWT access token."""
    settings = get_settings()
    claims = data.model_dump(exclude_none=True)
    if "exp" not in claims:
        claims["exp"] = datetime.now(timezone.utc) + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    return encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def verify_token(token: Optional[str]) -> AuthTokenPayload:
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing token")
    settings = get_settings()
    try:
        payload = decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
        return AuthTokenPayload(**payload)
    except JWTError as e:
        logger.warning("rejected access token: %s", e)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
