import hmac
from typing import Optional

from fastapi import Cookie, Header, HTTPException, status

from agents.mentor_agent.types import UserSession
from api.config import get_settings
from api.utils.jwt import verify_token


def _bearer(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_current_session(
    access_token: Optional[str] = Cookie(None),
    authorization: Optional[str] = Header(None),
) -> UserSession:
    """Signed-in user from the access_token cookie, or a Bearer header when there is no cookie."""
    token = access_token or _bearer(authorization)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    payload = verify_token(token)
    if not payload.sub:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    return UserSession(
        email=payload.sub,
        user_id=payload.user_id,
        preferences=payload.preferences or {},
    )


def get_gateway_caller(
    access_token: Optional[str] = Cookie(None),
    authorization: Optional[str] = Header(None),
) -> Optional[UserSession]:
    """
    Who is calling the gateway. A trusted service presenting GATEWAY_API_KEY as
    its Bearer token gets None; anyone else must be a signed-in user.
    """
    expected = get_settings().gateway_api_key
    presented = _bearer(authorization)
    if expected and presented and hmac.compare_digest(presented.encode(), expected.encode()):
        return None
    return get_current_session(access_token=access_token, authorization=authorization)
