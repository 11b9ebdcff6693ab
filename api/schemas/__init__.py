"""
API schemas package. Import from submodules or from this package.

Example:
    from api.schemas import HistoryResponse
    from api.schemas.mentor_schemas import GatewayRequest
"""

from api.schemas.auth_schemas import AuthTokenPayload
from api.schemas.mentor_schemas import (
    ChatMessageResponse,
    GatewayRequest,
    HealthResponse,
    HistoryResponse,
    ResetResponse,
)

__all__ = [
    # auth
    "AuthTokenPayload",
    # mentor
    "ChatMessageResponse",
    "GatewayRequest",
    "HealthResponse",
    "HistoryResponse",
    "ResetResponse",
]
