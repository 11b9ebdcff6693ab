from typing import List, Optional

from pydantic import BaseModel

from agents.mentor_agent.types import ChatMessage, GatewayRequest


class ChatMessageResponse(BaseModel):
    id: str
    role: str
    content: str
    timestamp: str

    @classmethod
    def from_message(cls, message: ChatMessage) -> "ChatMessageResponse":
        return cls(id=message.id, role=message.role, content=message.content, timestamp=message.timestamp)


class HistoryResponse(BaseModel):
    user_email: str
    messages: List[ChatMessageResponse]


class ResetResponse(BaseModel):
    message: str
    deleted: int


class HealthResponse(BaseModel):
    message: str
    model: Optional[str] = None


__all__ = [
    "ChatMessageResponse",
    "GatewayRequest",
    "HealthResponse",
    "HistoryResponse",
    "ResetResponse",
]
