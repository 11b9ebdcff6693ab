"""AI mentor: recommendation-aware chat pipeline over the mentor gateway."""

from agents.mentor_agent.controller import ChatState, MentorChatController
from agents.mentor_agent.types import (
    ChatMessage,
    ContentItem,
    ContentRef,
    ContentSummary,
    ContentType,
    GatewayRequest,
    StepType,
    UserSession,
)

__all__ = [
    "ChatMessage",
    "ChatState",
    "ContentItem",
    "ContentRef",
    "ContentSummary",
    "ContentType",
    "GatewayRequest",
    "MentorChatController",
    "StepType",
    "UserSession",
]
