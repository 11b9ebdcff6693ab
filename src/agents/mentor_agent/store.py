from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional

from agents.mentor_agent.types import ChatMessage, ContentItem, ContentSummary, ContentType, Role


class ContentRepository(ABC):
    """
    Read side of the content tables the pipeline consumes.

    Infrastructure (SQLAlchemy in api.services.content_repository) implements it.
    Every method is a suspension point so callers can run lookups concurrently
    and guard them with a cancellation token.
    """

    @abstractmethod
    async def list_published(self, content_type: ContentType) -> List[ContentSummary]:
        """All published, non-deleted items of one type, as catalog summaries."""

        raise NotImplementedError

    @abstractmethod
    async def get(self, content_type: ContentType, content_id: str) -> Optional[ContentItem]:
        """Full record for one item, or None when it does not exist."""

        raise NotImplementedError


class ChatHistoryStore(ABC):
    """Durable mirror of a user's conversation, one row per turn, creation-time order."""

    @abstractmethod
    async def load(self, user_email: str) -> List[ChatMessage]:
        raise NotImplementedError

    @abstractmethod
    async def append(self, user_email: str, role: Role, content: str) -> ChatMessage:
        raise NotImplementedError

    @abstractmethod
    async def clear(self, user_email: str) -> int:
        """Delete every row for the user. Returns the number of rows removed."""

        raise NotImplementedError
