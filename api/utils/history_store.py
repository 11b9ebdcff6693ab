"""
Chat history persistence for the AI mentor (table ai_mentor).

One row per turn, keyed by user e-mail and read back in creation order. Reset
is a hard delete of every row for the user.
"""

from __future__ import annotations

from typing import List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session as DBSession

from agents.mentor_agent.store import ChatHistoryStore
from agents.mentor_agent.types import ChatMessage, Role
from api.models.models import MentorMessage
from api.utils.common import iso_format


def to_chat_message(row: MentorMessage) -> ChatMessage:
    return ChatMessage(
        id=str(row.id),
        role=row.role,
        content=row.content,
        timestamp=iso_format(row.created_at),
    )


class SqlChatHistoryStore(ChatHistoryStore):
    def __init__(self, db: DBSession):
        self.db = db

    async def load(self, user_email: str) -> List[ChatMessage]:
        rows = (
            self.db.query(MentorMessage)
            .filter(MentorMessage.user_email == user_email)
            .order_by(MentorMessage.created_at.asc(), MentorMessage.id.asc())
            .all()
        )
        return [to_chat_message(r) for r in rows]

    async def append(self, user_email: str, role: Role, content: str) -> ChatMessage:
        row = MentorMessage(user_email=user_email, role=role, content=content)
        try:
            self.db.add(row)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        self.db.refresh(row)
        return to_chat_message(row)

    async def clear(self, user_email: str) -> int:
        try:
            deleted = (
                self.db.query(MentorMessage)
                .filter(MentorMessage.user_email == user_email)
                .delete(synchronize_session=False)
            )
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        return int(deleted)
