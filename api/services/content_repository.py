"""
SQLAlchemy content repository: catalog listing and point lookups over the
modules, news, tools, prompt_library and learning_plans tables.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from pydantic import ValidationError
from sqlalchemy import inspect
from sqlalchemy.orm import Session as DBSession

from agents.mentor_agent.store import ContentRepository
from agents.mentor_agent.types import (
    ContentItem,
    ContentSummary,
    ContentType,
    content_item_from_record,
)
from api.models.models import LearningPlan, Module, News, PromptLibraryEntry, Tool

logger = logging.getLogger(__name__)

CONTENT_TABLES = {
    ContentType.MODULES: Module,
    ContentType.NEWS: News,
    ContentType.TOOLS: Tool,
    ContentType.PROMPTS: PromptLibraryEntry,
    ContentType.LEARNING_PLANS: LearningPlan,
}

PUBLISHED = "published"


def row_to_record(row) -> dict:
    """Column attributes of a mapped row as a plain dict."""
    return {attr.key: getattr(row, attr.key) for attr in inspect(row).mapper.column_attrs}


class SqlContentRepository(ContentRepository):
    def __init__(self, db: DBSession):
        self.db = db

    def _to_item(self, content_type: ContentType, row) -> Optional[ContentItem]:
        try:
            return content_item_from_record(content_type, row_to_record(row))
        except ValidationError as e:
            logger.warning("skipping malformed %s row id=%s: %s", content_type.value, row.id, e)
            return None

    async def list_published(self, content_type: ContentType) -> List[ContentSummary]:
        model = CONTENT_TABLES[content_type]
        query = self.db.query(model).filter(model.status == PUBLISHED, model.deleted_at.is_(None))
        if content_type is ContentType.NEWS:
            query = query.filter(model.is_active.is_(True))
        summaries: List[ContentSummary] = []
        for row in query.all():
            item = self._to_item(content_type, row)
            if item is not None:
                summaries.append(ContentSummary.from_item(item))
        return summaries

    async def get(self, content_type: ContentType, content_id: str) -> Optional[ContentItem]:
        model = CONTENT_TABLES[content_type]
        row = (
            self.db.query(model)
            .filter(model.id == content_id, model.deleted_at.is_(None))
            .first()
        )
        if row is None:
            return None
        return self._to_item(content_type, row)
