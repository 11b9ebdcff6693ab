from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Float, Integer, JSON, String, Text

from api.config import Base


def utcnow() -> datetime:
    """Naive UTC timestamp; iso_format appends the Z."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class MentorMessage(Base):
    """One chat turn (user or assistant) of the AI mentor, keyed by user e-mail."""

    __tablename__ = "ai_mentor"
    id = Column(Integer, primary_key=True, autoincrement=True)
    user_email = Column(String, index=True, nullable=False)
    role = Column(String, nullable=False)  # user|assistant
    content = Column(Text, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)


# ---- Content tables (read by the mentor pipeline) ----
# status: draft|published. deleted_at marks soft-deleted rows.


class Module(Base):
    __tablename__ = "modules"
    id = Column(String, primary_key=True, index=True)  # uuid
    name = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    level = Column(String, nullable=True)
    language = Column(String, nullable=True)
    json_data = Column(JSON, nullable=True)
    image_url = Column(String, nullable=True)
    video_url = Column(String, nullable=True)
    status = Column(String, default="draft", nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    deleted_at = Column(DateTime, nullable=True)


class News(Base):
    __tablename__ = "news"
    id = Column(String, primary_key=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    level = Column(String, nullable=True)
    language = Column(String, nullable=True)
    image_url = Column(String, nullable=True)
    video_url = Column(String, nullable=True)
    is_active = Column(Boolean, default=True, nullable=True)
    status = Column(String, default="draft", nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    deleted_at = Column(DateTime, nullable=True)


class Tool(Base):
    __tablename__ = "tools"
    id = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    # The table column is called "type"; renamed here so it never collides with the content type tag.
    tool_type = Column("type", String, nullable=True)
    url = Column(String, nullable=True)
    cost_indicator = Column(String, nullable=True)
    stars = Column(Float, nullable=True)
    image_url = Column(String, nullable=True)
    status = Column(String, default="draft", nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    deleted_at = Column(DateTime, nullable=True)


class PromptLibraryEntry(Base):
    __tablename__ = "prompt_library"
    id = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    purpose = Column(Text, nullable=True)
    sample_output = Column(Text, nullable=True)
    sector_tags = Column(JSON, nullable=True)
    stars = Column(Float, nullable=True)
    status = Column(String, default="draft", nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    deleted_at = Column(DateTime, nullable=True)


class LearningPlan(Base):
    __tablename__ = "learning_plans"
    id = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    level = Column(String, nullable=True)
    language = Column(String, nullable=True)
    learning_outcomes = Column(JSON, nullable=True)  # list[str]
    steps = Column(JSON, nullable=True)
    duration = Column(String, nullable=True)
    status = Column(String, default="draft", nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    deleted_at = Column(DateTime, nullable=True)
