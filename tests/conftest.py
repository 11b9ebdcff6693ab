"""
Pytest configuration and shared fixtures for the test suite.
Ensures proper Python path and environment, and provides in-memory stores,
a scripted gateway and a scripted LLM for unit and integration tests.
"""
import asyncio
import json
import os
import sys
import tempfile
from pathlib import Path

# Settings are read once; point them at throwaway resources before anything imports api.config.
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["LOG_DIR"] = tempfile.mkdtemp(prefix="mentor-test-logs-")
os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ.pop("GATEWAY_API_KEY", None)
os.environ.pop("PIPELINE_TIMEOUT_SECONDS", None)

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Add project root and src to Python path for imports
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))
src_path = project_root / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from agents.core.cancellation import guarded  # noqa: E402
from agents.core.llm import LLM  # noqa: E402
from agents.mentor_agent.store import ChatHistoryStore, ContentRepository  # noqa: E402
from agents.mentor_agent.types import (  # noqa: E402
    ChatMessage,
    ContentSummary,
    StepType,
    UserSession,
    content_item_from_record,
)


# ----- In-memory DB (for tests that need DB without touching real DB) -----
@pytest.fixture
def in_memory_engine():
    """In-memory SQLite engine; one shared connection so every session sees the same data."""
    return create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


@pytest.fixture
def db_session(in_memory_engine):
    """In-memory database session with the mentor schema created."""
    from api.config import Base
    import api.models.models  # noqa: F401

    Base.metadata.create_all(in_memory_engine)
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=in_memory_engine)
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def seeded_content(db_session):
    """One published item per type, plus rows that must stay out of the catalog."""
    from datetime import datetime
    from api.models.models import LearningPlan, Module, News, PromptLibraryEntry, Tool

    db_session.add_all(
        [
            Module(id="m1", name="Intro to Machine Learning", description="Supervised learning basics", level="beginner", status="published"),
            Module(id="m2", name="Draft module", description="Not ready", status="draft"),
            News(id="n1", title="New open model released", description="What changed this week", status="published", is_active=True),
            News(id="n2", title="Old announcement", description="Expired", status="published", is_active=False),
            Tool(id="t1", name="Notebook Studio", description="Hosted notebooks", tool_type="ide", url="https://example.com/notebooks", status="published"),
            Tool(id="t2", name="Retired tool", description="Gone", status="published", deleted_at=datetime(2024, 1, 1)),
            PromptLibraryEntry(id="p1", name="Prompt Engineering Basics", description="", purpose="Write clearer prompts", status="published"),
            LearningPlan(id="lp1", name="Become a data analyst", description="Twelve week plan", learning_outcomes=["SQL", "Dashboards"], status="published"),
        ]
    )
    db_session.commit()
    return db_session


@pytest.fixture
def session():
    return UserSession(email="learner@example.com", preferences={"name": "Ada"})


# ----- In-memory stores -----
class InMemoryContentRepository(ContentRepository):
    """Records keyed by (type, id). Types listed in `failing` raise on every call."""

    def __init__(self, records=None, failing=()):
        self.records = records or {}
        self.failing = set(failing)
        self.list_calls = []
        self.get_calls = []

    async def list_published(self, content_type):
        self.list_calls.append(content_type)
        await asyncio.sleep(0)
        if content_type in self.failing:
            raise RuntimeError(f"{content_type.value} table unavailable")
        return [
            ContentSummary.from_item(content_item_from_record(t, record))
            for (t, _), record in self.records.items()
            if t == content_type
        ]

    async def get(self, content_type, content_id):
        self.get_calls.append((content_type, content_id))
        await asyncio.sleep(0)
        if content_type in self.failing:
            raise RuntimeError(f"{content_type.value} table unavailable")
        record = self.records.get((content_type, content_id))
        if record is None:
            return None
        return content_item_from_record(content_type, record)


class InMemoryHistoryStore(ChatHistoryStore):
    def __init__(self, fail_load=False, fail_clear=False):
        self.rows = {}
        self.fail_load = fail_load
        self.fail_clear = fail_clear
        self.clear_calls = 0

    async def load(self, user_email):
        if self.fail_load:
            raise RuntimeError("history unavailable")
        return list(self.rows.get(user_email, []))

    async def append(self, user_email, role, content):
        msg = ChatMessage.new(role, content)
        self.rows.setdefault(user_email, []).append(msg)
        return msg

    async def clear(self, user_email):
        self.clear_calls += 1
        if self.fail_clear:
            raise RuntimeError("delete failed")
        return len(self.rows.pop(user_email, []))


@pytest.fixture
def content_repository():
    from agents.mentor_agent.types import ContentType

    return InMemoryContentRepository(
        {
            (ContentType.MODULES, "m1"): {"id": "m1", "name": "Intro to Machine Learning", "description": "Supervised learning basics"},
            (ContentType.NEWS, "n1"): {"id": "n1", "title": "New open model released", "description": "What changed"},
            (ContentType.TOOLS, "t1"): {"id": "t1", "name": "Notebook Studio", "description": "Hosted notebooks"},
            (ContentType.PROMPTS, "p1"): {"id": "p1", "name": "Prompt Engineering Basics", "description": "Write clearer prompts"},
            (ContentType.LEARNING_PLANS, "lp1"): {"id": "lp1", "name": "Become a data analyst", "description": "Twelve weeks"},
        }
    )


@pytest.fixture
def history_store():
    return InMemoryHistoryStore()


# ----- Scripted gateway (stands in for infra.gateway.client.GatewayClient) -----
class ScriptedGateway:
    """
    Replies per step type. A reply may be a string, a callable taking the
    request, or an exception instance to raise. Replies stream in small chunks.
    """

    def __init__(self, replies=None, chunk_size=4, delay=0.0):
        self.replies = replies or {}
        self.chunk_size = chunk_size
        self.delay = delay
        self.requests = []

    def steps(self):
        return [r.step_type for r in self.requests]

    async def stream(self, request, *, cancel=None):
        self.requests.append(request)
        reply = self.replies.get(request.step_type, "")
        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            reply = reply(request)
        for i in range(0, len(reply), self.chunk_size):
            await guarded(cancel, asyncio.sleep(self.delay))
            yield reply[i:i + self.chunk_size]

    async def collect(self, request, *, cancel=None):
        return "".join([f async for f in self.stream(request, cancel=cancel)])


@pytest.fixture
def gateway_factory():
    return ScriptedGateway


def answer_naming_selected(request):
    names = [item.get("name") or item.get("title") for item in request.selected_content or []]
    return "You could start with " + ", ".join(names) + ". Enjoy exploring!"


@pytest.fixture
def recommending_replies():
    """Replies for a turn that wants recommendations and picks the prompt-library item."""
    return {
        StepType.RECOMMENDATION_CHECK: "true",
        StepType.CONTENT_ANALYSIS: json.dumps([{"type": "prompts", "id": "p1"}]),
        StepType.FINAL_RESPONSE: answer_naming_selected,
        StepType.GENERAL_CHAT: "General answer.",
    }


# ----- Scripted LLM (stands in for infra.llm.ollama.OllamaLLM behind the gateway) -----
class ScriptedLLM(LLM):
    """Answers by recognising which gateway prompt it was given."""

    model = "scripted"

    def __init__(self, *, wants=False, picks=None, answer="2 + 2 = 4.", fail_before=False, fail_mid=False):
        self.wants = wants
        self.picks = picks or []
        self.answer = answer
        self.fail_before = fail_before
        self.fail_mid = fail_mid
        self.prompts = []

    def _reply(self, prompt):
        if 'Return ONLY "true" or "false"' in prompt:
            return "true" if self.wants else "false"
        if "learning recommendation engine" in prompt:
            return json.dumps(self.picks)
        return self.answer

    async def stream(self, prompt):
        self.prompts.append(prompt)
        if self.fail_before:
            raise ConnectionError("model offline")
        text = self._reply(prompt)
        for i in range(0, len(text), 5):
            yield text[i:i + 5]
            if self.fail_mid:
                raise ConnectionError("model connection dropped")


@pytest.fixture
def llm_factory():
    return ScriptedLLM


@pytest.fixture
def history_store_factory():
    return InMemoryHistoryStore
