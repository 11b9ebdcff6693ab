"""
Integration test fixtures. Overrides get_db with a temporary SQLite file and
get_llm with a scripted model.
"""
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker


@pytest.fixture
def app_session_factory(tmp_path):
    """Session factory over a fresh SQLite file shared by the app and the test."""
    from api.config import Base
    import api.models.models  # noqa: F401

    engine = create_engine(
        f"sqlite:///{tmp_path / 'mentor.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def override_get_db(app_session_factory):
    def _get_db():
        db = app_session_factory()
        try:
            yield db
        finally:
            db.close()

    return _get_db


@pytest.fixture
def scripted_llm(llm_factory):
    return llm_factory()


@pytest.fixture
def app(override_get_db, scripted_llm):
    from api.api import app as fastapi_app
    from api.bootstrap import get_llm
    from api.config import get_db

    fastapi_app.dependency_overrides[get_db] = override_get_db
    fastapi_app.dependency_overrides[get_llm] = lambda: scripted_llm
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def api_client(app):
    """FastAPI TestClient with the DB and LLM overrides."""
    from fastapi.testclient import TestClient

    with TestClient(app) as client:
        yield client


@pytest.fixture
def auth_headers():
    """Bearer header for a signed-in learner."""
    from api.schemas.auth_schemas import AuthTokenPayload
    from api.utils.jwt import create_access_token

    token = create_access_token(AuthTokenPayload(sub="learner@example.com", preferences={"name": "Ada"}))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def app_db(app_session_factory):
    """A session on the app database with a small published catalog."""
    from api.models.models import Module, PromptLibraryEntry, Tool

    db = app_session_factory()
    db.add_all(
        [
            Module(id="m1", name="Intro to Machine Learning", description="Supervised learning basics", status="published"),
            Tool(id="t1", name="Notebook Studio", description="Hosted notebooks", status="published"),
            PromptLibraryEntry(id="p1", name="Prompt Engineering Basics", description="Write clearer prompts", status="published"),
        ]
    )
    db.commit()
    yield db
    db.close()


@pytest.fixture
def stream_client(app, auth_headers):
    """TestClient signed in as the learner the gateway request bodies name."""
    from fastapi.testclient import TestClient

    with TestClient(app, headers=auth_headers) as client:
        yield client
