"""
Unit test fixtures. Use mocks and in-memory stores; no real LLM or gateway.
"""
import pytest

from agents.mentor_agent.controller import MentorChatController


@pytest.fixture
def make_controller(session, content_repository, history_store):
    """Build a controller over the in-memory stores and the given gateway."""

    def _make(gateway, **kwargs):
        kwargs.setdefault("content_repository", content_repository)
        kwargs.setdefault("history_store", history_store)
        return MentorChatController(session=session, gateway=gateway, **kwargs)

    return _make
