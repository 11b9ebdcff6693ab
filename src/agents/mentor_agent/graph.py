"""
Mentor graph: classify -> (recommend -> resolve ->) compose.

The graph stops at the composed gateway request; streaming the answer into
the conversation is the controller's job.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, TypedDict

from langgraph.graph import END, StateGraph

from agents.core.cancellation import CancellationToken
from agents.mentor_agent import steps
from agents.mentor_agent.composer import compose
from agents.mentor_agent.store import ContentRepository
from agents.mentor_agent.types import (
    ChatMessage,
    ContentItem,
    ContentRef,
    ContentSummary,
    GatewayRequest,
    UserSession,
)
from infra.gateway.client import GatewayClient


class MentorGraphState(TypedDict, total=False):
    message: str
    history: List[ChatMessage]
    session: UserSession
    cancel: Optional[CancellationToken]
    wants_recommendations: bool
    catalog: List[ContentSummary]
    refs: List[ContentRef]
    resolved: List[ContentItem]
    request: GatewayRequest


def build_mentor_graph(
    *,
    gateway: GatewayClient,
    repository: ContentRepository,
    on_stage: Optional[Callable[[str], None]] = None,
    max_recommendations: int = steps.DEFAULT_MAX_RECOMMENDATIONS,
):
    """Compile the step graph. `on_stage` is told the name of each node as it starts."""

    def _enter(stage: str) -> None:
        if on_stage is not None:
            on_stage(stage)

    async def _classify(state: MentorGraphState) -> Dict[str, Any]:
        _enter("classify")
        wants = await steps.classify(
            gateway, state["session"], state["message"], cancel=state.get("cancel")
        )
        return {"wants_recommendations": wants}

    def _route(state: MentorGraphState) -> str:
        return "recommend" if state.get("wants_recommendations") else "compose"

    async def _recommend(state: MentorGraphState) -> Dict[str, Any]:
        _enter("recommend")
        cancel = state.get("cancel")
        catalog = await steps.fetch_catalog(repository, cancel=cancel)
        refs = await steps.recommend(
            gateway,
            state["session"],
            state["message"],
            catalog,
            cancel=cancel,
            limit=max_recommendations,
        )
        return {"catalog": catalog, "refs": refs}

    async def _resolve(state: MentorGraphState) -> Dict[str, Any]:
        _enter("resolve")
        resolved = await steps.resolve(repository, state.get("refs") or [], cancel=state.get("cancel"))
        return {"resolved": resolved}

    def _compose(state: MentorGraphState) -> Dict[str, Any]:
        _enter("compose")
        resolved = state.get("resolved") or []
        # Nothing resolved: answer in direct mode, with the conversation as context.
        request = compose(
            state["session"],
            state["message"],
            history=None if resolved else state.get("history"),
            resolved=resolved or None,
        )
        return {"request": request}

    g: StateGraph = StateGraph(MentorGraphState)
    g.add_node("classify", _classify)
    g.add_node("recommend", _recommend)
    g.add_node("resolve", _resolve)
    g.add_node("compose", _compose)
    g.set_entry_point("classify")
    g.add_conditional_edges("classify", _route, {"recommend": "recommend", "compose": "compose"})
    g.add_edge("recommend", "resolve")
    g.add_edge("resolve", "compose")
    g.add_edge("compose", END)
    return g.compile()
