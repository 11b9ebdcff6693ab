"""Builds the gateway request for the answer stream of a turn."""

from __future__ import annotations

from typing import List, Optional, Sequence

from agents.mentor_agent.types import (
    ChatMessage,
    ContentItem,
    GatewayRequest,
    StepType,
    UserSession,
)

HISTORY_HEADER = "Previous conversation:"
CURRENT_MESSAGE_LABEL = "Current message:"

_SPEAKERS = {"user": "Student", "assistant": "AI Tutor"}


def render_history(history: Sequence[ChatMessage]) -> str:
    lines: List[str] = []
    for msg in history:
        if not msg.content:
            continue
        lines.append(f"{_SPEAKERS.get(msg.role, msg.role)}: {msg.content}")
    return "\n".join(lines)


def compose(
    session: UserSession,
    message: str,
    *,
    history: Optional[Sequence[ChatMessage]] = None,
    resolved: Optional[List[ContentItem]] = None,
) -> GatewayRequest:
    """
    Recommendation mode when resolved content is given: the model explains
    each item. Otherwise direct mode, with prior turns rendered as
    Student / AI Tutor lines when the conversation already has some.
    """
    if resolved:
        return GatewayRequest(
            message=message,
            user_email=session.email,
            step_type=StepType.FINAL_RESPONSE,
            selected_content=[item.model_dump(mode="json") for item in resolved],
        )

    rendered = render_history(history or [])
    if rendered:
        body = f"{HISTORY_HEADER}\n{rendered}\n\n{CURRENT_MESSAGE_LABEL} {message}"
    else:
        body = message
    return GatewayRequest(
        message=body,
        user_email=session.email,
        step_type=StepType.GENERAL_CHAT,
    )
