"""Markdown export of a conversation (the chat download)."""

from __future__ import annotations

from typing import Iterable

from agents.mentor_agent.types import ChatMessage


def render_markdown(messages: Iterable[ChatMessage]) -> str:
    blocks = []
    for msg in messages:
        block = f"**{msg.role.upper()}** ({msg.timestamp})\n{msg.content}\n\n"
        if msg.recommended_content:
            cards = "\n".join(
                f"- [{item.label}] {item.display_name}" for item in msg.recommended_content
            )
            block += f"{cards}\n\n"
        blocks.append(block)
    return "".join(blocks)
