"""
Interactive AI mentor chat in the terminal, against a running gateway.

    python -m agents.mentor_agent.main --email you@example.com

Commands: /reset clears the stored conversation, /export prints it as
Markdown, /quit exits.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from datetime import datetime, timedelta, timezone
from typing import List

from agents.mentor_agent.controller import MentorChatController
from agents.mentor_agent.types import ChatMessage, UserSession
from api.config import SessionLocal, create_db, get_settings
from api.schemas.auth_schemas import AuthTokenPayload
from api.services.content_repository import SqlContentRepository
from api.utils.common import display_name
from api.utils.history_store import SqlChatHistoryStore
from api.utils.jwt import create_access_token
from api.utils.logger import configure_logging
from infra.gateway.client import GatewayClient

SESSION_TOKEN_HOURS = 12


class TerminalRenderer:
    """Prints only the new tail of the streaming assistant message on each update."""

    def __init__(self) -> None:
        self._current_id: str | None = None
        self._printed = 0
        self.live = False

    def __call__(self, messages: List[ChatMessage]) -> None:
        if not self.live or not messages:
            return
        last = messages[-1]
        if last.role != "assistant":
            return
        if last.id != self._current_id:
            self._current_id = last.id
            self._printed = 0
            sys.stdout.write("mentor> ")
        sys.stdout.write(last.content[self._printed:])
        sys.stdout.flush()
        self._printed = len(last.content)


def _session_token(email: str) -> str:
    """Access token the gateway accepts for this user when no service key is configured."""
    expires = datetime.now(timezone.utc) + timedelta(hours=SESSION_TOKEN_HOURS)
    return create_access_token(AuthTokenPayload(sub=email, exp=expires))


async def handle_command(controller: MentorChatController, command: str) -> bool:
    """Run /reset or /export. False for anything else, which is sent as a message."""
    if command == "/reset":
        if await controller.reset():
            print("Chat history cleared")
        else:
            print("Could not clear chat history, the conversation was kept")
        return True
    if command == "/export":
        print(controller.export_markdown())
        return True
    return False


async def run(email: str) -> None:
    settings = get_settings()
    configure_logging()
    create_db()
    session = UserSession(email=email)
    renderer = TerminalRenderer()
    db = SessionLocal()
    try:
        controller = MentorChatController(
            session=session,
            gateway=GatewayClient.from_settings(settings, access_token=_session_token(email)),
            content_repository=SqlContentRepository(db),
            history_store=SqlChatHistoryStore(db),
            on_update=renderer,
            max_recommendations=settings.max_recommendations,
            timeout_seconds=settings.pipeline_timeout_seconds,
        )
        history = await controller.load_history()
        print(f"Welcome, {display_name(session)}! {len(history)} earlier messages loaded.")
        renderer.live = True

        while True:
            try:
                line = await asyncio.to_thread(input, "you> ")
            except EOFError:
                break
            command = line.strip()
            if command in ("/quit", "/exit"):
                break
            if await handle_command(controller, command):
                continue
            reply = await controller.send_message(line)
            print()
            if reply is not None and reply.recommended_content:
                for item in reply.recommended_content:
                    print(f"  [{item.label}] {item.display_name} - {item.display_description}")
    finally:
        db.close()


def main() -> None:
    parser = argparse.ArgumentParser(description="Chat with the AI mentor")
    parser.add_argument("--email", required=True, help="user e-mail the conversation is stored under")
    args = parser.parse_args()
    asyncio.run(run(args.email))


if __name__ == "__main__":
    main()
