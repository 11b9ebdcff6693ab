"""
Chat controller for the AI mentor: owns the in-memory conversation of one
signed-in user, runs the step graph for each message and streams the answer
into the last assistant message as fragments arrive.

States: loading_history -> idle -> awaiting_classification
        -> (awaiting_recommendation -> awaiting_resolution ->)
        awaiting_composed_stream -> idle
One request at a time; a send while one is in flight is rejected.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, List, Optional

from agents.core.cancellation import CancellationToken, OperationCancelled, token_with_timeout
from agents.mentor_agent.export import render_markdown
from agents.mentor_agent.graph import build_mentor_graph
from agents.mentor_agent.steps import DEFAULT_MAX_RECOMMENDATIONS
from agents.mentor_agent.store import ChatHistoryStore, ContentRepository
from agents.mentor_agent.types import ChatMessage, ContentItem, GatewayRequest, UserSession
from infra.gateway.client import GatewayClient

logger = logging.getLogger(__name__)

ERROR_REPLY = "Sorry, I encountered an error: {reason}. Please try again."


class ChatState(str, Enum):
    LOADING_HISTORY = "loading_history"
    IDLE = "idle"
    AWAITING_CLASSIFICATION = "awaiting_classification"
    AWAITING_RECOMMENDATION = "awaiting_recommendation"
    AWAITING_RESOLUTION = "awaiting_resolution"
    AWAITING_COMPOSED_STREAM = "awaiting_composed_stream"


_STAGE_STATES = {
    "classify": ChatState.AWAITING_CLASSIFICATION,
    "recommend": ChatState.AWAITING_RECOMMENDATION,
    "resolve": ChatState.AWAITING_RESOLUTION,
    "compose": ChatState.AWAITING_COMPOSED_STREAM,
}

UpdateListener = Callable[[List[ChatMessage]], None]


class MentorChatController:
    def __init__(
        self,
        *,
        session: UserSession,
        gateway: GatewayClient,
        content_repository: ContentRepository,
        history_store: ChatHistoryStore,
        on_update: Optional[UpdateListener] = None,
        max_recommendations: int = DEFAULT_MAX_RECOMMENDATIONS,
        timeout_seconds: Optional[float] = None,
    ):
        self.session = session
        self.gateway = gateway
        self.history_store = history_store
        self.on_update = on_update
        self.timeout_seconds = timeout_seconds
        self.state = ChatState.LOADING_HISTORY
        self.loading = False
        self.is_loading_history = True
        self._messages: List[ChatMessage] = []
        self._graph = build_mentor_graph(
            gateway=gateway,
            repository=content_repository,
            on_stage=self._on_stage,
            max_recommendations=max_recommendations,
        )

    @property
    def messages(self) -> List[ChatMessage]:
        return list(self._messages)

    # ---- state helpers ----

    def _notify(self) -> None:
        if self.on_update is not None:
            self.on_update(self.messages)

    def _append(self, message: ChatMessage) -> None:
        self._messages.append(message)
        self._notify()

    def _on_stage(self, stage: str) -> None:
        self.state = _STAGE_STATES.get(stage, self.state)
        logger.debug("mentor stage=%s state=%s", stage, self.state.value)

    # ---- public API ----

    async def load_history(self) -> List[ChatMessage]:
        """Fetch the stored conversation. A failed load starts an empty one."""
        self.state = ChatState.LOADING_HISTORY
        self.is_loading_history = True
        try:
            self._messages = await self.history_store.load(self.session.email)
            logger.info("loaded chat history user=%s messages=%s", self.session.email, len(self._messages))
        except Exception as e:
            logger.exception("error loading chat history user=%s: %s", self.session.email, e)
            self._messages = []
        finally:
            self.is_loading_history = False
            self.state = ChatState.IDLE
        self._notify()
        return self.messages

    async def reset(self) -> bool:
        """Delete every stored turn for the user and empty the conversation. False when the store refused."""
        try:
            await self.history_store.clear(self.session.email)
        except Exception as e:
            logger.exception("error resetting chat user=%s: %s", self.session.email, e)
            return False
        self._messages = []
        self.state = ChatState.IDLE
        self._notify()
        return True

    def export_markdown(self) -> str:
        return render_markdown(self._messages)

    async def send_message(
        self,
        message: str,
        *,
        cancel: Optional[CancellationToken] = None,
    ) -> Optional[ChatMessage]:
        """
        Run one turn. Returns the assistant message (the streamed answer or the
        synthetic error reply), or None when the send was rejected or cancelled.
        """
        if not message or not message.strip():
            return None
        if self.loading:
            logger.info("send rejected: a request is already in flight user=%s", self.session.email)
            return None

        self.loading = True
        self.state = ChatState.AWAITING_CLASSIFICATION
        token = cancel or token_with_timeout(self.timeout_seconds)
        history = self.messages
        self._append(ChatMessage.new("user", message, prefix="temp"))
        try:
            result = await self._graph.ainvoke(
                {"message": message, "history": history, "session": self.session, "cancel": token}
            )
            self.state = ChatState.AWAITING_COMPOSED_STREAM
            return await self._stream_reply(result["request"], result.get("resolved") or None, token)
        except OperationCancelled as e:
            logger.info("mentor turn cancelled user=%s reason=%s", self.session.email, e.reason)
            return None
        except Exception as e:
            logger.exception("mentor turn failed user=%s", self.session.email)
            reply = ChatMessage.new("assistant", ERROR_REPLY.format(reason=e), prefix="error")
            self._append(reply)
            return reply
        finally:
            if cancel is None:
                token.dispose()
            self.loading = False
            self.state = ChatState.IDLE

    async def _stream_reply(
        self,
        request: GatewayRequest,
        resolved: Optional[List[ContentItem]],
        cancel: CancellationToken,
    ) -> ChatMessage:
        reply = ChatMessage.new("assistant", "", recommended_content=resolved)
        self._append(reply)
        fragments = 0
        async for fragment in self.gateway.stream(request, cancel=cancel):
            reply.content += fragment
            fragments += 1
            self._notify()
        logger.info(
            "answer streamed step=%s fragments=%s chars=%s recommended=%s",
            request.step_type.value,
            fragments,
            len(reply.content),
            len(resolved or []),
        )
        return reply
