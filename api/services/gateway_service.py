"""
Language-model gateway: build the step prompt, stream the model answer as SSE
`data: {"text": ...}` frames, and persist the turn.

Persistence per step type:
  recommendation_check  -> user row (once per turn, before the model runs)
  general_chat / final_response -> assistant row, only after a completed,
                                   non-blank stream
  content_analysis      -> nothing
"""

import json
from typing import AsyncIterator, Optional

from fastapi import HTTPException
from fastapi.responses import StreamingResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session as DBSession

from agents.core.llm import LLM
from agents.mentor_agent.types import GatewayRequest, Role, StepType
from api.prompt_builders import build_gateway_prompt
from api.utils.history_store import SqlChatHistoryStore
from api.utils.logger import configure_logging

logger = configure_logging()

COMPLETE_FRAME = "event: complete\ndata: {}\n\n"

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}

_ANSWER_STEPS = (StepType.GENERAL_CHAT, StepType.FINAL_RESPONSE)


def data_frame(text: str) -> str:
    return f"data: {json.dumps({'text': text})}\n\n"


def error_frame(message: str) -> str:
    return f"event: error\ndata: {json.dumps({'error': message})}\n\n"


async def _persist(store: SqlChatHistoryStore, email: str, role: Role, content: str) -> None:
    # A failed write never fails the stream.
    try:
        await store.append(email, role, content)
    except SQLAlchemyError as e:
        logger.warning("failed to persist %s turn user=%s: %s", role, email, e)


async def _first_fragment(fragments: AsyncIterator[str]) -> Optional[str]:
    try:
        return await anext(fragments)
    except StopAsyncIteration:
        return None


async def stream_gateway_response(
    db: DBSession,
    llm: LLM,
    request: GatewayRequest,
    *,
    max_items: int = 5,
) -> StreamingResponse:
    store = SqlChatHistoryStore(db)
    step = request.step_type
    prompt = build_gateway_prompt(request, max_items=max_items)
    logger.info(
        "gateway request step=%s user=%s model=%s prompt_chars=%s",
        step.value,
        request.user_email,
        llm.model,
        len(prompt),
    )

    if step == StepType.RECOMMENDATION_CHECK:
        await _persist(store, request.user_email, "user", request.message)

    fragments = llm.stream(prompt)
    try:
        first = await _first_fragment(fragments)
    except Exception as e:
        logger.exception("model call failed step=%s: %s", step.value, e)
        raise HTTPException(status_code=500, detail="Failed to generate content")

    async def event_stream():
        answer_chunks = []
        completed = False
        try:
            if first:
                answer_chunks.append(first)
                yield data_frame(first)
            if first is not None:
                async for chunk in fragments:
                    if not chunk:
                        continue
                    answer_chunks.append(chunk)
                    yield data_frame(chunk)
            completed = True
        except Exception as e:
            logger.exception("gateway stream failed step=%s: %s", step.value, e)
            yield error_frame(str(e))

        answer = "".join(answer_chunks)
        logger.info(
            "gateway stream done step=%s completed=%s fragments=%s chars=%s",
            step.value,
            completed,
            len(answer_chunks),
            len(answer),
        )
        if completed and step in _ANSWER_STEPS and answer.strip():
            await _persist(store, request.user_email, "assistant", answer)
        yield COMPLETE_FRAME

    return StreamingResponse(event_stream(), media_type="text/event-stream", headers=SSE_HEADERS)
