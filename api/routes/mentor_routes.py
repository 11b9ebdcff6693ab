"""
AI mentor routes: the language-model gateway stream and the signed-in user's
chat history (list, reset, Markdown download).
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import PlainTextResponse, StreamingResponse
from sqlalchemy.orm import Session as DBSession

from agents.core.llm import LLM
from agents.mentor_agent.export import render_markdown
from agents.mentor_agent.types import GatewayRequest, UserSession
from api.bootstrap import get_llm
from api.config import get_db, get_settings
from api.schemas.mentor_schemas import ChatMessageResponse, HistoryResponse, ResetResponse
from api.services.gateway_service import stream_gateway_response
from api.utils.auth import get_current_session, get_gateway_caller
from api.utils.common import export_filename
from api.utils.history_store import SqlChatHistoryStore

mentor_routes = APIRouter()


@mentor_routes.post("/stream")
async def gateway_stream(
    request: GatewayRequest,
    caller: Optional[UserSession] = Depends(get_gateway_caller),
    db: DBSession = Depends(get_db),
    llm: LLM = Depends(get_llm),
) -> StreamingResponse:
    """One gateway call: the step prompt is built here and the model answer streamed back as SSE."""
    if caller is not None and caller.email != request.user_email:
        raise HTTPException(status_code=403, detail="userEmail does not match the signed-in user")
    if not request.message.strip():
        raise HTTPException(status_code=400, detail="message must not be empty")
    return await stream_gateway_response(
        db, llm, request, max_items=get_settings().max_recommendations
    )


@mentor_routes.get("/history", response_model=HistoryResponse)
async def get_history(
    session: UserSession = Depends(get_current_session),
    db: DBSession = Depends(get_db),
) -> HistoryResponse:
    """Stored conversation of the signed-in user, oldest first."""
    messages = await SqlChatHistoryStore(db).load(session.email)
    return HistoryResponse(
        user_email=session.email,
        messages=[ChatMessageResponse.from_message(m) for m in messages],
    )


@mentor_routes.delete("/history", response_model=ResetResponse)
async def reset_history(
    session: UserSession = Depends(get_current_session),
    db: DBSession = Depends(get_db),
) -> ResetResponse:
    deleted = await SqlChatHistoryStore(db).clear(session.email)
    return ResetResponse(message="Chat history cleared", deleted=deleted)


@mentor_routes.get("/history/export", response_class=PlainTextResponse)
async def export_history(
    session: UserSession = Depends(get_current_session),
    db: DBSession = Depends(get_db),
) -> PlainTextResponse:
    messages = await SqlChatHistoryStore(db).load(session.email)
    return PlainTextResponse(
        render_markdown(messages),
        media_type="text/markdown",
        headers={"Content-Disposition": f'attachment; filename="{export_filename()}"'},
    )
