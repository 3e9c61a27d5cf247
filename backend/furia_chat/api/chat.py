"""
Chat API endpoints - receive a user message and return the bot's reply.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header
from fastapi.responses import JSONResponse
from sqlmodel import Session

from .errors import json_api_error, status_title
from .serializers import serialize_chat_reply
from ..config import settings
from ..core.results import ChatFailure
from ..llm.base import GenerationClient
from ..llm.factory import create_generation_client
from ..models.schemas import ChatRequestDocument
from ..services.chat_processor import ChatProcessor
from ..storage.database import get_db
from ..storage.sql_store import SQLChatStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])

SESSION_HEADER = "X-Session-ID"


def get_generation_client() -> GenerationClient:
    """Dependency providing the configured generation client."""
    return create_generation_client(settings)


def _generation_params() -> dict:
    return {
        "temperature": settings.generation_temperature,
        "top_p": settings.generation_top_p,
        "top_k": settings.generation_top_k,
    }


@router.post("")
async def create_chat_message(
    document: ChatRequestDocument,
    x_session_id: Optional[str] = Header(None, alias=SESSION_HEADER),
    db: Session = Depends(get_db),
    generation_client: GenerationClient = Depends(get_generation_client),
):
    """
    Send a chat message and get the bot's reply.

    The session comes from the X-Session-ID header, falling back to
    ``data.meta.session_uuid``; without either a new session is started.

    Returns:
        JSON:API ``messages`` document, or a JSON:API error document
    """
    content = document.data.attributes.content
    if not content or not content.strip():
        return json_api_error(400, "The 'content' attribute inside 'data.attributes' can't be empty.")

    session_uuid = (
        (x_session_id or "").strip()
        or (document.data.meta.session_uuid or "").strip()
        or None
    )

    processor = ChatProcessor(
        store=SQLChatStore(db),
        generation_client=generation_client,
        max_history_turns=settings.max_history_turns,
        generation_params=_generation_params(),
    )
    result = await processor.process(session_uuid, content)

    if result.ok:
        return JSONResponse(status_code=200, content=serialize_chat_reply(result))
    return _render_failure(result)


def _render_failure(failure: ChatFailure) -> JSONResponse:
    # Tracebacks are logged where the failure is caught
    error = failure.error
    logger.error(
        f"Chat error for session {failure.session_uuid or 'new'}: "
        f"{type(error).__name__ if error else failure.kind.value} - {error}",
        extra={"extra_fields": {"session_uuid": failure.session_uuid, "error_kind": failure.kind.value}},
    )
    return json_api_error(failure.status_code, failure.message, title=status_title(failure.status_code))
