"""
JSON:API serialization of chat replies.
"""

from typing import Any, Dict
import uuid

from ..core.results import ChatSuccess
from ..models.schemas import (
    ChatReplyAttributes, ChatReplyDocument, ChatReplyMeta, ChatReplyResource, HistoryEntry
)


def serialize_chat_reply(result: ChatSuccess) -> Dict[str, Any]:
    """Render a successful turn as a ``messages`` resource with a fresh id."""
    document = ChatReplyDocument(
        data=ChatReplyResource(
            id=str(uuid.uuid4()),
            attributes=ChatReplyAttributes(
                content=result.reply_text,
                history=[HistoryEntry(**entry) for entry in result.history],
            ),
            meta=ChatReplyMeta(session_uuid=result.session_uuid),
        )
    )
    return document.model_dump()
