"""Models module."""

from .chat import ChatSession, ChatMessage, MessageRole
from .schemas import (
    ChatRequestDocument, ChatReplyDocument, ErrorDocument, ErrorObject, HistoryEntry
)

__all__ = [
    'ChatSession', 'ChatMessage', 'MessageRole',
    'ChatRequestDocument', 'ChatReplyDocument', 'ErrorDocument', 'ErrorObject', 'HistoryEntry'
]
