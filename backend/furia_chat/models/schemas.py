"""
JSON:API request/response documents for the chat endpoint.
"""

from typing import List, Optional
from pydantic import BaseModel, Field


class ChatRequestAttributes(BaseModel):
    """Attributes of an inbound chat message."""
    content: Optional[str] = None


class ChatRequestMeta(BaseModel):
    """Optional request metadata."""
    session_uuid: Optional[str] = None


class ChatRequestData(BaseModel):
    attributes: ChatRequestAttributes = Field(default_factory=ChatRequestAttributes)
    meta: ChatRequestMeta = Field(default_factory=ChatRequestMeta)


class ChatRequestDocument(BaseModel):
    """Top-level document: ``{"data": {"attributes": {...}, "meta": {...}}}``."""
    data: ChatRequestData


class HistoryEntry(BaseModel):
    role: str  # user, model
    text: str


class ChatReplyAttributes(BaseModel):
    content: str
    history: List[HistoryEntry] = []


class ChatReplyMeta(BaseModel):
    session_uuid: str


class ChatReplyResource(BaseModel):
    id: str
    type: str = "messages"
    attributes: ChatReplyAttributes
    meta: ChatReplyMeta


class ChatReplyDocument(BaseModel):
    """Successful reply document."""
    data: ChatReplyResource


class ErrorObject(BaseModel):
    status: str  # stringified HTTP status code
    title: str
    detail: str


class ErrorDocument(BaseModel):
    errors: List[ErrorObject]
