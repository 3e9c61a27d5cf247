"""
Outcome of one chat turn: either a reply or a classified failure.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union


class ErrorKind(str, Enum):
    DATABASE = "database_error"
    API_COMMUNICATION = "api_communication_error"
    UNEXPECTED = "unexpected_error"


# HTTP status used by the API layer for each failure kind
_STATUS_BY_KIND = {
    ErrorKind.DATABASE: 500,
    ErrorKind.API_COMMUNICATION: 503,
    ErrorKind.UNEXPECTED: 500,
}


@dataclass(frozen=True)
class ChatSuccess:
    """A generated reply and the context that produced it."""
    reply_text: str
    session_uuid: str
    history: List[Dict[str, Any]] = field(default_factory=list)
    ok: bool = field(default=True, init=False)


@dataclass(frozen=True)
class ChatFailure:
    """
    A failed turn.

    ``message`` is safe to return to the caller; ``error`` keeps the original
    exception for logging only. ``session_uuid`` is the resolved session, when
    one was found or created before the failure.
    """
    kind: ErrorKind
    message: str
    error: Optional[BaseException] = None
    session_uuid: Optional[str] = None
    ok: bool = field(default=False, init=False)

    @property
    def status_code(self) -> int:
        return _STATUS_BY_KIND[self.kind]


ChatResult = Union[ChatSuccess, ChatFailure]
