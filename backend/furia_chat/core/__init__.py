"""Core module - chat pipeline errors, results and logging setup."""

from .errors import ChatProcessingError, DatabaseError, ApiCommunicationError
from .results import ChatFailure, ChatResult, ChatSuccess, ErrorKind

__all__ = [
    'ChatProcessingError', 'DatabaseError', 'ApiCommunicationError',
    'ChatFailure', 'ChatResult', 'ChatSuccess', 'ErrorKind',
]
