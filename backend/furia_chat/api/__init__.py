"""API module."""

from .chat import router as chat_router
from .errors import register_exception_handlers

__all__ = ['chat_router', 'register_exception_handlers']
