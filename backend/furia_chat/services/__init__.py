"""Services module - chat turn orchestration."""

from .chat_processor import (
    ChatProcessor, FALLBACK_REPLY, FURIA_PERSONA_INSTRUCTION, MAX_HISTORY_TURNS
)

__all__ = ['ChatProcessor', 'FALLBACK_REPLY', 'FURIA_PERSONA_INSTRUCTION', 'MAX_HISTORY_TURNS']
