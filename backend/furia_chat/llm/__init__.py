"""LLM module - generation API clients."""

from .base import GenerationClient, GenerationError
from .gemini_client import GeminiClient, build_contents, build_generation_config
from .factory import create_generation_client

__all__ = [
    'GenerationClient',
    'GenerationError',
    'GeminiClient',
    'build_contents',
    'build_generation_config',
    'create_generation_client',
]
