"""
Generation Client Factory - Creates the configured generation client instance.
"""

from typing import Any

from .base import GenerationClient
from .gemini_client import GeminiClient


def create_generation_client(config: Any) -> GenerationClient:
    """
    Create a generation client from settings.

    A missing API key is not rejected here: the client raises GenerationError
    on every generate() call instead, so the service still starts.

    Args:
        config: Settings object with the gemini_* fields

    Returns:
        GenerationClient instance
    """
    return GeminiClient(
        api_key=config.gemini_api_key,
        model=config.gemini_model,
        base_url=config.gemini_base_url,
        api_version=config.gemini_api_version,
        timeout=config.gemini_timeout,
        connect_timeout=config.gemini_connect_timeout,
    )
