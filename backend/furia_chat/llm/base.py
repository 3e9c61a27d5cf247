"""
Generation Client Base - Abstract base for text generation API clients.
"""

from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional, Sequence


DEFAULT_TEMPERATURE = 0.7
DEFAULT_TOP_P = 0.9
DEFAULT_TOP_K: Optional[int] = None

# Roles accepted by the generation API for conversation turns
VALID_ROLES = ("user", "model")


class GenerationError(Exception):
    """
    Raised when the generation API cannot produce a usable reply.

    Attributes:
        status_code: Upstream HTTP status, when the API answered at all
        public_detail: Short explanation that is safe to show to end users
    """

    def __init__(self, message: str, status_code: Optional[int] = None,
                 public_detail: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.public_detail = public_detail


class GenerationClient(ABC):
    """
    Abstract base class for generation API clients.
    Implementations are stateless; one instance may serve many requests.
    """

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        history: Sequence[Mapping[str, Any]] = (),
        persona_instruction: Optional[str] = None,
        temperature: Optional[float] = DEFAULT_TEMPERATURE,
        top_p: Optional[float] = DEFAULT_TOP_P,
        top_k: Optional[int] = DEFAULT_TOP_K,
    ) -> Optional[str]:
        """
        Generate a reply for ``prompt`` given the previous conversation.

        Args:
            prompt: The latest user message
            history: Previous turns, each ``{"role": "user"|"model", "text": ...}``
            persona_instruction: Optional persona injected before the history
            temperature: Sampling temperature (omitted from the request if None)
            top_p: Nucleus sampling (omitted if None)
            top_k: Top-k sampling (omitted if None)

        Returns:
            The generated text; ``""`` when the model stopped normally without
            text; ``None`` when no text came back for an unknown reason.

        Raises:
            GenerationError: configuration, transport or API failure
        """
        pass
