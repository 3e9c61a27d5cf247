"""
Chat Store Interface - Abstract base class for conversation persistence.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

from ..models.chat import ChatMessage, ChatSession


class ChatStore(ABC):
    """
    Keyed, append-only conversation log.
    Implementations raise DatabaseError for every persistence failure.
    """

    @abstractmethod
    def find_or_create_session(self, session_uuid: Optional[str] = None) -> ChatSession:
        """
        Resolve the session for a request.

        Args:
            session_uuid: External identifier; a fresh one is generated when empty

        Returns:
            ChatSession: Existing or newly created session
        """
        pass

    @abstractmethod
    def get_session(self, session_uuid: str) -> Optional[ChatSession]:
        """Return the session with this identifier, or None."""
        pass

    @abstractmethod
    def load_history(self, chat_session: ChatSession, limit: int) -> List[ChatMessage]:
        """
        Load the most recent messages of a session.

        Args:
            chat_session: Session to read
            limit: Maximum number of messages

        Returns:
            List[ChatMessage]: At most ``limit`` messages, oldest first
        """
        pass

    @abstractmethod
    def save_turn(
        self,
        chat_session: ChatSession,
        user_content: str,
        model_content: str
    ) -> Tuple[ChatMessage, ChatMessage]:
        """
        Append a user message and the model reply atomically.

        Returns:
            Tuple of the stored (user, model) messages
        """
        pass

    @abstractmethod
    def count_messages(self, chat_session: ChatSession) -> int:
        """Number of messages stored for a session."""
        pass

    @abstractmethod
    def delete_session(self, session_uuid: str) -> bool:
        """
        Delete a session together with all of its messages.

        Returns:
            bool: True if a session was deleted
        """
        pass
