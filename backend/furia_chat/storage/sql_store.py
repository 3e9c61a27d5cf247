"""
SQL Chat Store - ChatStore implementation on top of SQLModel sessions.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional, Tuple
from uuid import uuid4

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, func, select

from .interface import ChatStore
from ..core.errors import DatabaseError
from ..models.chat import ChatMessage, ChatSession, MessageRole

logger = logging.getLogger(__name__)


class SQLChatStore(ChatStore):
    """Stores sessions and messages in a relational database."""

    def __init__(self, db: Session):
        """
        Args:
            db: Open SQLModel session, owned by the caller
        """
        self.db = db

    def find_or_create_session(self, session_uuid: Optional[str] = None) -> ChatSession:
        try:
            if not session_uuid:
                return self._create_session(str(uuid4()))

            existing = self.get_session(session_uuid)
            if existing is not None:
                return existing

            try:
                return self._create_session(session_uuid)
            except IntegrityError:
                # Another request created the same uuid in the meantime
                self.db.rollback()
                logger.info(f"Session {session_uuid} created concurrently, re-fetching")
                existing = self.get_session(session_uuid)
                if existing is None:
                    raise
                return existing
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Database error finding/creating session (uuid: {session_uuid or 'new'}): {e}")
            raise DatabaseError(f"Could not find or create chat session: {e}") from e

    def _create_session(self, session_uuid: str) -> ChatSession:
        chat_session = ChatSession(uuid=session_uuid)
        self.db.add(chat_session)
        self.db.commit()
        self.db.refresh(chat_session)
        logger.info(f"Created chat session {chat_session.uuid}")
        return chat_session

    def get_session(self, session_uuid: str) -> Optional[ChatSession]:
        statement = select(ChatSession).where(ChatSession.uuid == session_uuid)
        return self.db.exec(statement).first()

    def load_history(self, chat_session: ChatSession, limit: int) -> List[ChatMessage]:
        if limit <= 0:
            return []
        statement = (
            select(ChatMessage)
            .where(ChatMessage.chat_session_id == chat_session.id)
            .order_by(ChatMessage.created_at.desc(), ChatMessage.id.desc())
            .limit(limit)
        )
        try:
            latest = list(self.db.exec(statement).all())
        except SQLAlchemyError as e:
            logger.error(f"Database error loading history for session {chat_session.uuid}: {e}")
            raise DatabaseError(f"Could not load conversation history: {e}") from e
        latest.reverse()
        return latest

    def save_turn(
        self,
        chat_session: ChatSession,
        user_content: str,
        model_content: str
    ) -> Tuple[ChatMessage, ChatMessage]:
        session_uuid = chat_session.uuid
        saved = []
        try:
            for role, content in ((MessageRole.USER, user_content), (MessageRole.MODEL, model_content)):
                message = self._build_message(chat_session, role, content)
                self.db.add(message)
                self.db.flush()
                saved.append(message)

            chat_session.updated_at = datetime.now(timezone.utc)
            self.db.add(chat_session)
            self.db.commit()
        except (SQLAlchemyError, ValueError) as e:
            self.db.rollback()
            logger.error(f"Could not save turn for session {session_uuid}: {e}")
            raise DatabaseError(f"Could not save the conversation messages: {e}") from e

        for message in saved:
            self.db.refresh(message)
        user_message, model_message = saved
        return user_message, model_message

    @staticmethod
    def _build_message(chat_session: ChatSession, role: MessageRole, content: str) -> ChatMessage:
        if not content or not content.strip():
            raise ValueError(f"Message content can't be blank (role: {role.value})")
        return ChatMessage(chat_session_id=chat_session.id, role=role.value, content=content)

    def count_messages(self, chat_session: ChatSession) -> int:
        statement = (
            select(func.count())
            .select_from(ChatMessage)
            .where(ChatMessage.chat_session_id == chat_session.id)
        )
        return self.db.exec(statement).one()

    def delete_session(self, session_uuid: str) -> bool:
        chat_session = self.get_session(session_uuid)
        if chat_session is None:
            return False
        try:
            self.db.delete(chat_session)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Could not delete session {session_uuid}: {e}")
            raise DatabaseError(f"Could not delete chat session: {e}") from e
        logger.info(f"Deleted chat session {session_uuid}")
        return True
