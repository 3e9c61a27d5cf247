"""
Chat Processor - Runs one chat turn: session, history window, generation, persistence.
"""

import logging
from typing import Any, Dict, List, Optional

from starlette.concurrency import run_in_threadpool

from ..core.errors import ApiCommunicationError, DatabaseError
from ..core.logging_config import SessionLoggerAdapter
from ..core.results import ChatFailure, ChatResult, ChatSuccess, ErrorKind
from ..llm.base import GenerationClient, GenerationError
from ..models.chat import ChatSession
from ..storage.interface import ChatStore

logger = logging.getLogger(__name__)

MAX_HISTORY_TURNS = 5

FURIA_PERSONA_INSTRUCTION = (
    "Você é o ChatFurioso, um chatbot super fã da FURIA Esports e de jogos eletrônicos. "
    "Sua paixão é contagiante!\n"
    "Você adora falar sobre CS2, Valorant, LoL, Rocket League, R6 e qualquer outra modalidade "
    "onde a FURIA compete.\n"
    "Conhece os jogadores (atuais e históricos), as maiores conquistas, jogadas icônicas e até "
    "os memes da torcida.\n"
    "Responda sempre com entusiasmo, bom humor e use gírias de torcedor brasileiro (mas sem exagerar).\n"
    "Se não souber algo, admita com humildade, mas sempre puxe para um lado positivo da FURIA.\n"
    "Seu objetivo é engajar o usuário e celebrar a FURIA!"
)

FALLBACK_REPLY = "Não consegui pensar em uma resposta para isso agora, mas VAMO FURIA! 🐾"

DATABASE_FAILURE_MESSAGE = "Could not store or load the conversation. Please try again later."
API_FAILURE_MESSAGE = "The generation service is currently unavailable"
UNEXPECTED_FAILURE_MESSAGE = "Unexpected error while processing the chat message."


class ChatProcessor:
    """
    Coordinates a single request/response cycle.
    Store and generation client are injected so tests can substitute them.
    Store calls are blocking and run in the threadpool.
    """

    def __init__(
        self,
        store: ChatStore,
        generation_client: GenerationClient,
        persona_instruction: Optional[str] = FURIA_PERSONA_INSTRUCTION,
        max_history_turns: int = MAX_HISTORY_TURNS,
        generation_params: Optional[Dict[str, Any]] = None,
    ):
        """
        Args:
            store: Conversation store
            generation_client: Client for the generation API
            persona_instruction: Persona primed before the history
            max_history_turns: User+model exchanges sent as context
            generation_params: temperature/top_p/top_k overrides
        """
        self.store = store
        self.generation_client = generation_client
        self.persona_instruction = persona_instruction
        self.max_history_turns = max_history_turns
        self.generation_params = generation_params or {}

    async def process(self, session_uuid: Optional[str], user_message: str) -> ChatResult:
        """
        Handle one user message.

        Args:
            session_uuid: Session identifier; a new session is created when empty
            user_message: Non-empty message text (validated by the API layer)

        Returns:
            ChatSuccess with the reply, or ChatFailure with a classified error
        """
        session_label = session_uuid or "new"
        resolved_uuid = session_uuid
        log = SessionLoggerAdapter(logger, {"session_uuid": session_label})

        try:
            chat_session = await run_in_threadpool(self.store.find_or_create_session, session_uuid)
            resolved_uuid = session_label = chat_session.uuid
            log = SessionLoggerAdapter(logger, {"session_uuid": session_label})
            log.info(f"Processing message for session {chat_session.uuid}: {user_message[:100]}")

            history = await run_in_threadpool(self._load_history, chat_session)
            reply_text = await self._generate_reply(chat_session, user_message, history, log)
            await run_in_threadpool(self.store.save_turn, chat_session, user_message, reply_text)

            log.info(
                f"Turn completed for session {chat_session.uuid}: "
                f"history={len(history)} messages, reply_length={len(reply_text)} chars"
            )
            return ChatSuccess(reply_text=reply_text, session_uuid=chat_session.uuid, history=history)

        except DatabaseError as e:
            return ChatFailure(
                kind=ErrorKind.DATABASE, message=DATABASE_FAILURE_MESSAGE, error=e, session_uuid=resolved_uuid
            )
        except ApiCommunicationError as e:
            return ChatFailure(
                kind=ErrorKind.API_COMMUNICATION, message=str(e), error=e, session_uuid=resolved_uuid
            )
        except Exception as e:
            log.error(f"Unexpected error for session {session_label}: {e!r}", exc_info=True)
            return ChatFailure(
                kind=ErrorKind.UNEXPECTED, message=UNEXPECTED_FAILURE_MESSAGE, error=e, session_uuid=resolved_uuid
            )

    def _load_history(self, chat_session: ChatSession) -> List[Dict[str, Any]]:
        messages = self.store.load_history(chat_session, limit=self.max_history_turns * 2)
        return [message.to_history_entry() for message in messages]

    async def _generate_reply(
        self,
        chat_session: ChatSession,
        user_message: str,
        history: List[Dict[str, Any]],
        log: logging.LoggerAdapter,
    ) -> str:
        try:
            reply_text = await self.generation_client.generate(
                prompt=user_message,
                history=history,
                persona_instruction=self.persona_instruction,
                **self.generation_params,
            )
        except GenerationError as e:
            raise ApiCommunicationError(self._public_api_message(e)) from e

        if not reply_text or not reply_text.strip():
            # "" (normal stop without text) and None (unknown finish reason) both fall back
            log.warning(
                f"Generation returned no text ({reply_text!r}) for session {chat_session.uuid}, "
                f"using fallback reply"
            )
            return FALLBACK_REPLY
        return reply_text

    @staticmethod
    def _public_api_message(error: GenerationError) -> str:
        if error.public_detail:
            return f"{API_FAILURE_MESSAGE}: {error.public_detail}"
        return f"{API_FAILURE_MESSAGE}."
