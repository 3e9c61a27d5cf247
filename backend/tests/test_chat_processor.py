"""
Unit tests for the chat processor.
Uses a real in-memory store and a mocked generation client.
"""

import json
import threading
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from furia_chat.core.errors import ApiCommunicationError, DatabaseError
from furia_chat.core.results import ChatFailure, ChatSuccess, ErrorKind
from furia_chat.llm.base import GenerationClient, GenerationError
from furia_chat.llm.gemini_client import GeminiClient
from furia_chat.services.chat_processor import (
    ChatProcessor,
    FALLBACK_REPLY,
    FURIA_PERSONA_INSTRUCTION,
)


@pytest.fixture
def generation_client():
    client = AsyncMock(spec=GenerationClient)
    client.generate.return_value = "VAMO FURIA!"
    return client


@pytest.fixture
def processor(store, generation_client):
    return ChatProcessor(store=store, generation_client=generation_client)


class TestChatProcessorSuccess:

    @pytest.mark.asyncio
    async def test_new_session_when_uuid_missing(self, processor, store):
        result = await processor.process(None, "Oi")

        assert isinstance(result, ChatSuccess)
        assert result.ok
        assert result.reply_text == "VAMO FURIA!"
        assert result.history == []
        chat_session = store.get_session(result.session_uuid)
        assert chat_session is not None
        assert store.count_messages(chat_session) == 2

    @pytest.mark.asyncio
    async def test_unknown_uuid_is_created_with_that_identifier(self, processor, store):
        result = await processor.process("my-session", "Oi")
        assert result.session_uuid == "my-session"
        assert store.get_session("my-session") is not None

    @pytest.mark.asyncio
    async def test_same_uuid_reuses_session(self, processor, store):
        first = await processor.process("same", "Oi")
        second = await processor.process("same", "Tudo bem?")

        assert first.session_uuid == second.session_uuid == "same"
        assert second.history == [
            {"role": "user", "text": "Oi"},
            {"role": "model", "text": "VAMO FURIA!"},
        ]
        assert store.count_messages(store.get_session("same")) == 4

    @pytest.mark.asyncio
    async def test_generation_receives_persona_history_and_prompt(self, processor, generation_client):
        await processor.process("ctx", "Primeira")
        await processor.process("ctx", "Segunda")

        kwargs = generation_client.generate.call_args.kwargs
        assert kwargs["prompt"] == "Segunda"
        assert kwargs["persona_instruction"] == FURIA_PERSONA_INSTRUCTION
        assert kwargs["history"] == [
            {"role": "user", "text": "Primeira"},
            {"role": "model", "text": "VAMO FURIA!"},
        ]

    @pytest.mark.asyncio
    async def test_history_window_uses_last_ten_of_twelve(self, processor, store, generation_client):
        chat_session = store.find_or_create_session("long")
        for i in range(6):
            store.save_turn(chat_session, f"pergunta {i}", f"resposta {i}")

        result = await processor.process("long", "Nova pergunta")

        assert len(result.history) == 10
        assert result.history[0] == {"role": "user", "text": "pergunta 1"}
        assert result.history[-1] == {"role": "model", "text": "resposta 5"}
        assert generation_client.generate.call_args.kwargs["history"] == result.history
        assert store.count_messages(store.get_session("long")) == 14

    @pytest.mark.asyncio
    async def test_message_count_grows_by_two_per_call(self, processor, store):
        for expected in (2, 4, 6):
            await processor.process("even", "msg")
            assert store.count_messages(store.get_session("even")) == expected

    @pytest.mark.asyncio
    async def test_generation_params_are_forwarded(self, store, generation_client):
        processor = ChatProcessor(
            store=store,
            generation_client=generation_client,
            generation_params={"temperature": 0.2, "top_p": 0.8, "top_k": 40},
        )
        await processor.process(None, "Oi")
        kwargs = generation_client.generate.call_args.kwargs
        assert (kwargs["temperature"], kwargs["top_p"], kwargs["top_k"]) == (0.2, 0.8, 40)

    @pytest.mark.asyncio
    async def test_custom_history_window(self, store, generation_client):
        processor = ChatProcessor(store=store, generation_client=generation_client, max_history_turns=1)
        for _ in range(3):
            result = await processor.process("window", "msg")
        assert len(result.history) == 2


class TestChatProcessorFallback:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("empty_reply", ["", None, "   "])
    async def test_empty_reply_is_replaced_by_fallback(self, processor, store, generation_client, empty_reply):
        generation_client.generate.return_value = empty_reply

        result = await processor.process("fallback", "Oi")

        assert result.reply_text == FALLBACK_REPLY
        history = store.load_history(store.get_session("fallback"), limit=10)
        assert history[-1].role == "model"
        assert history[-1].content == FALLBACK_REPLY


class TestChatProcessorFailures:

    @pytest.mark.asyncio
    async def test_generation_error_maps_to_api_communication(self, processor, store, generation_client):
        generation_client.generate.side_effect = GenerationError(
            "Gemini API error (status: 403): invalid key", status_code=403, public_detail="invalid key"
        )

        result = await processor.process("api-fail", "Oi")

        assert isinstance(result, ChatFailure)
        assert result.kind == ErrorKind.API_COMMUNICATION
        assert result.status_code == 503
        assert isinstance(result.error, ApiCommunicationError)
        assert "invalid key" in result.message
        assert "status: 403" not in result.message
        assert store.count_messages(store.get_session("api-fail")) == 0

    @pytest.mark.asyncio
    async def test_malformed_api_reply_maps_to_api_communication(self, store):
        gemini = GeminiClient(api_key="test-key")
        processor = ChatProcessor(store=store, generation_client=gemini)
        body = {"candidates": [{"content": {"parts": [{"text": 123}]}, "finishReason": "STOP"}]}
        with patch("httpx.AsyncClient") as mock_client:
            mock_instance = AsyncMock()
            mock_instance.post.return_value = MagicMock(
                status_code=200, is_success=True, text=json.dumps(body)
            )
            mock_instance.__aenter__ = AsyncMock(return_value=mock_instance)
            mock_instance.__aexit__ = AsyncMock(return_value=False)
            mock_client.return_value = mock_instance

            result = await processor.process("malformed", "Oi")

        assert result.kind == ErrorKind.API_COMMUNICATION
        assert result.status_code == 503
        assert store.count_messages(store.get_session("malformed")) == 0

    @pytest.mark.asyncio
    async def test_transport_error_message_is_generic(self, processor, generation_client):
        generation_client.generate.side_effect = GenerationError("Connection to the generation API failed: ...")
        result = await processor.process(None, "Oi")
        assert result.kind == ErrorKind.API_COMMUNICATION
        assert result.message == "The generation service is currently unavailable."

    @pytest.mark.asyncio
    async def test_session_failure_maps_to_database_error(self, processor, store, generation_client):
        with patch.object(store, "find_or_create_session", side_effect=DatabaseError("SELECT failed")):
            result = await processor.process("db-fail", "Oi")

        assert result.kind == ErrorKind.DATABASE
        assert result.status_code == 500
        assert "SELECT" not in result.message
        generation_client.generate.assert_not_called()

    @pytest.mark.asyncio
    async def test_persistence_failure_maps_to_database_error(self, processor, store):
        with patch.object(store, "save_turn", side_effect=DatabaseError("INSERT failed")):
            result = await processor.process("save-fail", "Oi")

        assert result.kind == ErrorKind.DATABASE
        assert store.count_messages(store.get_session("save-fail")) == 0

    @pytest.mark.asyncio
    async def test_unexpected_error_is_generic(self, processor, generation_client, caplog):
        generation_client.generate.side_effect = RuntimeError("secret internals")

        with caplog.at_level("ERROR"):
            result = await processor.process("boom", "Oi")

        assert result.kind == ErrorKind.UNEXPECTED
        assert result.status_code == 500
        assert "secret internals" not in result.message
        assert "secret internals" in caplog.text


class TestChatProcessorConcurrency:

    @pytest.mark.asyncio
    async def test_store_calls_run_off_the_event_loop_thread(self, processor, store):
        loop_thread = threading.get_ident()
        store_threads = []
        original_find = store.find_or_create_session
        original_save = store.save_turn

        def tracking_find(session_uuid):
            store_threads.append(threading.get_ident())
            return original_find(session_uuid)

        def tracking_save(chat_session, user_message, reply_text):
            store_threads.append(threading.get_ident())
            return original_save(chat_session, user_message, reply_text)

        with patch.object(store, "find_or_create_session", side_effect=tracking_find), \
                patch.object(store, "save_turn", side_effect=tracking_save):
            result = await processor.process("threaded", "Oi")

        assert result.ok
        assert len(store_threads) == 2
        assert loop_thread not in store_threads


class TestChatFailureLogging:

    @pytest.mark.asyncio
    async def test_failure_carries_resolved_session_uuid(self, processor, generation_client):
        generation_client.generate.side_effect = GenerationError("Connection to the generation API failed")

        result = await processor.process(None, "Oi")

        assert result.kind == ErrorKind.API_COMMUNICATION
        assert result.session_uuid is not None
        assert len(result.session_uuid) == 36

    @pytest.mark.asyncio
    async def test_failure_before_session_keeps_caller_uuid(self, processor, store):
        with patch.object(store, "find_or_create_session", side_effect=DatabaseError("SELECT failed")):
            result = await processor.process("given", "Oi")
        assert result.session_uuid == "given"

    @pytest.mark.asyncio
    async def test_unexpected_error_logs_traceback_once(self, processor, generation_client, caplog):
        generation_client.generate.side_effect = RuntimeError("secret internals")

        with caplog.at_level("ERROR"):
            await processor.process("trace-once", "Oi")

        assert len([r for r in caplog.records if r.exc_info]) == 1
