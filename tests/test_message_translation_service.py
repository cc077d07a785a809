"""
Unit Tests for Message Translation Service

Tests ownership checks, API key resolution, strategy dispatch and alignment
with the repository and strategies patched out.
"""

# Standard library
from unittest.mock import AsyncMock, MagicMock, patch

# Third-party
import pytest

# Local application
from core.errors import AppError, ErrorCode
from message_translation import service
from message_translation.errors import EmptyResponseError, TranslationFailedError
from message_translation.prompts import TRANSLATION_SYSTEM_PROMPT
from message_translation.schemas import (
    MessageRole,
    MessageTranslation,
    SavedWordMatch,
    TranslationResult,
    WordTranslation,
)

MODULE = "message_translation.service"
USER_ID = "user-1"
CONVERSATION = {"id": "conv-1", "user_id": USER_ID, "agent_id": 4}


def _message(role="assistant", content="你好，世界！", message_id=3):
    return {"id": message_id, "conversation_id": "conv-1", "role": role, "content": content}


@pytest.fixture
def repo():
    with patch(f"{MODULE}.repo_get_message", new_callable=AsyncMock) as get_message, \
         patch(f"{MODULE}.repo_get_conversation", new_callable=AsyncMock) as get_conversation, \
         patch(f"{MODULE}.repo_list_messages", new_callable=AsyncMock) as list_messages, \
         patch(f"{MODULE}.repo_get_api_key", new_callable=AsyncMock) as get_api_key, \
         patch(f"{MODULE}.repo_get_message_translation", new_callable=AsyncMock) as get_translation, \
         patch(f"{MODULE}.repo_list_message_translations", new_callable=AsyncMock) as list_translations, \
         patch(f"{MODULE}.repo_list_word_translations", new_callable=AsyncMock) as list_words:
        get_message.return_value = _message()
        get_conversation.return_value = CONVERSATION
        list_messages.return_value = []
        get_api_key.return_value = "user-key"
        get_translation.return_value = None
        list_words.return_value = []
        yield {
            "get_message": get_message,
            "get_conversation": get_conversation,
            "list_messages": list_messages,
            "get_api_key": get_api_key,
            "get_translation": get_translation,
            "list_translations": list_translations,
            "list_words": list_words,
        }


@pytest.fixture
def strategy():
    mock_strategy = MagicMock()
    mock_strategy.translate_with_words = AsyncMock(
        return_value=TranslationResult(translation="Hello, world!")
    )
    with patch(f"{MODULE}.get_strategy", return_value=mock_strategy) as get_strategy:
        mock_strategy.selector = get_strategy
        yield mock_strategy


class TestResolveApiKey:
    """Tests for resolve_api_key function."""

    @pytest.mark.asyncio
    async def test_user_key_preferred(self, repo, monkeypatch):
        monkeypatch.setenv("GOOGLE_API_KEY", "server-key")

        assert await service.resolve_api_key(user_id=USER_ID) == "user-key"
        repo["get_api_key"].assert_awaited_once_with(user_id=USER_ID, provider="google")

    @pytest.mark.asyncio
    async def test_env_fallback(self, repo, monkeypatch):
        repo["get_api_key"].return_value = None
        monkeypatch.setenv("GOOGLE_API_KEY", "server-key")

        assert await service.resolve_api_key(user_id=USER_ID) == "server-key"

    @pytest.mark.asyncio
    async def test_missing_key_raises(self, repo, monkeypatch):
        repo["get_api_key"].return_value = None
        monkeypatch.delenv("GOOGLE_API_KEY", raising=False)

        with pytest.raises(AppError) as exc_info:
            await service.resolve_api_key(user_id=USER_ID)

        assert exc_info.value.code == ErrorCode.API_KEY_REQUIRED
        assert exc_info.value.status_code == 400


class TestGetContextMessages:
    """Tests for get_context_messages function."""

    @pytest.mark.asyncio
    async def test_window_of_prior_turns(self, repo):
        repo["list_messages"].return_value = [
            {"id": i, "role": "user" if i % 2 else "assistant", "content": f"m{i}"}
            for i in range(1, 15)
        ]

        turns = await service.get_context_messages(conversation_id="conv-1", message_id=14)

        assert len(turns) == service.TRANSLATION_CONTEXT_MESSAGES
        assert turns[0].content == "m4"
        assert turns[-1].content == "m13"

    @pytest.mark.asyncio
    async def test_first_message_has_no_history(self, repo):
        repo["list_messages"].return_value = [{"id": 1, "role": "assistant", "content": "hi"}]

        assert await service.get_context_messages(conversation_id="conv-1", message_id=1) == []


class TestTranslateMessageWithWords:
    """Tests for translate_message_with_words function."""

    @pytest.mark.asyncio
    async def test_assistant_gets_history(self, repo, strategy):
        repo["list_messages"].return_value = [
            {"id": 1, "role": "user", "content": "Say hello in Chinese"},
            {"id": 3, "role": "assistant", "content": "你好，世界！"},
        ]

        result = await service.translate_message_with_words(message_id=3, user_id=USER_ID)

        assert result.translation == "Hello, world!"
        strategy.selector.assert_called_once_with("assistant")
        message_id, content, api_key, context = strategy.translate_with_words.await_args.args
        assert (message_id, content, api_key) == (3, "你好，世界！", "user-key")
        assert [turn.content for turn in context.conversation_history] == ["Say hello in Chinese"]
        assert context.message_role is MessageRole.ASSISTANT
        assert context.user_id == USER_ID
        assert context.agent_id == 4

    @pytest.mark.asyncio
    async def test_user_message_gets_no_history(self, repo, strategy):
        repo["get_message"].return_value = _message(role="user", content="Hello world")

        await service.translate_message_with_words(message_id=3, user_id=USER_ID)

        repo["list_messages"].assert_not_awaited()
        context = strategy.translate_with_words.await_args.args[3]
        assert context.conversation_history == []
        assert context.message_role is MessageRole.USER

    @pytest.mark.asyncio
    async def test_unknown_role_dispatched_as_is(self, repo, strategy):
        repo["get_message"].return_value = _message(role="tool")

        await service.translate_message_with_words(message_id=3, user_id=USER_ID)

        strategy.selector.assert_called_once_with("tool")
        context = strategy.translate_with_words.await_args.args[3]
        assert context.message_role is MessageRole.SYSTEM

    @pytest.mark.asyncio
    async def test_stored_results_short_circuit(self, repo, strategy):
        repo["get_translation"].return_value = MessageTranslation(message_id=3, translation="Stored")
        repo["list_words"].return_value = [WordTranslation(original_word="你好", translation="hello")]

        result = await service.translate_message_with_words(message_id=3, user_id=USER_ID)

        assert result.translation == "Stored"
        strategy.translate_with_words.assert_not_awaited()
        repo["get_api_key"].assert_not_awaited()

    @pytest.mark.asyncio
    async def test_untranslated_words_do_not_short_circuit(self, repo, strategy):
        repo["get_translation"].return_value = MessageTranslation(message_id=3, translation="Stored")
        repo["list_words"].return_value = [WordTranslation(original_word="你好")]

        await service.translate_message_with_words(message_id=3, user_id=USER_ID)

        strategy.translate_with_words.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_missing_message_is_not_found(self, repo, strategy):
        repo["get_message"].return_value = None

        with pytest.raises(AppError) as exc_info:
            await service.translate_message_with_words(message_id=3, user_id=USER_ID)

        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_foreign_conversation_is_not_found(self, repo, strategy):
        repo["get_conversation"].return_value = None

        with pytest.raises(AppError) as exc_info:
            await service.translate_message_with_words(message_id=3, user_id="intruder")

        assert exc_info.value.code == ErrorCode.NOT_FOUND
        strategy.translate_with_words.assert_not_awaited()


@pytest.fixture
def full_translation(model_call_factory):
    """Patches the model call, usage log and save used by translate_message."""
    call = model_call_factory("  Hello, world!\n")
    with patch(f"{MODULE}.invoke_model", new=AsyncMock(return_value=call)) as invoke, \
         patch(f"{MODULE}.log_model_usage", new_callable=AsyncMock) as log_usage, \
         patch(f"{MODULE}.repo_save_message_translation", new_callable=AsyncMock) as save:
        yield {"invoke": invoke, "log_usage": log_usage, "save": save, "call": call}


class TestTranslateMessage:
    """Tests for translate_message function."""

    @pytest.mark.asyncio
    async def test_translates_and_stores(self, repo, full_translation):
        result = await service.translate_message(message_id=3, user_id=USER_ID)

        assert result.translation == "Hello, world!"
        prompt = full_translation["invoke"].await_args.args[0]
        assert prompt.startswith("Translate the following message to English:\n你好，世界！")
        assert full_translation["invoke"].await_args.kwargs == {
            "system_prompt": TRANSLATION_SYSTEM_PROMPT,
            "api_key": "user-key",
            "purpose": "translation",
        }
        full_translation["save"].assert_awaited_once_with(
            message_id=3, translation="Hello, world!"
        )
        call = full_translation["call"]
        full_translation["log_usage"].assert_awaited_once_with(
            USER_ID, call.request, call.response, agent_id=4
        )

    @pytest.mark.asyncio
    async def test_user_message_gets_history(self, repo, full_translation):
        repo["get_message"].return_value = _message(role="user", content="Et toi ?")
        repo["list_messages"].return_value = [
            {"id": 1, "role": "user", "content": "Bonjour"},
            {"id": 2, "role": "assistant", "content": "Salut, ça va ?"},
            {"id": 3, "role": "user", "content": "Et toi ?"},
        ]

        await service.translate_message(message_id=3, user_id=USER_ID)

        prompt = full_translation["invoke"].await_args.args[0]
        assert "Previous conversation:\nuser: Bonjour\nassistant: Salut, ça va ?" in prompt
        assert prompt.endswith("Message to translate:\nEt toi ?\n\nTranslation:")

    @pytest.mark.asyncio
    async def test_stored_translation_returned(self, repo, full_translation):
        repo["get_translation"].return_value = MessageTranslation(message_id=3, translation="Stored")

        result = await service.translate_message(message_id=3, user_id=USER_ID)

        assert result.translation == "Stored"
        full_translation["invoke"].assert_not_awaited()
        full_translation["save"].assert_not_awaited()
        repo["get_api_key"].assert_not_awaited()

    @pytest.mark.asyncio
    async def test_foreign_conversation_is_not_found(self, repo, full_translation):
        repo["get_conversation"].return_value = None
        repo["get_translation"].return_value = MessageTranslation(message_id=3, translation="Stored")

        with pytest.raises(AppError) as exc_info:
            await service.translate_message(message_id=3, user_id="intruder")

        assert exc_info.value.status_code == 404
        repo["get_translation"].assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_api_key(self, repo, full_translation, monkeypatch):
        repo["get_api_key"].return_value = None
        monkeypatch.delenv("GOOGLE_API_KEY", raising=False)

        with pytest.raises(AppError) as exc_info:
            await service.translate_message(message_id=3, user_id=USER_ID)

        assert exc_info.value.code == ErrorCode.API_KEY_REQUIRED
        full_translation["invoke"].assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("text", [None, "", "   \n"])
    async def test_blank_response_raises(self, repo, full_translation, model_call_factory, text):
        full_translation["invoke"].return_value = model_call_factory(text)

        with pytest.raises(EmptyResponseError) as exc_info:
            await service.translate_message(message_id=3, user_id=USER_ID)

        assert exc_info.value.message == "Translation failed: No response"
        full_translation["save"].assert_not_awaited()
        full_translation["log_usage"].assert_not_awaited()

    @pytest.mark.asyncio
    async def test_provider_error_wrapped(self, repo, full_translation):
        full_translation["invoke"].side_effect = RuntimeError("quota exceeded")

        with pytest.raises(TranslationFailedError) as exc_info:
            await service.translate_message(message_id=3, user_id=USER_ID)

        assert exc_info.value.message == "Translation failed: quota exceeded"
        full_translation["save"].assert_not_awaited()

    @pytest.mark.asyncio
    async def test_save_failure_wrapped(self, repo, full_translation):
        full_translation["save"].side_effect = RuntimeError("db down")

        with pytest.raises(TranslationFailedError, match="db down"):
            await service.translate_message(message_id=3, user_id=USER_ID)


class TestReadOperations:
    """Tests for stored translation reads and alignment."""

    @pytest.mark.asyncio
    async def test_get_message_translations(self, repo):
        repo["get_translation"].return_value = MessageTranslation(message_id=3, translation="Hi")
        repo["list_words"].return_value = [WordTranslation(original_word="a", translation="b")]

        response = await service.get_message_translations(message_id=3, user_id=USER_ID)

        assert response.translation == "Hi"
        assert len(response.word_translations) == 1

    @pytest.mark.asyncio
    async def test_get_translations_for_messages(self, repo):
        repo["list_translations"].return_value = [
            MessageTranslation(message_id=1, translation="One"),
            MessageTranslation(message_id=2, translation="Two"),
        ]

        result = await service.get_translations_for_messages(message_ids=[1, 2, 3])

        assert result == {1: "One", 2: "Two"}

    @pytest.mark.asyncio
    async def test_get_translations_for_no_ids(self, repo):
        assert await service.get_translations_for_messages(message_ids=[]) == {}
        repo["list_translations"].assert_not_awaited()

    @pytest.mark.asyncio
    async def test_aligned_message_flags_saved_words(self, repo, hello_world_words):
        repo["list_words"].return_value = hello_world_words
        match = SavedWordMatch(original_word="你好", saved_word_id=11, translation="hello")

        with patch(
            f"{MODULE}.find_vocabulary_matches", new=AsyncMock(return_value={"你好": match})
        ) as find_matches:
            response = await service.get_aligned_message(message_id=3, user_id=USER_ID)

        find_matches.assert_awaited_once_with(user_id=USER_ID, words=["你好", "世界"])
        assert [span.text for span in response.spans] == ["你好", "，", "世界", "！"]
        assert response.spans[0].saved_word_match.saved_word_id == 11
        assert response.spans[2].saved_word_match is None

    @pytest.mark.asyncio
    async def test_aligned_message_without_words(self, repo):
        with patch(f"{MODULE}.find_vocabulary_matches", new_callable=AsyncMock) as find_matches:
            response = await service.get_aligned_message(message_id=3, user_id=USER_ID)

        find_matches.assert_not_awaited()
        assert [span.text for span in response.spans] == ["你好，世界！"]
