"""
Translation Strategies

Two interchangeable ways of producing a full translation plus word
translations for a message, selected by the message's role.

ContextAwareTranslationStrategy
    For assistant messages. Sends the message (and any prior turns) to the
    model in JSON mode, validates the result and persists it: word rows
    are replaced wholesale, then the full translation is overwritten.

OnDemandTranslationStrategy
    For user messages (and any other role). Delegates to
    ``tokenize_and_translate_words``, reads the stored rows back and, when
    no full translation is stored, derives one from the word translations.

Neither strategy retries. No guard exists against two concurrent calls
for the same message; both run to completion and the last write wins.
"""

# Standard library
import logging
from typing import Optional, Protocol, Union, runtime_checkable

# Local application
from message_translation.errors import (
    NoTranslationAvailableError,
    TranslationError,
    TranslationErrorKind,
    TranslationFailedError,
)
from message_translation.events import EventSink, emit
from message_translation.model_client import invoke_model
from message_translation.prompts import (
    WORD_TRANSLATION_SYSTEM_PROMPT,
    build_word_translation_prompt,
)
from message_translation.repository import (
    get_message_translation as repo_get_message_translation,
    list_word_translations as repo_list_word_translations,
    replace_word_translations as repo_replace_word_translations,
    save_message_translation as repo_save_message_translation,
)
from message_translation.response_parser import parse_word_translation_response
from message_translation.schemas import (
    MessageRole,
    TranslationContext,
    TranslationResult,
)
from message_translation.sentence_splitter import attach_sentence_context
from message_translation.usage_log import log_model_usage
from message_translation.word_translation_service import (
    derive_full_translation,
    tokenize_and_translate_words,
)


@runtime_checkable
class TranslationStrategy(Protocol):
    """Produces and persists translations for one message."""

    async def translate_with_words(
        self,
        message_id: int,
        message_content: str,
        api_key: str,
        context: Optional[TranslationContext] = None,
    ) -> TranslationResult:
        """Translate a message; raises a TranslationError on failure."""


def _failure_level(error: TranslationError) -> int:
    if error.kind is TranslationErrorKind.NO_TRANSLATION_AVAILABLE:
        return logging.WARNING
    return logging.ERROR


class ContextAwareTranslationStrategy:
    """Translates with conversation history through a single JSON model call."""

    def __init__(
        self,
        *,
        invoke=invoke_model,
        log_usage=log_model_usage,
        replace_words=repo_replace_word_translations,
        save_translation=repo_save_message_translation,
        event_sink: Optional[EventSink] = None,
    ) -> None:
        self._invoke = invoke
        self._log_usage = log_usage
        self._replace_words = replace_words
        self._save_translation = save_translation
        self._event_sink = event_sink

    async def translate_with_words(
        self,
        message_id: int,
        message_content: str,
        api_key: str,
        context: Optional[TranslationContext] = None,
    ) -> TranslationResult:
        """
        Translates a message using prior turns to resolve meaning.

        Raises:
            EmptyResponseError: Model returned no text.
            InvalidJsonError: Model text is not valid JSON.
            MissingFieldError: JSON lacks ``fullTranslation``.
            TranslationFailedError: Provider or persistence failure.
        """
        context = context or TranslationContext(message_role=MessageRole.ASSISTANT)
        emit(
            self._event_sink,
            "context_aware.started",
            message_id,
            history_turns=len(context.conversation_history),
        )
        try:
            result = await self._translate(message_id, message_content, api_key, context)
        except TranslationError as e:
            emit(
                self._event_sink,
                "context_aware.failed",
                message_id,
                level=_failure_level(e),
                kind=e.kind.value,
                error=e.message,
            )
            raise

        emit(
            self._event_sink,
            "context_aware.completed",
            message_id,
            level=logging.INFO,
            words=len(result.word_translations),
        )
        return result

    async def _translate(
        self,
        message_id: int,
        message_content: str,
        api_key: str,
        context: TranslationContext,
    ) -> TranslationResult:
        prompt = build_word_translation_prompt(
            message_content, context.conversation_history
        )

        try:
            call = await self._invoke(
                prompt, system_prompt=WORD_TRANSLATION_SYSTEM_PROMPT, api_key=api_key
            )
        except Exception as e:  # noqa: BLE001
            raise TranslationFailedError(e) from e

        parsed = parse_word_translation_response(call.text)
        emit(
            self._event_sink,
            "context_aware.parsed",
            message_id,
            words=len(parsed.words),
            dropped=parsed.dropped,
        )

        try:
            await self._log_usage(
                context.user_id, call.request, call.response, agent_id=context.agent_id
            )
        except Exception as e:  # noqa: BLE001
            emit(
                self._event_sink,
                "context_aware.usage_log_failed",
                message_id,
                level=logging.WARNING,
                error=str(e),
            )

        word_translations = attach_sentence_context(message_content, parsed.words)
        try:
            await self._replace_words(
                message_id=message_id, word_translations=word_translations
            )
            await self._save_translation(
                message_id=message_id, translation=parsed.full_translation
            )
        except Exception as e:  # noqa: BLE001
            raise TranslationFailedError(e) from e

        emit(self._event_sink, "context_aware.persisted", message_id)
        return TranslationResult(
            translation=parsed.full_translation, word_translations=word_translations
        )


class OnDemandTranslationStrategy:
    """Reuses the word translation routine; derives the full translation if needed."""

    def __init__(
        self,
        *,
        translate_words=tokenize_and_translate_words,
        list_words=repo_list_word_translations,
        get_translation=repo_get_message_translation,
        event_sink: Optional[EventSink] = None,
    ) -> None:
        self._translate_words = translate_words
        self._list_words = list_words
        self._get_translation = get_translation
        self._event_sink = event_sink

    async def translate_with_words(
        self,
        message_id: int,
        message_content: str,
        api_key: str,
        context: Optional[TranslationContext] = None,
    ) -> TranslationResult:
        """
        Translates a message without conversation context.

        A stored full translation is always returned as-is; a derived one is
        returned but not stored.

        Raises:
            NoTranslationAvailableError: Nothing stored and nothing to derive.
            TranslationError: Propagated from the word translation routine.
        """
        user_id = context.user_id if context else None
        agent_id = context.agent_id if context else None
        emit(self._event_sink, "on_demand.started", message_id)

        try:
            result = await self._translate(message_id, message_content, api_key, user_id, agent_id)
        except TranslationError as e:
            emit(
                self._event_sink,
                "on_demand.failed",
                message_id,
                level=_failure_level(e),
                kind=e.kind.value,
                error=e.message,
            )
            raise

        emit(
            self._event_sink,
            "on_demand.completed",
            message_id,
            level=logging.INFO,
            words=len(result.word_translations),
        )
        return result

    async def _translate(
        self,
        message_id: int,
        message_content: str,
        api_key: str,
        user_id: Optional[str],
        agent_id: Optional[int],
    ) -> TranslationResult:
        try:
            await self._translate_words(
                message_id, message_content, api_key, user_id, agent_id
            )
            word_translations = await self._list_words(message_id=message_id)
            existing = await self._get_translation(message_id=message_id)
        except TranslationError:
            raise
        except Exception as e:  # noqa: BLE001
            raise TranslationFailedError(e) from e

        if existing and existing.translation:
            emit(self._event_sink, "on_demand.reused_translation", message_id)
            return TranslationResult(
                translation=existing.translation, word_translations=word_translations
            )

        derived = derive_full_translation(word_translations)
        if not derived:
            raise NoTranslationAvailableError(message_id)

        emit(self._event_sink, "on_demand.derived_translation", message_id)
        return TranslationResult(translation=derived, word_translations=word_translations)


_CONTEXT_AWARE = ContextAwareTranslationStrategy()
_ON_DEMAND = OnDemandTranslationStrategy()


def get_strategy(role: Union[MessageRole, str]) -> TranslationStrategy:
    """
    Maps a message role to its strategy.

    ``assistant`` → context-aware; ``user``, ``system`` and anything else →
    on-demand.
    """
    if role == MessageRole.ASSISTANT:
        return _CONTEXT_AWARE
    return _ON_DEMAND
