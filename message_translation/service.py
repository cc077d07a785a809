"""Service layer for message translation APIs."""

from __future__ import annotations

import logging
import os

from core.errors import AppError, ErrorCode
from message_translation.errors import EmptyResponseError, TranslationFailedError
from message_translation.model_client import invoke_model
from message_translation.prompts import (
    TRANSLATION_SYSTEM_PROMPT,
    build_translation_prompt,
)
from message_translation.repository import (
    get_api_key as repo_get_api_key,
    get_conversation as repo_get_conversation,
    get_message as repo_get_message,
    get_message_translation as repo_get_message_translation,
    list_message_translations as repo_list_message_translations,
    list_messages as repo_list_messages,
    list_word_translations as repo_list_word_translations,
    save_message_translation as repo_save_message_translation,
)
from message_translation.schemas import (
    AlignedMessageResponse,
    ConversationTurn,
    MessageRole,
    MessageTranslationResponse,
    MessageTranslationsResponse,
    TranslationContext,
    TranslationResult,
    WordTranslation,
)
from message_translation.strategies import get_strategy
from message_translation.token_aligner import align_words, collect_aligned_words
from message_translation.usage_log import log_model_usage
from message_translation.vocabulary import find_vocabulary_matches

logger = logging.getLogger(__name__)

# Prior turns sent along with a message being translated
TRANSLATION_CONTEXT_MESSAGES = 10

MODEL_PROVIDER = "google"


async def resolve_api_key(*, user_id: str) -> str:
    """Returns the user's provider key, falling back to GOOGLE_API_KEY."""
    api_key = await repo_get_api_key(user_id=user_id, provider=MODEL_PROVIDER)
    if not api_key:
        api_key = os.getenv("GOOGLE_API_KEY")
    if not api_key:
        logger.warning(f"No API key found for user {user_id}")
        raise AppError(
            code=ErrorCode.API_KEY_REQUIRED,
            message="An API key for the model provider is required",
            status_code=400,
        )
    return api_key


async def _load_owned_message(*, message_id: int, user_id: str) -> tuple[dict, dict]:
    message = await repo_get_message(message_id=message_id)
    if not message:
        logger.warning(f"Message {message_id} not found")
        raise AppError(
            code=ErrorCode.NOT_FOUND,
            message=f"Message {message_id} not found",
            status_code=404,
        )

    conversation = await repo_get_conversation(
        conversation_id=str(message["conversation_id"]), user_id=user_id
    )
    if not conversation:
        logger.warning(
            f"User {user_id} does not have access to conversation {message['conversation_id']}"
        )
        raise AppError(
            code=ErrorCode.NOT_FOUND,
            message="Conversation not found",
            status_code=404,
        )
    return message, conversation


async def get_context_messages(
    *, conversation_id: str, message_id: int
) -> list[ConversationTurn]:
    """Returns up to TRANSLATION_CONTEXT_MESSAGES turns preceding the message."""
    rows = await repo_list_messages(conversation_id=conversation_id)
    target_index = next(
        (index for index, row in enumerate(rows) if row["id"] == message_id), -1
    )
    if target_index <= 0:
        return []

    start = max(0, target_index - TRANSLATION_CONTEXT_MESSAGES)
    return [
        ConversationTurn(role=row["role"], content=row["content"])
        for row in rows[start:target_index]
    ]


async def translate_message(*, message_id: int, user_id: str) -> MessageTranslationResponse:
    """
    Translates a whole message without word-level output.

    A stored full translation is returned without a model call. Otherwise
    the message is translated with up to TRANSLATION_CONTEXT_MESSAGES prior
    turns, whatever its role, and the result is stored.

    Raises:
        AppError: 404 if the message is not the user's, 400 without an API key.
        EmptyResponseError: Model returned no text.
        TranslationFailedError: Provider or persistence failure.
    """
    message, conversation = await _load_owned_message(
        message_id=message_id, user_id=user_id
    )

    existing = await repo_get_message_translation(message_id=message_id)
    if existing and existing.translation:
        logger.debug(f"Translation already exists for message {message_id}")
        return MessageTranslationResponse(translation=existing.translation)

    history = await get_context_messages(
        conversation_id=str(message["conversation_id"]), message_id=message_id
    )
    api_key = await resolve_api_key(user_id=user_id)

    logger.info(f"Translating message {message_id} for user {user_id}")
    prompt = build_translation_prompt(message["content"], history)
    try:
        call = await invoke_model(
            prompt,
            system_prompt=TRANSLATION_SYSTEM_PROMPT,
            api_key=api_key,
            purpose="translation",
        )
    except Exception as e:  # noqa: BLE001
        logger.error(f"Translation failed for message {message_id}: {e}")
        raise TranslationFailedError(e, operation="Translation") from e

    translation = (call.text or "").strip()
    if not translation:
        logger.error(f"No translation returned for message {message_id}")
        raise EmptyResponseError("Translation")

    await log_model_usage(
        user_id, call.request, call.response, agent_id=conversation.get("agent_id")
    )

    try:
        await repo_save_message_translation(message_id=message_id, translation=translation)
    except Exception as e:  # noqa: BLE001
        raise TranslationFailedError(e, operation="Translation") from e

    return MessageTranslationResponse(translation=translation)


def _has_translated_words(word_translations: list[WordTranslation]) -> bool:
    return any(wt.translation.strip() for wt in word_translations)


async def translate_message_with_words(
    *, message_id: int, user_id: str
) -> TranslationResult:
    """
    Translates a message with word-level translations.

    Stored results are returned without a model call when both the full
    translation and translated words exist. Otherwise the strategy for the
    message's role runs; only assistant messages get conversation history.
    """
    message, conversation = await _load_owned_message(
        message_id=message_id, user_id=user_id
    )

    existing = await repo_get_message_translation(message_id=message_id)
    existing_words = await repo_list_word_translations(message_id=message_id)
    if existing and _has_translated_words(existing_words):
        logger.debug(f"Returning stored translations for message {message_id}")
        return TranslationResult(
            translation=existing.translation, word_translations=existing_words
        )

    api_key = await resolve_api_key(user_id=user_id)

    role = message.get("role") or MessageRole.USER.value
    history: list[ConversationTurn] = []
    if role == MessageRole.ASSISTANT:
        history = await get_context_messages(
            conversation_id=str(message["conversation_id"]), message_id=message_id
        )

    try:
        message_role = MessageRole(role)
    except ValueError:
        message_role = MessageRole.SYSTEM

    context = TranslationContext(
        conversation_history=history,
        message_role=message_role,
        user_id=user_id,
        agent_id=conversation.get("agent_id"),
    )

    logger.info(f"Translating message {message_id} ({role}) for user {user_id}")
    strategy = get_strategy(role)
    return await strategy.translate_with_words(
        message_id, message["content"], api_key, context
    )


async def get_word_translations(
    *, message_id: int, user_id: str
) -> list[WordTranslation]:
    await _load_owned_message(message_id=message_id, user_id=user_id)
    return await repo_list_word_translations(message_id=message_id)


async def get_message_translations(
    *, message_id: int, user_id: str
) -> MessageTranslationsResponse:
    """Returns the stored full translation (if any) and word translations."""
    await _load_owned_message(message_id=message_id, user_id=user_id)
    row = await repo_get_message_translation(message_id=message_id)
    words = await repo_list_word_translations(message_id=message_id)
    return MessageTranslationsResponse(
        translation=row.translation if row else None,
        word_translations=words,
    )


async def get_translations_for_messages(*, message_ids: list[int]) -> dict[int, str]:
    """Returns ``{message_id: translation}`` for messages that have one."""
    if not message_ids:
        return {}
    rows = await repo_list_message_translations(message_ids=message_ids)
    return {row.message_id: row.translation for row in rows}


async def get_aligned_message(
    *, message_id: int, user_id: str
) -> AlignedMessageResponse:
    """Partitions a message into spans, flagging words the user has saved."""
    message, _ = await _load_owned_message(message_id=message_id, user_id=user_id)
    words = await repo_list_word_translations(message_id=message_id)

    spans = align_words(message["content"], words)
    aligned_words = collect_aligned_words(spans)
    if aligned_words:
        matches = await find_vocabulary_matches(user_id=user_id, words=aligned_words)
        if matches:
            spans = align_words(message["content"], words, matches)

    return AlignedMessageResponse(message_id=message_id, spans=spans)
