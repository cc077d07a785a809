"""
Message Translation Router

API endpoints for word-level message translation and alignment.
"""

# Standard library
import logging
from typing import Dict

# Third-party
from fastapi import APIRouter, Depends, Query

# Local application
from core.auth import get_current_user_id
from message_translation.schemas import (
    AlignedMessageResponse,
    MessageTranslationResponse,
    MessageTranslationsResponse,
    TranslationResult,
    WordTranslationsResponse,
)
from message_translation.service import (
    get_aligned_message,
    get_message_translations,
    get_translations_for_messages,
    get_word_translations,
    translate_message,
    translate_message_with_words,
)

# Configure logging
logger = logging.getLogger(__name__)

router = APIRouter()


def _parse_message_ids(raw: str) -> list[int]:
    ids = []
    for part in raw.split(","):
        part = part.strip()
        if part.isascii() and part.isdecimal():
            ids.append(int(part))
    return ids


@router.post(
    "/{message_id}/translate",
    response_model=MessageTranslationResponse,
    response_model_by_alias=True,
)
async def translate(
    message_id: int,
    user_id: str = Depends(get_current_user_id),
) -> MessageTranslationResponse:
    """
    Translates a whole message, reusing a stored translation.

    Raises:
        AppError: 404 if the message is not the user's, 400 without an API
            key, 500 when the model gives no translation.
    """
    logger.info(f"Translating message {message_id} for user {user_id}")
    return await translate_message(message_id=message_id, user_id=user_id)


@router.post(
    "/{message_id}/translate-with-words",
    response_model=TranslationResult,
    response_model_by_alias=True,
)
async def translate_with_words(
    message_id: int,
    user_id: str = Depends(get_current_user_id),
) -> TranslationResult:
    """
    Translates a message and its individual words.

    Args:
        message_id: Message to translate.
        user_id: Authenticated user ID (injected).

    Returns:
        Full translation and word translations.

    Raises:
        AppError: 404 if the message is not the user's, 400 without an API
            key, 5xx/422 for translation failures.
    """
    logger.info(f"Translating message {message_id} with words for user {user_id}")
    return await translate_message_with_words(message_id=message_id, user_id=user_id)


@router.get("/translations", response_model=Dict[int, str])
async def list_translations(
    message_ids: str = Query(..., description="Comma separated message ids"),
    user_id: str = Depends(get_current_user_id),
) -> Dict[int, str]:
    """Returns stored full translations for several messages."""
    logger.debug(f"Getting translations for message_ids: {message_ids}")
    return await get_translations_for_messages(message_ids=_parse_message_ids(message_ids))


@router.get(
    "/{message_id}/word-translations",
    response_model=WordTranslationsResponse,
    response_model_by_alias=True,
)
async def read_word_translations(
    message_id: int,
    user_id: str = Depends(get_current_user_id),
) -> WordTranslationsResponse:
    """Returns a message's word translations, including untranslated words."""
    words = await get_word_translations(message_id=message_id, user_id=user_id)
    return WordTranslationsResponse(word_translations=words)


@router.get(
    "/{message_id}/translations",
    response_model=MessageTranslationsResponse,
    response_model_by_alias=True,
)
async def read_message_translations(
    message_id: int,
    user_id: str = Depends(get_current_user_id),
) -> MessageTranslationsResponse:
    """Returns the stored full translation and word translations."""
    return await get_message_translations(message_id=message_id, user_id=user_id)


@router.get(
    "/{message_id}/aligned",
    response_model=AlignedMessageResponse,
    response_model_by_alias=True,
)
async def read_aligned_message(
    message_id: int,
    user_id: str = Depends(get_current_user_id),
) -> AlignedMessageResponse:
    """Returns the message text partitioned into highlightable spans."""
    return await get_aligned_message(message_id=message_id, user_id=user_id)
