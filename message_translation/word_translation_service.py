"""
Word Translation Service

Lower-level routine that tokenizes a message and translates each token,
persisting the results itself. The on-demand strategy calls
``tokenize_and_translate_words`` and then reads the stored rows back.

Flow of ``tokenize_and_translate_words``
----------------------------------------
1. Stored words that already carry a translation → nothing to do.
2. Stored words without translations (from ``parse_words_in_message``)
   → translate exactly those tokens.
3. No stored words → let the model segment and translate in one call.

In cases 2 and 3 the word rows are replaced wholesale, each carrying the
first sentence it occurs in. A full translation returned by the model is
saved; otherwise one is derived from the word translations if the message
has none yet.
"""

# Standard library
import logging
from typing import List, Optional

# Local application
from message_translation.errors import TranslationError, TranslationFailedError
from message_translation.model_client import invoke_model
from message_translation.prompts import (
    WORD_PARSING_SYSTEM_PROMPT,
    WORD_TRANSLATION_SYSTEM_PROMPT,
    build_pre_parsed_prompt,
    build_word_parsing_prompt,
    build_word_translation_prompt,
)
from message_translation.repository import (
    create_word_translations as repo_create_word_translations,
    get_message_translation as repo_get_message_translation,
    list_word_translations as repo_list_word_translations,
    replace_word_translations as repo_replace_word_translations,
    save_message_translation as repo_save_message_translation,
    word_translations_exist as repo_word_translations_exist,
)
from message_translation.response_parser import (
    ParsedTranslation,
    parse_word_list_response,
    parse_word_translation_response,
)
from message_translation.schemas import WordTranslation
from message_translation.sentence_splitter import attach_sentence_context
from message_translation.usage_log import log_model_usage

# Configure logging
logger = logging.getLogger(__name__)


def derive_full_translation(word_translations: List[WordTranslation]) -> str:
    """Joins the non-blank word translations with single spaces, in order."""
    return " ".join(
        wt.translation for wt in word_translations if wt.translation and wt.translation.strip()
    )


async def _request_translations(
    prompt: str,
    api_key: str,
    user_id: Optional[str],
    agent_id: Optional[int],
) -> ParsedTranslation:
    try:
        call = await invoke_model(
            prompt, system_prompt=WORD_TRANSLATION_SYSTEM_PROMPT, api_key=api_key
        )
        parsed = parse_word_translation_response(call.text, require_full_translation=False)
    except TranslationError:
        raise
    except Exception as e:  # noqa: BLE001
        raise TranslationFailedError(e) from e

    await log_model_usage(user_id, call.request, call.response, agent_id=agent_id)
    return parsed


async def tokenize_and_translate_words(
    message_id: int,
    message_content: str,
    api_key: str,
    user_id: Optional[str] = None,
    agent_id: Optional[int] = None,
) -> None:
    """
    Tokenizes and translates a message, persisting word and full translations.

    Args:
        message_id: Message to translate.
        message_content: Message text.
        api_key: Model provider credential.
        user_id: Forwarded to usage logging.
        agent_id: Forwarded to usage logging.

    Raises:
        TranslationError: On empty/invalid model output or provider failure.
    """
    existing = await repo_list_word_translations(message_id=message_id)
    if any(wt.translation.strip() for wt in existing):
        logger.debug(f"Message {message_id} already has word translations")
        return

    if existing:
        logger.info(f"Translating {len(existing)} pre-parsed words for message {message_id}")
        prompt = build_pre_parsed_prompt(
            message_content, [wt.original_word for wt in existing]
        )
    else:
        logger.info(f"Parsing and translating words for message {message_id}")
        prompt = build_word_translation_prompt(message_content)

    parsed = await _request_translations(prompt, api_key, user_id, agent_id)

    try:
        word_translations = attach_sentence_context(message_content, parsed.words)
        await repo_replace_word_translations(
            message_id=message_id, word_translations=word_translations
        )

        if parsed.full_translation:
            await repo_save_message_translation(
                message_id=message_id, translation=parsed.full_translation
            )
            return

        if await repo_get_message_translation(message_id=message_id):
            return

        derived = derive_full_translation(word_translations)
        if derived:
            await repo_save_message_translation(message_id=message_id, translation=derived)
    except TranslationError:
        raise
    except Exception as e:  # noqa: BLE001
        raise TranslationFailedError(e) from e


async def parse_words_in_message(
    message_id: int,
    message_content: str,
    api_key: str,
) -> None:
    """
    Stores a message's tokens without translations, for early highlighting.

    Skipped when the message already has word rows. Segmentation is
    optional: any model failure leaves the message without words.
    """
    if await repo_word_translations_exist(message_id=message_id):
        return

    try:
        call = await invoke_model(
            build_word_parsing_prompt(message_content),
            system_prompt=WORD_PARSING_SYSTEM_PROMPT,
            api_key=api_key,
            purpose="word_parsing",
        )
    except Exception as e:  # noqa: BLE001
        logger.warning(f"Word parsing failed for message {message_id}: {e}")
        return

    words = parse_word_list_response(call.text)
    if not words:
        logger.debug(f"No words parsed for message {message_id}")
        return

    parsed_words = attach_sentence_context(
        message_content, [WordTranslation(original_word=w) for w in words]
    )
    await repo_create_word_translations(message_id=message_id, word_translations=parsed_words)
    logger.info(f"Stored {len(parsed_words)} parsed words for message {message_id}")
