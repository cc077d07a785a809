"""
Model Response Parser

Validates the JSON object returned by the word translation prompt.

Parsing is strict about the envelope (text present, valid JSON,
``fullTranslation`` present) and lenient about individual word entries:
an entry missing ``originalWord`` or ``translation`` is dropped so one bad
token never fails the whole message.
"""

# Standard library
import json
import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional

# Local application
from message_translation.errors import (
    EmptyResponseError,
    InvalidJsonError,
    MissingFieldError,
)
from message_translation.schemas import WordTranslation

# Configure logging
logger = logging.getLogger(__name__)


@dataclass
class ParsedTranslation:
    """Validated content of a word translation response."""

    full_translation: Optional[str]
    words: List[WordTranslation] = field(default_factory=list)
    dropped: int = 0


def is_valid_word_entry(entry: Any) -> bool:
    """True when an entry carries non-empty string originalWord and translation."""
    if not isinstance(entry, dict):
        return False
    original = entry.get("originalWord")
    translation = entry.get("translation")
    return (
        isinstance(original, str)
        and isinstance(translation, str)
        and bool(original)
        and bool(translation)
    )


def filter_word_entries(entries: Any) -> tuple[List[WordTranslation], int]:
    """
    Keeps valid word entries, in order.

    Returns:
        The accepted words and the number of entries dropped.
    """
    if not isinstance(entries, list):
        return [], 0
    accepted = [
        WordTranslation(original_word=e["originalWord"], translation=e["translation"])
        for e in entries
        if is_valid_word_entry(e)
    ]
    return accepted, len(entries) - len(accepted)


def _load_object(response_text: Optional[str]) -> dict:
    """
    Decodes the response text into a mapping.

    Valid JSON that is not an object (a list, string or number) decodes to
    an empty mapping, so field checks report it as missing fields.
    """
    if response_text is None or not response_text.strip():
        raise EmptyResponseError()
    try:
        parsed = json.loads(response_text.strip())
    except json.JSONDecodeError as exc:
        raise InvalidJsonError() from exc
    if not isinstance(parsed, dict):
        logger.debug(f"Model returned JSON {type(parsed).__name__}, expected object")
        return {}
    return parsed


def parse_word_translation_response(
    response_text: Optional[str], *, require_full_translation: bool = True
) -> ParsedTranslation:
    """
    Parses a word translation response.

    Args:
        response_text: Raw model output.
        require_full_translation: When False a missing ``fullTranslation``
            yields ``None`` instead of raising.

    Raises:
        EmptyResponseError: No text returned.
        InvalidJsonError: Text is not valid JSON.
        MissingFieldError: ``fullTranslation`` absent and required.
    """
    parsed = _load_object(response_text)

    full_translation = parsed.get("fullTranslation")
    if not isinstance(full_translation, str) or not full_translation:
        if require_full_translation:
            raise MissingFieldError("fullTranslation")
        full_translation = None

    words, dropped = filter_word_entries(parsed.get("words") or [])
    if dropped:
        logger.debug(f"Dropped {dropped} malformed word entries from model response")

    return ParsedTranslation(full_translation=full_translation, words=words, dropped=dropped)


def parse_word_list_response(response_text: Optional[str]) -> List[str]:
    """
    Parses a word-segmentation response into the list of words.

    Used where segmentation is optional, so any problem yields an empty list.
    """
    try:
        parsed = _load_object(response_text)
    except (EmptyResponseError, InvalidJsonError):
        return []

    entries = parsed.get("words") or []
    if not isinstance(entries, list):
        return []
    return [
        e["originalWord"]
        for e in entries
        if isinstance(e, dict)
        and isinstance(e.get("originalWord"), str)
        and e["originalWord"].strip()
    ]
