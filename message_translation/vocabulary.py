"""Saved vocabulary lookup used to flag aligned words the user already saved."""

from __future__ import annotations

import logging
from typing import Iterable

from message_translation.repository import list_saved_words as repo_list_saved_words
from message_translation.schemas import SavedWordMatch

logger = logging.getLogger(__name__)


async def find_vocabulary_matches(
    *, user_id: str, words: Iterable[str]
) -> dict[str, SavedWordMatch]:
    """
    Matches words against the user's saved vocabulary, ignoring case.

    Returns:
        Saved entries keyed by lowercased word. When several saved entries
        share a lowercased form the oldest wins.
    """
    wanted = {word.lower() for word in words if word}
    if not wanted:
        return {}

    matches: dict[str, SavedWordMatch] = {}
    for row in await repo_list_saved_words(user_id=user_id):
        key = (row.get("original_word") or "").lower()
        if key not in wanted or key in matches:
            continue
        matches[key] = SavedWordMatch(
            original_word=row["original_word"],
            saved_word_id=row["id"],
            translation=row.get("translation") or "",
            pinyin=row.get("pinyin"),
        )

    logger.debug(f"Found {len(matches)} saved word matches for user {user_id}")
    return matches
