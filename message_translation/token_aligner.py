"""
Token Aligner

Maps word translations back onto the original message text so a client can
highlight each translated word in place. Works for scripts without word
boundaries (Chinese, Japanese) because matching is done on raw substrings.

Algorithm
---------
Greedy longest match, left to right:

1. Candidates are sorted by length, longest first. The sort is stable, so
   equal-length candidates keep their list order.
2. At each cursor position the first candidate whose exact (case-sensitive)
   text starts there is emitted as an aligned span and the cursor jumps past
   it.
3. Otherwise a one-character unaligned span is emitted.

Joining every span's ``text`` always reproduces the input exactly.
"""

# Standard library
from typing import Iterable, List, Mapping, Optional

# Local application
from message_translation.schemas import SavedWordMatch, Span, WordTranslation


def align_words(
    text: str,
    word_translations: Iterable[WordTranslation],
    saved_word_matches: Optional[Mapping[str, SavedWordMatch]] = None,
) -> List[Span]:
    """
    Partitions text into aligned and unaligned spans.

    Args:
        text: The original message content.
        word_translations: Candidate words with their translations.
        saved_word_matches: Saved vocabulary keyed by lowercased word. Looked
            up case-insensitively for every aligned span.

    Returns:
        Ordered spans covering the whole text.
    """
    candidates = sorted(
        (wt for wt in word_translations if wt.original_word),
        key=lambda wt: len(wt.original_word),
        reverse=True,
    )

    if not candidates:
        return [Span(text=text)] if text else []

    spans: List[Span] = []
    i = 0
    text_length = len(text)

    while i < text_length:
        match = next(
            (wt for wt in candidates if text.startswith(wt.original_word, i)),
            None,
        )
        if match is None:
            spans.append(Span(text=text[i]))
            i += 1
            continue

        saved = None
        if saved_word_matches:
            saved = saved_word_matches.get(match.original_word.lower())

        spans.append(
            Span(
                text=match.original_word,
                translation=match.translation,
                sentence_context=match.sentence_context,
                saved_word_match=saved,
            )
        )
        i += len(match.original_word)

    return spans


def collect_aligned_words(spans: Iterable[Span]) -> List[str]:
    """Returns the distinct aligned words in first-seen order."""
    seen: dict[str, None] = {}
    for span in spans:
        if span.translation is not None:
            seen.setdefault(span.text, None)
    return list(seen)
