"""
Sentence Splitter

Splits message text into sentence-like fragments so each word translation
can carry the sentence it appeared in. Used only for that context; the
token aligner never looks at sentences.
"""

# Standard library
import re
from typing import Iterable, List

# Local application
from message_translation.schemas import WordTranslation

# Terminator runs (ASCII and full-width CJK) plus trailing whitespace. The
# capture group keeps the terminator runs as fragments of their own.
_SENTENCE_BOUNDARY = re.compile(r"([.!?。！？]+\s*)")


def split_into_sentences(text: str) -> List[str]:
    """
    Splits text on runs of sentence-ending punctuation.

    Empty and whitespace-only fragments are discarded. Fragments are
    returned untrimmed, in text order.

    Args:
        text: Raw message content, possibly mixed-script.

    Returns:
        Sentence fragments and terminator runs.

    Example:
        >>> split_into_sentences("你好。再见！")
        ['你好', '。', '再见', '！']
    """
    if not text:
        return []
    return [part for part in _SENTENCE_BOUNDARY.split(text) if part.strip()]


def build_word_to_sentence_map(
    sentences: List[str], words: Iterable[str]
) -> dict[str, str]:
    """
    Maps each word to the first sentence containing it verbatim.

    A word found in several sentences keeps the first; words found in none
    are left out of the map.
    """
    word_to_sentence: dict[str, str] = {}
    for word in words:
        if not word or word in word_to_sentence:
            continue
        for sentence in sentences:
            if word in sentence:
                word_to_sentence[word] = sentence.strip()
                break
    return word_to_sentence


def attach_sentence_context(
    message_content: str, word_translations: List[WordTranslation]
) -> List[WordTranslation]:
    """Returns copies of the words with their first containing sentence attached."""
    sentences = split_into_sentences(message_content)
    word_to_sentence = build_word_to_sentence_map(
        sentences, (wt.original_word for wt in word_translations)
    )
    return [
        wt.model_copy(update={"sentence_context": word_to_sentence.get(wt.original_word)})
        for wt in word_translations
    ]
