"""Prompt templates for full and word-level translation."""

from __future__ import annotations

from typing import Iterable

from message_translation.schemas import ConversationTurn

TRANSLATION_SYSTEM_PROMPT = (
    "You are a professional translator. Translate the given message to English, "
    "preserving context, tone, and meaning. Only return the translation, no "
    "additional text."
)

WORD_TRANSLATION_SYSTEM_PROMPT = (
    "You are a professional translator. Return only valid JSON objects."
)

WORD_PARSING_SYSTEM_PROMPT = (
    "You are a word parsing assistant. Return only valid JSON objects."
)

_TRANSLATION_TEMPLATE = """Translate the following message to English:
{message}

Translation:"""

_TRANSLATION_CONTEXT_TEMPLATE = """Translate the following message to English. Consider the conversation context to provide an accurate translation that preserves meaning and context.

Previous conversation:
{history}

Message to translate:
{message}

Translation:"""

_RESPONSE_FORMAT = """Return a JSON object with:
- "fullTranslation": string (the complete message translated into natural, fluent English)
- "words": array where each element has:
  - "originalWord": string (the word/token as it appears in the text)
  - "translation": string (English translation of the word in context)

Return ONLY the JSON object, no additional text."""

_WORD_TRANSLATION_TEMPLATE = """You are a professional translator. Analyze the following text and translate each word/token to English, considering the sentence context.

Text to translate:
{message}

For each word or token (handle languages without spaces like Chinese, Japanese, etc.), provide:
1. The original word/token as it appears in the text
2. Its English translation considering the sentence context

Also provide the full sentence translation in natural, fluent English.

Example format:
{{
  "fullTranslation": "Hello, world!",
  "words": [
    {{"originalWord": "你好", "translation": "hello"}},
    {{"originalWord": "世界", "translation": "world"}}
  ]
}}

""" + _RESPONSE_FORMAT.replace("{", "{{").replace("}", "}}")

_CONTEXT_TEMPLATE = """You are a professional translator. Analyze the following text and translate each word/token to English, considering both the sentence context and the conversation history.

Previous conversation:
{history}

Text to translate:
{message}

For each word or token (handle languages without spaces like Chinese, Japanese, etc.), provide:
1. The original word/token as it appears in the text
2. Its English translation considering the sentence context and conversation history

Also provide the full sentence translation in natural, fluent English.

""" + _RESPONSE_FORMAT.replace("{", "{{").replace("}", "}}")

_PRE_PARSED_TEMPLATE = """You are a professional translator. Translate the following pre-parsed words to English, considering the sentence context.

Text:
{message}

Words to translate:
{numbered_words}

For each word, provide:
1. The original word/token as provided
2. Its English translation considering the sentence context

Also provide the full sentence translation in natural, fluent English.

""" + _RESPONSE_FORMAT.replace("{", "{{").replace("}", "}}")

_WORD_PARSING_TEMPLATE = """Analyze the following text and identify all words/tokens, especially for languages without spaces (like Chinese, Japanese, etc.).

Text:
{message}

Return a JSON object with:
- "words": array where each element has:
  - "originalWord": string (the word/token as it appears in the text)

Example format:
{{"words": [{{"originalWord": "你好"}}, {{"originalWord": "世界"}}]}}

Return ONLY the JSON object, no additional text."""


def render_history(history: Iterable[ConversationTurn]) -> str:
    """Renders prior turns as ``role: content`` lines."""
    return "\n".join(f"{turn.role}: {turn.content}" for turn in history)


def build_translation_prompt(
    message: str, history: list[ConversationTurn] | None = None
) -> str:
    """Builds the plain-text full translation prompt, with history when given."""
    if not history:
        return _TRANSLATION_TEMPLATE.format(message=message)
    return _TRANSLATION_CONTEXT_TEMPLATE.format(
        history=render_history(history), message=message
    )


def build_word_translation_prompt(
    message: str, history: list[ConversationTurn] | None = None
) -> str:
    """
    Builds the word translation prompt.

    Without history the fixed template only varies by message text; with
    history the rendered turns are placed under "Previous conversation"
    ahead of the instruction and the text.
    """
    if not history:
        return _WORD_TRANSLATION_TEMPLATE.format(message=message)
    return _CONTEXT_TEMPLATE.format(history=render_history(history), message=message)


def build_pre_parsed_prompt(message: str, words: list[str]) -> str:
    numbered = "\n".join(f"{i}. {word}" for i, word in enumerate(words, start=1))
    return _PRE_PARSED_TEMPLATE.format(message=message, numbered_words=numbered)


def build_word_parsing_prompt(message: str) -> str:
    return _WORD_PARSING_TEMPLATE.format(message=message)
