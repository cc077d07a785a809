"""
Message Translation Schemas

Pydantic models for word-level and full-message translations. Fields are
snake_case in Python and camelCase on the wire (``originalWord``,
``wordTranslations``) to match the chat client.
"""

# Standard library
from datetime import datetime
from enum import Enum
from typing import List, Optional

# Third-party
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class MessageRole(str, Enum):
    """Author role of a chat message."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class WordTranslation(_CamelModel):
    """
    A single word/token of a message paired with its translation.

    Attributes:
        original_word: The token exactly as it appears in the message.
        translation: Target-language rendering; empty for parsed-only words.
        sentence_context: The sentence the token was first found in.
    """

    original_word: str
    translation: str = ""
    sentence_context: Optional[str] = None


class MessageTranslation(_CamelModel):
    """Full-message translation row."""

    message_id: int
    translation: str
    created_at: Optional[datetime] = None


class ConversationTurn(BaseModel):
    """A prior chat turn used as translation context."""

    role: str
    content: str


class TranslationContext(BaseModel):
    """
    Ephemeral input for a strategy; never persisted.

    Attributes:
        conversation_history: Prior turns, oldest first.
        message_role: Role of the message being translated.
        user_id: Owner, forwarded to usage logging.
        agent_id: Agent of the conversation, forwarded to usage logging.
    """

    conversation_history: List[ConversationTurn] = Field(default_factory=list)
    message_role: MessageRole = MessageRole.USER
    user_id: Optional[str] = None
    agent_id: Optional[int] = None


class TranslationResult(_CamelModel):
    """Full translation plus the word translations that back it."""

    translation: str
    word_translations: List[WordTranslation] = Field(default_factory=list)


class SavedWordMatch(_CamelModel):
    """A user's saved vocabulary entry matched against an aligned word."""

    original_word: str
    saved_word_id: int
    translation: str
    pinyin: Optional[str] = None


class Span(_CamelModel):
    """
    One piece of an aligned message.

    Aligned spans carry a translation; unaligned spans are a single
    character with no translation.
    """

    text: str
    translation: Optional[str] = None
    sentence_context: Optional[str] = None
    saved_word_match: Optional[SavedWordMatch] = None


class WordTranslationsResponse(_CamelModel):
    """Response model for the word translations of a message."""

    word_translations: List[WordTranslation] = Field(default_factory=list)


class MessageTranslationResponse(_CamelModel):
    """Response model for a full-message translation."""

    translation: str


class MessageTranslationsResponse(_CamelModel):
    """Response model combining the stored full and word translations."""

    translation: Optional[str] = None
    word_translations: List[WordTranslation] = Field(default_factory=list)


class AlignedMessageResponse(_CamelModel):
    """Response model for a message partitioned into spans."""

    message_id: int
    spans: List[Span] = Field(default_factory=list)
