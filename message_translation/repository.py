"""Persistence layer for message translation Supabase operations.

Word translations are always replaced wholesale: every row for the message
is deleted, then the new list is inserted. The two calls are not wrapped in
a transaction, so a reader can briefly observe zero rows mid-update.
"""

from __future__ import annotations

from fastapi.concurrency import run_in_threadpool
from postgrest.exceptions import APIError as PostgrestAPIError

from core.errors import AppError, ErrorCode
from message_translation.schemas import MessageTranslation, WordTranslation
from supabase_client import get_supabase

WORD_TRANSLATIONS_TABLE = "message_word_translations"
MESSAGE_TRANSLATIONS_TABLE = "message_translations"


def _get_client_or_raise():
    client = get_supabase()
    if not client:
        raise AppError(
            code=ErrorCode.DATABASE_ERROR,
            message="Database service unavailable",
            status_code=500,
        )
    return client


def _database_error(message: str, operation: str) -> AppError:
    return AppError(
        code=ErrorCode.DATABASE_ERROR,
        message=message,
        status_code=500,
        details={"operation": operation},
    )


def _row_to_word_translation(row: dict) -> WordTranslation:
    return WordTranslation(
        original_word=row["original_word"],
        translation=row.get("translation") or "",
        sentence_context=row.get("sentence_context"),
    )


def _row_to_message_translation(row: dict) -> MessageTranslation:
    return MessageTranslation(
        message_id=row["message_id"],
        translation=row.get("translation") or "",
        created_at=row.get("created_at"),
    )


# ---------------------------------------------------------------------------
# Messages, conversations, credentials
# ---------------------------------------------------------------------------


async def get_message(*, message_id: int) -> dict | None:
    """Returns a message row by id."""
    client = _get_client_or_raise()
    try:
        response = await run_in_threadpool(
            lambda: client.table("messages")
            .select("*")
            .eq("id", message_id)
            .limit(1)
            .execute()
        )
    except PostgrestAPIError as exc:
        raise _database_error("Failed to load message", "get_message") from exc
    return response.data[0] if response.data else None


async def get_conversation(*, conversation_id: str, user_id: str) -> dict | None:
    """Returns a conversation row if it belongs to the user."""
    client = _get_client_or_raise()
    try:
        response = await run_in_threadpool(
            lambda: client.table("conversations")
            .select("*")
            .eq("id", conversation_id)
            .eq("user_id", user_id)
            .limit(1)
            .execute()
        )
    except PostgrestAPIError as exc:
        raise _database_error("Failed to load conversation", "get_conversation") from exc
    return response.data[0] if response.data else None


async def list_messages(*, conversation_id: str) -> list[dict]:
    """Returns all messages in a conversation sorted by create time asc."""
    client = _get_client_or_raise()
    try:
        response = await run_in_threadpool(
            lambda: client.table("messages")
            .select("*")
            .eq("conversation_id", conversation_id)
            .order("created_at", desc=False)
            .execute()
        )
    except PostgrestAPIError as exc:
        raise _database_error(
            "Failed to load conversation messages", "list_messages"
        ) from exc
    return response.data or []


async def get_api_key(*, user_id: str, provider: str) -> str | None:
    """Returns the user's stored credential for a model provider."""
    client = _get_client_or_raise()
    try:
        response = await run_in_threadpool(
            lambda: client.table("api_credentials")
            .select("api_key")
            .eq("user_id", user_id)
            .eq("provider", provider)
            .limit(1)
            .execute()
        )
    except PostgrestAPIError as exc:
        raise _database_error("Failed to load API credentials", "get_api_key") from exc
    if not response.data:
        return None
    return response.data[0].get("api_key")


# ---------------------------------------------------------------------------
# Word translations
# ---------------------------------------------------------------------------


async def list_word_translations(*, message_id: int) -> list[WordTranslation]:
    """Returns a message's word translations in stored order."""
    client = _get_client_or_raise()
    try:
        response = await run_in_threadpool(
            lambda: client.table(WORD_TRANSLATIONS_TABLE)
            .select("*")
            .eq("message_id", message_id)
            .order("position", desc=False)
            .execute()
        )
    except PostgrestAPIError as exc:
        raise _database_error(
            "Failed to load word translations", "list_word_translations"
        ) from exc
    return [_row_to_word_translation(row) for row in response.data or []]


async def word_translations_exist(*, message_id: int) -> bool:
    """Whether any word row is stored for the message."""
    client = _get_client_or_raise()
    try:
        response = await run_in_threadpool(
            lambda: client.table(WORD_TRANSLATIONS_TABLE)
            .select("id")
            .eq("message_id", message_id)
            .limit(1)
            .execute()
        )
    except PostgrestAPIError as exc:
        raise _database_error(
            "Failed to check word translations", "word_translations_exist"
        ) from exc
    return bool(response.data)


async def delete_word_translations(*, message_id: int) -> None:
    """Deletes every word translation of a message."""
    client = _get_client_or_raise()
    try:
        await run_in_threadpool(
            lambda: client.table(WORD_TRANSLATIONS_TABLE)
            .delete()
            .eq("message_id", message_id)
            .execute()
        )
    except PostgrestAPIError as exc:
        raise _database_error(
            "Failed to delete word translations", "delete_word_translations"
        ) from exc


async def create_word_translations(
    *, message_id: int, word_translations: list[WordTranslation]
) -> None:
    """Inserts word translations, keeping list order in ``position``."""
    if not word_translations:
        return
    client = _get_client_or_raise()
    rows = [
        {
            "message_id": message_id,
            "position": position,
            "original_word": wt.original_word,
            "translation": wt.translation,
            "sentence_context": wt.sentence_context,
        }
        for position, wt in enumerate(word_translations)
    ]
    try:
        await run_in_threadpool(
            lambda: client.table(WORD_TRANSLATIONS_TABLE).insert(rows).execute()
        )
    except PostgrestAPIError as exc:
        raise _database_error(
            "Failed to save word translations", "create_word_translations"
        ) from exc


async def replace_word_translations(
    *, message_id: int, word_translations: list[WordTranslation]
) -> None:
    """Deletes the message's word rows, then inserts the new list."""
    await delete_word_translations(message_id=message_id)
    await create_word_translations(
        message_id=message_id, word_translations=word_translations
    )


# ---------------------------------------------------------------------------
# Full translations
# ---------------------------------------------------------------------------


async def get_message_translation(*, message_id: int) -> MessageTranslation | None:
    """Returns the latest full translation row of a message."""
    client = _get_client_or_raise()
    try:
        response = await run_in_threadpool(
            lambda: client.table(MESSAGE_TRANSLATIONS_TABLE)
            .select("*")
            .eq("message_id", message_id)
            .order("created_at", desc=True)
            .limit(1)
            .execute()
        )
    except PostgrestAPIError as exc:
        raise _database_error(
            "Failed to load message translation", "get_message_translation"
        ) from exc
    return _row_to_message_translation(response.data[0]) if response.data else None


async def list_message_translations(
    *, message_ids: list[int]
) -> list[MessageTranslation]:
    """Returns full translation rows for several messages."""
    if not message_ids:
        return []
    client = _get_client_or_raise()
    try:
        response = await run_in_threadpool(
            lambda: client.table(MESSAGE_TRANSLATIONS_TABLE)
            .select("*")
            .in_("message_id", message_ids)
            .execute()
        )
    except PostgrestAPIError as exc:
        raise _database_error(
            "Failed to load message translations", "list_message_translations"
        ) from exc
    return [_row_to_message_translation(row) for row in response.data or []]


async def save_message_translation(
    *, message_id: int, translation: str
) -> MessageTranslation | None:
    """Creates or overwrites the full translation of a message."""
    client = _get_client_or_raise()
    payload = {"message_id": message_id, "translation": translation}
    try:
        response = await run_in_threadpool(
            lambda: client.table(MESSAGE_TRANSLATIONS_TABLE)
            .upsert(payload, on_conflict="message_id")
            .execute()
        )
    except PostgrestAPIError as exc:
        raise _database_error(
            "Failed to save message translation", "save_message_translation"
        ) from exc
    return _row_to_message_translation(response.data[0]) if response.data else None


# ---------------------------------------------------------------------------
# Saved vocabulary and request logs
# ---------------------------------------------------------------------------


async def list_saved_words(*, user_id: str) -> list[dict]:
    """Returns a user's saved vocabulary, oldest first."""
    client = _get_client_or_raise()
    try:
        response = await run_in_threadpool(
            lambda: client.table("saved_words")
            .select("*")
            .eq("user_id", user_id)
            .order("created_at", desc=False)
            .execute()
        )
    except PostgrestAPIError as exc:
        raise _database_error("Failed to load saved words", "list_saved_words") from exc
    return response.data or []


async def create_ai_request_log(*, payload: dict) -> None:
    """Inserts one model request/response audit row."""
    client = _get_client_or_raise()
    try:
        await run_in_threadpool(
            lambda: client.table("ai_request_logs").insert(payload).execute()
        )
    except PostgrestAPIError as exc:
        raise _database_error(
            "Failed to save AI request log", "create_ai_request_log"
        ) from exc
